# backend/backoffice/routes/system.py
"""
System health and version endpoints.

Health covers the two things the back office depends on: the database
(session and audit tables) and the stored record collections, which must
still parse against their schemas.
"""

import sys
import time
from flask import Blueprint, current_app
from ..extensions import db
from ..models import AdminSession, KvBlob
from ..services.blob_store import ALL_KEYS, INVOICE_SEQUENCES_KEY, SequenceTable, current_blob_store
from ..services.products_service import products_collection
from ..services.quotations_service import quotations_collection
from ..services.sales_service import sales_collection
from ..validation import DataCorruptionError
from backoffice.time_utils import utcnow, to_utc_z

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    """Check database connectivity by counting sessions and stored blobs."""
    start_time = time.time()
    try:
        now = utcnow()
        active_sessions = db.session.query(AdminSession).filter(
            AdminSession.is_active.is_(True),
            AdminSession.expires_at > now,
        ).count()
        blob_count = db.session.query(KvBlob).count()

        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "active_sessions": active_sessions,
                "stored_collections": blob_count,
            }
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error"
        }


def check_storage_health() -> dict:
    """
    Load every record collection. A record that fails its schema makes the
    check degraded (the API keeps serving everything else).
    """
    start_time = time.time()
    store = current_blob_store()
    counts = {}
    try:
        counts["products"] = len(products_collection(store).load())
        counts["sales"] = len(sales_collection(store).load())
        counts["quotations"] = len(quotations_collection(store).load())
        counts["invoice_periods"] = len(SequenceTable(store).load())
    except DataCorruptionError as e:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.error("Stored data failed validation: %s", e)
        return {
            "status": "degraded",
            "latency_ms": round(elapsed_ms, 2),
            "warning": str(e),
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Storage health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Storage error"
        }

    elapsed_ms = (time.time() - start_time) * 1000
    return {
        "status": "healthy",
        "latency_ms": round(elapsed_ms, 2),
        "details": {
            "records": counts,
            "keys_present": sorted(k for k in ALL_KEYS if store.get(k) is not None),
            "counters_key": INVOICE_SEQUENCES_KEY,
        }
    }


@system_bp.get("/health")
def health():
    """
    Health check endpoint.

    Returns:
    - 200: healthy or degraded
    - 503: one or more checks unhealthy
    """
    start_time = time.time()

    database_health = check_database_health()
    storage_health = check_storage_health()

    all_checks = [database_health, storage_health]
    unhealthy_count = sum(1 for check in all_checks if check["status"] == "unhealthy")
    degraded_count = sum(1 for check in all_checks if check["status"] == "degraded")

    if unhealthy_count > 0:
        overall_status = "unhealthy"
        http_status = 503
    elif degraded_count > 0:
        overall_status = "degraded"
        http_status = 200  # Degraded is still operational
    else:
        overall_status = "healthy"
        http_status = 200

    total_elapsed_ms = (time.time() - start_time) * 1000

    response = {
        "status": overall_status,
        "timestamp": to_utc_z(utcnow()),
        "total_latency_ms": round(total_elapsed_ms, 2),
        "checks": {
            "database": database_health,
            "storage": storage_health,
        }
    }

    return response, http_status


@system_bp.get("/version")
def version():
    """Non-sensitive deployment info. Never exposes secrets or paths."""
    env = "production" if not current_app.debug else "development"

    return {
        "api_version": "1.0.0",
        "environment": env,
        "python_version": sys.version.split()[0],
        "server_time": to_utc_z(utcnow()),
    }
