# Overview: Service-layer operations for the admin audit trail.

from __future__ import annotations

from ..extensions import db
from ..models import AuditLog
from backoffice.time_utils import utcnow


def log_action(
    action: str,
    details: dict | None = None,
    ip_address: str | None = None,
    commit: bool = True,
) -> AuditLog:
    """
    Append an audit row.

    With commit=False the row joins the caller's transaction (used by login
    so the session, attempt and audit rows land together).
    """
    entry = AuditLog(
        action=action,
        details=details if details is not None else {},
        ip_address=ip_address,
        created_at=utcnow(),
    )
    db.session.add(entry)
    if commit:
        db.session.commit()
    return entry


def list_audit_logs(limit: int = 100, action: str | None = None) -> list[AuditLog]:
    query = db.session.query(AuditLog)
    if action:
        query = query.filter(AuditLog.action == action)
    return query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).limit(limit).all()
