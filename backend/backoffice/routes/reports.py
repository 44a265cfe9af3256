from flask import Blueprint, jsonify, request, current_app

from backoffice.decorators import require_admin_session
from backoffice.routes.admin_auth import get_client_ip
from backoffice.services import audit_service, reporting_service
from backoffice.services.products_service import reset_products
from backoffice.services.quotations_service import reset_quotations
from backoffice.services.sales_service import reset_sales
from backoffice.validation import ValidationError, coerce_bool, require_payload


reports_bp = Blueprint("reports", __name__, url_prefix="/api")

RESETTERS = {
    "products": reset_products,
    "sales": reset_sales,
    "quotations": reset_quotations,
    "all": reporting_service.reset_all,
}


@reports_bp.get("/dashboard")
@require_admin_session
def dashboard():
    return jsonify(reporting_service.dashboard_stats()), 200


@reports_bp.get("/revenue")
@require_admin_session
def revenue():
    return jsonify(reporting_service.revenue_summary()), 200


@reports_bp.post("/reset")
@require_admin_session
def reset():
    """
    Clear stored data.

    Body: {"confirm": true, "collection": "products" | "sales" | "quotations" | "all"}
    collection defaults to "all"; only "all" clears invoice counters.
    """
    try:
        payload = require_payload(request.get_json(silent=True))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    if not coerce_bool(payload.get("confirm")):
        return jsonify({"error": "confirm must be true"}), 400

    collection = payload.get("collection") or "all"
    resetter = RESETTERS.get(collection) if isinstance(collection, str) else None
    if resetter is None:
        return jsonify({"error": f"collection must be one of: {', '.join(RESETTERS)}"}), 400

    resetter()
    current_app.logger.warning("Data reset: %s", collection)
    audit_service.log_action("data_reset", {"collection": collection}, ip_address=get_client_ip())
    return jsonify({"ok": True, "collection": collection}), 200
