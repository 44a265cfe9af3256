# Overview: Flask API routes for quotations operations; parses input and returns JSON responses.

"""
Quotation tracking routes.

Status is never accepted from the client: it follows dateOrderReceived.

SECURITY: All routes require an admin session.
"""
from flask import Blueprint, request

from ..services import quotations_service
from ..validation import ValidationError, coerce_datetime, require_payload
from ..decorators import require_admin_session


quotations_bp = Blueprint("quotations", __name__, url_prefix="/api/quotations")


@quotations_bp.get("")
@require_admin_session
def list_quotations_route():
    """
    List quotations, newest first.

    Query params:
    - q: str (optional) - matches quotation name or customer name
    - status: str (optional) - Pending | Received | Expired
    """
    quotations = quotations_service.list_quotations(search=request.args.get("q"))
    status = request.args.get("status")
    if status:
        quotations = [q for q in quotations if q.status == status]
    return {"items": [q.to_dict() for q in quotations]}, 200


@quotations_bp.get("/<quotation_id>")
@require_admin_session
def get_quotation_route(quotation_id: str):
    quotation = quotations_service.get_quotation(quotation_id)
    if not quotation:
        return {"error": "Quotation not found"}, 404
    return quotation.to_dict(), 200


@quotations_bp.post("")
@require_admin_session
def create_quotation_route():
    try:
        payload = require_payload(request.get_json(silent=True))
        created = quotations_service.create_quotation(payload)
    except ValidationError as e:
        return {"error": str(e)}, 400

    return created.to_dict(), 201


@quotations_bp.route("/<quotation_id>", methods=["PUT", "PATCH"])
@require_admin_session
def update_quotation_route(quotation_id: str):
    try:
        payload = require_payload(request.get_json(silent=True))
        updated = quotations_service.update_quotation(quotation_id, payload)
    except ValidationError as e:
        return {"error": str(e)}, 400

    if not updated:
        return {"error": "Quotation not found"}, 404
    return updated.to_dict(), 200


@quotations_bp.post("/<quotation_id>/received")
@require_admin_session
def mark_received_route(quotation_id: str):
    """Mark the order as received. Body: {"dateOrderReceived": iso} (optional, defaults to now)."""
    try:
        payload = require_payload(request.get_json(silent=True))
        when = coerce_datetime("dateOrderReceived", payload.get("dateOrderReceived"))
    except ValidationError as e:
        return {"error": str(e)}, 400

    updated = quotations_service.mark_quotation_received(quotation_id, when)
    if not updated:
        return {"error": "Quotation not found"}, 404
    return updated.to_dict(), 200


@quotations_bp.delete("/<quotation_id>")
@require_admin_session
def delete_quotation_route(quotation_id: str):
    if not quotations_service.delete_quotation(quotation_id):
        return {"error": "Quotation not found"}, 404
    return {"ok": True}, 200
