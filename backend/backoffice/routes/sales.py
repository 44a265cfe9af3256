# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

"""
Sales routes.

A sale is created once (stock decrement, invoice number and sale insert
in one transaction) and afterwards only payments change. Sales are never
deleted individually; see /api/reset.

SECURITY: All routes require an admin session.
"""

from flask import Blueprint, request, current_app, Response

from ..services import sales_service
from ..services.business_profile import current_business_info
from ..services.invoice_layout import invoice_filename
from ..services.invoice_pdf import current_invoice_fonts, render_invoice_pdf
from ..services.sales_service import InsufficientStockError, PaymentError, SaleError
from ..validation import ValidationError, coerce_bool, coerce_number, require_payload
from ..decorators import require_admin_session


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.get("")
@require_admin_session
def list_sales_route():
    """
    List sales, newest first.

    Query params:
    - q: str (optional) - matches invoice number, customer name or phone
    - status: str (optional) - Paid | Partial | Pending
    """
    status = request.args.get("status")
    sales = sales_service.list_sales(search=request.args.get("q"))
    if status:
        sales = [s for s in sales if s.status == status]
    sales.sort(key=lambda s: s.created_at, reverse=True)
    return {"items": [s.to_dict() for s in sales]}, 200


@sales_bp.get("/pending")
@require_admin_session
def list_pending_sales_route():
    """Sales with an outstanding balance, flagged overdue / due today."""
    pending = sales_service.list_pending_sales()
    return {
        "items": [p.to_dict() for p in pending],
        "totalPending": round(sum(p.sale.balance_due for p in pending), 2),
    }, 200


@sales_bp.post("")
@require_admin_session
def create_sale_route():
    """
    Create a sale.

    Body: customer, items [{productId, quantity}], gstEnabled, gstRate,
    isInterState, placeOfSupply, transportEnabled, transportAmount,
    vehicleNumber, paymentMode, paymentMethod, amountPaid, advanceAmount,
    expectedPaymentDate.
    """
    try:
        payload = require_payload(request.get_json(silent=True))
        sale = sales_service.create_sale(payload)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except InsufficientStockError as e:
        return {"error": str(e), "details": e.details}, 409
    except PaymentError as e:
        return {"error": str(e), "details": e.details}, 400
    except SaleError as e:
        current_app.logger.warning("Sale rejected: %s", e)
        return {"error": str(e), "details": e.details}, 409

    return sale.to_dict(), 201


@sales_bp.get("/<sale_id>")
@require_admin_session
def get_sale_route(sale_id: str):
    sale = sales_service.get_sale(sale_id)
    if not sale:
        return {"error": "Sale not found"}, 404
    return sale.to_dict(), 200


@sales_bp.post("/<sale_id>/payment")
@require_admin_session
def payment_route(sale_id: str):
    """
    Record a payment against a sale.

    Body (one of):
    - {"amount": n}      adds n to amountPaid (0 < n <= balanceDue)
    - {"amountPaid": n}  overwrites amountPaid
    """
    try:
        payload = require_payload(request.get_json(silent=True))
        if "amount" in payload:
            amount = coerce_number("amount", payload.get("amount"))
            sale = sales_service.record_payment(sale_id, amount)
        else:
            amount_paid = coerce_number("amountPaid", payload.get("amountPaid"))
            sale = sales_service.update_payment(sale_id, amount_paid)
    except (ValidationError, PaymentError) as e:
        return {"error": str(e)}, 400

    if not sale:
        return {"error": "Sale not found"}, 404
    return sale.to_dict(), 200


@sales_bp.get("/<sale_id>/invoice.pdf")
@require_admin_session
def invoice_pdf_route(sale_id: str):
    """
    Download the invoice PDF.

    Query params:
    - inline: bool (optional) - serve inline for an in-browser viewer tab
    """
    sale = sales_service.get_sale(sale_id)
    if not sale:
        return {"error": "Sale not found"}, 404

    try:
        pdf_bytes = render_invoice_pdf(sale, current_business_info(), current_invoice_fonts())
    except Exception:
        current_app.logger.exception("Failed to render invoice %s", sale.invoice_number)
        return {"error": "Internal server error"}, 500

    disposition = "inline" if coerce_bool(request.args.get("inline", "")) else "attachment"
    return Response(
        pdf_bytes,
        mimetype="application/pdf",
        headers={"Content-Disposition": f'{disposition}; filename="{invoice_filename(sale)}"'},
    )
