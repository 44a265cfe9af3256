# Overview: Flask API routes for products operations; parses input and returns JSON responses.

"""
Product management routes.

SECURITY: All routes require an admin session (@require_admin_session).
Derived fields (cftPerPiece, pricePerPiece, status) are computed by the
service; values sent for them are ignored.
"""
from flask import Blueprint, request

from ..services import products_service
from ..validation import ValidationError, require_payload
from ..decorators import require_admin_session


products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@require_admin_session
def list_products_route():
    """
    List all products.

    Query params:
    - q: str (optional) - matches product name or category
    - status: str (optional) - In Stock | Low Stock | Out of Stock
    """
    status = request.args.get("status")
    products = products_service.list_products(search=request.args.get("q"))
    if status:
        products = [p for p in products if p.status == status]
    return {"items": [p.to_dict() for p in products]}, 200


@products_bp.get("/<product_id>")
@require_admin_session
def get_product_route(product_id: str):
    product = products_service.get_product(product_id)
    if not product:
        return {"error": "Product not found"}, 404
    return product.to_dict(), 200


@products_bp.post("")
@require_admin_session
def create_product_route():
    """Create a new product."""
    try:
        payload = require_payload(request.get_json(silent=True))
        created = products_service.create_product(payload)
    except ValidationError as e:
        return {"error": str(e)}, 400

    return created.to_dict(), 201


@products_bp.route("/<product_id>", methods=["PUT", "PATCH"])
@require_admin_session
def update_product_route(product_id: str):
    """Partially update a product. Dimensions/price recompute CFT and price per piece."""
    try:
        payload = require_payload(request.get_json(silent=True))
        updated = products_service.update_product(product_id, payload)
    except ValidationError as e:
        return {"error": str(e)}, 400

    if not updated:
        return {"error": "Product not found"}, 404

    return updated.to_dict(), 200


@products_bp.delete("/<product_id>")
@require_admin_session
def delete_product_route(product_id: str):
    if not products_service.delete_product(product_id):
        return {"error": "Product not found"}, 404
    return {"ok": True}, 200
