# Overview: Service-layer operations for products; encapsulates business logic and storage work.

"""
Products Service

WHY: A product's CFT, price per piece and stock status are derived values.
They are recomputed here whenever an input they depend on changes and are
never accepted from callers.
"""

from __future__ import annotations

import uuid

from ..schemas import Product
from ..validation import (
    coerce_choice,
    coerce_int,
    coerce_number,
    coerce_str,
    require_payload,
)
from backoffice.time_utils import utcnow
from .blob_store import PRODUCTS_KEY, BlobStore, RecordCollection, current_blob_store
from .calculators import WOOD_TYPES, calculate_volume, classify_stock, round_money


MUTABLE_FIELDS = {
    "name", "category", "woodType", "length", "width", "height",
    "pricePerCft", "quantity", "minOrderQuantity", "notes", "imageUrl",
}
DIMENSION_FIELDS = {"length", "width", "height", "pricePerCft"}
STOCK_FIELDS = {"quantity", "minOrderQuantity"}


def products_collection(store: BlobStore | None = None) -> RecordCollection[Product]:
    return RecordCollection(store or current_blob_store(), PRODUCTS_KEY, Product)


def _apply_derived(product: Product) -> None:
    product.cft_per_piece = calculate_volume(product.length, product.width, product.height)
    product.price_per_piece = round_money(product.cft_per_piece * product.price_per_cft)


def _clean_fields(data: dict, *, partial: bool) -> dict:
    """Validate and normalize product input. Unknown and derived keys are dropped."""
    cleaned: dict = {}

    def present(key: str) -> bool:
        return (not partial) or key in data

    if present("name"):
        cleaned["name"] = coerce_str("name", data.get("name"), required=True, max_length=200)
    if present("category"):
        cleaned["category"] = coerce_str("category", data.get("category"), required=True, max_length=100)
    if present("woodType"):
        cleaned["wood_type"] = coerce_choice("woodType", data.get("woodType"), WOOD_TYPES)
    for key in ("length", "width", "height"):
        if present(key):
            cleaned[key] = coerce_number(key, data.get(key), positive=True)
    if present("pricePerCft"):
        cleaned["price_per_cft"] = coerce_number("pricePerCft", data.get("pricePerCft"), minimum=0)
    if present("quantity"):
        cleaned["quantity"] = coerce_int("quantity", data.get("quantity"), minimum=0)
    if present("minOrderQuantity"):
        cleaned["min_order_quantity"] = coerce_int("minOrderQuantity", data.get("minOrderQuantity"), minimum=1)
    if "notes" in data:
        cleaned["notes"] = coerce_str("notes", data.get("notes"), max_length=2000) or ""
    if "imageUrl" in data:
        cleaned["image_url"] = coerce_str("imageUrl", data.get("imageUrl"), max_length=2000) or None
    return cleaned


def list_products(store: BlobStore | None = None, *, search: str | None = None) -> list[Product]:
    """All products in stored order, optionally filtered by name or category."""
    products = products_collection(store).load()
    if search:
        needle = search.strip().lower()
        products = [p for p in products if needle in p.name.lower() or needle in p.category.lower()]
    return products


def get_product(product_id: str, store: BlobStore | None = None) -> Product | None:
    for product in list_products(store):
        if product.id == product_id:
            return product
    return None


def create_product(data: dict, store: BlobStore | None = None) -> Product:
    """
    Create a product from user input.

    Assigns id and timestamps and computes cftPerPiece, pricePerPiece and
    status. Raises ValidationError on bad input.
    """
    data = require_payload(data)
    fields = _clean_fields(data, partial=False)
    now = utcnow()

    product = Product(
        id=str(uuid.uuid4()),
        name=fields["name"],
        category=fields["category"],
        wood_type=fields["wood_type"],
        length=fields["length"],
        width=fields["width"],
        height=fields["height"],
        cft_per_piece=0.0,
        price_per_cft=fields["price_per_cft"],
        price_per_piece=0.0,
        quantity=fields["quantity"],
        min_order_quantity=fields["min_order_quantity"],
        status=classify_stock(fields["quantity"], fields["min_order_quantity"]),
        created_at=now,
        updated_at=now,
        notes=fields.get("notes", ""),
        image_url=fields.get("image_url"),
    )
    _apply_derived(product)

    collection = products_collection(store)
    with collection.store.transaction():
        products = collection.load()
        products.append(product)
        collection.save(products)
    return product


def update_product(product_id: str, patch: dict, store: BlobStore | None = None) -> Product | None:
    """
    Apply a partial update. Returns None if the product does not exist.

    Derived fields in the patch are ignored. CFT and price per piece are
    recomputed when a dimension or pricePerCft is present; status when
    quantity or minOrderQuantity is present.
    """
    patch = require_payload(patch)
    applicable = {k: v for k, v in patch.items() if k in MUTABLE_FIELDS}
    fields = _clean_fields(applicable, partial=True)

    collection = products_collection(store)
    with collection.store.transaction():
        products = collection.load()
        product = next((p for p in products if p.id == product_id), None)
        if product is None:
            return None

        for attr, value in fields.items():
            setattr(product, attr, value)

        if DIMENSION_FIELDS & applicable.keys():
            _apply_derived(product)
        if STOCK_FIELDS & applicable.keys():
            product.status = classify_stock(product.quantity, product.min_order_quantity)
        product.updated_at = utcnow()

        collection.save(products)
    return product


def delete_product(product_id: str, store: BlobStore | None = None) -> bool:
    collection = products_collection(store)
    with collection.store.transaction():
        products = collection.load()
        remaining = [p for p in products if p.id != product_id]
        if len(remaining) == len(products):
            return False
        collection.save(remaining)
    return True


def reset_products(store: BlobStore | None = None) -> None:
    products_collection(store).clear()

