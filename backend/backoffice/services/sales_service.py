# Overview: Service-layer operations for sales; encapsulates business logic and storage work.

"""
Sales Service

WHY: A sale is written once. Its items are snapshots of the products at
the time of sale and its totals never change afterwards; only payments
are recorded against it later.

ATOMICITY: Creating a sale decrements product stock, recomputes product
status, appends the sale and advances the invoice counter. All four
writes happen inside one store transaction, so a failure leaves no
partial state behind.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime

from ..schemas import Customer, Product, Sale, SaleItem
from ..validation import (
    ValidationError,
    coerce_bool,
    coerce_choice,
    coerce_datetime,
    coerce_int,
    coerce_number,
    coerce_str,
    require_payload,
)
from backoffice.time_utils import utcnow
from .blob_store import (
    PRODUCTS_KEY,
    SALES_KEY,
    BlobStore,
    RecordCollection,
    SequenceTable,
    current_blob_store,
)
from .calculators import (
    GST_RATES,
    InvoiceNumbersExhausted,
    PAYMENT_METHODS,
    PAYMENT_MODES,
    classify_stock,
    generate_invoice_number,
    hsn_code_for,
    round_money,
    split_gst,
    state_code_for,
)
from .concurrency import run_with_retry


class SaleError(Exception):
    """Raised for sale operation errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class InsufficientStockError(SaleError):
    """A sale line asks for more pieces than the product has in stock."""


class PaymentError(SaleError):
    """Raised for invalid payment amounts."""


@dataclass
class PendingSale:
    sale: Sale
    overdue: bool
    due_today: bool

    def to_dict(self) -> dict:
        data = self.sale.to_dict()
        data["overdue"] = self.overdue
        data["dueToday"] = self.due_today
        return data


def sales_collection(store: BlobStore | None = None) -> RecordCollection[Sale]:
    return RecordCollection(store or current_blob_store(), SALES_KEY, Sale)


def _format_dimension(value: float) -> str:
    return f"{value:g}"


def build_sale_item(product: Product, quantity: int) -> SaleItem:
    """Snapshot a product into a sale line."""
    dimensions = " × ".join(
        f'{_format_dimension(v)}"' for v in (product.length, product.width, product.height)
    )
    return SaleItem(
        product_id=product.id,
        product_name=product.name,
        hsn_code=hsn_code_for(product.category),
        wood_type=product.wood_type,
        dimensions=dimensions,
        quantity=quantity,
        cft_per_piece=product.cft_per_piece,
        total_cft=product.cft_per_piece * quantity,
        price_per_piece=product.price_per_piece,
        amount=round_money(product.price_per_piece * quantity),
    )


def derive_status(balance_due: float, amount_paid: float, advance_amount: float) -> str:
    if balance_due <= 0:
        return "Paid"
    if amount_paid > 0 or advance_amount > 0:
        return "Partial"
    return "Pending"


def _parse_customer(raw) -> Customer:
    if not isinstance(raw, dict):
        raise ValidationError("customer is required")
    state = coerce_str("customer.state", raw.get("state"), max_length=100) or None
    state_code = coerce_str("customer.stateCode", raw.get("stateCode"), max_length=4) or None
    if state and not state_code:
        state_code = state_code_for(state)
    return Customer(
        name=coerce_str("customer.name", raw.get("name"), required=True, max_length=200),
        phone=coerce_str("customer.phone", raw.get("phone"), required=True, max_length=32),
        address=coerce_str("customer.address", raw.get("address"), required=True, max_length=500),
        company_name=coerce_str("customer.companyName", raw.get("companyName"), max_length=200) or None,
        email=coerce_str("customer.email", raw.get("email"), max_length=200) or None,
        gstin=coerce_str("customer.gstin", raw.get("gstin"), max_length=15) or None,
        state=state,
        state_code=state_code,
    )


def _parse_lines(raw) -> list[tuple[str, int]]:
    """[(product_id, quantity)] with duplicate products merged, first-seen order kept."""
    if not isinstance(raw, list) or not raw:
        raise ValidationError("At least one item is required")

    merged: dict[str, int] = {}
    for index, line in enumerate(raw):
        if not isinstance(line, dict):
            raise ValidationError(f"items[{index}] must be an object")
        product_id = coerce_str(f"items[{index}].productId", line.get("productId"), required=True)
        quantity = coerce_int(f"items[{index}].quantity", line.get("quantity"), minimum=1)
        merged[product_id] = merged.get(product_id, 0) + quantity
    return list(merged.items())


def _validate_on_hand(products_by_id: dict[str, Product], lines: list[tuple[str, int]]) -> None:
    insufficient = []
    for product_id, qty in lines:
        product = products_by_id.get(product_id)
        if product is None:
            continue
        if product.quantity < qty:
            insufficient.append({
                "productId": product_id,
                "productName": product.name,
                "requestedQuantity": qty,
                "available": product.quantity,
            })

    if insufficient:
        raise InsufficientStockError(
            "Insufficient stock for sale",
            details={"items": insufficient},
        )


def create_sale(data: dict, store: BlobStore | None = None) -> Sale:
    """
    Create a sale, decrement stock and issue its invoice number.

    Item lines reference products by id: [{"productId", "quantity"}] or
    carry a full snapshot (productName, pricePerPiece, ...) for products
    that no longer exist; those lines are recorded without stock effect.

    Raises ValidationError, InsufficientStockError or SaleError.
    """
    data = require_payload(data)
    store = store or current_blob_store()

    customer = _parse_customer(data.get("customer"))
    lines = _parse_lines(data.get("items"))
    snapshots = {
        line.get("productId"): line
        for line in data.get("items")
        if isinstance(line, dict) and line.get("productName")
    }

    gst_enabled = coerce_bool(data.get("gstEnabled", False))
    gst_rate = None
    is_inter_state = coerce_bool(data.get("isInterState", False))
    if gst_enabled:
        gst_rate = coerce_int("gstRate", data.get("gstRate", 18))
        coerce_choice("gstRate", gst_rate, GST_RATES)

    transport_enabled = coerce_bool(data.get("transportEnabled", False))
    transport_amount = 0.0
    if transport_enabled:
        transport_amount = round_money(coerce_number("transportAmount", data.get("transportAmount", 0), minimum=0))

    payment_mode = coerce_choice("paymentMode", data.get("paymentMode", "full"), PAYMENT_MODES)
    payment_method = coerce_choice("paymentMethod", data.get("paymentMethod", "Banking"), PAYMENT_METHODS)
    expected_payment_date = coerce_datetime("expectedPaymentDate", data.get("expectedPaymentDate"))
    vehicle_number = coerce_str("vehicleNumber", data.get("vehicleNumber"), max_length=32) or None
    place_of_supply = coerce_str("placeOfSupply", data.get("placeOfSupply"), max_length=100) or customer.state

    products_col = RecordCollection(store, PRODUCTS_KEY, Product)
    sales_col = RecordCollection(store, SALES_KEY, Sale)
    sequences_table = SequenceTable(store)

    def _op() -> Sale:
        with store.transaction():
            products = products_col.load()
            products_by_id = {p.id: p for p in products}
            _validate_on_hand(products_by_id, lines)

            items = []
            for product_id, qty in lines:
                product = products_by_id.get(product_id)
                if product is not None:
                    items.append(build_sale_item(product, qty))
                    continue
                snapshot = snapshots.get(product_id)
                if snapshot is None:
                    raise ValidationError(f"Product {product_id} not found")
                items.append(_item_from_snapshot(product_id, qty, snapshot))

            subtotal = round_money(sum(item.amount for item in items))
            gst_amount = 0.0
            cgst = sgst = igst = None
            if gst_enabled:
                split = split_gst(subtotal, gst_rate, is_inter_state)
                gst_amount, cgst, sgst, igst = split.total, split.cgst, split.sgst, split.igst
            grand_total = round_money(subtotal + gst_amount + transport_amount)

            amount_paid, advance_amount = _initial_payment(data, payment_mode, grand_total)
            balance_due = round_money(grand_total - amount_paid - advance_amount)

            now = utcnow()
            sales = sales_col.load()
            sequences = sequences_table.load()
            try:
                invoice_number = generate_invoice_number(
                    {s.invoice_number for s in sales}, sequences, now
                )
            except InvoiceNumbersExhausted as exc:
                raise SaleError(
                    "Invoice numbers exhausted for this month",
                    details={"period": exc.period},
                ) from exc

            sale = Sale(
                id=str(uuid.uuid4()),
                invoice_number=invoice_number,
                customer=customer,
                items=items,
                subtotal=subtotal,
                gst_enabled=gst_enabled,
                gst_amount=gst_amount,
                gst_rate=gst_rate,
                cgst_amount=cgst,
                sgst_amount=sgst,
                igst_amount=igst,
                is_inter_state=is_inter_state if gst_enabled else False,
                place_of_supply=place_of_supply,
                transport_enabled=transport_enabled,
                transport_amount=transport_amount,
                vehicle_number=vehicle_number,
                grand_total=grand_total,
                payment_mode=payment_mode,
                payment_method=payment_method,
                amount_paid=amount_paid,
                advance_amount=advance_amount,
                balance_due=balance_due,
                expected_payment_date=expected_payment_date,
                status=derive_status(balance_due, amount_paid, advance_amount),
                created_at=now,
            )

            for product_id, qty in lines:
                product = products_by_id.get(product_id)
                if product is None:
                    continue
                product.quantity -= qty
                product.status = classify_stock(product.quantity, product.min_order_quantity)
                product.updated_at = now

            products_col.save(products)
            sales.append(sale)
            sales_col.save(sales)
            sequences_table.save(sequences)
            return sale

    return run_with_retry(_op)


def _item_from_snapshot(product_id: str, quantity: int, raw: dict) -> SaleItem:
    price = coerce_number("pricePerPiece", raw.get("pricePerPiece"), minimum=0)
    cft = coerce_number("cftPerPiece", raw.get("cftPerPiece", 0), minimum=0)
    return SaleItem(
        product_id=product_id,
        product_name=coerce_str("productName", raw.get("productName"), required=True, max_length=200),
        hsn_code=coerce_str("hsnCode", raw.get("hsnCode"), max_length=8) or None,
        wood_type=coerce_str("woodType", raw.get("woodType"), max_length=50) or "",
        dimensions=coerce_str("dimensions", raw.get("dimensions"), max_length=100) or "",
        quantity=quantity,
        cft_per_piece=cft,
        total_cft=cft * quantity,
        price_per_piece=price,
        amount=round_money(price * quantity),
    )


def _initial_payment(data: dict, payment_mode: str, grand_total: float) -> tuple[float, float]:
    """(amountPaid, advanceAmount) for a new sale."""
    if payment_mode == "full":
        return grand_total, 0.0
    if payment_mode == "partial":
        paid = round_money(coerce_number("amountPaid", data.get("amountPaid", 0), minimum=0))
        if paid > grand_total:
            raise PaymentError("Amount paid cannot exceed grand total")
        return paid, 0.0
    if payment_mode == "advance":
        advance = round_money(coerce_number("advanceAmount", data.get("advanceAmount", 0), minimum=0))
        if advance > grand_total:
            raise PaymentError("Advance amount cannot exceed grand total")
        return 0.0, advance
    return 0.0, 0.0


def list_sales(store: BlobStore | None = None, *, search: str | None = None) -> list[Sale]:
    """
    All sales in stored order.

    `search` matches the invoice number or customer name (case-insensitive)
    or a fragment of the customer phone.
    """
    sales = sales_collection(store).load()
    if search:
        needle = search.strip()
        lowered = needle.lower()
        sales = [
            s for s in sales
            if lowered in s.invoice_number.lower()
            or lowered in s.customer.name.lower()
            or needle in s.customer.phone
        ]
    return sales


def get_sale(sale_id: str, store: BlobStore | None = None) -> Sale | None:
    for sale in list_sales(store):
        if sale.id == sale_id:
            return sale
    return None


def update_payment(sale_id: str, amount_paid: float, store: BlobStore | None = None) -> Sale | None:
    """
    Overwrite amountPaid and recompute balanceDue and status.

    Returns None if the sale does not exist. Raises PaymentError on a
    negative amount.
    """
    if amount_paid is None or amount_paid < 0:
        raise PaymentError("Amount paid cannot be negative")

    collection = sales_collection(store)
    with collection.store.transaction():
        sales = collection.load()
        sale = next((s for s in sales if s.id == sale_id), None)
        if sale is None:
            return None

        sale.amount_paid = round_money(amount_paid)
        sale.balance_due = round_money(sale.grand_total - sale.amount_paid - sale.advance_amount)
        sale.status = derive_status(sale.balance_due, sale.amount_paid, sale.advance_amount)
        collection.save(sales)
    return sale


def record_payment(sale_id: str, amount: float, store: BlobStore | None = None) -> Sale | None:
    """
    Record an additional payment against a sale's balance.

    Raises PaymentError unless 0 < amount <= balanceDue.
    """
    store = store or current_blob_store()
    with store.transaction():
        sale = get_sale(sale_id, store)
        if sale is None:
            return None
        if amount is None or amount <= 0:
            raise PaymentError("Payment amount must be greater than 0")
        if round_money(amount) > sale.balance_due:
            raise PaymentError(
                "Payment amount cannot exceed balance due",
                details={"balanceDue": sale.balance_due},
            )
        return update_payment(sale_id, sale.amount_paid + amount, store)


def list_pending_sales(store: BlobStore | None = None, today: datetime | None = None) -> list[PendingSale]:
    """Sales with money outstanding, each flagged overdue / due today."""
    today_date = (today or utcnow()).date()
    pending = []
    for sale in list_sales(store):
        if sale.status == "Paid" or sale.balance_due <= 0:
            continue
        due = sale.expected_payment_date.date() if sale.expected_payment_date else None
        pending.append(PendingSale(
            sale=sale,
            overdue=due is not None and due < today_date,
            due_today=due is not None and due == today_date,
        ))
    return pending


def reset_sales(store: BlobStore | None = None) -> None:
    """
    Bulk reset. Sales are never deleted one by one.

    Invoice counters survive so numbers already printed are not reissued
    this month; reporting_service.reset_all clears them too.
    """
    sales_collection(store).clear()
