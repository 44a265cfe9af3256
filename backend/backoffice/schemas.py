# Overview: Record schemas for the JSON collections (products, sales, quotations).

"""
Stored record schemas.

WHY: Collections are persisted as JSON arrays. Every record read back from
storage is validated against an explicit schema; anything that does not
match raises DataCorruptionError instead of being cast into shape.

JSON keys are camelCase (the stored/API format). Python attributes are
snake_case.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from backoffice.services.calculators import (
    GST_RATES,
    PAYMENT_METHODS,
    PAYMENT_MODES,
    STOCK_STATUSES,
    WOOD_TYPES,
)
from backoffice.time_utils import parse_iso_datetime, to_utc_z
from backoffice.validation import DataCorruptionError


SALE_STATUSES = ("Paid", "Partial", "Pending")
QUOTATION_STATUSES = ("Pending", "Received", "Expired")

_MISSING = object()


# =============================================================================
# READ HELPERS
# =============================================================================

def _get(raw: dict, key: str, required: bool):
    if key not in raw or raw[key] is None:
        if required:
            raise DataCorruptionError(f"missing field '{key}'")
        return _MISSING
    return raw[key]


def _read_str(raw: dict, key: str, required: bool = True, default: str | None = None) -> str | None:
    value = _get(raw, key, required)
    if value is _MISSING:
        return default
    if not isinstance(value, str):
        raise DataCorruptionError(f"field '{key}' must be a string")
    return value


def _read_number(raw: dict, key: str, required: bool = True, default: float | None = None) -> float | None:
    value = _get(raw, key, required)
    if value is _MISSING:
        return default
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise DataCorruptionError(f"field '{key}' must be a number")
    return float(value)


def _read_int(raw: dict, key: str, required: bool = True, default: int | None = None) -> int | None:
    value = _get(raw, key, required)
    if value is _MISSING:
        return default
    if isinstance(value, bool):
        raise DataCorruptionError(f"field '{key}' must be an integer")
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if not isinstance(value, int):
        raise DataCorruptionError(f"field '{key}' must be an integer")
    return value


def _read_bool(raw: dict, key: str, required: bool = True, default: bool = False) -> bool:
    value = _get(raw, key, required)
    if value is _MISSING:
        return default
    if not isinstance(value, bool):
        raise DataCorruptionError(f"field '{key}' must be a boolean")
    return value


def _read_datetime(raw: dict, key: str, required: bool = True) -> datetime | None:
    value = _get(raw, key, required)
    if value is _MISSING:
        return None
    if not isinstance(value, str):
        raise DataCorruptionError(f"field '{key}' must be an ISO-8601 string")
    try:
        return parse_iso_datetime(value)
    except ValueError:
        raise DataCorruptionError(f"field '{key}' is not a valid ISO-8601 datetime")


def _read_enum(raw: dict, key: str, choices, required: bool = True, default=None):
    value = _get(raw, key, required)
    if value is _MISSING:
        return default
    if value not in choices:
        raise DataCorruptionError(f"field '{key}' has unknown value {value!r}")
    return value


def _write_dt(value: datetime | None) -> str | None:
    return to_utc_z(value, timespec="microseconds")


def _drop_none(data: dict) -> dict:
    return {k: v for k, v in data.items() if v is not None}


# =============================================================================
# PRODUCT
# =============================================================================

@dataclass
class Product:
    id: str
    name: str
    category: str
    wood_type: str
    length: float
    width: float
    height: float
    cft_per_piece: float
    price_per_cft: float
    price_per_piece: float
    quantity: int
    min_order_quantity: int
    status: str
    created_at: datetime
    updated_at: datetime
    notes: str = ""
    image_url: str | None = None

    @classmethod
    def from_dict(cls, raw: dict) -> "Product":
        if not isinstance(raw, dict):
            raise DataCorruptionError("product record must be an object")
        return cls(
            id=_read_str(raw, "id"),
            name=_read_str(raw, "name"),
            category=_read_str(raw, "category"),
            wood_type=_read_enum(raw, "woodType", WOOD_TYPES),
            length=_read_number(raw, "length"),
            width=_read_number(raw, "width"),
            height=_read_number(raw, "height"),
            cft_per_piece=_read_number(raw, "cftPerPiece"),
            price_per_cft=_read_number(raw, "pricePerCft"),
            price_per_piece=_read_number(raw, "pricePerPiece"),
            quantity=_read_int(raw, "quantity"),
            min_order_quantity=_read_int(raw, "minOrderQuantity"),
            status=_read_enum(raw, "status", STOCK_STATUSES),
            created_at=_read_datetime(raw, "createdAt"),
            updated_at=_read_datetime(raw, "updatedAt"),
            notes=_read_str(raw, "notes", required=False, default=""),
            image_url=_read_str(raw, "imageUrl", required=False),
        )

    def to_dict(self) -> dict:
        return _drop_none({
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "woodType": self.wood_type,
            "length": self.length,
            "width": self.width,
            "height": self.height,
            "cftPerPiece": self.cft_per_piece,
            "pricePerCft": self.price_per_cft,
            "pricePerPiece": self.price_per_piece,
            "quantity": self.quantity,
            "minOrderQuantity": self.min_order_quantity,
            "notes": self.notes,
            "imageUrl": self.image_url,
            "status": self.status,
            "createdAt": _write_dt(self.created_at),
            "updatedAt": _write_dt(self.updated_at),
        })


# =============================================================================
# SALE
# =============================================================================

@dataclass
class Customer:
    name: str
    phone: str
    address: str
    company_name: str | None = None
    email: str | None = None
    gstin: str | None = None
    state: str | None = None
    state_code: str | None = None

    @property
    def display_name(self) -> str:
        return self.company_name or self.name

    @classmethod
    def from_dict(cls, raw: Any) -> "Customer":
        if not isinstance(raw, dict):
            raise DataCorruptionError("field 'customer' must be an object")
        return cls(
            name=_read_str(raw, "name"),
            phone=_read_str(raw, "phone"),
            address=_read_str(raw, "address"),
            company_name=_read_str(raw, "companyName", required=False),
            email=_read_str(raw, "email", required=False),
            gstin=_read_str(raw, "gstin", required=False),
            state=_read_str(raw, "state", required=False),
            state_code=_read_str(raw, "stateCode", required=False),
        )

    def to_dict(self) -> dict:
        return _drop_none({
            "name": self.name,
            "companyName": self.company_name,
            "phone": self.phone,
            "email": self.email,
            "address": self.address,
            "gstin": self.gstin,
            "state": self.state,
            "stateCode": self.state_code,
        })


@dataclass
class SaleItem:
    """Snapshot of a product at time of sale. Does not follow later product edits."""
    product_id: str
    product_name: str
    wood_type: str
    dimensions: str
    quantity: int
    cft_per_piece: float
    total_cft: float
    price_per_piece: float
    amount: float
    hsn_code: str | None = None

    @classmethod
    def from_dict(cls, raw: Any) -> "SaleItem":
        if not isinstance(raw, dict):
            raise DataCorruptionError("sale item must be an object")
        return cls(
            product_id=_read_str(raw, "productId"),
            product_name=_read_str(raw, "productName"),
            wood_type=_read_str(raw, "woodType"),
            dimensions=_read_str(raw, "dimensions"),
            quantity=_read_int(raw, "quantity"),
            cft_per_piece=_read_number(raw, "cftPerPiece"),
            total_cft=_read_number(raw, "totalCft"),
            price_per_piece=_read_number(raw, "pricePerPiece"),
            amount=_read_number(raw, "amount"),
            hsn_code=_read_str(raw, "hsnCode", required=False),
        )

    def to_dict(self) -> dict:
        return _drop_none({
            "productId": self.product_id,
            "productName": self.product_name,
            "hsnCode": self.hsn_code,
            "woodType": self.wood_type,
            "dimensions": self.dimensions,
            "quantity": self.quantity,
            "cftPerPiece": self.cft_per_piece,
            "totalCft": self.total_cft,
            "pricePerPiece": self.price_per_piece,
            "amount": self.amount,
        })


@dataclass
class Sale:
    id: str
    invoice_number: str
    customer: Customer
    items: list[SaleItem]
    subtotal: float
    gst_enabled: bool
    gst_amount: float
    transport_enabled: bool
    transport_amount: float
    grand_total: float
    payment_mode: str
    payment_method: str
    amount_paid: float
    advance_amount: float
    balance_due: float
    status: str
    created_at: datetime
    gst_rate: int | None = None
    cgst_amount: float | None = None
    sgst_amount: float | None = None
    igst_amount: float | None = None
    is_inter_state: bool = False
    place_of_supply: str | None = None
    vehicle_number: str | None = None
    expected_payment_date: datetime | None = None

    @classmethod
    def from_dict(cls, raw: dict) -> "Sale":
        if not isinstance(raw, dict):
            raise DataCorruptionError("sale record must be an object")
        items_raw = _get(raw, "items", True)
        if not isinstance(items_raw, list):
            raise DataCorruptionError("field 'items' must be an array")
        gst_rate = _read_int(raw, "gstRate", required=False)
        if gst_rate is not None and gst_rate not in GST_RATES:
            raise DataCorruptionError(f"field 'gstRate' has unknown value {gst_rate!r}")
        return cls(
            id=_read_str(raw, "id"),
            invoice_number=_read_str(raw, "invoiceNumber"),
            customer=Customer.from_dict(_get(raw, "customer", True)),
            items=[SaleItem.from_dict(item) for item in items_raw],
            subtotal=_read_number(raw, "subtotal"),
            gst_enabled=_read_bool(raw, "gstEnabled"),
            gst_amount=_read_number(raw, "gstAmount"),
            gst_rate=gst_rate,
            cgst_amount=_read_number(raw, "cgstAmount", required=False),
            sgst_amount=_read_number(raw, "sgstAmount", required=False),
            igst_amount=_read_number(raw, "igstAmount", required=False),
            is_inter_state=_read_bool(raw, "isInterState", required=False),
            place_of_supply=_read_str(raw, "placeOfSupply", required=False),
            transport_enabled=_read_bool(raw, "transportEnabled"),
            transport_amount=_read_number(raw, "transportAmount"),
            vehicle_number=_read_str(raw, "vehicleNumber", required=False),
            grand_total=_read_number(raw, "grandTotal"),
            payment_mode=_read_enum(raw, "paymentMode", PAYMENT_MODES),
            payment_method=_read_enum(raw, "paymentMethod", PAYMENT_METHODS),
            amount_paid=_read_number(raw, "amountPaid"),
            advance_amount=_read_number(raw, "advanceAmount"),
            balance_due=_read_number(raw, "balanceDue"),
            expected_payment_date=_read_datetime(raw, "expectedPaymentDate", required=False),
            status=_read_enum(raw, "status", SALE_STATUSES),
            created_at=_read_datetime(raw, "createdAt"),
        )

    def to_dict(self) -> dict:
        return _drop_none({
            "id": self.id,
            "invoiceNumber": self.invoice_number,
            "customer": self.customer.to_dict(),
            "items": [item.to_dict() for item in self.items],
            "subtotal": self.subtotal,
            "gstEnabled": self.gst_enabled,
            "gstAmount": self.gst_amount,
            "gstRate": self.gst_rate,
            "cgstAmount": self.cgst_amount,
            "sgstAmount": self.sgst_amount,
            "igstAmount": self.igst_amount,
            "isInterState": self.is_inter_state,
            "placeOfSupply": self.place_of_supply,
            "transportEnabled": self.transport_enabled,
            "transportAmount": self.transport_amount,
            "vehicleNumber": self.vehicle_number,
            "grandTotal": self.grand_total,
            "paymentMode": self.payment_mode,
            "paymentMethod": self.payment_method,
            "amountPaid": self.amount_paid,
            "advanceAmount": self.advance_amount,
            "balanceDue": self.balance_due,
            "expectedPaymentDate": _write_dt(self.expected_payment_date),
            "status": self.status,
            "createdAt": _write_dt(self.created_at),
        })


# =============================================================================
# QUOTATION
# =============================================================================

@dataclass
class Quotation:
    id: str
    quotation_name: str
    customer_name: str
    date_given: datetime
    status: str
    created_at: datetime
    date_order_received: datetime | None = None

    @classmethod
    def from_dict(cls, raw: dict) -> "Quotation":
        if not isinstance(raw, dict):
            raise DataCorruptionError("quotation record must be an object")
        return cls(
            id=_read_str(raw, "id"),
            quotation_name=_read_str(raw, "quotationName"),
            customer_name=_read_str(raw, "customerName"),
            date_given=_read_datetime(raw, "dateGiven"),
            date_order_received=_read_datetime(raw, "dateOrderReceived", required=False),
            status=_read_enum(raw, "status", QUOTATION_STATUSES),
            created_at=_read_datetime(raw, "createdAt"),
        )

    def to_dict(self) -> dict:
        return _drop_none({
            "id": self.id,
            "quotationName": self.quotation_name,
            "customerName": self.customer_name,
            "dateGiven": _write_dt(self.date_given),
            "dateOrderReceived": _write_dt(self.date_order_received),
            "status": self.status,
            "createdAt": _write_dt(self.created_at),
        })

