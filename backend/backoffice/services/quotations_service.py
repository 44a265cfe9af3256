# Overview: Service-layer operations for quotations; encapsulates business logic and storage work.

"""
Quotations Service

Status is derived: a quotation is Received exactly when it has a
dateOrderReceived, otherwise Pending. Expired exists in stored data only;
nothing here produces it.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from ..schemas import Quotation
from ..validation import ValidationError, coerce_datetime, coerce_str, require_payload
from backoffice.time_utils import utcnow
from .blob_store import QUOTATIONS_KEY, BlobStore, RecordCollection, current_blob_store


def quotations_collection(store: BlobStore | None = None) -> RecordCollection[Quotation]:
    return RecordCollection(store or current_blob_store(), QUOTATIONS_KEY, Quotation)


def _status_for(date_order_received: datetime | None) -> str:
    return "Received" if date_order_received else "Pending"


def _required_datetime(field: str, value) -> datetime:
    parsed = coerce_datetime(field, value)
    if parsed is None:
        raise ValidationError(f"{field} is required")
    return parsed


def list_quotations(search: str | None = None, store: BlobStore | None = None) -> list[Quotation]:
    """All quotations, newest first, optionally filtered by name or customer."""
    quotations = quotations_collection(store).load()
    if search:
        needle = search.strip().lower()
        quotations = [
            q for q in quotations
            if needle in q.quotation_name.lower() or needle in q.customer_name.lower()
        ]
    return sorted(quotations, key=lambda q: q.created_at, reverse=True)


def get_quotation(quotation_id: str, store: BlobStore | None = None) -> Quotation | None:
    for quotation in quotations_collection(store).load():
        if quotation.id == quotation_id:
            return quotation
    return None


def create_quotation(data: dict, store: BlobStore | None = None) -> Quotation:
    data = require_payload(data)
    received = coerce_datetime("dateOrderReceived", data.get("dateOrderReceived"))
    quotation = Quotation(
        id=str(uuid.uuid4()),
        quotation_name=coerce_str("quotationName", data.get("quotationName"), required=True, max_length=200),
        customer_name=coerce_str("customerName", data.get("customerName"), required=True, max_length=200),
        date_given=_required_datetime("dateGiven", data.get("dateGiven")),
        date_order_received=received,
        status=_status_for(received),
        created_at=utcnow(),
    )

    collection = quotations_collection(store)
    with collection.store.transaction():
        quotations = collection.load()
        quotations.append(quotation)
        collection.save(quotations)
    return quotation


def update_quotation(quotation_id: str, patch: dict, store: BlobStore | None = None) -> Quotation | None:
    """
    Partial update. A dateOrderReceived key in the patch sets (or, when
    null, clears) the received date and the status follows it.
    """
    patch = require_payload(patch)
    changes: dict = {}
    if "quotationName" in patch:
        changes["quotation_name"] = coerce_str("quotationName", patch["quotationName"], required=True, max_length=200)
    if "customerName" in patch:
        changes["customer_name"] = coerce_str("customerName", patch["customerName"], required=True, max_length=200)
    if "dateGiven" in patch:
        changes["date_given"] = _required_datetime("dateGiven", patch["dateGiven"])
    if "dateOrderReceived" in patch:
        changes["date_order_received"] = coerce_datetime("dateOrderReceived", patch["dateOrderReceived"])

    collection = quotations_collection(store)
    with collection.store.transaction():
        quotations = collection.load()
        quotation = next((q for q in quotations if q.id == quotation_id), None)
        if quotation is None:
            return None

        for attr, value in changes.items():
            setattr(quotation, attr, value)
        if "date_order_received" in changes:
            quotation.status = _status_for(quotation.date_order_received)

        collection.save(quotations)
    return quotation


def mark_quotation_received(
    quotation_id: str,
    when: datetime | None = None,
    store: BlobStore | None = None,
) -> Quotation | None:
    received = when or utcnow()
    collection = quotations_collection(store)
    with collection.store.transaction():
        quotations = collection.load()
        quotation = next((q for q in quotations if q.id == quotation_id), None)
        if quotation is None:
            return None
        quotation.date_order_received = received
        quotation.status = "Received"
        collection.save(quotations)
    return quotation


def delete_quotation(quotation_id: str, store: BlobStore | None = None) -> bool:
    collection = quotations_collection(store)
    with collection.store.transaction():
        quotations = collection.load()
        remaining = [q for q in quotations if q.id != quotation_id]
        if len(remaining) == len(quotations):
            return False
        collection.save(remaining)
    return True


def reset_quotations(store: BlobStore | None = None) -> None:
    quotations_collection(store).clear()
