# Overview: Key-value JSON persistence for the record collections.

"""
Record Store

WHY: Products, sales and quotations are small collections that are always
read and written whole. Each collection is one JSON array stored under a
fixed key. The store itself only knows keys and text; RecordCollection
adds the JSON encoding and the schema check on read.

ATOMICITY: A sale touches two collections (products and sales) plus the
invoice counters. Every write made inside `store.transaction()` is
committed together or not at all.
"""

from __future__ import annotations

import copy
import json
from contextlib import contextmanager
from typing import Callable, Generic, Iterator, Protocol, TypeVar

from flask import current_app

from ..extensions import db
from ..models import KvBlob
from ..validation import DataCorruptionError
from backoffice.time_utils import utcnow
from .concurrency import begin_write_lock


PRODUCTS_KEY = "saisiddha_products"
SALES_KEY = "saisiddha_sales"
QUOTATIONS_KEY = "saisiddha_quotations"
INVOICE_SEQUENCES_KEY = "saisiddha_invoice_sequences"

ALL_KEYS = (PRODUCTS_KEY, SALES_KEY, QUOTATIONS_KEY, INVOICE_SEQUENCES_KEY)


class BlobStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...

    def transaction(self): ...


class MemoryBlobStore:
    """Dict-backed store. Transactions snapshot the dict and restore it on error."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})
        self._depth = 0

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._data)

    @contextmanager
    def transaction(self) -> Iterator["MemoryBlobStore"]:
        if self._depth:
            yield self
            return
        snapshot = copy.deepcopy(self._data)
        self._depth += 1
        try:
            yield self
        except Exception:
            self._data = snapshot
            raise
        finally:
            self._depth -= 1


class SqlBlobStore:
    """
    Store backed by the kv_blobs table.

    Outside a transaction each write commits on its own. Inside
    `transaction()` writes are only flushed; the outermost block commits
    (or rolls back on any exception).
    """

    _DEPTH = "blob_store_txn_depth"

    def _depth(self) -> int:
        # Tracked on the scoped session so each request/thread has its own
        return db.session.info.get(self._DEPTH, 0)

    def _set_depth(self, value: int) -> None:
        db.session.info[self._DEPTH] = value

    def get(self, key: str) -> str | None:
        blob = db.session.get(KvBlob, key)
        return blob.value if blob else None

    def set(self, key: str, value: str) -> None:
        blob = db.session.get(KvBlob, key)
        if blob is None:
            blob = KvBlob(key=key, value=value, updated_at=utcnow())
            db.session.add(blob)
        else:
            blob.value = value
            blob.updated_at = utcnow()
        self._finish_write()

    def delete(self, key: str) -> None:
        db.session.query(KvBlob).filter_by(key=key).delete()
        self._finish_write()

    def keys(self) -> list[str]:
        return [row.key for row in db.session.query(KvBlob.key).order_by(KvBlob.key).all()]

    def _finish_write(self) -> None:
        if self._depth():
            db.session.flush()
        else:
            db.session.commit()

    @contextmanager
    def transaction(self) -> Iterator["SqlBlobStore"]:
        if self._depth():
            yield self
            return
        begin_write_lock()
        self._set_depth(1)
        try:
            yield self
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
        finally:
            self._set_depth(0)


def current_blob_store() -> BlobStore:
    """The store configured on the running app."""
    return current_app.extensions["blob_store"]


T = TypeVar("T")


class RecordCollection(Generic[T]):
    """
    One JSON array under one key, decoded through a schema class.

    `schema` needs `from_dict(dict) -> T` and instances need `to_dict()`.
    """

    def __init__(self, store: BlobStore, key: str, schema: Callable[..., T]):
        self.store = store
        self.key = key
        self.schema = schema

    def load(self) -> list[T]:
        raw = self.store.get(self.key)
        if raw is None or raw == "":
            return []
        try:
            items = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise DataCorruptionError(f"invalid JSON ({exc.msg})", key=self.key)
        if not isinstance(items, list):
            raise DataCorruptionError("stored value must be a JSON array", key=self.key)

        records = []
        for index, item in enumerate(items):
            try:
                records.append(self.schema.from_dict(item))
            except DataCorruptionError as exc:
                raise DataCorruptionError(str(exc), key=self.key, index=index)
        return records

    def save(self, records: list[T]) -> None:
        payload = [record.to_dict() for record in records]
        self.store.set(self.key, json.dumps(payload, ensure_ascii=False))

    def clear(self) -> None:
        self.store.delete(self.key)


class SequenceTable:
    """Per-month invoice counters stored as {"YYMM": lastValue}."""

    def __init__(self, store: BlobStore, key: str = INVOICE_SEQUENCES_KEY):
        self.store = store
        self.key = key

    def load(self) -> dict[str, int]:
        raw = self.store.get(self.key)
        if raw is None or raw == "":
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise DataCorruptionError(f"invalid JSON ({exc.msg})", key=self.key)
        if not isinstance(data, dict):
            raise DataCorruptionError("stored value must be a JSON object", key=self.key)
        for period, value in data.items():
            if not (isinstance(period, str) and len(period) == 4 and period.isdigit()):
                raise DataCorruptionError(f"bad period {period!r}", key=self.key)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise DataCorruptionError(f"bad counter for {period}", key=self.key)
        return data

    def save(self, sequences: dict[str, int]) -> None:
        self.store.set(self.key, json.dumps(sequences, sort_keys=True))

    def clear(self) -> None:
        self.store.delete(self.key)
