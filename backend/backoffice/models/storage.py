from __future__ import annotations

from ..extensions import db
from backoffice.time_utils import to_utc_z


class KvBlob(db.Model):
    """
    One opaque JSON document per key.

    WHY: Products, sales and quotations are persisted as whole JSON arrays
    under fixed keys. The table only knows keys and text; record schemas
    live in backoffice.schemas.
    """
    __tablename__ = "kv_blobs"

    key = db.Column(db.String(128), primary_key=True)
    value = db.Column(db.Text, nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<KvBlob key={self.key!r} bytes={len(self.value or '')}>"

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "size": len(self.value or ""),
            "updated_at": to_utc_z(self.updated_at),
        }


class WriteLock(db.Model):
    """
    Named row taken with SELECT ... FOR UPDATE to serialize writers.

    WHY: Record collections are rewritten whole, so two writers that read
    the same blob would lose one update. Databases with row locks queue
    writers on this row; SQLite uses BEGIN IMMEDIATE instead.
    """
    __tablename__ = "write_locks"

    name = db.Column(db.String(64), primary_key=True)

    def __repr__(self) -> str:
        return f"<WriteLock {self.name!r}>"
