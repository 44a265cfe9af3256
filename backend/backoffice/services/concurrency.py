# Overview: Service-layer helpers for locking and retrying write transactions.

from __future__ import annotations

import time

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db
from ..models import WriteLock


RECORDS_LOCK = "records"
ADMIN_SESSIONS_LOCK = "admin_sessions"


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE; use begin_write_lock() there.
    """
    return query.with_for_update()


def begin_write_lock(name: str = RECORDS_LOCK) -> None:
    """
    Serialize writers before they read the state they are about to rewrite.

    SQLite: BEGIN IMMEDIATE takes the database write lock, so a second
    writer waits (or fails with OperationalError, which run_with_retry
    handles).

    Other databases: the named write_locks row is created on first use and
    then locked FOR UPDATE until the transaction ends. The row exists even
    when the data it guards does not, so first writers queue too.
    """
    if db.engine.dialect.name == "sqlite":
        db.session.execute(text("BEGIN IMMEDIATE"))
        return

    if db.session.get(WriteLock, name) is None:
        nested = db.session.begin_nested()
        try:
            db.session.add(WriteLock(name=name))
            nested.commit()
        except IntegrityError:
            # Another writer created the row first; locking it below waits for them
            nested.rollback()
    lock_for_update(db.session.query(WriteLock).filter_by(name=name)).one()


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, locks) and StaleDataError
    (optimistic locking conflicts).
    """
    last_exc = None
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            last_exc = exc
            if attempt >= attempts - 1:
                raise
            time.sleep(backoff_base * (2 ** attempt))
    if last_exc:
        raise last_exc
