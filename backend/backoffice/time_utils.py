# Overview: UTC clock and ISO-8601 helpers shared by records, routes and the session client.

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Read a stored or submitted timestamp as UTC-naive.

    Covers record timestamps ("...123456Z"), session expiries from the auth
    API ("...000Z") and bare dates such as an expected payment date
    ("2026-03-01", midnight UTC). Blank input is None; offsets are
    converted to UTC.
    """
    if value is None:
        return None
    s = value.strip()
    if not s:
        return None

    if s.endswith("Z"):
        s = s[:-1] + "+00:00"

    dt = datetime.fromisoformat(s)
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def to_utc_z(dt: Optional[datetime], timespec: str = "seconds") -> Optional[str]:
    """
    ISO-8601 with a trailing 'Z'; naive values are UTC.

    The record store writes timespec="microseconds" so timestamps read back
    unchanged; the auth API uses "milliseconds".
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat(timespec=timespec).replace("+00:00", "Z")
