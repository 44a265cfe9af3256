from __future__ import annotations
from datetime import datetime
from backoffice.time_utils import parse_iso_datetime

from typing import Any


# Maximum money value accepted on any amount field: Rs 99,99,99,999.99
MAX_AMOUNT = 999_999_999.99


class ValidationError(ValueError):
    """400-level input problem."""


class DataCorruptionError(RuntimeError):
    """A stored record does not match its schema."""

    def __init__(self, message: str, key: str | None = None, index: int | None = None):
        location = ""
        if key is not None:
            location = f"{key}" + (f"[{index}]" if index is not None else "")
            message = f"{location}: {message}"
        super().__init__(message)
        self.key = key
        self.index = index


def require_payload(payload: Any) -> dict:
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    return payload


def coerce_str(field: str, value: Any, *, required: bool = False, max_length: int | None = None) -> str | None:
    if value is None:
        if required:
            raise ValidationError(f"{field} is required")
        return None
    if not isinstance(value, (str, int, float)) or isinstance(value, bool):
        raise ValidationError(f"{field} must be a string")
    text = str(value).strip()
    if required and not text:
        raise ValidationError(f"{field} cannot be blank")
    if max_length is not None and len(text) > max_length:
        raise ValidationError(f"{field} exceeds max length {max_length}")
    return text


def coerce_int(field: str, value: Any, *, minimum: int | None = None) -> int:
    # Strict: reject floats with fractions, scientific notation and bools
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field} must be an integer")
    if isinstance(value, int):
        result = value
    elif isinstance(value, float):
        if not value.is_integer():
            raise ValidationError(f"{field} must be an integer, not a decimal")
        result = int(value)
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped or "e" in stripped.lower() or "." in stripped:
            raise ValidationError(f"{field} must be a plain integer")
        try:
            result = int(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be an integer")
    else:
        raise ValidationError(f"{field} must be an integer")

    if minimum is not None and result < minimum:
        raise ValidationError(f"{field} must be >= {minimum}")
    return result


def coerce_number(field: str, value: Any, *, minimum: float | None = None, positive: bool = False) -> float:
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field} must be a number")
    if isinstance(value, (int, float)):
        result = float(value)
    elif isinstance(value, str):
        try:
            result = float(value.strip())
        except ValueError:
            raise ValidationError(f"{field} must be a number")
    else:
        raise ValidationError(f"{field} must be a number")

    if result != result or result in (float("inf"), float("-inf")):
        raise ValidationError(f"{field} must be a finite number")
    if positive and result <= 0:
        raise ValidationError(f"{field} must be > 0")
    if minimum is not None and result < minimum:
        raise ValidationError(f"{field} must be >= {minimum}")
    if result > MAX_AMOUNT:
        raise ValidationError(f"{field} is too large")
    return result


def coerce_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    # fallback: truthiness
    return bool(value)


def coerce_datetime(field: str, value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            return parse_iso_datetime(value)
        except ValueError:
            raise ValidationError(f"{field} must be an ISO-8601 datetime")
    raise ValidationError(f"{field} must be a datetime")


def coerce_choice(field: str, value: Any, choices) -> str:
    if value not in choices:
        raise ValidationError(f"{field} must be one of: {', '.join(str(c) for c in choices)}")
    return value
