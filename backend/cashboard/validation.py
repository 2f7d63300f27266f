from __future__ import annotations

import math
from datetime import date
from typing import Any

from cashboard.reconciliation import PAYMENT_METHODS
from cashboard.time_utils import parse_business_date


# Largest amount accepted for a single entry, in either currency
MAX_AMOUNT = 999_999_999.99


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate closure)."""


def require_fields(payload: dict | None, *fields: str) -> dict:
    """Return the payload, raising ValidationError naming missing fields."""
    if not isinstance(payload, dict):
        raise ValidationError("JSON object body required")
    missing = [f for f in fields if payload.get(f) in (None, "")]
    if missing:
        raise ValidationError(f"{', '.join(missing)} required")
    return payload


def coerce_amount(value: Any, field: str, *, allow_zero: bool = True) -> float:
    """
    Normalize a monetary input to float.

    Accepts ints, floats and numeric strings ("12.50", "12,50").
    Rejects booleans, NaN/inf, negatives and absurd magnitudes.
    """
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")

    if isinstance(value, str):
        stripped = value.strip().replace(",", ".")
        if not stripped:
            raise ValidationError(f"{field} must be a number")
        try:
            number = float(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be a number")
    elif isinstance(value, (int, float)):
        number = float(value)
    else:
        raise ValidationError(f"{field} must be a number")

    if math.isnan(number) or math.isinf(number):
        raise ValidationError(f"{field} must be a finite number")
    if number < 0:
        raise ValidationError(f"{field} cannot be negative")
    if number == 0 and not allow_zero:
        raise ValidationError(f"{field} must be greater than zero")
    if number > MAX_AMOUNT:
        raise ValidationError(f"{field} exceeds maximum allowed amount")
    return number


def coerce_optional_amount(value: Any, field: str) -> float:
    """Declared buckets may be left blank: blank means 0."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return 0.0
    return coerce_amount(value, field)


def coerce_rate(value: Any, field: str = "bcv_rate") -> float:
    return coerce_amount(value, field, allow_zero=False)


def coerce_payment_method(value: Any, field: str = "payment_method") -> str:
    if value not in PAYMENT_METHODS:
        raise ValidationError(f"{field} must be one of: {', '.join(PAYMENT_METHODS)}")
    return value


def coerce_business_date(value: Any, field: str = "date") -> date:
    try:
        return parse_business_date(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a date formatted as YYYY-MM-DD")


def coerce_optional_int(value: Any, field: str) -> int | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    raise ValidationError(f"{field} must be an integer")


def clean_text(value: Any, field: str, *, max_length: int = 255, required: bool = False) -> str | None:
    if value is None:
        if required:
            raise ValidationError(f"{field} required")
        return None
    text = str(value).strip()
    if required and not text:
        raise ValidationError(f"{field} required")
    if len(text) > max_length:
        raise ValidationError(f"{field} must be at most {max_length} characters")
    return text
