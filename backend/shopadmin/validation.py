# Overview: Input coercion and validation helpers shared by routes and services.

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

from flask import request

from .errors import ValidationError


# Maximum price: 9,999,999.99 (999,999,999 cents)
# This prevents database overflow issues and nonsensical prices
MAX_PRICE_CENTS = 999_999_999

# Pragmatic syntactic check: something@something.tld, no whitespace
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def get_json_body() -> dict:
    """Return the request JSON object or raise ValidationError."""
    data = request.get_json(silent=True)
    if data is None:
        if request.data:
            raise ValidationError("Request body must be valid JSON")
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def require_string(data: dict, field: str, *, min_length: int = 1, max_length: int | None = None) -> str:
    value = data.get(field)
    if not isinstance(value, str) or len(value.strip()) < min_length:
        if min_length > 1:
            raise ValidationError(f"{field} must be at least {min_length} characters", details={"field": field})
        raise ValidationError(f"{field} is required", details={"field": field})
    value = value.strip()
    if max_length is not None and len(value) > max_length:
        raise ValidationError(f"{field} must be at most {max_length} characters", details={"field": field})
    return value


def optional_string(data: dict, field: str, *, max_length: int | None = None) -> str | None:
    value = data.get(field)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string", details={"field": field})
    value = value.strip()
    if max_length is not None and len(value) > max_length:
        raise ValidationError(f"{field} must be at most {max_length} characters", details={"field": field})
    return value or None


def is_valid_email(value: Any) -> bool:
    return isinstance(value, str) and bool(EMAIL_RE.match(value.strip()))


def normalize_email(value: str) -> str:
    return value.strip().lower()


def coerce_int(value: Any, field: str) -> int:
    """
    Strict integer coercion.

    Accepts ints and plain digit strings. Rejects bools, floats, decimals and
    scientific notation so "2.5" items or "1e3" stock never sneak through.
    """
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field} must be an integer", details={"field": field})
        # Reject scientific notation (e.g., "1e15", "1E10")
        if "e" in stripped.lower():
            raise ValidationError(f"{field} must be a plain integer (scientific notation not allowed)", details={"field": field})
        # Reject decimal points (e.g., "12.5")
        if "." in stripped:
            raise ValidationError(f"{field} must be an integer (no decimals)", details={"field": field})
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be an integer", details={"field": field})
    if isinstance(value, float):
        if value.is_integer():
            return int(value)
        raise ValidationError(f"{field} must be an integer, not a decimal", details={"field": field})
    raise ValidationError(f"{field} must be an integer", details={"field": field})


def coerce_positive_int(value: Any, field: str) -> int:
    result = coerce_int(value, field)
    if result <= 0:
        raise ValidationError(f"{field} must be a positive integer", details={"field": field})
    return result


def coerce_non_negative_int(value: Any, field: str) -> int:
    result = coerce_int(value, field)
    if result < 0:
        raise ValidationError(f"{field} must be a non-negative integer", details={"field": field})
    return result


def parse_money(value: Any, field: str, *, allow_zero: bool = False) -> int:
    """
    Parse a major-unit amount (e.g. 100 or "99.50") into integer cents.

    Money is stored in cents everywhere; APIs speak major units.
    """
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field} must be a number", details={"field": field})
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a number", details={"field": field})
    if not amount.is_finite():
        raise ValidationError(f"{field} must be a number", details={"field": field})

    cents = int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    if cents < 0 or (cents == 0 and not allow_zero):
        qualifier = "non-negative" if allow_zero else "positive"
        raise ValidationError(f"{field} must be {qualifier}", details={"field": field})
    if cents > MAX_PRICE_CENTS:
        raise ValidationError(f"{field} is too large", details={"field": field})
    return cents


def cents_to_amount(cents: int | None) -> float | None:
    if cents is None:
        return None
    return round(cents / 100, 2)


def parse_pagination(args, *, default_limit: int = 20, max_limit: int = 100) -> tuple[int, int]:
    page = coerce_positive_int(args.get("page", 1), "page")
    limit = coerce_positive_int(args.get("limit", default_limit), "limit")
    return page, min(limit, max_limit)
