# Overview: Request payload coercion helpers shared by routes and services.

from __future__ import annotations

from datetime import datetime
from typing import Any

from .errors import InvalidPayload
from .time_utils import parse_iso_datetime


# Maximum amount: 9,999,999.99 (999,999,999 cents)
# This prevents database overflow issues and nonsensical prices
MAX_AMOUNT_CENTS = 999_999_999


def coerce_int(value: Any, field: str) -> int:
    """
    Strict integer coercion: rejects floats, booleans, decimals and
    scientific notation so money never passes through float arithmetic.
    """
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    # String input - must be plain digits (with optional leading minus)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise InvalidPayload(f"{field} must be an integer")
        # Reject scientific notation (e.g., "1e15", "1E10")
        if "e" in stripped.lower():
            raise InvalidPayload(f"{field} must be a plain integer (scientific notation not allowed)")
        # Reject decimal points (e.g., "12.5")
        if "." in stripped:
            raise InvalidPayload(f"{field} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise InvalidPayload(f"{field} must be an integer")
    # Reject floats explicitly
    if isinstance(value, float):
        raise InvalidPayload(f"{field} must be an integer, not a decimal")
    raise InvalidPayload(f"{field} must be an integer")


def get_int(
    data: dict,
    field: str,
    *,
    required: bool = False,
    default: int | None = None,
    minimum: int | None = None,
) -> int | None:
    value = data.get(field)
    if value is None or value == "":
        if required:
            raise InvalidPayload(f"{field} is required")
        return default
    result = coerce_int(value, field)
    if minimum is not None and result < minimum:
        raise InvalidPayload(f"{field} must be at least {minimum}")
    return result


def get_cents(
    data: dict,
    field: str,
    *,
    required: bool = False,
    default: int | None = None,
) -> int | None:
    """Non-negative integer cents bounded by MAX_AMOUNT_CENTS."""
    value = get_int(data, field, required=required, default=default, minimum=0)
    if value is not None and value > MAX_AMOUNT_CENTS:
        raise InvalidPayload(f"{field} must not exceed {MAX_AMOUNT_CENTS}")
    return value


def get_str(data: dict, field: str, *, max_length: int | None = None) -> str | None:
    value = data.get(field)
    if value is None:
        return None
    value = str(value).strip()
    if not value:
        return None
    if max_length is not None and len(value) > max_length:
        raise InvalidPayload(f"{field} must be at most {max_length} characters")
    return value


def get_datetime(data: dict, field: str) -> datetime | None:
    value = data.get(field)
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    try:
        return parse_iso_datetime(str(value))
    except ValueError:
        raise InvalidPayload(f"{field} must be an ISO-8601 date or datetime")
