from __future__ import annotations
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from rentara.time_utils import parse_iso_date, parse_iso_datetime

from dataclasses import dataclass
from typing import Any

from sqlalchemy import Boolean, Integer, String, Text, DateTime, Date
from sqlalchemy.orm import DeclarativeMeta


# Maximum amount: RM 9,999,999.99 (999,999,999 cents)
# This prevents database overflow issues and nonsensical amounts
MAX_AMOUNT_CENTS = 999_999_999


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate slug)."""


class NotFoundError(LookupError):
    """404-level missing row."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def to_cents(value: Any, field: str = "amount") -> int:
    """
    Convert a ringgit amount (number or string, max 2 decimals) to integer cents.

    "1,500.50" -> 150050, 1500 -> 150000. Rejects negatives and booleans.
    """
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field} is required")
    if isinstance(value, float):
        value = repr(value)
    s = str(value).replace(",", "").strip()
    if s.upper().startswith("RM"):
        s = s[2:].strip()
    try:
        amount = Decimal(s)
    except InvalidOperation:
        raise ValidationError(f"{field} must be a valid number")
    if not amount.is_finite():
        raise ValidationError(f"{field} must be a valid number")
    if amount < 0:
        raise ValidationError(f"{field} cannot be negative")
    if amount * 100 > MAX_AMOUNT_CENTS:
        raise ValidationError(f"{field} cannot exceed RM {MAX_AMOUNT_CENTS / 100:,.2f}")
    if amount != amount.quantize(Decimal("0.01")):
        raise ValidationError(f"{field} cannot have more than 2 decimal places")
    return int(amount * 100)


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    # Integers - strict validation to reject floats and scientific notation
    if isinstance(coltype, Integer):
        # Already an int (but not bool which is a subclass of int)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        # String input - must be plain digits (with optional leading minus)
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped:
                raise ValidationError(f"{col.key} must be an integer")
            if 'e' in stripped.lower() or '.' in stripped:
                raise ValidationError(f"{col.key} must be a plain integer")
            try:
                return int(stripped)
            except ValueError:
                raise ValidationError(f"{col.key} must be an integer")
        raise ValidationError(f"{col.key} must be an integer")

    # Booleans
    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            return value.strip().lower() in ("1", "true", "yes", "on")
        return bool(value)

    # Datetimes (accept ISO-8601 strings; normalize to UTC)
    if isinstance(coltype, DateTime):
        if isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                dt = parse_iso_datetime(value)
            except ValueError:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            if dt is None:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            return dt
        raise ValidationError(f"{col.key} must be a datetime")

    # Calendar dates ("YYYY-MM-DD")
    if isinstance(coltype, Date):
        if isinstance(value, (date, str)):
            try:
                d = parse_iso_date(value)
            except ValueError:
                raise ValidationError(f"{col.key} must be a date (YYYY-MM-DD)")
            if d is None:
                raise ValidationError(f"{col.key} must be a date (YYYY-MM-DD)")
            return d
        raise ValidationError(f"{col.key} must be a date (YYYY-MM-DD)")

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    # Default: leave as-is
    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    Money columns end in "_cents"; clients may send the ringgit amount under
    the bare name (e.g. "rent_amount": "1500.00") and it is converted here.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    cols = _columns_by_key(model)

    normalized: dict = {}
    for k, raw in payload.items():
        cents_key = f"{k}_cents"
        if k not in cols and cents_key in cols and cents_key in policy.writable_fields:
            normalized[cents_key] = None if raw is None else to_cents(raw, k)
        else:
            normalized[k] = raw

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if f not in normalized)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    # Reject unknown / non-writable fields
    for k in normalized.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in normalized.items():
        col = cols[k]

        # NULL handling
        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        # Blank string check for non-nullable text fields
        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        # Max length check for String(n)
        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        if k.endswith("_cents") and isinstance(val, int):
            if val < 0:
                raise ValidationError(f"{k} must be >= 0")
            if val > MAX_AMOUNT_CENTS:
                raise ValidationError(f"{k} cannot exceed {MAX_AMOUNT_CENTS}")

        patch[k] = val

    return patch


def enforce_choice(patch: dict, field: str, allowed) -> None:
    """Reject values outside a fixed vocabulary (statuses, types, roles)."""
    if field in patch and patch[field] is not None and patch[field] not in allowed:
        raise ValidationError(f"{field} must be one of: {', '.join(sorted(allowed))}")


def enforce_date_order(start: date | None, end: date | None, *, start_field: str, end_field: str) -> None:
    if start and end and end < start:
        raise ValidationError(f"{end_field} cannot be before {start_field}")
