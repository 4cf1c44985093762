from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy import Boolean, Date, DateTime, Integer, Numeric, String, Text
from sqlalchemy.orm import DeclarativeMeta

from stockroom.time_utils import parse_filter_date, parse_iso_datetime


# Largest decimal that fits Numeric(12, 2)
MAX_AMOUNT = Decimal("9999999999.99")

# Signed 64-bit range of an INTEGER column
MAX_INTEGER = 2**63 - 1


def parse_record_id(value: Any) -> int | None:
    """
    ASCII-digit text (or a non-negative int) that fits an INTEGER column,
    else None. str.isdigit() alone accepts "²" and other Unicode digits.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        number = value
    elif isinstance(value, str) and value.isascii() and value.isdigit():
        number = int(value)
    else:
        return None
    if number < 0 or number > MAX_INTEGER:
        return None
    return number


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate part number)."""


class NotFoundError(LookupError):
    """404-level missing record."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - fields: public (camelCase) payload key -> model column key
    - required_on_create: public keys required for POST
    - labels: human readable names used in "X is required" messages
    Payload keys outside `fields` are ignored so spreadsheet rows and
    echoed view rows can be posted back as-is.
    """
    fields: dict[str, str]
    required_on_create: frozenset[str] = frozenset()
    labels: dict[str, str] = field(default_factory=dict)

    def label(self, key: str) -> str:
        return self.labels.get(key, key)


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _check_integer_range(number: int, label: str) -> int:
    if abs(number) > MAX_INTEGER:
        raise ValidationError(f"{label} is too large")
    return number


def _coerce_value(col, value: Any, label: str):
    coltype = col.type

    if value is None:
        return None

    # Integers - strict validation to reject floats and scientific notation
    if isinstance(coltype, Integer):
        if isinstance(value, int) and not isinstance(value, bool):
            return _check_integer_range(value, label)
        if isinstance(value, float) and value.is_integer():
            # Spreadsheet cells arrive as floats (12.0)
            return _check_integer_range(int(value), label)
        if isinstance(value, str):
            stripped = value.strip()
            if 'e' in stripped.lower():
                raise ValidationError(f"{label} must be a plain integer")
            if '.' in stripped:
                raise ValidationError(f"{label} must be an integer (no decimals)")
            try:
                number = int(stripped)
            except ValueError:
                raise ValidationError(f"{label} must be an integer")
            return _check_integer_range(number, label)
        raise ValidationError(f"{label} must be an integer")

    if isinstance(coltype, Numeric):
        if isinstance(value, bool):
            raise ValidationError(f"{label} must be a number")
        try:
            amount = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValidationError(f"{label} must be a number")
        if not amount.is_finite():
            raise ValidationError(f"{label} must be a number")
        if abs(amount) > MAX_AMOUNT:
            raise ValidationError(f"{label} is too large")
        return amount.quantize(Decimal("0.01"))

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        return bool(value)

    # DateTime is a subclass check target before Date
    if isinstance(coltype, DateTime):
        if isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                dt = parse_iso_datetime(value)
            except ValueError:
                raise ValidationError(f"{label} must be an ISO-8601 datetime")
            if dt is None:
                raise ValidationError(f"{label} must be an ISO-8601 datetime")
            return dt
        raise ValidationError(f"{label} must be a datetime")

    if isinstance(coltype, Date):
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        if isinstance(value, str):
            parsed = parse_filter_date(value[:10])
            if parsed is None:
                raise ValidationError(f"{label} must be a date (yyyy-MM-dd)")
            return parsed
        raise ValidationError(f"{label} must be a date")

    if isinstance(coltype, (String, Text)):
        text = str(value).strip()
        if not text and col.nullable:
            return None
        return text

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
    - the policy's public-name mapping
    - required_on_create (if partial=False)
    Returns a cleaned patch dict keyed by model column names.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    if not partial:
        for key in sorted(policy.required_on_create):
            if _is_blank(payload.get(key)):
                raise ValidationError(f"{policy.label(key)} is required")

    cols = _columns_by_key(model)
    patch: dict = {}

    for key, raw in payload.items():
        column_key = policy.fields.get(key)
        if column_key is None:
            continue
        col = cols[column_key]
        label = policy.label(key)

        if _is_blank(raw) and key in policy.required_on_create:
            raise ValidationError(f"{label} is required")

        if raw is None:
            if not col.nullable and col.default is None and col.server_default is None:
                raise ValidationError(f"{label} cannot be null")
            if col.nullable:
                patch[column_key] = None
            continue

        val = _coerce_value(col, raw, label)

        if isinstance(col.type, (String, Text)) and not col.nullable and val == "":
            raise ValidationError(f"{label} cannot be blank")

        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{label} exceeds max length {col.type.length}")

        patch[column_key] = val

    return patch


def require_non_negative(patch: dict, *column_keys: str, labels: dict | None = None) -> None:
    """Reject negative quantities and amounts after coercion."""
    labels = labels or {}
    for key in column_keys:
        value = patch.get(key)
        if value is not None and value < 0:
            raise ValidationError(f"{labels.get(key, key)} must be >= 0")


def parse_id_list(raw: str | None) -> list[int]:
    """Parse "1,2,3" into [1, 2, 3]; raises ValidationError on junk."""
    if not raw:
        return []
    ids = []
    for part in raw.split(","):
        part = part.strip()
        if not part:
            continue
        record_id = parse_record_id(part)
        if record_id is None:
            raise ValidationError(f"Invalid id: {part}")
        ids.append(record_id)
    return ids
