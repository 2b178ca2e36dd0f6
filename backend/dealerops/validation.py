from __future__ import annotations
from datetime import date, datetime
from dealerops.time_utils import parse_iso_datetime, parse_iso_date

from dataclasses import dataclass
from typing import Any

from sqlalchemy import Boolean, Integer, Numeric, String, Text, DateTime, Date, JSON
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import DeclarativeMeta


VIN_LENGTH = 17

# Maximum money value: $99,999,999.99 (fits NUMERIC(12, 2))
MAX_MONEY = 99_999_999.99


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate role name)."""


class NotFoundError(LookupError):
    """404-level missing record."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    - aliases: alternate client keys (camelCase) mapped onto column keys
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore
    aliases: dict[str, str] | None = None


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def parse_money(value: Any, field: str = "amount") -> float | None:
    """
    Accepts numbers and currency-looking strings ("$1,234.50").
    Returns None for None / "". Raises ValidationError for anything else.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    if isinstance(value, (int, float)):
        amount = float(value)
    else:
        cleaned = str(value).strip().replace("$", "").replace(",", "")
        if not cleaned:
            return None
        try:
            amount = float(cleaned)
        except ValueError:
            raise ValidationError(f"{field} must be a number")
    if amount != amount or amount in (float("inf"), float("-inf")):
        raise ValidationError(f"{field} must be a number")
    if abs(amount) > MAX_MONEY:
        raise ValidationError(f"{field} cannot exceed {MAX_MONEY:,.2f}")
    return round(amount, 2)


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    # Booleans
    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            return value.strip().lower() in {"1", "true", "yes", "on"}
        return bool(value)

    # Integers - strict validation to reject floats and scientific notation
    if isinstance(coltype, Integer):
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str):
            stripped = value.strip().replace(",", "")
            if not stripped:
                return None if col.nullable else _raise(f"{col.key} must be an integer")
            if 'e' in stripped.lower() or '.' in stripped:
                raise ValidationError(f"{col.key} must be an integer")
            try:
                return int(stripped)
            except ValueError:
                raise ValidationError(f"{col.key} must be an integer")
        if isinstance(value, float) and value.is_integer():
            return int(value)
        raise ValidationError(f"{col.key} must be an integer")

    # Money / decimals
    if isinstance(coltype, Numeric):
        return parse_money(value, col.key)

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

    # Calendar dates
    if isinstance(coltype, Date):
        if isinstance(value, date):
            return value if not isinstance(value, datetime) else value.date()
        try:
            return parse_iso_date(value)
        except ValueError:
            raise ValidationError(f"{col.key} must be a date (YYYY-MM-DD)")

    # JSON columns take lists / dicts as-is
    if isinstance(coltype, JSON):
        if not isinstance(value, (list, dict)):
            raise ValidationError(f"{col.key} must be a list or object")
        return value

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    # Default: leave as-is
    return value


def _raise(message: str):
    raise ValidationError(message)


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

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)

    Keys that are not writable are ignored rather than rejected: the
    dashboard posts whole records back, including id and timestamps.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    aliases = policy.aliases or {}
    normalized: dict = {}
    for k, v in payload.items():
        key = aliases.get(k, k)
        if key in normalized and k != key:
            # snake_case wins over its camelCase alias
            continue
        normalized[key] = v

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(
            f for f in required
            if normalized.get(f) is None or (isinstance(normalized.get(f), str) and not normalized[f].strip())
        )
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    patch: dict = {}

    for k, raw in normalized.items():
        if k not in policy.writable_fields or k not in cols:
            continue
        col = cols[k]

        # NULL handling
        if raw is None or (isinstance(raw, str) and raw.strip() == "" and not isinstance(col.type, (String, Text))):
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        # Blank string check for non-nullable text fields
        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        # Empty strings on nullable text columns are stored as NULL
        if isinstance(val, str) and val == "" and col.nullable:
            val = None

        # Max length check for String(n)
        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def enforce_rules_vehicle(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    vin = patch.get("vin")
    if vin is not None:
        vin = vin.strip().upper()
        if len(vin) != VIN_LENGTH:
            raise ValidationError("VIN must be 17 characters")
        patch["vin"] = vin

    if patch.get("year") is not None:
        max_year = date.today().year + 1
        if patch["year"] < 1900 or patch["year"] > max_year:
            raise ValidationError("Valid year is required")

    for money_field in ("bought_price", "buy_fee", "sale_invoice", "other_charges", "total_vehicle_cost"):
        if patch.get(money_field) is not None and patch[money_field] < 0:
            raise ValidationError(f"{money_field} must be >= 0")

    if patch.get("sale_invoice_status") is not None:
        status = patch["sale_invoice_status"].upper()
        if status not in {"PAID", "UNPAID"}:
            raise ValidationError("sale_invoice_status must be PAID or UNPAID")
        patch["sale_invoice_status"] = status


def describe_integrity_error(exc: IntegrityError) -> tuple[str, str | None]:
    """
    Map a database integrity error onto (friendly message, database code).

    Codes follow the PostgreSQL SQLSTATE values; SQLite errors are
    classified from their message text.
    """
    orig = getattr(exc, "orig", None)
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    text = str(orig or exc).lower()

    if code == "23505" or "unique" in text or "duplicate" in text:
        return "A record with this value already exists", code or "23505"
    if code == "23503" or "foreign key" in text:
        return "Referenced record does not exist", code or "23503"
    if code == "23514" or "check constraint" in text:
        return "Value violates a constraint", code or "23514"
    if code == "23502" or "not null" in text:
        return "A required value is missing", code or "23502"
    return "Database constraint violated", code
