from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from sqlalchemy import Integer, Numeric, String, Text
from sqlalchemy.orm import DeclarativeMeta

from .money_utils import round2, to_decimal


# Largest amount a Numeric(12, 2) column holds
MAX_MONEY = Decimal("9999999999.99")


class ValidationError(ValueError):
    """400-level input problem."""


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


def _coerce_integer(key: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{key} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if value.is_integer():
            return int(value)
        raise ValidationError(f"{key} must be an integer, not a decimal")
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped or "e" in stripped.lower() or "." in stripped:
            raise ValidationError(f"{key} must be an integer")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{key} must be an integer")
    raise ValidationError(f"{key} must be an integer")


def _coerce_decimal(key: str, value: Any) -> Decimal:
    if isinstance(value, bool) or not isinstance(value, (int, float, str, Decimal)):
        raise ValidationError(f"{key} must be a number")
    try:
        amount = to_decimal(value)
    except ValueError:
        raise ValidationError(f"{key} must be a number")
    if not amount.is_finite():
        raise ValidationError(f"{key} must be a finite number")
    return amount


def _coerce_money(key: str, value: Any) -> Decimal:
    return round2(_coerce_decimal(key, value))


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    if isinstance(coltype, Integer):
        return _coerce_integer(col.key, value)

    if isinstance(coltype, Numeric):
        return _coerce_money(col.key, value)

    if isinstance(coltype, (String, Text)):
        return str(value).strip()

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

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if f not in payload)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    for key in ("price", "cost_price"):
        if key in patch and patch[key] is not None:
            if patch[key] < 0:
                raise ValidationError(f"{key} must be >= 0")
            if patch[key] > MAX_MONEY:
                raise ValidationError(f"{key} cannot exceed {MAX_MONEY}")
    for key in ("stock", "low_stock_threshold"):
        if key in patch and patch[key] is not None and patch[key] < 0:
            raise ValidationError(f"{key} must be >= 0")


# =============================================================================
# FIELD HELPERS (request bodies that do not map 1:1 onto a model)
# =============================================================================

def require_int(value: Any, field: str) -> int:
    if value is None:
        raise ValidationError(f"Missing or invalid {field}")
    return _coerce_integer(field, value)


def require_positive_int(value: Any, field: str) -> int:
    num = require_int(value, field)
    if num <= 0:
        raise ValidationError(f"{field} must be > 0")
    return num


def require_string(value: Any, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"Missing or invalid {field}")
    return value.strip()


def optional_string(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    return stripped or None


def require_one_of(value: Any, field: str, allowed) -> str:
    if not isinstance(value, str) or value.strip() not in allowed:
        raise ValidationError(f"{field} must be one of {list(allowed)}")
    return value.strip()


def optional_non_negative_amount(value: Any, field: str) -> Decimal | None:
    if value is None or value == "":
        return None
    amount = _coerce_decimal(field, value)
    if amount < 0:
        raise ValidationError(f"{field} must be >= 0")
    return amount


def parse_order_items(raw: Any) -> list:
    """
    Turn the JSON ``items`` array into ProductLine / ComboLine values.

    Each entry is {"item_type": "product", "product_id", "quantity"} or
    {"item_type": "combo", "combo_id", "quantity"}.
    """
    from .services.requirements_service import ComboLine, ProductLine

    # Missing items is the same as an empty order
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ValidationError("items must be a list")

    lines = []
    for idx, row in enumerate(raw):
        if not isinstance(row, dict):
            raise ValidationError(f"items[{idx}] must be an object")
        item_type = require_one_of(row.get("item_type"), f"items[{idx}].item_type", ("product", "combo"))
        quantity = require_positive_int(row.get("quantity"), f"items[{idx}].quantity")
        if item_type == "product":
            lines.append(ProductLine(
                product_id=require_int(row.get("product_id"), f"items[{idx}].product_id"),
                quantity=quantity,
            ))
        else:
            lines.append(ComboLine(
                combo_id=require_int(row.get("combo_id"), f"items[{idx}].combo_id"),
                quantity=quantity,
            ))
    return lines


def parse_combo_ingredients(raw: Any) -> list:
    """Turn [{"product_id", "quantity"}, ...] into Ingredient values (order kept)."""
    from .services.requirements_service import Ingredient

    if not isinstance(raw, list) or not raw:
        raise ValidationError("Combo must include at least 1 ingredient")

    ingredients = []
    for idx, row in enumerate(raw):
        if not isinstance(row, dict):
            raise ValidationError(f"items[{idx}] must be an object")
        ingredients.append(Ingredient(
            product_id=require_int(row.get("product_id"), f"items[{idx}].product_id"),
            quantity=require_positive_int(row.get("quantity"), f"items[{idx}].quantity"),
        ))
    return ingredients
