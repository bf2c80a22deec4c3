from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

ZERO = Decimal("0.00")
CENT = Decimal("0.01")


def to_decimal(value) -> Decimal:
    """Coerce int/float/str/Decimal to Decimal without float artifacts."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError("boolean is not a monetary amount")
    if isinstance(value, float):
        return Decimal(repr(value))
    try:
        return Decimal(str(value).strip())
    except InvalidOperation:
        raise ValueError(f"invalid monetary amount: {value!r}")


def round2(value) -> Decimal:
    """Round half-up to 2 decimal places."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def money_sum(values) -> Decimal:
    total = Decimal("0")
    for v in values:
        total += to_decimal(v)
    return total


def as_float(value) -> float | None:
    """JSON-friendly rendering of a stored Numeric column."""
    if value is None:
        return None
    return float(round2(value))
