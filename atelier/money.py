"""
Money Utilities - Decimal operations for cart amounts.

Product API and browser storage payloads may carry numbers as strings; every
amount goes through `to_number` before arithmetic.
"""
import math
import re
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Any, Union

# Default precision for displayed amounts (2 decimal places)
MONEY_PRECISION = Decimal("0.01")

ZERO = Decimal("0")

# Leading numeric prefix, the way a browser parseFloat reads "12.50 USD"
_NUMBER_PREFIX = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")

Numeric = Union[str, int, float, Decimal]

# Largest decimal exponent a double can hold; beyond it parseFloat gives Infinity
MAX_EXPONENT = 308


def _bounded(value: Decimal, default: Decimal) -> Decimal:
    """Value if finite and within double range, otherwise the default."""
    if not value.is_finite() or value.adjusted() > MAX_EXPONENT:
        return default
    return value


def to_number(value: Any, fallback: Numeric = 0) -> Decimal:
    """
    Coerce a loosely typed numeric value to Decimal.

    Args:
        value: Number or numeric string from an API or storage payload
        fallback: Returned when value is None, empty, non-numeric, NaN,
            infinite or too large for a double

    Returns:
        Decimal value, or the fallback as Decimal
    """
    default = to_decimal(fallback)

    if value is None or isinstance(value, bool):
        return default

    if isinstance(value, Decimal):
        return _bounded(value, default)

    if isinstance(value, int):
        return _bounded(Decimal(value), default)

    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return default
        return Decimal(str(value))

    text = str(value).strip()
    if not text:
        return default

    match = _NUMBER_PREFIX.match(text)
    if match is None:
        return default
    try:
        return _bounded(Decimal(match.group(0)), default)
    except InvalidOperation:
        return default


def to_decimal(value: Union[Numeric, None]) -> Decimal:
    """Convert a clean numeric value to Decimal, or Decimal("0") if None/invalid."""
    if value is None:
        return ZERO

    if isinstance(value, Decimal):
        return value

    try:
        if isinstance(value, float):
            return Decimal(str(value))
        return Decimal(value)
    except (InvalidOperation, ValueError, TypeError):
        return ZERO


def round_money(value: Numeric) -> Decimal:
    """Round an amount to cents. Amounts too long to hold cents are returned as is."""
    amount = to_decimal(value)
    try:
        return amount.quantize(MONEY_PRECISION, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        return amount


def to_float(value: Numeric) -> float:
    """
    Convert Decimal to float for JSON serialization or external APIs.

    Use only at storage and analytics boundaries, not for internal calculations.
    """
    return float(to_decimal(value))


def format_amount(value: Numeric, thousands: bool = False) -> str:
    """Format an amount with two decimals, optionally with comma thousands separators."""
    rounded = round_money(value)
    return f"{rounded:,.2f}" if thousands else f"{rounded:.2f}"
