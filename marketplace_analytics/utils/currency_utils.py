"""
Display formatters for dashboard and report values.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Union

Number = Union[int, float, Decimal]

DEFAULT_CURRENCY_SYMBOL = "₱"


def _to_decimal(value: Number) -> Decimal:
    # str() keeps float inputs like 0.125 from picking up binary noise
    return value if isinstance(value, Decimal) else Decimal(str(value))


def format_currency(amount: Number, symbol: str = DEFAULT_CURRENCY_SYMBOL) -> str:
    """Format amount with currency symbol, thousands separators and 2 decimals."""
    if amount is None:
        return "N/A"

    rounded = _to_decimal(amount).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    if rounded < 0:
        return f"-{symbol}{abs(rounded):,.2f}"
    return f"{symbol}{rounded:,.2f}"


def format_percentage(percentage: Number, show_sign: bool = True) -> str:
    """Format percentage with one decimal; positive values get a leading +."""
    rounded = _to_decimal(percentage).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
    if rounded == 0:
        return "0.0%"
    if show_sign and rounded > 0:
        return f"+{rounded}%"
    return f"{rounded}%"


def format_number(value: Number) -> str:
    """Format a count with thousands separators."""
    if value is None:
        return "0"
    rounded = _to_decimal(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return f"{rounded:,}"


def format_compact_number(value: Number) -> str:
    """Format large numbers with K/M suffixes, e.g. 1.5K or 2.3M."""
    number = _to_decimal(value)
    if abs(number) >= 1_000_000:
        return f"{(number / 1_000_000).quantize(Decimal('0.1'), rounding=ROUND_HALF_UP)}M"
    if abs(number) >= 1_000:
        return f"{(number / 1_000).quantize(Decimal('0.1'), rounding=ROUND_HALF_UP)}K"
    return format_number(number)


def format_points(points: Number) -> str:
    """Points are always shown as whole numbers, rounded down."""
    return f"{int(_to_decimal(points)):,}"
