"""
Helper utilities
"""
import math
from typing import Optional


def safe_divide(numerator: float, denominator: float, default: float = 0.0) -> float:
    """Safely divide two numbers"""
    try:
        return numerator / denominator if denominator != 0 else default
    except (TypeError, ZeroDivisionError):
        return default


def finite_or_zero(value: Optional[float]) -> float:
    """NaN, inf and None collapse to 0"""
    if value is None or not math.isfinite(value):
        return 0.0
    return value


def round_half_up(value: Optional[float]) -> int:
    """Round to the nearest integer with halves going up (2.5 -> 3, -2.5 -> -2)"""
    if value is None or not math.isfinite(value):
        return 0
    return int(math.floor(value + 0.5))


def round_ratio(value: Optional[float], digits: int = 2) -> float:
    """Round a ratio for display, mapping None/NaN/inf to 0"""
    if value is None or not math.isfinite(value):
        return 0.0
    return round(value, digits)


def group_thousands(amount: float) -> str:
    """Format an integer amount with space-grouped thousands: 1234567 -> '1 234 567'"""
    return f"{round_half_up(amount):,}".replace(",", " ")


def format_currency(amount: float, currency: str = "FCFA") -> str:
    """Format amount as a rounded currency string"""
    return f"{group_thousands(amount)} {currency}"
