"""Amount parsing and formatting for Indonesian Rupiah"""

import math
from typing import Any, Optional


def num(value: Any) -> float:
    """Coerce a backend numeric (number, numeric string, None) to float, 0 when invalid"""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return 0.0
    return parsed if math.isfinite(parsed) else 0.0


def parse_number_loose(value: Any) -> Optional[float]:
    """
    Parse a user-typed amount.

    Dots are thousands separators and the first comma is the decimal mark,
    so "1.500.000" -> 1500000 and "12,5" -> 12.5.
    """
    if value is None:
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value) if math.isfinite(value) else None
    text = str(value).strip()
    if not text:
        return None
    cleaned = text.replace(".", "").replace(",", ".", 1)
    try:
        parsed = float(cleaned)
    except ValueError:
        return None
    return parsed if math.isfinite(parsed) else None


def format_idr(amount: Any) -> str:
    """Format an amount as Rupiah without fraction digits, e.g. Rp 1.500.000"""
    value = round(num(amount))
    sign = "-" if value < 0 else ""
    grouped = f"{abs(value):,}".replace(",", ".")
    return f"{sign}Rp {grouped}"
