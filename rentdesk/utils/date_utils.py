"""Billing period utilities

Periods are first-of-month ISO dates (``YYYY-MM-01``); forms send months as
``YYYY-MM``.
"""

from datetime import date, datetime, timezone
from typing import Optional, Tuple

from rentdesk.domain.exceptions import ValidationError


def current_period_iso(today: Optional[date] = None) -> str:
    """Return the current month as an ISO first-of-month date string"""
    today = today or date.today()
    return f"{today.year:04d}-{today.month:02d}-01"


def month_to_iso_first(value: Optional[str], today: Optional[date] = None) -> str:
    """Normalize a YYYY-MM (or YYYY-MM-DD) input to an ISO first-of-month date"""
    if not value:
        return current_period_iso(today)
    parts = value.strip().split("-")
    if len(parts) < 2 or not parts[0] or not parts[1]:
        return current_period_iso(today)
    return f"{parts[0]}-{parts[1].zfill(2)}-01"


def iso_to_month(value: Optional[str]) -> str:
    """Convert an ISO date string to YYYY-MM"""
    if not value:
        return ""
    return value[:7]


def _shift_month(iso_first: str, delta: int) -> str:
    year, month = int(iso_first[:4]), int(iso_first[5:7])
    index = year * 12 + (month - 1) + delta
    return f"{index // 12:04d}-{index % 12 + 1:02d}-01"


def prev_month_iso(iso_first: str) -> str:
    return _shift_month(iso_first, -1)


def next_month_iso(iso_first: str) -> str:
    return _shift_month(iso_first, 1)


def month_bounds_utc(month: Optional[str]) -> Tuple[datetime, datetime]:
    """
    Half-open UTC interval covering a calendar month.

    Raises:
        ValidationError: month is empty or not a valid YYYY-MM value
    """
    if not month:
        raise ValidationError("Periode harus dipilih.")
    iso = month_to_iso_first(month)
    try:
        start = datetime.strptime(iso, "%Y-%m-%d").replace(tzinfo=timezone.utc)
    except ValueError:
        raise ValidationError("Periode tidak valid.")
    end_iso = next_month_iso(iso)
    end = datetime.strptime(end_iso, "%Y-%m-%d").replace(tzinfo=timezone.utc)
    return start, end


def normalize_range(range_from: str, range_to: str) -> Tuple[str, str]:
    """Clamp the end of a period range so it never precedes the start"""
    if range_from > range_to:
        return range_from, range_from
    return range_from, range_to
