"""
Date range presets and comparison window utilities.

Windows are half-open: the start is local midnight of the first day and the
end is midnight after the last day, so a window always covers whole calendar
days and the comparison window can end exactly where the current one starts.
"""
from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Callable, Dict, Optional, Sequence, Union

from ..models.analytics import DateWindow, ResolvedRange
from ..services.error_handler import InvalidRangeError


# Preset keys
PRESETS = {
    "today": "Today",
    "yesterday": "Yesterday",
    "last7days": "Last 7 Days",
    "last30days": "Last 30 Days",
    "last3months": "Last 3 Months",
    "last6months": "Last 6 Months",
    "lastyear": "Last Year",
    "custom": "Custom Range",
}

# Trailing presets, in calendar days including today
TRAILING_DAYS = {
    "last7days": 7,
    "last30days": 30,
    "last3months": 90,
    "last6months": 180,
    "lastyear": 365,
}

RangeInput = Union[str, Sequence[Union[date, datetime]]]


def _midnight(d: date) -> datetime:
    return datetime.combine(d, time.min)


def _as_date(value: Union[date, datetime]) -> date:
    return value.date() if isinstance(value, datetime) else value


def _days(first: date, last: date) -> DateWindow:
    """Window covering the calendar days ``first`` through ``last``."""
    return DateWindow(start=_midnight(first), end=_midnight(last + timedelta(days=1)))


def resolve_range(
    range_key: RangeInput,
    today: Optional[date] = None,
    custom_start: Optional[Union[date, datetime]] = None,
    custom_end: Optional[Union[date, datetime]] = None,
) -> ResolvedRange:
    """
    Resolve a preset key, or an explicit ``(start, end)`` pair, to the current
    window and the immediately preceding window of the same length.

    Raises:
        InvalidRangeError: unknown preset, missing custom bounds, or a custom
            start after its end.
    """
    if today is None:
        today = date.today()

    if not isinstance(range_key, str):
        if len(range_key) != 2:
            raise InvalidRangeError("A custom range needs exactly a start and an end")
        custom_start, custom_end = range_key
        range_key = "custom"

    key = (range_key or "").strip().lower()

    if key == "today":
        current = _days(today, today)
    elif key == "yesterday":
        y = today - timedelta(days=1)
        current = _days(y, y)
    elif key in TRAILING_DAYS:
        current = _days(today - timedelta(days=TRAILING_DAYS[key] - 1), today)
    elif key == "custom":
        if custom_start is None or custom_end is None:
            raise InvalidRangeError(
                "Custom range requires both start and end",
                details={"start": custom_start, "end": custom_end},
            )
        start, end = _as_date(custom_start), _as_date(custom_end)
        if start > end:
            raise InvalidRangeError(
                f"Range start {start.isoformat()} is after end {end.isoformat()}",
                details={"start": start.isoformat(), "end": end.isoformat()},
            )
        current = _days(start, end)
    else:
        raise InvalidRangeError(f"Unknown date range preset: {range_key}", details={"preset": range_key})

    return ResolvedRange(current=current, previous=current.preceding(), preset=key)


class DateRangeResolver:
    """Resolves ranges against an injectable clock."""

    def __init__(self, today_provider: Optional[Callable[[], date]] = None):
        self._today = today_provider or date.today

    def resolve(
        self,
        range_key: RangeInput,
        custom_start: Optional[Union[date, datetime]] = None,
        custom_end: Optional[Union[date, datetime]] = None,
    ) -> ResolvedRange:
        return resolve_range(range_key, self._today(), custom_start, custom_end)


def format_date_range(window: DateWindow) -> str:
    """Format a window for display using its first and last calendar day."""
    start_date = window.start.date()
    end_date = (window.end - timedelta(microseconds=1)).date()
    if start_date.year == end_date.year:
        if start_date.month == end_date.month:
            return f"{start_date.strftime('%b %d')} - {end_date.strftime('%d, %Y')}"
        return f"{start_date.strftime('%b %d')} - {end_date.strftime('%b %d, %Y')}"
    return f"{start_date.strftime('%b %d, %Y')} - {end_date.strftime('%b %d, %Y')}"


def preset_options() -> Dict[str, str]:
    """Return mapping of preset key -> human label."""
    return PRESETS.copy()
