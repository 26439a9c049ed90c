"""
Unit tests for date range presets and comparison windows
"""

from datetime import date, datetime, timedelta

import pytest

from marketplace_analytics.models.analytics import DateWindow
from marketplace_analytics.services.error_handler import InvalidRangeError
from marketplace_analytics.utils.date_ranges import (
    PRESETS,
    DateRangeResolver,
    format_date_range,
    preset_options,
    resolve_range,
)

TODAY = date(2024, 3, 1)


class TestPresets:
    """Each preset resolves to whole days ending today"""

    @pytest.mark.parametrize("preset", [key for key in PRESETS if key != "custom"])
    def test_previous_window_is_adjacent_and_equal_length(self, preset):
        resolved = resolve_range(preset, TODAY)
        assert resolved.previous.end == resolved.current.start
        assert resolved.previous.duration == resolved.current.duration
        assert resolved.current.start < resolved.current.end

    def test_today(self):
        resolved = resolve_range("today", TODAY)
        assert resolved.current == DateWindow(datetime(2024, 3, 1), datetime(2024, 3, 2))
        assert resolved.previous == DateWindow(datetime(2024, 2, 29), datetime(2024, 3, 1))

    def test_yesterday(self):
        resolved = resolve_range("yesterday", TODAY)
        assert resolved.current == DateWindow(datetime(2024, 2, 29), datetime(2024, 3, 1))

    def test_last_7_days_includes_today(self):
        resolved = resolve_range("last7days", TODAY)
        assert resolved.current.start == datetime(2024, 2, 24)
        assert resolved.current.end == datetime(2024, 3, 2)
        assert resolved.current.duration == timedelta(days=7)
        assert resolved.previous.start == datetime(2024, 2, 17)

    def test_preset_key_is_case_insensitive(self):
        assert resolve_range("Last30Days", TODAY).current == resolve_range("last30days", TODAY).current

    def test_unknown_preset_raises(self):
        with pytest.raises(InvalidRangeError) as exc_info:
            resolve_range("fortnight", TODAY)
        assert exc_info.value.details == {"preset": "fortnight"}

    def test_preset_options_is_a_copy(self):
        options = preset_options()
        options["today"] = "changed"
        assert PRESETS["today"] == "Today"


class TestCustomRange:
    """Custom ranges include their end day in full"""

    def test_custom_pair(self):
        resolved = resolve_range((date(2024, 1, 1), date(2024, 1, 31)), TODAY)
        assert resolved.preset == "custom"
        assert resolved.current == DateWindow(datetime(2024, 1, 1), datetime(2024, 2, 1))
        assert resolved.previous == DateWindow(datetime(2023, 12, 1), datetime(2024, 1, 1))

    def test_single_day(self):
        resolved = resolve_range("custom", TODAY, date(2024, 1, 10), date(2024, 1, 10))
        assert resolved.current.duration == timedelta(days=1)
        assert resolved.previous.end == resolved.current.start

    def test_datetime_bounds_are_truncated_to_days(self):
        resolved = resolve_range((datetime(2024, 1, 1, 15, 30), datetime(2024, 1, 2, 1, 0)), TODAY)
        assert resolved.current == DateWindow(datetime(2024, 1, 1), datetime(2024, 1, 3))

    def test_start_after_end_raises(self):
        with pytest.raises(InvalidRangeError):
            resolve_range((date(2024, 2, 1), date(2024, 1, 1)), TODAY)

    def test_missing_bound_raises(self):
        with pytest.raises(InvalidRangeError):
            resolve_range("custom", TODAY, custom_start=date(2024, 1, 1))

    def test_wrong_arity_raises(self):
        with pytest.raises(InvalidRangeError):
            resolve_range((date(2024, 1, 1),), TODAY)


class TestDateWindow:
    """Half-open containment"""

    def test_contains_start_but_not_end(self):
        window = DateWindow(datetime(2024, 1, 1), datetime(2024, 1, 2))
        assert window.contains(datetime(2024, 1, 1))
        assert window.contains(datetime(2024, 1, 1, 23, 59, 59))
        assert not window.contains(datetime(2024, 1, 2))

    def test_missing_timestamp_is_outside(self):
        window = DateWindow(datetime(2024, 1, 1), datetime(2024, 1, 2))
        assert not window.contains(None)

    def test_resolver_uses_injected_clock(self):
        resolver = DateRangeResolver(lambda: TODAY)
        assert resolver.resolve("today").current.start == datetime(2024, 3, 1)


class TestFormatDateRange:

    def test_same_month(self):
        window = DateWindow(datetime(2024, 1, 1), datetime(2024, 1, 8))
        assert format_date_range(window) == "Jan 01 - 07, 2024"

    def test_across_months(self):
        window = DateWindow(datetime(2024, 1, 25), datetime(2024, 2, 4))
        assert format_date_range(window) == "Jan 25 - Feb 03, 2024"

    def test_across_years(self):
        window = DateWindow(datetime(2023, 12, 25), datetime(2024, 1, 2))
        assert format_date_range(window) == "Dec 25, 2023 - Jan 01, 2024"
