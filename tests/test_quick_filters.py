"""Unit tests for quick date filters."""
from datetime import date, datetime, time

import pytest
from zoneinfo import ZoneInfo

from calendar_events.quick_filters import QUICK_FILTERS, get_quick_filter, quick_filter_range

MIN_DATE = date(2025, 6, 1)
MAX_DATE = date(2025, 6, 30)
# Wednesday
TODAY = date(2025, 6, 11)


def day_span(date_range):
    return date_range.start.date(), date_range.end.date()


class TestQuickFilters:
    """Test cases for quick_filter_range."""

    def test_all_filters_registered(self):
        assert [f.id for f in QUICK_FILTERS] == ['past', 'future', 'today', 'next3days', 'next7days', 'weekend']
        assert get_quick_filter('today').label == 'Today'

    def test_unknown_filter(self):
        assert quick_filter_range('tomorrow', TODAY, MIN_DATE, MAX_DATE) is None

    @pytest.mark.parametrize('filter_id,expected', [
        ('past', (date(2025, 6, 1), date(2025, 6, 10))),
        ('future', (date(2025, 6, 11), date(2025, 6, 30))),
        ('today', (date(2025, 6, 11), date(2025, 6, 11))),
        ('next3days', (date(2025, 6, 11), date(2025, 6, 14))),
        ('next7days', (date(2025, 6, 11), date(2025, 6, 18))),
        ('weekend', (date(2025, 6, 13), date(2025, 6, 15))),
    ])
    def test_ranges_from_midweek(self, filter_id, expected):
        assert day_span(quick_filter_range(filter_id, TODAY, MIN_DATE, MAX_DATE)) == expected

    @pytest.mark.parametrize('today,expected', [
        (date(2025, 6, 13), (date(2025, 6, 13), date(2025, 6, 15))),  # Friday
        (date(2025, 6, 14), (date(2025, 6, 14), date(2025, 6, 16))),  # Saturday
        (date(2025, 6, 15), (date(2025, 6, 20), date(2025, 6, 22))),  # Sunday
    ])
    def test_weekend_near_the_weekend(self, today, expected):
        assert day_span(quick_filter_range('weekend', today, MIN_DATE, MAX_DATE)) == expected

    def test_ranges_clipped_to_max_date(self):
        result = quick_filter_range('next7days', date(2025, 6, 28), MIN_DATE, MAX_DATE)

        assert day_span(result) == (date(2025, 6, 28), date(2025, 6, 30))

    def test_past_on_first_day(self):
        result = quick_filter_range('past', MIN_DATE, MIN_DATE, MAX_DATE)

        assert day_span(result) == (MIN_DATE, MIN_DATE)

    def test_full_days_in_timezone(self):
        result = quick_filter_range('today', TODAY, MIN_DATE, MAX_DATE, tz_name='America/Los_Angeles')

        tz = ZoneInfo('America/Los_Angeles')
        assert result.start == datetime.combine(TODAY, time.min, tzinfo=tz)
        assert result.end == datetime.combine(TODAY, time.max, tzinfo=tz)
