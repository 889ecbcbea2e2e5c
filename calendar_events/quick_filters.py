"""Quick date filters such as "Today" or "Weekend"."""
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Callable, List, Optional, Tuple

from zoneinfo import ZoneInfo

from calendar_events.models import DateRange

# (today, min_date, max_date) -> (first_day, last_day)
DayRangeFn = Callable[[date, date, date], Tuple[date, date]]


@dataclass(frozen=True)
class QuickFilter:
    """A named preset for the date filter."""
    id: str
    label: str
    calculate: DayRangeFn


def _past(today: date, min_date: date, max_date: date) -> Tuple[date, date]:
    return min_date, max(min_date, today - timedelta(days=1))


def _future(today: date, min_date: date, max_date: date) -> Tuple[date, date]:
    return today, max_date


def _today(today: date, min_date: date, max_date: date) -> Tuple[date, date]:
    return today, today


def _next_days(days: int) -> DayRangeFn:
    def calculate(today: date, min_date: date, max_date: date) -> Tuple[date, date]:
        return today, min(today + timedelta(days=days), max_date)
    return calculate


def _weekend(today: date, min_date: date, max_date: date) -> Tuple[date, date]:
    # Friday and Saturday count as already in the weekend
    weekday = today.weekday()
    days_to_friday = 0 if weekday in (4, 5) else (4 - weekday) % 7
    friday = min(today + timedelta(days=days_to_friday), max_date)
    return friday, min(friday + timedelta(days=2), max_date)


QUICK_FILTERS: List[QuickFilter] = [
    QuickFilter(id='past', label='Past', calculate=_past),
    QuickFilter(id='future', label='Future', calculate=_future),
    QuickFilter(id='today', label='Today', calculate=_today),
    QuickFilter(id='next3days', label='Next 3 days', calculate=_next_days(3)),
    QuickFilter(id='next7days', label='Next 7 days', calculate=_next_days(7)),
    QuickFilter(id='weekend', label='Weekend', calculate=_weekend),
]


def get_quick_filter(filter_id: str) -> Optional[QuickFilter]:
    for quick_filter in QUICK_FILTERS:
        if quick_filter.id == filter_id:
            return quick_filter
    return None


def quick_filter_range(
    filter_id: str,
    today: date,
    min_date: date,
    max_date: date,
    tz_name: str = 'UTC'
) -> Optional[DateRange]:
    """
    Calculate the date range for a quick filter.

    Args:
        filter_id: Quick filter id, e.g. "weekend"
        today: Current local date
        min_date: First selectable day
        max_date: Last selectable day
        tz_name: IANA timezone the days are in

    Returns:
        DateRange from the first day's midnight to the end of the last day,
        or None for an unknown filter id
    """
    quick_filter = get_quick_filter(filter_id)
    if quick_filter is None:
        return None

    first_day, last_day = quick_filter.calculate(today, min_date, max_date)
    first_day = max(min_date, min(first_day, max_date))
    last_day = max(first_day, min(last_day, max_date))

    tz = ZoneInfo(tz_name)
    return DateRange(
        start=datetime.combine(first_day, time.min, tzinfo=tz),
        end=datetime.combine(last_day, time.max, tzinfo=tz)
    )
