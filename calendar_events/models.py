"""Data models for calendar events and event filtering."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Tuple, Union

from geometry.models import MapBounds

UNRESOLVED_QUERY = 'unresolved'


@dataclass(frozen=True)
class ResolvedLocation:
    """Location text that was geocoded to coordinates."""
    lat: float
    lng: float
    formatted_address: str = ''
    types: Tuple[str, ...] = ()
    original_location: str = ''


@dataclass(frozen=True)
class UnresolvedLocation:
    """Location text that could not be geocoded."""
    original_location: str = ''


Location = Union[ResolvedLocation, UnresolvedLocation]


@dataclass(frozen=True)
class Event:
    """Geocoded calendar event, read-only once ingested."""
    id: str
    name: str
    start: datetime
    end: datetime
    location: str = ''
    description: str = ''
    original_event_url: Optional[str] = None
    description_urls: Tuple[str, ...] = ()
    resolved_location: Optional[Location] = None

    @property
    def has_resolved_location(self) -> bool:
        return isinstance(self.resolved_location, ResolvedLocation)


@dataclass(frozen=True)
class DateRange:
    """Inclusive date range for the date filter."""
    start: datetime
    end: datetime


@dataclass
class FilterConfig:
    """
    Current value of every filter dimension.

    A dimension set to None (or False for unknown_locations_only) is
    inactive and lets every event through.
    """
    date_range: Optional[DateRange] = None
    search_query: Optional[str] = None
    map_bounds: Optional[MapBounds] = None
    unknown_locations_only: bool = False

    def active_dimensions(self) -> List[str]:
        """Names of the dimensions that currently filter events."""
        active = []
        if self.date_range is not None:
            active.append('date')
        if self.search_query is not None:
            active.append('search')
        if self.map_bounds is not None:
            active.append('map')
        if self.unknown_locations_only:
            active.append('unknown_location')
        return active


@dataclass
class FilterStats:
    """Counts behind the filter chips."""
    map_filtered_count: int
    search_filtered_count: int
    date_filtered_count: int
    unknown_locations_filtered_count: int
    total_filtered_count: int
    total_shown_count: int
    total_events_count: int


@dataclass
class FilterResult:
    """
    Result of filtering the full event list.

    Each filtered_out_by_* bucket is computed against all events using only
    its own filter, so buckets can overlap. ``shown`` holds the events
    passing every active filter and ``filtered`` the rest.
    """
    shown: List[Event] = field(default_factory=list)
    filtered_out_by_date: List[Event] = field(default_factory=list)
    filtered_out_by_search: List[Event] = field(default_factory=list)
    filtered_out_by_map: List[Event] = field(default_factory=list)
    filtered_out_by_unknown_location: List[Event] = field(default_factory=list)
    filtered: List[Event] = field(default_factory=list)
    all_events: List[Event] = field(default_factory=list)

    def stats(self) -> FilterStats:
        return FilterStats(
            map_filtered_count=len(self.filtered_out_by_map),
            search_filtered_count=len(self.filtered_out_by_search),
            date_filtered_count=len(self.filtered_out_by_date),
            unknown_locations_filtered_count=len(self.filtered_out_by_unknown_location),
            total_filtered_count=len(self.filtered),
            total_shown_count=len(self.shown),
            total_events_count=len(self.all_events)
        )
