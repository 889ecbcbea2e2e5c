"""Filter manager holding the full event list and the filter settings."""
import logging
from typing import List, Optional

from calendar_events.filters import (
    apply_date_filter,
    apply_map_filter,
    apply_search_filter,
    apply_unknown_locations_filter,
)
from calendar_events.models import DateRange, Event, FilterConfig, FilterResult, FilterStats
from geometry.models import MapBounds
from markers.aggregator import calculate_aggregate_center

logger = logging.getLogger(__name__)


class FilterEventsManager:
    """
    Applies independent filters to a list of calendar events.

    Setters only store values. Nothing is recomputed until
    get_filtered_events() is called.
    """

    def __init__(self, events: Optional[List[Event]] = None):
        """
        Initialize the manager.

        Args:
            events: Full, unfiltered event list
        """
        self._all_events: List[Event] = list(events or [])
        self.filters = FilterConfig()
        logger.info(f"FilterEventsManager initialized with {len(self._all_events)} events")

    @property
    def all_events(self) -> List[Event]:
        """All events, unfiltered."""
        return self._all_events

    @property
    def events_with_locations(self) -> List[Event]:
        return [event for event in self._all_events if event.has_resolved_location]

    @property
    def events_with_unknown_locations(self) -> List[Event]:
        return [event for event in self._all_events if not event.has_resolved_location]

    def set_events(self, events: List[Event]) -> None:
        """
        Replace the full event list. Filter settings are kept.

        Args:
            events: New unfiltered event list
        """
        self._all_events = list(events)
        logger.info(f"set_events: {len(self._all_events)} events")

    def get_filtered_events(self, map_bounds: Optional[MapBounds] = None) -> FilterResult:
        """
        Filter all events against the active filters.

        Every filtered_out_by_* bucket is built from the full event list
        using only its own filter. Map filtering uses the map_bounds
        argument for this call only; without it no event is filtered by
        the map and the stored map bounds stay untouched.

        Args:
            map_bounds: Bounds to filter by for this call

        Returns:
            FilterResult with shown events and per-filter buckets
        """
        result = FilterResult(all_events=self._all_events)
        filters = self.filters

        date_active = filters.date_range is not None
        search_active = filters.search_query is not None
        map_active = map_bounds is not None
        unknown_active = bool(filters.unknown_locations_only)

        if not (date_active or search_active or map_active or unknown_active):
            logger.debug("get_filtered_events: no active filters, returning all events")
            result.shown = list(self._all_events)
            return result

        aggregate_center = calculate_aggregate_center(self._all_events) if map_active else None

        for event in self._all_events:
            filtered = False
            if date_active and not apply_date_filter(event, filters.date_range):
                result.filtered_out_by_date.append(event)
                filtered = True
            if search_active and not apply_search_filter(event, filters.search_query):
                result.filtered_out_by_search.append(event)
                filtered = True
            if map_active and not apply_map_filter(event, map_bounds, aggregate_center):
                result.filtered_out_by_map.append(event)
                filtered = True
            if unknown_active and not apply_unknown_locations_filter(event, True):
                result.filtered_out_by_unknown_location.append(event)
                filtered = True

            if filtered:
                result.filtered.append(event)
            else:
                result.shown.append(event)

        logger.debug(
            f"get_filtered_events: {len(result.shown)} shown of {len(self._all_events)} events",
            extra={'active_filters': filters.active_dimensions(), 'map_filter': map_active}
        )
        return result

    def get_filter_stats(self, map_bounds: Optional[MapBounds] = None) -> FilterStats:
        """Counts for the filter chips."""
        stats = self.get_filtered_events(map_bounds).stats()
        logger.debug(f"get_filter_stats: {stats}")
        return stats

    def set_date_range(self, date_range: Optional[DateRange]) -> None:
        self.filters.date_range = date_range
        logger.info(f"Filter updated: date_range={date_range}")

    def set_search_query(self, search_query: Optional[str]) -> None:
        """Set the search text; blank text turns search filtering off."""
        if search_query is not None and not search_query.strip():
            search_query = None
        self.filters.search_query = search_query
        logger.info(f"Filter updated: search_query={search_query!r}")

    def set_map_bounds(self, map_bounds: Optional[MapBounds]) -> None:
        self.filters.map_bounds = map_bounds
        logger.info(f"Filter updated: map_bounds={map_bounds}")

    def set_unknown_locations_only(self, unknown_locations_only: bool) -> None:
        self.filters.unknown_locations_only = bool(unknown_locations_only)
        logger.info(f"Filter updated: unknown_locations_only={self.filters.unknown_locations_only}")

    def reset_all_filters(self) -> None:
        self.filters = FilterConfig()
        logger.info("All filters reset")

    def reset(self) -> None:
        """Drop all events and reset all filters."""
        self._all_events = []
        self.reset_all_filters()
        logger.info("FilterEventsManager fully reset (events and filters)")
