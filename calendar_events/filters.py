"""Filter predicates for calendar events.

Each predicate returns True when the event passes. Passing None for the
filter value means the filter is inactive and every event passes.
"""
from datetime import datetime, timezone
from typing import Optional, Tuple

from calendar_events.models import UNRESOLVED_QUERY, DateRange, Event, ResolvedLocation
from geometry.bounds import point_in_bounds
from geometry.models import MapBounds


def as_utc(dt: datetime) -> datetime:
    """Treat naive datetimes as UTC so they compare with aware ones."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def apply_date_filter(event: Event, date_range: Optional[DateRange]) -> bool:
    """Pass events whose [start, end] overlaps the range, both ends inclusive."""
    if date_range is None:
        return True

    return (
        as_utc(event.end) >= as_utc(date_range.start)
        and as_utc(event.start) <= as_utc(date_range.end)
    )


def apply_search_filter(event: Event, search_query: Optional[str]) -> bool:
    """
    Case-insensitive substring search over an event's text fields.

    The query "unresolved" matches events without a resolved location
    instead of searching text.

    Args:
        event: Event to test
        search_query: Query text

    Returns:
        True if the event matches
    """
    if search_query is None or not search_query.strip():
        return True

    query = search_query.strip().lower()
    if query == UNRESOLVED_QUERY:
        return not event.has_resolved_location

    if query in (event.name or '').lower():
        return True
    if query in (event.location or '').lower():
        return True

    location = event.resolved_location
    if isinstance(location, ResolvedLocation):
        if query in (location.formatted_address or '').lower():
            return True
        # bar, night_club, point_of_interest, ...
        if any(query in place_type.lower() for place_type in location.types):
            return True

    return query in (event.description or '').lower()


def apply_map_filter(
    event: Event,
    map_bounds: Optional[MapBounds],
    aggregate_center: Optional[Tuple[float, float]] = None
) -> bool:
    """
    Pass events located inside the map bounds.

    Unresolved events are tested at the aggregate center, where their
    marker is drawn. Without an aggregate center they always pass.

    Args:
        event: Event to test
        map_bounds: Current map bounds
        aggregate_center: (lat, lng) of the unresolved-events marker

    Returns:
        True if the event is on the map
    """
    if map_bounds is None:
        return True

    location = event.resolved_location
    if isinstance(location, ResolvedLocation):
        return point_in_bounds(location.lat, location.lng, map_bounds)

    if aggregate_center is None:
        return True

    return point_in_bounds(aggregate_center[0], aggregate_center[1], map_bounds)


def apply_unknown_locations_filter(event: Event, unknown_locations_only: Optional[bool]) -> bool:
    """When enabled, pass only events without a resolved location."""
    if not unknown_locations_only:
        return True

    return not event.has_resolved_location
