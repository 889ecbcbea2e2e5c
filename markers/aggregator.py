"""Grouping of events into map markers."""
import logging
from dataclasses import replace
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from calendar_events.models import Event, ResolvedLocation
from geometry.bounds import COORD_PRECISION, round_coord
from markers.models import UNRESOLVED_MARKER_ID, MapMarker

logger = logging.getLogger(__name__)

# San Francisco, used when no event has coordinates
DEFAULT_CENTER = (37.7749, -122.4194)


def marker_id(lat: float, lng: float) -> str:
    """
    Build the marker id for a coordinate pair.

    Args:
        lat: Latitude in degrees
        lng: Longitude in degrees

    Returns:
        "lat,lng" with both values rounded to 6 decimal places
    """
    return f"{round_coord(lat):.{COORD_PRECISION}f},{round_coord(lng):.{COORD_PRECISION}f}"


def calculate_aggregate_center(events: Iterable[Event]) -> Tuple[float, float]:
    """
    Calculate the mean position of all events with resolved locations.

    Args:
        events: Events to average

    Returns:
        Tuple of (lat, lng), DEFAULT_CENTER if no event is resolved
    """
    count = 0
    sum_lat = 0.0
    sum_lng = 0.0
    for event in events:
        if isinstance(event.resolved_location, ResolvedLocation):
            count += 1
            sum_lat += event.resolved_location.lat
            sum_lng += event.resolved_location.lng

    if count == 0:
        return DEFAULT_CENTER
    return sum_lat / count, sum_lng / count


def generate_map_markers(events: Sequence[Event]) -> List[MapMarker]:
    """
    Group events into map markers.

    Events whose rounded coordinates match share a marker. All events
    without a resolved location go into a single marker at the aggregate
    center, which comes first so it renders beneath the others.

    Args:
        events: Events to group

    Returns:
        New list of MapMarker objects
    """
    buckets: Dict[str, List[Event]] = {}
    positions: Dict[str, Tuple[float, float]] = {}
    unresolved: List[Event] = []

    for event in events:
        location = event.resolved_location
        if isinstance(location, ResolvedLocation):
            key = marker_id(location.lat, location.lng)
            if key not in buckets:
                buckets[key] = []
                positions[key] = (location.lat, location.lng)
            buckets[key].append(event)
        else:
            unresolved.append(event)

    markers = []
    if unresolved:
        center_lat, center_lng = calculate_aggregate_center(events)
        markers.append(MapMarker(
            id=UNRESOLVED_MARKER_ID,
            latitude=center_lat,
            longitude=center_lng,
            events=tuple(unresolved)
        ))

    for key, bucket in buckets.items():
        lat, lng = positions[key]
        markers.append(MapMarker(id=key, latitude=lat, longitude=lng, events=tuple(bucket)))

    logger.info(
        f"Generated {len(markers)} markers from {len(events) - len(unresolved)} events "
        f"with locations, {len(unresolved)} events without resolvable location"
    )
    return markers


def filter_markers(
    markers: Sequence[MapMarker],
    visible_events: Optional[Iterable[Event]]
) -> List[MapMarker]:
    """
    Narrow each marker's events to the visible ones.

    Marker ids and positions are kept; markers left without events are
    dropped.

    Args:
        markers: Markers built from the full event list
        visible_events: Events that passed filtering

    Returns:
        New list of MapMarker objects
    """
    if visible_events is None:
        return []

    visible_ids = {event.id for event in visible_events}
    filtered = []
    for marker in markers:
        events = tuple(event for event in marker.events if event.id in visible_ids)
        if events:
            filtered.append(marker if len(events) == len(marker.events) else replace(marker, events=events))
    return filtered
