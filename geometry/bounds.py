"""Bounding box helpers for map markers."""
import logging
import math
from typing import Sequence

from geometry.models import MapBounds

logger = logging.getLogger(__name__)

# 6 decimal places is roughly 10 cm on the ground
COORD_PRECISION = 6

SINGLE_MARKER_PADDING = 0.02
MULTI_MARKER_PADDING = 0.001

WORLD_BOUNDS = MapBounds(north=85.0, south=-85.0, east=180.0, west=-180.0)


def round_coord(value: float) -> float:
    """Round a coordinate to COORD_PRECISION places, folding -0.0 into 0.0."""
    return round(value, COORD_PRECISION) + 0.0


def round_map_bounds(bounds: MapBounds) -> MapBounds:
    """
    Round all edges of a MapBounds to 6 decimal places.

    Args:
        bounds: Bounds to round

    Returns:
        New MapBounds with rounded values
    """
    return MapBounds(
        north=round_coord(bounds.north),
        south=round_coord(bounds.south),
        east=round_coord(bounds.east),
        west=round_coord(bounds.west)
    )


def is_valid_lat_lng(lat: float, lng: float) -> bool:
    """Check that lat/lng are finite and inside their ranges."""
    return (
        math.isfinite(lat) and math.isfinite(lng)
        and -90.0 <= lat <= 90.0
        and -180.0 <= lng <= 180.0
    )


def point_in_bounds(lat: float, lng: float, bounds: MapBounds) -> bool:
    """
    Check whether a point lies inside bounds, edges included.

    When ``west > east`` the box wraps across the antimeridian and a
    longitude is inside if it is east of ``west`` or west of ``east``.

    Args:
        lat: Latitude in degrees
        lng: Longitude in degrees
        bounds: Bounds to test against

    Returns:
        True if the point is inside
    """
    if not (bounds.south <= lat <= bounds.north):
        return False

    if bounds.west <= bounds.east:
        return bounds.west <= lng <= bounds.east

    return lng >= bounds.west or lng <= bounds.east


def bounds_from_markers(markers: Sequence) -> MapBounds:
    """
    Calculate padded bounds enclosing a set of markers.

    A single marker gets a larger pad so the zero-area box stays visible.
    Rounding is applied last, after padding and clamping.

    Args:
        markers: Objects with ``latitude`` and ``longitude`` attributes

    Returns:
        MapBounds enclosing all markers, or WORLD_BOUNDS if there are none
    """
    points = [
        (m.latitude, m.longitude) for m in markers
        if is_valid_lat_lng(m.latitude, m.longitude)
    ]
    if not points:
        logger.debug("No markers with valid coordinates, using world bounds")
        return WORLD_BOUNDS

    north = south = points[0][0]
    east = west = points[0][1]
    for lat, lng in points:
        north = max(north, lat)
        south = min(south, lat)
        east = max(east, lng)
        west = min(west, lng)

    padding = SINGLE_MARKER_PADDING if len(points) == 1 else MULTI_MARKER_PADDING

    bounds = MapBounds(
        north=min(90.0, north + padding),
        south=max(-90.0, south - padding),
        east=min(180.0, east + padding),
        west=max(-180.0, west - padding)
    )
    logger.debug(f"bounds_from_markers({len(points)} markers): {bounds}")
    return round_map_bounds(bounds)
