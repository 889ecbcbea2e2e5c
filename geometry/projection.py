"""Web Mercator projection between map bounds and viewports."""
import logging
import math
from typing import Sequence, Tuple

import pyproj

from geometry.bounds import (
    bounds_from_markers,
    is_valid_lat_lng,
    round_coord,
    round_map_bounds,
)
from geometry.models import MapBounds, MapViewport

logger = logging.getLogger(__name__)

# Coordinate reference systems
WGS84 = pyproj.CRS("EPSG:4326")
WEB_MERCATOR = pyproj.CRS("EPSG:3857")

_to_mercator = pyproj.Transformer.from_crs(WGS84, WEB_MERCATOR, always_xy=True).transform
_to_lonlat = pyproj.Transformer.from_crs(WEB_MERCATOR, WGS84, always_xy=True).transform

# Half the equatorial circumference in EPSG:3857 metres
MERCATOR_EXTENT = 20037508.342789244

TILE_SIZE = 512
MAX_LATITUDE = 85.051129

MIN_ZOOM = 1.0
MAX_ZOOM = 22.0

FIT_PADDING = 30
# Negative y leaves room below the map for the event details panel
FIT_OFFSET = (0, -20)


def lng_lat_to_world(lng: float, lat: float) -> Tuple[float, float]:
    """
    Project lng/lat to Web Mercator world coordinates at zoom 0.

    Longitudes outside [-180, 180) land on the neighbouring world copy,
    so an unwrapped longitude such as 190 stays east of 180.

    Args:
        lng: Longitude in degrees
        lat: Latitude in degrees, clamped to the Mercator limit

    Returns:
        Tuple of (x, y) in pixels of a TILE_SIZE world, y pointing north
    """
    lat = max(-MAX_LATITUDE, min(MAX_LATITUDE, lat))
    turns = math.floor((lng + 180.0) / 360.0) if math.isfinite(lng) else 0
    x_m, y_m = _to_mercator(lng - turns * 360.0, lat)
    x = (x_m + MERCATOR_EXTENT) / (2 * MERCATOR_EXTENT) * TILE_SIZE
    y = (y_m + MERCATOR_EXTENT) / (2 * MERCATOR_EXTENT) * TILE_SIZE
    return x + turns * TILE_SIZE, y


def world_to_lng_lat(x: float, y: float) -> Tuple[float, float]:
    """Inverse of lng_lat_to_world."""
    turns = math.floor(x / TILE_SIZE) if math.isfinite(x) else 0
    x_m = (x - turns * TILE_SIZE) / TILE_SIZE * 2 * MERCATOR_EXTENT - MERCATOR_EXTENT
    y_m = y / TILE_SIZE * 2 * MERCATOR_EXTENT - MERCATOR_EXTENT
    lng, lat = _to_lonlat(x_m, y_m)
    return lng + turns * 360.0, lat


def wrap_longitude(lng: float) -> float:
    """Wrap a longitude into [-180, 180], leaving in-range values alone."""
    if -180.0 <= lng <= 180.0:
        return lng
    return ((lng + 180.0) % 360.0) - 180.0


def normalize_viewport(
    latitude: float,
    longitude: float,
    zoom: float,
    bearing: float = 0.0,
    pitch: float = 0.0
) -> MapViewport:
    """
    Build a valid MapViewport, defaulting anything unusable.

    An invalid latitude or longitude resets the position to 0,0 at
    MIN_ZOOM. Zoom is clamped to [MIN_ZOOM, MAX_ZOOM].

    Args:
        latitude: Center latitude
        longitude: Center longitude
        zoom: Zoom level
        bearing: Map rotation in degrees
        pitch: Map tilt in degrees

    Returns:
        MapViewport with lat/lng rounded to 6 decimal places
    """
    if not is_valid_lat_lng(latitude, longitude):
        logger.debug(f"Invalid viewport center lat={latitude} lng={longitude}, using default")
        return MapViewport(latitude=0.0, longitude=0.0, zoom=MIN_ZOOM)

    if not math.isfinite(zoom):
        zoom = MIN_ZOOM
    zoom = max(MIN_ZOOM, min(MAX_ZOOM, zoom))

    return MapViewport(
        latitude=round_coord(latitude),
        longitude=round_coord(longitude),
        zoom=zoom,
        bearing=bearing if math.isfinite(bearing) else 0.0,
        pitch=pitch if math.isfinite(pitch) else 0.0
    )


def viewport_from_bounds(
    bounds: MapBounds,
    width: float,
    height: float,
    padding: float = FIT_PADDING,
    offset: Tuple[float, float] = FIT_OFFSET
) -> MapViewport:
    """
    Fit a viewport of the given pixel size around bounds.

    Args:
        bounds: Bounds to frame
        width: Map container width in pixels
        height: Map container height in pixels
        padding: Inner padding on every side in pixels
        offset: Pixel offset of the map center; shrinks the usable area

    Returns:
        MapViewport framing the bounds
    """
    east = bounds.east + 360.0 if bounds.crosses_antimeridian else bounds.east

    nw_x, nw_y = lng_lat_to_world(bounds.west, bounds.north)
    se_x, se_y = lng_lat_to_world(east, bounds.south)

    center_lng, center_lat = world_to_lng_lat((nw_x + se_x) / 2, (nw_y + se_y) / 2)
    center_lng = wrap_longitude(center_lng)

    target_w = width - 2 * padding - abs(offset[0]) * 2
    target_h = height - 2 * padding - abs(offset[1]) * 2
    if not (target_w > 0 and target_h > 0):
        logger.warning(
            f"viewport_from_bounds: map size {width}x{height} leaves no room to fit, "
            f"centering at minimum zoom"
        )
        return normalize_viewport(center_lat, center_lng, MIN_ZOOM)

    size_x = abs(se_x - nw_x)
    size_y = abs(se_y - nw_y)
    scale_x = target_w / size_x if size_x > 0 else math.inf
    scale_y = target_h / size_y if size_y > 0 else math.inf

    zoom = min(MAX_ZOOM, math.log2(min(scale_x, scale_y)))
    viewport = normalize_viewport(center_lat, center_lng, zoom)

    logger.debug(f"viewport_from_bounds(w={width}, h={height}): {viewport}")
    return viewport


def bounds_from_viewport(viewport: MapViewport, width: float, height: float) -> MapBounds:
    """
    Calculate the bounds visible in a viewport of the given pixel size.

    Bearing and pitch are ignored. Without a usable pixel size the bounds
    are approximated from the zoom level alone.

    Args:
        viewport: Map viewport
        width: Map container width in pixels
        height: Map container height in pixels

    Returns:
        MapBounds rounded to 6 decimal places, wrapped across the
        antimeridian when the view crosses it
    """
    viewport = normalize_viewport(
        viewport.latitude, viewport.longitude, viewport.zoom,
        viewport.bearing, viewport.pitch
    )
    scale = 2 ** viewport.zoom

    if not (width > 0 and height > 0):
        lat_delta = 180.0 / scale
        lng_delta = 360.0 / scale
        north = min(90.0, viewport.latitude + lat_delta / 2)
        south = max(-90.0, viewport.latitude - lat_delta / 2)
        west = viewport.longitude - lng_delta / 2
        east = viewport.longitude + lng_delta / 2
    else:
        center_x, center_y = lng_lat_to_world(viewport.longitude, viewport.latitude)
        half_w = width / 2 / scale
        half_h = height / 2 / scale
        west, north = world_to_lng_lat(center_x - half_w, min(TILE_SIZE, center_y + half_h))
        east, south = world_to_lng_lat(center_x + half_w, max(0.0, center_y - half_h))

    if east - west >= 360.0:
        west, east = -180.0, 180.0
    else:
        west = wrap_longitude(west)
        east = wrap_longitude(east)

    return round_map_bounds(MapBounds(north=north, south=south, east=east, west=west))


def calculate_map_bounds_and_viewport(
    markers: Sequence,
    width: float,
    height: float
) -> Tuple[MapBounds, MapViewport]:
    """
    Calculate bounds around markers and the viewport that frames them.

    Args:
        markers: Objects with ``latitude`` and ``longitude`` attributes
        width: Map container width in pixels
        height: Map container height in pixels

    Returns:
        Tuple of (bounds, viewport)
    """
    bounds = bounds_from_markers(markers)
    viewport = viewport_from_bounds(bounds, width, height)
    logger.info(
        f"Calculated map bounds and viewport for {len(markers)} markers",
        extra={'bounds': bounds, 'viewport': viewport}
    )
    return bounds, viewport
