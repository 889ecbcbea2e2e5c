"""Controller keeping markers, viewport and map-bounds filtering in sync."""
import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List, Optional

from calendar_events.filter_manager import FilterEventsManager
from calendar_events.models import Event
from geometry.bounds import round_map_bounds
from geometry.models import MapBounds, MapViewport
from geometry.projection import (
    bounds_from_viewport,
    calculate_map_bounds_and_viewport,
    normalize_viewport,
)
from mapsync.debounce import Debouncer
from markers.aggregator import filter_markers, generate_map_markers
from markers.models import MapMarker

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_SECONDS = 0.5


def _loop_running() -> bool:
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return False
    return True


class UpdateSource(Enum):
    """Where a viewport change came from."""
    USER = 'user'
    PROGRAMMATIC = 'programmatic'


@dataclass(frozen=True)
class ViewportChange:
    """Viewport change reported by the map widget."""
    viewport: MapViewport
    source: UpdateSource = UpdateSource.USER
    # Bounds computed by the widget itself, if it reports them
    bounds: Optional[MapBounds] = None


@dataclass
class MapState:
    """Everything the map renders from."""
    viewport: MapViewport
    bounds: Optional[MapBounds] = None
    markers: List[MapMarker] = field(default_factory=list)
    selected_marker_id: Optional[str] = None


def markers_changed(old: List[MapMarker], new: List[MapMarker]) -> bool:
    """
    Check whether two marker lists differ in ids, positions or event counts.

    Args:
        old: Currently committed markers
        new: Candidate markers

    Returns:
        True if the new markers need to be committed
    """
    if len(old) != len(new):
        return True

    old_by_id = {marker.id: marker for marker in old}
    if set(old_by_id) != {marker.id for marker in new}:
        return True

    for marker in new:
        current = old_by_id[marker.id]
        # The unresolved marker moves with the aggregate center
        if (current.latitude, current.longitude) != (marker.latitude, marker.longitude):
            return True
        if len(current.events) != len(marker.events):
            return True
    return False


class MapSyncController:
    """
    Holds map state for one map session.

    User-driven viewport changes apply at once, but the bounds used for
    filtering are committed only after interaction has been quiet for the
    debounce delay. Viewport changes tagged PROGRAMMATIC are echoes of
    updates made here and are ignored.
    """

    def __init__(
        self,
        filter_manager: FilterEventsManager,
        map_width: float,
        map_height: float,
        is_ready: Optional[Callable[[], bool]] = None,
        on_bounds_change: Optional[Callable[[MapBounds], None]] = None,
        on_markers_change: Optional[Callable[[List[MapMarker]], None]] = None,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        scheduler: Any = None,
        debug: bool = False
    ):
        """
        Initialize the controller and frame all events.

        Args:
            filter_manager: Filter manager owning the full event list
            map_width: Map container width in pixels
            map_height: Map container height in pixels
            is_ready: Returns True once the viewport may be set
            on_bounds_change: Called with bounds computed here
            on_markers_change: Called with the markers after each commit
            debounce_seconds: Quiet period before user bounds are committed
            scheduler: ``call_later`` provider for the debounce timer; the
                running asyncio loop is used when None
            debug: Log per-marker details
        """
        self.filter_manager = filter_manager
        self.map_width = map_width
        self.map_height = map_height
        self.is_ready = is_ready or (lambda: True)
        self.on_bounds_change = on_bounds_change
        self.on_markers_change = on_markers_change
        self.debug = debug

        if scheduler is None and debounce_seconds > 0 and not _loop_running():
            logger.warning(
                "MapSyncController created without a scheduler outside an event loop; "
                "user viewport changes will fail unless a loop is running or debounce_seconds is 0"
            )
        self._bounds_debouncer = Debouncer(debounce_seconds, scheduler)
        self._pending_widget_bounds: Optional[MapBounds] = None

        self._markers_from_all_events = generate_map_markers(filter_manager.all_events)
        bounds, viewport = calculate_map_bounds_and_viewport(
            self._markers_from_all_events, map_width, map_height
        )
        self.state = MapState(
            viewport=viewport,
            bounds=bounds,
            markers=self._markers_from_all_events
        )
        logger.info(
            f"MapSyncController initialized: {len(filter_manager.all_events)} events, "
            f"{len(self._markers_from_all_events)} markers, viewport {viewport}"
        )

    @property
    def viewport(self) -> MapViewport:
        return self.state.viewport

    @property
    def bounds(self) -> Optional[MapBounds]:
        return self.state.bounds

    @property
    def markers(self) -> List[MapMarker]:
        return self.state.markers

    @property
    def selected_marker_id(self) -> Optional[str]:
        return self.state.selected_marker_id

    @property
    def bounds_commit_pending(self) -> bool:
        return self._bounds_debouncer.pending

    def set_selected_marker_id(self, marker_id: Optional[str]) -> None:
        self.state.selected_marker_id = marker_id
        logger.info(f"selected_marker_id now {marker_id}")

    def set_map_size(self, width: float, height: float) -> None:
        """Record the rendered size of the map container."""
        self.map_width = width
        self.map_height = height
        logger.debug(f"Map size set to {width}x{height}")

    def reload_events(self) -> None:
        """Rebuild the all-events markers after the event list changed."""
        self._markers_from_all_events = generate_map_markers(self.filter_manager.all_events)
        self._commit_markers(self._markers_from_all_events)

    def set_visible_events(self, visible_events: Optional[List[Event]]) -> bool:
        """
        Narrow the markers to the events that passed filtering.

        Markers come from the all-events marker set, so their ids and
        positions stay stable as filters change.

        Args:
            visible_events: Events currently shown

        Returns:
            True if the markers were updated
        """
        filtered = filter_markers(self._markers_from_all_events, visible_events)
        visible_count = len(visible_events) if visible_events is not None else 0
        logger.info(
            f"Filtered markers: {len(filtered)} of {len(self._markers_from_all_events)} markers "
            f"showing, with {visible_count} of {len(self.filter_manager.all_events)} events"
        )
        return self._commit_markers(filtered)

    def set_viewport(self, change: ViewportChange) -> bool:
        """
        Handle a viewport change from the map widget.

        Args:
            change: New viewport and where it came from

        Returns:
            True if the change was applied
        """
        if change.source is UpdateSource.PROGRAMMATIC:
            logger.debug(f"Ignoring programmatic viewport echo {change.viewport}")
            return False

        vp = change.viewport
        self.state.viewport = normalize_viewport(vp.latitude, vp.longitude, vp.zoom, vp.bearing, vp.pitch)
        self._pending_widget_bounds = change.bounds
        self._bounds_debouncer.schedule(self._commit_user_bounds)
        return True

    def reset_map_to_visible_events(self) -> bool:
        """
        Fit the map to all events passing the date, search and unknown
        location filters, ignoring the map-bounds filter.

        Does nothing until is_ready() returns True, and leaves the map alone
        when no event passes those filters.

        Returns:
            True if the map was moved
        """
        if not self.is_ready():
            logger.info("reset_map_to_visible_events: ignoring, map not ready")
            return False

        visible_events = self.filter_manager.get_filtered_events().shown
        # Same positions as the map-bounds filter uses, unresolved marker included
        markers = filter_markers(self._markers_from_all_events, visible_events)
        if not markers:
            logger.info("reset_map_to_visible_events: no visible events, leaving map as is")
            return False

        bounds, viewport = calculate_map_bounds_and_viewport(markers, self.map_width, self.map_height)
        logger.info(
            f"reset_map_to_visible_events: showing {len(markers)} markers "
            f"from {len(visible_events)} visible events"
        )

        if self._bounds_debouncer.cancel():
            logger.debug("Dropped pending user bounds commit")
        self._pending_widget_bounds = None

        self.state.viewport = viewport
        self.state.bounds = bounds
        self._commit_markers(markers)

        if self.on_bounds_change is not None:
            self.on_bounds_change(bounds)
        return True

    def close(self) -> None:
        """Cancel any pending bounds commit."""
        if self._bounds_debouncer.cancel():
            logger.debug("close: cancelled pending bounds commit")

    def _commit_user_bounds(self) -> None:
        if self._pending_widget_bounds is not None:
            bounds = round_map_bounds(self._pending_widget_bounds)
        else:
            bounds = bounds_from_viewport(self.state.viewport, self.map_width, self.map_height)
        self._pending_widget_bounds = None

        self.state.bounds = bounds
        logger.info(f"Map bounds committed after user interaction: {bounds}")
        if self.on_bounds_change is not None:
            self.on_bounds_change(bounds)

    def _commit_markers(self, markers: List[MapMarker]) -> bool:
        if not markers_changed(self.state.markers, markers):
            return False

        if self.debug:
            logger.debug(
                "Markers changed",
                extra={
                    'old_markers': [(m.id, len(m.events)) for m in self.state.markers],
                    'new_markers': [(m.id, len(m.events)) for m in markers]
                }
            )
        logger.info(f"Markers changed: {len(markers)} markers, was {len(self.state.markers)}")

        self.state.markers = markers
        if self.on_markers_change is not None:
            self.on_markers_change(markers)
        return True
