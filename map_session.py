"""Map session wiring filtering, markers and the map widget together."""
import json
import logging
import os
from dataclasses import dataclass
from typing import Any, List, Optional

from calendar_events.filter_manager import FilterEventsManager
from calendar_events.models import DateRange, Event, FilterResult, FilterStats
from geometry.models import MapBounds
from mapsync.controller import MapSyncController, ViewportChange
from source.events_client import EventsApiClient

logger = logging.getLogger(__name__)

# Attributes every LogRecord carries; anything else came in through extra=
_RECORD_ATTRS = frozenset(vars(logging.LogRecord('', 0, '', 0, '', (), None))) | {'message', 'asctime'}


class JsonFormatter(logging.Formatter):
    """
    One JSON object per log line.

    Fields passed with ``extra=`` are emitted alongside the standard ones.
    Values that are not JSON types (bounds, viewports) are written with str().
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            'timestamp': self.formatTime(record),
            'level': record.levelname,
            'message': record.getMessage(),
            'logger': record.name
        }

        for key, value in vars(record).items():
            if key not in _RECORD_ATTRS and key not in log_data:
                log_data[key] = value

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def setup_logging(log_level: str = 'INFO') -> None:
    """
    Configure logging with JSON formatter.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    root_logger = logging.getLogger()

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root_logger.addHandler(handler)

    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))


@dataclass
class MapSessionConfig:
    """Settings for a map session."""
    events_api_url: str = EventsApiClient.DEFAULT_BASE_URL
    log_level: str = 'INFO'
    map_width: int = 800
    map_height: int = 600
    bounds_debounce_ms: int = 500
    timeout_seconds: int = 30


def _int_from_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Invalid value for {name}: {raw!r}, using {default}")
        return default


def load_config() -> MapSessionConfig:
    """Read the session configuration from environment variables."""
    defaults = MapSessionConfig()
    return MapSessionConfig(
        events_api_url=os.environ.get('EVENTS_API_URL', defaults.events_api_url),
        log_level=os.environ.get('LOG_LEVEL', defaults.log_level),
        map_width=_int_from_env('MAP_WIDTH', defaults.map_width),
        map_height=_int_from_env('MAP_HEIGHT', defaults.map_height),
        bounds_debounce_ms=_int_from_env('BOUNDS_DEBOUNCE_MS', defaults.bounds_debounce_ms),
        timeout_seconds=_int_from_env('TIMEOUT_SECONDS', defaults.timeout_seconds)
    )


class MapSession:
    """
    One map view over one event list.

    Bounds computed by the controller become the map-bounds filter and
    every filter change pushes the shown events back to the controller.
    """

    def __init__(
        self,
        events: List[Event],
        config: Optional[MapSessionConfig] = None,
        scheduler: Any = None
    ):
        """
        Initialize the session.

        Args:
            events: Full event list
            config: Session settings, loaded from the environment if None
            scheduler: ``call_later`` provider for the bounds debounce. Without
                one, viewport changes need a running asyncio loop unless
                bounds_debounce_ms is 0
        """
        self.config = config or load_config()
        self.ready = False
        self.filter_manager = FilterEventsManager(events)
        self.controller = MapSyncController(
            self.filter_manager,
            self.config.map_width,
            self.config.map_height,
            is_ready=lambda: self.ready,
            on_bounds_change=self._on_bounds_change,
            debounce_seconds=self.config.bounds_debounce_ms / 1000.0,
            scheduler=scheduler,
            debug=self.config.log_level.upper() == 'DEBUG'
        )
        self.filter_result: FilterResult = self.refresh()

    @property
    def filter_stats(self) -> FilterStats:
        return self.filter_result.stats()

    def refresh(self) -> FilterResult:
        """Re-run filtering with the stored map bounds and update markers."""
        self.filter_result = self.filter_manager.get_filtered_events(
            self.filter_manager.filters.map_bounds
        )
        self.controller.set_visible_events(self.filter_result.shown)
        return self.filter_result

    def map_loaded(self, width: float, height: float) -> bool:
        """
        Handle the widget's load-complete signal.

        Args:
            width: Rendered map width in pixels
            height: Rendered map height in pixels

        Returns:
            True if the map was fitted to the visible events
        """
        self.controller.set_map_size(width, height)
        self.ready = True
        logger.info(f"Map loaded at {width}x{height}")
        return self.controller.reset_map_to_visible_events()

    def viewport_changed(self, change: ViewportChange) -> bool:
        return self.controller.set_viewport(change)

    def set_events(self, events: List[Event]) -> FilterResult:
        self.filter_manager.set_events(events)
        self.controller.reload_events()
        return self.refresh()

    def set_date_range(self, date_range: Optional[DateRange]) -> FilterResult:
        self.filter_manager.set_date_range(date_range)
        return self.refresh()

    def set_search_query(self, search_query: Optional[str]) -> FilterResult:
        self.filter_manager.set_search_query(search_query)
        return self.refresh()

    def set_unknown_locations_only(self, unknown_locations_only: bool) -> FilterResult:
        self.filter_manager.set_unknown_locations_only(unknown_locations_only)
        return self.refresh()

    def reset_all_filters(self) -> FilterResult:
        self.filter_manager.reset_all_filters()
        return self.refresh()

    def close(self) -> None:
        self.controller.close()

    def _on_bounds_change(self, bounds: MapBounds) -> None:
        self.filter_manager.set_map_bounds(bounds)
        self.refresh()


def open_session(
    event_source_id: str,
    config: Optional[MapSessionConfig] = None,
    client: Optional[EventsApiClient] = None,
    scheduler: Any = None
) -> MapSession:
    """
    Fetch events for a source and open a map session over them.

    Args:
        event_source_id: Event source id passed to the events API
        config: Session settings, loaded from the environment if None
        client: Events client, built from config if None
        scheduler: ``call_later`` provider for the bounds debounce

    Returns:
        MapSession over the fetched events

    Raises:
        requests.RequestException: If the events cannot be fetched
    """
    config = config or load_config()
    client = client or EventsApiClient(config.events_api_url, timeout=config.timeout_seconds)

    try:
        events = client.fetch_events(event_source_id)
    except Exception as e:
        logger.error(
            f"Failed to fetch events for {event_source_id}: {str(e)}",
            extra={'error_type': type(e).__name__},
            exc_info=True
        )
        raise

    logger.info(
        "Opening map session",
        extra={'event_source_id': event_source_id, 'events': len(events)}
    )
    return MapSession(events, config, scheduler=scheduler)
