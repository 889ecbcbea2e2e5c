"""Data models for map markers."""
from dataclasses import dataclass
from typing import Tuple

from calendar_events.models import Event

UNRESOLVED_MARKER_ID = 'unresolved'


@dataclass(frozen=True)
class MapMarker:
    """Map pin for one or more events sharing rounded coordinates."""
    id: str
    latitude: float
    longitude: float
    events: Tuple[Event, ...]

    @property
    def is_unresolved(self) -> bool:
        return self.id == UNRESOLVED_MARKER_ID
