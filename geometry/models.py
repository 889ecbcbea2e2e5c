"""Data models for map geometry."""
from dataclasses import dataclass


@dataclass(frozen=True)
class MapBounds:
    """
    Geographic rectangle in degrees.

    ``west > east`` means the box crosses the antimeridian.
    """
    north: float
    south: float
    east: float
    west: float

    @property
    def crosses_antimeridian(self) -> bool:
        return self.west > self.east


@dataclass(frozen=True)
class MapViewport:
    """Map camera position."""
    latitude: float
    longitude: float
    zoom: float
    bearing: float = 0.0
    pitch: float = 0.0
