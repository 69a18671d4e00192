"""Geographic data models."""

from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class GeoPoint:
    """A latitude/longitude pair in the raw WGS-84 positioning datum."""

    latitude: float
    """Latitude in degrees [-90, 90]."""

    longitude: float
    """Longitude in degrees [-180, 180]."""

    def to_dict(self) -> dict[str, float]:
        """Return the ``{"lat": ..., "lon": ...}`` form used by backend records."""
        return {"lat": self.latitude, "lon": self.longitude}

    @classmethod
    def from_dict(cls, d: dict) -> GeoPoint:
        """Create a :class:`GeoPoint` from a ``{"lat", "lon"}`` record."""
        return cls(latitude=float(d["lat"]), longitude=float(d["lon"]))


@dataclass(frozen=True)
class PositionFix:
    """One sample reported by the positioning sensor."""

    point: GeoPoint

    horizontal_accuracy: float
    """Accuracy radius in metres.  Negative values mean the fix is invalid."""

    timestamp: float
    """Capture time in seconds (same time base as the engine clock)."""

    def is_valid(self) -> bool:
        """Return True if coordinates and accuracy are finite and accuracy >= 0."""
        values = (self.point.latitude, self.point.longitude, self.horizontal_accuracy)
        return all(math.isfinite(v) for v in values) and self.horizontal_accuracy >= 0
