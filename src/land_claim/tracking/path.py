"""PathStore — append-only point buffer — and ClosureDetector."""

from __future__ import annotations

import threading
from collections.abc import Sequence

from land_claim.geo.models import GeoPoint
from land_claim.geo.sphere import distance_m


class PathStore:
    """Ordered, append-only sequence of accepted points for one session.

    Geometry checks must work on :meth:`snapshot`, never on the live buffer.
    """

    def __init__(self) -> None:
        self._points: list[GeoPoint] = []
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._points)

    def append(self, point: GeoPoint) -> int:
        """Append *point* and return the new point count."""
        with self._lock:
            self._points.append(point)
            return len(self._points)

    def snapshot(self) -> tuple[GeoPoint, ...]:
        """Return an immutable copy of the current points."""
        with self._lock:
            return tuple(self._points)

    @property
    def first(self) -> GeoPoint | None:
        with self._lock:
            return self._points[0] if self._points else None

    @property
    def last(self) -> GeoPoint | None:
        with self._lock:
            return self._points[-1] if self._points else None

    def clear(self) -> None:
        with self._lock:
            self._points.clear()


class ClosureDetector:
    """Detects that a path has looped back near its start.

    Parameters
    ----------
    min_points:
        Paths with fewer points are never considered closed.
    closure_distance_m:
        Maximum start-to-end distance of a closed path.  The default exceeds
        the typical horizontal error of consumer GPS.
    """

    def __init__(self, min_points: int = 10, closure_distance_m: float = 50.0) -> None:
        self._min_points = min_points
        self._closure_distance_m = closure_distance_m

    def gap_m(self, path: Sequence[GeoPoint]) -> float | None:
        """Distance between the first and last point, or None for an empty path."""
        if not path:
            return None
        return distance_m(path[0], path[-1])

    def check_closure(self, path: Sequence[GeoPoint]) -> bool:
        """Return True if *path* has enough points and ends near its start."""
        if len(path) < self._min_points:
            return False
        gap = self.gap_m(path)
        return gap is not None and gap <= self._closure_distance_m
