"""Collision detection against other players' territories.

Three checks, composed by :meth:`CollisionDetector.check_comprehensive`:

* point containment (ray casting);
* newest path segment crossing a territory boundary;
* proximity to the nearest territory edge, mapped to a warning level.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence

from land_claim.geo.geometry import (
    point_in_polygon,
    point_to_segment_distance_m,
    polygon_edges,
    segments_intersect,
)
from land_claim.geo.models import GeoPoint
from land_claim.territory.cache import TerritoryCache
from land_claim.territory.models import (
    CollisionKind,
    CollisionResult,
    TerritoryPolygon,
    WarningLevel,
)

_logger = logging.getLogger(__name__)

# Lower bounds (metres) of the proximity bands, most severe first
_DANGER_BELOW_M = 25.0
_WARNING_BELOW_M = 50.0
_CAUTION_BELOW_M = 100.0


def warning_level_for_distance(distance: float) -> WarningLevel:
    """Map a distance to the nearest foreign territory onto a warning level."""
    if distance < 0:
        return WarningLevel.VIOLATION
    if distance < _DANGER_BELOW_M:
        return WarningLevel.DANGER
    if distance < _WARNING_BELOW_M:
        return WarningLevel.WARNING
    if distance < _CAUTION_BELOW_M:
        return WarningLevel.CAUTION
    return WarningLevel.SAFE


def _proximity_message(level: WarningLevel, distance: float) -> str | None:
    if level is WarningLevel.SAFE or not math.isfinite(distance):
        return None
    meters = int(distance)
    if level is WarningLevel.DANGER:
        return f"Only {meters} m from another player's territory"
    if level is WarningLevel.WARNING:
        return f"{meters} m from another player's territory"
    if level is WarningLevel.CAUTION:
        return f"Another player's territory is nearby ({meters} m)"
    return None


class CollisionDetector:
    """Checks points and paths against the cached foreign territories.

    Parameters
    ----------
    cache:
        A :class:`TerritoryCache`.  Each check reads one snapshot of it.
    """

    def __init__(self, cache: TerritoryCache | None = None) -> None:
        self.cache = cache if cache is not None else TerritoryCache()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def check_point(self, point: GeoPoint, exclude_owner_id: str | None = None) -> CollisionResult:
        """Return a VIOLATION result if *point* lies inside a foreign territory."""
        return self._check_point(point, self._foreign(exclude_owner_id))

    def check_path_crossing(
        self, path: Sequence[GeoPoint], exclude_owner_id: str | None = None
    ) -> CollisionResult:
        """Check the newest segment of *path* against every foreign boundary."""
        return self._check_path(tuple(path), self._foreign(exclude_owner_id))

    def nearest_territory(
        self, point: GeoPoint, exclude_owner_id: str | None = None
    ) -> tuple[float, str | None]:
        """Return ``(distance_m, territory_name)`` of the closest foreign edge.

        The distance is ``math.inf`` when there is no foreign territory.
        """
        return self._nearest(point, self._foreign(exclude_owner_id))

    def check_comprehensive(
        self,
        current_point: GeoPoint,
        path: Sequence[GeoPoint] | None = None,
        exclude_owner_id: str | None = None,
    ) -> CollisionResult:
        """Point check, then path check, then proximity warning."""
        territories = self._foreign(exclude_owner_id)

        result = self._check_point(current_point, territories)
        if result.has_collision:
            return result

        if path is not None and len(path) >= 2:
            result = self._check_path(tuple(path), territories)
            if result.has_collision:
                return result

        distance, name = self._nearest(current_point, territories)
        level = warning_level_for_distance(distance)
        return CollisionResult(
            has_collision=False,
            message=_proximity_message(level, distance),
            closest_distance_m=distance if math.isfinite(distance) else None,
            warning_level=level,
            territory_name=name,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _foreign(self, exclude_owner_id: str | None) -> list[TerritoryPolygon]:
        return [
            t
            for t in self.cache.snapshot()
            if not t.is_degenerate and not t.is_owned_by(exclude_owner_id)
        ]

    def _check_point(
        self, point: GeoPoint, territories: list[TerritoryPolygon]
    ) -> CollisionResult:
        for territory in territories:
            if point_in_polygon(point, territory.points):
                _logger.warning("Point inside territory %s", territory.display_name)
                return CollisionResult(
                    has_collision=True,
                    kind=CollisionKind.POINT_IN_TERRITORY,
                    message="You are inside another player's territory",
                    closest_distance_m=0.0,
                    warning_level=WarningLevel.VIOLATION,
                    territory_name=territory.display_name,
                )
        return CollisionResult.safe()

    def _check_path(
        self, path: tuple[GeoPoint, ...], territories: list[TerritoryPolygon]
    ) -> CollisionResult:
        if len(path) < 2:
            return CollisionResult.safe()

        seg_start, seg_end = path[-2], path[-1]
        for territory in territories:
            for edge_start, edge_end in polygon_edges(territory.points):
                if segments_intersect(seg_start, seg_end, edge_start, edge_end):
                    _logger.warning("Path crosses boundary of %s", territory.display_name)
                    return CollisionResult(
                        has_collision=True,
                        kind=CollisionKind.PATH_CROSSES_TERRITORY,
                        message="Your path crossed another player's territory boundary",
                        closest_distance_m=0.0,
                        warning_level=WarningLevel.VIOLATION,
                        territory_name=territory.display_name,
                    )

            if point_in_polygon(seg_end, territory.points):
                _logger.warning("Path entered territory %s", territory.display_name)
                return CollisionResult(
                    has_collision=True,
                    kind=CollisionKind.POINT_IN_TERRITORY,
                    message="You entered another player's territory",
                    closest_distance_m=0.0,
                    warning_level=WarningLevel.VIOLATION,
                    territory_name=territory.display_name,
                )

        return CollisionResult.safe()

    def _nearest(
        self, point: GeoPoint, territories: list[TerritoryPolygon]
    ) -> tuple[float, str | None]:
        min_distance = math.inf
        closest_name: str | None = None
        for territory in territories:
            for edge_start, edge_end in polygon_edges(territory.points):
                d = point_to_segment_distance_m(point, edge_start, edge_end)
                if d < min_distance:
                    min_distance = d
                    closest_name = territory.display_name
        return min_distance, closest_name
