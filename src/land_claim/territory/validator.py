"""Territory validation — the pass/fail decision for a closed path.

Checks run cheapest first and stop at the first failure:

1. point count
2. total walked distance
3. self-intersection
4. enclosed spherical area
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from land_claim.geo.geometry import has_self_intersection
from land_claim.geo.models import GeoPoint
from land_claim.geo.sphere import path_length_m, spherical_area
from land_claim.territory.models import ValidationFailure, ValidationResult

_logger = logging.getLogger(__name__)


class TerritoryValidator:
    """Validate a closed path as a claimable territory.

    Args:
        min_points: Minimum number of recorded points.
        min_total_distance_m: Minimum path length in metres.
        min_area_m2: Minimum enclosed area in square metres.
        skip_head: Leading segments excluded from self-intersection at the closure.
        skip_tail: Trailing segments excluded from self-intersection at the closure.
    """

    def __init__(
        self,
        min_points: int = 10,
        min_total_distance_m: float = 50.0,
        min_area_m2: float = 100.0,
        skip_head: int = 2,
        skip_tail: int = 2,
    ) -> None:
        self.min_points = min_points
        self.min_total_distance_m = min_total_distance_m
        self.min_area_m2 = min_area_m2
        self.skip_head = skip_head
        self.skip_tail = skip_tail

    def validate(self, path: Sequence[GeoPoint]) -> ValidationResult:
        """Run all checks on a snapshot of *path*."""
        snapshot = tuple(path)
        count = len(snapshot)

        if count < self.min_points:
            _logger.error("Validation failed: %d points (need >= %d)", count, self.min_points)
            return ValidationResult(
                passed=False,
                reason=ValidationFailure.INSUFFICIENT_POINTS,
                point_count=count,
            )

        total = path_length_m(snapshot)
        if total < self.min_total_distance_m:
            _logger.error(
                "Validation failed: distance %.0fm (need >= %.0fm)",
                total,
                self.min_total_distance_m,
            )
            return ValidationResult(
                passed=False,
                reason=ValidationFailure.INSUFFICIENT_DISTANCE,
                point_count=count,
                total_distance_m=total,
            )

        if has_self_intersection(snapshot, self.skip_head, self.skip_tail):
            _logger.error("Validation failed: path crosses itself")
            return ValidationResult(
                passed=False,
                reason=ValidationFailure.SELF_INTERSECTION,
                point_count=count,
                total_distance_m=total,
            )

        area = spherical_area(snapshot)
        if area < self.min_area_m2:
            _logger.error(
                "Validation failed: area %.0fm² (need >= %.0fm²)", area, self.min_area_m2
            )
            return ValidationResult(
                passed=False,
                reason=ValidationFailure.INSUFFICIENT_AREA,
                point_count=count,
                total_distance_m=total,
            )

        _logger.info("Validation passed: %d points, %.0fm, %.0fm²", count, total, area)
        return ValidationResult(
            passed=True,
            area_m2=area,
            point_count=count,
            total_distance_m=total,
        )
