"""ClaimService — server-side re-validation of uploaded claims."""

from __future__ import annotations

import logging

from land_claim.geo.datum import from_display_datum, to_display_datum
from land_claim.geo.models import GeoPoint
from land_claim.territory.cache import TerritoryCache
from land_claim.territory.collision import CollisionDetector
from land_claim.territory.models import CollisionResult, TerritoryPolygon, ValidationResult
from land_claim.territory.validator import TerritoryValidator
from land_claim.web.schemas import (
    CollisionRequest,
    CollisionResponse,
    DatumResponse,
    PointModel,
    ValidateRequest,
    ValidateResponse,
)

_logger = logging.getLogger(__name__)


def _to_points(models: list[PointModel]) -> list[GeoPoint]:
    return [GeoPoint(m.lat, m.lon) for m in models]


def _to_models(points: list[GeoPoint]) -> list[PointModel]:
    return [PointModel(lat=p.latitude, lon=p.longitude) for p in points]


class ClaimService:
    """Runs the pure geometry operations for one request at a time.

    Stateless: the territories to check against come with each collision
    request, so the service can be shared between requests.
    """

    def validate(self, req: ValidateRequest) -> ValidateResponse:
        validator = TerritoryValidator(
            min_points=req.min_points,
            min_total_distance_m=req.min_total_distance_m,
            min_area_m2=req.min_area_m2,
        )
        result: ValidationResult = validator.validate(_to_points(req.path))
        return ValidateResponse(
            passed=result.passed,
            reason=result.reason.value if result.reason else None,
            message=result.message,
            area_m2=result.area_m2,
            point_count=result.point_count,
            total_distance_m=result.total_distance_m,
        )

    def check_collision(self, req: CollisionRequest) -> CollisionResponse:
        territories = [
            TerritoryPolygon(
                territory_id=t.id,
                owner_id=t.user_id,
                points=tuple(_to_points(t.path)),
                name=t.name,
            )
            for t in req.territories
        ]
        detector = CollisionDetector(TerritoryCache(territories))
        path = _to_points(req.path) or None
        result: CollisionResult = detector.check_comprehensive(
            GeoPoint(req.point.lat, req.point.lon), path, req.exclude_owner_id
        )
        _logger.info(
            "Collision check against %d territories: %s",
            len(territories),
            result.warning_level.name,
        )
        return CollisionResponse(
            has_collision=result.has_collision,
            kind=result.kind.value if result.kind else None,
            message=result.message,
            closest_distance_m=result.closest_distance_m,
            warning_level=result.warning_level.name.lower(),
            territory_name=result.territory_name,
        )

    def to_display(self, points: list[PointModel]) -> DatumResponse:
        return DatumResponse(points=_to_models([to_display_datum(p) for p in _to_points(points)]))

    def from_display(self, points: list[PointModel]) -> DatumResponse:
        return DatumResponse(
            points=_to_models([from_display_datum(p) for p in _to_points(points)])
        )
