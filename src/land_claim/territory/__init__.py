"""Territory validation and collision detection."""

from land_claim.territory.cache import TerritoryCache
from land_claim.territory.collision import CollisionDetector, warning_level_for_distance
from land_claim.territory.models import (
    ClaimPayload,
    CollisionKind,
    CollisionResult,
    TerritoryPolygon,
    ValidationFailure,
    ValidationResult,
    WarningLevel,
)
from land_claim.territory.payload import build_claim_payload
from land_claim.territory.validator import TerritoryValidator

__all__ = [
    "ClaimPayload",
    "CollisionDetector",
    "CollisionKind",
    "CollisionResult",
    "TerritoryCache",
    "TerritoryPolygon",
    "TerritoryValidator",
    "ValidationFailure",
    "ValidationResult",
    "WarningLevel",
    "build_claim_payload",
    "warning_level_for_distance",
]
