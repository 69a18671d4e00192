"""Territory data models: claimed polygons, validation and collision outcomes."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

from land_claim.geo.models import GeoPoint


@dataclass(frozen=True)
class TerritoryPolygon:
    """A previously validated claim owned by one player.

    The vertex list is implicitly closed (last vertex connects to the first).
    """

    territory_id: str
    owner_id: str
    points: tuple[GeoPoint, ...]
    name: str | None = None

    @property
    def display_name(self) -> str:
        return self.name or f"Territory {self.territory_id[:8]}"

    @property
    def is_degenerate(self) -> bool:
        """True when the polygon has fewer than 3 vertices and cannot enclose area."""
        return len(self.points) < 3

    def is_owned_by(self, owner_id: str | None) -> bool:
        """Case-insensitive owner comparison (owner ids are UUID strings)."""
        return owner_id is not None and self.owner_id.lower() == owner_id.lower()

    @classmethod
    def from_record(cls, d: dict) -> TerritoryPolygon:
        """Create a :class:`TerritoryPolygon` from a backend territory row.

        Expected keys: ``id``, ``user_id``, ``path`` (list of ``{"lat", "lon"}``)
        and optionally ``name``.  Malformed path entries are skipped.
        """
        points = []
        for item in d.get("path") or []:
            try:
                points.append(GeoPoint.from_dict(item))
            except (KeyError, TypeError, ValueError):
                continue
        return cls(
            territory_id=str(d.get("id", "")),
            owner_id=str(d.get("user_id", "")),
            points=tuple(points),
            name=d.get("name"),
        )


class ValidationFailure(enum.Enum):
    INSUFFICIENT_POINTS = "insufficient_points"
    INSUFFICIENT_DISTANCE = "insufficient_distance"
    SELF_INTERSECTION = "self_intersection"
    INSUFFICIENT_AREA = "insufficient_area"


_FAILURE_MESSAGES = {
    ValidationFailure.INSUFFICIENT_POINTS: "Not enough points recorded",
    ValidationFailure.INSUFFICIENT_DISTANCE: "Walked distance is too short",
    ValidationFailure.SELF_INTERSECTION: "Path crosses itself, do not trace a figure eight",
    ValidationFailure.INSUFFICIENT_AREA: "Enclosed area is too small",
}


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating a closed path."""

    passed: bool
    reason: ValidationFailure | None = None
    """Exactly one failure reason when ``passed`` is False, else None."""

    area_m2: float = 0.0
    """Enclosed area on success; 0.0 on failure."""

    point_count: int = 0
    total_distance_m: float = 0.0

    @property
    def message(self) -> str | None:
        """Default English description of the failure reason."""
        return _FAILURE_MESSAGES.get(self.reason) if self.reason else None


class CollisionKind(enum.Enum):
    POINT_IN_TERRITORY = "point_in_territory"
    PATH_CROSSES_TERRITORY = "path_crosses_territory"


class WarningLevel(enum.IntEnum):
    SAFE = 0
    CAUTION = 1
    WARNING = 2
    DANGER = 3
    VIOLATION = 4


@dataclass(frozen=True)
class CollisionResult:
    """Outcome of a collision check against foreign territories."""

    has_collision: bool
    kind: CollisionKind | None = None
    message: str | None = None
    closest_distance_m: float | None = None
    warning_level: WarningLevel = WarningLevel.SAFE
    territory_name: str | None = None

    @classmethod
    def safe(cls) -> CollisionResult:
        return cls(has_collision=False)

    @property
    def should_show_banner(self) -> bool:
        return self.warning_level is not WarningLevel.SAFE

    @property
    def should_stop_tracking(self) -> bool:
        return self.warning_level is WarningLevel.VIOLATION


@dataclass
class ClaimPayload:
    """Values handed to the upload sink after a successful validation."""

    path: list[dict[str, float]] = field(default_factory=list)
    """Ordered ``{"lat", "lon"}`` pairs."""

    area_m2: float = 0.0
    started_at: str = ""
    """ISO-8601 UTC timestamp of the session start."""

    point_count: int = 0
