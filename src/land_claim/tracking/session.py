"""TrackingSession — the engine's mutable state — and its read-only view."""

from __future__ import annotations

from dataclasses import dataclass, field

from land_claim.geo.models import GeoPoint, PositionFix
from land_claim.territory.models import CollisionResult, ValidationResult
from land_claim.tracking.filters import SpeedLevel
from land_claim.tracking.path import PathStore


@dataclass
class TrackingSession:
    """State of one claim attempt.  Replaced wholesale when cleared."""

    path: PathStore = field(default_factory=PathStore)
    is_tracking: bool = False
    is_closed: bool = False
    started_at: float | None = None
    last_fix: PositionFix | None = None
    last_accepted_at: float | None = None
    speed_level: SpeedLevel = SpeedLevel.NORMAL
    speed_kmh: float | None = None
    speed_countdown_s: float | None = None
    validation: ValidationResult | None = None
    collision: CollisionResult | None = None
    rejected_inaccurate: int = 0
    """Consecutive fixes dropped for poor accuracy (throttles log output)."""

    def view(self) -> SessionState:
        return SessionState(
            path=self.path.snapshot(),
            is_tracking=self.is_tracking,
            is_closed=self.is_closed,
            started_at=self.started_at,
            speed_level=self.speed_level,
            speed_kmh=self.speed_kmh,
            speed_countdown_s=self.speed_countdown_s,
            validation=self.validation,
            collision=self.collision,
        )


@dataclass(frozen=True)
class SessionState:
    """Immutable snapshot of a :class:`TrackingSession` for rendering."""

    path: tuple[GeoPoint, ...] = ()
    is_tracking: bool = False
    is_closed: bool = False
    started_at: float | None = None
    speed_level: SpeedLevel = SpeedLevel.NORMAL
    speed_kmh: float | None = None
    speed_countdown_s: float | None = None
    validation: ValidationResult | None = None
    collision: CollisionResult | None = None

    @property
    def ready_to_submit(self) -> bool:
        return self.is_closed and self.validation is not None and self.validation.passed
