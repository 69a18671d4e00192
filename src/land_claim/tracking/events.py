"""Structured events emitted by the tracking engine for the presentation layer."""

from __future__ import annotations

import enum
from dataclasses import dataclass

from land_claim.territory.models import CollisionResult, ValidationResult
from land_claim.tracking.filters import RejectReason


class EventKind(enum.Enum):
    TRACKING_STARTED = "tracking_started"
    START_REFUSED = "start_refused"
    TRACKING_STOPPED = "tracking_stopped"
    TRACKING_CANCELLED = "tracking_cancelled"
    TRACKING_RESUMED = "tracking_resumed"
    NO_FIX = "no_fix"
    FIX_REJECTED = "fix_rejected"
    POINT_RECORDED = "point_recorded"
    SPEED_WARNING = "speed_warning"
    SPEED_VIOLATION = "speed_violation"
    SESSION_TERMINATED = "session_terminated"
    COLLISION = "collision"
    PATH_CLOSED = "path_closed"
    VALIDATION_PASSED = "validation_passed"
    VALIDATION_FAILED = "validation_failed"
    CLAIM_SUBMITTED = "claim_submitted"


@dataclass(frozen=True)
class EngineEvent:
    """One thing that happened during a tick (or a start/stop call).

    Only the payload fields relevant to ``kind`` are set.
    """

    kind: EventKind
    timestamp: float
    point_count: int = 0
    distance_m: float | None = None
    speed_kmh: float | None = None
    countdown_s: float | None = None
    reject_reason: RejectReason | None = None
    validation: ValidationResult | None = None
    collision: CollisionResult | None = None
