"""Per-fix rules — FixFilter and SpeedGuard."""

from __future__ import annotations

import enum
from dataclasses import dataclass

from land_claim.geo.models import PositionFix
from land_claim.geo.sphere import distance_m


class RejectReason(enum.Enum):
    INACCURATE = "inaccurate"
    TOO_CLOSE = "too_close"


@dataclass(frozen=True)
class FilterDecision:
    """Outcome of :meth:`FixFilter.accept`."""

    accepted: bool
    reason: RejectReason | None = None
    distance_m: float = 0.0
    """Distance to the last accepted fix (0.0 for the first fix or inaccurate fixes)."""


class FixFilter:
    """Drops inaccurate fixes and stationary jitter.

    Parameters
    ----------
    max_accuracy_m:
        Fixes whose accuracy radius exceeds this are rejected.  Negative
        accuracies (invalid fix) are always rejected.
    min_distance_m:
        A fix closer than this to the last accepted fix is rejected.
    """

    def __init__(self, max_accuracy_m: float = 50.0, min_distance_m: float = 10.0) -> None:
        self._max_accuracy_m = max_accuracy_m
        self._min_distance_m = min_distance_m

    def accept(self, fix: PositionFix, last_accepted: PositionFix | None) -> FilterDecision:
        """Decide whether *fix* may be appended after *last_accepted*."""
        accuracy = fix.horizontal_accuracy
        if accuracy < 0 or accuracy > self._max_accuracy_m:
            return FilterDecision(accepted=False, reason=RejectReason.INACCURATE)

        if last_accepted is None:
            return FilterDecision(accepted=True)

        dist = distance_m(last_accepted.point, fix.point)
        if dist < self._min_distance_m:
            return FilterDecision(accepted=False, reason=RejectReason.TOO_CLOSE, distance_m=dist)

        return FilterDecision(accepted=True, distance_m=dist)


class SpeedLevel(enum.IntEnum):
    NORMAL = 0
    WARN = 1
    VIOLATION = 2


@dataclass(frozen=True)
class SpeedReading:
    """Instantaneous speed classification.  ``speed_kmh`` is None when skipped."""

    level: SpeedLevel
    speed_kmh: float | None = None


@dataclass(frozen=True)
class SpeedDecision:
    """A :class:`SpeedReading` plus the tolerance-window verdict."""

    reading: SpeedReading
    terminate: bool = False
    remaining_s: float | None = None
    """Seconds left in the tolerance window; None when no window is open."""

    @property
    def level(self) -> SpeedLevel:
        return self.reading.level

    @property
    def speed_kmh(self) -> float | None:
        return self.reading.speed_kmh


class SpeedGuard:
    """Classifies speed between accepted fixes and tracks the violation window.

    The same primitive serves both policies: territory claiming terminates
    the session on the first violation (``grace_period_s=0``), exploration
    allows a countdown of continued violation first (``grace_period_s=10``).

    Parameters
    ----------
    warning_kmh:
        Speeds at or above this raise a warning.
    limit_kmh:
        Speeds at or above this are a violation.
    min_interval_s:
        Speed is not evaluated over shorter intervals (GPS jitter dominates).
    max_accuracy_m:
        Speed is not evaluated for fixes less accurate than this.
    grace_period_s:
        Seconds of continued violation tolerated before termination.
    """

    def __init__(
        self,
        warning_kmh: float = 25.0,
        limit_kmh: float = 30.0,
        min_interval_s: float = 5.0,
        max_accuracy_m: float = 25.0,
        grace_period_s: float = 0.0,
    ) -> None:
        if limit_kmh < warning_kmh:
            raise ValueError("limit_kmh must be >= warning_kmh")
        if grace_period_s < 0:
            raise ValueError("grace_period_s must be >= 0")
        self._warning_kmh = warning_kmh
        self._limit_kmh = limit_kmh
        self._min_interval_s = min_interval_s
        self._max_accuracy_m = max_accuracy_m
        self._grace_period_s = grace_period_s
        self._violation_started_at: float | None = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def violation_started_at(self) -> float | None:
        """Timestamp of the first violating fix of the open window, or None."""
        return self._violation_started_at

    def evaluate(
        self,
        new_fix: PositionFix,
        last_fix: PositionFix | None,
        last_timestamp: float | None,
    ) -> SpeedReading:
        """Classify the speed from *last_fix* to *new_fix* (stateless)."""
        if last_fix is None or last_timestamp is None:
            return SpeedReading(SpeedLevel.NORMAL)
        if new_fix.horizontal_accuracy > self._max_accuracy_m:
            return SpeedReading(SpeedLevel.NORMAL)

        elapsed = new_fix.timestamp - last_timestamp
        if elapsed <= 0 or elapsed < self._min_interval_s:
            return SpeedReading(SpeedLevel.NORMAL)

        speed_kmh = distance_m(last_fix.point, new_fix.point) / elapsed * 3.6
        if speed_kmh >= self._limit_kmh:
            return SpeedReading(SpeedLevel.VIOLATION, speed_kmh)
        if speed_kmh >= self._warning_kmh:
            return SpeedReading(SpeedLevel.WARN, speed_kmh)
        return SpeedReading(SpeedLevel.NORMAL, speed_kmh)

    def check(
        self,
        new_fix: PositionFix,
        last_fix: PositionFix | None,
        last_timestamp: float | None,
    ) -> SpeedDecision:
        """Evaluate *new_fix* and advance the violation window."""
        reading = self.evaluate(new_fix, last_fix, last_timestamp)
        if reading.level is not SpeedLevel.VIOLATION:
            self._violation_started_at = None
            return SpeedDecision(reading)

        if self._violation_started_at is None:
            self._violation_started_at = new_fix.timestamp
        return self._window_decision(reading, new_fix.timestamp)

    def poll(self, now: float) -> SpeedDecision | None:
        """Re-check an open violation window at *now*; None when no window is open."""
        if self._violation_started_at is None:
            return None
        return self._window_decision(SpeedReading(SpeedLevel.VIOLATION), now)

    def reset(self) -> None:
        """Close any open violation window."""
        self._violation_started_at = None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _window_decision(self, reading: SpeedReading, now: float) -> SpeedDecision:
        elapsed = now - self._violation_started_at  # type: ignore[operator]
        remaining = self._grace_period_s - elapsed
        if remaining <= 0:
            return SpeedDecision(reading, terminate=True, remaining_s=0.0)
        return SpeedDecision(reading, terminate=False, remaining_s=remaining)
