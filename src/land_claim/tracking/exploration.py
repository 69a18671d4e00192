"""ExplorationSession — distance walked, under the lenient speed policy.

Unlike claim tracking, exploring tolerates a burst of excess speed: the
player gets a countdown (10 s by default) to slow down before the session
fails.  Fixes recorded while over the limit do not count towards distance.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from land_claim.config import ExplorationConfig
from land_claim.geo.models import PositionFix
from land_claim.geo.sphere import distance_m
from land_claim.tracking.filters import FixFilter, SpeedGuard, SpeedLevel

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExplorationSummary:
    distance_m: float
    duration_s: float
    failed: bool


class ExplorationSession:
    """Accumulates walked distance from a stream of fixes.

    Args:
        config: Thresholds; see :class:`~land_claim.config.ExplorationConfig`.
        clock: Returns the current time in the same base as fix timestamps.
    """

    def __init__(
        self,
        config: ExplorationConfig | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._cfg = config or ExplorationConfig()
        self._clock = clock
        self._fix_filter = FixFilter(max_accuracy_m=self._cfg.max_accuracy_m, min_distance_m=0.0)
        self._speed_guard = SpeedGuard(
            warning_kmh=self._cfg.speed_limit_kmh,
            limit_kmh=self._cfg.speed_limit_kmh,
            min_interval_s=self._cfg.min_interval_s,
            max_accuracy_m=self._cfg.speed_max_accuracy_m,
            grace_period_s=self._cfg.speed_grace_period_s,
        )
        self._active = False
        self._failed = False
        self._started_at: float | None = None
        self._last_fix: PositionFix | None = None
        self.total_distance_m = 0.0
        self.current_speed_kmh = 0.0
        self.countdown_s: float | None = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def is_active(self) -> bool:
        return self._active

    @property
    def failed(self) -> bool:
        """True once the session was stopped for exceeding the speed limit."""
        return self._failed

    def start(self) -> None:
        self._active = True
        self._failed = False
        self._started_at = self._clock()
        self._last_fix = None
        self._speed_guard.reset()
        self.total_distance_m = 0.0
        self.current_speed_kmh = 0.0
        self.countdown_s = None
        _logger.info("Exploration started")

    def process(self, fix: PositionFix) -> float:
        """Feed one fix; return the distance added (0.0 when the fix is not counted)."""
        if not self._active:
            return 0.0

        if not self._fix_filter.accept(fix, self._last_fix).accepted:
            return 0.0

        last = self._last_fix
        if last is None:
            self._last_fix = fix
            return 0.0
        if fix.timestamp - last.timestamp < self._cfg.min_interval_s:
            return 0.0

        speed = self._speed_guard.check(fix, last, last.timestamp)
        if speed.speed_kmh is not None:
            self.current_speed_kmh = speed.speed_kmh

        if speed.level is SpeedLevel.VIOLATION:
            # Resync so the next reading measures fix-to-fix speed again.
            self._last_fix = fix
            self.countdown_s = speed.remaining_s
            if speed.terminate:
                self._fail()
            else:
                _logger.warning(
                    "Over speed %.1f km/h, %.0fs to slow down",
                    self.current_speed_kmh,
                    speed.remaining_s or 0.0,
                )
            return 0.0
        self.countdown_s = None

        moved = distance_m(last.point, fix.point)
        if moved > self._cfg.max_jump_m:
            _logger.warning("Ignored GPS jump of %.0fm", moved)
            return 0.0
        if moved < self._cfg.min_movement_m:
            return 0.0

        self.total_distance_m += moved
        self._last_fix = fix
        return moved

    def tick(self) -> float | None:
        """Advance the violation countdown; returns seconds left, or None."""
        if not self._active:
            return None
        decision = self._speed_guard.poll(self._clock())
        if decision is None:
            self.countdown_s = None
            return None
        if decision.terminate:
            self._fail()
            return 0.0
        self.countdown_s = decision.remaining_s
        return decision.remaining_s

    def stop(self) -> ExplorationSummary:
        """End the session and return its summary."""
        summary = ExplorationSummary(
            distance_m=self.total_distance_m,
            duration_s=self._duration(),
            failed=self._failed,
        )
        self._active = False
        self._speed_guard.reset()
        _logger.info("Exploration ended: %.1fm in %.0fs", summary.distance_m, summary.duration_s)
        return summary

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _duration(self) -> float:
        if self._started_at is None:
            return 0.0
        return max(0.0, self._clock() - self._started_at)

    def _fail(self) -> None:
        _logger.error(
            "Exploration failed: speed over %.0f km/h for too long", self._cfg.speed_limit_kmh
        )
        self._failed = True
        self._active = False
        self.countdown_s = 0.0
        self._speed_guard.reset()
