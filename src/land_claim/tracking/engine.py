"""TrackingEngine — turns sampled fixes into a validated territory claim."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable

from land_claim.config import EngineConfig
from land_claim.territory.collision import CollisionDetector
from land_claim.territory.models import ClaimPayload, WarningLevel
from land_claim.territory.payload import build_claim_payload
from land_claim.territory.validator import TerritoryValidator
from land_claim.tracking.events import EngineEvent, EventKind
from land_claim.tracking.filters import FixFilter, RejectReason, SpeedGuard, SpeedLevel
from land_claim.tracking.path import ClosureDetector
from land_claim.tracking.session import SessionState, TrackingSession

_logger = logging.getLogger(__name__)

# Log only every Nth consecutive inaccurate fix
_INACCURATE_LOG_EVERY = 5


class TrackingEngine:
    """Single-writer claim session: Fix Filter → Speed Guard → Path → Closure → Validation.

    Parameters
    ----------
    source:
        Object with ``current_fix() -> PositionFix | None``.
    config:
        Thresholds; defaults to :meth:`EngineConfig.territory_claim`.
    collision_detector:
        Optional :class:`~land_claim.territory.collision.CollisionDetector`
        run on every recorded point.
    owner_id:
        The tracking player's id; their own territories are never collisions.
    scheduler:
        Optional object with ``start(callback)`` and ``stop()`` — typically a
        :class:`~land_claim.tracking.ticker.SessionTicker`.  Without one, the
        caller drives :meth:`tick` directly.
    clock:
        Returns the current time in the same base as fix timestamps.
    """

    def __init__(
        self,
        source,
        config: EngineConfig | None = None,
        collision_detector: CollisionDetector | None = None,
        owner_id: str | None = None,
        scheduler=None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._source = source
        self._cfg = config or EngineConfig.territory_claim()
        self._collision = collision_detector
        self._owner_id = owner_id
        self._scheduler = scheduler
        self._clock = clock

        self._fix_filter = FixFilter(self._cfg.max_accuracy_m, self._cfg.min_point_distance_m)
        self._speed_guard = SpeedGuard(
            warning_kmh=self._cfg.speed_warning_kmh,
            limit_kmh=self._cfg.speed_limit_kmh,
            min_interval_s=self._cfg.speed_min_interval_s,
            max_accuracy_m=self._cfg.speed_max_accuracy_m,
            grace_period_s=self._cfg.speed_grace_period_s,
        )
        self._closure = ClosureDetector(self._cfg.min_path_points, self._cfg.closure_distance_m)
        self._validator = TerritoryValidator(
            min_points=self._cfg.min_path_points,
            min_total_distance_m=self._cfg.min_total_distance_m,
            min_area_m2=self._cfg.min_area_m2,
        )

        self._lock = threading.RLock()
        self._session = TrackingSession()
        self._callbacks: list[Callable[[list[EngineEvent]], None]] = []

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def config(self) -> EngineConfig:
        return self._cfg

    @property
    def state(self) -> SessionState:
        """Immutable snapshot of the current session."""
        with self._lock:
            return self._session.view()

    def subscribe(self, callback: Callable[[list[EngineEvent]], None]) -> None:
        """Register *callback* to receive every non-empty event list."""
        self._callbacks.append(callback)

    def start(self) -> list[EngineEvent]:
        """Begin a new claim session.

        Refused (no session, ``START_REFUSED`` event) when the current fix is
        inside another player's territory.  A no-op while already tracking.
        """
        with self._lock:
            if self._session.is_tracking:
                return []
            now = self._clock()

            if self._collision is not None:
                fix = self._read_fix()
                if fix is not None:
                    result = self._collision.check_point(fix.point, self._owner_id)
                    if result.has_collision:
                        _logger.error("Cannot start claiming inside %s", result.territory_name)
                        events = [EngineEvent(EventKind.START_REFUSED, now, collision=result)]
                        self._notify(events)
                        return events

            self._session = TrackingSession(is_tracking=True, started_at=now)
            self._speed_guard.reset()
            _logger.info("Claim tracking started")
            if self._scheduler is not None:
                self._scheduler.start(self.tick)
            events = [EngineEvent(EventKind.TRACKING_STARTED, now)]

        self._notify(events)
        return events

    def stop(self) -> list[EngineEvent]:
        """Stop tracking and discard the session."""
        return self._end(EventKind.TRACKING_STOPPED)

    def cancel(self) -> list[EngineEvent]:
        """Abandon the session (same clearing path as :meth:`stop`)."""
        return self._end(EventKind.TRACKING_CANCELLED)

    def reopen(self) -> list[EngineEvent]:
        """Resume recording after a failed validation so the loop can close again."""
        with self._lock:
            session = self._session
            if not session.is_tracking or not session.is_closed:
                return []
            if session.validation is not None and session.validation.passed:
                return []
            session.is_closed = False
            session.validation = None
            _logger.info("Tracking resumed after failed validation")
            events = [
                EngineEvent(
                    EventKind.TRACKING_RESUMED, self._clock(), point_count=len(session.path)
                )
            ]

        self._notify(events)
        return events

    def submit(self, sink: Callable[[ClaimPayload], None]) -> ClaimPayload:
        """Hand the validated claim to *sink*, then clear the session.

        Raises
        ------
        RuntimeError
            If the session has no passed validation.
        """
        with self._lock:
            session = self._session
            result = session.validation
            if not session.is_closed or result is None or not result.passed:
                raise RuntimeError("No validated territory to submit")

            started_at = session.started_at if session.started_at is not None else self._clock()
            payload = build_claim_payload(session.path.snapshot(), result.area_m2, started_at)
            sink(payload)
            _logger.info("Claim submitted: %d points, %.0fm²", payload.point_count, payload.area_m2)
            self._clear_locked()
            events = [
                EngineEvent(
                    EventKind.CLAIM_SUBMITTED,
                    self._clock(),
                    point_count=payload.point_count,
                    validation=result,
                )
            ]

        self._stop_scheduler()
        self._notify(events)
        return payload

    def tick(self) -> list[EngineEvent]:
        """Sample the position source once and advance the session.

        Returns the events produced (empty when not tracking or already closed).
        """
        with self._lock:
            if not self._session.is_tracking or self._session.is_closed:
                return []
            events = self._tick_locked(self._clock())
            terminated = not self._session.is_tracking

        if terminated:
            self._stop_scheduler()
        self._notify(events)
        return events

    # ------------------------------------------------------------------
    # Tick pipeline
    # ------------------------------------------------------------------

    def _tick_locked(self, now: float) -> list[EngineEvent]:
        session = self._session
        fix = self._read_fix()
        if fix is None:
            return self._poll_speed(now) or [EngineEvent(EventKind.NO_FIX, now)]

        decision = self._fix_filter.accept(fix, session.last_fix)
        if not decision.accepted:
            if decision.reason is RejectReason.INACCURATE:
                session.rejected_inaccurate += 1
                if session.rejected_inaccurate % _INACCURATE_LOG_EVERY == 1:
                    _logger.warning("Dropped fix with accuracy %.0fm", fix.horizontal_accuracy)
            events = [
                EngineEvent(
                    EventKind.FIX_REJECTED,
                    now,
                    point_count=len(session.path),
                    distance_m=decision.distance_m,
                    reject_reason=decision.reason,
                )
            ]
            return events + self._poll_speed(now)
        session.rejected_inaccurate = 0

        events: list[EngineEvent] = []
        speed = self._speed_guard.check(fix, session.last_fix, session.last_accepted_at)
        session.speed_level = speed.level
        session.speed_kmh = speed.speed_kmh
        session.speed_countdown_s = speed.remaining_s

        if speed.level is SpeedLevel.VIOLATION:
            if speed.terminate:
                return self._terminate(now, speed.speed_kmh)
            _logger.warning(
                "Speed %.1f km/h over limit, %.0fs to slow down",
                speed.speed_kmh or 0.0,
                speed.remaining_s or 0.0,
            )
            return [
                EngineEvent(
                    EventKind.SPEED_VIOLATION,
                    now,
                    point_count=len(session.path),
                    speed_kmh=speed.speed_kmh,
                    countdown_s=speed.remaining_s,
                )
            ]

        if speed.level is SpeedLevel.WARN:
            _logger.warning("Speed warning: %.1f km/h", speed.speed_kmh or 0.0)
            events.append(EngineEvent(EventKind.SPEED_WARNING, now, speed_kmh=speed.speed_kmh))

        count = session.path.append(fix.point)
        session.last_fix = fix
        session.last_accepted_at = fix.timestamp
        if count == 1:
            _logger.info("Recorded point 1 (start)")
        else:
            _logger.info("Recorded point %d, %.1fm from previous", count, decision.distance_m)
        events.append(
            EngineEvent(
                EventKind.POINT_RECORDED,
                now,
                point_count=count,
                distance_m=decision.distance_m,
                speed_kmh=speed.speed_kmh,
            )
        )

        snapshot = session.path.snapshot()

        if self._collision is not None:
            collision = self._collision.check_comprehensive(fix.point, snapshot, self._owner_id)
            session.collision = collision
            if collision.warning_level is not WarningLevel.SAFE:
                events.append(
                    EngineEvent(
                        EventKind.COLLISION,
                        now,
                        point_count=count,
                        distance_m=collision.closest_distance_m,
                        collision=collision,
                    )
                )

        events.extend(self._check_closure(now, snapshot))
        return events

    def _check_closure(self, now: float, snapshot) -> list[EngineEvent]:
        session = self._session
        if session.is_closed or len(snapshot) < self._cfg.min_path_points:
            return []

        gap = self._closure.gap_m(snapshot)
        _logger.info(
            "Closure check: %.1fm from start (need <= %.0fm)", gap, self._cfg.closure_distance_m
        )
        if not self._closure.check_closure(snapshot):
            return []

        session.is_closed = True
        _logger.info("Loop closed with %d points", len(snapshot))
        result = self._validator.validate(snapshot)
        session.validation = result
        kind = EventKind.VALIDATION_PASSED if result.passed else EventKind.VALIDATION_FAILED
        return [
            EngineEvent(EventKind.PATH_CLOSED, now, point_count=len(snapshot), distance_m=gap),
            EngineEvent(kind, now, point_count=len(snapshot), validation=result),
        ]

    def _poll_speed(self, now: float) -> list[EngineEvent]:
        """Advance an open violation window on ticks without an accepted fix."""
        decision = self._speed_guard.poll(now)
        if decision is None:
            return []
        if decision.terminate:
            return self._terminate(now, self._session.speed_kmh)
        self._session.speed_countdown_s = decision.remaining_s
        return [
            EngineEvent(
                EventKind.SPEED_VIOLATION,
                now,
                point_count=len(self._session.path),
                speed_kmh=self._session.speed_kmh,
                countdown_s=decision.remaining_s,
            )
        ]

    def _terminate(self, now: float, speed_kmh: float | None) -> list[EngineEvent]:
        count = len(self._session.path)
        _logger.error("Speed %.1f km/h over limit, tracking stopped", speed_kmh or 0.0)
        self._clear_locked()
        return [
            EngineEvent(EventKind.SPEED_VIOLATION, now, point_count=count, speed_kmh=speed_kmh),
            EngineEvent(EventKind.SESSION_TERMINATED, now, point_count=count, speed_kmh=speed_kmh),
        ]

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _end(self, kind: EventKind) -> list[EngineEvent]:
        with self._lock:
            if not self._session.is_tracking:
                return []
            count = len(self._session.path)
            self._clear_locked()
            _logger.info("Claim tracking ended (%s), %d points discarded", kind.value, count)
            events = [EngineEvent(kind, self._clock(), point_count=count)]

        self._stop_scheduler()
        self._notify(events)
        return events

    def _clear_locked(self) -> None:
        """Replace the session in one step; any later tick sees an idle engine."""
        self._session = TrackingSession()
        self._speed_guard.reset()

    def _stop_scheduler(self) -> None:
        if self._scheduler is not None:
            self._scheduler.stop()

    def _read_fix(self):
        try:
            return self._source.current_fix()
        except Exception as exc:
            _logger.warning("Position source failed: %s", exc)
            return None

    def _notify(self, events: list[EngineEvent]) -> None:
        if not events:
            return
        for cb in self._callbacks:
            cb(events)
