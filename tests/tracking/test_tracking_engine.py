"""TrackingEngine — claim sessions end to end with a deterministic clock."""

from __future__ import annotations

import math
from unittest.mock import MagicMock

import pytest

from land_claim.config import EngineConfig
from land_claim.geo.models import GeoPoint, PositionFix
from land_claim.geo.sphere import EARTH_RADIUS_M, distance_m
from land_claim.territory.cache import TerritoryCache
from land_claim.territory.collision import CollisionDetector
from land_claim.territory.models import ClaimPayload, TerritoryPolygon, ValidationFailure
from land_claim.tracking.engine import TrackingEngine
from land_claim.tracking.events import EventKind
from land_claim.tracking.filters import RejectReason
from land_claim.tracking.source import LatestFixSource, ReplaySource

_ORIGIN = GeoPoint(31.2304, 121.4737)
_M_PER_DEG = math.pi * EARTH_RADIUS_M / 180.0

_SQUARE = [
    (0, 0), (0, 20), (0, 40), (0, 60), (20, 60), (40, 60),
    (60, 60), (60, 40), (60, 20), (60, 0), (40, 0), (20, 0),
]

_FIGURE_EIGHT = [
    (0, 0), (0, 15), (0, 30), (0, 45), (0, 60), (20, 40), (40, 20), (60, 0),
    (60, 20), (60, 40), (60, 60), (48, 48), (36, 36), (24, 24), (12, 12), (2, 2),
]


def _pt(north_m: float, east_m: float) -> GeoPoint:
    return GeoPoint(
        _ORIGIN.latitude + north_m / _M_PER_DEG,
        _ORIGIN.longitude + east_m / (_M_PER_DEG * math.cos(math.radians(_ORIGIN.latitude))),
    )


def _make_fixes(offsets, interval_s: float = 10.0, accuracy: float = 5.0) -> list[PositionFix]:
    return [
        PositionFix(_pt(n, e), horizontal_accuracy=accuracy, timestamp=i * interval_s)
        for i, (n, e) in enumerate(offsets)
    ]


class _FakeClock:
    def __init__(self, now: float = 0.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def _run(engine: TrackingEngine, clock: _FakeClock, fixes: list[PositionFix]) -> list:
    """Tick once per fix with the clock at the fix time; return all events."""
    events = []
    for fix in fixes:
        clock.now = fix.timestamp
        events.extend(engine.tick())
    return events


def _kinds(events) -> list[EventKind]:
    return [e.kind for e in events]


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


def test_start_emits_event_and_starts_scheduler():
    scheduler = MagicMock()
    engine = TrackingEngine(ReplaySource([]), scheduler=scheduler, clock=_FakeClock())
    events = engine.start()
    assert _kinds(events) == [EventKind.TRACKING_STARTED]
    assert engine.state.is_tracking is True
    scheduler.start.assert_called_once_with(engine.tick)


def test_start_twice_is_noop():
    engine = TrackingEngine(ReplaySource([]), clock=_FakeClock())
    engine.start()
    assert engine.start() == []


def test_tick_when_idle_returns_nothing():
    engine = TrackingEngine(ReplaySource(_make_fixes(_SQUARE)), clock=_FakeClock())
    assert engine.tick() == []


def test_no_fix_event():
    engine = TrackingEngine(ReplaySource([]), clock=_FakeClock())
    engine.start()
    assert _kinds(engine.tick()) == [EventKind.NO_FIX]


def test_cancel_stops_scheduler_and_clears_session():
    scheduler = MagicMock()
    clock = _FakeClock()
    fixes = _make_fixes(_SQUARE)
    engine = TrackingEngine(ReplaySource(fixes), scheduler=scheduler, clock=clock)
    engine.start()
    _run(engine, clock, fixes[:3])

    events = engine.cancel()

    assert _kinds(events) == [EventKind.TRACKING_CANCELLED]
    assert events[0].point_count == 3
    scheduler.stop.assert_called_once()
    assert engine.state.is_tracking is False
    assert engine.state.path == ()
    assert engine.tick() == []


def test_stop_when_idle_is_noop():
    scheduler = MagicMock()
    engine = TrackingEngine(ReplaySource([]), scheduler=scheduler, clock=_FakeClock())
    assert engine.stop() == []
    scheduler.stop.assert_not_called()


def test_subscribers_receive_event_lists():
    received = []
    engine = TrackingEngine(ReplaySource([]), clock=_FakeClock())
    engine.subscribe(received.append)
    engine.start()
    engine.tick()
    assert [_kinds(batch) for batch in received] == [
        [EventKind.TRACKING_STARTED],
        [EventKind.NO_FIX],
    ]


def test_failing_source_is_treated_as_no_fix():
    source = MagicMock()
    source.current_fix.side_effect = OSError("gps unavailable")
    engine = TrackingEngine(source, clock=_FakeClock())
    engine.start()
    assert _kinds(engine.tick()) == [EventKind.NO_FIX]


# ---------------------------------------------------------------------------
# Fix filtering
# ---------------------------------------------------------------------------


def test_inaccurate_fix_rejected():
    fixes = _make_fixes([(0, 0)], accuracy=80.0)
    engine = TrackingEngine(ReplaySource(fixes), clock=_FakeClock())
    engine.start()
    events = engine.tick()
    assert _kinds(events) == [EventKind.FIX_REJECTED]
    assert events[0].reject_reason is RejectReason.INACCURATE
    assert engine.state.path == ()


def test_accepted_points_never_closer_than_min_distance():
    offsets = [(0, 0), (0, 4), (0, 12), (3, 14), (0, 25), (0, 33), (0, 47), (2, 48), (0, 60)]
    clock = _FakeClock()
    engine = TrackingEngine(ReplaySource(_make_fixes(offsets)), clock=clock)
    engine.start()
    _run(engine, clock, _make_fixes(offsets))

    path = engine.state.path
    assert len(path) >= 2
    min_distance = engine.config.min_point_distance_m
    for a, b in zip(path, path[1:]):
        assert distance_m(a, b) >= min_distance


# ---------------------------------------------------------------------------
# Closure and validation
# ---------------------------------------------------------------------------


def test_valid_square_closes_and_passes():
    clock = _FakeClock()
    fixes = _make_fixes(_SQUARE)
    engine = TrackingEngine(ReplaySource(fixes), clock=clock)
    engine.start()
    events = _run(engine, clock, fixes)

    assert EventKind.PATH_CLOSED in _kinds(events)
    assert EventKind.VALIDATION_PASSED in _kinds(events)
    state = engine.state
    assert state.is_closed is True
    assert state.ready_to_submit is True
    assert len(state.path) == 11
    assert state.validation.area_m2 == pytest.approx(3600.0, rel=0.10)


def test_closed_session_ignores_further_fixes():
    clock = _FakeClock()
    fixes = _make_fixes(_SQUARE)
    engine = TrackingEngine(ReplaySource(fixes), clock=clock)
    engine.start()
    _run(engine, clock, fixes[:11])
    assert engine.state.is_closed is True
    assert engine.tick() == []
    assert len(engine.state.path) == 11


def test_figure_eight_fails_self_intersection():
    clock = _FakeClock()
    fixes = _make_fixes(_FIGURE_EIGHT)
    engine = TrackingEngine(ReplaySource(fixes), clock=clock)
    engine.start()
    events = _run(engine, clock, fixes)

    failed = [e for e in events if e.kind is EventKind.VALIDATION_FAILED]
    assert len(failed) == 1
    assert failed[0].validation.reason is ValidationFailure.SELF_INTERSECTION
    assert engine.state.is_tracking is True
    assert engine.state.ready_to_submit is False


def test_reopen_after_failed_validation():
    clock = _FakeClock()
    fixes = _make_fixes(_FIGURE_EIGHT)
    engine = TrackingEngine(ReplaySource(fixes), clock=clock)
    engine.start()
    _run(engine, clock, fixes)

    events = engine.reopen()

    assert _kinds(events) == [EventKind.TRACKING_RESUMED]
    assert engine.state.is_closed is False
    assert engine.state.validation is None


def test_reopen_after_passed_validation_is_noop():
    clock = _FakeClock()
    fixes = _make_fixes(_SQUARE)
    engine = TrackingEngine(ReplaySource(fixes), clock=clock)
    engine.start()
    _run(engine, clock, fixes)
    assert engine.reopen() == []
    assert engine.state.is_closed is True


# ---------------------------------------------------------------------------
# Submission
# ---------------------------------------------------------------------------


def test_submit_hands_payload_to_sink_and_clears():
    clock = _FakeClock()
    fixes = _make_fixes(_SQUARE)
    scheduler = MagicMock()
    engine = TrackingEngine(ReplaySource(fixes), scheduler=scheduler, clock=clock)
    engine.start()
    _run(engine, clock, fixes)
    sink = MagicMock()

    payload = engine.submit(sink)

    sink.assert_called_once_with(payload)
    assert isinstance(payload, ClaimPayload)
    assert payload.point_count == 11
    assert payload.path[0] == _pt(0, 0).to_dict()
    assert payload.started_at == "1970-01-01T00:00:00+00:00"
    assert engine.state.is_tracking is False
    scheduler.stop.assert_called_once()


def test_submit_without_validation_raises():
    engine = TrackingEngine(ReplaySource([]), clock=_FakeClock())
    engine.start()
    with pytest.raises(RuntimeError):
        engine.submit(MagicMock())


# ---------------------------------------------------------------------------
# Speed policy
# ---------------------------------------------------------------------------


def test_speed_violation_terminates_session():
    scheduler = MagicMock()
    clock = _FakeClock()
    fixes = _make_fixes([(0, 0), (200, 0)], interval_s=5.0)
    engine = TrackingEngine(ReplaySource(fixes), scheduler=scheduler, clock=clock)
    engine.start()

    events = _run(engine, clock, fixes)

    assert _kinds(events)[-2:] == [EventKind.SPEED_VIOLATION, EventKind.SESSION_TERMINATED]
    assert events[-1].speed_kmh == pytest.approx(144.0, rel=1e-3)
    assert engine.state.is_tracking is False
    assert len(engine.state.path) == 0
    scheduler.stop.assert_called_once()


def test_speed_warning_keeps_point():
    clock = _FakeClock()
    fixes = _make_fixes([(0, 0), (36, 0)], interval_s=5.0)
    engine = TrackingEngine(ReplaySource(fixes), clock=clock)
    engine.start()
    events = _run(engine, clock, fixes)
    assert EventKind.SPEED_WARNING in _kinds(events)
    assert len(engine.state.path) == 2


def test_grace_period_drops_violating_fix_then_terminates():
    clock = _FakeClock()
    fixes = _make_fixes([(0, 0), (200, 0)], interval_s=5.0)
    config = EngineConfig(speed_grace_period_s=10.0)
    engine = TrackingEngine(ReplaySource(fixes), config=config, clock=clock)
    engine.start()
    events = _run(engine, clock, fixes)

    assert _kinds(events)[-1] is EventKind.SPEED_VIOLATION
    assert events[-1].countdown_s == pytest.approx(10.0)
    assert len(engine.state.path) == 1

    clock.now = 16.0
    events = engine.tick()
    assert _kinds(events) == [EventKind.SPEED_VIOLATION, EventKind.SESSION_TERMINATED]
    assert engine.state.is_tracking is False


# ---------------------------------------------------------------------------
# Collisions
# ---------------------------------------------------------------------------


def _foreign_territory() -> TerritoryPolygon:
    corners = [_pt(200, 0), _pt(200, 60), _pt(260, 60), _pt(260, 0)]
    return TerritoryPolygon("t-1", "other-player", tuple(corners), name="North Park")


def test_start_refused_inside_foreign_territory():
    source = LatestFixSource()
    source.update(PositionFix(_pt(230, 30), horizontal_accuracy=5.0, timestamp=0.0))
    detector = CollisionDetector(TerritoryCache([_foreign_territory()]))
    scheduler = MagicMock()
    engine = TrackingEngine(
        source, collision_detector=detector, owner_id="me", scheduler=scheduler, clock=_FakeClock()
    )

    events = engine.start()

    assert _kinds(events) == [EventKind.START_REFUSED]
    assert events[0].collision.territory_name == "North Park"
    assert engine.state.is_tracking is False
    scheduler.start.assert_not_called()


def test_start_allowed_inside_own_territory():
    source = LatestFixSource()
    source.update(PositionFix(_pt(230, 30), horizontal_accuracy=5.0, timestamp=0.0))
    detector = CollisionDetector(TerritoryCache([_foreign_territory()]))
    engine = TrackingEngine(
        source, collision_detector=detector, owner_id="OTHER-PLAYER", clock=_FakeClock()
    )
    assert _kinds(engine.start()) == [EventKind.TRACKING_STARTED]


def test_point_near_foreign_territory_emits_collision_event():
    source = LatestFixSource()
    detector = CollisionDetector(TerritoryCache([_foreign_territory()]))
    engine = TrackingEngine(source, collision_detector=detector, owner_id="me", clock=_FakeClock())
    engine.start()

    source.update(PositionFix(_pt(180, 30), horizontal_accuracy=5.0, timestamp=0.0))
    events = engine.tick()

    collisions = [e for e in events if e.kind is EventKind.COLLISION]
    assert len(collisions) == 1
    assert collisions[0].collision.has_collision is False
    assert collisions[0].distance_m == pytest.approx(20.0, rel=0.02)
    assert engine.state.is_tracking is True


@pytest.mark.parametrize("cached_owner", [None, "me"])
def test_tick_with_no_foreign_territories_is_safe(cached_owner):
    territories = [] if cached_owner is None else [
        TerritoryPolygon("t-2", cached_owner, (_pt(200, 0), _pt(200, 60), _pt(260, 60)))
    ]
    source = LatestFixSource()
    detector = CollisionDetector(TerritoryCache(territories))
    engine = TrackingEngine(source, collision_detector=detector, owner_id="me", clock=_FakeClock())
    engine.start()

    source.update(PositionFix(_pt(0, 0), horizontal_accuracy=5.0, timestamp=0.0))
    events = engine.tick()

    assert _kinds(events) == [EventKind.POINT_RECORDED]
    assert engine.state.collision.message is None
    assert engine.state.collision.closest_distance_m is None


def test_zero_speed_interval_tolerates_shared_timestamp():
    clock = _FakeClock(100.0)
    fixes = [
        PositionFix(_pt(0, 0), horizontal_accuracy=5.0, timestamp=100.0),
        PositionFix(_pt(20, 0), horizontal_accuracy=5.0, timestamp=100.0),
    ]
    config = EngineConfig(speed_min_interval_s=0.0)
    engine = TrackingEngine(ReplaySource(fixes), config=config, clock=clock)
    engine.start()
    engine.tick()
    events = engine.tick()

    assert _kinds(events) == [EventKind.POINT_RECORDED]
    assert len(engine.state.path) == 2


def test_submit_keeps_start_time_of_zero():
    clock = _FakeClock(0.0)
    fixes = _make_fixes(_SQUARE)
    engine = TrackingEngine(ReplaySource(fixes), clock=clock)
    engine.start()
    _run(engine, clock, fixes)
    clock.now = 500.0

    payload = engine.submit(MagicMock())

    assert payload.started_at == "1970-01-01T00:00:00+00:00"
