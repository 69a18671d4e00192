"""Claim tracking: fix filtering, speed policy, path closure and the engine."""

from land_claim.tracking.claim_log import ClaimLog, LogEntry
from land_claim.tracking.engine import TrackingEngine
from land_claim.tracking.events import EngineEvent, EventKind
from land_claim.tracking.exploration import ExplorationSession, ExplorationSummary
from land_claim.tracking.filters import (
    FilterDecision,
    FixFilter,
    RejectReason,
    SpeedDecision,
    SpeedGuard,
    SpeedLevel,
    SpeedReading,
)
from land_claim.tracking.path import ClosureDetector, PathStore
from land_claim.tracking.session import SessionState, TrackingSession
from land_claim.tracking.source import LatestFixSource, ReplaySource
from land_claim.tracking.ticker import SessionTicker

__all__ = [
    "ClaimLog",
    "ClosureDetector",
    "EngineEvent",
    "EventKind",
    "ExplorationSession",
    "ExplorationSummary",
    "FilterDecision",
    "FixFilter",
    "LatestFixSource",
    "LogEntry",
    "PathStore",
    "RejectReason",
    "ReplaySource",
    "SessionState",
    "SessionTicker",
    "SpeedDecision",
    "SpeedGuard",
    "SpeedLevel",
    "SpeedReading",
    "TrackingEngine",
    "TrackingSession",
]
