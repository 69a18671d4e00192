"""Tunable thresholds for the tracking engine and exploration sessions.

Every threshold lives here with its default so that the engine, the
validator and the collision detector are constructed from one value.
Environment overrides use the ``LAND_CLAIM_`` prefix, e.g.
``LAND_CLAIM_CLOSURE_DISTANCE_M=40``; entry points call
:func:`dotenv.load_dotenv` first so a ``.env`` file works too.
"""

from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass


@dataclass(frozen=True)
class EngineConfig:
    """Thresholds for territory-claim tracking.  Defaults are the claim policy."""

    max_accuracy_m: float = 50.0
    """Fixes with a worse (larger) accuracy radius are dropped."""

    min_point_distance_m: float = 10.0
    """Minimum distance from the last accepted fix for a new point."""

    speed_max_accuracy_m: float = 25.0
    """Speed is not evaluated for fixes less accurate than this."""

    speed_min_interval_s: float = 5.0
    """Speed is not evaluated when the last accepted fix is more recent than this."""

    speed_warning_kmh: float = 25.0
    """Speeds at or above this (and below the limit) raise a warning."""

    speed_limit_kmh: float = 30.0
    """Speeds at or above this are a violation."""

    speed_grace_period_s: float = 0.0
    """Seconds of continued violation before forced termination (0 = immediate)."""

    closure_distance_m: float = 50.0
    """The loop is closed when the last point is within this distance of the first."""

    min_path_points: int = 10
    """Points required before closure is checked and for a valid territory."""

    min_total_distance_m: float = 50.0
    """Minimum walked path length for a valid territory."""

    min_area_m2: float = 100.0
    """Minimum enclosed area for a valid territory."""

    tick_interval_s: float = 2.0
    """Sampling interval of the tracking ticker."""

    def __post_init__(self) -> None:
        if self.speed_limit_kmh < self.speed_warning_kmh:
            raise ValueError("speed_limit_kmh must be >= speed_warning_kmh")
        if self.speed_grace_period_s < 0:
            raise ValueError("speed_grace_period_s must be >= 0")
        if self.tick_interval_s <= 0:
            raise ValueError("tick_interval_s must be > 0")
        if self.min_path_points < 1:
            raise ValueError("min_path_points must be >= 1")

    @classmethod
    def territory_claim(cls) -> EngineConfig:
        """Claim policy: violations stop the session immediately."""
        return cls()

    @classmethod
    def from_env(cls, prefix: str = "LAND_CLAIM_", base: EngineConfig | None = None) -> EngineConfig:
        """Return *base* (default config) with fields overridden from the environment."""
        return _apply_env(base or cls(), prefix)


@dataclass(frozen=True)
class ExplorationConfig:
    """Thresholds for exploration sessions (distance walked, not a polygon)."""

    max_accuracy_m: float = 100.0
    min_movement_m: float = 3.0
    min_interval_s: float = 1.0
    max_jump_m: float = 100.0
    speed_max_accuracy_m: float = 100.0
    speed_limit_kmh: float = 20.0
    speed_grace_period_s: float = 10.0
    tick_interval_s: float = 1.0

    @classmethod
    def from_env(
        cls, prefix: str = "LAND_CLAIM_EXPLORE_", base: ExplorationConfig | None = None
    ) -> ExplorationConfig:
        return _apply_env(base or cls(), prefix)


def _apply_env(config, prefix: str):
    overrides = {}
    for f in dataclasses.fields(config):
        raw = os.environ.get(prefix + f.name.upper())
        if raw is None or raw == "":
            continue
        current = getattr(config, f.name)
        overrides[f.name] = int(raw) if isinstance(current, int) else float(raw)
    return dataclasses.replace(config, **overrides) if overrides else config
