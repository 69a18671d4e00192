"""Position sources the engine samples on each tick."""

from __future__ import annotations

import threading
from collections.abc import Iterable

from land_claim.geo.models import PositionFix


class LatestFixSource:
    """Keeps the most recent fix pushed by the platform location callback.

    The engine pulls :meth:`current_fix` on its own cadence, so fixes pushed
    between two ticks overwrite each other.
    """

    def __init__(self) -> None:
        self._fix: PositionFix | None = None
        self._lock = threading.Lock()

    def update(self, fix: PositionFix) -> None:
        with self._lock:
            self._fix = fix

    def clear(self) -> None:
        with self._lock:
            self._fix = None

    def current_fix(self) -> PositionFix | None:
        with self._lock:
            return self._fix


class ReplaySource:
    """Returns one fix per call from a prerecorded sequence, then None."""

    def __init__(self, fixes: Iterable[PositionFix]) -> None:
        self._fixes = list(fixes)
        self._index = 0

    @property
    def remaining(self) -> int:
        return len(self._fixes) - self._index

    def current_fix(self) -> PositionFix | None:
        if self._index >= len(self._fixes):
            return None
        fix = self._fixes[self._index]
        self._index += 1
        return fix
