"""TerritoryCache — copy-on-write snapshot of foreign territories."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable

from land_claim.territory.models import TerritoryPolygon

_logger = logging.getLogger(__name__)


class TerritoryCache:
    """Holds the current set of claimed territories as an immutable tuple.

    Refreshes replace the whole tuple, so a scan that already took a
    :meth:`snapshot` is never affected by a concurrent refresh.
    """

    def __init__(self, territories: Iterable[TerritoryPolygon] = ()) -> None:
        self._lock = threading.Lock()
        self._territories: tuple[TerritoryPolygon, ...] = tuple(territories)

    def __len__(self) -> int:
        return len(self.snapshot())

    def snapshot(self) -> tuple[TerritoryPolygon, ...]:
        with self._lock:
            return self._territories

    def replace(self, territories: Iterable[TerritoryPolygon]) -> None:
        """Swap in a new territory set."""
        new = tuple(territories)
        with self._lock:
            self._territories = new

    def refresh(self, loader: Callable[[], Iterable[TerritoryPolygon]]) -> int:
        """Load territories with *loader* and swap them in.

        The previous snapshot is kept if the loader raises.

        Returns
        -------
        int
            Number of territories now cached.
        """
        try:
            loaded = tuple(loader())
        except Exception as exc:
            _logger.warning("Territory refresh failed, keeping %d cached: %s", len(self), exc)
            return len(self)

        degenerate = sum(1 for t in loaded if t.is_degenerate)
        if degenerate:
            _logger.warning("%d degenerate territories will be skipped", degenerate)
        self.replace(loaded)
        _logger.info("Cached %d territories", len(loaded))
        return len(loaded)

    def load_records(self, records: Iterable[dict]) -> int:
        """Replace the cache from backend territory rows."""
        return self.refresh(lambda: [TerritoryPolygon.from_record(r) for r in records])
