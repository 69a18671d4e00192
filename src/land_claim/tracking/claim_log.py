"""ClaimLog — bounded in-memory log of claim tracking, for on-device debugging."""

from __future__ import annotations

import logging
import threading
import time
from collections import deque
from dataclasses import dataclass


@dataclass(frozen=True)
class LogEntry:
    timestamp: float
    level: str
    message: str


class ClaimLog(logging.Handler):
    """Logging handler that keeps the most recent *max_entries* records.

    Attach it to the ``land_claim`` logger to collect everything the engine
    logs::

        log = ClaimLog.attach()
        ...
        print(log.export())
    """

    def __init__(self, max_entries: int = 200, level: int = logging.INFO) -> None:
        super().__init__(level)
        self._entries: deque[LogEntry] = deque(maxlen=max_entries)
        self._entries_lock = threading.Lock()

    @classmethod
    def attach(cls, logger_name: str = "land_claim", **kwargs) -> ClaimLog:
        """Create a handler and add it to *logger_name*."""
        handler = cls(**kwargs)
        logger = logging.getLogger(logger_name)
        logger.addHandler(handler)
        if logger.getEffectiveLevel() > handler.level:
            logger.setLevel(handler.level)
        return handler

    def emit(self, record: logging.LogRecord) -> None:
        try:
            entry = LogEntry(record.created, record.levelname, record.getMessage())
        except Exception:
            self.handleError(record)
            return
        with self._entries_lock:
            self._entries.append(entry)

    def entries(self) -> list[LogEntry]:
        with self._entries_lock:
            return list(self._entries)

    def clear(self) -> None:
        with self._entries_lock:
            self._entries.clear()

    def export(self) -> str:
        """Render a header plus one ``[time] [LEVEL] message`` line per entry."""
        entries = self.entries()
        lines = [
            "=== Claim tracking log ===",
            f"Exported: {_fmt(time.time())}",
            f"Entries: {len(entries)}",
            "",
        ]
        lines.extend(f"[{_fmt(e.timestamp)}] [{e.level}] {e.message}" for e in entries)
        return "\n".join(lines) + "\n"


def _fmt(ts: float) -> str:
    return time.strftime("%Y-%m-%d %H:%M:%S", time.localtime(ts))
