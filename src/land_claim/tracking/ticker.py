"""SessionTicker — fixed-interval sampling loop with drop-oldest event buffering."""

from __future__ import annotations

import contextlib
import logging
import queue
import threading
import time
from collections.abc import Callable

from land_claim.tracking.events import EngineEvent

_logger = logging.getLogger(__name__)


class SessionTicker:
    """Calls a tick callback every *interval_s* seconds on a daemon thread.

    Event lists returned by the callback are buffered; when the buffer is full
    the *oldest* list is discarded so a slow consumer always sees recent state.

    Parameters
    ----------
    interval_s:
        Seconds between ticks.
    queue_maxsize:
        Maximum number of buffered event lists before drop-oldest kicks in.
    """

    def __init__(self, interval_s: float = 2.0, queue_maxsize: int = 64) -> None:
        if interval_s <= 0:
            raise ValueError("interval_s must be > 0")
        self._interval = interval_s
        self._queue: queue.Queue[list[EngineEvent]] = queue.Queue(maxsize=queue_maxsize)
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._callback: Callable[[], list[EngineEvent]] | None = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self, callback: Callable[[], list[EngineEvent]]) -> None:
        """Start ticking *callback* (restarts if already running)."""
        self.stop()
        self._callback = callback
        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._run, args=(self._stop_event,), daemon=True, name="SessionTicker"
        )
        self._thread.start()

    def stop(self) -> None:
        """Signal the thread to stop and join it.

        Safe to call from inside the callback: the ticker thread is then only
        signalled, not joined.
        """
        self._stop_event.set()
        thread = self._thread
        self._thread = None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=2.0)

    def get_events(self, timeout: float = 0.1) -> list[EngineEvent] | None:
        """Return the next buffered event list, or None if none arrives within *timeout* s."""
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def queue_size(self) -> int:
        return self._queue.qsize()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _run(self, stop_event: threading.Event) -> None:
        callback = self._callback
        while not stop_event.is_set():
            t0 = time.monotonic()
            try:
                events = callback() if callback is not None else []
            except Exception:
                _logger.exception("Tick callback failed")
            else:
                if events:
                    self._enqueue(events)
            elapsed = time.monotonic() - t0
            wait = self._interval - elapsed
            if wait > 0:
                stop_event.wait(wait)

    def _enqueue(self, events: list[EngineEvent]) -> None:
        """Put *events* in the queue; drop oldest if full."""
        try:
            self._queue.put_nowait(events)
        except queue.Full:
            with contextlib.suppress(queue.Empty):
                self._queue.get_nowait()
            with contextlib.suppress(queue.Full):
                self._queue.put_nowait(events)
