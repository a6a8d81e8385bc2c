"""
crossing/scheduler.py
=====================
Fixed-rate background tick threads.

Each :class:`PeriodicTask` owns one daemon thread that calls its callback
every ``period_s`` seconds (drift-compensated) until :meth:`PeriodicTask.stop`
is called.  The callback must be short and must do its own locking; the
task never holds a lock while it waits.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

log = logging.getLogger("scheduler")


class PeriodicTask:
    """Run *callback* at a fixed period in a background thread.

    Parameters
    ----------
    name : str
        Thread name, also used in log lines.
    period_s : float
        Seconds between the starts of consecutive ticks.
    callback : Callable[[], object]
        Tick body.  Exceptions are logged and the loop carries on.
    """

    def __init__(self, name: str, period_s: float, callback: Callable[[], object]) -> None:
        if period_s <= 0:
            raise ValueError(f"period_s must be > 0, got {period_s}")
        self.name = name
        self.period_s = period_s
        self._callback = callback
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.ticks = 0

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Spawn the background thread (no-op if already running)."""
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, daemon=True, name=self.name)
        self._thread.start()
        log.info("%s started every %.3fs", self.name, self.period_s)

    def stop(self, timeout: float = 2.0) -> None:
        """Signal the thread to stop and wait for it to join.

        A tick already in progress runs to completion first.
        """
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            if self._thread.is_alive():
                log.warning("%s did not stop within %.1fs", self.name, timeout)
            self._thread = None
        log.info("%s stopped after %d ticks", self.name, self.ticks)

    def _loop(self) -> None:
        while not self._stop.is_set():
            t0 = time.perf_counter()
            try:
                self._callback()
            except Exception:
                log.exception("%s tick error", self.name)
            self.ticks += 1
            self._stop.wait(max(0.0, self.period_s - (time.perf_counter() - t0)))
