"""
Fixed-rate periodic tasks on daemon threads.

Deadlines advance by a fixed interval from the previous deadline, so a slow
run does not push the schedule back. Ticks missed during a stall are skipped
rather than replayed back to back.
"""

import logging
import threading
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class PeriodicTask:
    """
    Runs ``func`` every ``interval`` seconds until stopped.

    Exceptions raised by ``func`` are logged and the schedule continues.
    """

    def __init__(
        self,
        name: str,
        interval: float,
        func: Callable[[], object],
        initial_delay: float = 0.0,
        stop_event: Optional[threading.Event] = None,
    ):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.name = name
        self.interval = interval
        self.func = func
        self.initial_delay = max(0.0, initial_delay)
        self._stop = stop_event or threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.runs = 0
        self.errors = 0
        self.skipped = 0

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.is_running:
            return
        self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
        self._thread.start()
        logger.debug(f"Started {self.name} (every {self.interval}s)")

    def stop(self) -> None:
        self._stop.set()

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def _run(self) -> None:
        next_run = time.monotonic() + self.initial_delay

        while not self._stop.wait(max(0.0, next_run - time.monotonic())):
            try:
                self.func()
            except Exception as e:
                self.errors += 1
                logger.error(f"{self.name} run failed: {e}", exc_info=True)
            self.runs += 1

            next_run += self.interval
            now = time.monotonic()
            if next_run <= now:
                missed = int((now - next_run) // self.interval) + 1
                self.skipped += missed
                next_run += missed * self.interval
                logger.warning(f"{self.name} fell behind, skipping {missed} run(s)")
