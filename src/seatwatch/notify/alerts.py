"""
Alert sinks and non-blocking alert dispatch.

The poller hands each rising-edge snapshot to an AlertDispatcher, which runs
the configured sink on its own worker thread so a slow or hanging sink never
delays the next poll cycle.
"""

import logging
import sys
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, List, Optional, Protocol, TextIO

from seatwatch.models import SeatSnapshot
from seatwatch.notify.formatters import MessageFormatter

logger = logging.getLogger(__name__)


class AlertSink(Protocol):
    """Anything that can tell the user an alert is due now."""

    def alert(self, snapshot: SeatSnapshot) -> None:
        ...


class TerminalBellSink:
    """Rings the terminal bell and prints the alert banner."""

    def __init__(self, repeats: int = 3, interval: float = 1.0, stream: Optional[TextIO] = None):
        self.repeats = max(1, repeats)
        self.interval = interval
        self.stream = stream or sys.stdout

    def alert(self, snapshot: SeatSnapshot) -> None:
        self.stream.write(MessageFormatter.format_seat_alert(snapshot) + "\n")
        for i in range(self.repeats):
            self.stream.write("\a")
            self.stream.flush()
            if i < self.repeats - 1:
                time.sleep(self.interval)


class CompositeSink:
    """Fans an alert out to several sinks; one failing sink doesn't stop the rest."""

    def __init__(self, sinks: List[AlertSink]):
        self.sinks = list(sinks)

    def alert(self, snapshot: SeatSnapshot) -> None:
        for sink in self.sinks:
            try:
                sink.alert(snapshot)
            except Exception as e:
                logger.error(f"Alert sink {type(sink).__name__} failed: {e}")


class AlertDispatcher:
    """
    Bounded, non-blocking dispatch of alerts onto a worker thread.

    At most ``max_pending`` alerts may be queued or running at once; further
    alerts are dropped with a warning until the backlog drains.
    """

    def __init__(self, sink: AlertSink, max_pending: int = 4):
        self.sink = sink
        self.max_pending = max(1, max_pending)
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="seatwatch-alert")
        self._lock = threading.Lock()
        self._pending = 0
        self.delivered = 0
        self.dropped = 0

    @property
    def pending(self) -> int:
        return self._pending

    def dispatch(
        self,
        snapshot: SeatSnapshot,
        on_done: Optional[Callable[[SeatSnapshot], None]] = None,
    ) -> Optional[Future]:
        """
        Queue an alert without waiting for it.

        Args:
            snapshot: The poll result that triggered the alert
            on_done: Called on the worker thread once the sink returns or fails

        Returns:
            Future for the sink call, or None if the alert was dropped
        """
        with self._lock:
            if self._pending >= self.max_pending:
                self.dropped += 1
                logger.warning(
                    f"Alert backlog full ({self._pending} pending), "
                    f"dropping alert for {snapshot.target.key}"
                )
                return None
            self._pending += 1

        try:
            future = self._executor.submit(self.sink.alert, snapshot)
        except RuntimeError as e:
            with self._lock:
                self._pending -= 1
            logger.error(f"Could not dispatch alert for {snapshot.target.key}: {e}")
            return None

        future.add_done_callback(lambda f: self._finished(f, snapshot, on_done))
        return future

    def _finished(
        self,
        future: Future,
        snapshot: SeatSnapshot,
        on_done: Optional[Callable[[SeatSnapshot], None]],
    ) -> None:
        error = None if future.cancelled() else future.exception()
        with self._lock:
            self._pending -= 1
            if error is None:
                self.delivered += 1

        if error is not None:
            logger.error(f"Alert for {snapshot.target.key} failed: {error}")

        if on_done is not None:
            on_done(snapshot)

    def shutdown(self, wait: bool = False) -> None:
        """Stop accepting alerts and release the worker thread."""
        self._executor.shutdown(wait=wait)
