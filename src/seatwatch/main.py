"""
Main orchestrator for SeatWatch.

Coordinates the monitoring workflow:
1. Issue an access token (abort if this fails)
2. Refresh the token on a fixed period in the background
3. Poll every monitored class on a fixed period
4. Dispatch an alert when seats open
"""

import logging
import sys
import threading
from typing import Optional, Sequence

from pydantic import ValidationError

from seatwatch.auth import CredentialManager
from seatwatch.cli import parse_args
from seatwatch.config import Settings, load_settings, setup_logging
from seatwatch.exceptions import FatalAuthError, SeatWatchError, UsageError
from seatwatch.models import ClientIdentity
from seatwatch.notify import (
    AlertDispatcher,
    AlertSink,
    CompositeSink,
    TelegramAlertSink,
    TerminalBellSink,
)
from seatwatch.poller import AvailabilityPoller, SeatClient
from seatwatch.scheduler import PeriodicTask

logger = logging.getLogger(__name__)


class SeatMonitor:
    """
    Main orchestrator for seat monitoring.

    Owns the credential manager, the poller and the two periodic tasks that
    drive them. The poller only sees a read accessor for the credential.
    """

    def __init__(
        self,
        settings: Settings,
        sink: Optional[AlertSink] = None,
        auth_session=None,
        api_session=None,
    ):
        """
        Initialize the monitor with all components.

        Args:
            settings: Validated settings including term and course IDs
            sink: Optional alert sink, built from settings if not provided
            auth_session: Optional HTTP session for the token endpoint
            api_session: Optional HTTP session for the class endpoint
        """
        self.settings = settings
        self.targets = settings.monitor_targets
        self._stop = threading.Event()

        identity = ClientIdentity(
            client_id=settings.umich_client_id,
            client_secret=settings.umich_client_secret,
        )
        self.credentials = CredentialManager(
            identity,
            settings=settings,
            session=auth_session,
            stop_event=self._stop,
        )
        self.client = SeatClient(settings, session=api_session)
        self.dispatcher = AlertDispatcher(sink or self._build_sink())
        self.poller = AvailabilityPoller(
            self.targets,
            self.credentials.holder.get,
            self.client,
            self.dispatcher,
            reset_policy=settings.alert_reset_policy,
        )

        self.refresh_task = PeriodicTask(
            "token-refresh",
            settings.refresh_period,
            self.credentials.refresh,
            initial_delay=settings.refresh_period,
            stop_event=self._stop,
        )
        self.poll_task = PeriodicTask(
            "seat-poll",
            settings.poll_period,
            self.poller.poll_once,
            stop_event=self._stop,
        )

    def _build_sink(self) -> AlertSink:
        """Terminal bell, plus Telegram when it is configured."""
        sinks = [TerminalBellSink(repeats=self.settings.alert_repeats)]

        if self.settings.telegram_enabled:
            telegram = TelegramAlertSink(settings=self.settings)
            if not telegram.test_connection():
                logger.warning("Telegram connection check failed; alerts may not arrive")
            sinks.append(telegram)

        return sinks[0] if len(sinks) == 1 else CompositeSink(sinks)

    def start(self) -> None:
        """
        Issue the first credential, then start both periodic tasks.

        Raises:
            SeatWatchError: If no targets are configured
            FatalAuthError: If the initial token cannot be obtained
        """
        if not self.targets:
            raise SeatWatchError("No classes to monitor. Pass a term and at least one class number.")

        logger.info("=" * 50)
        logger.info("Starting SeatWatch")
        logger.info(f"Term {self.targets[0].term}, watching {len(self.targets)} class(es): "
                    f"{', '.join(str(t.course_id) for t in self.targets)}")
        logger.info(f"Polling every {self.settings.poll_period}s "
                    f"({self.settings.requests_per_minute:.1f} requests/minute), "
                    f"refreshing token every {self.settings.refresh_period}s")
        logger.info(f"Alert reset policy: {self.settings.alert_reset_policy.value}")
        logger.info("=" * 50)

        self.credentials.initialize()

        self.refresh_task.start()
        self.poll_task.start()

    def run_forever(self) -> None:
        """Start monitoring and block until interrupted."""
        self.start()
        try:
            while not self._stop.wait(1.0):
                continue
        except KeyboardInterrupt:
            logger.info("Monitoring stopped by user")
        finally:
            self.stop()
            self._log_summary()

    def stop(self) -> None:
        """Signal both tasks to stop and release the alert worker."""
        self._stop.set()
        self.dispatcher.shutdown(wait=False)

    def _log_summary(self) -> None:
        """Log execution summary."""
        stats = self.poller.stats
        logger.info("=" * 50)
        logger.info("SeatWatch Summary")
        logger.info("=" * 50)
        logger.info(f"Poll cycles:          {stats['cycles']}")
        logger.info(f"Requests sent:        {stats['requests']}")
        logger.info(f"Failed requests:      {stats['failures']}")
        logger.info(f"Unknown results:      {stats['unknown']}")
        logger.info(f"Alerts dispatched:    {stats['alerts']}")
        logger.info(f"Token refresh errors: {self.credentials.consecutive_failures} (current streak)")
        logger.info("=" * 50)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Entry point for SeatWatch.

    Returns:
        int: Exit code (0 for success, 1 for failure, 2 for usage errors)
    """
    try:
        args = parse_args(argv)
    except UsageError as e:
        print(f"Usage error: {e}", file=sys.stderr)
        return 2

    try:
        settings = load_settings(
            term=args.term,
            course_ids=args.course_ids,
            poll_period=args.poll_period,
            refresh_period=args.refresh_period,
            alert_reset_policy=args.reset_policy,
            log_level=args.log_level,
        )
    except ValidationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        print("Please check your environment variables and options.", file=sys.stderr)
        return 1

    setup_logging(settings)

    monitor = SeatMonitor(settings)
    try:
        monitor.run_forever()
    except FatalAuthError as e:
        monitor.stop()
        logger.error(f"{e}")
        print(
            "Error during initialization. Check your client ID/secret and the "
            "availability of the API server.",
            file=sys.stderr,
        )
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
