"""
Availability poller.

Queries every monitored target once per cycle with the current bearer token
and dispatches an alert on each rising edge (no seats / unknown -> seats
open). Per-target alert state decides when a target may alert again.
"""

import logging
import threading
from typing import Callable, Dict, Iterable, List, Optional

from seatwatch.exceptions import AuthError, FetchError
from seatwatch.models import (
    AlertResetPolicy,
    AlertState,
    Credential,
    MonitorTarget,
    SeatSnapshot,
)
from seatwatch.notify.alerts import AlertDispatcher
from seatwatch.poller.seats import SeatClient

logger = logging.getLogger(__name__)


class AvailabilityPoller:
    """
    Polls seat availability for a fixed set of targets.

    A failure on one target is logged and skipped; the rest of the cycle
    still runs. Alert state per target:

    - UNKNOWN -> ALERTING when a cycle observes open seats
    - ALERTING -> UNKNOWN according to the reset policy:
      SEATS_GONE when a cycle observes zero seats,
      AFTER_ALERT when the sink finishes,
      NEVER keeps the target silent for the rest of the run
    """

    def __init__(
        self,
        targets: Iterable[MonitorTarget],
        credentials: Callable[[], Credential],
        client: SeatClient,
        dispatcher: AlertDispatcher,
        reset_policy: AlertResetPolicy = AlertResetPolicy.SEATS_GONE,
    ):
        """
        Initialize the poller.

        Args:
            targets: Class sections to monitor (duplicates are ignored)
            credentials: Read-only accessor for the current credential
            client: Seat-count client
            dispatcher: Non-blocking alert dispatcher
            reset_policy: When an alerted target may alert again
        """
        self.targets: List[MonitorTarget] = list(dict.fromkeys(targets))
        self._credentials = credentials
        self.client = client
        self.dispatcher = dispatcher
        self.reset_policy = reset_policy

        # Touched by the poll thread and by alert completion callbacks
        self._lock = threading.Lock()
        self._states: Dict[MonitorTarget, AlertState] = {
            target: AlertState.UNKNOWN for target in self.targets
        }

        self.stats = {
            "cycles": 0,
            "requests": 0,
            "failures": 0,
            "unknown": 0,
            "alerts": 0,
        }

    def state(self, target: MonitorTarget) -> AlertState:
        """Current alert state of ``target``."""
        with self._lock:
            return self._states[target]

    def poll_once(self) -> List[SeatSnapshot]:
        """
        Run one poll cycle over every target.

        Returns:
            List[SeatSnapshot]: One snapshot per target that answered;
            failed targets are omitted
        """
        self.stats["cycles"] += 1
        try:
            credential = self._credentials()
        except AuthError as e:
            logger.error(f"Skipping poll cycle, no usable credential: {e}")
            return []

        snapshots: List[SeatSnapshot] = []
        for target in self.targets:
            snapshot = self._poll_target(target, credential.bearer_token)
            if snapshot is None:
                continue
            snapshots.append(snapshot)
            self._evaluate(snapshot)

        logger.info(
            f"Cycle {self.stats['cycles']}: {len(snapshots)}/{len(self.targets)} "
            f"target(s) answered"
        )
        return snapshots

    def _poll_target(self, target: MonitorTarget, bearer_token: str) -> Optional[SeatSnapshot]:
        self.stats["requests"] += 1
        try:
            seats = self.client.query_seats(target.term, target.course_id, bearer_token)
        except FetchError as e:
            self.stats["failures"] += 1
            logger.warning(f"  [FAIL] {target.key}: {e}")
            return None
        except Exception as e:
            self.stats["failures"] += 1
            logger.error(f"  [FAIL] {target.key}: unexpected error: {e}", exc_info=True)
            return None

        snapshot = SeatSnapshot(target=target, open_seats=seats)
        if snapshot.is_known:
            logger.info(f"  {target.key}: {seats} open seat(s)")
        else:
            self.stats["unknown"] += 1
            logger.info(f"  {target.key}: seat count unknown this cycle")
        return snapshot

    def _evaluate(self, snapshot: SeatSnapshot) -> None:
        """Apply the alert state machine to one snapshot."""
        target = snapshot.target
        fire = False

        with self._lock:
            state = self._states[target]
            if state is AlertState.UNKNOWN and snapshot.is_open:
                self._states[target] = AlertState.ALERTING
                fire = True
            elif (
                state is AlertState.ALERTING
                and self.reset_policy is AlertResetPolicy.SEATS_GONE
                and snapshot.open_seats == 0
            ):
                self._states[target] = AlertState.UNKNOWN
                logger.info(f"  [INFO] {target.key} filled up again, alert re-armed")

        if fire:
            self._fire(snapshot)

    def _fire(self, snapshot: SeatSnapshot) -> None:
        target = snapshot.target
        on_done = self._acknowledge if self.reset_policy is AlertResetPolicy.AFTER_ALERT else None

        logger.info(f"  [ALERT] {target.key}: {snapshot.open_seats} seat(s) open")
        if self.dispatcher.dispatch(snapshot, on_done=on_done) is None:
            # Dropped; stay armed so the next cycle can try again
            with self._lock:
                self._states[target] = AlertState.UNKNOWN
            return
        self.stats["alerts"] += 1

    def _acknowledge(self, snapshot: SeatSnapshot) -> None:
        with self._lock:
            if self._states.get(snapshot.target) is AlertState.ALERTING:
                self._states[snapshot.target] = AlertState.UNKNOWN
