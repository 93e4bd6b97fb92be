"""Alert module for SeatWatch - sinks, dispatch and message formatting."""

from seatwatch.notify.alerts import (
    AlertDispatcher,
    AlertSink,
    CompositeSink,
    TerminalBellSink,
)
from seatwatch.notify.formatters import MessageFormatter
from seatwatch.notify.telegram import TelegramAlertSink

__all__ = [
    "AlertDispatcher",
    "AlertSink",
    "CompositeSink",
    "MessageFormatter",
    "TelegramAlertSink",
    "TerminalBellSink",
]
