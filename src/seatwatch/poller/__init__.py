"""Seat polling module for SeatWatch."""

from seatwatch.poller.availability import AvailabilityPoller
from seatwatch.poller.seats import UNKNOWN_SEATS, SeatClient, parse_open_seats

__all__ = [
    "AvailabilityPoller",
    "SeatClient",
    "UNKNOWN_SEATS",
    "parse_open_seats",
]
