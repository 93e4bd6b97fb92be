"""
Message formatters for seat alerts.

Formats poll results into short messages for the terminal and Telegram.
"""

from datetime import datetime
from typing import Optional

from seatwatch.models import SeatSnapshot


class MessageFormatter:
    """
    Formats notification content for alert sinks.

    Messages use Telegram Markdown (*bold*, _italic_), which also reads
    fine as plain text in a terminal.
    """

    @staticmethod
    def _format_datetime(dt: Optional[datetime]) -> str:
        """Format datetime for display in local time."""
        if dt is None:
            return "Not specified"
        return dt.astimezone().strftime("%a, %b %d, %Y at %I:%M:%S %p")

    @classmethod
    def format_seat_alert(cls, snapshot: SeatSnapshot) -> str:
        """
        Format a seat-opened alert.

        Args:
            snapshot: The poll result that triggered the alert

        Returns:
            str: Formatted message string
        """
        target = snapshot.target
        return "\n".join([
            "🚨 *SEAT OPEN*",
            "",
            f"📚 *Class:* {target.course_id}",
            f"📅 *Term:* {target.term}",
            f"🪑 *Open seats:* {snapshot.open_seats}",
            f"🕐 *Seen:* {cls._format_datetime(snapshot.observed_at)}",
            "",
            "_Register now before someone else does._",
        ])
