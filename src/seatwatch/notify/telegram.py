"""
Telegram Bot API alert sink.

Posts seat alerts to a chat through the Bot API's sendMessage method.
https://core.telegram.org/bots/api
"""

import logging
from typing import Any, Dict, Optional

import requests

from seatwatch.config import Settings, get_settings
from seatwatch.exceptions import NotificationError
from seatwatch.models import SeatSnapshot
from seatwatch.notify.formatters import MessageFormatter

logger = logging.getLogger(__name__)

TELEGRAM_API_URL = "https://api.telegram.org/bot{token}/{method}"


class TelegramAlertSink:
    """
    Sends each dispatched alert to one Telegram chat.

    Delivery failures raise NotificationError so the dispatcher and
    CompositeSink record them as failed alerts.
    """

    def __init__(
        self,
        token: Optional[str] = None,
        chat_id: Optional[str] = None,
        settings: Optional[Settings] = None,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize Telegram sink.

        Args:
            token: Telegram Bot API token (from @BotFather)
            chat_id: Telegram chat ID (user, group, or channel)
            settings: Optional settings instance, will use default if not provided
            session: Optional HTTP session (injected in tests)
        """
        settings = settings or get_settings()

        self.token = token or settings.telegram_bot_token
        self.chat_id = chat_id or settings.telegram_chat_id
        self.timeout = settings.request_timeout
        self.session = session or requests.Session()

    def alert(self, snapshot: SeatSnapshot) -> None:
        self.send_message(MessageFormatter.format_seat_alert(snapshot))

    def send_message(self, text: str) -> int:
        """
        Post ``text`` to the configured chat as Markdown.

        Returns:
            int: Telegram message ID

        Raises:
            NotificationError: If the request fails or the API rejects it
        """
        result = self._call("sendMessage", {
            "chat_id": self.chat_id,
            "text": text,
            "parse_mode": "Markdown",
            "disable_web_page_preview": True,
        })
        message_id = result.get("message_id")
        logger.info(f"Telegram alert delivered (message {message_id})")
        return message_id

    def test_connection(self) -> bool:
        """Check the bot token with getMe; False if it is rejected or unreachable."""
        try:
            bot = self._call("getMe")
        except NotificationError as e:
            logger.error(f"Failed to connect to Telegram: {e}")
            return False
        logger.info(f"Connected to Telegram bot: @{bot.get('username')}")
        return True

    def _call(self, method: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        url = TELEGRAM_API_URL.format(token=self.token, method=method)
        try:
            response = self.session.post(url, json=payload or {}, timeout=self.timeout)
            body = response.json()
        except requests.exceptions.RequestException as e:
            raise NotificationError(f"Telegram {method} request failed: {e}") from e
        except ValueError:
            raise NotificationError(
                f"Telegram {method} returned HTTP {response.status_code} with a non-JSON body"
            )

        if not isinstance(body, dict):
            body = {}
        if response.status_code != 200 or not body.get("ok"):
            raise NotificationError(
                f"Telegram {method} failed (HTTP {response.status_code}): "
                f"{body.get('description', 'no description')}"
            )
        return body.get("result") or {}
