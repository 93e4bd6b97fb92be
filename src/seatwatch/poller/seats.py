"""
Seat-count client for the schedule-of-classes API.

Fetches one class section and extracts its open-seat count from the JSON
payload.
"""

import logging
import re
from typing import Any, Optional

import requests

from seatwatch.config import Settings, get_settings
from seatwatch.exceptions import FetchError

logger = logging.getLogger(__name__)

# Returned when a response arrives but carries no usable seat count
UNKNOWN_SEATS = -1

SEAT_DIGITS = re.compile(r"[0-9]+")


def parse_open_seats(payload: Any, field: str = "AvailableSeats") -> int:
    """
    Extract the open-seat count from a decoded class payload.

    The payload is searched depth first through nested objects and arrays
    for the first key matching ``field`` (case-insensitive). Integer and
    numeric-string values are accepted; negative counts are treated as unknown.

    Args:
        payload: Decoded JSON body
        field: Name of the seat-count field

    Returns:
        int: Open seats, or UNKNOWN_SEATS if the field is absent or not numeric
    """
    value = _find_field(payload, field.lower())
    if isinstance(value, int) and not isinstance(value, bool):
        return value if value >= 0 else UNKNOWN_SEATS
    if isinstance(value, str) and SEAT_DIGITS.fullmatch(value.strip()):
        return int(value.strip())
    return UNKNOWN_SEATS


def _find_field(node: Any, field: str) -> Optional[Any]:
    if isinstance(node, dict):
        for key, value in node.items():
            if isinstance(key, str) and key.lower() == field:
                return value
        for value in node.values():
            found = _find_field(value, field)
            if found is not None:
                return found
    elif isinstance(node, list):
        for item in node:
            found = _find_field(item, field)
            if found is not None:
                return found
    return None


class SeatClient:
    """
    Authorized client for the class-detail endpoint.

    Uses GET {api_base_url}/Terms/{term}/Classes/{course_id} with the
    current bearer token.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the seat client.

        Args:
            settings: Optional settings instance, will use default if not provided
            session: Optional HTTP session (injected in tests)
        """
        self.settings = settings or get_settings()
        self.base_url = self.settings.umich_api_base_url
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/json"})

    def class_url(self, term: int, course_id: int) -> str:
        return f"{self.base_url}/Terms/{term}/Classes/{course_id}"

    def query_seats(self, term: int, course_id: int, bearer_token: str) -> int:
        """
        Fetch the open-seat count for one class section.

        Args:
            term: Term code
            course_id: Class number
            bearer_token: Current access token

        Returns:
            int: Open seats, or -1 if the body is not in the expected shape

        Raises:
            FetchError: On network errors or a non-200 status
        """
        url = self.class_url(term, course_id)
        try:
            response = self.session.get(
                url,
                headers={"Authorization": f"Bearer {bearer_token}"},
                timeout=self.settings.request_timeout,
            )
        except requests.exceptions.RequestException as e:
            raise FetchError(f"Request for {term}/{course_id} failed: {e}") from e

        if response.status_code != 200:
            raise FetchError(
                f"Class {term}/{course_id} returned HTTP {response.status_code}",
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError:
            logger.warning(f"Class {term}/{course_id}: response is not JSON")
            return UNKNOWN_SEATS

        seats = parse_open_seats(payload, self.settings.seat_field)
        if seats == UNKNOWN_SEATS:
            logger.warning(
                f"Class {term}/{course_id}: no '{self.settings.seat_field}' in response"
            )
        return seats
