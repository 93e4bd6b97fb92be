"""Exception hierarchy for SeatWatch."""

from typing import Optional


class SeatWatchError(Exception):
    """Base class for all SeatWatch errors."""
    pass


class AuthError(SeatWatchError):
    """Raised when a token exchange with the authorization server fails."""
    pass


class FatalAuthError(AuthError):
    """Initial credential issuance failed; monitoring cannot start."""
    pass


class RecoverableAuthError(AuthError):
    """A scheduled refresh failed; the previous credential stays in effect."""
    pass


class FetchError(SeatWatchError):
    """Raised when a seat-availability request fails outright."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class UsageError(SeatWatchError):
    """Raised for invalid command-line arguments."""
    pass


class NotificationError(SeatWatchError):
    """Raised when an alert sink could not deliver its message."""
    pass
