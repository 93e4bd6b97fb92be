"""Authentication module for SeatWatch - OAuth token lifecycle."""

from seatwatch.auth.credentials import CredentialHolder, CredentialManager

__all__ = ["CredentialHolder", "CredentialManager"]
