"""Shared fixtures for SeatWatch tests."""

from unittest.mock import MagicMock, Mock

import pytest

from seatwatch.config import Settings


@pytest.fixture
def make_settings():
    """Factory for Settings that ignores any local .env file."""

    def _make(**overrides) -> Settings:
        values = {
            "umich_client_id": "client",
            "umich_client_secret": "secret",
            "term": 1770,
            "course_ids": [12345],
            "auth_retry_backoff": 0,
            "request_timeout": 5,
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _make


@pytest.fixture
def make_response():
    """Factory for fake ``requests.Response`` objects."""

    def _make(status_code: int = 200, payload=None, text: str = "", reason: str = "OK"):
        response = Mock()
        response.status_code = status_code
        response.reason = reason
        response.text = text
        if payload is None:
            response.json.side_effect = ValueError("Expecting value: line 1 column 1 (char 0)")
        else:
            response.json.return_value = payload
        return response

    return _make


@pytest.fixture
def session():
    """A stand-in for ``requests.Session`` with a real headers dict."""
    fake = MagicMock()
    fake.headers = {}
    return fake


@pytest.fixture
def token_payload():
    def _make(access: str, refresh: str, expires_in: int = 3600) -> dict:
        return {
            "scope": "PRODUCTION",
            "token_type": "bearer",
            "expires_in": expires_in,
            "refresh_token": refresh,
            "access_token": access,
        }

    return _make
