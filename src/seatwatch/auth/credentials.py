"""
OAuth credential management for the university API.

Issues an access token with the client-credentials grant at startup and keeps
it fresh with the refresh-token grant. The current credential lives in a
CredentialHolder that the poller reads and only the manager writes.
"""

import logging
import threading
from typing import Any, Dict, Optional

import requests

from seatwatch.config import Settings, get_settings
from seatwatch.exceptions import AuthError, FatalAuthError, RecoverableAuthError
from seatwatch.models import ClientIdentity, Credential

logger = logging.getLogger(__name__)


def _mask(secret: Any) -> str:
    text = str(secret)
    if len(text) <= 8:
        return "***"
    return f"{text[:4]}...{text[-2:]}"


def mask_token_payload(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Copy of a token response with the token values masked for logging."""
    return {
        key: _mask(value) if key in ("access_token", "refresh_token") else value
        for key, value in payload.items()
    }


def parse_token_response(payload: Any) -> Credential:
    """
    Build a Credential from a token endpoint response.

    Args:
        payload: Decoded JSON body of the token response

    Returns:
        Credential: New bearer token and refresh token pair

    Raises:
        AuthError: If either token is missing or empty
    """
    if not isinstance(payload, dict):
        raise AuthError(f"Unexpected token response type: {type(payload).__name__}")

    access_token = payload.get("access_token")
    refresh_token = payload.get("refresh_token")
    if not isinstance(access_token, str) or not access_token:
        raise AuthError("Token response has no access_token")
    if not isinstance(refresh_token, str) or not refresh_token:
        raise AuthError("Token response has no refresh_token")

    expires_in = payload.get("expires_in")
    try:
        expires_in = int(expires_in) if expires_in is not None else None
    except (TypeError, ValueError):
        expires_in = None

    return Credential(
        bearer_token=access_token,
        renewal_secret=refresh_token,
        expires_in=expires_in,
    )


class CredentialHolder:
    """
    Shared slot for the current credential.

    The stored Credential is immutable and replaced by a single reference
    assignment, so readers always get a complete pair without locking.
    """

    def __init__(self, credential: Optional[Credential] = None):
        self._credential = credential

    @property
    def is_initialized(self) -> bool:
        return self._credential is not None

    def get(self) -> Credential:
        """
        Return the current credential.

        Raises:
            AuthError: If no credential has been issued yet
        """
        credential = self._credential
        if credential is None:
            raise AuthError("No credential issued yet. Call initialize() first.")
        return credential

    def swap(self, credential: Credential) -> Optional[Credential]:
        """Replace the current credential, returning the previous one."""
        previous = self._credential
        self._credential = credential
        return previous


class CredentialManager:
    """
    Issues and refreshes access tokens for the university API.

    Handles:
    - Client-credentials issuance at startup (fatal on failure)
    - Periodic refresh-token exchange (previous credential kept on failure)
    - Retry with exponential backoff on transient network errors
    """

    GRANT_CLIENT_CREDENTIALS = "client_credentials"
    GRANT_REFRESH_TOKEN = "refresh_token"

    def __init__(
        self,
        identity: ClientIdentity,
        settings: Optional[Settings] = None,
        session: Optional[requests.Session] = None,
        holder: Optional[CredentialHolder] = None,
        stop_event: Optional[threading.Event] = None,
    ):
        """
        Initialize the credential manager.

        Args:
            identity: Client ID and secret; the Basic key is derived once here
            settings: Optional settings instance, will use default if not provided
            session: Optional HTTP session (injected in tests)
            holder: Optional holder to publish credentials into
            stop_event: Interrupts retry backoff when the monitor stops
        """
        self.settings = settings or get_settings()
        self.identity = identity
        self.renewal_key = identity.renewal_key
        self.holder = holder or CredentialHolder()
        self._stop = stop_event or threading.Event()

        self.session = session or requests.Session()
        self.session.headers.update({
            "Authorization": f"Basic {self.renewal_key}",
            "Content-Type": "application/x-www-form-urlencoded",
            "Accept": "application/json",
        })

        self.consecutive_failures = 0

    @property
    def credential(self) -> Credential:
        """Current credential (read-only view for callers)."""
        return self.holder.get()

    def initialize(self) -> Credential:
        """
        Obtain the first credential with the client-credentials grant.

        Returns:
            Credential: The issued credential, also published to the holder

        Raises:
            FatalAuthError: If issuance fails after all retries
        """
        logger.info(f"Requesting access token from {self.settings.umich_auth_url}")
        try:
            credential = self._exchange({
                "grant_type": self.GRANT_CLIENT_CREDENTIALS,
                "scope": self.settings.oauth_scope,
            })
        except AuthError as e:
            raise FatalAuthError(f"Initial token issuance failed: {e}") from e

        self.holder.swap(credential)
        logger.info(f"Access token issued (expires in {credential.expires_in}s)")
        return credential

    def refresh(self) -> Optional[Credential]:
        """
        Exchange the current refresh token for a new credential.

        On failure the holder is left untouched and the previous credential
        stays in effect until the next successful refresh.

        Returns:
            Credential or None if the refresh failed
        """
        current = self.holder.get()
        try:
            credential = self._exchange({
                "grant_type": self.GRANT_REFRESH_TOKEN,
                "refresh_token": current.renewal_secret,
                "scope": self.settings.oauth_scope,
            })
        except AuthError as e:
            self.consecutive_failures += 1
            error = RecoverableAuthError(str(e))
            logger.warning(
                f"Token refresh failed ({self.consecutive_failures} in a row), "
                f"keeping previous credential: {error}"
            )
            return None

        self.holder.swap(credential)
        if self.consecutive_failures:
            logger.info(f"Token refresh recovered after {self.consecutive_failures} failure(s)")
        self.consecutive_failures = 0
        logger.info("Access token refreshed")
        return credential

    def _exchange(self, form: Dict[str, str]) -> Credential:
        """
        POST a grant to the token endpoint.

        Retries up to auth_max_retries times on connection/timeout errors.

        Raises:
            AuthError: On non-200 status, malformed body or exhausted retries
        """
        max_retries = max(1, self.settings.auth_max_retries)
        last_error: Optional[Exception] = None

        for attempt in range(1, max_retries + 1):
            try:
                return self._post_token(form)
            except requests.exceptions.ConnectionError as e:
                last_error = e
            except requests.exceptions.Timeout as e:
                last_error = e

            if attempt < max_retries:
                wait = self.settings.auth_retry_backoff * (2 ** (attempt - 1))
                logger.warning(
                    f"Token request attempt {attempt}/{max_retries} failed "
                    f"(transient network error). Retrying in {wait}s…"
                )
                if self._stop.wait(wait):
                    break

        raise AuthError(f"Token request failed after {attempt} attempt(s): {last_error}")

    def _post_token(self, form: Dict[str, str]) -> Credential:
        """
        Single token request.

        Raises:
            AuthError: If the server rejects the grant or the body is malformed
            requests.exceptions.ConnectionError: On network errors
            requests.exceptions.Timeout: On timeout errors
        """
        try:
            response = self.session.post(
                self.settings.umich_auth_url,
                data=form,
                timeout=self.settings.request_timeout,
            )
        except (requests.exceptions.ConnectionError, requests.exceptions.Timeout):
            raise  # let the retry loop in _exchange() handle these
        except requests.exceptions.RequestException as e:
            raise AuthError(f"Token request failed: {e}") from e

        if response.status_code != 200:
            raise AuthError(
                f"Token endpoint returned HTTP {response.status_code} {response.reason or ''}".rstrip()
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise AuthError(f"Token response is not valid JSON: {e}") from e

        if isinstance(payload, dict):
            logger.debug(f"Token response: {mask_token_payload(payload)}")
        return parse_token_response(payload)
