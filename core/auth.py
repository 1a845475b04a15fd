# =============================================================================
# core/auth.py  -  OAuth2 token lifecycle for one Veeam credential
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   TokenManager keeps a usable bearer token in its TokenState.  Callers only
#   ever need ensure_valid(); login() and refresh() are public so the request
#   executor can force a refresh after a 401.
#
# THE DECISION LADDER (ensure_valid):
#   1. Token held and more than 30s from expiry  ->  nothing to do
#   2. Refresh token held and refresh grant ok    ->  done
#   3. Otherwise                                  ->  password grant
#
#   The 30 second margin keeps a token from expiring between the staleness
#   check and the request that is about to use it.
#
# CONCURRENCY:
#   Several tool calls can be in flight on the same manager.  There is no lock
#   around the ladder: two stale callers may both refresh (or both log in).
#   Each grant leaves the state valid on its own, so the worst case is an
#   extra round trip to the token endpoint.
# =============================================================================

import logging
import math
import time
from typing import Any, Callable, Optional

import httpx

from core.errors import AuthenticationError
from core.models import Credential, TokenState

logger = logging.getLogger(__name__)

TOKEN_PATH = "/api/v3/token"
REFRESH_MARGIN_SECONDS = 30.0
DEFAULT_LIFETIME_SECONDS = 600.0

_TOKEN_HEADERS = {
    "Content-Type": "application/x-www-form-urlencoded",
    "Accept": "application/json",
}


def response_text(response: httpx.Response) -> str:
    """Best-effort body text for error messages; never raises."""
    try:
        return response.text
    except (httpx.StreamError, UnicodeDecodeError, LookupError):
        return ""


def token_lifetime(expires_in: Any) -> float:
    """Seconds until expiry, falling back to 600 when the server gives nothing usable."""
    try:
        seconds = float(expires_in)
    except (TypeError, ValueError):
        return DEFAULT_LIFETIME_SECONDS
    if not math.isfinite(seconds) or seconds <= 0:
        return DEFAULT_LIFETIME_SECONDS
    return seconds


def _token_payload(response: httpx.Response) -> Optional[dict]:
    try:
        payload = response.json()
    except ValueError:
        return None
    if not isinstance(payload, dict):
        return None
    token = payload.get("access_token")
    if not isinstance(token, str) or not token:
        return None
    return payload


class TokenManager:
    """Owns the access/refresh token pair for a single credential.

    Args:
        credential: Base URL and login for the password grant.
        http: Shared async client used for the token endpoint.
        state: Token state to manage; a fresh empty one if omitted.
        clock: Returns the current epoch time in seconds.
    """

    def __init__(
        self,
        credential: Credential,
        http: httpx.AsyncClient,
        state: Optional[TokenState] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.credential = credential
        self.state = state if state is not None else TokenState()
        self._http = http
        self._clock = clock

    @property
    def token_url(self) -> str:
        return self.credential.base_url + TOKEN_PATH

    @property
    def access_token(self) -> Optional[str]:
        return self.state.access_token

    async def ensure_valid(self) -> None:
        """Make sure an unexpired access token is held.

        Raises:
            AuthenticationError: if the fallback password grant is rejected.
        """
        if self.state.is_fresh(self._clock(), REFRESH_MARGIN_SECONDS):
            return
        if self.state.refresh_token and await self.refresh():
            return
        await self.login()

    async def login(self) -> None:
        """Run the OAuth2 password grant and store the result.

        Raises:
            AuthenticationError: on a non-2xx status or a response without
                an access token.
        """
        logger.info("Logging in to %s as %s", self.credential.base_url, self.credential.username)
        response = await self._http.post(
            self.token_url,
            data={
                "grant_type": "password",
                "username": self.credential.username,
                "password": self.credential.password,
            },
            headers=_TOKEN_HEADERS,
        )
        if not response.is_success:
            raise AuthenticationError(response.status_code, response_text(response))

        payload = _token_payload(response)
        if payload is None:
            raise AuthenticationError(response.status_code, "token response has no access_token")
        self._store(payload)

    async def refresh(self) -> bool:
        """Run the refresh_token grant.  Returns False instead of raising."""
        if not self.state.refresh_token:
            return False

        try:
            response = await self._http.post(
                self.token_url,
                data={"grant_type": "refresh_token", "refresh_token": self.state.refresh_token},
                headers=_TOKEN_HEADERS,
            )
        except httpx.HTTPError as exc:
            logger.warning("Token refresh failed: %s", exc)
            return False

        if not response.is_success:
            logger.info("Token refresh rejected with %s", response.status_code)
            return False

        payload = _token_payload(response)
        if payload is None:
            logger.warning("Token refresh returned no access_token")
            return False

        self._store(payload)
        logger.debug("Token refreshed")
        return True

    def _store(self, payload: dict) -> None:
        self.state.access_token = payload["access_token"]
        # Keep the old refresh token unless the server hands out a new one
        if payload.get("refresh_token"):
            self.state.refresh_token = payload["refresh_token"]
        self.state.expires_at = self._clock() + token_lifetime(payload.get("expires_in"))
