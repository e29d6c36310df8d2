"""
Auth Session

An explicit credential object that is handed to the API client instead of
living in module-level state. The authentication protocol itself belongs
to an external identity provider; this module only manages the lifecycle
of the tokens it hands out:

  - login:            acquire tokens from the identity provider
  - get_access_token: return the access token, refreshing it when it is
                      about to expire
  - logout:           clear tokens and notify the identity provider
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Protocol

from api.config import TOKEN_REFRESH_SKEW

logger = logging.getLogger(__name__)


class NotAuthenticatedError(Exception):
    """Raised when a token is required but the session is logged out."""


@dataclass
class TokenGrant:
    """Tokens issued by the identity provider"""

    access_token: str
    expires_at: datetime
    refresh_token: Optional[str] = None


class IdentityProvider(Protocol):
    """The external identity provider the session talks to."""

    async def sign_in(self, email: str, password: str) -> TokenGrant: ...

    async def refresh(self, refresh_token: str) -> TokenGrant: ...

    async def sign_out(self, access_token: str) -> None: ...


class AuthSession:
    """
    Holds the current user's tokens for one client.

    Each AuthSession is independent; create one per signed-in user and
    pass it to WatchGraphClient.
    """

    def __init__(
        self,
        provider: IdentityProvider,
        refresh_skew: int = TOKEN_REFRESH_SKEW,
    ):
        self.provider = provider
        self.refresh_skew = timedelta(seconds=refresh_skew)
        self.email: Optional[str] = None
        self._grant: Optional[TokenGrant] = None
        self._lock = asyncio.Lock()

    @property
    def is_authenticated(self) -> bool:
        return self._grant is not None

    async def login(self, email: str, password: str) -> None:
        """Acquire tokens for the given user."""
        grant = await self.provider.sign_in(email, password)
        async with self._lock:
            self._grant = grant
            self.email = email
        logger.info(f"Signed in as {email}")

    async def get_access_token(self) -> str:
        """
        Return a valid access token.

        Refreshes the grant when it expires within refresh_skew seconds.
        If the refresh fails the session is cleared and the error re-raised.

        Raises:
            NotAuthenticatedError: If the session is logged out or the grant
                has expired with no refresh token.
        """
        async with self._lock:
            grant = self._grant
            if grant is None:
                raise NotAuthenticatedError("Not signed in")

            if datetime.now() + self.refresh_skew < grant.expires_at:
                return grant.access_token

            if not grant.refresh_token:
                self._clear()
                raise NotAuthenticatedError("Session expired")

            try:
                refreshed = await self.provider.refresh(grant.refresh_token)
            except Exception:
                logger.exception("Token refresh failed; clearing session")
                self._clear()
                raise

            if refreshed.refresh_token is None:
                refreshed.refresh_token = grant.refresh_token
            self._grant = refreshed
            logger.debug(f"Refreshed access token for {self.email}")
            return refreshed.access_token

    async def auth_headers(self) -> dict[str, str]:
        """
        Headers for an API request.

        Logged-out sessions get no Authorization header; the API decides
        whether that is acceptable.
        """
        headers = {"Content-Type": "application/json"}
        try:
            token = await self.get_access_token()
        except NotAuthenticatedError:
            logger.warning("No access token in session; sending unauthenticated request")
            return headers
        headers["Authorization"] = f"Bearer {token}"
        return headers

    async def logout(self) -> None:
        """Clear tokens and tell the identity provider."""
        async with self._lock:
            grant = self._grant
            self._clear()
        if grant is not None:
            await self.provider.sign_out(grant.access_token)
            logger.info("Signed out")

    def _clear(self) -> None:
        self._grant = None
        self.email = None
