"""Last.fm desktop-style authorization handshake.

Hey future me - this is the ONLY place that talks to Last.fm's auth endpoints!

Handshake:
1. auth.getToken -> unauthorized token
2. approve(url) -> the user opens https://www.last.fm/api/auth/?api_key=...&token=...
3. auth.getSession (polled) -> session key + username once the user clicked "allow"

While the user hasn't approved yet, Last.fm answers getSession with error 14. We keep
polling on that code only. Error 15 (token expired) or anything else is FATAL - we don't
restart the handshake ourselves, the caller re-runs initialize() if it wants to retry.

Session keys are NOT persisted. If the config carries a sessionKey (e.g. from a previous
manual login) we skip the browser dance and use it directly.
"""

import asyncio
import logging
from typing import Any
from urllib.parse import urlencode

import httpx

from lastfm_provider.config.settings import ProviderSettings, get_settings
from lastfm_provider.domain.dtos import AuthorizedSession
from lastfm_provider.domain.exceptions import AuthError, LastFmAPIError
from lastfm_provider.domain.ports import ApprovalCallback, Authorizer, ILastfmClient

logger = logging.getLogger(__name__)

TOKEN_NOT_AUTHORIZED = 14
TOKEN_EXPIRED = 15


async def log_approval_url(url: str) -> None:
    """Default approval callback: tell the user where to click."""
    logger.warning("Open %s in a browser to allow access to your Last.fm account", url)


class LastFmAuthorizer(Authorizer):
    """Authorizes the provider against Last.fm."""

    def __init__(
        self,
        client: ILastfmClient,
        session_key: str | None = None,
        approve: ApprovalCallback | None = None,
        settings: ProviderSettings | None = None,
    ) -> None:
        """
        Args:
            client: Last.fm client carrying apiKey/apiSecret
            session_key: Pre-existing session key, skips the token handshake
            approve: Called once with the approval URL, defaults to logging it
            settings: Provider settings, defaults to get_settings()
        """
        self.client = client
        self.session_key = session_key
        self.approve = approve or log_approval_url
        self.settings = settings or get_settings()

    def approval_url(self, api_key: str, token: str) -> str:
        """Build the URL the user must visit to approve the token."""
        return f"{self.settings.auth_url}?{urlencode({'api_key': api_key, 'token': token})}"

    async def authorize(self) -> AuthorizedSession:
        """Run the handshake and return an authorized session.

        Raises:
            AuthError: On rejection, expiry, timeout or network failure
        """
        if self.session_key:
            logger.info("Using configured Last.fm session key, skipping token handshake")
            return AuthorizedSession(client=self.client, session_key=self.session_key)

        try:
            token = await self.client.get_token()
            await self.approve(self.approval_url(self.client.api_key, token))
            session = await self._poll_session(token)
        except LastFmAPIError as e:
            if e.code == TOKEN_EXPIRED:
                raise AuthError("Last.fm token expired before it was approved", error_code=e.code) from e
            raise AuthError(f"Last.fm rejected authorization: {e.message}", error_code=e.code) from e
        except httpx.HTTPError as e:
            raise AuthError(f"Could not reach Last.fm: {e}") from e

        logger.info("Authorized with Last.fm as %s", session.get("name"))
        return AuthorizedSession(
            client=self.client,
            session_key=str(session["key"]),
            username=session.get("name"),
        )

    async def _poll_session(self, token: str) -> dict[str, Any]:
        """Poll auth.getSession until the user approves the token."""
        for attempt in range(1, self.settings.auth_max_attempts + 1):
            try:
                return await self.client.get_session(token)
            except LastFmAPIError as e:
                if e.code != TOKEN_NOT_AUTHORIZED:
                    raise
                logger.debug(
                    "Token not approved yet (attempt %d/%d)",
                    attempt,
                    self.settings.auth_max_attempts,
                )
            await asyncio.sleep(self.settings.auth_poll_interval)

        raise AuthError(
            f"Token was not approved after {self.settings.auth_max_attempts} attempts",
            error_code=TOKEN_NOT_AUTHORIZED,
        )
