"""
Microsoft identity platform OAuth 2.0 refresh grant.

Only the refresh-token grant lives here. Issuing the initial credential
(authorization code flow) is handled by the host application; this module
keeps an already-issued grant alive:

1. Access token expires (expiry_date in the stored key blob)
2. POST refresh_token grant to the token endpoint (form-encoded)
3. Receive a new access_token + expires_in (and possibly a rotated refresh_token)
"""

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from src.config import get_settings

logger = logging.getLogger(__name__)


@dataclass
class OAuthTokens:
    """OAuth token response from the Microsoft identity platform."""

    access_token: str
    refresh_token: Optional[str]
    expires_in: int
    token_type: str = "Bearer"
    scope: str = ""

    def expiry_date(self, now: float) -> int:
        """Absolute expiry in whole seconds since epoch, relative to ``now``."""
        return round(now + self.expires_in)


class MicrosoftOAuthFlow:
    """
    Performs refresh-token grants against the Microsoft token endpoint.

    Usage:
        flow = MicrosoftOAuthFlow()
        tokens = await flow.refresh_token(stored_refresh_token)

    An ``httpx.AsyncClient`` may be injected (shared connection pool, tests);
    otherwise a short-lived client is opened per refresh.
    """

    def __init__(
        self,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        settings = get_settings()
        self.client_id = client_id if client_id is not None else settings.ms_graph_client_id
        self.client_secret = (
            client_secret if client_secret is not None else settings.ms_graph_client_secret
        )
        self.token_url = settings.ms_graph_token_url
        self.scope = settings.ms_graph_scopes
        self.timeout = settings.ms_graph_http_timeout
        self._http_client = http_client

        if not self.client_id or not self.client_secret:
            logger.warning(
                "Microsoft Graph OAuth not configured. Set MS_GRAPH_CLIENT_ID and "
                "MS_GRAPH_CLIENT_SECRET in environment."
            )

    async def _post_form(self, data: dict) -> httpx.Response:
        if self._http_client is not None:
            return await self._http_client.post(self.token_url, data=data)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.post(self.token_url, data=data)

    async def refresh_token(self, refresh_token: str) -> OAuthTokens:
        """
        Refresh an expired access token.

        Args:
            refresh_token: The refresh token from the stored credential

        Returns:
            New OAuthTokens with fresh access_token

        Raises:
            httpx.HTTPStatusError: If the token endpoint rejects the grant
            KeyError, ValueError: If the response body is malformed
        """
        data = {
            "scope": self.scope,
            "client_id": self.client_id,
            "refresh_token": refresh_token,
            "grant_type": "refresh_token",
            "client_secret": self.client_secret,
        }

        response = await self._post_form(data)
        response.raise_for_status()
        token_data = response.json()

        tokens = OAuthTokens(
            access_token=token_data["access_token"],
            refresh_token=token_data.get("refresh_token"),
            expires_in=int(token_data["expires_in"]),
            token_type=token_data.get("token_type", "Bearer"),
            scope=token_data.get("scope", ""),
        )

        logger.info("Successfully refreshed access token")
        return tokens
