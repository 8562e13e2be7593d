"""
Access-token lifecycle for an Office 365 credential.

The token cache owns a copy of one stored credential's key blob. It hands
out the cached access token while it is valid and, once expired, performs a
single refresh grant, persists the new key blob, and only then starts
serving the new token. Concurrent callers that observe an expired token
share that one refresh, including its failure.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Optional

import httpx

from src.auth.credential_store import CredentialId, CredentialStore
from src.auth.microsoft_oauth import MicrosoftOAuthFlow
from src.integrations.office365_calendar.exceptions import (
    Office365CalendarAuthError,
    graph_error_message,
)

logger = logging.getLogger(__name__)

_TOKEN_FIELDS = ("access_token", "refresh_token", "expiry_date")


@dataclass(frozen=True)
class Office365AuthCredentials:
    """Office 365 key blob: token pair plus absolute expiry in epoch seconds."""

    access_token: str
    refresh_token: str
    expiry_date: int
    extra: dict = field(default_factory=dict)

    @classmethod
    def from_key(cls, key: dict) -> "Office365AuthCredentials":
        """Build from a stored key blob, keeping unknown keys for write-back."""
        return cls(
            access_token=key.get("access_token", ""),
            refresh_token=key.get("refresh_token", ""),
            expiry_date=int(key.get("expiry_date") or 0),
            extra={k: v for k, v in key.items() if k not in _TOKEN_FIELDS},
        )

    def to_key(self) -> dict:
        return {
            **self.extra,
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
            "expiry_date": self.expiry_date,
        }

    def is_expired(self, now: float) -> bool:
        return self.expiry_date < round(now)


def _error_payload(error: httpx.HTTPStatusError) -> Any:
    try:
        return error.response.json()
    except ValueError:
        return error.response.text


class Office365TokenCache:
    """
    Serves a valid access token for one credential, refreshing on expiry.

    Usage:
        cache = Office365TokenCache(credential.id, credential.key, store)
        token = await cache.get_token()
    """

    def __init__(
        self,
        credential_id: CredentialId,
        key: dict,
        credential_store: CredentialStore,
        oauth_flow: Optional[MicrosoftOAuthFlow] = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize the cache.

        Args:
            credential_id: Id used to persist refreshed key blobs
            key: Stored key blob (copied, never mutated)
            credential_store: Persistence for refreshed key blobs
            oauth_flow: Refresh-grant implementation (defaults to settings-based flow)
            clock: Seconds-since-epoch source
        """
        self._credential_id = credential_id
        self._credentials = Office365AuthCredentials.from_key(dict(key))
        self._store = credential_store
        self._oauth_flow = oauth_flow or MicrosoftOAuthFlow()
        self._clock = clock
        self._refresh_task: Optional[asyncio.Task] = None

    @property
    def credentials(self) -> Office365AuthCredentials:
        """Current in-memory key blob."""
        return self._credentials

    @property
    def is_expired(self) -> bool:
        return self._credentials.is_expired(self._clock())

    async def get_token(self) -> str:
        """
        Get a currently valid access token.

        Returns:
            Access token, refreshed and persisted first if it had expired

        Raises:
            Office365CalendarAuthError: If the refresh grant is rejected or malformed
        """
        if not self.is_expired:
            return self._credentials.access_token

        if self._refresh_task is None:
            self._refresh_task = asyncio.create_task(self._refresh())
            self._refresh_task.add_done_callback(self._clear_refresh_task)

        # Every caller shares the in-flight refresh and its outcome.
        await asyncio.shield(self._refresh_task)
        return self._credentials.access_token

    def _clear_refresh_task(self, task: asyncio.Task) -> None:
        if self._refresh_task is task:
            self._refresh_task = None

    async def _refresh(self) -> None:
        try:
            tokens = await self._oauth_flow.refresh_token(self._credentials.refresh_token)
        except httpx.HTTPStatusError as e:
            payload = _error_payload(e)
            logger.error(
                f"Token refresh rejected for credential {self._credential_id}: {payload}"
            )
            raise Office365CalendarAuthError(
                f"Failed to refresh access token: {graph_error_message(payload) or e}",
                original_error=e,
                status_code=e.response.status_code,
                payload=payload,
            ) from e
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Malformed token response for credential {self._credential_id}: {e}")
            raise Office365CalendarAuthError(
                f"Malformed token response: {e}",
                original_error=e,
            ) from e

        refreshed = replace(
            self._credentials,
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token or self._credentials.refresh_token,
            expiry_date=tokens.expiry_date(self._clock()),
        )

        await self._store.update(self._credential_id, refreshed.to_key())
        self._credentials = refreshed
        logger.info(
            f"Refreshed access token for credential {self._credential_id}, "
            f"expires at {refreshed.expiry_date}"
        )
