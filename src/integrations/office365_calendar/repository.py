"""
Office 365 Calendar Repository implementation.

Implements CalendarRepository protocol using Microsoft Graph.
"""

import logging
from typing import Any, Callable, Optional, Sequence

import httpx

from src.auth.credential_store import CredentialStore
from src.auth.microsoft_oauth import MicrosoftOAuthFlow
from src.integrations.base import (
    BufferedBusyTime,
    CalendarEvent,
    CalendarRepository,
    DateTimeLike,
    IntegrationCalendar,
    SelectedCalendar,
)
from src.integrations.office365_calendar.adapter import (
    INTEGRATION_TYPE,
    Office365CalendarAdapter,
)
from src.integrations.office365_calendar.auth import Office365TokenCache
from src.integrations.office365_calendar.availability import AvailabilityAggregator
from src.integrations.office365_calendar.calendars import CalendarLister
from src.integrations.office365_calendar.client import GraphClient

logger = logging.getLogger(__name__)

EVENTS_PATH = "/me/calendar/events"


class Office365CalendarRepository(CalendarRepository):
    """
    CalendarRepository implementation using Microsoft Graph.

    Wraps one stored credential. Every operation starts by obtaining a valid
    access token, which may refresh and persist the credential first.
    """

    integration_type = INTEGRATION_TYPE

    def __init__(
        self,
        credential: Any,
        credential_store: CredentialStore,
        http_client: Optional[httpx.AsyncClient] = None,
        oauth_flow: Optional[MicrosoftOAuthFlow] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        """
        Initialize the repository.

        Args:
            credential: Stored credential with ``id`` and ``key`` attributes
            credential_store: Persistence for refreshed key blobs
            http_client: Shared httpx client for Graph calls (created if None)
            oauth_flow: Refresh-grant implementation (defaults to settings-based flow)
            clock: Seconds-since-epoch source for expiry checks
        """
        token_cache_kwargs = {"clock": clock} if clock is not None else {}
        self._token_cache = Office365TokenCache(
            credential.id,
            credential.key,
            credential_store,
            oauth_flow=oauth_flow,
            **token_cache_kwargs,
        )
        self._client = GraphClient(http_client=http_client)
        self._adapter = Office365CalendarAdapter()
        self._calendar_lister = CalendarLister(self._token_cache, self._client)
        self._availability = AvailabilityAggregator(
            self._token_cache,
            self._client,
            self._calendar_lister,
        )

    @property
    def token_cache(self) -> Office365TokenCache:
        return self._token_cache

    async def list_calendars(self) -> list[IntegrationCalendar]:
        """
        List the calendars visible to the credential holder.

        Returns:
            Normalized calendars
        """
        return await self._calendar_lister.list_calendars()

    async def get_availability(
        self,
        date_from: DateTimeLike,
        date_to: DateTimeLike,
        selected_calendars: Sequence[SelectedCalendar],
    ) -> list[BufferedBusyTime]:
        """
        Query busy intervals across the selected (or all) calendars.

        Raises:
            Office365AvailabilityError: If aggregation fails
        """
        return await self._availability.get_availability(date_from, date_to, selected_calendars)

    async def create_event(self, event: CalendarEvent) -> dict:
        """
        Create an event in the default calendar.

        Args:
            event: Event data

        Returns:
            Created Graph event resource
        """
        body = self._adapter.to_graph_event(event)
        access_token = await self._token_cache.get_token()

        created = await self._client.post_json(EVENTS_PATH, access_token, body)
        logger.info(f"Created event '{event.title}' with ID {created.get('id')}")
        return created

    async def update_event(self, uid: str, event: CalendarEvent) -> dict:
        """
        Update an existing event (PATCH).

        Args:
            uid: Graph event id
            event: New event data

        Returns:
            Updated Graph event resource
        """
        body = self._adapter.to_graph_event(event)
        access_token = await self._token_cache.get_token()

        updated = await self._client.patch_json(f"{EVENTS_PATH}/{uid}", access_token, body)
        logger.info(f"Updated event {uid}")
        return updated

    async def delete_event(self, uid: str) -> str:
        """
        Delete an event.

        Args:
            uid: Graph event id

        Returns:
            Raw response body (empty on 204)
        """
        access_token = await self._token_cache.get_token()

        result = await self._client.delete(f"{EVENTS_PATH}/{uid}", access_token)
        logger.info(f"Deleted event {uid}")
        return result

    async def close(self):
        """Clean up resources."""
        await self._client.aclose()

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()
        return False
