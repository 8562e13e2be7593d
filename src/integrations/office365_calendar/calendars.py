"""Calendar listing for an Office 365 credential."""

import logging

from src.integrations.base import IntegrationCalendar
from src.integrations.office365_calendar.adapter import Office365CalendarAdapter
from src.integrations.office365_calendar.auth import Office365TokenCache
from src.integrations.office365_calendar.client import GraphClient

logger = logging.getLogger(__name__)


class CalendarLister:
    """Fetches the calendars visible to the credential holder."""

    def __init__(self, token_cache: Office365TokenCache, client: GraphClient):
        self._token_cache = token_cache
        self._client = client
        self._adapter = Office365CalendarAdapter()

    async def list_calendars(self) -> list[IntegrationCalendar]:
        access_token = await self._token_cache.get_token()
        response = await self._client.get_json("/me/calendars", access_token)

        calendars = [
            self._adapter.from_graph_calendar(graph_calendar)
            for graph_calendar in response["value"]
        ]
        logger.debug(f"Listed {len(calendars)} Office 365 calendars")
        return calendars
