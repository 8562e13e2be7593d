"""
Busy-time aggregation across Office 365 calendars.

One availability query fans out to every relevant calendar through a single
Graph JSON batch, then fans the sub-responses back into one flat list of
UTC busy intervals.
"""

import logging
from typing import Sequence

from src.integrations.base import BufferedBusyTime, DateTimeLike, SelectedCalendar
from src.integrations.office365_calendar.adapter import (
    INTEGRATION_TYPE,
    Office365CalendarAdapter,
)
from src.integrations.office365_calendar.auth import Office365TokenCache
from src.integrations.office365_calendar.calendars import CalendarLister
from src.integrations.office365_calendar.client import GraphClient
from src.integrations.office365_calendar.exceptions import Office365AvailabilityError

logger = logging.getLogger(__name__)


def select_calendar_ids(selected_calendars: Sequence[SelectedCalendar]) -> list[str]:
    """External ids of the selections that belong to this integration."""
    return [
        selection.external_id
        for selection in selected_calendars
        if selection.integration == INTEGRATION_TYPE and selection.external_id
    ]


class AvailabilityAggregator:
    """
    Resolves which calendars to query and merges their busy intervals.

    Selection rules:
    - Selections for this integration: query exactly those calendars
    - Selections only for other integrations: contribute nothing, no network calls
    - No selections at all: query every calendar the credential can see
    """

    def __init__(
        self,
        token_cache: Office365TokenCache,
        client: GraphClient,
        calendar_lister: CalendarLister,
    ):
        self._token_cache = token_cache
        self._client = client
        self._calendar_lister = calendar_lister
        self._adapter = Office365CalendarAdapter()

    async def get_availability(
        self,
        date_from: DateTimeLike,
        date_to: DateTimeLike,
        selected_calendars: Sequence[SelectedCalendar],
    ) -> list[BufferedBusyTime]:
        """
        Query busy intervals in one batched round trip.

        Args:
            date_from: Range start
            date_to: Range end
            selected_calendars: Selections across all integrations

        Returns:
            Busy intervals from every queried calendar, in request order

        Raises:
            Office365AvailabilityError: If any step fails; wraps the original error
        """
        calendar_ids = select_calendar_ids(selected_calendars)
        if not calendar_ids and selected_calendars:
            # Only calendars of other integrations were selected
            return []

        try:
            access_token = await self._token_cache.get_token()

            if not calendar_ids:
                calendars = await self._calendar_lister.list_calendars()
                calendar_ids = [calendar.external_id for calendar in calendars if calendar.external_id]
                if not calendar_ids:
                    logger.debug("No Office 365 calendars to query for availability")
                    return []

            requests = self._adapter.build_calendar_view_requests(calendar_ids, date_from, date_to)
            response = await self._client.post_batch(requests, access_token)
            busy_times = self._adapter.parse_batch_response(response)
        except Exception as e:
            logger.exception(f"Failed to aggregate Office 365 availability: {e}")
            raise Office365AvailabilityError(
                f"Failed to aggregate availability: {e}",
                original_error=e,
            ) from e

        logger.debug(
            f"Aggregated {len(busy_times)} busy intervals from {len(calendar_ids)} calendars"
        )
        return busy_times
