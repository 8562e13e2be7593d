"""
Mapping between provider-neutral types and Microsoft Graph payloads.

Handles:
- Event translation (CalendarEvent -> Graph event resource)
- Calendar normalization with a default table for optional Graph fields
- Batch building and parsing for calendarView busy-time queries
"""

import logging
from datetime import datetime, timezone
from typing import Iterable, Sequence
from urllib.parse import quote, urlencode

from src.integrations.base import (
    BufferedBusyTime,
    CalendarEvent,
    DateTimeLike,
    IntegrationCalendar,
)
from src.integrations.office365_calendar.exceptions import error_for_status

logger = logging.getLogger(__name__)

INTEGRATION_TYPE = "office365_calendar"

# Graph returns calendarView times in this zone when asked via Prefer header,
# so every busy interval across calendars is UTC.
BATCH_TIMEZONE_PREFERENCE = 'outlook.timezone="Etc/GMT"'

# Graph calendar field -> (IntegrationCalendar field, value when missing or null)
CALENDAR_FIELD_DEFAULTS = {
    "id": ("external_id", "No Id"),
    "name": ("name", "No calendar name"),
    "isDefaultCalendar": ("primary", False),
}


class Office365CalendarAdapter:
    """Maps between internal types and Microsoft Graph API format."""

    @staticmethod
    def to_graph_event(event: CalendarEvent) -> dict:
        """
        Convert an internal event to a Graph event resource.

        Args:
            event: Event to create or update

        Returns:
            Dict suitable for Graph POST/PATCH on /me/calendar/events
        """
        time_zone = event.organizer.time_zone
        graph_event: dict = {
            "subject": event.title,
            "body": {
                "contentType": "HTML",
                "content": event.description,
            },
            "start": {
                "dateTime": _format_datetime(event.start_time),
                "timeZone": time_zone,
            },
            "end": {
                "dateTime": _format_datetime(event.end_time),
                "timeZone": time_zone,
            },
            "attendees": [
                {
                    "emailAddress": {
                        "address": attendee.email,
                        "name": attendee.name,
                    },
                    "type": "required",
                }
                for attendee in event.attendees
            ],
        }

        if event.location:
            graph_event["location"] = {"displayName": event.location}

        return graph_event

    @staticmethod
    def from_graph_calendar(graph_calendar: dict) -> IntegrationCalendar:
        """
        Normalize a Graph calendar record.

        Missing or null fields are replaced from CALENDAR_FIELD_DEFAULTS so
        callers never see an absent identifier.

        Args:
            graph_calendar: Calendar resource from GET /me/calendars

        Returns:
            IntegrationCalendar tagged with this integration type
        """
        values = {}
        for graph_field, (target, default) in CALENDAR_FIELD_DEFAULTS.items():
            value = graph_calendar.get(graph_field)
            values[target] = default if value is None else value

        return IntegrationCalendar(integration=INTEGRATION_TYPE, **values)

    @staticmethod
    def build_calendar_view_requests(
        calendar_ids: Sequence[str],
        date_from: DateTimeLike,
        date_to: DateTimeLike,
    ) -> list[dict]:
        """
        Build one calendarView sub-request per calendar for a JSON batch.

        Args:
            calendar_ids: Graph calendar ids
            date_from: Range start
            date_to: Range end

        Returns:
            Sub-requests whose ids are their positions as strings
        """
        query = urlencode(
            {
                "startdatetime": _format_query_datetime(date_from),
                "enddatetime": _format_query_datetime(date_to),
            },
            quote_via=quote,
        )
        return [
            {
                "id": str(index),
                "method": "GET",
                "headers": {"Prefer": BATCH_TIMEZONE_PREFERENCE},
                "url": f"/me/calendars/{calendar_id}/calendarView?{query}",
            }
            for index, calendar_id in enumerate(calendar_ids)
        ]

    @staticmethod
    def parse_batch_response(response: dict) -> list[BufferedBusyTime]:
        """
        Flatten a calendarView batch response into busy intervals.

        Sub-responses are read in request order. Their naive timestamps are
        UTC by construction of the batch, so a literal 'Z' is appended.

        Args:
            response: Body of POST /$batch

        Returns:
            Busy intervals from every sub-response, concatenated

        Raises:
            Office365CalendarError: If a sub-response failed
            KeyError, TypeError: If the body is malformed
        """
        busy_times: list[BufferedBusyTime] = []
        for sub_response in _in_request_order(response["responses"]):
            status = sub_response.get("status", 200)
            body = sub_response.get("body") or {}
            if status >= 400:
                raise error_for_status(status, body)
            if body.get("@odata.nextLink"):
                logger.warning(
                    f"Batch sub-response {sub_response.get('id')} has more pages; "
                    "only the first page of busy times is used"
                )

            for graph_event in body["value"]:
                busy_times.append(
                    BufferedBusyTime(
                        start=graph_event["start"]["dateTime"] + "Z",
                        end=graph_event["end"]["dateTime"] + "Z",
                    )
                )
        return busy_times


def _in_request_order(sub_responses: Iterable[dict]) -> list[dict]:
    """Order sub-responses by their numeric request id when every id is numeric."""
    sub_responses = list(sub_responses)
    if all(str(sub.get("id", "")).isdigit() for sub in sub_responses):
        return sorted(sub_responses, key=lambda sub: int(sub["id"]))
    return sub_responses


def _format_datetime(value: DateTimeLike) -> str:
    """Format an event time; strings pass through unchanged."""
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def _format_query_datetime(value: DateTimeLike) -> str:
    """
    Format a range bound for calendarView.

    Naive datetimes are treated as UTC; strings pass through unchanged.
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.isoformat()
    return value

