"""
Office 365 calendar integration.

Provides Microsoft Graph as a calendar provider: calendar listing, batched
busy-time queries, and event create/update/delete.
"""

from src.integrations.office365_calendar.adapter import (
    INTEGRATION_TYPE,
    Office365CalendarAdapter,
)
from src.integrations.office365_calendar.auth import (
    Office365AuthCredentials,
    Office365TokenCache,
)
from src.integrations.office365_calendar.availability import AvailabilityAggregator
from src.integrations.office365_calendar.calendars import CalendarLister
from src.integrations.office365_calendar.client import GraphClient
from src.integrations.office365_calendar.exceptions import (
    Office365AvailabilityError,
    Office365CalendarAuthError,
    Office365CalendarConflictError,
    Office365CalendarError,
    Office365CalendarNotFoundError,
    Office365CalendarRateLimitError,
    Office365CalendarServiceError,
)
from src.integrations.office365_calendar.repository import Office365CalendarRepository

__all__ = [
    "INTEGRATION_TYPE",
    "AvailabilityAggregator",
    "CalendarLister",
    "GraphClient",
    "Office365AuthCredentials",
    "Office365AvailabilityError",
    "Office365CalendarAdapter",
    "Office365CalendarAuthError",
    "Office365CalendarConflictError",
    "Office365CalendarError",
    "Office365CalendarNotFoundError",
    "Office365CalendarRateLimitError",
    "Office365CalendarRepository",
    "Office365CalendarServiceError",
    "Office365TokenCache",
]
