"""
External calendar integrations.

Provides the provider-neutral types and repository protocol that each
calendar adapter implements.
"""

from src.integrations.base import (
    Attendee,
    BufferedBusyTime,
    CalendarEvent,
    CalendarRepository,
    IntegrationCalendar,
    Organizer,
    SelectedCalendar,
)

__all__ = [
    "Attendee",
    "BufferedBusyTime",
    "CalendarEvent",
    "CalendarRepository",
    "IntegrationCalendar",
    "Organizer",
    "SelectedCalendar",
]
