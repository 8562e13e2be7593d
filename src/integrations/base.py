"""
Calendar repository protocol and base types.

Defines the interface a calendar provider adapter offers to the host
application, and the provider-neutral types that cross that boundary.
"""

from abc import abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional, Protocol, Sequence, Union

from dateutil.parser import isoparse

DateTimeLike = Union[datetime, str]


@dataclass(frozen=True)
class Attendee:
    """Event attendee."""

    email: str
    name: Optional[str] = None


@dataclass(frozen=True)
class Organizer:
    """Event organizer. Only the timezone is needed by provider payloads."""

    time_zone: str
    name: Optional[str] = None
    email: Optional[str] = None


@dataclass(frozen=True)
class CalendarEvent:
    """
    Normalized event representation across calendar providers.

    Input to create/update; adapters map it to their provider's wire format.
    Start and end times may be datetimes or pre-formatted ISO strings.
    """

    title: str
    start_time: DateTimeLike
    end_time: DateTimeLike
    organizer: Organizer
    description: Optional[str] = None
    attendees: list[Attendee] = field(default_factory=list)
    location: Optional[str] = None


@dataclass(frozen=True)
class IntegrationCalendar:
    """A remote calendar visible to the credential holder."""

    external_id: str
    integration: str
    name: str
    primary: bool = False


@dataclass(frozen=True)
class SelectedCalendar:
    """A calendar chosen for availability checks, tagged with its integration."""

    integration: str
    external_id: Optional[str]


@dataclass(frozen=True)
class BufferedBusyTime:
    """One busy interval as ISO-8601 UTC strings."""

    start: str
    end: str

    @property
    def start_datetime(self) -> datetime:
        return isoparse(self.start)

    @property
    def end_datetime(self) -> datetime:
        return isoparse(self.end)

    def to_dict(self) -> dict:
        return {"start": self.start, "end": self.end}


class CalendarRepository(Protocol):
    """
    Protocol for calendar provider adapters.

    Implementations:
    - Office365CalendarRepository: Uses Microsoft Graph

    All methods are async since every operation talks to a remote API.
    """

    @abstractmethod
    async def list_calendars(self) -> list[IntegrationCalendar]:
        """
        List the calendars visible to the credential holder.

        Returns:
            Normalized calendars, never with missing identifiers
        """
        ...

    @abstractmethod
    async def get_availability(
        self,
        date_from: DateTimeLike,
        date_to: DateTimeLike,
        selected_calendars: Sequence[SelectedCalendar],
    ) -> list[BufferedBusyTime]:
        """
        Query busy time across calendars.

        Args:
            date_from: Range start
            date_to: Range end
            selected_calendars: Selections across all integrations

        Returns:
            Busy intervals, order not guaranteed
        """
        ...

    @abstractmethod
    async def create_event(self, event: CalendarEvent) -> dict[str, Any]:
        """
        Create an event in the provider's default calendar.

        Returns:
            Provider response body
        """
        ...

    @abstractmethod
    async def update_event(self, uid: str, event: CalendarEvent) -> dict[str, Any]:
        """
        Update an existing event.

        Returns:
            Provider response body
        """
        ...

    @abstractmethod
    async def delete_event(self, uid: str) -> str:
        """
        Delete an event.

        Returns:
            Raw provider response body (usually empty)
        """
        ...
