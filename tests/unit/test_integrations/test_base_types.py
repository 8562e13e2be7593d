"""Tests for provider-neutral calendar types."""

from datetime import datetime, timezone

import pytest

from src.integrations.base import BufferedBusyTime, CalendarEvent, Organizer


class TestBufferedBusyTime:
    """Tests for BufferedBusyTime."""

    def test_datetime_properties_are_utc(self):
        busy = BufferedBusyTime(start="2024-01-01T10:00:00Z", end="2024-01-01T11:30:00Z")

        assert busy.start_datetime == datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc)
        assert busy.end_datetime == datetime(2024, 1, 1, 11, 30, tzinfo=timezone.utc)

    def test_fractional_seconds_parse(self):
        """Graph returns seven fractional digits on calendarView times."""
        busy = BufferedBusyTime(
            start="2024-01-01T10:00:00.0000000Z", end="2024-01-01T11:00:00.0000000Z"
        )
        assert busy.end_datetime - busy.start_datetime == (
            datetime(2024, 1, 1, 11) - datetime(2024, 1, 1, 10)
        )

    def test_to_dict(self):
        busy = BufferedBusyTime(start="2024-01-01T10:00:00Z", end="2024-01-01T11:00:00Z")
        assert busy.to_dict() == {"start": "2024-01-01T10:00:00Z", "end": "2024-01-01T11:00:00Z"}

    def test_is_immutable(self):
        busy = BufferedBusyTime(start="a", end="b")
        with pytest.raises(AttributeError):
            busy.start = "c"


class TestCalendarEvent:
    """Tests for CalendarEvent defaults."""

    def test_optional_fields_default_empty(self):
        event = CalendarEvent(
            title="Standup",
            start_time="2024-01-01T09:00:00Z",
            end_time="2024-01-01T09:15:00Z",
            organizer=Organizer(time_zone="UTC"),
        )

        assert event.description is None
        assert event.location is None
        assert event.attendees == []
