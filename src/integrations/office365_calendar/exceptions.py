"""
Custom exceptions for Office 365 calendar operations.

Provides structured error handling with retryable flags.
"""

from typing import Any, Optional


class Office365CalendarError(Exception):
    """Base exception for Office 365 calendar operations."""

    retryable: bool = False

    def __init__(
        self,
        message: str,
        original_error: Optional[Exception] = None,
        status_code: Optional[int] = None,
        payload: Any = None,
    ):
        super().__init__(message)
        self.message = message
        self.original_error = original_error
        self.status_code = status_code
        self.payload = payload


class Office365CalendarAuthError(Office365CalendarError):
    """
    Authentication or authorization failure.

    Causes:
    - Refresh token expired or revoked
    - Access token rejected by Graph (401)
    - Missing calendar permissions (403)
    """

    retryable = False


class Office365CalendarNotFoundError(Office365CalendarError):
    """
    Event or calendar not found.

    Causes:
    - Event was deleted
    - Calendar or event ID is invalid
    """

    retryable = False


class Office365CalendarConflictError(Office365CalendarError):
    """
    Concurrent modification (409 / 412).

    Retryable after re-fetching the event.
    """

    retryable = True


class Office365CalendarRateLimitError(Office365CalendarError):
    """
    Graph throttling (429 response).

    Retryable after exponential backoff.
    """

    retryable = True


class Office365CalendarServiceError(Office365CalendarError):
    """
    Graph service failure (5xx).

    Retryable after exponential backoff.
    """

    retryable = True


class Office365AvailabilityError(Office365CalendarError):
    """
    Busy-time aggregation failed.

    Keeps the empty ``busy_times`` result that callers of the availability
    query historically received on failure, and carries the underlying error
    in ``original_error``.
    """

    retryable = False

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(
            message,
            original_error=original_error,
            status_code=getattr(original_error, "status_code", None),
            payload=getattr(original_error, "payload", None),
        )
        self.busy_times: list = []


def graph_error_message(payload: Any) -> Optional[str]:
    """Extract ``error.message`` from a Graph error body, if present."""
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict):
            return error.get("message") or error.get("code")
        if isinstance(error, str):
            return payload.get("error_description") or error
    return None


def error_for_status(status: int, payload: Any = None) -> Office365CalendarError:
    """Map an HTTP status and parsed error body to the matching exception."""
    detail = graph_error_message(payload) or payload or "no details"

    if status == 401:
        return Office365CalendarAuthError(
            "Authentication failed - access token may be invalid or expired",
            status_code=status,
            payload=payload,
        )
    elif status == 403:
        return Office365CalendarAuthError(
            "Access denied - check calendar permissions",
            status_code=status,
            payload=payload,
        )
    elif status == 404:
        return Office365CalendarNotFoundError(
            "Event or calendar not found",
            status_code=status,
            payload=payload,
        )
    elif status in (409, 412):
        return Office365CalendarConflictError(
            "Event was modified by another process",
            status_code=status,
            payload=payload,
        )
    elif status == 429:
        return Office365CalendarRateLimitError(
            "Rate limit exceeded - too many requests",
            status_code=status,
            payload=payload,
        )
    elif status >= 500:
        return Office365CalendarServiceError(
            f"Microsoft Graph service error ({status}): {detail}",
            status_code=status,
            payload=payload,
        )
    return Office365CalendarError(
        f"Microsoft Graph API error ({status}): {detail}",
        status_code=status,
        payload=payload,
    )
