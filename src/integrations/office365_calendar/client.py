"""
Microsoft Graph REST client with retry and error handling.

Thin async wrapper over httpx. Every call takes the bearer token explicitly
so that callers decide when a token is fetched (and refreshed).
"""

import logging
from typing import Any, Optional

import httpx
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception,
)

from src.config import get_settings
from src.integrations.office365_calendar.exceptions import (
    Office365CalendarError,
    error_for_status,
)

logger = logging.getLogger(__name__)


def _is_retryable_error(exception: BaseException) -> bool:
    """Check if an exception should trigger a retry."""
    if isinstance(exception, Office365CalendarError):
        return exception.retryable
    if isinstance(exception, httpx.TransportError):
        return True
    return False


def _parse_error_body(response: httpx.Response) -> Any:
    """Parse an error body as JSON, falling back to raw text."""
    try:
        return response.json()
    except ValueError:
        return response.text


def _handle_error_response(response: httpx.Response) -> None:
    """Log a failed Graph response and raise the matching Office365CalendarError."""
    payload = _parse_error_body(response)
    logger.error(
        f"Graph request {response.request.method} {response.request.url} "
        f"failed ({response.status_code}): {payload}"
    )
    raise error_for_status(response.status_code, payload)


def _raise_for_retryable_sub_response(batch: dict) -> None:
    """Raise the first retryable sub-response error in a batch body."""
    for sub_response in batch.get("responses") or []:
        status = sub_response.get("status", 200)
        if status < 400:
            continue
        error = error_for_status(status, sub_response.get("body"))
        if error.retryable:
            logger.warning(
                f"Batch sub-request {sub_response.get('id')} failed ({status})"
            )
            raise error


class GraphClient:
    """
    Wrapper around the Microsoft Graph v1.0 REST API.

    Provides:
    - Bearer authorization and JSON content headers
    - Consistent error handling
    - Automatic retry with exponential backoff for idempotent reads
    """

    def __init__(
        self,
        http_client: Optional[httpx.AsyncClient] = None,
        base_url: Optional[str] = None,
    ):
        """
        Initialize the client.

        Args:
            http_client: Shared httpx client (created and owned here if None)
            base_url: Graph API base URL (defaults to settings)
        """
        settings = get_settings()
        self._base_url = (base_url or settings.ms_graph_base_url).rstrip("/")
        self._owns_http_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=settings.ms_graph_http_timeout)

    @property
    def base_url(self) -> str:
        return self._base_url

    @staticmethod
    def _headers(access_token: str, json_body: bool = True) -> dict:
        headers = {"Authorization": f"Bearer {access_token}"}
        if json_body:
            headers["Content-Type"] = "application/json"
        return headers

    async def _send(
        self,
        method: str,
        path: str,
        access_token: str,
        body: Optional[dict] = None,
        json_body: bool = True,
    ) -> httpx.Response:
        response = await self._http.request(
            method,
            f"{self._base_url}{path}",
            headers=self._headers(access_token, json_body=json_body),
            json=body,
        )
        if response.is_error:
            _handle_error_response(response)
        return response

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception(_is_retryable_error),
        reraise=True,
    )
    async def get_json(self, path: str, access_token: str) -> dict:
        """
        GET a Graph resource.

        Args:
            path: Path relative to the base URL (e.g. '/me/calendars')
            access_token: Bearer token

        Returns:
            Parsed JSON body
        """
        response = await self._send("GET", path, access_token)
        return response.json()

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception(_is_retryable_error),
        reraise=True,
    )
    async def post_batch(self, requests: list[dict], access_token: str) -> dict:
        """
        Send a JSON batch of read-only sub-requests in one round trip.

        Args:
            requests: Sub-requests (id, method, url, headers)
            access_token: Bearer token shared by every sub-request

        Returns:
            Batch response body with a ``responses`` list

        Raises:
            Office365CalendarError: Also when a sub-request was throttled or hit
                a service error, so that the whole batch is retried
        """
        response = await self._send("POST", "/$batch", access_token, body={"requests": requests})
        batch = response.json()
        _raise_for_retryable_sub_response(batch)
        logger.debug(f"Batch of {len(requests)} requests completed")
        return batch

    async def post_json(self, path: str, access_token: str, body: dict) -> dict:
        """POST a JSON body and return the parsed JSON response."""
        response = await self._send("POST", path, access_token, body=body)
        return response.json()

    async def patch_json(self, path: str, access_token: str, body: dict) -> dict:
        """PATCH a JSON body and return the parsed JSON response."""
        response = await self._send("PATCH", path, access_token, body=body)
        return response.json()

    async def delete(self, path: str, access_token: str) -> str:
        """DELETE a resource and return the raw response text (usually empty)."""
        response = await self._send("DELETE", path, access_token, json_body=False)
        return response.text

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_http_client:
            await self._http.aclose()
