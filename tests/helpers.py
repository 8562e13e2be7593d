"""Shared constants and small builders for adapter tests."""

import json

import httpx

NOW = 1_700_000_000
TOKEN_URL = "https://login.microsoftonline.com/common/oauth2/v2.0/token"
GRAPH_URL = "https://graph.microsoft.com/v1.0"


def fixed_clock() -> float:
    """Seconds-since-epoch source pinned to NOW."""
    return float(NOW)


def json_response(status_code: int, body) -> httpx.Response:
    """Build a JSON httpx response."""
    return httpx.Response(status_code, json=body)


def request_json(request: httpx.Request) -> dict:
    """Decode a recorded request's JSON body."""
    return json.loads(request.content)
