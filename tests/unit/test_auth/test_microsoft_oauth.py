"""Tests for the Microsoft refresh-token grant."""

from urllib.parse import parse_qs

import httpx
import pytest

from src.auth.microsoft_oauth import MicrosoftOAuthFlow, OAuthTokens
from tests.helpers import TOKEN_URL, json_response


class TestOAuthTokens:
    """Tests for OAuthTokens."""

    def test_expiry_date_is_whole_seconds(self):
        tokens = OAuthTokens(access_token="a", refresh_token=None, expires_in=3599)
        assert tokens.expiry_date(1_700_000_000.6) == 1_700_003_600

    def test_defaults(self):
        tokens = OAuthTokens(access_token="a", refresh_token=None, expires_in=60)
        assert tokens.token_type == "Bearer"
        assert tokens.scope == ""


class TestRefreshToken:
    """Tests for MicrosoftOAuthFlow.refresh_token."""

    @pytest.mark.asyncio
    async def test_posts_form_encoded_grant(self, make_oauth_flow, recorded_requests):
        """Should send every grant field as a form body to the token endpoint."""
        flow = make_oauth_flow(
            lambda request: json_response(200, {"access_token": "new", "expires_in": 3600})
        )

        await flow.refresh_token("refresh-abc")

        request = recorded_requests[0]
        assert request.method == "POST"
        assert str(request.url) == TOKEN_URL
        assert request.headers["Content-Type"] == "application/x-www-form-urlencoded"
        form = {k: v[0] for k, v in parse_qs(request.content.decode()).items()}
        assert form == {
            "scope": "User.Read Calendars.Read Calendars.ReadWrite",
            "client_id": "client-id",
            "refresh_token": "refresh-abc",
            "grant_type": "refresh_token",
            "client_secret": "client-secret",
        }

    @pytest.mark.asyncio
    async def test_parses_token_response(self, make_oauth_flow):
        body = {
            "access_token": "new-access",
            "refresh_token": "rotated",
            "expires_in": "3599",
            "token_type": "Bearer",
            "scope": "Calendars.ReadWrite",
        }
        flow = make_oauth_flow(lambda request: json_response(200, body))

        tokens = await flow.refresh_token("refresh-abc")

        assert tokens == OAuthTokens(
            access_token="new-access",
            refresh_token="rotated",
            expires_in=3599,
            token_type="Bearer",
            scope="Calendars.ReadWrite",
        )

    @pytest.mark.asyncio
    async def test_missing_refresh_token_in_response(self, make_oauth_flow):
        flow = make_oauth_flow(
            lambda request: json_response(200, {"access_token": "new", "expires_in": 60})
        )

        tokens = await flow.refresh_token("refresh-abc")

        assert tokens.refresh_token is None

    @pytest.mark.asyncio
    async def test_rejected_grant_raises(self, make_oauth_flow):
        flow = make_oauth_flow(lambda request: json_response(400, {"error": "invalid_grant"}))

        with pytest.raises(httpx.HTTPStatusError) as exc_info:
            await flow.refresh_token("revoked")

        assert exc_info.value.response.status_code == 400

    @pytest.mark.asyncio
    async def test_malformed_response_raises_key_error(self, make_oauth_flow):
        flow = make_oauth_flow(lambda request: json_response(200, {"token": "x"}))

        with pytest.raises(KeyError):
            await flow.refresh_token("refresh-abc")
