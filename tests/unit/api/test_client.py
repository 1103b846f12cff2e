"""
Tests for the DiscogsClient request pipeline, run against an in-process HTTP server.
"""

import asyncio
import json

import pytest
from aiohttp.test_utils import unused_port

from discogs_cli.api.client import (
    RATE_LIMIT_AUTH,
    RATE_LIMIT_HEADER,
    RATE_LIMIT_UNAUTH,
    DiscogsClient,
    encode_params,
)
from discogs_cli.api.rate_limiter import per_minute
from discogs_cli.api.routes import AuthType
from discogs_cli.exceptions import (
    HTTPError,
    MalformedResponseError,
    MissingCredentialsError,
    RouteNotFoundError,
    TransportError,
)
from discogs_cli.models.config import DEFAULT_APP_NAME, ClientConfig
from discogs_cli.models.database import ReleaseResponse

TEST_ROUTES = {
    "/test": AuthType.NONE,
    "/test/{id}": AuthType.NONE,
    "/key/secret": AuthType.KEY_SECRET,
    "/oauth": AuthType.OAUTH,
    "/pat": AuthType.PERSONAL_ACCESS_TOKEN,
}


class TestNewClient:
    def test_defaults_to_anonymous_rate_limit(self):
        client = DiscogsClient(ClientConfig())
        assert client.config.app_name == DEFAULT_APP_NAME
        assert client.limit == per_minute(RATE_LIMIT_UNAUTH)

    def test_no_config_is_anonymous(self):
        assert DiscogsClient().limit == per_minute(RATE_LIMIT_UNAUTH)

    def test_key_secret_gets_authenticated_rate_limit(self):
        config = ClientConfig(app_name="Test", consumer_key="k", consumer_secret="s")
        client = DiscogsClient(config)
        assert client.config.app_name == "Test"
        assert client.limit == per_minute(RATE_LIMIT_AUTH)

    def test_token_alone_keeps_anonymous_baseline(self):
        client = DiscogsClient(ClientConfig(access_token="abc"))
        assert client.limit == per_minute(RATE_LIMIT_UNAUTH)

    def test_explicit_max_requests(self):
        client = DiscogsClient(ClientConfig(max_requests=100))
        assert client.limit == per_minute(100)
        assert client.rate_limiter.burst == 100

    def test_set_max_requests_updates_config_and_limiter(self):
        client = DiscogsClient(ClientConfig())
        client.set_max_requests(10)

        assert client.config.max_requests == 10
        assert client.limit == per_minute(10)

    def test_set_max_requests_ignores_zero(self):
        client = DiscogsClient(ClientConfig(max_requests=30))
        client.set_max_requests(0)

        assert client.config.max_requests == 30
        assert client.limit == per_minute(30)


class TestUpdateRateLimitFromHeader:
    @pytest.mark.parametrize(
        "max_requests, header_value, expected",
        [
            (50, RATE_LIMIT_UNAUTH, RATE_LIMIT_UNAUTH),
            (20, RATE_LIMIT_AUTH, 20),
            (20, 0, 20),
        ],
    )
    def test_header_against_configured_ceiling(self, max_requests, header_value, expected):
        client = DiscogsClient(ClientConfig(max_requests=max_requests))
        client._update_rate_limit_from_header({RATE_LIMIT_HEADER: str(header_value)})

        assert client.limit == per_minute(expected)

    def test_ceiling_set_later_caps_header(self):
        client = DiscogsClient(ClientConfig())
        client.set_max_requests(15)
        client._update_rate_limit_from_header({RATE_LIMIT_HEADER: "60"})

        assert client.limit == per_minute(15)

    @pytest.mark.parametrize("headers", [{}, {RATE_LIMIT_HEADER: ""}, {RATE_LIMIT_HEADER: "abc"}])
    def test_missing_or_invalid_header_is_ignored(self, headers):
        client = DiscogsClient(ClientConfig())
        client._update_rate_limit_from_header(headers)

        assert client.limit == per_minute(RATE_LIMIT_UNAUTH)


class TestEncodeParams:
    def test_sorted_by_key(self):
        assert encode_params({"b": "2", "a": "1", "c": "3"}) == "a=1&b=2&c=3"

    def test_escaping_and_sequences(self):
        params = {"q": "nirvana nevermind", "format": ["Vinyl", "LP"], "skip": None}
        assert encode_params(params) == "format=Vinyl&format=LP&q=nirvana+nevermind"

    def test_empty(self):
        assert encode_params(None) == ""
        assert encode_params({}) == ""


class TestVerbs:
    @pytest.mark.asyncio
    async def test_get(self, mock_api):
        mock_api.respond(200, {"success": True})

        async with mock_api.client(ClientConfig(), route_table=TEST_ROUTES) as client:
            res = await client.get("/test", {"param2": "value2", "param1": "value1"})

        assert res == {"success": True}
        request = mock_api.requests[0]
        assert request.method == "GET"
        assert request.path == "/test"
        assert request.query_string == "param1=value1&param2=value2"
        assert request.body == b""

    @pytest.mark.asyncio
    async def test_post_sends_json_body(self, mock_api):
        mock_api.respond(200, {"success": True})

        async with mock_api.client(ClientConfig(), route_table=TEST_ROUTES) as client:
            res = await client.post("/test", body={"name": "test"})

        assert res == {"success": True}
        request = mock_api.requests[0]
        assert request.method == "POST"
        assert json.loads(request.body) == {"name": "test"}
        assert request.headers["Content-Type"] == "application/json"

    @pytest.mark.asyncio
    async def test_put_sends_json_body(self, mock_api):
        mock_api.respond(200, {"success": True})

        async with mock_api.client(ClientConfig(), route_table=TEST_ROUTES) as client:
            res = await client.put("/test/5", body={"name": "test"})

        assert res == {"success": True}
        request = mock_api.requests[0]
        assert request.method == "PUT"
        assert request.path == "/test/5"
        assert json.loads(request.body) == {"name": "test"}

    @pytest.mark.asyncio
    async def test_delete(self, mock_api):
        mock_api.respond(200, {"success": True})

        async with mock_api.client(ClientConfig(), route_table=TEST_ROUTES) as client:
            res = await client.delete("/test")

        assert res == {"success": True}
        assert mock_api.requests[0].method == "DELETE"
        assert mock_api.requests[0].body == b""

    @pytest.mark.asyncio
    async def test_empty_body_returns_none(self, mock_api):
        mock_api.respond(204)

        async with mock_api.client(ClientConfig(), route_table=TEST_ROUTES) as client:
            assert await client.delete("/test") is None

    @pytest.mark.asyncio
    async def test_response_model(self, mock_api):
        mock_api.respond(200, {"title": "Test Release", "id": 1})

        async with mock_api.client(ClientConfig(), route_table=TEST_ROUTES) as client:
            res = await client.get("/test", response_model=ReleaseResponse)

        assert isinstance(res, ReleaseResponse)
        assert res.title == "Test Release"
        assert res.id == 1


class TestHeaders:
    @pytest.mark.asyncio
    async def test_user_agent_and_custom_headers(self, mock_api):
        mock_api.respond(200, {})
        config = ClientConfig(app_name="MyApp/1.0 +http://example.org")

        async with mock_api.client(config, route_table=TEST_ROUTES) as client:
            await client.get("/test", headers={"X-Custom": "yes", "user-agent": "other"})

        headers = mock_api.requests[0].headers
        assert headers["User-Agent"] == "MyApp/1.0 +http://example.org"
        assert headers["X-Custom"] == "yes"
        assert "Authorization" not in headers

    @pytest.mark.asyncio
    async def test_key_secret_header_sent(self, mock_api, key_secret_config):
        mock_api.respond(200, {})

        async with mock_api.client(key_secret_config, route_table=TEST_ROUTES) as client:
            await client.get("/key/secret")

        assert mock_api.requests[0].headers["Authorization"] == "Discogs key=key, secret=secret"

    @pytest.mark.asyncio
    async def test_bearer_header_sent(self, mock_api):
        mock_api.respond(200, {})

        async with mock_api.client(
            ClientConfig(access_token="tok"), route_table=TEST_ROUTES
        ) as client:
            await client.get("/pat")

        assert mock_api.requests[0].headers["Authorization"] == "Bearer tok"


class TestFailuresBeforeNetwork:
    @pytest.mark.asyncio
    async def test_missing_credentials_sends_nothing(self, mock_api):
        mock_api.respond(200, {})

        async with mock_api.client(ClientConfig(), route_table=TEST_ROUTES) as client:
            with pytest.raises(MissingCredentialsError) as exc_info:
                await client.get("/key/secret")

            assert exc_info.value.required_auth_type == AuthType.KEY_SECRET
            assert exc_info.value.endpoint == "/key/secret"
            assert client.tokens == pytest.approx(RATE_LIMIT_UNAUTH, abs=0.1)

        assert mock_api.requests == []

    @pytest.mark.asyncio
    async def test_search_without_credentials_sends_nothing(self, mock_api):
        mock_api.respond(200, {})

        async with mock_api.client(ClientConfig()) as client:
            with pytest.raises(MissingCredentialsError):
                await client.get("/database/search", {"q": "x"})

        assert mock_api.requests == []

    @pytest.mark.asyncio
    async def test_unknown_route_sends_nothing(self, mock_api):
        async with mock_api.client(ClientConfig(), route_table=TEST_ROUTES) as client:
            with pytest.raises(RouteNotFoundError):
                await client.get("/not/found")

        assert mock_api.requests == []


class TestResponseHandling:
    @pytest.mark.asyncio
    async def test_non_2xx_raises_http_error_with_raw_body(self, mock_api):
        mock_api.respond(500, '{"message":"Internal server error."}')

        async with mock_api.client(ClientConfig(), route_table=TEST_ROUTES) as client:
            with pytest.raises(HTTPError) as exc_info:
                await client.get("/test", response_model=ReleaseResponse)

        error = exc_info.value
        assert error.status_code == 500
        assert error.message == '{"message":"Internal server error."}'
        assert str(error) == 'HTTP 500: {"message":"Internal server error."}'

    @pytest.mark.asyncio
    async def test_malformed_json_is_not_an_http_error(self, mock_api):
        mock_api.respond(200, "{not json")

        async with mock_api.client(ClientConfig(), route_table=TEST_ROUTES) as client:
            with pytest.raises(MalformedResponseError) as exc_info:
                await client.get("/test")

        assert not isinstance(exc_info.value, HTTPError)

    @pytest.mark.asyncio
    async def test_model_validation_failure_is_malformed(self, mock_api):
        mock_api.respond(200, {"id": "not-a-number"})

        async with mock_api.client(ClientConfig(), route_table=TEST_ROUTES) as client:
            with pytest.raises(MalformedResponseError):
                await client.get("/test", response_model=ReleaseResponse)

    @pytest.mark.asyncio
    async def test_rate_limit_header_applied(self, mock_api):
        mock_api.respond(200, {}, headers={RATE_LIMIT_HEADER: "40"})

        async with mock_api.client(ClientConfig(), route_table=TEST_ROUTES) as client:
            await client.get("/test")
            assert client.limit == per_minute(40)

    @pytest.mark.asyncio
    async def test_rate_limit_header_applied_on_error_status(self, mock_api):
        mock_api.respond(
            429,
            '{"message":"You are making requests too quickly."}',
            headers={RATE_LIMIT_HEADER: "5"},
        )

        async with mock_api.client(ClientConfig(), route_table=TEST_ROUTES) as client:
            with pytest.raises(HTTPError) as exc_info:
                await client.get("/test")
            assert client.limit == per_minute(5)

        assert exc_info.value.status_code == 429

    @pytest.mark.asyncio
    async def test_rate_limit_header_capped_by_ceiling(self, mock_api):
        mock_api.respond(200, {}, headers={RATE_LIMIT_HEADER: "60"})

        async with mock_api.client(
            ClientConfig(max_requests=10), route_table=TEST_ROUTES
        ) as client:
            await client.get("/test")
            assert client.limit == per_minute(10)


class TestTransportAndCancellation:
    @pytest.mark.asyncio
    async def test_connection_refused_is_transport_error(self):
        client = DiscogsClient(
            ClientConfig(), host=f"http://127.0.0.1:{unused_port()}", route_table=TEST_ROUTES
        )
        try:
            with pytest.raises(TransportError) as exc_info:
                await client.get("/test")
        finally:
            await client.close()

        assert exc_info.value.__cause__ is not None

    @pytest.mark.asyncio
    async def test_cancel_during_token_wait_issues_no_request(self, mock_api):
        mock_api.respond(200, {})

        async with mock_api.client(
            ClientConfig(max_requests=1), route_table=TEST_ROUTES
        ) as client:
            await client.get("/test")

            pending = asyncio.create_task(client.get("/test"))
            await asyncio.sleep(0.05)
            pending.cancel()
            with pytest.raises(asyncio.CancelledError):
                await pending

        assert len(mock_api.requests) == 1

    @pytest.mark.asyncio
    async def test_cancel_during_exchange_raises_cancelled_error(self, mock_api):
        mock_api.respond(200, {"id": 1, "title": "Test Release"})
        mock_api.delay = 0.5

        async with mock_api.client(ClientConfig(), route_table=TEST_ROUTES) as client:
            pending = asyncio.create_task(client.get("/test/1"))
            while not mock_api.requests:
                await asyncio.sleep(0.01)

            pending.cancel()
            with pytest.raises(asyncio.CancelledError):
                await pending

        assert len(mock_api.requests) == 1
