"""
Shared fixtures for the discogs_cli test suite.

``mock_api`` serves canned responses from a real in-process aiohttp server and
records every request it receives, so the client is exercised end to end.
"""

import asyncio
import json
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Optional

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer
from multidict import CIMultiDict

from discogs_cli.api.client import DiscogsClient
from discogs_cli.api.routes import AuthType
from discogs_cli.models.config import ClientConfig

KEY = "key"
SECRET = "secret"


@dataclass
class CapturedRequest:
    method: str
    path: str
    query_string: str
    headers: CIMultiDict
    body: bytes


@dataclass
class MockDiscogsAPI:
    status: int = 200
    body: bytes = b""
    headers: dict[str, str] = field(default_factory=dict)
    requests: list[CapturedRequest] = field(default_factory=list)
    # Seconds the handler sleeps before answering
    delay: float = 0.0

    def respond(
        self, status: int = 200, body: Any = None, headers: Optional[dict] = None
    ) -> None:
        """Sets the response for every following request. Dicts are sent as compact JSON."""
        self.status = status
        if body is None:
            self.body = b""
        elif isinstance(body, (dict, list)):
            self.body = json.dumps(body, separators=(",", ":")).encode()
        elif isinstance(body, str):
            self.body = body.encode()
        else:
            self.body = body
        self.headers = headers or {}

    async def _handler(self, request: web.Request) -> web.Response:
        self.requests.append(
            CapturedRequest(
                method=request.method,
                path=request.path,
                query_string=request.query_string,
                headers=CIMultiDict(request.headers),
                body=await request.read(),
            )
        )
        if self.delay:
            await asyncio.sleep(self.delay)
        return web.Response(
            status=self.status,
            body=self.body,
            headers=self.headers,
            content_type="application/json",
        )

    @asynccontextmanager
    async def client(
        self,
        config: Optional[ClientConfig] = None,
        route_table: Optional[dict[str, AuthType]] = None,
    ) -> AsyncIterator[DiscogsClient]:
        """Starts the server and yields a client pointed at it."""
        app = web.Application()
        app.router.add_route("*", "/{tail:.*}", self._handler)
        server = TestServer(app)
        await server.start_server()
        try:
            async with DiscogsClient(
                config, host=str(server.make_url("/")), route_table=route_table
            ) as client:
                yield client
        finally:
            await server.close()


@pytest.fixture
def mock_api():
    return MockDiscogsAPI()


@pytest.fixture
def key_secret_config():
    return ClientConfig(app_name="DiscogsCli/0.1", consumer_key=KEY, consumer_secret=SECRET)


@pytest.fixture(autouse=True)
def clean_discogs_env(monkeypatch):
    """Keeps credentials from the developer's environment out of the tests."""
    for var in ("DISCOGS_CONSUMER_KEY", "DISCOGS_CONSUMER_SECRET", "DISCOGS_TOKEN"):
        monkeypatch.delenv(var, raising=False)
