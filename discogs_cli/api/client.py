"""
Async client for the Discogs REST API with adaptive rate limiting.
"""

import asyncio
import json
import logging
import time
from enum import Enum
from http import HTTPStatus
from typing import Any, AsyncGenerator, Mapping, Optional, TypeVar
from urllib.parse import urlencode

import aiohttp
from multidict import CIMultiDict
from pydantic import BaseModel, ValidationError
from yarl import URL

from discogs_cli.exceptions import (
    ArtistNotFoundError,
    HTTPError,
    LabelNotFoundError,
    MalformedResponseError,
    MasterNotFoundError,
    NotFoundError,
    ReleaseNotFoundError,
    TransportError,
)
from discogs_cli.models.config import ClientConfig
from discogs_cli.models.database import (
    ArtistResponse,
    CommunityRatingResponse,
    LabelResponse,
    MasterResponse,
    ReleaseOptions,
    ReleaseResponse,
    ReleaseStatsResponse,
    SearchOptions,
    SearchResponse,
)

from .auth import add_auth_headers
from .rate_limiter import TokenBucketRateLimiter
from .routes import ENDPOINT_AUTH_MAP, AuthType, match_route

log = logging.getLogger(__name__)

BASE_URL = "https://api.discogs.com"
USER_AGENT_HEADER = "User-Agent"
RATE_LIMIT_HEADER = "X-Discogs-Ratelimit"

# Requests per minute granted by Discogs
RATE_LIMIT_UNAUTH = 25
RATE_LIMIT_AUTH = 60

ModelT = TypeVar("ModelT", bound=BaseModel)


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


def encode_params(params: Optional[Mapping[str, Any]]) -> str:
    """
    URL-encodes query parameters sorted by key.

    Sequence values produce one pair per item and ``None`` values are dropped.
    """
    if not params:
        return ""

    pairs = []
    for key in sorted(params):
        value = params[key]
        if value is None:
            continue
        values = value if isinstance(value, (list, tuple)) else [value]
        pairs.extend((key, _stringify(v)) for v in values)
    return urlencode(pairs)


class DiscogsClient:
    """
    Async client for the Discogs API (https://www.discogs.com/developers).

    Features:
    - Authentication resolved per endpoint from a route table
    - Token-bucket rate limiting, tuned by the X-Discogs-Ratelimit header
    - Typed errors for transport, HTTP and decoding failures
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        *,
        host: str = BASE_URL,
        session: Optional[aiohttp.ClientSession] = None,
        route_table: Optional[dict[str, AuthType]] = None,
    ):
        """
        Initializes the API client.

        Args:
            config: Identity, credentials and rate-limit ceiling. Defaults to an
                anonymous configuration.
            host: Scheme and host the endpoint paths are appended to.
            session: An externally managed aiohttp session. When omitted the
                client creates its own and closes it in ``close()``.
            route_table: Endpoint pattern to auth type mapping.
        """
        self.config: ClientConfig = config or ClientConfig()
        self.host = host.rstrip("/")
        self.route_table = route_table if route_table is not None else ENDPOINT_AUTH_MAP

        self._session = session
        self._owns_session = session is None
        self._rate_limiter = self._create_rate_limiter(self.config)

    @staticmethod
    def _create_rate_limiter(config: ClientConfig) -> TokenBucketRateLimiter:
        if config.max_requests > 0:
            return TokenBucketRateLimiter(
                config.max_requests, max_requests=config.max_requests
            )
        if config.has_key_secret:
            return TokenBucketRateLimiter(RATE_LIMIT_AUTH)
        return TokenBucketRateLimiter(RATE_LIMIT_UNAUTH)

    @property
    def rate_limiter(self) -> TokenBucketRateLimiter:
        """Provides access to the shared rate limiter."""
        return self._rate_limiter

    @property
    def limit(self) -> float:
        """The current rate limit, in requests per second."""
        return self._rate_limiter.limit

    @property
    def tokens(self) -> float:
        """The number of requests that can be issued right now without waiting."""
        return self._rate_limiter.tokens

    def set_max_requests(self, requests_per_minute: int) -> None:
        """
        Sets a custom rate limit in requests per minute. It also caps any higher
        limit later reported by the server. Non-positive values are ignored.
        """
        if requests_per_minute <= 0:
            return
        self.config = self.config.model_copy(update={"max_requests": requests_per_minute})
        self._rate_limiter.set_max_requests(requests_per_minute)

    async def _initialize_session(self) -> aiohttp.ClientSession:
        """Ensures an active aiohttp session is available."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                connector=aiohttp.TCPConnector(limit=20, ttl_dns_cache=300),
                timeout=aiohttp.ClientTimeout(total=60, connect=15, sock_read=30),
            )
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Gracefully closes the aiohttp session if this client created it."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> "DiscogsClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    # --- Request pipeline ---

    def _build_url(self, endpoint: str, params: Optional[Mapping[str, Any]]) -> URL:
        url = self.host + endpoint
        query = encode_params(params)
        if query:
            url = f"{url}?{query}"
        # Already encoded; keep yarl from re-quoting or reordering the query.
        return URL(url, encoded=True)

    @staticmethod
    def _encode_body(body: Any) -> bytes:
        if isinstance(body, BaseModel):
            return body.model_dump_json(by_alias=True, exclude_none=True).encode()
        return json.dumps(body).encode()

    async def request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
        body: Any = None,
        response_model: Optional[type[ModelT]] = None,
    ) -> Any:
        """
        Sends a request to an API endpoint and decodes the JSON response.

        Route and credential problems are raised before anything is sent. The
        request then waits for a rate-limit token; cancelling the calling task
        aborts either the wait or the exchange.

        Args:
            method: The HTTP method.
            endpoint: The endpoint path, e.g. "/releases/1".
            params: Query parameters, encoded in key order.
            headers: Extra request headers.
            body: A JSON-serializable payload or pydantic model. None sends no body.
            response_model: Pydantic model to validate the response into. Without
                one the decoded JSON is returned as-is.

        Returns:
            The decoded response, or None if the response body is empty.

        Raises:
            RouteNotFoundError: The endpoint matches no known route.
            MissingCredentialsError: The route needs credentials that are not set.
            TransportError: The HTTP exchange failed.
            HTTPError: The response status is not 2xx.
            MalformedResponseError: A 2xx body could not be decoded.
        """
        url = self._build_url(endpoint, params)

        data = None
        request_headers: CIMultiDict = CIMultiDict()
        if body is not None:
            data = self._encode_body(body)
            request_headers["Content-Type"] = "application/json"

        if headers:
            request_headers.update(headers)
        request_headers[USER_AGENT_HEADER] = self.config.app_name

        auth_type = match_route(endpoint, self.route_table)
        add_auth_headers(request_headers, auth_type, self.config, endpoint)

        return await self._send(method, endpoint, url, request_headers, data, response_model)

    async def _send(
        self,
        method: str,
        endpoint: str,
        url: URL,
        headers: CIMultiDict,
        data: Optional[bytes],
        response_model: Optional[type[ModelT]],
    ) -> Any:
        """Waits for a rate-limit token, performs the exchange and decodes the result."""
        session = await self._initialize_session()
        await self._rate_limiter.acquire()

        start_time = time.monotonic()
        try:
            async with session.request(method, url, headers=headers, data=data) as r:
                self._update_rate_limit_from_header(r.headers)
                status = r.status
                try:
                    payload = await r.read()
                except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                    raise TransportError(f"failed to read response body: {e}") from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            log.debug(f"{method} {endpoint} failed: {e!r}")
            raise TransportError(f"request failed: {e!r}") from e

        duration_ms = (time.monotonic() - start_time) * 1000
        log.debug(f"{method} {endpoint} -> {status} ({duration_ms:.0f} ms)")

        if not 200 <= status < 300:
            raise HTTPError(status, payload.decode("utf-8", errors="replace"))

        if not payload:
            return None

        try:
            if response_model is not None:
                return response_model.model_validate_json(payload)
            return json.loads(payload)
        except (ValidationError, ValueError) as e:
            raise MalformedResponseError(
                f"failed to decode response body from {endpoint}: {e}"
            ) from e

    def _update_rate_limit_from_header(self, headers: Mapping[str, str]) -> None:
        """Feeds the X-Discogs-Ratelimit header value, if any, to the rate limiter."""
        value = headers.get(RATE_LIMIT_HEADER)
        if not value:
            return
        try:
            rate_limit = int(value)
        except ValueError:
            log.debug(f"Ignoring unparsable {RATE_LIMIT_HEADER} header: {value!r}")
            return
        self._rate_limiter.update_from_server(rate_limit)

    async def get(
        self,
        endpoint: str,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
        response_model: Optional[type[ModelT]] = None,
    ) -> Any:
        return await self.request("GET", endpoint, params, headers, None, response_model)

    async def post(
        self,
        endpoint: str,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
        body: Any = None,
        response_model: Optional[type[ModelT]] = None,
    ) -> Any:
        return await self.request("POST", endpoint, params, headers, body, response_model)

    async def put(
        self,
        endpoint: str,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
        body: Any = None,
        response_model: Optional[type[ModelT]] = None,
    ) -> Any:
        return await self.request("PUT", endpoint, params, headers, body, response_model)

    async def delete(
        self,
        endpoint: str,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
        response_model: Optional[type[ModelT]] = None,
    ) -> Any:
        return await self.request("DELETE", endpoint, params, headers, None, response_model)

    async def _lookup(
        self,
        endpoint: str,
        resource_id: int,
        response_model: type[ModelT],
        not_found: type[NotFoundError],
        params: Optional[Mapping[str, Any]] = None,
    ) -> ModelT:
        """Fetches a single resource, narrowing a 404 into ``not_found``."""
        try:
            result = await self.get(endpoint, params, response_model=response_model)
        except HTTPError as e:
            if e.status_code == HTTPStatus.NOT_FOUND:
                raise not_found(resource_id, e) from e
            raise
        return result if result is not None else response_model()

    async def _yield_paginated(
        self,
        endpoint: str,
        params: Optional[Mapping[str, Any]] = None,
        response_model: Optional[type[ModelT]] = None,
    ) -> AsyncGenerator[Any, None]:
        """
        Generator for paginated endpoints. Yields one decoded page at a time until
        the page count reported in the "pagination" block is reached.
        """
        page_params = dict(params or {})
        page = int(page_params.get("page") or 1)

        while True:
            page_params["page"] = page
            response = await self.get(endpoint, page_params, response_model=response_model)
            if response is None:
                break

            yield response

            if isinstance(response, BaseModel):
                pagination = getattr(response, "pagination", None)
                total_pages = pagination.pages if pagination else 0
            else:
                total_pages = response.get("pagination", {}).get("pages", 0)

            if page >= total_pages:
                break
            page += 1

    # Public API Methods
    async def release(
        self, release_id: int, options: Optional[ReleaseOptions] = None
    ) -> ReleaseResponse:
        """
        Fetches a release by ID.

        Raises:
            ReleaseNotFoundError: If the API answers 404 for this release.
        """
        return await self._lookup(
            f"/releases/{release_id}",
            release_id,
            ReleaseResponse,
            ReleaseNotFoundError,
            params=options.to_params() if options else None,
        )

    async def release_rating(self, release_id: int) -> CommunityRatingResponse:
        return await self._lookup(
            f"/releases/{release_id}/rating",
            release_id,
            CommunityRatingResponse,
            ReleaseNotFoundError,
        )

    async def release_stats(self, release_id: int) -> ReleaseStatsResponse:
        return await self._lookup(
            f"/releases/{release_id}/stats",
            release_id,
            ReleaseStatsResponse,
            ReleaseNotFoundError,
        )

    async def master(self, master_id: int) -> MasterResponse:
        return await self._lookup(
            f"/masters/{master_id}", master_id, MasterResponse, MasterNotFoundError
        )

    async def artist(self, artist_id: int) -> ArtistResponse:
        return await self._lookup(
            f"/artists/{artist_id}", artist_id, ArtistResponse, ArtistNotFoundError
        )

    async def label(self, label_id: int) -> LabelResponse:
        return await self._lookup(
            f"/labels/{label_id}", label_id, LabelResponse, LabelNotFoundError
        )

    async def search(self, options: SearchOptions) -> SearchResponse:
        """Searches the database. Requires consumer key and secret."""
        result = await self.get(
            "/database/search", options.to_params(), response_model=SearchResponse
        )
        return result if result is not None else SearchResponse()

    def iter_search(self, options: SearchOptions) -> AsyncGenerator[SearchResponse, None]:
        return self._yield_paginated(
            "/database/search", options.to_params(), response_model=SearchResponse
        )

    def fetch_master_versions(self, master_id: int) -> AsyncGenerator[dict[str, Any], None]:
        return self._yield_paginated(f"/masters/{master_id}/versions")

    def fetch_artist_releases(self, artist_id: int) -> AsyncGenerator[dict[str, Any], None]:
        return self._yield_paginated(f"/artists/{artist_id}/releases")

    def fetch_label_releases(self, label_id: int) -> AsyncGenerator[dict[str, Any], None]:
        return self._yield_paginated(f"/labels/{label_id}/releases")
