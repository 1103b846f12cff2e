"""
Discogs API Layer.

This package handles all communication with the Discogs API: route-based
authentication, rate limiting and the request pipeline.
"""

from .client import DiscogsClient
from .rate_limiter import TokenBucketRateLimiter
from .routes import ENDPOINT_AUTH_MAP, AuthType

__all__ = ["ENDPOINT_AUTH_MAP", "AuthType", "DiscogsClient", "TokenBucketRateLimiter"]
