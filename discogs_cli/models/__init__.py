"""
Data Models Layer.

This package contains Pydantic models that define the client configuration and
the request options and responses of the Discogs database endpoints.
"""

from .config import ClientConfig
from .database import ReleaseOptions, ReleaseResponse, SearchOptions, SearchResponse

__all__ = [
    "ClientConfig",
    "ReleaseOptions",
    "ReleaseResponse",
    "SearchOptions",
    "SearchResponse",
]
