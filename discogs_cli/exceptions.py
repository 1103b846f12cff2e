"""
Defines custom exceptions for the application to allow for more specific error handling.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from discogs_cli.api.routes import AuthType


class DiscogsCliError(Exception):
    """Base exception for all application-specific errors."""


class ConfigurationError(DiscogsCliError):
    """Raised for issues related to configuration loading or validation."""


class TransportError(DiscogsCliError):
    """
    Raised when the HTTP exchange itself fails (connection refused, DNS failure,
    timeout, or a broken response stream). The original error is chained as
    ``__cause__``.
    """


class MalformedResponseError(DiscogsCliError):
    """Raised when a successful response body cannot be decoded."""


class RouteNotFoundError(DiscogsCliError):
    """Raised when an endpoint matches no known route pattern."""

    def __init__(self, endpoint: str):
        self.endpoint = endpoint
        super().__init__(f"no matching route found for endpoint: {endpoint}")


class MissingCredentialsError(DiscogsCliError):
    """Raised when the credentials required by an endpoint are not configured."""

    def __init__(self, required_auth_type: "AuthType", endpoint: str):
        self.required_auth_type = required_auth_type
        self.endpoint = endpoint
        super().__init__(
            "missing required auth credentials of type "
            f"{required_auth_type.value} for endpoint: {endpoint}"
        )


class HTTPError(DiscogsCliError):
    """
    Raised for any response with a status code outside the 2xx range.

    Attributes:
        status_code: The HTTP status code of the response.
        message: The raw response body.
    """

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(f"HTTP {status_code}: {message}")


class NotFoundError(HTTPError):
    """
    A 404 narrowed by a lookup call site. Wraps the original HTTPError so its
    status code and body are preserved as-is.
    """

    resource = "Resource"

    def __init__(self, resource_id: int, http_error: HTTPError):
        self.resource_id = resource_id
        self.http_error = http_error
        super().__init__(http_error.status_code, http_error.message)
        # Replace the generic "HTTP 404" text with a resource-specific one
        self.args = (f"{self.resource} ID {resource_id} not found: {self.message}",)


class ReleaseNotFoundError(NotFoundError):
    """Raised when a release with the requested ID does not exist."""

    resource = "Release"

    @property
    def release_id(self) -> int:
        return self.resource_id


class MasterNotFoundError(NotFoundError):
    """Raised when a master release with the requested ID does not exist."""

    resource = "Master"


class ArtistNotFoundError(NotFoundError):
    """Raised when an artist with the requested ID does not exist."""

    resource = "Artist"


class LabelNotFoundError(NotFoundError):
    """Raised when a label with the requested ID does not exist."""

    resource = "Label"
