"""
Maps Discogs API endpoints to the authentication they require.
"""

from enum import Enum

from discogs_cli.exceptions import RouteNotFoundError


class AuthType(str, Enum):
    """Authentication level required by an endpoint."""

    UNKNOWN = "unknown"
    NONE = "none"
    KEY_SECRET = "key-secret"
    OAUTH = "oauth"
    PERSONAL_ACCESS_TOKEN = "personal-access-token"


# Path patterns use brace-wrapped segments for path variables, e.g. {release_id}.
# Patterns must not overlap: lookup order is not guaranteed.
ENDPOINT_AUTH_MAP: dict[str, AuthType] = {
    "/releases/{release_id}": AuthType.NONE,
    "/releases/{release_id}/rating": AuthType.NONE,
    "/releases/{release_id}/stats": AuthType.NONE,
    "/masters/{master_id}": AuthType.NONE,
    "/masters/{master_id}/versions": AuthType.NONE,
    "/artists/{artist_id}": AuthType.NONE,
    "/artists/{artist_id}/releases": AuthType.NONE,
    "/labels/{label_id}": AuthType.NONE,
    "/labels/{label_id}/releases": AuthType.NONE,
    "/database/search": AuthType.KEY_SECRET,
}


def _is_placeholder(segment: str) -> bool:
    return segment.startswith("{") and segment.endswith("}")


def is_match(route: str, endpoint: str) -> bool:
    """
    Checks whether an endpoint path instantiates a route pattern.

    Both are split on '/'. They match when the segment counts are equal and every
    literal segment of the route equals the endpoint segment at the same position;
    placeholder segments match any value.
    """
    route_parts = route.split("/")
    endpoint_parts = endpoint.split("/")
    if len(route_parts) != len(endpoint_parts):
        return False

    return all(
        _is_placeholder(part) or part == endpoint_parts[i]
        for i, part in enumerate(route_parts)
    )


def match_route(endpoint: str, auth_map: dict[str, AuthType]) -> AuthType:
    """
    Determines the authentication type required for an endpoint.

    Raises:
        RouteNotFoundError: If no pattern in ``auth_map`` matches the endpoint.
    """
    for route, auth_type in auth_map.items():
        if is_match(route, endpoint):
            return auth_type
    raise RouteNotFoundError(endpoint)
