"""
Builds the Authorization header for Discogs API requests.

See https://www.discogs.com/developers#page:authentication for the supported
authentication flows.
"""

import logging
from typing import MutableMapping

from discogs_cli.exceptions import MissingCredentialsError
from discogs_cli.models.config import ClientConfig

from .routes import AuthType

log = logging.getLogger(__name__)

AUTH_HEADER = "Authorization"


def add_auth_headers(
    headers: MutableMapping[str, str], auth_type: AuthType, config: ClientConfig, endpoint: str
) -> None:
    """
    Sets the Authorization header required by ``auth_type``.

    Args:
        headers: The outbound header mapping, mutated in place.
        auth_type: The authentication level resolved for the endpoint.
        config: The client configuration holding the stored credentials.
        endpoint: The endpoint path, used for error reporting.

    Raises:
        MissingCredentialsError: If the credentials for ``auth_type`` are absent.
    """
    if auth_type == AuthType.KEY_SECRET:
        if not config.has_key_secret:
            raise MissingCredentialsError(auth_type, endpoint)
        headers[AUTH_HEADER] = (
            f"Discogs key={config.consumer_key}, secret={config.consumer_secret}"
        )
    elif auth_type in (AuthType.OAUTH, AuthType.PERSONAL_ACCESS_TOKEN):
        # OAuth tokens are sent the same way as personal access tokens until
        # the OAuth handshake itself is supported.
        if not config.has_access_token:
            raise MissingCredentialsError(auth_type, endpoint)
        headers[AUTH_HEADER] = f"Bearer {config.access_token}"
    else:
        return

    log.debug(f"Applied {auth_type.value} authentication for {endpoint}")
