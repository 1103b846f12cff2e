"""
Pydantic model for the API client configuration.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

DEFAULT_APP_NAME = "DiscogsCli/0.1"


class ClientConfig(BaseModel):
    """
    A validated configuration for the Discogs client.

    The model is frozen; the client replaces it with an updated copy when the
    rate-limit ceiling is changed explicitly.
    """

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    # Sent as the User-Agent. Discogs asks for an RFC 1945 product token, e.g.
    # "MyDiscogsClient/1.0 +http://mydiscogsclient.org".
    app_name: str = DEFAULT_APP_NAME

    # Authentication
    consumer_key: Optional[str] = None
    consumer_secret: Optional[str] = None
    access_token: Optional[str] = None

    # Requests per minute. 0 means no explicit ceiling.
    max_requests: int = 0

    @field_validator("app_name", mode="before")
    @classmethod
    def default_app_name(cls, v: Optional[str]) -> str:
        """Falls back to the default identity when no app name is given."""
        if v is None or not str(v).strip():
            return DEFAULT_APP_NAME
        return v

    @field_validator("consumer_key", "consumer_secret", "access_token")
    @classmethod
    def empty_as_absent(cls, v: Optional[str]) -> Optional[str]:
        """Treats blank credentials as not configured."""
        return v or None

    @field_validator("max_requests")
    @classmethod
    def validate_max_requests(cls, v: int) -> int:
        if v < 0:
            raise ValueError("max_requests cannot be negative.")
        return v

    @property
    def has_key_secret(self) -> bool:
        return self.consumer_key is not None and self.consumer_secret is not None

    @property
    def has_access_token(self) -> bool:
        return self.access_token is not None

    @classmethod
    def get_ini_keys(cls) -> list[str]:
        """Returns the keys that are expected in the INI file, in field order."""
        return list(cls.model_fields)
