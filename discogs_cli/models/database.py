"""
Pydantic models for the Discogs database endpoints: query options sent as URL
parameters and the JSON documents returned by the API.

Response models ignore unknown fields so that additions to the API do not break
decoding. See https://www.discogs.com/developers#page:database
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class Currency(str, Enum):
    """Currency codes accepted by the API for marketplace prices."""

    USD = "USD"
    GBP = "GBP"
    EUR = "EUR"
    CAD = "CAD"
    AUD = "AUD"
    JPY = "JPY"
    CHF = "CHF"
    MXN = "MXN"
    BRL = "BRL"
    NZD = "NZD"
    SEK = "SEK"
    ZAR = "ZAR"


class EntityType(str, Enum):
    """Types of entity stored in the Discogs database."""

    RELEASE = "release"
    MASTER = "master"
    ARTIST = "artist"
    LABEL = "label"


# --- Query options ---


class QueryOptions(BaseModel):
    """Base for option models that are serialized into query parameters."""

    model_config = ConfigDict(populate_by_name=True, use_enum_values=True)

    def to_params(self) -> dict[str, Any]:
        """Returns the options as query parameters, omitting unset and empty values."""
        return {
            key: value
            for key, value in self.model_dump(by_alias=True).items()
            if value is not None and value != ""
        }


class PaginationParams(QueryOptions):
    page: Optional[int] = None
    # Defaults to 50 on the server, maximum 100.
    per_page: Optional[int] = Field(default=None, le=100)


class ReleaseOptions(QueryOptions):
    curr_abbr: Optional[Currency] = None


class SearchOptions(PaginationParams):
    query: Optional[str] = Field(default=None, alias="q")
    type: Optional[EntityType] = None
    title: Optional[str] = None
    release_title: Optional[str] = None
    credit: Optional[str] = None
    artist: Optional[str] = None
    anv: Optional[str] = None
    label: Optional[str] = None
    genre: Optional[str] = None
    style: Optional[str] = None
    country: Optional[str] = None
    year: Optional[str] = None
    format: Optional[str] = None
    catno: Optional[str] = None
    barcode: Optional[str] = None
    track: Optional[str] = None
    submitter: Optional[str] = None
    contributor: Optional[str] = None


# --- Responses ---


class APIModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class PaginationURLs(APIModel):
    first: str = ""
    prev: str = ""
    next: str = ""
    last: str = ""


class Pagination(APIModel):
    """Pagination block of list responses."""

    page: int = 0
    pages: int = 0
    items: int = 0
    per_page: int = 0
    urls: Optional[PaginationURLs] = None


class ArtistCredit(APIModel):
    id: Optional[int] = None
    name: str = ""
    anv: str = ""
    join: str = ""
    role: str = ""
    tracks: str = ""
    resource_url: str = ""


class EntityRef(APIModel):
    """A company or label reference inside a release."""

    id: Optional[int] = None
    name: str = ""
    catno: str = ""
    entity_type: str = ""
    entity_type_name: str = ""
    resource_url: str = ""


class Format(APIModel):
    name: str = ""
    qty: str = ""
    descriptions: list[str] = Field(default_factory=list)


class Identifier(APIModel):
    type: str = ""
    value: str = ""


class Image(APIModel):
    type: str = ""
    uri: str = ""
    uri150: str = ""
    resource_url: str = ""
    width: Optional[int] = None
    height: Optional[int] = None


class Track(APIModel):
    position: str = ""
    title: str = ""
    duration: str = ""
    type_: str = ""


class Video(APIModel):
    uri: str = ""
    title: str = ""
    description: str = ""
    duration: Optional[int] = None
    embed: Optional[bool] = None


class UserRef(APIModel):
    username: str = ""
    resource_url: str = ""


class Rating(APIModel):
    average: Optional[float] = None
    count: Optional[int] = None


class Community(APIModel):
    contributors: list[UserRef] = Field(default_factory=list)
    data_quality: str = ""
    have: Optional[int] = None
    want: Optional[int] = None
    rating: Optional[Rating] = None
    status: Optional[str] = None
    submitter: Optional[UserRef] = None


class ReleaseResponse(APIModel):
    """A release as returned by GET /releases/{release_id}."""

    id: int = 0
    title: str = ""
    artists: list[ArtistCredit] = Field(default_factory=list)
    extraartists: list[ArtistCredit] = Field(default_factory=list)
    labels: list[EntityRef] = Field(default_factory=list)
    companies: list[EntityRef] = Field(default_factory=list)
    formats: list[Format] = Field(default_factory=list)
    format_quantity: Optional[int] = None
    genres: list[str] = Field(default_factory=list)
    styles: list[str] = Field(default_factory=list)
    identifiers: list[Identifier] = Field(default_factory=list)
    images: list[Image] = Field(default_factory=list)
    tracklist: list[Track] = Field(default_factory=list)
    videos: list[Video] = Field(default_factory=list)
    series: list[Any] = Field(default_factory=list)
    community: Optional[Community] = None
    country: str = ""
    data_quality: str = ""
    date_added: Optional[datetime] = None
    date_changed: Optional[datetime] = None
    estimated_weight: Optional[int] = None
    lowest_price: Optional[float] = None
    master_id: Optional[int] = None
    master_url: str = ""
    notes: str = ""
    num_for_sale: Optional[int] = None
    released: str = ""
    released_formatted: str = ""
    resource_url: str = ""
    status: str = ""
    thumb: str = ""
    uri: str = ""
    year: Optional[int] = None


class MasterResponse(APIModel):
    """A master release as returned by GET /masters/{master_id}."""

    id: int = 0
    title: str = ""
    main_release: Optional[int] = None
    main_release_url: str = ""
    versions_url: str = ""
    artists: list[ArtistCredit] = Field(default_factory=list)
    genres: list[str] = Field(default_factory=list)
    styles: list[str] = Field(default_factory=list)
    tracklist: list[Track] = Field(default_factory=list)
    images: list[Image] = Field(default_factory=list)
    year: Optional[int] = None
    num_for_sale: Optional[int] = None
    lowest_price: Optional[float] = None
    data_quality: str = ""
    resource_url: str = ""
    uri: str = ""


class ArtistResponse(APIModel):
    """An artist as returned by GET /artists/{artist_id}."""

    id: int = 0
    name: str = ""
    realname: str = ""
    profile: str = ""
    namevariations: list[str] = Field(default_factory=list)
    urls: list[str] = Field(default_factory=list)
    images: list[Image] = Field(default_factory=list)
    releases_url: str = ""
    data_quality: str = ""
    resource_url: str = ""
    uri: str = ""


class LabelResponse(APIModel):
    """A label as returned by GET /labels/{label_id}."""

    id: int = 0
    name: str = ""
    profile: str = ""
    contact_info: str = ""
    parent_label: Optional[EntityRef] = None
    sublabels: list[EntityRef] = Field(default_factory=list)
    urls: list[str] = Field(default_factory=list)
    images: list[Image] = Field(default_factory=list)
    releases_url: str = ""
    data_quality: str = ""
    resource_url: str = ""
    uri: str = ""


class CommunityRatingResponse(APIModel):
    """Response of GET /releases/{release_id}/rating."""

    release_id: int = 0
    rating: Rating = Field(default_factory=Rating)


class ReleaseStatsResponse(APIModel):
    """Response of GET /releases/{release_id}/stats."""

    num_have: Optional[int] = None
    num_want: Optional[int] = None
    is_offensive: Optional[bool] = None


class SearchCommunity(APIModel):
    want: Optional[int] = None
    have: Optional[int] = None


class SearchResult(APIModel):
    """A single hit of a database search."""

    id: Optional[int] = None
    type: Optional[EntityType] = None
    title: str = ""
    thumb: str = ""
    country: str = ""
    year: str = ""
    catno: str = ""
    style: list[str] = Field(default_factory=list)
    genre: list[str] = Field(default_factory=list)
    format: list[str] = Field(default_factory=list)
    label: list[str] = Field(default_factory=list)
    community: SearchCommunity = Field(default_factory=SearchCommunity)
    uri: str = ""
    resource_url: str = ""


class SearchResponse(APIModel):
    """Response of GET /database/search."""

    pagination: Optional[Pagination] = None
    results: list[SearchResult] = Field(default_factory=list)
