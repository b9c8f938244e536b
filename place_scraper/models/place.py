"""
Place data models for the Place Scraper service.
These models are the only shapes that leave the pipeline, whichever
extraction strategy (embedded graph or markup fallback) produced them.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class UrlKind(str, Enum):
    """URL family an input URL was classified into."""
    SHORT_LINK = "short_link"
    LISTING = "listing"
    DETAIL = "detail"


class ExtractionSource(str, Enum):
    """Strategy that produced a place record."""
    EMBEDDED_GRAPH = "embedded_graph"
    MARKUP_FALLBACK = "markup_fallback"


@dataclass(frozen=True)
class ResolvedUrl:
    """Detail-page URL ready to fetch."""
    url: str
    kind: UrlKind
    place_id: Optional[str] = None


@dataclass(frozen=True)
class RawDocument:
    """Fetched detail-page markup."""
    url: str
    status_code: int
    text: str


class ReviewRecord(BaseModel):
    """Visitor review attached to a place."""
    model_config = ConfigDict(populate_by_name=True, allow_inf_nan=False)

    id: Optional[str] = None
    author: Optional[str] = None
    rating: Optional[float] = None
    content: str
    date: Optional[str] = None
    image_urls: List[str] = Field(default_factory=list, alias="imageUrls")
    has_owner_reply: Optional[bool] = Field(default=None, alias="hasOwnerReply")
    like_count: Optional[int] = Field(default=None, alias="likeCount")


class PlaceData(BaseModel):
    """
    Business record extracted from a place detail page.

    Optional fields stay None when the page did not provide them and are
    omitted from serialized output.
    """
    model_config = ConfigDict(populate_by_name=True)

    site_id: Optional[str] = Field(default=None, alias="siteId")
    category: Optional[str] = None
    road_address: Optional[str] = Field(default=None, alias="roadAddress")
    address: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    phone: Optional[str] = None
    virtual_phone: Optional[str] = Field(default=None, alias="virtualPhone")
    reviews: List[ReviewRecord] = Field(default_factory=list)
    source: ExtractionSource = ExtractionSource.EMBEDDED_GRAPH

    def to_response(self) -> Dict[str, Any]:
        """Serialize with aliases, dropping None values and empty lists."""
        data = {}
        for key, value in self.model_dump(mode="json", exclude_none=True, by_alias=True).items():
            if isinstance(value, list) and len(value) == 0:
                continue
            data[key] = value
        if "reviews" in data:
            data["reviews"] = [
                {k: v for k, v in review.items() if v != []}
                for review in data["reviews"]
            ]
        return data

    def present_fields(self) -> List[str]:
        """Names of the scalar fields that were recovered (for logging)."""
        return [
            name for name in type(self).model_fields
            if name not in ("reviews", "source") and getattr(self, name) is not None
        ]

    def missing_fields(self) -> List[str]:
        """Names of the scalar fields that stayed empty (for logging)."""
        return [
            name for name in type(self).model_fields
            if name not in ("reviews", "source") and getattr(self, name) is None
        ]


class PlaceEnvelope(BaseModel):
    """Success result of one pipeline run."""
    model_config = ConfigDict(populate_by_name=True)

    original_url: str = Field(alias="originalUrl")
    place_data: PlaceData = Field(alias="placeData")

    def to_response(self) -> Dict[str, Any]:
        return {
            "originalUrl": self.original_url,
            "placeData": self.place_data.to_response(),
        }


class FailureEnvelope(BaseModel):
    """Failure result of one pipeline run."""
    model_config = ConfigDict(populate_by_name=True)

    error_kind: str = Field(alias="errorKind")
    message: str
    http_status: int = Field(default=500, exclude=True)

    def to_response(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)
