"""Pydantic schemas for proximity search responses."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class ContentKind(str, Enum):
    """Content categories that take part in proximity search."""

    BUSINESS = "business"
    MARKETPLACE = "marketplace"
    JOB = "job"
    REAL_ESTATE = "real_estate"


class SearchKindFilter(str, Enum):
    """The ``type`` query parameter: one category, or all of them."""

    ALL = "all"
    BUSINESS = "business"
    MARKETPLACE = "marketplace"
    JOB = "job"
    REAL_ESTATE = "real_estate"

    def includes(self, kind: ContentKind) -> bool:
        return self is SearchKindFilter.ALL or self.value == kind.value


class SearchResult(BaseModel):
    """One ranked hit from any content category."""

    id: str | int = Field(..., description="Identifier of the source record.")
    title: str = Field(..., description="Business name or post title.")
    description: str | None = Field(default=None, description="Free-text description.")
    location: str | None = Field(default=None, description="Display location, e.g. 'Houston, TX'.")
    type: ContentKind = Field(..., description="Content category of the source record.")
    distance: float = Field(..., ge=0, description="Distance from the search center in statute miles.")
    price: float | None = Field(default=None, description="Asking price, when the category has one.")
    address: str | None = None
    phone: str | None = None
    website: str | None = None
    image_url: str | None = Field(default=None, description="First image of the record, if any.")


class SearchCenter(BaseModel):
    lat: float
    lng: float


class NearbySearchResponse(BaseModel):
    """Ranked results plus the untruncated number of matches."""

    results: list[SearchResult] = Field(
        default_factory=list,
        description="Matches sorted by ascending distance, capped at the configured maximum.",
    )
    total: int = Field(..., description="Number of matches before the cap was applied.")
    center: SearchCenter
    radius: int = Field(..., description="Search radius in miles.")
