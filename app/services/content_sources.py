"""Content sources feeding proximity search.

Each source asks the data store for approved/active records of one category
whose title loosely matches the query, and normalizes the rows into
``Candidate`` objects. Ranking happens later in the search service.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable

from app.adapters.datastore.base import AbstractDataStore, Row
from app.schemas.search import ContentKind


@dataclass(frozen=True)
class Candidate:
    """A record from one category, not yet placed or ranked.

    Attributes:
        lookup_text: Free text used to estimate the position when the record
            has no explicit coordinates.
        coordinates: Explicit (lat, lng) when the record carries them.
    """

    kind: ContentKind
    id: str | int
    title: str
    description: str | None = None
    location: str | None = None
    lookup_text: str | None = None
    coordinates: tuple[float, float] | None = None
    price: float | None = None
    address: str | None = None
    phone: str | None = None
    website: str | None = None
    image_url: str | None = None


class ContentSource(ABC):
    """One category of searchable content."""

    kind: ContentKind

    @abstractmethod
    async def fetch(self, text_query: str) -> list[Candidate]:
        """Return pre-filtered candidates matching the text query."""
        raise NotImplementedError


def _explicit_coordinates(row: Row) -> tuple[float, float] | None:
    lat, lng = row.get("latitude"), row.get("longitude")
    if lat is None or lng is None:
        return None
    try:
        position = float(lat), float(lng)
    except (TypeError, ValueError):
        return None
    if not all(math.isfinite(value) for value in position):
        return None
    return position


def _first_image(row: Row) -> str | None:
    images = row.get("images")
    if isinstance(images, list) and images:
        return images[0]
    return None


def _city_state(row: Row) -> str:
    return f"{row.get('city')}, {row.get('state')}"


def business_candidate(row: Row) -> Candidate:
    return Candidate(
        kind=ContentKind.BUSINESS,
        id=row["id"],
        title=row.get("name") or row.get("business_name") or "",
        description=row.get("description"),
        location=_city_state(row),
        lookup_text=row.get("city"),
        coordinates=_explicit_coordinates(row),
        address=row.get("address"),
        phone=row.get("phone"),
        website=row.get("website"),
    )


def marketplace_candidate(row: Row) -> Candidate:
    return Candidate(
        kind=ContentKind.MARKETPLACE,
        id=row["id"],
        title=row.get("title") or "",
        description=row.get("description"),
        location=row.get("location"),
        lookup_text=row.get("location"),
        coordinates=_explicit_coordinates(row),
        price=row.get("price"),
        image_url=_first_image(row),
    )


def job_candidate(row: Row) -> Candidate:
    return Candidate(
        kind=ContentKind.JOB,
        id=row["id"],
        title=row.get("title") or "",
        description=row.get("description"),
        location=row.get("location"),
        lookup_text=row.get("location"),
        coordinates=_explicit_coordinates(row),
        image_url=_first_image(row),
    )


def real_estate_candidate(row: Row) -> Candidate:
    return Candidate(
        kind=ContentKind.REAL_ESTATE,
        id=row["id"],
        title=row.get("title") or "",
        description=row.get("description"),
        location=_city_state(row),
        lookup_text=row.get("city"),
        coordinates=_explicit_coordinates(row),
        price=row.get("price"),
        address=row.get("address"),
        image_url=_first_image(row),
    )


class DataStoreContentSource(ContentSource):
    """Category backed by a single table with a status gate and a text column."""

    def __init__(
        self,
        store: AbstractDataStore,
        *,
        kind: ContentKind,
        table: str,
        status_filter: dict[str, Any],
        text_column: str,
        to_candidate: Callable[[Row], Candidate],
    ) -> None:
        self.kind = kind
        self._store = store
        self._table = table
        self._status_filter = status_filter
        self._text_column = text_column
        self._to_candidate = to_candidate

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return f"DataStoreContentSource(kind={self.kind.value!r}, table={self._table!r})"

    async def fetch(self, text_query: str) -> list[Candidate]:
        result = await self._store.select(
            self._table,
            eq=self._status_filter,
            ilike={self._text_column: text_query},
        )
        return [self._to_candidate(row) for row in result.rows]


def build_default_sources(store: AbstractDataStore) -> list[ContentSource]:
    """Sources for every category, in merge order."""

    return [
        DataStoreContentSource(
            store,
            kind=ContentKind.BUSINESS,
            table="business_profiles",
            status_filter={"admin_status": "approved"},
            text_column="name",
            to_candidate=business_candidate,
        ),
        DataStoreContentSource(
            store,
            kind=ContentKind.MARKETPLACE,
            table="marketplace_posts",
            status_filter={"admin_status": "approved"},
            text_column="title",
            to_candidate=marketplace_candidate,
        ),
        DataStoreContentSource(
            store,
            kind=ContentKind.JOB,
            table="job_posts",
            status_filter={"status": "active"},
            text_column="title",
            to_candidate=job_candidate,
        ),
        DataStoreContentSource(
            store,
            kind=ContentKind.REAL_ESTATE,
            table="real_estate_posts",
            status_filter={"status": "active"},
            text_column="title",
            to_candidate=real_estate_candidate,
        ),
    ]
