"""Proximity search across all content categories.

Fans out to every enabled content source concurrently, places each candidate
(explicit coordinates, then city-name estimate, then a fixed fallback
distance), keeps those within the radius and returns them nearest first.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Sequence

from app.core.errors import CollaboratorAppError, ValidationAppError
from app.schemas.search import SearchKindFilter, SearchResult
from app.services.content_sources import Candidate, ContentSource
from app.utils.geo import haversine_miles, is_valid_center, resolve_city

logger = logging.getLogger(__name__)

MAX_RESULTS = 50
FALLBACK_DISTANCE_MILES = 15.0


@dataclass(frozen=True)
class SearchOutcome:
    results: list[SearchResult]
    total: int


class SearchService:
    """Aggregate, place and rank candidates from heterogeneous sources.

    Attributes:
        sources: Content sources in merge order; ties in distance keep this order.
        max_results: Cap on returned results.
        fallback_distance_miles: Distance given to candidates that cannot be placed.
    """

    def __init__(
        self,
        sources: Sequence[ContentSource],
        *,
        max_results: int = MAX_RESULTS,
        fallback_distance_miles: float = FALLBACK_DISTANCE_MILES,
    ) -> None:
        self.sources = list(sources)
        self.max_results = max_results
        self.fallback_distance_miles = fallback_distance_miles

    def distance_to(self, center: tuple[float, float], candidate: Candidate) -> float:
        """Distance in miles from the center to a candidate's best-known position."""
        position = candidate.coordinates or resolve_city(candidate.lookup_text)
        if position is None:
            return self.fallback_distance_miles
        return haversine_miles(center[0], center[1], position[0], position[1])

    async def _collect(
        self,
        source: ContentSource,
        center: tuple[float, float],
        radius_miles: float,
        text_query: str,
    ) -> list[SearchResult] | None:
        """Fetch one source and keep its placed results within the radius.

        Returns None when the source failed. A single candidate that cannot be
        placed or rendered is skipped without failing its source.
        """
        try:
            candidates = await source.fetch(text_query)
        except Exception as exc:
            logger.warning(
                "search.source_failed",
                extra={
                    "kind": source.kind.value,
                    "error_type": type(exc).__name__,
                    "error_code": getattr(exc, "code", None),
                },
            )
            return None

        results: list[SearchResult] = []
        for candidate in candidates:
            try:
                distance = self.distance_to(center, candidate)
                if distance > radius_miles:
                    continue
                results.append(_to_result(candidate, distance))
            except ValueError as exc:
                # pydantic.ValidationError is a ValueError too.
                logger.warning(
                    "search.candidate_skipped",
                    extra={
                        "kind": source.kind.value,
                        "candidate_id": str(candidate.id),
                        "error_type": type(exc).__name__,
                    },
                )
        return results

    async def search(
        self,
        center: tuple[float, float],
        radius_miles: float,
        kind_filter: SearchKindFilter = SearchKindFilter.ALL,
        text_query: str = "",
    ) -> SearchOutcome:
        """Run a proximity search.

        Args:
            center: (lat, lng) in degrees; neither component may be zero.
            radius_miles: Inclusive maximum distance.
            kind_filter: Category to search, or all of them.
            text_query: Loose title match applied by the data store.

        Returns:
            SearchOutcome with at most ``max_results`` results and the total
            number of matches.

        Raises:
            ValidationAppError: The center is missing, zero or out of range.
            CollaboratorAppError: Every enabled source failed.
        """
        lat, lng = center
        if not is_valid_center(lat, lng):
            raise ValidationAppError(
                code="missing_coordinates",
                message="Latitude and longitude are required",
            )

        enabled = [source for source in self.sources if kind_filter.includes(source.kind)]
        collected = await asyncio.gather(
            *(self._collect(source, center, radius_miles, text_query) for source in enabled)
        )

        failed = [source.kind.value for source, batch in zip(enabled, collected) if batch is None]
        if enabled and len(failed) == len(enabled):
            raise CollaboratorAppError(
                code="search_failed",
                message="Search failed",
                details={"failed_sources": failed},
            )

        matches: list[SearchResult] = [result for batch in collected for result in batch or []]

        # list.sort is stable: equal distances keep source then fetch order.
        matches.sort(key=lambda result: result.distance)

        logger.info(
            "search.completed",
            extra={
                "kind_filter": kind_filter.value,
                "radius_miles": radius_miles,
                "sources": len(enabled),
                "failed_sources": failed,
                "total": len(matches),
            },
        )
        return SearchOutcome(results=matches[: self.max_results], total=len(matches))


def _to_result(candidate: Candidate, distance: float) -> SearchResult:
    return SearchResult(
        id=candidate.id,
        title=candidate.title,
        description=candidate.description,
        location=candidate.location,
        type=candidate.kind,
        distance=distance,
        price=candidate.price,
        address=candidate.address,
        phone=candidate.phone,
        website=candidate.website,
        image_url=candidate.image_url,
    )
