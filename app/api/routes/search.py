from fastapi import APIRouter, Depends, Query

from app.core.config import settings
from app.core.dependencies import get_search_service
from app.core.rate_limit import rate_limited
from app.schemas.search import NearbySearchResponse, SearchCenter, SearchKindFilter
from app.services.search_service import SearchService

router = APIRouter(tags=["Search"])

_search_rate_limit = rate_limited(
    "search",
    limit=lambda: settings.app.search_rate_limit_requests,
    window_ms=lambda: settings.app.search_rate_limit_window_ms,
)


@router.get(
    "/api/search/nearby",
    response_model=NearbySearchResponse,
    dependencies=[Depends(_search_rate_limit)],
)
async def search_nearby(
    lat: float = Query(0.0, description="Latitude of the search center (required, non-zero)."),
    lng: float = Query(0.0, description="Longitude of the search center (required, non-zero)."),
    radius: int | None = Query(None, description="Search radius in miles (defaults to the configured radius)."),
    type: SearchKindFilter = Query(SearchKindFilter.ALL, description="Content category to search."),
    q: str = Query("", description="Loose title match."),
    service: SearchService = Depends(get_search_service),
) -> NearbySearchResponse:
    """Find businesses and posts near a point, nearest first.

    Returns at most the configured maximum of results; ``total`` is the
    number of matches before that cap.

    Raises:
        ValidationAppError: 400 when lat or lng is missing or zero.
        CollaboratorAppError: 500 when every content source failed.
    """
    if radius is None:
        radius = settings.search.default_radius_miles

    outcome = await service.search((lat, lng), radius, type, q)
    return NearbySearchResponse(
        results=outcome.results,
        total=outcome.total,
        center=SearchCenter(lat=lat, lng=lng),
        radius=radius,
    )
