from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query

from app.adapters.datastore.base import AbstractDataStore
from app.core.config import settings
from app.core.dependencies import get_data_store
from app.core.errors import CollaboratorAppError
from app.core.rate_limit import rate_limited
from app.schemas.listings import RealEstateListResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Listings"])

REAL_ESTATE_SEARCH_COLUMNS = ("title", "description", "address", "city")

_listings_rate_limit = rate_limited(
    "listings",
    limit=lambda: settings.app.listings_rate_limit_requests,
    window_ms=lambda: settings.app.listings_rate_limit_window_ms,
)


@router.get(
    "/api/real-estate-posts",
    response_model=RealEstateListResponse,
    dependencies=[Depends(_listings_rate_limit)],
)
async def list_real_estate_posts(
    property_type: str | None = Query(None, description="sale, rent or room-rental."),
    search: str | None = Query(None, description="Text matched against title, description, address and city."),
    page: int = Query(0, ge=0, description="Zero-based page number."),
    store: AbstractDataStore = Depends(get_data_store),
) -> RealEstateListResponse:
    """Active real estate posts, newest first, one page at a time.

    Raises:
        CollaboratorAppError: 500 when the data store query fails.
    """
    page_size = settings.app.listings_page_size
    offset = page * page_size

    eq: dict[str, str] = {"status": "active"}
    if property_type:
        eq["property_type"] = property_type

    try:
        result = await store.select(
            "real_estate_posts",
            eq=eq,
            any_ilike=(REAL_ESTATE_SEARCH_COLUMNS, search) if search else None,
            order_by="created_at",
            descending=True,
            offset=offset,
            limit=page_size,
            count=True,
        )
    except CollaboratorAppError as exc:
        raise CollaboratorAppError(
            code="listings_fetch_failed",
            message="Failed to fetch real estate posts",
            details={"source": exc.code},
        ) from exc

    return RealEstateListResponse(
        data=result.rows,
        count=result.count,
        has_more=(result.count or 0) > offset + page_size,
    )
