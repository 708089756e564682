"""Admin area routes.

Everything here sits behind ``admin_admission_middleware``: by the time a
handler runs the caller has spent the admin API budget (API paths) and has
been admitted with the privileged role.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Awaitable, TypeVar

from fastapi import APIRouter, Depends, Request

from app.adapters.datastore.base import AbstractDataStore
from app.core.dependencies import get_admin_data_store
from app.core.errors import CollaboratorAppError, DataStoreQueryError
from app.schemas.listings import AdminAnalyticsResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Admin"])

T = TypeVar("T")


def start_of_month(now: datetime | None = None) -> datetime:
    now = now or datetime.now(timezone.utc)
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


async def _or_default(metric: str, query: Awaitable[T], default: T) -> T:
    """Await one dashboard query; a rejected query shows as ``default``."""
    try:
        return await query
    except DataStoreQueryError as exc:
        logger.warning(
            "analytics.metric_failed",
            extra={"metric": metric, "error_code": exc.code},
        )
        return default


@router.get("/admin")
async def admin_home(request: Request) -> dict:
    """Landing payload for the admin area."""
    return {"status": "ok", "user_id": getattr(request.state, "admin_user_id", None)}


@router.get("/api/admin/analytics", response_model=AdminAnalyticsResponse)
async def admin_analytics(
    store: AbstractDataStore = Depends(get_admin_data_store),
) -> AdminAnalyticsResponse:
    """Platform counters and the latest moderation actions.

    A counter whose query is rejected by the data store reads as zero.

    Raises:
        CollaboratorAppError: 500 when the data store cannot be reached.
    """
    month_start = start_of_month().isoformat()

    try:
        (
            total_users,
            total_posts,
            total_jobs,
            total_businesses,
            new_users,
            new_posts,
            recent_actions,
        ) = await asyncio.gather(
            _or_default("total_users", store.count("users"), 0),
            _or_default("total_posts", store.count("marketplace_posts"), 0),
            _or_default("total_jobs", store.count("job_posts"), 0),
            _or_default("total_businesses", store.count("business_profiles"), 0),
            _or_default("new_users", store.count("users", gte={"created_at": month_start}), 0),
            _or_default(
                "new_posts",
                store.count("marketplace_posts", gte={"created_at": month_start}),
                0,
            ),
            _or_default("recent_actions", _recent_actions(store), []),
        )
    except CollaboratorAppError as exc:
        raise CollaboratorAppError(
            code="analytics_failed",
            message="Failed to load analytics",
            details={"source": exc.code},
        ) from exc

    return AdminAnalyticsResponse(
        total_users=total_users,
        total_posts=total_posts,
        total_jobs=total_jobs,
        total_businesses=total_businesses,
        new_users_this_month=new_users,
        new_posts_this_month=new_posts,
        recent_actions=recent_actions,
    )


async def _recent_actions(store: AbstractDataStore) -> list[dict]:
    result = await store.select(
        "admin_actions",
        columns="*,users(full_name,email)",
        order_by="created_at",
        descending=True,
        limit=10,
    )
    return result.rows
