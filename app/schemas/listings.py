"""Pydantic schemas for listing and admin analytics responses."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class RealEstateListResponse(BaseModel):
    """One page of active real estate posts."""

    data: list[dict[str, Any]] = Field(default_factory=list, description="Post rows, newest first.")
    count: int | None = Field(default=None, description="Total matching posts across all pages.")
    has_more: bool = Field(..., description="Whether a following page exists.")


class AdminAnalyticsResponse(BaseModel):
    """Platform-wide counters for the admin dashboard."""

    total_users: int = 0
    total_posts: int = 0
    total_jobs: int = 0
    total_businesses: int = 0
    new_users_this_month: int = 0
    new_posts_this_month: int = 0
    recent_actions: list[dict[str, Any]] = Field(
        default_factory=list,
        description="Ten most recent moderation actions with the acting user embedded.",
    )
