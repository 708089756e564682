"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
It points settings at the testing environment and gives the data store
harmless credentials so no real project is ever contacted.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["APP_ENV"] = "testing"

os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-service-role-key")
# Sweeps are exercised explicitly; keep them off the request path.
os.environ.setdefault("APP_RATE_LIMIT_SWEEP_PROBABILITY", "0")

from typing import Any, Mapping, Sequence  # noqa: E402

import pytest  # noqa: E402

from app.adapters.datastore.base import AbstractDataStore, QueryResult  # noqa: E402
from app.core.rate_limit import reset_rate_limiter  # noqa: E402


class FakeDataStore(AbstractDataStore):
    """In-memory stand-in recording every call it receives.

    ``tables`` maps table name to rows returned by ``select``; ``counts`` maps
    table name to the value returned by ``count``. A table listed in
    ``failures`` raises the given exception instead.
    """

    def __init__(
        self,
        tables: dict[str, list[dict[str, Any]]] | None = None,
        *,
        counts: dict[str, int] | None = None,
        total: int | None = None,
        failures: dict[str, Exception] | None = None,
    ) -> None:
        self.tables = tables or {}
        self.counts = counts or {}
        self.total = total
        self.failures = failures or {}
        self.select_calls: list[dict[str, Any]] = []
        self.count_calls: list[dict[str, Any]] = []

    async def select(
        self,
        table: str,
        *,
        columns: str = "*",
        eq: Mapping[str, Any] | None = None,
        ilike: Mapping[str, str] | None = None,
        any_ilike: tuple[Sequence[str], str] | None = None,
        gte: Mapping[str, Any] | None = None,
        order_by: str | None = None,
        descending: bool = False,
        offset: int | None = None,
        limit: int | None = None,
        count: bool = False,
    ) -> QueryResult:
        self.select_calls.append(
            {
                "table": table,
                "columns": columns,
                "eq": dict(eq or {}),
                "ilike": dict(ilike or {}),
                "any_ilike": any_ilike,
                "gte": dict(gte or {}),
                "order_by": order_by,
                "descending": descending,
                "offset": offset,
                "limit": limit,
                "count": count,
            }
        )
        if table in self.failures:
            raise self.failures[table]
        rows = list(self.tables.get(table, []))
        return QueryResult(rows=rows, count=self.total if count else None)

    async def count(
        self,
        table: str,
        *,
        eq: Mapping[str, Any] | None = None,
        gte: Mapping[str, Any] | None = None,
    ) -> int:
        self.count_calls.append({"table": table, "eq": dict(eq or {}), "gte": dict(gte or {})})
        if table in self.failures:
            raise self.failures[table]
        key = f"{table}:recent" if gte else table
        return self.counts.get(key, 0)


@pytest.fixture
def fake_store_factory():
    return FakeDataStore


@pytest.fixture(autouse=True)
def _fresh_rate_limiter():
    reset_rate_limiter()
    yield
    reset_rate_limiter()
