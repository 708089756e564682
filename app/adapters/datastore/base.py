"""Data store interface.

Services talk to the relational store only through this query/filter API, so
the hosted backend can be replaced (or faked in tests) without touching them.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

Row = dict[str, Any]


@dataclass(frozen=True)
class QueryResult:
    """Rows returned by a select, plus the exact match count when requested."""

    rows: list[Row] = field(default_factory=list)
    count: int | None = None


class AbstractDataStore(ABC):
    """Read-only query API over the marketplace tables."""

    @abstractmethod
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
        """Fetch rows from a table.

        Args:
            table: Table name.
            columns: Column selection (may embed related tables).
            eq: Column equals value.
            ilike: Column contains text, case-insensitively.
            any_ilike: (columns, text): at least one column contains the text.
            gte: Column greater than or equal to value.
            order_by: Column to sort on.
            descending: Sort direction for ``order_by``.
            offset: Rows to skip.
            limit: Maximum rows to return.
            count: Also return the exact number of matching rows.

        Raises:
            DataStoreQueryError: The store rejected the query.
            CollaboratorAppError: The store could not be reached.
        """
        raise NotImplementedError

    @abstractmethod
    async def count(
        self,
        table: str,
        *,
        eq: Mapping[str, Any] | None = None,
        gte: Mapping[str, Any] | None = None,
    ) -> int:
        """Exact number of rows matching the filters."""
        raise NotImplementedError

    async def aclose(self) -> None:
        """Release network resources (no-op by default)."""
        return None
