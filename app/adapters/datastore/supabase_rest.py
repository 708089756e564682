"""Supabase (PostgREST) data store adapter over httpx."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence

import httpx

from app.adapters.datastore.base import AbstractDataStore, QueryResult
from app.core.errors import CollaboratorAppError, DataStoreQueryError

logger = logging.getLogger(__name__)


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _quote_or_value(value: str) -> str:
    # Values inside or=(...) must be quoted when they contain reserved characters.
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def parse_content_range_total(header: str | None) -> int | None:
    """Extract the total from a ``Content-Range`` header such as ``0-11/57``.

    Returns None when the header is missing or the total is unknown (``*``).
    """
    if not header or "/" not in header:
        return None
    total = header.rsplit("/", 1)[1].strip()
    if not total.isdigit():
        return None
    return int(total)


class SupabaseRestDataStore(AbstractDataStore):
    """Query the hosted Postgres through its REST endpoint.

    Filters map to PostgREST query parameters (``col=eq.v``,
    ``col=ilike.*v*``, ``or=(...)``); exact counts come back in
    ``Content-Range`` when ``Prefer: count=exact`` is sent.
    """

    def __init__(
        self,
        url: str,
        api_key: str,
        *,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the adapter.

        Args:
            url: Project URL (without the ``/rest/v1`` suffix).
            api_key: Key sent as both ``apikey`` and bearer token.
            timeout_seconds: Per-request timeout.
            transport: Optional httpx transport (tests use MockTransport).
        """
        self._client = httpx.AsyncClient(
            base_url=f"{url.rstrip('/')}/rest/v1",
            headers={
                "apikey": api_key,
                "Authorization": f"Bearer {api_key}",
                "Accept": "application/json",
            },
            timeout=timeout_seconds,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    def _filter_params(
        self,
        *,
        eq: Mapping[str, Any] | None,
        ilike: Mapping[str, str] | None,
        any_ilike: tuple[Sequence[str], str] | None,
        gte: Mapping[str, Any] | None,
    ) -> list[tuple[str, str]]:
        params: list[tuple[str, str]] = []
        for column, value in (eq or {}).items():
            params.append((column, f"eq.{_format_value(value)}"))
        for column, text in (ilike or {}).items():
            params.append((column, f"ilike.*{text}*"))
        for column, value in (gte or {}).items():
            params.append((column, f"gte.{_format_value(value)}"))
        if any_ilike is not None:
            columns, text = any_ilike
            clauses = ",".join(
                f"{column}.ilike.{_quote_or_value(f'*{text}*')}" for column in columns
            )
            params.append(("or", f"({clauses})"))
        return params

    async def _send(
        self,
        method: str,
        table: str,
        params: list[tuple[str, str]],
        headers: dict[str, str],
    ) -> httpx.Response:
        try:
            response = await self._client.request(method, f"/{table}", params=params, headers=headers)
        except httpx.HTTPError as exc:
            logger.warning(
                "datastore.unreachable",
                extra={"table": table, "error_type": type(exc).__name__},
            )
            raise CollaboratorAppError(
                code="datastore_unavailable",
                message="Data store could not be reached",
                details={"table": table},
            ) from exc

        if response.status_code >= 400:
            logger.warning(
                "datastore.query_failed",
                extra={"table": table, "http_status": response.status_code},
            )
            raise DataStoreQueryError(
                code="datastore_query_failed",
                message="Data store rejected the query",
                details={"table": table, "http_status": response.status_code},
            )
        return response

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
        params = [("select", columns)]
        params += self._filter_params(eq=eq, ilike=ilike, any_ilike=any_ilike, gte=gte)
        if order_by:
            params.append(("order", f"{order_by}.{'desc' if descending else 'asc'}"))
        if offset:
            params.append(("offset", str(offset)))
        if limit is not None:
            params.append(("limit", str(limit)))

        headers = {"Prefer": "count=exact"} if count else {}
        response = await self._send("GET", table, params, headers)

        try:
            rows = response.json()
        except ValueError as exc:
            raise DataStoreQueryError(
                code="datastore_bad_payload",
                message="Data store returned a non-JSON payload",
                details={"table": table},
            ) from exc

        total = parse_content_range_total(response.headers.get("content-range")) if count else None
        return QueryResult(rows=list(rows or []), count=total)

    async def count(
        self,
        table: str,
        *,
        eq: Mapping[str, Any] | None = None,
        gte: Mapping[str, Any] | None = None,
    ) -> int:
        params = [("select", "*")]
        params += self._filter_params(eq=eq, ilike=None, any_ilike=None, gte=gte)
        response = await self._send("HEAD", table, params, {"Prefer": "count=exact"})
        return parse_content_range_total(response.headers.get("content-range")) or 0
