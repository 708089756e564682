"""Tests for the PostgREST data store adapter using httpx.MockTransport."""

from __future__ import annotations

import httpx
import pytest

from app.adapters.datastore.supabase_rest import SupabaseRestDataStore, parse_content_range_total
from app.core.errors import CollaboratorAppError, DataStoreQueryError


def _store(handler) -> tuple[SupabaseRestDataStore, list[httpx.Request]]:
    seen: list[httpx.Request] = []

    def recording(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return handler(request)

    store = SupabaseRestDataStore(
        "https://test-project.supabase.co/",
        "anon-key",
        transport=httpx.MockTransport(recording),
    )
    return store, seen


@pytest.mark.parametrize(
    ("header", "expected"),
    [("0-11/57", 57), ("*/0", 0), ("0-11/*", None), (None, None), ("", None)],
)
def test_parse_content_range_total(header, expected) -> None:
    assert parse_content_range_total(header) == expected


@pytest.mark.asyncio
async def test_select_builds_postgrest_query() -> None:
    store, seen = _store(lambda request: httpx.Response(200, json=[{"id": 1}]))

    result = await store.select(
        "business_profiles",
        eq={"admin_status": "approved"},
        ilike={"name": "cafe"},
        order_by="created_at",
        descending=True,
        limit=5,
    )
    await store.aclose()

    assert result.rows == [{"id": 1}]
    assert result.count is None
    request = seen[0]
    assert request.method == "GET"
    assert request.url.path == "/rest/v1/business_profiles"
    params = request.url.params
    assert params["select"] == "*"
    assert params["admin_status"] == "eq.approved"
    assert params["name"] == "ilike.*cafe*"
    assert params["order"] == "created_at.desc"
    assert params["limit"] == "5"
    assert request.headers["apikey"] == "anon-key"
    assert request.headers["authorization"] == "Bearer anon-key"


@pytest.mark.asyncio
async def test_empty_text_still_sends_ilike() -> None:
    store, seen = _store(lambda request: httpx.Response(200, json=[]))

    await store.select("marketplace_posts", ilike={"title": ""})

    assert seen[0].url.params["title"] == "ilike.**"


@pytest.mark.asyncio
async def test_select_with_count_and_or_filter() -> None:
    store, seen = _store(
        lambda request: httpx.Response(
            200, json=[{"id": 9}], headers={"Content-Range": "12-23/40"}
        )
    )

    result = await store.select(
        "real_estate_posts",
        any_ilike=(("title", "city"), "loft"),
        offset=12,
        limit=12,
        count=True,
    )

    assert result.count == 40
    request = seen[0]
    assert request.headers["prefer"] == "count=exact"
    assert request.url.params["or"] == '(title.ilike."*loft*",city.ilike."*loft*")'
    assert request.url.params["offset"] == "12"


@pytest.mark.asyncio
async def test_count_uses_head_request() -> None:
    store, seen = _store(
        lambda request: httpx.Response(200, headers={"Content-Range": "*/314"})
    )

    total = await store.count("users", gte={"created_at": "2026-10-01T00:00:00+00:00"})

    assert total == 314
    assert seen[0].method == "HEAD"
    assert seen[0].url.params["created_at"] == "gte.2026-10-01T00:00:00+00:00"


@pytest.mark.asyncio
async def test_error_status_raises_query_error() -> None:
    store, _ = _store(lambda request: httpx.Response(400, json={"message": "bad column"}))

    with pytest.raises(DataStoreQueryError) as exc_info:
        await store.select("users")

    assert exc_info.value.code == "datastore_query_failed"
    assert exc_info.value.details == {"table": "users", "http_status": 400}


@pytest.mark.asyncio
async def test_transport_error_raises_collaborator_error() -> None:
    def unreachable(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    store, _ = _store(unreachable)

    with pytest.raises(CollaboratorAppError) as exc_info:
        await store.select("users")

    assert exc_info.value.code == "datastore_unavailable"
    assert not isinstance(exc_info.value, DataStoreQueryError)


@pytest.mark.asyncio
async def test_non_json_payload_raises() -> None:
    store, _ = _store(lambda request: httpx.Response(200, text="<html>"))

    with pytest.raises(DataStoreQueryError) as exc_info:
        await store.select("users")

    assert exc_info.value.code == "datastore_bad_payload"
