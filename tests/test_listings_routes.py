"""HTTP tests for the real estate listing feed."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from app.core.app_factory import create_app
from app.core.config import settings
from app.core.dependencies import get_data_store
from app.core.errors import CollaboratorAppError, ConfigurationAppError


def _client(store) -> TestClient:
    app = create_app()
    app.dependency_overrides[get_data_store] = lambda: store
    return TestClient(app)


def test_first_page_defaults(fake_store_factory) -> None:
    store = fake_store_factory({"real_estate_posts": [{"id": 1}, {"id": 2}]}, total=30)

    resp = _client(store).get("/api/real-estate-posts")

    assert resp.status_code == 200
    assert resp.json() == {"data": [{"id": 1}, {"id": 2}], "count": 30, "has_more": True}
    call = store.select_calls[0]
    assert call["eq"] == {"status": "active"}
    assert call["any_ilike"] is None
    assert call["order_by"] == "created_at"
    assert call["descending"] is True
    assert call["offset"] == 0
    assert call["limit"] == 12
    assert call["count"] is True


def test_filters_and_paging(fake_store_factory) -> None:
    store = fake_store_factory({"real_estate_posts": []}, total=30)

    resp = _client(store).get(
        "/api/real-estate-posts",
        params={"property_type": "rent", "search": "loft", "page": 2},
    )

    assert resp.json()["has_more"] is False
    call = store.select_calls[0]
    assert call["eq"] == {"status": "active", "property_type": "rent"}
    assert call["any_ilike"] == (("title", "description", "address", "city"), "loft")
    assert call["offset"] == 24


def test_negative_page_is_rejected(fake_store_factory) -> None:
    resp = _client(fake_store_factory()).get("/api/real-estate-posts", params={"page": -1})

    assert resp.status_code == 422


def test_store_failure_returns_500(fake_store_factory) -> None:
    store = fake_store_factory(
        failures={
            "real_estate_posts": CollaboratorAppError(code="datastore_unavailable", message="down")
        }
    )

    resp = _client(store).get("/api/real-estate-posts")

    assert resp.status_code == 500
    assert resp.json()["error"]["message"] == "Failed to fetch real estate posts"


def test_unconfigured_store_returns_503() -> None:
    def unconfigured():
        raise ConfigurationAppError(code="datastore_not_configured", message="missing")

    app = create_app()
    app.dependency_overrides[get_data_store] = unconfigured

    resp = TestClient(app).get("/api/real-estate-posts")

    assert resp.status_code == 503


def test_listing_budget(fake_store_factory, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings.app, "listings_rate_limit_requests", 2)
    client = _client(fake_store_factory())

    statuses = [client.get("/api/real-estate-posts").status_code for _ in range(3)]

    assert statuses == [200, 200, 429]
