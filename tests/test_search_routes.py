"""HTTP tests for the nearby search endpoint."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from app.core.app_factory import create_app
from app.core.dependencies import get_search_service
from app.schemas.search import ContentKind
from app.services.content_sources import Candidate, ContentSource
from app.services.search_service import SearchService


class FixedSource(ContentSource):
    def __init__(self, kind: ContentKind, candidates=None, error: Exception | None = None) -> None:
        self.kind = kind
        self.candidates = candidates or []
        self.error = error

    async def fetch(self, text_query: str) -> list[Candidate]:
        if self.error is not None:
            raise self.error
        return list(self.candidates)


def _client(*sources: ContentSource) -> TestClient:
    app = create_app()
    app.dependency_overrides[get_search_service] = lambda: SearchService(list(sources))
    return TestClient(app)


@pytest.fixture
def client() -> TestClient:
    return _client(
        FixedSource(
            ContentKind.BUSINESS,
            [
                Candidate(
                    kind=ContentKind.BUSINESS,
                    id="b-1",
                    title="Corner Cafe",
                    location="Houston, TX",
                    lookup_text="Houston",
                    phone="555-0100",
                )
            ],
        ),
        FixedSource(
            ContentKind.MARKETPLACE,
            [
                Candidate(
                    kind=ContentKind.MARKETPLACE,
                    id=42,
                    title="Mountain bike",
                    location="Dallas",
                    lookup_text="Dallas",
                    price=150.0,
                )
            ],
        ),
    )


def test_nearby_search_response_shape(client: TestClient) -> None:
    resp = client.get("/api/search/nearby", params={"lat": 29.7604, "lng": -95.3698, "radius": 5})

    assert resp.status_code == 200
    data = resp.json()
    assert data["total"] == 1
    assert data["radius"] == 5
    assert data["center"] == {"lat": 29.7604, "lng": -95.3698}
    result = data["results"][0]
    assert result["id"] == "b-1"
    assert result["type"] == "business"
    assert result["distance"] == 0.0
    assert result["phone"] == "555-0100"


def test_default_radius_is_applied(client: TestClient) -> None:
    resp = client.get("/api/search/nearby", params={"lat": 29.7604, "lng": -95.3698})

    assert resp.status_code == 200
    assert resp.json()["radius"] == 10


def test_wide_radius_includes_estimated_city(client: TestClient) -> None:
    resp = client.get(
        "/api/search/nearby",
        params={"lat": 29.7604, "lng": -95.3698, "radius": 300, "type": "marketplace"},
    )

    results = resp.json()["results"]
    assert [r["id"] for r in results] == [42]
    assert results[0]["distance"] == pytest.approx(224.8, abs=1.0)


@pytest.mark.parametrize(
    "params",
    [
        {"lng": -95.3698},
        {"lat": 29.7604},
        {"lat": 0, "lng": -95.3698},
        {"lat": "inf", "lng": -95.3},
        {"lat": 29.7604, "lng": "-inf"},
        {"lat": 95.0, "lng": -95.3},
        {},
    ],
)
def test_missing_or_zero_coordinates_return_400(client: TestClient, params: dict) -> None:
    resp = client.get("/api/search/nearby", params=params)

    assert resp.status_code == 400
    error = resp.json()["error"]
    assert error["code"] == "missing_coordinates"
    assert error["message"] == "Latitude and longitude are required"


def test_unknown_type_is_rejected(client: TestClient) -> None:
    resp = client.get(
        "/api/search/nearby", params={"lat": 29.7604, "lng": -95.3698, "type": "boats"}
    )

    assert resp.status_code == 422


def test_all_sources_failing_returns_500() -> None:
    client = _client(
        FixedSource(ContentKind.BUSINESS, error=RuntimeError("down")),
        FixedSource(ContentKind.MARKETPLACE, error=RuntimeError("down")),
    )

    resp = client.get("/api/search/nearby", params={"lat": 29.7604, "lng": -95.3698})

    assert resp.status_code == 500
    assert resp.json()["error"]["message"] == "Search failed"


def test_search_is_rate_limited(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    from app.core.config import settings

    monkeypatch.setattr(settings.app, "search_rate_limit_requests", 1)
    params = {"lat": 29.7604, "lng": -95.3698}
    headers = {"X-Forwarded-For": "198.51.100.9"}

    assert client.get("/api/search/nearby", params=params, headers=headers).status_code == 200
    assert client.get("/api/search/nearby", params=params, headers=headers).status_code == 429
