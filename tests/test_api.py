"""Tests for the HTTP surface."""

import pytest
from fastapi.testclient import TestClient

from config import settings
from analyst.main import app, parse_countries
from analyst.metrics import default_metrics
from analyst.sources.catalog import ARTICLES


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setattr(settings, "LIVE_EVENTS_ENABLED", False)
    default_metrics.reset()
    return TestClient(app)


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_parse_countries():
    assert parse_countries(" kz, ,uz ") == ["KZ", "UZ"]
    assert parse_countries(None) == []


def test_country_timeline(client):
    response = client.get("/timeline", params={"scope": "country", "countries": "kz", "query": "газ"})
    assert response.status_code == 200

    body = response.json()
    kz_ids = {a.id for a in ARTICLES if a.country_id == "KZ"}
    assert body["scope"] == "country"
    assert body["parsed"]["countries"] == ["KZ"]
    assert body["n_items"] == len(body["timeline"]) > 0
    assert {item["article_id"] for item in body["timeline"]} <= kz_ids
    for item in body["timeline"]:
        assert item["stance"] in {"pro_russia", "neutral", "anti_russia"}
        assert 1 <= item["relevance_score"] <= 5
        assert item["why_included"]


def test_narrative_timeline(client):
    response = client.get("/timeline", params={"scope": "narrative", "narrative_id": 2, "query": "ЕС"})
    assert response.status_code == 200
    narrative_ids = {a.id for a in ARTICLES if a.narrative_id == 2}
    assert {item["article_id"] for item in response.json()["timeline"]} <= narrative_ids


def test_explicit_range_is_decomposed(client):
    response = client.get(
        "/timeline",
        params={"scope": "entity", "query": "газ", "time_from": "2026-01-01T00:00:00Z", "time_to": "2026-02-12T00:00:00Z"},
    )
    assert response.status_code == 200
    assert [s["id"] for s in response.json()["subqueries"]] == ["recent", "baseline"]


def test_limit(client):
    response = client.get("/timeline", params={"scope": "entity", "query": "газ", "limit": 2})
    assert response.status_code == 200
    assert response.json()["n_items"] <= 2


def test_unknown_scope_is_rejected(client):
    assert client.get("/timeline", params={"scope": "planet"}).status_code == 422


def test_unknown_narrative_is_404(client):
    response = client.get("/timeline", params={"scope": "narrative", "narrative_id": 99})
    assert response.status_code == 404


def test_monitoring_reports_timeline_calls(client):
    client.get("/timeline", params={"scope": "country", "countries": "GE", "query": "Протесты"})
    body = client.get("/monitoring").json()
    assert [row["key"] for row in body["retrieval"]] == ["country:протесты"]
    assert body["retrieval"][0]["count"] == 1


def test_monitoring_reports_endpoints(client):
    client.get("/health")
    client.get("/timeline", params={"scope": "narrative", "narrative_id": 99})
    body = client.get("/monitoring").json()

    rows = {row["route"]: row for row in body["endpoints"]}
    assert set(rows) == {"/health", "/timeline"}
    assert rows["/health"]["statuses"] == {"200": 1}
    assert rows["/health"]["errors"] == 0
    assert rows["/timeline"]["statuses"] == {"404": 1}
    assert rows["/timeline"]["error_rate"] == 1.0
    assert rows["/timeline"]["latency_ms"]["samples"] == 1


def test_monitoring_reports_timeline_freshness(client):
    n_items = client.get("/timeline", params={"scope": "country", "countries": "kz", "query": "газ"}).json()["n_items"]
    body = client.get("/monitoring").json()

    assert [row["key"] for row in body["freshness"]] == ["timeline.country"]
    assert body["freshness"][0]["count"] == n_items
