"""Tests for the live events retriever, catalog and document collector."""

import asyncio
from unittest.mock import AsyncMock

import httpx
import pytest

from analyst.sources import collector
from analyst.sources.catalog import ARTICLES, catalog_documents, get_narrative
from analyst.sources.common import source_name
from analyst.sources.geopulse import (
    LIVE_ID_OFFSET,
    GeoPulseClient,
    LiveCountryEventsRetriever,
    LiveEvent,
    LiveEventsQuery,
    events_to_documents,
    parse_events,
)

EVENTS = {
    "KZ": {
        "events": [
            {"title": "Саммит по энергетике", "published_at": "2026-02-10T08:00:00Z", "sentiment": 0.3, "source": "Tengrinews", "action_level": 2},
            {"title": "", "published_at": "2026-02-10T08:00:00Z", "sentiment": 0.1, "source": "Tengrinews"},
            {"title": "Без даты", "published_at": None, "sentiment": 0.1, "source": "Tengrinews"},
            {"title": "Без источника", "published_at": "2026-02-09T08:00:00Z", "sentiment": None, "source": ""},
        ]
    },
    "GE": {
        "events": [
            {"title": "Протесты в Тбилиси", "published_at": "2026-02-06T18:00:00Z", "sentiment": -0.8, "source": "https://www.civil.ge/archives/1"},
        ]
    },
}


def make_client(handler) -> GeoPulseClient:
    return GeoPulseClient(base_url="https://geo.test", timeout=1.0, transport=httpx.MockTransport(handler))


def events_handler(request: httpx.Request) -> httpx.Response:
    code = request.url.path.split("/")[4]
    if code not in EVENTS:
        return httpx.Response(503)
    return httpx.Response(200, json=EVENTS[code])


class TestGeoPulseClient:
    """Tests for GeoPulseClient.fetch_json."""

    def test_returns_json(self):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["accept"] = request.headers["accept"]
            return httpx.Response(200, json={"ok": True})

        payload = asyncio.run(make_client(handler).fetch_json("/api/v1/countries?days=14"))
        assert payload == {"ok": True}
        assert seen["url"] == "https://geo.test/api/v1/countries?days=14"
        assert seen["accept"] == "application/json"

    def test_non_2xx_is_none(self):
        assert asyncio.run(make_client(lambda r: httpx.Response(500)).fetch_json("/x")) is None

    def test_timeout_is_none(self):
        def handler(request):
            raise httpx.ReadTimeout("slow upstream", request=request)

        assert asyncio.run(make_client(handler).fetch_json("/x")) is None

    def test_invalid_json_is_none(self):
        assert asyncio.run(make_client(lambda r: httpx.Response(200, text="<html>")).fetch_json("/x")) is None


class TestLiveCountryEventsRetriever:
    """Tests for LiveCountryEventsRetriever."""

    def test_fetches_every_country(self):
        retriever = LiveCountryEventsRetriever(make_client(events_handler))
        events = asyncio.run(retriever.retrieve(LiveEventsQuery(country_codes=["kz", "GE"], limit=5, sort="date")))

        assert [e.title for e in events] == ["Саммит по энергетике", "Без источника", "Протесты в Тбилиси"]
        assert [e.country_code for e in events] == ["KZ", "KZ", "GE"]
        assert events[1].source == "unknown source"
        assert events[1].sentiment == 0.0
        assert events[2].source == "civil.ge"

    def test_failed_country_is_empty(self):
        retriever = LiveCountryEventsRetriever(make_client(events_handler))
        events = asyncio.run(retriever.retrieve(LiveEventsQuery(country_codes=["AM", "GE"])))
        assert [e.country_code for e in events] == ["GE"]

    def test_query_string(self):
        assert LiveCountryEventsRetriever.events_path("KZ", 60, "impact") == "/api/v1/countries/KZ/events?limit=60&sort=impact"

    def test_no_codes(self):
        retriever = LiveCountryEventsRetriever(make_client(events_handler))
        assert asyncio.run(retriever.retrieve(LiveEventsQuery(country_codes=[]))) == []

    @pytest.mark.parametrize("payload", [None, [], {"events": None}, {"events": "oops"}, {"events": [1, "x"]}])
    def test_malformed_payloads(self, payload):
        assert parse_events(payload, "KZ") == []


class TestDocuments:
    """Conversions into engine documents."""

    def test_live_ids_start_at_offset(self):
        events = [LiveEvent("a", "s", "2026-02-10T08:00:00Z", 0.1, "KZ"), LiveEvent("b", "s", "2026-02-10T09:00:00Z", 0.2, "UZ")]
        docs = events_to_documents(events)
        assert [d.article_id for d in docs] == [LIVE_ID_OFFSET, LIVE_ID_OFFSET + 1]
        assert docs[1].country_code == "UZ"
        assert docs[0].narrative_id is None

    def test_catalog_documents_filter(self):
        docs = catalog_documents(["kz"])
        assert docs and all(d.country_code == "KZ" for d in docs)
        assert len(catalog_documents()) == len(ARTICLES)

    def test_narrative_lookup(self):
        assert get_narrative(2).countries
        assert get_narrative(99) is None

    @pytest.mark.parametrize(
        "raw,expected",
        [("Tengrinews", "Tengrinews"), ("  ", "fallback"), (None, "fallback"), ("https://news.zakon.kz/item", "zakon.kz")],
    )
    def test_source_name(self, raw, expected):
        assert source_name(raw, "fallback") == expected


class TestCollector:
    """Tests for collect_documents."""

    def test_resolve_explicit_codes(self):
        assert collector.resolve_country_codes("country", [" kz", "UZ", "KZ", ""]) == ["KZ", "UZ"]

    def test_resolve_narrative_countries(self):
        assert collector.resolve_country_codes("narrative", None, 2) == list(get_narrative(2).countries)

    def test_resolve_defaults_to_catalog(self):
        assert len(collector.resolve_country_codes("entity")) == 8

    def test_catalog_only(self):
        docs = asyncio.run(collector.collect_documents("country", ["KZ"], include_live=False))
        assert {d.article_id for d in docs} == {101, 102, 108}

    def test_merges_live_events(self):
        retriever = AsyncMock(spec=LiveCountryEventsRetriever)
        retriever.retrieve.return_value = [LiveEvent("Саммит", "Tengrinews", "2026-02-10T08:00:00Z", 0.3, "KZ")]

        docs = asyncio.run(collector.collect_documents("country", ["KZ"], retriever=retriever, include_live=True))

        query = retriever.retrieve.call_args.args[0]
        assert list(query.country_codes) == ["KZ"]
        assert [d.article_id for d in docs][-1] == LIVE_ID_OFFSET
        assert len(docs) == 4

    def test_live_failure_keeps_catalog(self):
        retriever = AsyncMock(spec=LiveCountryEventsRetriever)
        retriever.retrieve.side_effect = RuntimeError("boom")

        docs = asyncio.run(collector.collect_documents("country", ["GE"], retriever=retriever, include_live=True))
        assert {d.article_id for d in docs} == {104, 110}
