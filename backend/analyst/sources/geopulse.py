"""
File: analyst/sources/geopulse.py
Live per-country news events from the GeoPulse API.

Upstream failures never propagate: the client returns None and the
retriever treats that country as having no events.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, List, Literal, Optional, Sequence
from urllib.parse import urlencode

import httpx

from config import settings
from analyst.models import JsonDict, TemporalDocument
from analyst.sources.common import clean_text, source_name

logger = logging.getLogger(__name__)

UNKNOWN_SOURCE = "unknown source"
LIVE_ID_OFFSET = 900000

HEADERS = {"Accept": "application/json"}


@dataclass(frozen=True)
class LiveEventsQuery:
    country_codes: Sequence[str]
    limit: int = 60
    sort: Literal["date", "impact"] = "impact"


@dataclass(frozen=True)
class LiveEvent:
    title: str
    source: str
    published_at: str
    sentiment: float
    country_code: str


class GeoPulseClient:
    """Thin JSON client for the GeoPulse API."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = (base_url or settings.GEOPULSE_API_BASE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.GEOPULSE_TIMEOUT_SECONDS
        self._transport = transport

    async def fetch_json(self, path: str) -> Optional[Any]:
        """
        GET ``base_url + path`` and decode JSON.

        Args:
            path: Path with query string, starting with "/"

        Returns:
            Decoded JSON, or None on timeout, transport error, non-2xx status
            or an undecodable body
        """
        url = f"{self.base_url}{path}"
        try:
            async with httpx.AsyncClient(headers=HEADERS, timeout=self.timeout, transport=self._transport) as client:
                r = await client.get(url)
                r.raise_for_status()
                return r.json()
        except httpx.HTTPError as e:
            logger.warning("GeoPulse request failed for %s: %s", url, e)
            return None
        except ValueError as e:
            logger.warning("GeoPulse returned invalid JSON for %s: %s", url, e)
            return None


def _sentiment(value: Any) -> float:
    if value is None:
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def parse_events(payload: Optional[JsonDict], country_code: str) -> List[LiveEvent]:
    """Events of one country payload; entries without title or publish time are skipped."""
    if not isinstance(payload, dict):
        return []
    raw_events = payload.get("events") or []
    if not isinstance(raw_events, list):
        return []

    events: List[LiveEvent] = []
    for raw in raw_events:
        if not isinstance(raw, dict):
            continue
        title = clean_text(raw.get("title"))
        published_at = clean_text(raw.get("published_at"))
        if not title or not published_at:
            continue
        events.append(
            LiveEvent(
                title=title,
                source=source_name(raw.get("source"), UNKNOWN_SOURCE),
                published_at=published_at,
                sentiment=_sentiment(raw.get("sentiment")),
                country_code=country_code,
            )
        )
    return events


class LiveCountryEventsRetriever:
    """Fetches events for several countries concurrently."""

    def __init__(self, client: Optional[GeoPulseClient] = None) -> None:
        self.client = client or GeoPulseClient()

    @staticmethod
    def events_path(code: str, limit: int, sort: str) -> str:
        return f"/api/v1/countries/{code}/events?" + urlencode({"limit": limit, "sort": sort})

    async def retrieve(self, query: LiveEventsQuery) -> List[LiveEvent]:
        """
        Fetch events for every country code in the query.

        Args:
            query: Country codes, page size and sort order

        Returns:
            Events in country-code order, upstream order within a country
        """
        codes = [code.upper() for code in query.country_codes]
        if not codes:
            return []

        payloads = await asyncio.gather(
            *(self.client.fetch_json(self.events_path(code, query.limit, query.sort)) for code in codes)
        )

        events: List[LiveEvent] = []
        for code, payload in zip(codes, payloads):
            events.extend(parse_events(payload, code))
        return events


def events_to_documents(events: Sequence[LiveEvent], offset: int = LIVE_ID_OFFSET) -> List[TemporalDocument]:
    return [
        TemporalDocument(
            article_id=offset + index,
            title=event.title,
            source=event.source,
            published_at=event.published_at,
            sentiment=event.sentiment,
            country_code=event.country_code,
        )
        for index, event in enumerate(events)
    ]
