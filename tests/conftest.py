"""Shared fixtures for retrieval tests."""

from datetime import datetime, timedelta, timezone

import pytest

from analyst.graph import GraphEdge, GraphEntity, GraphSnapshot, StaticGraphProvider
from analyst.metrics import RetrievalMetrics
from analyst.models import TemporalDocument
from analyst.utils import iso

NOW = datetime(2026, 2, 12, 12, 0, tzinfo=timezone.utc)


def make_doc(
    article_id: int,
    title: str,
    source: str = "Tengrinews",
    age: timedelta = timedelta(hours=2),
    sentiment: float = 0.0,
    country_code: str = "KZ",
    narrative_id=None,
    published_at=None,
) -> TemporalDocument:
    return TemporalDocument(
        article_id=article_id,
        title=title,
        source=source,
        published_at=published_at if published_at is not None else iso(NOW - age),
        sentiment=sentiment,
        country_code=country_code,
        narrative_id=narrative_id,
    )


def _edge(source: str, target: str) -> GraphEdge:
    return GraphEdge(id=f"{source}->{target}", source=source, target=target, relation="related", confidence=1.0)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def snapshot():
    """Gazprom has degree 4, Kazakhstan and CNPC degree 2."""
    entities = (
        GraphEntity(id="org:gazprom", kind="org", label="Gazprom", aliases=("газпром", "gazprom")),
        GraphEntity(id="place:kz", kind="place", label="Kazakhstan", aliases=("казахстан", "kazakhstan")),
        GraphEntity(id="org:cnpc", kind="org", label="CNPC", aliases=("cnpc",)),
    )
    edges = (
        _edge("org:gazprom", "place:kz"),
        _edge("org:gazprom", "org:cnpc"),
        _edge("org:cnpc", "place:kz"),
        _edge("org:gazprom", "event:1"),
        _edge("org:gazprom", "event:2"),
    )
    return GraphSnapshot(entities=entities, edges=edges)


@pytest.fixture
def graph(snapshot):
    return StaticGraphProvider(snapshot)


@pytest.fixture
def metrics():
    return RetrievalMetrics()
