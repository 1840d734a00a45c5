"""
Timeline service: collect documents, run temporal retrieval, build the response.
"""
from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional

from analyst.config import DEFAULT_SCORING, ScoringConfig
from analyst.core.temporal import temporal_retrieve
from analyst.graph import GraphProvider
from analyst.metrics import RetrievalMetrics, default_metrics
from analyst.models import RetrievalResult, Scope
from analyst.schemas import ParsedQueryOut, SubqueryOut, TimelineResponse
from analyst.sources.catalog import get_narrative
from analyst.sources.collector import collect_documents
from analyst.sources.geopulse import LiveCountryEventsRetriever
from analyst.utils import iso, now_utc


def build_timeline_response(result: RetrievalResult, as_of: datetime) -> TimelineResponse:
    return TimelineResponse(
        scope=result.parsed.scope.value,
        as_of=iso(as_of),
        parsed=ParsedQueryOut.from_parsed(result.parsed),
        subqueries=[SubqueryOut.from_subquery(s) for s in result.subqueries],
        n_items=len(result.timeline),
        timeline=result.timeline,
    )


async def get_temporal_timeline(
    scope: Scope | str,
    query: str = "",
    countries: Optional[Iterable[str]] = None,
    narrative_id: Optional[int] = None,
    time_from: Optional[str] = None,
    time_to: Optional[str] = None,
    limit: Optional[int] = None,
    now: Optional[datetime] = None,
    config: ScoringConfig = DEFAULT_SCORING,
    graph: Optional[GraphProvider] = None,
    metrics: Optional[RetrievalMetrics] = None,
    retriever: Optional[LiveCountryEventsRetriever] = None,
    include_live: Optional[bool] = None,
) -> TimelineResponse:
    """
    Build the ranked timeline for one analyst request.

    Raises:
        LookupError: ``narrative_id`` is not in the catalog
    """
    scope = Scope(scope)
    if narrative_id is not None and get_narrative(narrative_id) is None:
        raise LookupError(f"narrative {narrative_id} not found")

    documents = await collect_documents(
        scope,
        countries=countries,
        narrative_id=narrative_id,
        retriever=retriever,
        include_live=include_live,
    )

    as_of = now or now_utc()
    result = temporal_retrieve(
        query,
        scope,
        documents,
        countries=countries,
        narrative_id=narrative_id,
        time_from=time_from,
        time_to=time_to,
        now=as_of,
        limit=limit,
        config=config,
        graph=graph,
        metrics=metrics,
    )
    (metrics or default_metrics).record_freshness(
        f"timeline.{scope.value}",
        [item.published_at for item in result.timeline],
        now=as_of,
    )
    return build_timeline_response(result, as_of)
