"""
Temporal retrieval entry point.

parse -> decompose -> gate and score -> rerank -> dedupe -> limit ->
timeline items -> one metrics record.
"""
from __future__ import annotations

import logging
import math
from datetime import datetime
from typing import Iterable, Optional, Sequence

from analyst.config import DEFAULT_SCORING, ScoringConfig
from analyst.core.decompose import decompose_temporal_query
from analyst.core.query_parser import parse_temporal_query
from analyst.core.rerank import dedupe, rerank
from analyst.core.scoring import CandidateScorer
from analyst.graph import GraphProvider, default_graph_provider
from analyst.metrics import RetrievalMetrics, default_metrics
from analyst.models import ParsedQuery, RetrievalResult, Scope, TemporalCandidate, TemporalDocument
from analyst.schemas import TimelineItem
from analyst.services.explain import build_why, stance_from_sentiment
from analyst.utils import clamp, ensure_utc, hours_between, now_utc

logger = logging.getLogger(__name__)


def relevance_from_rank(rerank_score: float) -> int:
    """round(score * 5) with halves rounded up, clamped to 1..5."""
    return int(clamp(math.floor(rerank_score * 5 + 0.5), 1, 5))


def confidence_from_rank(rerank_score: float, config: ScoringConfig = DEFAULT_SCORING) -> float:
    return clamp(rerank_score, config.confidence.floor, config.confidence.ceil)


def _safe_sentiment(value) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def to_timeline_item(candidate: TemporalCandidate, parsed: ParsedQuery, config: ScoringConfig = DEFAULT_SCORING) -> TimelineItem:
    return TimelineItem(
        article_id=candidate.article_id,
        title=candidate.title or "",
        source=candidate.source or "",
        published_at=candidate.published_at,
        sentiment=_safe_sentiment(candidate.sentiment),
        stance=stance_from_sentiment(candidate.sentiment, config),
        relevance_score=relevance_from_rank(candidate.rerank_score),
        why_included=build_why(candidate, parsed, config),
        confidence=confidence_from_rank(candidate.rerank_score, config),
        evidence=list(candidate.why) if candidate.why else [f"source:{candidate.source}"],
    )


def mean_freshness_hours(candidates: Sequence[TemporalCandidate], now: datetime) -> float:
    if not candidates:
        return 0.0
    return sum(hours_between(now, c.published) for c in candidates) / len(candidates)


def temporal_retrieve(
    query: str,
    scope: Scope | str,
    documents: Iterable[TemporalDocument],
    countries: Optional[Iterable[str]] = None,
    narrative_id: Optional[int] = None,
    time_from: Optional[str] = None,
    time_to: Optional[str] = None,
    now: Optional[datetime] = None,
    limit: Optional[int] = None,
    config: ScoringConfig = DEFAULT_SCORING,
    graph: Optional[GraphProvider] = None,
    metrics: Optional[RetrievalMetrics] = None,
) -> RetrievalResult:
    """
    Rank documents into an explainable, recency-first timeline.

    Args:
        query: Free-text analyst query
        scope: country | narrative | entity
        documents: Candidate documents for this call
        countries: Optional country filter
        narrative_id: Optional narrative filter (narrative scope)
        time_from: Explicit lower bound (ISO)
        time_to: Explicit upper bound (ISO)
        now: Reference clock, wall clock when omitted
        limit: Maximum number of timeline items; config default when omitted
        config: Scoring configuration
        graph: Graph provider; the catalog graph when omitted
        metrics: Metrics collector; the process-wide collector when omitted

    Returns:
        RetrievalResult with parsed query, subqueries and timeline
    """
    now = ensure_utc(now) if now is not None else now_utc()
    snapshot = (graph or default_graph_provider).get_snapshot()
    docs = list(documents or [])

    parsed = parse_temporal_query(
        query,
        scope,
        countries=countries,
        narrative_id=narrative_id,
        time_from=time_from,
        time_to=time_to,
        now=now,
        snapshot=snapshot,
    )
    subqueries = decompose_temporal_query(parsed, config)

    scorer = CandidateScorer(parsed, snapshot, now, config)
    candidates = scorer.score_all(subqueries, docs)

    max_items = limit if limit and limit > 0 else config.default_limit
    ranked = dedupe(rerank(candidates, config))[:max_items]

    timeline = [to_timeline_item(c, parsed, config) for c in ranked]

    (metrics or default_metrics).record_retrieval(
        scope=parsed.scope.value,
        query=parsed.normalized,
        candidates=len(candidates),
        returned=len(timeline),
        freshness_hours=mean_freshness_hours(ranked, now),
    )

    logger.debug(
        "temporal_retrieve scope=%s subqueries=%d documents=%d candidates=%d returned=%d",
        parsed.scope.value, len(subqueries), len(docs), len(candidates), len(timeline),
    )

    return RetrievalResult(
        parsed=parsed,
        subqueries=subqueries,
        timeline=timeline,
        candidate_count=len(candidates),
    )
