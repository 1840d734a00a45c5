"""
Consistency scoring, weighted fusion, recency-first ordering and dedup.
"""
from __future__ import annotations

from collections import Counter
from dataclasses import replace
from typing import Iterable, List

from analyst.config import DEFAULT_SCORING, ScoringConfig
from analyst.models import TemporalCandidate
from analyst.utils import median, normalize_text


def _sentiment(candidate: TemporalCandidate) -> float:
    try:
        return float(candidate.sentiment)
    except (TypeError, ValueError):
        return 0.0


def fuse(candidate: TemporalCandidate, consistency: float, config: ScoringConfig = DEFAULT_SCORING) -> float:
    """Weighted sum of all seven signals."""
    w = config.rerank
    return (
        candidate.lexical_score * w.lexical
        + candidate.vector_score * w.vector
        + candidate.graph_score * w.graph
        + candidate.temporal_score * w.temporal
        + consistency * w.consistency
        + candidate.centrality_score * w.centrality
        + candidate.trust_score * w.trust
    )


def rerank(candidates: Iterable[TemporalCandidate], config: ScoringConfig = DEFAULT_SCORING) -> List[TemporalCandidate]:
    """
    Score candidates against the pool they were retrieved with and order them.

    Consistency compares each candidate's sentiment with the pool median and
    rewards sources that recur in the pool. Ordering is newest first; the
    fused score only breaks ties between identical timestamps.

    Args:
        candidates: Gated candidates from the scorer

    Returns:
        New list of candidates with consistency and rerank scores filled in
    """
    pool = list(candidates)
    if not pool:
        return []

    weights = config.consistency
    sentiment_median = median([_sentiment(c) for c in pool])
    source_frequency = Counter(c.source for c in pool)

    scored: List[TemporalCandidate] = []
    for c in pool:
        by_sentiment = max(0.0, 1.0 - abs(_sentiment(c) - sentiment_median))
        by_source = min(1.0, source_frequency[c.source] / weights.source_frequency_saturation)
        consistency = by_sentiment * weights.sentiment + by_source * weights.source_frequency
        scored.append(replace(c, consistency_score=consistency, rerank_score=fuse(c, consistency, config)))

    # Stable sort: equal (timestamp, score) keep scoring order
    scored.sort(key=lambda c: (c.published, c.rerank_score), reverse=True)
    return scored


def dedupe_key(candidate: TemporalCandidate) -> str:
    return normalize_text(f"{candidate.title or ''} {candidate.source or ''}")


def dedupe(candidates: Iterable[TemporalCandidate]) -> List[TemporalCandidate]:
    """Drop repeats of the same normalized title+source, keeping the first seen."""
    seen = set()
    out: List[TemporalCandidate] = []
    for c in candidates:
        key = dedupe_key(c)
        if key in seen:
            continue
        seen.add(key)
        out.append(c)
    return out
