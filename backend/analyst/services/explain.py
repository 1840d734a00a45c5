"""
Rule-based "why included" explanations and stance labels for timeline items.
"""
from __future__ import annotations

from typing import List

from analyst.config import DEFAULT_SCORING, ScoringConfig
from analyst.models import ParsedQuery, TemporalCandidate, TimePreset

CLAUSE_SEPARATOR = " · "

LEXICAL_CLAUSE = "Matches the query wording"
VECTOR_CLAUSE = "Semantically close to the query"
GRAPH_CLAUSE = "Supported by graph links"
WINDOW_CLAUSE = "Falls inside the selected period"


def stance_from_sentiment(sentiment: float, config: ScoringConfig = DEFAULT_SCORING) -> str:
    """
    Map a sentiment score to a stance label.

    Args:
        sentiment: Sentiment score, conventionally in [-1, 1]
        config: Scoring config carrying the stance thresholds

    Returns:
        "pro_russia", "anti_russia" or "neutral"
    """
    try:
        value = float(sentiment)
    except (TypeError, ValueError):
        return "neutral"
    if value > config.stance.pro:
        return "pro_russia"
    if value < config.stance.anti:
        return "anti_russia"
    return "neutral"


def build_why(candidate: TemporalCandidate, parsed: ParsedQuery, config: ScoringConfig = DEFAULT_SCORING) -> str:
    """
    Build the explanation string for one ranked candidate.

    Clauses are emitted in fixed order: lexical, semantic, graph, time
    window, then the numeric summary which is always present.
    """
    parts: List[str] = []

    if candidate.lexical_score >= config.gates.lexical_why:
        parts.append(LEXICAL_CLAUSE)
    if candidate.vector_score >= config.gates.vector_why:
        parts.append(VECTOR_CLAUSE)
    if candidate.graph_score > 0:
        parts.append(GRAPH_CLAUSE)
    if parsed.time.preset != TimePreset.ALL:
        parts.append(WINDOW_CLAUSE)

    parts.append(
        f"Rank {candidate.rerank_score:.2f} "
        f"(consistency {candidate.consistency_score:.2f}, "
        f"centrality {candidate.centrality_score:.2f}, "
        f"trust {candidate.trust_score:.2f})"
    )
    return CLAUSE_SEPARATOR.join(parts)
