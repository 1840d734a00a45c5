"""
Candidate gating and raw signal scoring.

Each (subquery, document) pair goes through the scope gate and the time
gate, then gets five independent signals: lexical, hashed-vector, graph
(with centrality), temporal freshness and source trust. Pairs whose best
relevance signal stays under the candidate gate are dropped.
"""
from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional, Sequence

from analyst.config import DEFAULT_SCORING, ScoringConfig
from analyst.core.vectors import cosine, hashed_vector
from analyst.graph import GraphSnapshot
from analyst.models import (
    GraphSignals,
    ParsedQuery,
    Scope,
    Subquery,
    TemporalCandidate,
    TemporalDocument,
)
from analyst.utils import clamp_to_unit_range, normalize_text, parse_utc_datetime


def document_text(doc: TemporalDocument) -> str:
    return f"{doc.title or ''} {doc.source or ''}"


def allowed_by_scope(doc: TemporalDocument, parsed: ParsedQuery) -> bool:
    country = (doc.country_code or "").upper()
    country_ok = not parsed.countries or country in parsed.countries

    if parsed.scope == Scope.COUNTRY:
        return country_ok
    if parsed.scope == Scope.NARRATIVE:
        if parsed.narrative_id is not None and doc.narrative_id != parsed.narrative_id:
            return False
        return country_ok
    if parsed.scope == Scope.ENTITY:
        return country_ok
    raise ValueError(f"Unsupported scope: {parsed.scope!r}")


def in_range(published_at: str, start: Optional[str], end: Optional[str]) -> bool:
    """Inclusive bound check; unparsable bounds are treated as open."""
    published = parse_utc_datetime(published_at)
    if published is None:
        return False
    lower = parse_utc_datetime(start) if start else None
    if lower is not None and published < lower:
        return False
    upper = parse_utc_datetime(end) if end else None
    if upper is not None and published > upper:
        return False
    return True


def lexical_score(doc: TemporalDocument, terms: Sequence[str], config: ScoringConfig = DEFAULT_SCORING) -> float:
    if not terms:
        return 0.0
    weights = config.lexical
    hay = normalize_text(document_text(doc))

    score = 0.0
    for term in terms:
        if term not in hay:
            continue
        if len(term) >= weights.long_term_min_length:
            score += weights.long_term_weight
        else:
            score += weights.short_term_weight

    denominator = max(weights.normalization_floor, len(terms) * weights.normalization_factor)
    return min(1.0, score / denominator)


def graph_signals(
    doc: TemporalDocument,
    parsed: ParsedQuery,
    snapshot: GraphSnapshot,
    config: ScoringConfig = DEFAULT_SCORING,
) -> GraphSignals:
    """
    Entity evidence in a document title.

    Returns:
        GraphSignals with coverage score (matched entities / 3, capped at 1),
        mean capped-degree centrality and "direct mention" reasons for
        entities the query itself named.
    """
    rules = config.graph
    text = normalize_text(doc.title or "")
    reasons: List[str] = []
    matched = 0
    centrality = 0.0

    for entity in snapshot.entities:
        hit = False
        for alias in entity.aliases:
            needle = normalize_text(alias)
            if len(needle) >= rules.min_alias_length and needle in text:
                hit = True
                break
        if not hit:
            continue

        matched += 1
        centrality += min(1.0, snapshot.degree(entity.id) / rules.centrality_degree_normalization)
        if entity.label in parsed.entities:
            reasons.append(f"Direct mention of entity: {entity.label}")

    return GraphSignals(
        score=min(1.0, matched / rules.entity_coverage_normalization),
        centrality=min(1.0, centrality / matched) if matched else 0.0,
        reasons=tuple(reasons),
    )


def temporal_freshness(doc: TemporalDocument, now: datetime, config: ScoringConfig = DEFAULT_SCORING) -> float:
    published = parse_utc_datetime(doc.published_at)
    if published is None:
        return 0.0
    age_days = max(0.0, (now - published).total_seconds() / 86400.0)
    bands = config.freshness
    if age_days <= 1:
        return bands.day1
    if age_days <= 7:
        return bands.week1
    if age_days <= 30:
        return bands.month1
    return bands.older


def _normalized_trust_table(config: ScoringConfig) -> Dict[str, float]:
    return {normalize_text(name): value for name, value in config.source_trust.items()}


def _lookup_trust(table: Dict[str, float], source: str, default: float) -> float:
    return clamp_to_unit_range(table.get(normalize_text(source), default))


def source_trust(source: str, config: ScoringConfig = DEFAULT_SCORING) -> float:
    return _lookup_trust(_normalized_trust_table(config), source, config.default_source_trust)


class CandidateScorer:
    """
    Scores documents against the subqueries of one parsed query.

    Built per retrieval call; holds the snapshot, the query vector and the
    normalized trust table so they are computed once.
    """

    def __init__(
        self,
        parsed: ParsedQuery,
        snapshot: GraphSnapshot,
        now: datetime,
        config: ScoringConfig = DEFAULT_SCORING,
    ) -> None:
        self.parsed = parsed
        self.snapshot = snapshot
        self.now = now
        self.config = config
        self.query_vector = hashed_vector(parsed.raw, config.vector_dimensions)
        self._trust = _normalized_trust_table(config)

    def trust(self, source: str) -> float:
        return _lookup_trust(self._trust, source, self.config.default_source_trust)

    def score(self, subquery: Subquery, doc: TemporalDocument) -> Optional[TemporalCandidate]:
        """Gate and score one pair; None when any gate rejects it."""
        if not allowed_by_scope(doc, self.parsed):
            return None
        if not in_range(doc.published_at, subquery.start, subquery.end):
            return None
        published = parse_utc_datetime(doc.published_at)
        if published is None:
            return None

        lexical = lexical_score(doc, subquery.boosted_terms, self.config)
        doc_vector = hashed_vector(document_text(doc), self.config.vector_dimensions)
        vector = cosine(self.query_vector, doc_vector)
        graph = graph_signals(doc, self.parsed, self.snapshot, self.config)

        if max(lexical, vector, graph.score) < self.config.gates.candidate_score:
            return None

        return TemporalCandidate(
            document=doc,
            published=published,
            lexical_score=lexical * subquery.weight,
            vector_score=vector * subquery.weight,
            graph_score=graph.score,
            temporal_score=temporal_freshness(doc, self.now, self.config),
            centrality_score=graph.centrality,
            trust_score=self.trust(doc.source),
            why=graph.reasons,
            subquery_id=subquery.id,
        )

    def score_all(self, subqueries: Sequence[Subquery], documents: Sequence[TemporalDocument]) -> List[TemporalCandidate]:
        candidates: List[TemporalCandidate] = []
        for subquery in subqueries:
            for doc in documents:
                candidate = self.score(subquery, doc)
                if candidate is not None:
                    candidates.append(candidate)
        return candidates
