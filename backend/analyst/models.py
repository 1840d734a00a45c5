"""
File: analyst/models.py
Internal data structures used during parsing, scoring and reranking.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

if TYPE_CHECKING:
    from analyst.schemas import TimelineItem


JsonDict = Dict[str, Any]


class Scope(str, Enum):
    COUNTRY = "country"
    NARRATIVE = "narrative"
    ENTITY = "entity"


class Intent(str, Enum):
    MONITOR = "monitor"
    INVESTIGATE = "investigate"
    COMPARE = "compare"
    ENTITY_FOCUS = "entity_focus"
    UNKNOWN = "unknown"


class TimePreset(str, Enum):
    LAST_24H = "24h"
    LAST_7D = "7d"
    LAST_30D = "30d"
    CUSTOM = "custom"
    ALL = "all"


@dataclass(frozen=True)
class TemporalDocument:
    """A news item handed to the engine by the caller for one retrieval call."""

    article_id: int
    title: str
    source: str
    published_at: str  # ISO-8601, may be malformed
    sentiment: float
    country_code: str
    narrative_id: Optional[int] = None


@dataclass(frozen=True)
class TimeWindow:
    start: Optional[str]
    end: Optional[str]
    preset: TimePreset

    @classmethod
    def unbounded(cls) -> "TimeWindow":
        return cls(start=None, end=None, preset=TimePreset.ALL)


@dataclass(frozen=True)
class ParsedQuery:
    raw: str
    normalized: str
    terms: Tuple[str, ...]
    intent: Intent
    scope: Scope
    entities: Tuple[str, ...]
    time: TimeWindow
    countries: Tuple[str, ...]
    narrative_id: Optional[int] = None


@dataclass(frozen=True)
class Subquery:
    id: str
    label: str
    start: Optional[str]
    end: Optional[str]
    boosted_terms: Tuple[str, ...]
    weight: float


@dataclass(frozen=True)
class GraphSignals:
    score: float
    centrality: float
    reasons: Tuple[str, ...] = ()


@dataclass(frozen=True)
class TemporalCandidate:
    """A gated document with its signal scores.

    The scorer fills the raw signals; ``consistency_score`` and
    ``rerank_score`` are set by the reranker, which returns new records.
    """

    document: TemporalDocument
    published: datetime
    lexical_score: float
    vector_score: float
    graph_score: float
    temporal_score: float
    centrality_score: float
    trust_score: float
    consistency_score: float = 0.0
    rerank_score: float = 0.0
    why: Tuple[str, ...] = field(default_factory=tuple)
    subquery_id: str = ""

    @property
    def article_id(self) -> int:
        return self.document.article_id

    @property
    def title(self) -> str:
        return self.document.title

    @property
    def source(self) -> str:
        return self.document.source

    @property
    def published_at(self) -> str:
        return self.document.published_at

    @property
    def sentiment(self) -> float:
        return self.document.sentiment


@dataclass(frozen=True)
class RetrievalResult:
    parsed: ParsedQuery
    subqueries: List[Subquery]
    timeline: List["TimelineItem"]
    candidate_count: int = 0


__all__ = [
    "JsonDict",
    "Scope",
    "Intent",
    "TimePreset",
    "TemporalDocument",
    "TimeWindow",
    "ParsedQuery",
    "Subquery",
    "GraphSignals",
    "TemporalCandidate",
    "RetrievalResult",
]
