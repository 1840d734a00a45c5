"""
Retrieval tuning surface with environment variable support.

Values are read once at import. The engine takes a ``ScoringConfig`` value
(defaulting to ``DEFAULT_SCORING``) so callers and tests can swap tables
without touching module state.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Dict, Tuple


def _get_env_float(key: str, default: float) -> float:
    """Get float value from environment variable with fallback."""
    try:
        return float(os.getenv(key, default))
    except (ValueError, TypeError):
        return default


def _get_env_int(key: str, default: int) -> int:
    """Get integer value from environment variable with fallback."""
    try:
        return int(os.getenv(key, default))
    except (ValueError, TypeError):
        return default


# Candidate gating
CANDIDATE_GATE: float = _get_env_float("TEMPORAL_CANDIDATE_GATE", 0.18)

# Timeline settings
DEFAULT_TIMELINE_LIMIT: int = _get_env_int("TEMPORAL_TIMELINE_LIMIT", 120)

# Source trust (0.0 to 1.0), keyed by source name as published
DEFAULT_SOURCE_TRUST: float = _get_env_float("DEFAULT_SOURCE_TRUST", 0.6)

SOURCE_TRUST: Dict[str, float] = {
    # Georgia / Moldova
    "civil.ge": 0.76,
    "newsmaker.md": 0.72,
    "грузия online": 0.69,

    # Central Asia
    "tengrinews": 0.78,
    "zakon.kz": 0.74,
    "подробно.uz": 0.71,
    "кабар": 0.68,

    # Caucasus
    "кавказский узел": 0.73,
    "sputnik армения": 0.64,
}

# Logging Configuration
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT: str = os.getenv(
    "LOG_FORMAT",
    "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)


@dataclass(frozen=True)
class LexicalWeights:
    long_term_weight: float = 1.2
    short_term_weight: float = 0.8
    long_term_min_length: int = 6
    normalization_floor: float = 2.0
    normalization_factor: float = 1.2


@dataclass(frozen=True)
class RerankWeights:
    lexical: float = 0.26
    vector: float = 0.22
    graph: float = 0.18
    temporal: float = 0.12
    consistency: float = 0.10
    centrality: float = 0.07
    trust: float = 0.05


@dataclass(frozen=True)
class ConsistencyWeights:
    sentiment: float = 0.7
    source_frequency: float = 0.3
    source_frequency_saturation: int = 4


@dataclass(frozen=True)
class Gates:
    candidate_score: float = CANDIDATE_GATE
    lexical_why: float = 0.35
    vector_why: float = 0.35


@dataclass(frozen=True)
class GraphRules:
    centrality_degree_normalization: float = 8.0
    entity_coverage_normalization: float = 3.0
    min_alias_length: int = 2


@dataclass(frozen=True)
class FreshnessBands:
    day1: float = 1.0
    week1: float = 0.85
    month1: float = 0.65
    older: float = 0.45


@dataclass(frozen=True)
class WindowRules:
    short_range_days: int = 10
    recent_slice_days: int = 7
    recent_weight: float = 1.1
    baseline_weight: float = 0.9
    # Appended to the recent slice's terms
    freshness_terms: Tuple[str, ...] = ("сейчас", "новое")


@dataclass(frozen=True)
class ConfidenceRange:
    floor: float = 0.35
    ceil: float = 0.99


@dataclass(frozen=True)
class StanceThresholds:
    pro: float = 0.2
    anti: float = -0.2


@dataclass(frozen=True)
class ScoringConfig:
    """Every weight, threshold and window the retrieval engine reads."""

    lexical: LexicalWeights = field(default_factory=LexicalWeights)
    rerank: RerankWeights = field(default_factory=RerankWeights)
    consistency: ConsistencyWeights = field(default_factory=ConsistencyWeights)
    gates: Gates = field(default_factory=Gates)
    graph: GraphRules = field(default_factory=GraphRules)
    freshness: FreshnessBands = field(default_factory=FreshnessBands)
    windows: WindowRules = field(default_factory=WindowRules)
    confidence: ConfidenceRange = field(default_factory=ConfidenceRange)
    stance: StanceThresholds = field(default_factory=StanceThresholds)
    vector_dimensions: int = 64
    default_limit: int = DEFAULT_TIMELINE_LIMIT
    source_trust: Dict[str, float] = field(default_factory=lambda: dict(SOURCE_TRUST))
    default_source_trust: float = DEFAULT_SOURCE_TRUST


DEFAULT_SCORING = ScoringConfig()
