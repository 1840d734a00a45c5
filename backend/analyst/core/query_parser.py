"""
Free-text query parsing: intent, time range, entities.

Patterns cover both Russian and English phrasing since analysts type in
either. Order inside each detector is significant: the first match wins.
"""
from __future__ import annotations

import re
from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Tuple

from analyst.graph import GraphProvider, GraphSnapshot, default_graph_provider
from analyst.models import Intent, ParsedQuery, Scope, TimePreset, TimeWindow
from analyst.utils import ensure_utc, iso, normalize_text, now_utc, tokenize

# Checked in this order by detect_intent; entity scope short-circuits before monitor
_COMPARE_RE = re.compile(r"сравн|compare|versus|vs\b")
_INVESTIGATE_RE = re.compile(r"расслед|почему|investigat|impact|последств")
_ENTITY_RE = re.compile(r"кто|entity|персон|организац")
_MONITOR_RE = re.compile(r"монитор|динам|latest|последн|сейчас")

# (preset, window, pattern) checked in order
_RECENCY_RULES: Tuple[Tuple[TimePreset, timedelta, re.Pattern], ...] = (
    (TimePreset.LAST_24H, timedelta(hours=24),
     re.compile(r"последн(ие|яя)?\s+сутк|last\s+24\s*h|today|сегодня")),
    (TimePreset.LAST_7D, timedelta(days=7),
     re.compile(r"последн(ие|яя)?\s+7\s*д|за\s+недел|last\s+week")),
    (TimePreset.LAST_30D, timedelta(days=30),
     re.compile(r"последн(ие|яя)?\s+30\s*д|за\s+месяц|last\s+month")),
)

_INTERVAL_RE = re.compile(r"(20\d{2}-\d{2}-\d{2}).{0,10}(20\d{2}-\d{2}-\d{2})")


def detect_intent(normalized: str, scope: Scope) -> Intent:
    if _COMPARE_RE.search(normalized):
        return Intent.COMPARE
    if _INVESTIGATE_RE.search(normalized):
        return Intent.INVESTIGATE
    if scope == Scope.ENTITY or _ENTITY_RE.search(normalized):
        return Intent.ENTITY_FOCUS
    if _MONITOR_RE.search(normalized):
        return Intent.MONITOR
    return Intent.UNKNOWN


def derive_time_range(
    raw_query: str,
    now: datetime,
    time_from: Optional[str] = None,
    time_to: Optional[str] = None,
) -> TimeWindow:
    """
    Resolve the time window of a query.

    Explicit bounds win and are kept verbatim. Otherwise recency phrases
    ("last 24h", "за неделю", ...) anchor a window ending at ``now``, then an
    inline ``YYYY-MM-DD .. YYYY-MM-DD`` pair in the raw text, else no bounds.
    """
    if time_from or time_to:
        return TimeWindow(start=time_from or None, end=time_to or None, preset=TimePreset.CUSTOM)

    normalized = normalize_text(raw_query)
    for preset, window, pattern in _RECENCY_RULES:
        if pattern.search(normalized):
            return TimeWindow(start=iso(now - window), end=iso(now), preset=preset)

    match = _INTERVAL_RE.search(raw_query or "")
    if match:
        return TimeWindow(start=match.group(1), end=match.group(2), preset=TimePreset.CUSTOM)

    return TimeWindow.unbounded()


def extract_entities(query: str, snapshot: GraphSnapshot, min_alias_length: int = 2) -> List[str]:
    """Labels of graph entities whose alias appears in the query, one per entity."""
    normalized = normalize_text(query)
    if not normalized:
        return []

    labels: List[str] = []
    for entity in snapshot.entities:
        for alias in entity.aliases:
            needle = normalize_text(alias)
            if len(needle) < min_alias_length:
                continue
            if needle in normalized:
                if entity.label not in labels:
                    labels.append(entity.label)
                break
    return labels


def parse_temporal_query(
    query: str,
    scope: Scope | str,
    countries: Optional[Iterable[str]] = None,
    narrative_id: Optional[int] = None,
    time_from: Optional[str] = None,
    time_to: Optional[str] = None,
    now: Optional[datetime] = None,
    graph: Optional[GraphProvider] = None,
    snapshot: Optional[GraphSnapshot] = None,
) -> ParsedQuery:
    """
    Turn a raw analyst query into a ParsedQuery.

    Args:
        query: Free text as typed
        scope: country | narrative | entity
        countries: Country filter; uppercased
        narrative_id: Narrative filter for narrative scope
        time_from: Explicit lower bound (ISO), kept verbatim
        time_to: Explicit upper bound (ISO), kept verbatim
        now: Reference clock, wall clock when omitted
        graph: Provider used for entity extraction
        snapshot: Already-fetched snapshot; takes precedence over ``graph``

    Returns:
        ParsedQuery
    """
    scope = Scope(scope)
    now = ensure_utc(now) if now is not None else now_utc()
    if snapshot is None:
        snapshot = (graph or default_graph_provider).get_snapshot()

    query = query or ""
    normalized = normalize_text(query)

    return ParsedQuery(
        raw=query,
        normalized=normalized,
        terms=tuple(tokenize(query)),
        intent=detect_intent(normalized, scope),
        scope=scope,
        entities=tuple(extract_entities(query, snapshot)),
        time=derive_time_range(query, now, time_from, time_to),
        countries=tuple(code.upper() for code in (countries or [])),
        narrative_id=narrative_id,
    )
