"""
Split a parsed query into time-windowed, weighted subqueries.

Long ranges get a boosted "recent" slice and a damped "baseline" slice so
that reranking leans toward fresh material without dropping history.
"""
from __future__ import annotations

import math
from datetime import timedelta
from typing import List

from analyst.config import DEFAULT_SCORING, ScoringConfig
from analyst.models import ParsedQuery, Subquery
from analyst.utils import iso, parse_utc_datetime

_DAY_SECONDS = 24 * 60 * 60


def decompose_temporal_query(parsed: ParsedQuery, config: ScoringConfig = DEFAULT_SCORING) -> List[Subquery]:
    start_raw, end_raw = parsed.time.start, parsed.time.end
    terms = parsed.terms

    if start_raw is None and end_raw is None:
        return [Subquery("all-time", "Full available history", None, None, terms, 1.0)]

    if start_raw is None or end_raw is None:
        return [Subquery("open-window", "Open-ended window", start_raw, end_raw, terms, 1.0)]

    start = parse_utc_datetime(start_raw)
    end = parse_utc_datetime(end_raw)
    if start is None or end is None:
        return [Subquery("fallback", "Single interval", start_raw, end_raw, terms, 1.0)]

    windows = config.windows
    total_days = max(1, math.ceil((end - start).total_seconds() / _DAY_SECONDS))
    if total_days <= windows.short_range_days:
        return [Subquery("short-window", "Short window", iso(start), iso(end), terms, 1.0)]

    recent_from = end - timedelta(days=windows.recent_slice_days)
    baseline_to = recent_from - timedelta(milliseconds=1)

    return [
        Subquery(
            id="recent",
            label="Recent signals",
            start=iso(max(recent_from, start)),
            end=iso(end),
            boosted_terms=terms + tuple(windows.freshness_terms),
            weight=windows.recent_weight,
        ),
        Subquery(
            id="baseline",
            label="Historical baseline",
            start=iso(start),
            end=iso(max(baseline_to, start)),
            boosted_terms=terms,
            weight=windows.baseline_weight,
        ),
    ]
