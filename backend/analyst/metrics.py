"""
In-process service metrics.

Three families of buckets, all safe to update from concurrent request
handlers:

- endpoints: one bucket per route with request count, error count, status
  counts and a bounded window of latency samples
- retrieval: one bucket per ``scope:query-sample`` with running means of
  candidate count, returned count and freshness of returned items
- freshness: the latest age profile (count, stale count, avg/p95/max hours)
  of a named set of timestamps
"""
from __future__ import annotations

import math
import threading
import time
from collections import deque
from collections.abc import Callable
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Deque, Dict, Iterable, List, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from analyst.utils import ensure_utc, hours_between, iso, now_utc, parse_utc_datetime

QUERY_SAMPLE_LENGTH = 48
LATENCY_SAMPLE_LIMIT = 200
STALE_AFTER_HOURS = 24.0


@dataclass
class EndpointBucket:
    route: str
    count: int = 0
    errors: int = 0
    statuses: Dict[str, int] = field(default_factory=dict)
    latency_ms: Deque[float] = field(default_factory=lambda: deque(maxlen=LATENCY_SAMPLE_LIMIT))
    last_seen_at: str = ""

    def observe(self, status: int, latency_ms: float, seen_at: str) -> None:
        self.count += 1
        if status >= 400 or status == 0:
            self.errors += 1
        key = str(status)
        self.statuses[key] = self.statuses.get(key, 0) + 1
        self.latency_ms.append(round(latency_ms, 2))
        self.last_seen_at = seen_at

    def to_dict(self) -> Dict[str, Any]:
        samples = list(self.latency_ms)
        return {
            "route": self.route,
            "count": self.count,
            "errors": self.errors,
            "error_rate": round(self.errors / self.count, 3) if self.count else 0.0,
            "statuses": dict(self.statuses),
            "latency_ms": {
                "avg": round(sum(samples) / len(samples), 2) if samples else 0.0,
                "p95": round(percentile(samples, 95), 2),
                "max": round(max(samples, default=0.0), 2),
                "samples": len(samples),
            },
            "last_seen_at": self.last_seen_at,
        }


@dataclass
class RetrievalBucket:
    key: str
    scope: str
    query_sample: str
    count: int
    avg_candidates: float
    avg_returned: float
    avg_freshness_hours: float
    last_seen_at: str

    def observe(self, candidates: int, returned: int, freshness_hours: float, seen_at: str) -> None:
        """Fold one more observation into the running means."""
        n = self.count + 1
        self.avg_candidates = (self.avg_candidates * self.count + candidates) / n
        self.avg_returned = (self.avg_returned * self.count + returned) / n
        self.avg_freshness_hours = (self.avg_freshness_hours * self.count + freshness_hours) / n
        self.count = n
        self.last_seen_at = seen_at


@dataclass
class FreshnessBucket:
    key: str
    count: int
    stale_count: int
    avg_hours: float
    p95_hours: float
    max_hours: float
    last_seen_at: str


def query_sample(query: Optional[str]) -> str:
    return (query or "").strip()[:QUERY_SAMPLE_LENGTH].lower()


def percentile(values: Iterable[float], p: float) -> float:
    """
    Nearest-rank percentile without interpolation.

    Args:
        values: Samples in any order
        p: Percentile in 0..100

    Returns:
        The sample at index floor(p/100 * n) of the sorted values, capped at
        the last index; 0.0 for no samples
    """
    ordered = sorted(values)
    if not ordered:
        return 0.0
    idx = min(len(ordered) - 1, math.floor(p / 100 * len(ordered)))
    return ordered[idx]


class RetrievalMetrics:
    """Thread-safe aggregator for endpoint, retrieval and freshness telemetry."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._endpoints: Dict[str, EndpointBucket] = {}
        self._buckets: Dict[str, RetrievalBucket] = {}
        self._freshness: Dict[str, FreshnessBucket] = {}
        self._started_at = iso(now_utc())

    def record_request(self, route: str, status: int, latency_ms: float) -> None:
        """Record a completed HTTP request.

        Args:
            route: Request path
            status: Response status code; 0 when no response was produced
            latency_ms: Handling time in milliseconds
        """
        route = route or "unknown"
        seen_at = iso(now_utc())
        with self._lock:
            bucket = self._endpoints.get(route)
            if bucket is None:
                bucket = self._endpoints[route] = EndpointBucket(route=route)
            bucket.observe(status, latency_ms, seen_at)

    def record_retrieval(
        self,
        scope: str,
        query: str,
        candidates: int,
        returned: int,
        freshness_hours: float,
    ) -> None:
        """Record one retrieval call.

        Args:
            scope: Scope the query ran under
            query: Normalized query text
            candidates: Gated candidates before dedup and limit
            returned: Timeline items returned
            freshness_hours: Mean age of returned items in hours
        """
        sample = query_sample(query)
        key = f"{scope}:{sample}"
        seen_at = iso(now_utc())

        with self._lock:
            bucket = self._buckets.get(key)
            if bucket is None:
                self._buckets[key] = RetrievalBucket(
                    key=key,
                    scope=scope,
                    query_sample=sample,
                    count=1,
                    avg_candidates=float(candidates),
                    avg_returned=float(returned),
                    avg_freshness_hours=float(freshness_hours),
                    last_seen_at=seen_at,
                )
                return
            bucket.observe(candidates, returned, freshness_hours, seen_at)

    def record_freshness(
        self,
        key: str,
        timestamps: Iterable[Optional[str]],
        now: Optional[datetime] = None,
        stale_after_hours: float = STALE_AFTER_HOURS,
    ) -> None:
        """Replace the age profile stored under ``key``.

        Missing or unparsable timestamps are ignored; nothing is stored when
        none remain. Future timestamps count as zero hours old.

        Args:
            key: Bucket name, e.g. "timeline.country"
            timestamps: ISO-8601 publication times
            now: Reference clock, wall clock when omitted
            stale_after_hours: Ages strictly above this count as stale
        """
        now = ensure_utc(now) if now is not None else now_utc()
        hours: List[float] = []
        for value in timestamps:
            published = parse_utc_datetime(value)
            if published is not None:
                hours.append(hours_between(now, published))
        if not hours:
            return

        bucket = FreshnessBucket(
            key=key,
            count=len(hours),
            stale_count=sum(1 for h in hours if h > stale_after_hours),
            avg_hours=round(sum(hours) / len(hours), 2),
            p95_hours=round(percentile(hours, 95), 2),
            max_hours=round(max(hours), 2),
            last_seen_at=iso(now_utc()),
        )
        with self._lock:
            self._freshness[key] = bucket

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            endpoints = [bucket.to_dict() for bucket in self._endpoints.values()]
            retrieval: List[Dict[str, Any]] = []
            for bucket in self._buckets.values():
                row = asdict(bucket)
                row["avg_candidates"] = round(bucket.avg_candidates, 2)
                row["avg_returned"] = round(bucket.avg_returned, 2)
                row["avg_freshness_hours"] = round(bucket.avg_freshness_hours, 2)
                retrieval.append(row)
            freshness = [asdict(bucket) for bucket in self._freshness.values()]
            started_at = self._started_at

        return {
            "started_at": started_at,
            "generated_at": iso(now_utc()),
            "endpoints": endpoints,
            "retrieval": retrieval,
            "freshness": freshness,
        }

    def reset(self) -> None:
        with self._lock:
            self._endpoints.clear()
            self._buckets.clear()
            self._freshness.clear()
            self._started_at = iso(now_utc())


# Process-wide default collector
default_metrics = RetrievalMetrics()


def record_retrieval_metric(
    scope: str,
    query: str,
    candidates: int,
    returned: int,
    freshness_hours: float,
) -> None:
    default_metrics.record_retrieval(scope, query, candidates, returned, freshness_hours)


def monitoring_snapshot() -> Dict[str, Any]:
    return default_metrics.snapshot()


class MetricsMiddleware(BaseHTTPMiddleware):
    """Records count, status and latency of every request except /monitoring."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        path = request.url.path
        if path == "/monitoring":
            return await call_next(request)

        start_time = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            default_metrics.record_request(path, 500, (time.perf_counter() - start_time) * 1000)
            raise
        default_metrics.record_request(path, response.status_code, (time.perf_counter() - start_time) * 1000)
        return response
