"""
Shared utility functions for the analyst retrieval service.
"""
from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from dateutil import parser as dateparser

_NON_WORD_RE = re.compile(r"[^a-zа-я0-9\s]", flags=re.IGNORECASE)
_WHITESPACE_RE = re.compile(r"\s+")


def now_utc() -> datetime:
    """
    Get current UTC datetime with timezone information.

    Returns:
        Current UTC datetime
    """
    return datetime.now(timezone.utc)


def normalize_text(text: str | None) -> str:
    """
    Normalize text for matching.

    Lowercases, folds "ё" into "е", replaces everything that is not a Latin
    or Cyrillic letter, digit or whitespace with a space, then collapses
    whitespace.

    Args:
        text: Input text string (can be None)

    Returns:
        Normalized text with single spaces and trimmed edges
    """
    if not text:
        return ""
    lowered = text.lower().replace("ё", "е")
    stripped = _NON_WORD_RE.sub(" ", lowered)
    return _WHITESPACE_RE.sub(" ", stripped).strip()


def tokenize(text: str | None) -> List[str]:
    """
    Split normalized text into terms of at least two characters.

    Args:
        text: Input text string (can be None)

    Returns:
        List of terms in order of appearance
    """
    return [term for term in normalize_text(text).split(" ") if len(term) >= 2]


def parse_utc_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 string and convert to UTC datetime.

    Only ISO-8601 is accepted; fragments such as "12:00" or "Feb 2026"
    are rejected instead of being completed from the current date.

    Args:
        value: ISO-8601 date or datetime string, or None

    Returns:
        UTC datetime object, or None if input is empty or not ISO-8601
    """
    if not value or not isinstance(value, str):
        return None
    try:
        parsed = dateparser.isoparse(value.strip())
    except (ValueError, OverflowError, TypeError):
        return None
    if parsed.tzinfo:
        return parsed.astimezone(timezone.utc)
    return parsed.replace(tzinfo=timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes, convert aware ones."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def iso(dt: datetime) -> str:
    """Format a datetime as ISO-8601 UTC with millisecond precision and a Z suffix."""
    return ensure_utc(dt).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def clamp(value: float, low: float, high: float) -> float:
    """Clamp a value into [low, high]."""
    return max(low, min(high, value))


def clamp_to_unit_range(value: float) -> float:
    """
    Clamp a float value to the range [0.0, 1.0].

    Args:
        value: Input float value

    Returns:
        Value clamped to [0.0, 1.0] range
    """
    return clamp(value, 0.0, 1.0)


def median(values: Sequence[float]) -> float:
    """Median of a sequence, 0.0 when empty."""
    if not values:
        return 0.0
    ordered = sorted(values)
    mid = len(ordered) // 2
    if len(ordered) % 2 == 0:
        return (ordered[mid - 1] + ordered[mid]) / 2
    return ordered[mid]


def hours_between(later: datetime, earlier: datetime) -> float:
    """Non-negative number of hours from ``earlier`` to ``later``."""
    return max(0.0, (later - earlier).total_seconds() / 3600.0)
