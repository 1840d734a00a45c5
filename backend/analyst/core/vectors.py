"""
Hashed bag-of-terms vectors and cosine similarity.

A cheap stand-in for a trained embedding: every term is hashed into one of
``dims`` buckets and the vector is the per-bucket term count. The hash is a
32-bit polynomial rolling hash over character codes, so results are stable
across processes (unlike Python's salted ``hash``).
"""
from __future__ import annotations

import math
from typing import List, Sequence

from analyst.config import DEFAULT_SCORING
from analyst.utils import tokenize

_MASK_32 = 0xFFFFFFFF


def term_hash(term: str) -> int:
    """Signed 32-bit rolling hash (h * 31 + code) with wrap-around."""
    h = 0
    for ch in term:
        h = ((h << 5) - h + ord(ch)) & _MASK_32
    if h & 0x80000000:
        h -= 1 << 32
    return h


def hashed_vector(text: str, dims: int = DEFAULT_SCORING.vector_dimensions) -> List[float]:
    """
    Map text to a term-frequency histogram over hashed buckets.

    Args:
        text: Any text; it is tokenized the same way as queries and titles
        dims: Number of buckets

    Returns:
        List of ``dims`` bucket counts
    """
    out = [0.0] * dims
    for term in tokenize(text):
        out[abs(term_hash(term)) % dims] += 1
    return out


def cosine(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity; 0.0 for empty, mismatched or zero-norm vectors."""
    if not a or not b or len(a) != len(b):
        return 0.0

    dot = 0.0
    norm_a = 0.0
    norm_b = 0.0
    for x, y in zip(a, b):
        dot += x * y
        norm_a += x * x
        norm_b += y * y

    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (math.sqrt(norm_a) * math.sqrt(norm_b))
