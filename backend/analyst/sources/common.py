"""
Common utilities for document sources.
"""
from __future__ import annotations

from typing import Optional

import tldextract

# Offline extractor: uses the public suffix snapshot bundled with tldextract
_extract = tldextract.TLDExtract(suffix_list_urls=())


def clean_text(text: Optional[str]) -> str:
    """
    Clean and normalize text content.

    Args:
        text: Raw text string or None

    Returns:
        Cleaned text string, empty string if input is None
    """
    if not text:
        return ""
    return str(text).strip()


def looks_like_url(value: str) -> bool:
    return value.startswith(("http://", "https://", "www."))


def extract_domain_from_url(url: str) -> str:
    """
    Extract the registered domain from a URL.

    Args:
        url: Full URL string

    Returns:
        Domain name in lowercase, e.g. "civil.ge"
    """
    extracted = _extract(url)
    domain = f"{extracted.domain}.{extracted.suffix}" if extracted.suffix else extracted.domain
    return domain.lower()


def source_name(raw: Optional[str], default: str) -> str:
    """
    Display name of a source.

    URL-like values are reduced to their registered domain; anything else is
    kept as published. Empty values become ``default``.
    """
    name = clean_text(raw)
    if not name:
        return default
    if looks_like_url(name):
        return extract_domain_from_url(name) or default
    return name
