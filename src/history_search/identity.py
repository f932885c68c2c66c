"""Content-derived identifiers for URLs."""

from __future__ import annotations

import hashlib

from history_search.exceptions import InvalidUrlError


def canonical_url(url: str) -> str:
    """Return the canonical form of a URL string (surrounding whitespace stripped)."""
    if not isinstance(url, str):
        raise InvalidUrlError(f"URL must be a string, got {type(url).__name__}")
    canonical = url.strip()
    if not canonical:
        raise InvalidUrlError("URL is empty")
    return canonical


def identify(url: str) -> str:
    """Stable 64-character hex identifier for a URL.

    Used as the primary key of stored URLs, as the join key for visits and
    index metadata, and as the document id in the full-text index.
    """
    return hashlib.sha256(canonical_url(url).encode("utf-8")).hexdigest()
