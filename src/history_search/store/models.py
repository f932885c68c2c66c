"""Data models for the unified history store."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from history_search.identity import canonical_url, identify


@dataclass
class UrlRecord:
    """One distinct URL across all sources, keyed by ``url_id``."""

    url_id: str
    url: str
    title: str | None = None
    description: str | None = None
    last_visit: datetime | None = None

    @classmethod
    def create(
        cls,
        url: str,
        title: str | None = None,
        description: str | None = None,
        last_visit: datetime | None = None,
    ) -> UrlRecord:
        url = canonical_url(url)
        return cls(url_id=identify(url), url=url, title=title, description=description, last_visit=last_visit)


@dataclass
class VisitEvent:
    """A visit to a URL at a second-resolution UTC time, attributed to one extractor."""

    url_id: str
    url: str
    visit_time: datetime
    extractor_name: str

    @classmethod
    def create(cls, url: str, visit_time: datetime, extractor_name: str) -> VisitEvent:
        url = canonical_url(url)
        return cls(url_id=identify(url), url=url, visit_time=visit_time, extractor_name=extractor_name)


@dataclass
class IndexMeta:
    """When a URL was last written to the document index (None: never)."""

    url_id: str
    indexed_at: datetime | None = None
