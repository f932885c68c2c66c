"""Normalized records emitted by extractors."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass
class UrlRow:
    """A URL as recorded by one browser source."""

    url: str
    title: str | None = None
    description: str | None = None
    last_visit: datetime | None = None  # UTC, second resolution


@dataclass
class VisitRow:
    """A single visit event as recorded by one browser source."""

    url: str
    visit_time: datetime  # UTC, second resolution
