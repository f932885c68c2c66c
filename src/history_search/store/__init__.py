"""Unified, deduplicated history store."""

from history_search.store.models import IndexMeta, UrlRecord, VisitEvent
from history_search.store.sqlite import HistoryStore

__all__ = ["HistoryStore", "UrlRecord", "VisitEvent", "IndexMeta"]
