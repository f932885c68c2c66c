"""Query the document index and hydrate hits from the store."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from history_search.config import DEFAULT_SEARCH_LIMIT
from history_search.search.index import DocumentIndex
from history_search.store.models import UrlRecord
from history_search.store.sqlite import HistoryStore

logger = logging.getLogger(__name__)


@dataclass
class SearchResults:
    """Stored URLs in relevance order, plus the index's total match count."""

    urls: list[UrlRecord] = field(default_factory=list)
    total_count: int = 0


class SearchGateway:
    """Free-text search over indexed history. No match is an empty result."""

    def __init__(self, store: HistoryStore, doc_index: DocumentIndex, limit: int = DEFAULT_SEARCH_LIMIT):
        self.store = store
        self.doc_index = doc_index
        self.limit = limit

    def search(self, query_text: str) -> SearchResults:
        hits = self.doc_index.search(query_text, limit=self.limit)
        if not hits.ids:
            return SearchResults(total_count=hits.total)

        by_id = {record.url_id: record for record in self.store.urls_by_id(hits.ids)}
        missing = [url_id for url_id in hits.ids if url_id not in by_id]
        if missing:
            logger.warning("%d indexed url(s) missing from the store", len(missing))

        # Store rows come back unordered; keep the index's ranking.
        urls = [by_id[url_id] for url_id in hits.ids if url_id in by_id]
        return SearchResults(urls=urls, total_count=hits.total)
