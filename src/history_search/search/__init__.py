"""Full-text indexing and search of stored history."""

from history_search.search.gateway import SearchGateway, SearchResults
from history_search.search.index import DocumentIndex, IndexHits, UrlDocument, WhooshDocumentIndex
from history_search.search.indexer import Indexer, build_index

__all__ = [
    "DocumentIndex",
    "IndexHits",
    "UrlDocument",
    "WhooshDocumentIndex",
    "Indexer",
    "build_index",
    "SearchGateway",
    "SearchResults",
]
