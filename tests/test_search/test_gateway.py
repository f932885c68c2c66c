"""Tests for the search gateway."""

from history_search.search.gateway import SearchGateway, SearchResults
from history_search.search.index import DocumentIndex, IndexHits
from history_search.store.models import UrlRecord


class FixedIndex(DocumentIndex):
    """Returns preset ranked ids for any query."""

    def __init__(self, ids, total=None):
        self.ids = ids
        self.total = len(ids) if total is None else total
        self.limits = []

    def add_batch(self, docs):
        pass

    def search(self, query, limit=100):
        self.limits.append(limit)
        return IndexHits(ids=self.ids[:limit], total=self.total)

    def count(self):
        return len(self.ids)


def _store_urls(store, *urls):
    records = [UrlRecord.create(url, title=url.rsplit("/", 1)[-1]) for url in urls]
    for record in records:
        store.upsert_url(record)
    return [r.url_id for r in records]


def test_results_follow_index_ranking(store):
    ids = _store_urls(store, "https://e.example/a", "https://e.example/b", "https://e.example/c")
    ranked = [ids[2], ids[0], ids[1]]
    results = SearchGateway(store, FixedIndex(ranked)).search("anything")
    assert [r.url_id for r in results.urls] == ranked
    assert results.total_count == 3


def test_ids_missing_from_store_are_dropped(store):
    ids = _store_urls(store, "https://e.example/a")
    results = SearchGateway(store, FixedIndex(["gone", ids[0]], total=2)).search("a")
    assert [r.url_id for r in results.urls] == ids
    assert results.total_count == 2


def test_no_matches_is_empty_result(store):
    results = SearchGateway(store, FixedIndex([])).search("nothing")
    assert results == SearchResults(urls=[], total_count=0)


def test_limit_is_passed_to_index(store):
    doc_index = FixedIndex([])
    SearchGateway(store, doc_index, limit=7).search("x")
    assert doc_index.limits == [7]
