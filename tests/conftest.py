"""Shared fixtures: an in-memory extractor and a temporary store."""

from contextlib import nullcontext
from datetime import datetime, timezone

import pytest

from history_search.exceptions import SourceReadError
from history_search.extractors.base import Extractor
from history_search.extractors.models import UrlRow, VisitRow
from history_search.store.sqlite import HistoryStore


def ts(seconds: int) -> datetime:
    return datetime.fromtimestamp(seconds, tz=timezone.utc)


class FakeExtractor(Extractor):
    """Extractor serving fixed rows, optionally failing on read."""

    def __init__(self, name, urls=(), visits=(), fail=False):
        super().__init__(name, f"/fake/{name}/History")
        self.urls = list(urls)
        self.visits = list(visits)
        self.fail = fail

    def connect(self):
        return nullcontext(None)

    def list_urls(self, conn, ctx=None):
        if self.fail:
            raise SourceReadError(f"{self.name()} is locked")
        return list(self.urls)

    def list_visits(self, conn, ctx=None):
        if self.fail:
            raise SourceReadError(f"{self.name()} is locked")
        return list(self.visits)


def make_extractor(name, visits, titles=None, fail=False):
    """Extractor whose URLs are derived from ``(url, seconds)`` visit pairs."""
    titles = titles or {}
    urls = {url for url, _ in visits}
    return FakeExtractor(
        name,
        urls=[UrlRow(url=url, title=titles.get(url)) for url in sorted(urls)],
        visits=[VisitRow(url=url, visit_time=ts(seconds)) for url, seconds in visits],
        fail=fail,
    )


@pytest.fixture
def store(tmp_path):
    s = HistoryStore(tmp_path / "history.db")
    yield s
    s.close()
