"""Full-text document index: abstract interface and Whoosh backend."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from whoosh import index
from whoosh.analysis import LowercaseFilter, RegexTokenizer, StemmingAnalyzer
from whoosh.fields import DATETIME, ID, TEXT, Schema
from whoosh.qparser import MultifieldParser, QueryParserError

from history_search.exceptions import IndexReadError, IndexWriteError

logger = logging.getLogger(__name__)

SEARCH_FIELDS = ["title", "url", "description"]


@dataclass
class UrlDocument:
    """The searchable representation of one stored URL."""

    url_id: str
    url: str
    title: str | None = None
    description: str | None = None
    last_visit: datetime | None = None


@dataclass
class IndexHits:
    """Ranked document ids (best first) and the total number of matches."""

    ids: list[str] = field(default_factory=list)
    total: int = 0


class DocumentIndex(ABC):
    """Abstract interface for the full-text index, addressed by ``url_id``."""

    @abstractmethod
    def add_batch(self, docs: list[UrlDocument]) -> None:
        """Add or replace documents; all of them are durable once this returns."""
        ...

    @abstractmethod
    def search(self, query: str, limit: int = 100) -> IndexHits:
        """Free-text query returning the top ``limit`` ids by relevance."""
        ...

    @abstractmethod
    def count(self) -> int:
        """Total number of documents in the index."""
        ...

    def close(self) -> None:
        pass

    def __enter__(self) -> DocumentIndex:
        return self

    def __exit__(self, *exc) -> None:
        self.close()


def build_schema() -> Schema:
    # URLs tokenize on every non-word character so hosts and path parts match on their own.
    url_analyzer = RegexTokenizer(r"\w+") | LowercaseFilter()
    text_analyzer = StemmingAnalyzer()
    return Schema(
        url_id=ID(stored=True, unique=True),
        url=TEXT(stored=True, analyzer=url_analyzer, field_boost=1.5),
        title=TEXT(stored=True, analyzer=text_analyzer, field_boost=3.0, phrase=True),
        description=TEXT(stored=True, analyzer=text_analyzer),
        last_visit=DATETIME(stored=True),
    )


class WhooshDocumentIndex(DocumentIndex):
    """Whoosh index stored in a directory, created on first open."""

    def __init__(self, index_dir: Path | str):
        self.index_dir = Path(index_dir)
        try:
            self.index_dir.mkdir(parents=True, exist_ok=True)
            if index.exists_in(str(self.index_dir)):
                self.ix = index.open_dir(str(self.index_dir))
            else:
                self.ix = index.create_in(str(self.index_dir), build_schema())
        except Exception as e:
            raise IndexReadError(f"Failed to open search index at {self.index_dir}: {e}") from e

    def add_batch(self, docs: list[UrlDocument]) -> None:
        if not docs:
            return
        try:
            writer = self.ix.writer()
        except Exception as e:
            raise IndexWriteError(f"Failed to lock search index: {e}") from e
        try:
            for doc in docs:
                fields = {
                    "url_id": doc.url_id,
                    "url": doc.url,
                    "title": doc.title or "",
                    "description": doc.description or "",
                }
                if doc.last_visit is not None:
                    fields["last_visit"] = doc.last_visit.replace(tzinfo=None)
                writer.update_document(**fields)
        except Exception as e:
            writer.cancel()
            raise IndexWriteError(f"Failed adding documents to search index: {e}") from e
        try:
            writer.commit()
        except Exception as e:
            raise IndexWriteError(f"Failed committing search index: {e}") from e

    def search(self, query: str, limit: int = 100) -> IndexHits:
        q = (query or "").strip()
        if not q:
            return IndexHits()

        parser = MultifieldParser(SEARCH_FIELDS, schema=self.ix.schema)
        try:
            parsed = parser.parse(q)
        except QueryParserError as e:
            logger.warning("Unparseable query %r: %s", q, e)
            return IndexHits()

        try:
            with self.ix.searcher() as searcher:
                results = searcher.search(parsed, limit=limit)
                return IndexHits(ids=[hit["url_id"] for hit in results], total=len(results))
        except Exception as e:
            raise IndexReadError(f"Search index query failed: {e}") from e

    def count(self) -> int:
        return self.ix.doc_count()

    def close(self) -> None:
        self.ix.close()
