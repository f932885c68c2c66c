"""Bring the document index up to date with the store."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from history_search.context import ExecutionContext
from history_search.search.index import DocumentIndex, UrlDocument
from history_search.store.sqlite import HistoryStore

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 500


class Indexer:
    """Indexes URLs the store has never marked as indexed.

    Not safe to run concurrently with itself: two passes would both add the
    same documents.
    """

    def __init__(
        self,
        store: HistoryStore,
        doc_index: DocumentIndex,
        batch_size: int = DEFAULT_BATCH_SIZE,
        ctx: ExecutionContext | None = None,
    ):
        self.store = store
        self.doc_index = doc_index
        self.batch_size = max(1, batch_size)
        self.ctx = ctx

    def build_index(self) -> int:
        """Index every unindexed URL and return how many were indexed.

        A batch is marked indexed only after the index has committed it, so a
        failure (IndexWriteError, StoreWriteError) leaves its URLs retryable.
        """
        pending = self.store.unindexed_urls(ctx=self.ctx)
        logger.info("%d url(s) to index", len(pending))

        indexed = 0
        for i in range(0, len(pending), self.batch_size):
            if self.ctx is not None:
                self.ctx.check()
            batch = pending[i : i + self.batch_size]
            self.doc_index.add_batch([
                UrlDocument(
                    url_id=record.url_id,
                    url=record.url,
                    title=record.title,
                    description=record.description,
                    last_visit=record.last_visit,
                )
                for record in batch
            ])
            now = datetime.now(timezone.utc)
            for record in batch:
                self.store.upsert_index_meta(record.url_id, now, self.ctx)
            indexed += len(batch)
            logger.debug("Indexed %d/%d", indexed, len(pending))

        return indexed


def build_index(store: HistoryStore, doc_index: DocumentIndex) -> int:
    return Indexer(store, doc_index).build_index()
