"""Import browser history from extractors into the unified store."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from datetime import datetime

from history_search.context import ExecutionContext
from history_search.exceptions import (
    HistorySearchError,
    InvalidUrlError,
    NoPriorData,
    SyncError,
)
from history_search.extractors.base import Extractor
from history_search.store.models import UrlRecord, VisitEvent
from history_search.store.sqlite import HistoryStore
from history_search.timestamps import UNIX_EPOCH

logger = logging.getLogger(__name__)


class SyncMode(enum.Enum):
    FULL = "full"
    INCREMENTAL = "incremental"


@dataclass
class SourceResult:
    """Outcome of importing one source."""

    name: str
    source_path: str
    urls_upserted: int = 0
    visits_seen: int = 0
    visits_inserted: int = 0
    since: datetime | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class SyncReport:
    """Per-source results of one sync run."""

    mode: SyncMode
    results: list[SourceResult] = field(default_factory=list)

    @property
    def failures(self) -> dict[str, str]:
        failed: dict[str, str] = {}
        for result in self.results:
            if not result.ok:
                key = result.name if result.name not in failed else f"{result.name} ({result.source_path})"
                failed[key] = result.error or ""
        return failed

    @property
    def ok(self) -> bool:
        return all(result.ok for result in self.results)

    def raise_for_failures(self) -> None:
        if not self.ok:
            raise SyncError(self.failures)


class SyncDriver:
    """Runs full or incremental imports, one extractor at a time.

    A failing source is recorded in the report and the run moves on to the
    next one; nothing already written for earlier sources is rolled back.
    """

    def __init__(self, store: HistoryStore, ctx: ExecutionContext | None = None):
        self.store = store
        self.ctx = ctx

    def run(
        self,
        extractors: list[Extractor],
        mode: SyncMode = SyncMode.FULL,
        only: str | None = None,
    ) -> SyncReport:
        """Import every extractor, or only those whose name or browser kind is ``only``."""
        report = SyncReport(mode=mode)
        selected = [x for x in extractors if only is None or only in (x.name(), x.kind())]
        if only is not None and not selected:
            logger.warning("No discovered source or browser named %r", only)

        for extractor in selected:
            result = SourceResult(name=extractor.name(), source_path=extractor.source_path())
            try:
                if mode is SyncMode.INCREMENTAL:
                    self.import_incremental(extractor, result)
                else:
                    self.import_full(extractor, result)
            except HistorySearchError as e:
                result.error = str(e)
                logger.warning("Import from %s (%s) failed: %s", result.name, result.source_path, e)
            else:
                logger.info(
                    "Imported %s (%s): %d urls, %d/%d new visits",
                    result.name,
                    result.source_path,
                    result.urls_upserted,
                    result.visits_inserted,
                    result.visits_seen,
                )
            report.results.append(result)

        return report

    def import_full(self, extractor: Extractor, result: SourceResult | None = None) -> SourceResult:
        """Upsert every URL and insert every visit of one source."""
        return self._import(extractor, since=None, result=result)

    def import_incremental(self, extractor: Extractor, result: SourceResult | None = None) -> SourceResult:
        """Import only visits newer than the latest stored visit for this source.

        URLs are always upserted since titles may change without new visits.
        Falls back to a full import when the source has no stored visits.
        """
        try:
            since = self.store.latest_visit_time(extractor.name(), self.ctx)
        except NoPriorData:
            logger.info("No prior visits for %s; importing everything", extractor.name())
            since = UNIX_EPOCH
        return self._import(extractor, since=since, result=result)

    def _import(
        self,
        extractor: Extractor,
        since: datetime | None,
        result: SourceResult | None,
    ) -> SourceResult:
        if result is None:
            result = SourceResult(name=extractor.name(), source_path=extractor.source_path())
        result.since = since

        with extractor.connect() as conn:
            urls = extractor.list_urls(conn, self.ctx)
            visits = extractor.list_visits(conn, self.ctx)

        for row in urls:
            try:
                record = UrlRecord.create(row.url, title=row.title, description=row.description, last_visit=row.last_visit)
            except InvalidUrlError:
                logger.debug("Skipping invalid url from %s: %r", extractor.name(), row.url)
                continue
            self.store.upsert_url(record, self.ctx)
            result.urls_upserted += 1

        for row in visits:
            if since is not None and row.visit_time <= since:
                continue
            result.visits_seen += 1
            try:
                event = VisitEvent.create(row.url, row.visit_time, extractor.name())
            except InvalidUrlError:
                logger.debug("Skipping visit with invalid url from %s: %r", extractor.name(), row.url)
                continue
            if self.store.insert_visit(event, self.ctx):
                result.visits_inserted += 1

        return result
