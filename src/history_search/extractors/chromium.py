"""Chromium-family history (Chrome, Chromium, Brave, Edge, Vivaldi)."""

from __future__ import annotations

import logging
import os
import sqlite3
from pathlib import Path

from history_search.context import ExecutionContext
from history_search.extractors.base import Extractor, convert_optional, convert_visits
from history_search.extractors.models import UrlRow, VisitRow
from history_search.timestamps import from_chrome

logger = logging.getLogger(__name__)

HISTORY_FILENAME = "History"
# Profiles that never hold user browsing history.
IGNORED_PROFILES = {"System Profile", "Guest Profile"}

_URLS_SQL = """
    SELECT
        url,
        title,
        last_visit_time
    FROM urls
"""

_VISITS_SQL = """
    SELECT
        v.visit_time AS visit_time,
        u.url AS url
    FROM visits v
    JOIN urls u ON u.id = v.url
"""


class ChromiumExtractor(Extractor):
    """Reads the ``urls`` and ``visits`` tables of a Chromium ``History`` file."""

    def list_urls(self, conn: sqlite3.Connection, ctx: ExecutionContext | None = None) -> list[UrlRow]:
        rows = self._query(conn, _URLS_SQL, ctx)
        urls: list[UrlRow] = []
        for row in rows:
            url = (row["url"] or "").strip()
            if not url:
                continue
            urls.append(UrlRow(
                url=url,
                title=row["title"] or None,
                last_visit=convert_optional(from_chrome, row["last_visit_time"]),
            ))
        return urls

    def list_visits(self, conn: sqlite3.Connection, ctx: ExecutionContext | None = None) -> list[VisitRow]:
        rows = self._query(conn, _VISITS_SQL, ctx)
        return convert_visits(rows, from_chrome, self.source_path())


def find_chromium_dbs(root: Path) -> list[Path]:
    """Every profile ``History`` file below a Chromium user-data directory."""

    def _raise_for_root(err: OSError) -> None:
        if Path(err.filename or "") == root:
            raise err
        logger.debug("Skipping unreadable directory: %s", err.filename)

    results: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(root, onerror=_raise_for_root):
        dirnames[:] = [d for d in dirnames if d not in IGNORED_PROFILES]
        if HISTORY_FILENAME in filenames:
            results.append(Path(dirpath) / HISTORY_FILENAME)

    results.sort()
    return results
