"""Safari history (History.db, macOS only)."""

from __future__ import annotations

import sqlite3
from pathlib import Path

from history_search.context import ExecutionContext
from history_search.extractors.base import Extractor, convert_optional, convert_visits
from history_search.extractors.models import UrlRow, VisitRow
from history_search.timestamps import from_safari

HISTORY_FILENAME = "History.db"

_VISITS_SQL = """
    SELECT
        hv.visit_time AS visit_time,
        hi.url AS url
    FROM history_visits hv
    JOIN history_items hi ON hi.id = hv.history_item
"""


class SafariExtractor(Extractor):
    """Reads ``history_items`` and ``history_visits``.

    Safari keeps titles per visit, so a URL's title is the one recorded on
    its most recent visit.
    """

    def list_urls(self, conn: sqlite3.Connection, ctx: ExecutionContext | None = None) -> list[UrlRow]:
        visit_columns = self._columns(conn, "history_visits")
        title_expr = "hv.title" if "title" in visit_columns else "NULL"
        # SQLite takes bare columns from the row that produced MAX().
        rows = self._query(
            conn,
            f"""
            SELECT
                hi.url AS url,
                {title_expr} AS title,
                MAX(hv.visit_time) AS last_visit_time
            FROM history_items hi
            LEFT JOIN history_visits hv ON hv.history_item = hi.id
            GROUP BY hi.id
            """,
            ctx,
        )
        urls: list[UrlRow] = []
        for row in rows:
            url = (row["url"] or "").strip()
            if not url:
                continue
            urls.append(UrlRow(
                url=url,
                title=row["title"] or None,
                last_visit=convert_optional(from_safari, row["last_visit_time"]),
            ))
        return urls

    def list_visits(self, conn: sqlite3.Connection, ctx: ExecutionContext | None = None) -> list[VisitRow]:
        rows = self._query(conn, _VISITS_SQL, ctx)
        return convert_visits(rows, from_safari, self.source_path())


def find_safari_dbs(root: Path) -> list[Path]:
    db_path = root / HISTORY_FILENAME
    return [db_path] if db_path.exists() else []
