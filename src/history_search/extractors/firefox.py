"""Firefox history (places.sqlite)."""

from __future__ import annotations

import sqlite3
from pathlib import Path

from history_search.context import ExecutionContext
from history_search.extractors.base import Extractor, convert_optional, convert_visits
from history_search.extractors.models import UrlRow, VisitRow
from history_search.timestamps import from_firefox

PLACES_FILENAME = "places.sqlite"

_VISITS_SQL = """
    SELECT
        h.visit_date AS visit_time,
        p.url AS url
    FROM moz_historyvisits h
    JOIN moz_places p ON p.id = h.place_id
"""


class FirefoxExtractor(Extractor):
    """Reads ``moz_places`` and ``moz_historyvisits``."""

    def list_urls(self, conn: sqlite3.Connection, ctx: ExecutionContext | None = None) -> list[UrlRow]:
        # moz_places.description only exists in Firefox 63+.
        columns = self._columns(conn, "moz_places")
        description_expr = "description" if "description" in columns else "NULL"
        rows = self._query(
            conn,
            f"""
            SELECT
                url,
                title,
                {description_expr} AS description,
                last_visit_date
            FROM moz_places
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
                description=row["description"] or None,
                last_visit=convert_optional(from_firefox, row["last_visit_date"]),
            ))
        return urls

    def list_visits(self, conn: sqlite3.Connection, ctx: ExecutionContext | None = None) -> list[VisitRow]:
        rows = self._query(conn, _VISITS_SQL, ctx)
        return convert_visits(rows, from_firefox, self.source_path())


def find_firefox_dbs(root: Path) -> list[Path]:
    """``places.sqlite`` of every profile directly below the Firefox profiles directory."""
    results = [
        child / PLACES_FILENAME
        for child in root.iterdir()
        if child.is_dir() and (child / PLACES_FILENAME).exists()
    ]
    results.sort()
    return results
