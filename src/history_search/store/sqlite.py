"""SQLite-backed store of deduplicated URLs, visits and index metadata.

Uniqueness is enforced by the schema itself: ``urls.url_id`` is the primary
key and visits are unique on ``(url_id, visit_time)`` regardless of which
extractor produced them, since some browsers import each other's history.
Every write runs as one transaction, so concurrent writers and interrupted
runs leave the store consistent.
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Iterator

from history_search.context import ExecutionContext, guarded
from history_search.exceptions import (
    NoPriorData,
    OperationCancelled,
    StoreReadError,
    StoreWriteError,
)
from history_search.store.models import IndexMeta, UrlRecord, VisitEvent
from history_search.timestamps import to_unix_seconds

logger = logging.getLogger(__name__)

# Bound parameters per IN (...) batch; below SQLite's historical 999 limit.
LOOKUP_CHUNK_SIZE = 500

SCHEMA = """
CREATE TABLE IF NOT EXISTS urls (
    url_id TEXT PRIMARY KEY NOT NULL,
    url TEXT UNIQUE NOT NULL,
    title TEXT,
    description TEXT,
    last_visit INTEGER
);

CREATE TABLE IF NOT EXISTS urls_meta (
    url_id TEXT PRIMARY KEY NOT NULL REFERENCES urls(url_id),
    indexed_at INTEGER
);

CREATE TABLE IF NOT EXISTS visits (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    url_id TEXT NOT NULL REFERENCES urls(url_id),
    visit_time INTEGER NOT NULL,
    extractor_name TEXT NOT NULL
);

CREATE UNIQUE INDEX IF NOT EXISTS visits_unique ON visits(url_id, visit_time);
CREATE INDEX IF NOT EXISTS visits_extractor_time ON visits(extractor_name, visit_time);
"""

_UPSERT_URL_SQL = """
    INSERT INTO urls(url_id, url, title, description, last_visit)
    VALUES(?, ?, ?, ?, ?)
    ON CONFLICT(url_id) DO UPDATE SET
        title = COALESCE(excluded.title, urls.title),
        description = COALESCE(excluded.description, urls.description),
        last_visit = CASE
            WHEN excluded.last_visit IS NULL THEN urls.last_visit
            WHEN urls.last_visit IS NULL OR excluded.last_visit > urls.last_visit THEN excluded.last_visit
            ELSE urls.last_visit
        END
"""

_URL_COLUMNS = "urls.url_id, urls.url, urls.title, urls.description, urls.last_visit"


def _ts(dt: datetime | None) -> int | None:
    return to_unix_seconds(dt) if dt is not None else None


def _dt(seconds: int | None) -> datetime | None:
    return datetime.fromtimestamp(seconds, tz=timezone.utc) if seconds is not None else None


class HistoryStore:
    """The unified history database. Schema creation runs on every open.

    Holds one connection and must not be shared across threads; concurrent
    writers each open their own store.
    """

    def __init__(self, db_path: Path | str):
        self.db_path = str(db_path)
        try:
            self.conn = sqlite3.connect(self.db_path, timeout=30)
            self.conn.row_factory = sqlite3.Row
            self.conn.execute("PRAGMA foreign_keys = ON")
            self.conn.execute("PRAGMA journal_mode = WAL")
            self.conn.executescript(SCHEMA)
        except sqlite3.Error as e:
            raise StoreWriteError(f"Failed to initialize history store at {self.db_path}: {e}") from e

    def close(self) -> None:
        self.conn.close()

    def __enter__(self) -> HistoryStore:
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    @contextmanager
    def _write(self, ctx: ExecutionContext | None, what: str) -> Iterator[sqlite3.Connection]:
        try:
            with guarded(self.conn, ctx), self.conn:
                yield self.conn
        except sqlite3.Error as e:
            if ctx is not None and ctx.expired():
                raise OperationCancelled(f"Interrupted while writing {what}") from e
            raise StoreWriteError(f"Failed writing {what}: {e}") from e

    def upsert_url(self, record: UrlRecord, ctx: ExecutionContext | None = None) -> None:
        """Insert or update a URL. Title and description keep their last non-null
        value; ``last_visit`` never moves backwards."""
        with self._write(ctx, f"url {record.url}") as conn:
            conn.execute(
                _UPSERT_URL_SQL,
                (record.url_id, record.url, record.title, record.description, _ts(record.last_visit)),
            )

    def upsert_index_meta(
        self,
        url_id: str,
        indexed_at: datetime | None,
        ctx: ExecutionContext | None = None,
    ) -> None:
        with self._write(ctx, f"index meta {url_id}") as conn:
            conn.execute(
                "INSERT OR REPLACE INTO urls_meta(url_id, indexed_at) VALUES(?, ?)",
                (url_id, _ts(indexed_at)),
            )

    def insert_visit(self, event: VisitEvent, ctx: ExecutionContext | None = None) -> bool:
        """Insert a visit unless one exists for the same URL and time.

        Creates a bare URL row when the URL is not stored yet and advances the
        URL's ``last_visit``. Returns True if a new visit row was written.
        """
        visit_ts = to_unix_seconds(event.visit_time)
        with self._write(ctx, f"visit {event.url}") as conn:
            conn.execute(
                "INSERT OR IGNORE INTO urls(url_id, url) VALUES(?, ?)",
                (event.url_id, event.url),
            )
            cur = conn.execute(
                "INSERT OR IGNORE INTO visits(url_id, visit_time, extractor_name) VALUES(?, ?, ?)",
                (event.url_id, visit_ts, event.extractor_name),
            )
            inserted = cur.rowcount == 1
            conn.execute(
                """
                UPDATE urls SET last_visit = ?
                WHERE url_id = ? AND (last_visit IS NULL OR last_visit < ?)
                """,
                (visit_ts, event.url_id, visit_ts),
            )
        return inserted

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _read(
        self,
        sql: str,
        params: tuple | list = (),
        ctx: ExecutionContext | None = None,
    ) -> list[sqlite3.Row]:
        try:
            with guarded(self.conn, ctx):
                return self.conn.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            if ctx is not None and ctx.expired():
                raise OperationCancelled("Interrupted while reading history store") from e
            raise StoreReadError(f"Failed reading history store: {e}") from e

    def latest_visit_time(self, extractor_name: str, ctx: ExecutionContext | None = None) -> datetime:
        """Most recent stored visit attributed to ``extractor_name``.

        Raises NoPriorData when that extractor has no visits yet.
        """
        rows = self._read(
            "SELECT MAX(visit_time) AS latest FROM visits WHERE extractor_name = ?",
            (extractor_name,),
            ctx,
        )
        latest = rows[0]["latest"] if rows else None
        if latest is None:
            raise NoPriorData(f"No visits stored for {extractor_name}")
        return _dt(latest)

    def count_urls_matching(
        self,
        *,
        indexed: bool | None = None,
        url_contains: str | None = None,
        visited_since: datetime | None = None,
        ctx: ExecutionContext | None = None,
    ) -> int:
        """Count URLs satisfying every given condition (no conditions: all URLs)."""
        clauses: list[str] = []
        params: list = []
        if indexed is True:
            clauses.append("urls_meta.indexed_at IS NOT NULL")
        elif indexed is False:
            clauses.append("urls_meta.indexed_at IS NULL")
        if url_contains:
            clauses.append("instr(urls.url, ?) > 0")
            params.append(url_contains)
        if visited_since is not None:
            clauses.append("urls.last_visit >= ?")
            params.append(to_unix_seconds(visited_since))

        where = " AND ".join(clauses) or "1"
        rows = self._read(
            f"""
            SELECT COUNT(*) AS n
            FROM urls
            LEFT OUTER JOIN urls_meta ON urls.url_id = urls_meta.url_id
            WHERE {where}
            """,
            params,
            ctx,
        )
        return int(rows[0]["n"])

    def urls_by_id(self, ids: Iterable[str], ctx: ExecutionContext | None = None) -> list[UrlRecord]:
        """The stored subset of ``ids``, in no particular order."""
        unique_ids = list(dict.fromkeys(ids))
        records: list[UrlRecord] = []
        for i in range(0, len(unique_ids), LOOKUP_CHUNK_SIZE):
            chunk = unique_ids[i : i + LOOKUP_CHUNK_SIZE]
            placeholders = ",".join("?" for _ in chunk)
            rows = self._read(
                f"SELECT {_URL_COLUMNS} FROM urls WHERE url_id IN ({placeholders})",
                chunk,
                ctx,
            )
            records.extend(self._row_to_url(row) for row in rows)
        return records

    def unindexed_urls(self, limit: int | None = None, ctx: ExecutionContext | None = None) -> list[UrlRecord]:
        """URLs with no index metadata or a null ``indexed_at``."""
        sql = f"""
            SELECT {_URL_COLUMNS}
            FROM urls
            LEFT OUTER JOIN urls_meta ON urls.url_id = urls_meta.url_id
            WHERE urls_meta.indexed_at IS NULL
            ORDER BY urls.url_id
        """
        params: tuple = ()
        if limit is not None:
            sql += " LIMIT ?"
            params = (limit,)
        return [self._row_to_url(row) for row in self._read(sql, params, ctx)]

    def get_url(self, url_id: str, ctx: ExecutionContext | None = None) -> UrlRecord | None:
        rows = self._read(f"SELECT {_URL_COLUMNS} FROM urls WHERE url_id = ?", (url_id,), ctx)
        return self._row_to_url(rows[0]) if rows else None

    def index_meta(self, url_id: str, ctx: ExecutionContext | None = None) -> IndexMeta | None:
        rows = self._read("SELECT url_id, indexed_at FROM urls_meta WHERE url_id = ?", (url_id,), ctx)
        if not rows:
            return None
        return IndexMeta(url_id=rows[0]["url_id"], indexed_at=_dt(rows[0]["indexed_at"]))

    def visits_for(self, url_id: str, ctx: ExecutionContext | None = None) -> list[VisitEvent]:
        """Visits of one URL, oldest first."""
        rows = self._read(
            """
            SELECT visits.url_id, urls.url, visits.visit_time, visits.extractor_name
            FROM visits
            JOIN urls ON urls.url_id = visits.url_id
            WHERE visits.url_id = ?
            ORDER BY visits.visit_time
            """,
            (url_id,),
            ctx,
        )
        return [
            VisitEvent(
                url_id=row["url_id"],
                url=row["url"],
                visit_time=_dt(row["visit_time"]),
                extractor_name=row["extractor_name"],
            )
            for row in rows
        ]

    def count_visits(self, extractor_name: str | None = None, ctx: ExecutionContext | None = None) -> int:
        if extractor_name is None:
            rows = self._read("SELECT COUNT(*) AS n FROM visits", (), ctx)
        else:
            rows = self._read(
                "SELECT COUNT(*) AS n FROM visits WHERE extractor_name = ?",
                (extractor_name,),
                ctx,
            )
        return int(rows[0]["n"])

    @staticmethod
    def _row_to_url(row: sqlite3.Row) -> UrlRecord:
        return UrlRecord(
            url_id=row["url_id"],
            url=row["url"],
            title=row["title"],
            description=row["description"],
            last_visit=_dt(row["last_visit"]),
        )
