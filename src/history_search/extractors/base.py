"""Extractor capability interface and shared source-database access."""

from __future__ import annotations

import logging
import shutil
import sqlite3
import tempfile
from abc import ABC, abstractmethod
from contextlib import AbstractContextManager, contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Iterator

from history_search.context import ExecutionContext, guarded
from history_search.exceptions import SourceReadError
from history_search.extractors.models import UrlRow, VisitRow

logger = logging.getLogger(__name__)

# Write-ahead log sidecars that may hold history not yet checkpointed.
_SIDECAR_SUFFIXES = ("-wal",)
# Joins a browser kind and a profile into a source name.
PROFILE_SEPARATOR = ":"


@contextmanager
def open_source_db(db_path: Path) -> Iterator[sqlite3.Connection]:
    """Open a query-only connection to a temporary copy of a browser database.

    Browsers hold an exclusive lock on their history file while running, so
    the file (and its WAL sidecar) is copied first. The copy is removed on exit.
    """
    if not db_path.exists():
        raise SourceReadError(f"History database not found at {db_path}")

    with tempfile.TemporaryDirectory(prefix="history-search-") as tmp_dir:
        copy_path = Path(tmp_dir) / db_path.name
        try:
            shutil.copy2(db_path, copy_path)
            for suffix in _SIDECAR_SUFFIXES:
                sidecar = db_path.with_name(db_path.name + suffix)
                if sidecar.exists():
                    shutil.copy2(sidecar, copy_path.with_name(copy_path.name + suffix))
        except OSError as e:
            raise SourceReadError(f"Cannot copy history database {db_path}: {e}") from e

        try:
            conn = sqlite3.connect(str(copy_path))
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA query_only = ON")
        except sqlite3.Error as e:
            raise SourceReadError(f"Cannot open history database {db_path}: {e}") from e

        try:
            yield conn
        finally:
            conn.close()


def convert_visits(
    rows: list[sqlite3.Row],
    convert: Callable[[Any], datetime | None],
    source: str,
) -> list[VisitRow]:
    """Build VisitRows from ``(url, visit_time)`` rows using a native timestamp converter.

    Rows without a URL or timestamp are skipped; an unconvertible timestamp
    fails the whole call.
    """
    visits: list[VisitRow] = []
    for row in rows:
        url = (row["url"] or "").strip()
        if not url:
            continue
        try:
            visit_time = convert(row["visit_time"])
        except ValueError as e:
            raise SourceReadError(f"Bad visit timestamp in {source}: {e}") from e
        if visit_time is None:
            logger.debug("Skipping visit without timestamp in %s: %s", source, url)
            continue
        visits.append(VisitRow(url=url, visit_time=visit_time))
    return visits


def convert_optional(convert: Callable[[Any], datetime | None], value: Any) -> datetime | None:
    """Like ``convert`` but maps unconvertible values to None."""
    try:
        return convert(value)
    except ValueError:
        return None


def source_kind(name: str) -> str:
    """Browser kind of a source name: ``chrome:Profile 1`` -> ``chrome``."""
    return name.split(PROFILE_SEPARATOR, 1)[0]


class Extractor(ABC):
    """Adapter from one browser's native history schema to normalized rows.

    Subclasses only know how to query their schema and convert its
    timestamps; deduplication and storage are handled downstream.
    """

    def __init__(self, name: str, db_path: Path | str):
        self._name = name
        self.db_path = Path(db_path)

    def name(self) -> str:
        """Stable source identifier, used as the visit attribution and sync cursor key.

        Unique per history database: ``chrome`` for a browser's default
        profile, ``chrome:Profile 1`` for any other.
        """
        return self._name

    def kind(self) -> str:
        """The browser kind this source belongs to, e.g. ``chrome``."""
        return source_kind(self._name)

    def source_path(self) -> str:
        return str(self.db_path)

    def connect(self) -> AbstractContextManager[sqlite3.Connection]:
        """Context manager yielding a connection to this source's database."""
        return open_source_db(self.db_path)

    @abstractmethod
    def list_urls(self, conn: sqlite3.Connection, ctx: ExecutionContext | None = None) -> list[UrlRow]:
        """All URLs in the source. Raises SourceReadError; never returns partial results."""
        ...

    @abstractmethod
    def list_visits(self, conn: sqlite3.Connection, ctx: ExecutionContext | None = None) -> list[VisitRow]:
        """All visits in the source, timestamps in UTC. Same failure contract as list_urls."""
        ...

    def _query(
        self,
        conn: sqlite3.Connection,
        sql: str,
        ctx: ExecutionContext | None,
        params: tuple = (),
    ) -> list[sqlite3.Row]:
        try:
            with guarded(conn, ctx):
                return conn.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            raise SourceReadError(f"Failed querying {self._name} history ({self.db_path}): {e}") from e

    def _columns(self, conn: sqlite3.Connection, table: str) -> set[str]:
        rows = self._query(conn, f"PRAGMA table_info({table})", None)
        return {str(row["name"]) for row in rows}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self._name!r}, db_path={str(self.db_path)!r})"
