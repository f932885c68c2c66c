"""Cancellable execution context shared by extractors and the store."""

from __future__ import annotations

import sqlite3
import threading
import time
from contextlib import contextmanager
from typing import Iterator

from history_search.exceptions import OperationCancelled

# SQLite virtual machine instructions between deadline checks.
PROGRESS_INTERVAL = 1000


class ExecutionContext:
    """Carries an optional deadline and a cancellation flag down to each database call."""

    def __init__(self, timeout: float | None = None):
        self.deadline = time.monotonic() + timeout if timeout is not None else None
        self._cancelled = threading.Event()

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def expired(self) -> bool:
        if self.cancelled:
            return True
        return self.deadline is not None and time.monotonic() >= self.deadline

    def check(self) -> None:
        """Raise OperationCancelled if the context is no longer live."""
        if self.cancelled:
            raise OperationCancelled("Operation was cancelled")
        if self.expired():
            raise OperationCancelled("Operation deadline exceeded")

    @contextmanager
    def guard(self, conn: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
        """Interrupt statements on ``conn`` once the context expires.

        SQLite aborts the running statement with ``OperationalError:
        interrupted`` and rolls back its effects.
        """
        self.check()
        conn.set_progress_handler(lambda: 1 if self.expired() else 0, PROGRESS_INTERVAL)
        try:
            yield conn
        finally:
            conn.set_progress_handler(None, PROGRESS_INTERVAL)


@contextmanager
def guarded(conn: sqlite3.Connection, ctx: ExecutionContext | None) -> Iterator[sqlite3.Connection]:
    """``ctx.guard(conn)`` when a context is given, otherwise a no-op."""
    if ctx is None:
        yield conn
        return
    with ctx.guard(conn):
        yield conn
