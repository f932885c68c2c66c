"""Full and incremental import of browser history into the store."""

from history_search.sync.driver import SourceResult, SyncDriver, SyncMode, SyncReport

__all__ = ["SyncDriver", "SyncMode", "SyncReport", "SourceResult"]
