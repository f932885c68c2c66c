"""Unified exception hierarchy for history-search."""


class HistorySearchError(Exception):
    """Base exception for all history-search errors."""


class InvalidUrlError(HistorySearchError, ValueError):
    """URL is empty or not a string and cannot be identified."""


class OperationCancelled(HistorySearchError):
    """The execution context was cancelled or its deadline elapsed."""


# Sources
class SourceError(HistorySearchError):
    """Base exception for browser history sources."""


class SourceReadError(SourceError):
    """Failed to read a browser's native history database."""


class DiscoveryError(SourceError):
    """Searching a browser location for history databases failed."""


# Store
class StoreError(HistorySearchError):
    """Base exception for the unified history store."""


class StoreWriteError(StoreError):
    """A write to the history store failed."""


class StoreReadError(StoreError):
    """A read from the history store failed."""


class NoPriorData(StoreError):
    """No visits are stored yet for the requested extractor."""


# Document index
class DocumentIndexError(HistorySearchError):
    """Base exception for full-text document index operations."""


class IndexWriteError(DocumentIndexError):
    """Adding documents to the index failed."""


class IndexReadError(DocumentIndexError):
    """Opening or querying the index failed."""


# Sync
class SyncError(HistorySearchError):
    """One or more sources failed during a sync run."""

    def __init__(self, failures: dict[str, str]):
        self.failures = dict(failures)
        names = ", ".join(sorted(self.failures))
        super().__init__(f"{len(self.failures)} source(s) failed: {names}")
