"""Runtime settings resolved from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_HOME = Path.home() / ".config" / "history-search"
DEFAULT_SEARCH_LIMIT = 100


@dataclass
class Settings:
    """Locations of the unified store and document index."""

    data_dir: Path
    db_path: Path
    index_dir: Path
    search_limit: int = DEFAULT_SEARCH_LIMIT
    log_level: str = "WARNING"

    def ensure_dirs(self) -> None:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.index_dir.mkdir(parents=True, exist_ok=True)


def load_settings(
    db_path: str | Path | None = None,
    index_dir: str | Path | None = None,
) -> Settings:
    """Build settings from HISTORY_SEARCH_* variables; explicit arguments win."""
    data_dir = Path(os.environ.get("HISTORY_SEARCH_HOME") or DEFAULT_HOME).expanduser()
    db = db_path or os.environ.get("HISTORY_SEARCH_DB") or data_dir / "history.db"
    idx = index_dir or os.environ.get("HISTORY_SEARCH_INDEX_DIR") or data_dir / "index"

    limit_raw = os.environ.get("HISTORY_SEARCH_LIMIT")
    try:
        search_limit = max(1, int(limit_raw)) if limit_raw else DEFAULT_SEARCH_LIMIT
    except ValueError:
        raise ValueError(f"HISTORY_SEARCH_LIMIT must be an integer, got {limit_raw!r}") from None

    return Settings(
        data_dir=data_dir,
        db_path=Path(db).expanduser(),
        index_dir=Path(idx).expanduser(),
        search_limit=search_limit,
        log_level=(os.environ.get("HISTORY_SEARCH_LOG_LEVEL") or "WARNING").upper(),
    )
