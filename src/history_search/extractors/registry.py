"""Discover installed browsers and build one extractor per history database."""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from history_search.exceptions import DiscoveryError
from history_search.extractors.base import PROFILE_SEPARATOR, Extractor
from history_search.extractors.chromium import ChromiumExtractor, find_chromium_dbs
from history_search.extractors.firefox import FirefoxExtractor, find_firefox_dbs
from history_search.extractors.safari import SafariExtractor, find_safari_dbs

logger = logging.getLogger(__name__)

MACOS_APP_SUPPORT = Path.home() / "Library" / "Application Support"
LINUX_CONFIG = Path.home() / ".config"
DEFAULT_PROFILE = "Default"


@dataclass
class SourceSpec:
    """A candidate browser location and how to turn it into extractors."""

    name: str
    path: Path
    find_dbs: Callable[[Path], list[Path]]
    create: Callable[[str, Path], Extractor]


@dataclass
class ProbeResult:
    """Outcome of probing one candidate location.

    ``present`` is False when the location does not exist; that is an
    expected outcome, not an error.
    """

    spec: SourceSpec
    present: bool
    extractors: list[Extractor] = field(default_factory=list)


def default_source_specs(platform: str | None = None) -> list[SourceSpec]:
    """Candidate browser locations for the current (or given) platform."""
    platform = platform or sys.platform
    if platform == "darwin":
        chromium_roots = {
            "chrome": MACOS_APP_SUPPORT / "Google" / "Chrome",
            "chromium": MACOS_APP_SUPPORT / "Chromium",
            "brave": MACOS_APP_SUPPORT / "BraveSoftware" / "Brave-Browser",
            "edge": MACOS_APP_SUPPORT / "Microsoft Edge",
            "vivaldi": MACOS_APP_SUPPORT / "Vivaldi",
        }
        firefox_root = MACOS_APP_SUPPORT / "Firefox" / "Profiles"
        safari_root: Path | None = Path.home() / "Library" / "Safari"
    else:
        chromium_roots = {
            "chrome": LINUX_CONFIG / "google-chrome",
            "chromium": LINUX_CONFIG / "chromium",
            "brave": LINUX_CONFIG / "BraveSoftware" / "Brave-Browser",
            "edge": LINUX_CONFIG / "microsoft-edge",
            "vivaldi": LINUX_CONFIG / "vivaldi",
        }
        firefox_root = Path.home() / ".mozilla" / "firefox"
        safari_root = None

    specs = [
        SourceSpec(name=name, path=root, find_dbs=find_chromium_dbs, create=ChromiumExtractor)
        for name, root in chromium_roots.items()
    ]
    specs.append(SourceSpec(name="firefox", path=firefox_root, find_dbs=find_firefox_dbs, create=FirefoxExtractor))
    if safari_root is not None:
        specs.append(SourceSpec(name="safari", path=safari_root, find_dbs=find_safari_dbs, create=SafariExtractor))
    return specs


def source_name(kind: str, root: Path, db_path: Path) -> str:
    """Stable per-database source name, derived from the profile directory.

    A database directly under ``root`` or in a ``Default`` profile is named
    after the browser kind; any other profile gets ``kind:profile``.
    """
    try:
        profile = db_path.parent.relative_to(root)
    except ValueError:
        profile = Path(db_path.parent.name)
    if profile.parts in ((), (DEFAULT_PROFILE,)):
        return kind
    return f"{kind}{PROFILE_SEPARATOR}{profile.as_posix()}"


def probe(spec: SourceSpec) -> ProbeResult:
    """Find the history databases at one candidate location.

    Raises DiscoveryError only when searching an existing location fails.
    """
    if not spec.path.is_dir():
        logger.info("Skipping %s: %s is not a directory", spec.name, spec.path)
        return ProbeResult(spec=spec, present=False)

    try:
        db_paths = spec.find_dbs(spec.path)
    except OSError as e:
        raise DiscoveryError(f"Failed searching {spec.name} history under {spec.path}: {e}") from e

    extractors = [spec.create(source_name(spec.name, spec.path, db_path), db_path) for db_path in db_paths]
    logger.info("Found %d %s history database(s) under %s", len(extractors), spec.name, spec.path)
    return ProbeResult(spec=spec, present=True, extractors=extractors)


def discover(specs: list[SourceSpec] | None = None) -> list[Extractor]:
    """One extractor per history database found on this machine."""
    extractors: list[Extractor] = []
    for spec in specs if specs is not None else default_source_specs():
        extractors.extend(probe(spec).extractors)
    return extractors
