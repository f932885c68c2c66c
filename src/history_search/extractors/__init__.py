"""Browser history extractors (Chromium family, Firefox, Safari)."""

from history_search.extractors.base import Extractor, open_source_db
from history_search.extractors.chromium import ChromiumExtractor
from history_search.extractors.firefox import FirefoxExtractor
from history_search.extractors.models import UrlRow, VisitRow
from history_search.extractors.registry import ProbeResult, SourceSpec, discover, probe, source_name
from history_search.extractors.safari import SafariExtractor

__all__ = [
    "Extractor",
    "open_source_db",
    "ChromiumExtractor",
    "FirefoxExtractor",
    "SafariExtractor",
    "UrlRow",
    "VisitRow",
    "SourceSpec",
    "ProbeResult",
    "discover",
    "probe",
    "source_name",
]
