"""Tests for extractor discovery."""

from pathlib import Path

import pytest

from history_search.exceptions import DiscoveryError
from history_search.extractors.chromium import ChromiumExtractor, find_chromium_dbs
from history_search.extractors.firefox import FirefoxExtractor
from history_search.extractors.registry import SourceSpec, default_source_specs, discover, probe, source_name
from history_search.extractors.safari import SafariExtractor


def _chrome_spec(root: Path, name: str = "chrome") -> SourceSpec:
    return SourceSpec(name=name, path=root, find_dbs=find_chromium_dbs, create=ChromiumExtractor)


def test_probe_missing_location_is_not_an_error(tmp_path):
    result = probe(_chrome_spec(tmp_path / "missing"))
    assert result.present is False
    assert result.extractors == []


def test_probe_file_instead_of_directory(tmp_path):
    not_a_dir = tmp_path / "Chrome"
    not_a_dir.write_text("")
    assert probe(_chrome_spec(not_a_dir)).present is False


def test_probe_one_extractor_per_profile(tmp_path):
    for profile in ("Default", "Profile 1"):
        (tmp_path / profile).mkdir()
        (tmp_path / profile / "History").write_bytes(b"")

    result = probe(_chrome_spec(tmp_path))
    assert result.present is True
    assert [x.name() for x in result.extractors] == ["chrome", "chrome:Profile 1"]
    assert {x.kind() for x in result.extractors} == {"chrome"}
    assert {Path(x.source_path()).parent.name for x in result.extractors} == {"Default", "Profile 1"}


def test_source_name_from_profile_directory(tmp_path):
    assert source_name("chrome", tmp_path, tmp_path / "Default" / "History") == "chrome"
    assert source_name("chrome", tmp_path, tmp_path / "Profile 2" / "History") == "chrome:Profile 2"
    assert source_name("safari", tmp_path, tmp_path / "History.db") == "safari"
    assert source_name("firefox", tmp_path, tmp_path / "x1y2.default-release" / "places.sqlite") == (
        "firefox:x1y2.default-release"
    )


def test_source_names_are_stable_across_probes(tmp_path):
    for profile in ("Default", "Profile 1"):
        (tmp_path / profile).mkdir()
        (tmp_path / profile / "History").write_bytes(b"")
    first = [x.name() for x in probe(_chrome_spec(tmp_path)).extractors]

    (tmp_path / "Profile 0").mkdir()
    (tmp_path / "Profile 0" / "History").write_bytes(b"")
    second = [x.name() for x in probe(_chrome_spec(tmp_path)).extractors]

    assert set(first) <= set(second)
    assert "chrome:Profile 0" in second


def test_probe_search_failure_propagates(tmp_path):
    def broken(root):
        raise PermissionError(13, "Permission denied", str(root))

    spec = SourceSpec(name="chrome", path=tmp_path, find_dbs=broken, create=ChromiumExtractor)
    with pytest.raises(DiscoveryError, match="chrome"):
        probe(spec)


def test_discover_aggregates_present_sources(tmp_path):
    chrome_root = tmp_path / "chrome"
    (chrome_root / "Default").mkdir(parents=True)
    (chrome_root / "Default" / "History").write_bytes(b"")

    extractors = discover([
        _chrome_spec(chrome_root),
        _chrome_spec(tmp_path / "vivaldi-missing", name="vivaldi"),
    ])
    assert len(extractors) == 1
    assert extractors[0].name() == "chrome"


def test_discover_nothing_installed(tmp_path):
    assert discover([_chrome_spec(tmp_path / "a"), _chrome_spec(tmp_path / "b")]) == []


def test_default_specs_macos_include_safari():
    specs = {s.name: s for s in default_source_specs("darwin")}
    assert specs["safari"].create is SafariExtractor
    assert specs["firefox"].create is FirefoxExtractor
    assert specs["chrome"].create is ChromiumExtractor


def test_default_specs_linux_have_no_safari():
    names = [s.name for s in default_source_specs("linux")]
    assert "safari" not in names
    assert {"chrome", "chromium", "firefox"} <= set(names)
