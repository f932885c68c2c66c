"""Tests for the Chromium extractor."""

import sqlite3

import pytest

from conftest import ts
from history_search.exceptions import SourceReadError
from history_search.extractors.chromium import ChromiumExtractor, find_chromium_dbs
from history_search.timestamps import CHROME_EPOCH_OFFSET


def chrome_ts(seconds: int) -> int:
    return (seconds + CHROME_EPOCH_OFFSET) * 1_000_000


@pytest.fixture
def chrome_db(tmp_path):
    """Create a minimal Chromium History database."""
    db_path = tmp_path / "Default" / "History"
    db_path.parent.mkdir()
    conn = sqlite3.connect(str(db_path))
    conn.execute("""
        CREATE TABLE urls (
            id INTEGER PRIMARY KEY,
            url LONGVARCHAR,
            title LONGVARCHAR,
            visit_count INTEGER DEFAULT 0,
            last_visit_time INTEGER NOT NULL
        )
    """)
    conn.execute("""
        CREATE TABLE visits (
            id INTEGER PRIMARY KEY,
            url INTEGER NOT NULL,
            visit_time INTEGER NOT NULL,
            transition INTEGER DEFAULT 0
        )
    """)
    conn.execute(
        "INSERT INTO urls VALUES (1, 'https://example.com', 'Example Domain', 2, ?)",
        (chrome_ts(1_700_000_200),),
    )
    conn.execute("INSERT INTO urls VALUES (2, 'https://python.org', '', 1, 0)")
    # Sub-second precision is dropped.
    conn.execute("INSERT INTO visits VALUES (1, 1, ?, 0)", (chrome_ts(1_700_000_100) + 250_000,))
    conn.execute("INSERT INTO visits VALUES (2, 1, ?, 0)", (chrome_ts(1_700_000_200),))
    conn.execute("INSERT INTO visits VALUES (3, 2, ?, 0)", (chrome_ts(1_700_000_300),))
    conn.commit()
    conn.close()
    return db_path


def test_list_urls(chrome_db):
    extractor = ChromiumExtractor("chrome", chrome_db)
    with extractor.connect() as conn:
        urls = extractor.list_urls(conn)

    by_url = {u.url: u for u in urls}
    assert set(by_url) == {"https://example.com", "https://python.org"}
    assert by_url["https://example.com"].title == "Example Domain"
    assert by_url["https://example.com"].last_visit == ts(1_700_000_200)
    assert by_url["https://python.org"].title is None
    assert by_url["https://python.org"].last_visit is None


def test_list_visits_converts_to_utc_seconds(chrome_db):
    extractor = ChromiumExtractor("chrome", chrome_db)
    with extractor.connect() as conn:
        visits = extractor.list_visits(conn)

    assert sorted((v.url, v.visit_time) for v in visits) == [
        ("https://example.com", ts(1_700_000_100)),
        ("https://example.com", ts(1_700_000_200)),
        ("https://python.org", ts(1_700_000_300)),
    ]


def test_name_and_source_path(chrome_db):
    extractor = ChromiumExtractor("brave", chrome_db)
    assert extractor.name() == "brave"
    assert extractor.source_path() == str(chrome_db)


def test_wrong_schema_raises_source_read_error(tmp_path):
    db_path = tmp_path / "History"
    conn = sqlite3.connect(str(db_path))
    conn.execute("CREATE TABLE something_else (id INTEGER)")
    conn.commit()
    conn.close()

    extractor = ChromiumExtractor("chrome", db_path)
    with extractor.connect() as conn:
        with pytest.raises(SourceReadError, match="chrome"):
            extractor.list_urls(conn)


def test_corrupt_file_raises_source_read_error(tmp_path):
    db_path = tmp_path / "History"
    db_path.write_bytes(b"this is not a sqlite database" * 100)

    extractor = ChromiumExtractor("chrome", db_path)
    with pytest.raises(SourceReadError):
        with extractor.connect() as conn:
            extractor.list_visits(conn)


def test_missing_file_raises_source_read_error(tmp_path):
    extractor = ChromiumExtractor("chrome", tmp_path / "nope" / "History")
    with pytest.raises(SourceReadError, match="not found"):
        with extractor.connect():
            pass


def test_find_chromium_dbs_walks_profiles(tmp_path):
    for profile in ("Default", "Profile 1", "System Profile"):
        (tmp_path / profile).mkdir()
        (tmp_path / profile / "History").write_bytes(b"")
    (tmp_path / "Profile 2").mkdir()

    found = find_chromium_dbs(tmp_path)
    assert found == [tmp_path / "Default" / "History", tmp_path / "Profile 1" / "History"]
