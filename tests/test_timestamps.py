"""Tests for native timestamp conversion."""

from datetime import datetime, timedelta, timezone

import pytest

from history_search.timestamps import (
    UNIX_EPOCH,
    from_chrome,
    from_firefox,
    from_safari,
    from_unix_seconds,
    to_unix_seconds,
)

# 2024-01-01 00:00:00 UTC
NEW_YEAR = datetime(2024, 1, 1, tzinfo=timezone.utc)
NEW_YEAR_UNIX = 1704067200


def test_from_chrome():
    chrome_value = (NEW_YEAR_UNIX + 11644473600) * 1_000_000 + 123_456
    assert from_chrome(chrome_value) == NEW_YEAR


def test_from_firefox():
    assert from_firefox(NEW_YEAR_UNIX * 1_000_000 + 999_999) == NEW_YEAR


def test_from_safari():
    assert from_safari(NEW_YEAR_UNIX - 978307200 + 0.5) == NEW_YEAR


def test_results_are_utc_aware():
    dt = from_unix_seconds(NEW_YEAR_UNIX)
    assert dt.tzinfo is not None
    assert dt.utcoffset() == timedelta(0)


@pytest.mark.parametrize("convert", [from_chrome, from_firefox, from_unix_seconds])
def test_missing_values(convert):
    assert convert(None) is None
    assert convert(0) is None


def test_safari_zero_is_reference_date():
    assert from_safari(0) == datetime(2001, 1, 1, tzinfo=timezone.utc)


def test_out_of_range_raises_value_error():
    with pytest.raises(ValueError):
        from_unix_seconds(10**20)


def test_to_unix_seconds():
    assert to_unix_seconds(NEW_YEAR) == NEW_YEAR_UNIX
    assert to_unix_seconds(NEW_YEAR.replace(tzinfo=None)) == NEW_YEAR_UNIX
    assert to_unix_seconds(UNIX_EPOCH) == 0
