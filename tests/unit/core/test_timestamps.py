"""Timestamp coercion to ISO 8601 UTC."""

from __future__ import annotations

import pytest

from aihistory.lib.timestamps import parse_timestamp, to_iso

NEW_YEAR = "2024-01-01T00:00:00.000Z"

TO_ISO_CASES = [
    (1704067200, NEW_YEAR, "epoch seconds int"),
    (1704067200.0, NEW_YEAR, "epoch seconds float"),
    (1704067200000, NEW_YEAR, "epoch milliseconds"),
    ("1704067200", NEW_YEAR, "numeric string seconds"),
    ("1704067200000", NEW_YEAR, "numeric string milliseconds"),
    ("2024-01-01T00:00:00Z", NEW_YEAR, "ISO with Z"),
    ("2024-01-01T00:00:00", NEW_YEAR, "naive ISO is UTC"),
    ("2024-01-01T02:00:00+02:00", NEW_YEAR, "offset converted to UTC"),
    (1704067200.5, "2024-01-01T00:00:00.500Z", "fractional seconds kept to ms"),
]


@pytest.mark.parametrize("value,expected,desc", TO_ISO_CASES)
def test_to_iso(value, expected, desc):
    assert to_iso(value) == expected, desc


@pytest.mark.parametrize(
    "value",
    [None, True, False, "", "   ", "yesterday", float("nan"), float("inf"), {"t": 1}, 1e300],
)
def test_to_iso_rejects_unusable_values(value):
    assert to_iso(value) is None


def test_parse_timestamp_is_timezone_aware():
    parsed = parse_timestamp("2024-06-01T12:30:00")
    assert parsed is not None
    assert parsed.tzinfo is not None
    assert parsed.utcoffset().total_seconds() == 0
