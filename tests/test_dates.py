# tests/test_dates.py

from __future__ import annotations

from datetime import date, timedelta

import pytest

from twig.errors import InvalidFormatError
from twig.utils.dates import (
    DateRange,
    format_duration_human,
    local_midnight,
    local_today,
    parse_date,
    to_local_date,
)


@pytest.mark.parametrize(
    ("seconds", "text"),
    [
        (0, "0s"),
        (45, "45s"),
        (60, "1m"),
        (3600, "1h"),
        (3660, "1h 1m"),
        (28800, "1d 0h"),
        (28800 + 3600 + 120, "1d 1h 2m"),
    ],
)
def test_format_duration_human(seconds: int, text: str) -> None:
    assert format_duration_human(seconds) == text


def test_parse_date_explicit_is_local_midnight() -> None:
    dt = parse_date("2024-03-05")
    assert dt.tzinfo is not None
    assert to_local_date(dt) == date(2024, 3, 5)
    assert dt == local_midnight(date(2024, 3, 5))


def test_parse_date_relative_words() -> None:
    assert to_local_date(parse_date("today")) == local_today()
    assert to_local_date(parse_date("Yesterday")) == local_today() - timedelta(days=1)


@pytest.mark.parametrize("raw", ["05/03/2024", "next friday", ""])
def test_parse_date_rejects_unknown(raw: str) -> None:
    with pytest.raises(InvalidFormatError):
        parse_date(raw)


def test_week_range_starts_monday() -> None:
    r = DateRange.week("2024-03-07")  # a Thursday
    assert r.anchor == date(2024, 3, 4)
    assert r.start == local_midnight(date(2024, 3, 4))
    assert r.end == local_midnight(date(2024, 3, 11))


def test_month_range_wraps_year() -> None:
    r = DateRange.month("2023-12-15")
    assert r.anchor == date(2023, 12, 1)
    assert r.end == local_midnight(date(2024, 1, 1))


def test_day_range_contains_is_half_open() -> None:
    r = DateRange.day("2024-03-05")
    assert r.contains(r.start)
    assert not r.contains(r.end)
    assert not r.contains(None)


def test_for_period_defaults_to_current() -> None:
    assert DateRange.for_period("day").anchor == local_today()
    assert DateRange.for_period("month").anchor == local_today().replace(day=1)
