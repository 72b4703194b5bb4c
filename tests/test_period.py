# tests/test_period.py
from datetime import datetime

import pytest

from app.period import month_range, parse_datetime, period_label


def test_month_range_covers_the_whole_month():
    start, end = month_range("2", "2024")
    assert start == datetime(2024, 2, 1)
    assert end.day == 29 and end.hour == 23


@pytest.mark.parametrize("month, year", [("13", "2024"), (None, "2024"), ("x", "2024")])
def test_month_range_ignores_bad_filters(month, year):
    assert month_range(month, year) is None


def test_period_label():
    assert period_label("02", "2024") == "2/2024"
    assert period_label("", "") == "all-time"


def test_parse_datetime_normalises_to_naive_utc():
    assert parse_datetime("2025-03-01") == datetime(2025, 3, 1)
    assert parse_datetime("2025-03-01T10:00:00+02:00") == datetime(2025, 3, 1, 8, 0)
    with pytest.raises(ValueError):
        parse_datetime("yesterday")
