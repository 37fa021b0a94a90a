import pytest

from norden.utils import (
    calendar_cells,
    days_in_month,
    first_weekday,
    month_grid,
    month_str,
    parse_month,
    shift_month,
)


@pytest.mark.parametrize("year, month, expected", [
    (2024, 0, 31),
    (2024, 1, 29),
    (2025, 1, 28),
    (1900, 1, 28),
    (2000, 1, 29),
    (2025, 3, 30),
    (2025, 11, 31),
])
def test_days_in_month_matches_gregorian_lengths(year, month, expected):
    assert days_in_month(year, month) == expected


def test_first_weekday_counts_from_sunday():
    # 1 Sep 2024 was a Sunday, 1 Jan 2025 a Wednesday, 1 Feb 2025 a Saturday
    assert first_weekday(2024, 8) == 0
    assert first_weekday(2025, 0) == 3
    assert first_weekday(2025, 1) == 6


def test_month_overflow_rolls_into_next_year():
    assert month_grid(2025, 12) == month_grid(2026, 0)
    assert month_grid(2025, -1) == month_grid(2024, 11)
    assert shift_month(2025, 11, 1) == (2026, 0)
    assert shift_month(2025, 0, -1) == (2024, 11)


def test_calendar_cells_lead_with_blanks():
    cells = calendar_cells(2025, 1)  # February 2025 starts on a Saturday
    assert cells[:6] == [None] * 6
    assert cells[6] == 1
    assert cells[-1] == 28
    assert len(cells) == 6 + 28


def test_parse_month_is_one_based_in_urls():
    assert parse_month("2026-10") == (2026, 9)
    assert parse_month("2026-1") == (2026, 0)
    assert parse_month("2026-10-19") == (2026, 9)
    assert parse_month("nope") is None
    assert parse_month(None) is None
    # years a datetime.date cannot hold fall back to None
    assert parse_month("0000-01") is None
    assert parse_month(month_str(1, -1)) is None
    assert parse_month("9999-13") is None
    assert parse_month("9999-12") == (9999, 11)
    assert month_str(2026, 9) == "2026-10"
    assert month_str(2026, 12) == "2027-01"
