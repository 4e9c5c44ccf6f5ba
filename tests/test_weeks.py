"""Tests for the week key codec.

Tests cover:
- ISO week numbering across year boundaries
- Parsing and validation of YYYY-W## keys
- Key -> Monday conversion
- Date range labels for Monday and Sunday week starts
- Note file stems
"""

from datetime import date, datetime, timedelta

import pytest

from chronos.core.weeks import (
    canonical_week_key,
    date_from_week_key,
    date_range_label,
    format_week_key,
    is_week_key,
    iso_week_number,
    parse_week_key,
    week_date_range,
    week_key_from_date,
    week_note_stem,
)


class TestWeekKeyFromDate:
    """Test date -> key conversion."""

    @pytest.mark.parametrize(
        "day, expected",
        [
            (date(2024, 1, 1), "2024-W01"),
            (date(2024, 1, 7), "2024-W01"),
            (date(2024, 1, 8), "2024-W02"),
            (date(2024, 12, 30), "2025-W01"),
            (date(2021, 1, 1), "2020-W53"),
            (date(2021, 1, 4), "2021-W01"),
            (date(2012, 9, 3), "2012-W36"),
        ],
    )
    def test_iso_weeks(self, day: date, expected: str) -> None:
        """Keys follow ISO-8601, including year-boundary weeks."""
        assert week_key_from_date(day) == expected

    def test_accepts_datetime(self) -> None:
        assert week_key_from_date(datetime(2024, 1, 10, 23, 59)) == "2024-W02"

    def test_matches_isocalendar(self) -> None:
        """Week numbers agree with the standard library for a span of years."""
        day = date(1999, 12, 20)
        while day < date(2006, 1, 10):
            iso = day.isocalendar()
            assert iso_week_number(day) == (iso[0], iso[1])
            day += timedelta(days=1)

    def test_key_survives_trip_through_its_monday(self) -> None:
        for year in range(1990, 2031):
            last_week = date(year, 12, 28).isocalendar()[1]
            for week in range(1, last_week + 1):
                key = format_week_key(year, week)
                assert week_key_from_date(date_from_week_key(key)) == key

    def test_format_pads_week(self) -> None:
        assert format_week_key(2024, 5) == "2024-W05"


class TestParseWeekKey:
    """Test key parsing and validation."""

    def test_valid_key(self) -> None:
        assert parse_week_key("2024-W05") == (2024, 5)

    def test_surrounding_whitespace_is_ignored(self) -> None:
        assert parse_week_key(" 2024-W05 ") == (2024, 5)

    @pytest.mark.parametrize(
        "value",
        [
            "", "2024W05", "2024-W00", "2024-W54", "abcd-W05", "2024-Wxx", "2024-W05-W06",
            "10000-W01", "0-W05", "2024-W1_0", "+2024-W05", "2024-W 5", "2024-W٥",
            None, 202405,
        ],
    )
    def test_malformed_keys(self, value) -> None:
        """Malformed keys return None instead of raising."""
        assert parse_week_key(value) is None
        assert not is_week_key(value)

    def test_year_bounds(self) -> None:
        assert parse_week_key("1-W01") == (1, 1)
        assert parse_week_key("9999-W52") == (9999, 52)

    def test_canonical_form_pads_week(self) -> None:
        assert canonical_week_key("2024-W2") == "2024-W02"
        assert canonical_week_key(" 2024-W02 ") == "2024-W02"
        assert canonical_week_key("2024-W1_0") is None


class TestDateFromWeekKey:
    """Test key -> Monday conversion."""

    @pytest.mark.parametrize(
        "key, expected",
        [
            ("2024-W01", date(2024, 1, 1)),
            ("2021-W01", date(2021, 1, 4)),
            ("2020-W53", date(2020, 12, 28)),
            ("2025-W01", date(2024, 12, 30)),
        ],
    )
    def test_monday_of_week(self, key: str, expected: date) -> None:
        assert date_from_week_key(key) == expected

    def test_malformed_key_returns_none(self) -> None:
        assert date_from_week_key("not-a-week") is None

    def test_every_date_lies_in_the_week_of_its_key(self) -> None:
        """The Monday of a date's key is at most six days before the date."""
        day = date(2019, 12, 1)
        while day < date(2022, 2, 1):
            monday = date_from_week_key(week_key_from_date(day))
            assert monday.isoweekday() == 1
            assert monday <= day < monday + timedelta(days=7)
            day += timedelta(days=1)


class TestDateRangeLabel:
    """Test display ranges."""

    def test_monday_start(self) -> None:
        assert date_range_label("2024-W01") == "Jan 1 - Jan 7"

    def test_sunday_start(self) -> None:
        assert date_range_label("2024-W01", start_on_monday=False) == "Dec 31 - Jan 6"

    def test_range_spans_seven_days(self) -> None:
        first, last = week_date_range("2020-W53")
        assert (last - first).days == 6

    def test_malformed_key_gives_empty_label(self) -> None:
        assert date_range_label("garbage") == ""
        assert week_date_range("garbage") is None

    def test_weeks_at_calendar_edges(self) -> None:
        """Weeks spilling past date.min or date.max give no range."""
        assert date_range_label("9999-W52") == ""
        assert date_from_week_key("9999-W53") is None
        assert week_date_range("1-W01") == (date(1, 1, 1), date(1, 1, 7))
        assert week_date_range("1-W01", start_on_monday=False) is None


def test_week_note_stem() -> None:
    """Note stems keep the doubled dash used by existing note files."""
    assert week_note_stem("2024-W05") == "2024--W05"
