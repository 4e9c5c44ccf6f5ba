"""Tests for the event record models and their string format."""

import pytest
from pydantic import ValidationError

from chronos.core.models import RangeEvent, SingleEvent
from chronos.core.records import parse_event, parse_events, serialize_event


class TestEventModels:
    """Test record validation and coverage."""

    def test_single_event_normalizes_key(self) -> None:
        event = SingleEvent(week_key="2024-W5", description="Trip")
        assert event.week_key == "2024-W05"
        assert event.kind == "single"

    def test_invalid_key_rejected(self) -> None:
        with pytest.raises(ValidationError):
            SingleEvent(week_key="2024-05", description="Trip")

    def test_records_are_frozen(self) -> None:
        event = SingleEvent(week_key="2024-W05", description="Trip")
        with pytest.raises(ValidationError):
            event.description = "Other"

    def test_single_covers_only_its_week(self) -> None:
        event = SingleEvent(week_key="2024-W05", description="Trip")
        assert event.covers("2024-W05")
        assert not event.covers("2024-W06")

    def test_single_covers_unpadded_key(self) -> None:
        event = SingleEvent(week_key="2024-W05", description="Trip")
        assert event.covers("2024-W5")
        assert not event.covers("2024-W5x")

    def test_year_beyond_calendar_rejected(self) -> None:
        with pytest.raises(ValidationError):
            SingleEvent(week_key="10000-W01", description="Far off")

    def test_range_is_inclusive(self) -> None:
        event = RangeEvent(start_week_key="2024-W50", end_week_key="2025-W02", description="Winter")
        assert event.covers("2024-W50")
        assert event.covers("2025-W01")
        assert event.covers("2025-W02")
        assert not event.covers("2024-W49")
        assert not event.covers("2025-W03")

    def test_range_compares_week_numbers_not_text(self) -> None:
        """Unpadded keys still fall inside the range."""
        event = RangeEvent(start_week_key="2024-W08", end_week_key="2024-W12", description="x")
        assert event.covers("2024-W9")
        assert not event.covers("bogus")

    def test_anchor_week(self) -> None:
        event = RangeEvent(start_week_key="2024-W08", end_week_key="2024-W12", description="x")
        assert event.anchor_week_key == "2024-W08"


class TestParseEvent:
    """Test decoding of persisted strings."""

    def test_single(self) -> None:
        assert parse_event("2024-W05:Trip") == SingleEvent(week_key="2024-W05", description="Trip")

    def test_range(self) -> None:
        assert parse_event("2024-W05:2024-W07:Trip") == RangeEvent(
            start_week_key="2024-W05", end_week_key="2024-W07", description="Trip"
        )

    def test_colon_in_single_description(self) -> None:
        assert parse_event("2024-W05:Flight: LHR").description == "Flight: LHR"

    def test_colon_in_range_description(self) -> None:
        record = parse_event("2024-W05:2024-W07:Notes: a:b")
        assert isinstance(record, RangeEvent)
        assert record.description == "Notes: a:b"

    def test_second_field_must_be_a_key_for_a_range(self) -> None:
        """A description that merely looks key-ish keeps the record single."""
        record = parse_event("2024-W05:2024-W99:x")
        assert isinstance(record, SingleEvent)
        assert record.description == "2024-W99:x"

    def test_empty_description(self) -> None:
        assert parse_event("2024-W05:").description == ""

    @pytest.mark.parametrize("raw", ["", "garbage", "2024-W05", "Trip:2024-W05", None, 42])
    def test_unparseable(self, raw) -> None:
        assert parse_event(raw) is None

    def test_parse_events_reports_rejects(self) -> None:
        records, rejected = parse_events(["2024-W05:A", "bad", "2024-W06:2024-W07:B"])
        assert [r.description for r in records] == ["A", "B"]
        assert rejected == ["bad"]


class TestSerializeEvent:
    """Test encoding."""

    def test_single(self) -> None:
        event = SingleEvent(week_key="2024-W05", description="Trip")
        assert serialize_event(event) == "2024-W05:Trip"

    def test_range(self) -> None:
        event = RangeEvent(start_week_key="2024-W05", end_week_key="2024-W07", description="Trip")
        assert serialize_event(event) == "2024-W05:2024-W07:Trip"

    @pytest.mark.parametrize(
        "record",
        [
            SingleEvent(week_key="2024-W05", description="Flight: LHR -> JFK"),
            RangeEvent(start_week_key="2024-W05", end_week_key="2024-W07", description="a:b:c"),
            SingleEvent(week_key="2024-W05", description="2024-W06 review"),
        ],
    )
    def test_reparse_preserves_record(self, record) -> None:
        assert parse_event(serialize_event(record)) == record
