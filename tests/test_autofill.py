"""Tests for the weekly auto-fill check and its scheduler."""

from datetime import date, datetime, timedelta

import pytest

from chronos.core.autofill import (
    AutoFillScheduler,
    apply_auto_fill,
    should_auto_fill_today,
    weekday_index,
)
from chronos.core.events import TimelineStore
from chronos.core.models import TimelineSettings

MONDAY = datetime(2024, 1, 8, 9, 0)
TUESDAY = datetime(2024, 1, 9, 9, 0)
SUNDAY = datetime(2024, 1, 14, 9, 0)


class TestDecision:
    """Test should_auto_fill_today()."""

    def test_weekday_index_starts_on_sunday(self) -> None:
        assert weekday_index(SUNDAY) == 0
        assert weekday_index(MONDAY) == 1
        assert weekday_index(date(2024, 1, 13)) == 6

    def test_fill_on_configured_day(self) -> None:
        decision = should_auto_fill_today(TimelineSettings(auto_fill_day=1), MONDAY)
        assert decision
        assert decision.week_key == "2024-W02"

    def test_other_day(self) -> None:
        decision = should_auto_fill_today(TimelineSettings(auto_fill_day=1), TUESDAY)
        assert not decision
        assert decision.reason == "today is not Monday"

    def test_disabled(self) -> None:
        settings = TimelineSettings(enable_auto_fill=False, auto_fill_day=1)
        assert not should_auto_fill_today(settings, MONDAY)

    def test_sunday_belongs_to_iso_week(self) -> None:
        """Sunday closes the ISO week that started the Monday before."""
        decision = should_auto_fill_today(TimelineSettings(auto_fill_day=0), SUNDAY)
        assert decision.week_key == "2024-W02"

    def test_already_filled(self) -> None:
        settings = TimelineSettings(auto_fill_day=1, filled_weeks=("2024-W02",))
        assert "already filled" in should_auto_fill_today(settings, MONDAY).reason


class TestApplyAutoFill:
    def test_fills_once(self) -> None:
        store = TimelineStore(TimelineSettings(auto_fill_day=1))
        assert apply_auto_fill(store, MONDAY) is True
        assert apply_auto_fill(store, MONDAY + timedelta(hours=5)) is False
        assert store.settings.filled_weeks == ("2024-W02",)

    def test_next_week_fills_again(self) -> None:
        store = TimelineStore(TimelineSettings(auto_fill_day=1))
        apply_auto_fill(store, MONDAY)
        apply_auto_fill(store, MONDAY + timedelta(days=7))
        assert store.settings.filled_weeks == ("2024-W02", "2024-W03")


class TestScheduler:
    """Test the polling loop with an injected clock and sleep."""

    def test_interval_limits(self) -> None:
        store = TimelineStore()
        with pytest.raises(ValueError):
            AutoFillScheduler(store, interval_seconds=0)
        with pytest.raises(ValueError):
            AutoFillScheduler(store, interval_seconds=90000)

    def test_run_fills_at_most_once_per_week(self) -> None:
        times = iter([MONDAY, MONDAY + timedelta(hours=1), TUESDAY, MONDAY + timedelta(days=7)])
        sleeps: list[float] = []
        store = TimelineStore(TimelineSettings(auto_fill_day=1))
        scheduler = AutoFillScheduler(
            store, interval_seconds=3600, clock=lambda: next(times), sleep=sleeps.append
        )

        assert scheduler.run(max_ticks=4) == 2
        assert sleeps == [3600, 3600, 3600]
        assert store.settings.filled_weeks == ("2024-W02", "2024-W03")

    def test_keyboard_interrupt_stops_run(self) -> None:
        def interrupt(_seconds: float) -> None:
            raise KeyboardInterrupt

        store = TimelineStore(TimelineSettings(auto_fill_day=1))
        scheduler = AutoFillScheduler(store, clock=lambda: MONDAY, sleep=interrupt)
        assert scheduler.run() == 1

    def test_tick_counts_fills(self) -> None:
        store = TimelineStore(TimelineSettings(auto_fill_day=1))
        scheduler = AutoFillScheduler(store, clock=lambda: MONDAY)
        assert scheduler.tick() is True
        assert scheduler.tick() is False
        assert scheduler.fills == 1
