"""Auto-fill: mark the current week as filled on the configured weekday.

The check is idempotent. Once today's week key is in the filled set, later
checks in the same week return False. A timer can therefore call it as often
as it likes (at least once per day) and each week is filled at most once.
"""

from __future__ import annotations

import logging
import time
from datetime import date, datetime
from typing import Callable

from pydantic import BaseModel, ConfigDict

from chronos.core.events import TimelineStore
from chronos.core.models import TimelineSettings
from chronos.core.weeks import week_key_from_date

logger = logging.getLogger(__name__)

DEFAULT_CHECK_INTERVAL_SECONDS = 60 * 60

WEEKDAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")


def weekday_index(value: date | datetime) -> int:
    """Day of week with Sunday=0 ... Saturday=6, as stored in settings."""
    return value.isoweekday() % 7


class AutoFillDecision(BaseModel):
    """Outcome of an auto-fill check.

    Attributes:
        should_fill: Whether the caller should add ``week_key`` now.
        week_key: Today's week key.
        reason: Short explanation, used for logging and the CLI.
    """

    model_config = ConfigDict(frozen=True)

    should_fill: bool
    week_key: str
    reason: str

    def __bool__(self) -> bool:
        return self.should_fill


def should_auto_fill_today(settings: TimelineSettings, now: date | datetime) -> AutoFillDecision:
    """Decide whether today's week should be marked filled."""
    week_key = week_key_from_date(now)

    if not settings.enable_auto_fill:
        return AutoFillDecision(should_fill=False, week_key=week_key, reason="auto-fill disabled")

    if weekday_index(now) != settings.auto_fill_day:
        return AutoFillDecision(
            should_fill=False,
            week_key=week_key,
            reason=f"today is not {WEEKDAY_NAMES[settings.auto_fill_day]}",
        )

    if settings.is_filled(week_key):
        return AutoFillDecision(
            should_fill=False, week_key=week_key, reason=f"{week_key} already filled"
        )

    return AutoFillDecision(should_fill=True, week_key=week_key, reason=f"filling {week_key}")


def apply_auto_fill(store: TimelineStore, now: date | datetime) -> bool:
    """Run one check and add today's week when due.

    Returns:
        True if a week was added.
    """
    decision = should_auto_fill_today(store.settings, now)
    logger.debug(f"Auto-fill check: {decision.reason}")
    if not decision:
        return False
    return store.mark_filled(decision.week_key)


class AutoFillScheduler:
    """Re-runs the auto-fill check on a fixed interval.

    Args:
        store: Store to fill weeks in.
        interval_seconds: Delay between checks; must not exceed one day for
            the at-most-once-per-day guarantee to hold.
        clock: Returns the current time.
        sleep: Blocks for the given number of seconds.
    """

    def __init__(
        self,
        store: TimelineStore,
        interval_seconds: float = DEFAULT_CHECK_INTERVAL_SECONDS,
        clock: Callable[[], datetime] = datetime.now,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if interval_seconds <= 0 or interval_seconds > 24 * 60 * 60:
            raise ValueError(
                f"interval_seconds must be between 0 and 86400, got {interval_seconds}"
            )
        self.store = store
        self.interval_seconds = interval_seconds
        self._clock = clock
        self._sleep = sleep
        self.fills = 0

    def tick(self) -> bool:
        """Run a single check now."""
        filled = apply_auto_fill(self.store, self._clock())
        if filled:
            self.fills += 1
        return filled

    def run(self, max_ticks: int | None = None) -> int:
        """Check, sleep, repeat.

        Args:
            max_ticks: Stop after this many checks; None runs until interrupted.

        Returns:
            Number of weeks filled during the run.
        """
        ticks = 0
        logger.info(f"Auto-fill scheduler started (every {self.interval_seconds:.0f}s)")
        try:
            while max_ticks is None or ticks < max_ticks:
                self.tick()
                ticks += 1
                if max_ticks is None or ticks < max_ticks:
                    self._sleep(self.interval_seconds)
        except KeyboardInterrupt:
            logger.info("Auto-fill scheduler stopped")
        return self.fills
