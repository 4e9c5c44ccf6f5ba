"""Cell resolver: decides the color and label of every grid cell.

Each cell is resolved independently and without side effects:

1. Temporal bucket from the cell's index versus the current age in weeks.
2. Event overlay from an explicit, ordered list of category resolvers.
   Built-ins come first in fixed order, then custom categories in stored
   order. The first hit wins and its category color replaces the bucket
   color.
3. Filled overlay. The filled color applies only when no event matched. The
   ``is_filled`` flag (drawn as a border) is reported either way.
4. Upcoming highlight for matched events whose week starts strictly within
   the next 180 days.

Example:
    >>> cell = resolve_cell(settings, "2024-W02", week_index=1070, now=datetime.now())
    >>> cell.bucket, cell.background_color
    (<CellBucket.PAST: 'past'>, '#44cf6e')
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Iterator

from chronos.core.chronology import WEEKS_PER_YEAR, cell_index, cell_week_key, full_week_age
from chronos.core.events import find_match
from chronos.core.models import (
    EDUCATION_CAREER,
    MAJOR_LIFE,
    RELATIONSHIP,
    TRAVEL,
    CellBucket,
    CellDescriptor,
    EventCategory,
    RangeEvent,
    SingleEvent,
    TimelineSettings,
)
from chronos.core.weeks import date_from_week_key, date_range_label

logger = logging.getLogger(__name__)

# Six months, approximated as 6 * 30 days
UPCOMING_WINDOW_DAYS = 6 * 30


class CategoryResolver:
    """Matches one category's records against a week key."""

    def __init__(self, category: EventCategory) -> None:
        self.category = category

    def match(self, settings: TimelineSettings, week_key: str) -> SingleEvent | RangeEvent | None:
        return find_match(settings, self.category.name, week_key)

    def tooltip(self, record: SingleEvent | RangeEvent) -> str:
        description = record.description or self.category.name
        if self.category.built_in:
            return description
        return f"{description} ({self.category.name})"

    def __repr__(self) -> str:
        return f"CategoryResolver({self.category.name!r})"


def category_resolvers(settings: TimelineSettings) -> list[CategoryResolver]:
    """Resolvers in precedence order: built-ins, then custom categories."""
    return [CategoryResolver(category) for category in settings.categories()]


def temporal_bucket(week_index: int, age_in_weeks: int) -> CellBucket:
    if week_index < age_in_weeks:
        return CellBucket.PAST
    if week_index == age_in_weeks:
        return CellBucket.PRESENT
    return CellBucket.FUTURE


def _as_date(value: date | datetime) -> date:
    return value.date() if isinstance(value, datetime) else value


def is_upcoming(
    week_key: str,
    now: date | datetime,
    window_days: int = UPCOMING_WINDOW_DAYS,
) -> bool:
    """True when the week's Monday lies strictly between today and today + window."""
    week_start = date_from_week_key(week_key)
    if week_start is None:
        return False
    today = _as_date(now)
    return today < week_start < today + timedelta(days=window_days)


def resolve_cell(
    settings: TimelineSettings,
    week_key: str,
    week_index: int,
    now: date | datetime,
    *,
    resolvers: list[CategoryResolver] | None = None,
    window_days: int = UPCOMING_WINDOW_DAYS,
) -> CellDescriptor:
    """Resolve one cell.

    Args:
        settings: Settings snapshot to read colors, events and fills from.
        week_key: The cell's week key.
        week_index: The cell's ordinal from birth (``year * 52 + week``).
        now: Reference time for the bucket and the upcoming window.
        resolvers: Precomputed ``category_resolvers(settings)``; pass it when
            resolving many cells against the same snapshot.
        window_days: Length of the upcoming-highlight window.

    Returns:
        A CellDescriptor for the renderer.
    """
    age_in_weeks = full_week_age(settings.birthday, now)
    bucket = temporal_bucket(week_index, age_in_weeks)
    background = {
        CellBucket.PAST: settings.past_cell_color,
        CellBucket.PRESENT: settings.present_cell_color,
        CellBucket.FUTURE: settings.future_cell_color,
    }[bucket]

    if resolvers is None:
        resolvers = category_resolvers(settings)

    matched: tuple[CategoryResolver, SingleEvent | RangeEvent] | None = None
    for resolver in resolvers:
        record = resolver.match(settings, week_key)
        if record is not None:
            matched = (resolver, record)
            break

    is_filled = settings.is_filled(week_key)
    tooltip = f"{week_key} ({date_range_label(week_key, settings.start_week_on_monday)})"

    if matched is None:
        return CellDescriptor(
            week_key=week_key,
            week_index=week_index,
            bucket=bucket,
            background_color=settings.filled_week_color if is_filled else background,
            tooltip=tooltip,
            is_filled=is_filled,
        )

    resolver, record = matched
    return CellDescriptor(
        week_key=week_key,
        week_index=week_index,
        bucket=bucket,
        background_color=resolver.category.color,
        event_color=resolver.category.color,
        event_description=record.description,
        event_category=resolver.category.name,
        tooltip=resolver.tooltip(record),
        is_filled=is_filled,
        is_upcoming_highlight=is_upcoming(week_key, now, window_days),
    )


def resolve_grid(
    settings: TimelineSettings,
    now: date | datetime,
    *,
    window_days: int = UPCOMING_WINDOW_DAYS,
) -> Iterator[CellDescriptor]:
    """Resolve every cell of the grid, column by column (year, then week)."""
    resolvers = category_resolvers(settings)
    for year in range(settings.lifespan):
        for week in range(WEEKS_PER_YEAR):
            index = cell_index(year, week)
            yield resolve_cell(
                settings,
                cell_week_key(settings.birthday, index),
                index,
                now,
                resolvers=resolvers,
                window_days=window_days,
            )


def legend(settings: TimelineSettings) -> list[tuple[str, str]]:
    """``(label, color)`` pairs for the legend below the grid."""
    items = [
        ("Major Life Events", MAJOR_LIFE.color),
        ("Travel", TRAVEL.color),
        ("Relationships", RELATIONSHIP.color),
        ("Education/Career", EDUCATION_CAREER.color),
        ("Upcoming Planned Event", settings.future_cell_color),
    ]
    items.extend((c.name, c.color) for c in settings.custom_event_types)
    return items
