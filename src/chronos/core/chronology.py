"""Date arithmetic for the life-in-weeks grid.

The grid has one column per year of life and 52 rows per column. Cell
``(year, week)`` sits at ordinal ``year * 52 + week`` from birth, and its date
is the birthday plus that many weeks.

This module also derives the positions of the rails drawn around the grid:
decade markers (top), week markers (left) and month markers.

Example:
    >>> full_week_age(date(2000, 1, 1), date(2000, 1, 8))
    1
    >>> year_position(10, cell_size=16, cell_gap=2)
    186
"""

from __future__ import annotations

import calendar
import logging
from datetime import date, datetime, timedelta

from pydantic import BaseModel, ConfigDict, Field

from chronos.core.models import AxisMarker, MarkerFrequency, MonthMarker
from chronos.core.weeks import canonical_week_key, date_from_week_key, week_key_from_date

logger = logging.getLogger(__name__)

WEEKS_PER_YEAR = 52
DAYS_PER_WEEK = 7
DEFAULT_DECADE_GAP = 8

_WEEK = timedelta(days=DAYS_PER_WEEK)


# =============================================================================
# Layout
# =============================================================================


class GridLayout(BaseModel):
    """Pixel metrics of the grid at zoom 1.0.

    Attributes:
        cell_size: Edge length of a cell.
        cell_gap: Gap between neighbouring cells.
        decade_gap: Gap inserted after every tenth column.
        left_offset: Space reserved for the week rail.
        top_offset: Space reserved for the decade rail.
    """

    model_config = ConfigDict(frozen=True)

    cell_size: float = Field(default=16, gt=0)
    cell_gap: float = Field(default=2, ge=0)
    decade_gap: float = Field(default=DEFAULT_DECADE_GAP, ge=0)
    left_offset: float = Field(default=50, ge=0)
    top_offset: float = Field(default=50, ge=0)

    def scaled(self, zoom: float) -> GridLayout:
        """Cell metrics multiplied by ``zoom``; rail offsets unchanged."""
        return self.model_copy(
            update={
                "cell_size": self.cell_size * zoom,
                "cell_gap": self.cell_gap * zoom,
                "decade_gap": self.decade_gap * zoom,
            }
        )


# =============================================================================
# Ages and indices
# =============================================================================


def _as_datetime(value: date | datetime) -> datetime:
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    return datetime(value.year, value.month, value.day)


def full_week_age(birthday: date | datetime, as_of: date | datetime) -> int:
    """Number of complete weeks between ``birthday`` and ``as_of``.

    Negative when ``as_of`` precedes the birthday; the resolver treats those
    indices as future.
    """
    elapsed = _as_datetime(as_of) - _as_datetime(birthday)
    return elapsed // _WEEK


def cell_index(year_offset: int, week_offset: int) -> int:
    """Ordinal position of a grid cell counted from birth."""
    return year_offset * WEEKS_PER_YEAR + week_offset


def cell_date(birthday: date, week_index: int) -> date:
    """Date a grid cell stands for (birthday plus ``week_index`` weeks)."""
    return birthday + timedelta(days=week_index * DAYS_PER_WEEK)


def cell_week_key(birthday: date, week_index: int) -> str:
    return week_key_from_date(cell_date(birthday, week_index))


def week_index_for_key(birthday: date, week_key: str) -> int | None:
    """Grid index whose cell falls in ``week_key``, or None if malformed."""
    monday = date_from_week_key(week_key)
    if monday is None:
        return None
    index = full_week_age(birthday, monday)
    target = canonical_week_key(week_key)
    for candidate in (index, index + 1):
        try:
            if cell_week_key(birthday, candidate) == target:
                return candidate
        except OverflowError:
            break
    return index


def week_keys_between(start: date | datetime, end: date | datetime) -> list[str]:
    """Every week key touched by the closed interval ``[start, end]``.

    The arguments may come in either order. Both endpoints' keys are always
    included and consecutive duplicates are dropped, so the result has at
    least one element.
    """
    first = start.date() if isinstance(start, datetime) else start
    last = end.date() if isinstance(end, datetime) else end
    if first > last:
        first, last = last, first

    keys: list[str] = []
    current = first
    while current <= last:
        key = week_key_from_date(current)
        if not keys or keys[-1] != key:
            keys.append(key)
        current += _WEEK

    end_key = week_key_from_date(last)
    if keys[-1] != end_key:
        keys.append(end_key)
    return keys


# =============================================================================
# Positions and markers
# =============================================================================


def year_position(
    year_index: int,
    cell_size: float,
    cell_gap: float,
    decade_gap: float = DEFAULT_DECADE_GAP,
) -> float:
    """Horizontal pixel offset of a year column.

    Each completed decade widens the gap before the next column from
    ``cell_gap`` to ``decade_gap``. Renderers must place columns with this
    function and nothing else.
    """
    return year_index * (cell_size + cell_gap) + (year_index // 10) * (decade_gap - cell_gap)


def week_position(week_offset: int, cell_size: float, cell_gap: float) -> float:
    """Vertical pixel offset of a week row."""
    return week_offset * (cell_size + cell_gap)


def decade_markers(lifespan: int, layout: GridLayout | None = None) -> list[AxisMarker]:
    """Labels 0, 10, 20, ... up to ``lifespan``, centred over their column."""
    layout = layout or GridLayout()
    markers = []
    for decade in range(0, lifespan + 1, 10):
        left = year_position(decade, layout.cell_size, layout.cell_gap, layout.decade_gap)
        markers.append(AxisMarker(label=str(decade), position=left + layout.cell_size / 2))
    return markers


def week_markers(layout: GridLayout | None = None) -> list[AxisMarker]:
    """Labels 10, 20, ... 50 beside the rows, lifted by one row."""
    layout = layout or GridLayout()
    step = layout.cell_size + layout.cell_gap
    return [
        AxisMarker(label=str(week), position=week * step + layout.cell_size / 2 - step)
        for week in range(10, WEEKS_PER_YEAR, 10)
    ]


def _add_years(d: date, years: int) -> date:
    try:
        return d.replace(year=d.year + years)
    except ValueError:
        # Feb 29 in a non-leap target year
        return d.replace(year=d.year + years, day=28)


def _passes_frequency(month: int, frequency: MarkerFrequency) -> bool:
    if month == 1:
        return True
    if frequency == MarkerFrequency.ALL:
        return True
    if frequency == MarkerFrequency.QUARTER:
        return (month - 1) % 3 == 0
    if frequency == MarkerFrequency.HALF_YEAR:
        return (month - 1) % 6 == 0
    return False


def _next_month_start(d: date) -> date:
    if d.month == 12:
        return date(d.year + 1, 1, 1)
    return date(d.year, d.month + 1, 1)


def month_markers(
    birthday: date,
    total_years: int,
    frequency: MarkerFrequency | str = MarkerFrequency.ALL,
) -> list[MonthMarker]:
    """Month rail markers from birth up to ``birthday + total_years`` (exclusive).

    One marker per month in range that passes the frequency filter. The birth
    month is filtered like any other and January passes every filter. Markers
    falling in the birthday's calendar month carry ``is_birth_month``.
    Each marker sits at ``floor(days_since_birth / 7)``.
    """
    frequency = MarkerFrequency(frequency)
    end = _add_years(birthday, total_years)

    markers: dict[tuple[int, int], MonthMarker] = {}
    current = birthday
    while current < end:
        key = (current.year, current.month)
        if key not in markers and _passes_frequency(current.month, frequency):
            markers[key] = MonthMarker(
                week_index=(current - birthday).days // DAYS_PER_WEEK,
                label=calendar.month_abbr[current.month],
                is_first_of_year=current.month == 1,
                is_birth_month=current.month == birthday.month,
                full_label=f"{calendar.month_name[current.month]} {current.year}",
            )
        current = _next_month_start(current)

    return sorted(markers.values(), key=lambda m: m.week_index)
