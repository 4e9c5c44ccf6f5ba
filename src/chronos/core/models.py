"""Core data models for the ChronOS life timeline.

Models follow the shape of the persisted plugin data:
1. EVENTS (SingleEvent, RangeEvent, EventCategory)
2. SETTINGS (TimelineSettings, the aggregate root)
3. DERIVED VIEWS (CellDescriptor, MonthMarker, AxisMarker)

TimelineSettings is an immutable snapshot. Changes go through
``TimelineSettings.evolve()`` (or the TimelineStore wrapping it), which
re-validates the full record and returns a new snapshot.
"""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from chronos.core.weeks import canonical_week_key, parse_week_key


# =============================================================================
# Enums
# =============================================================================


class EventKind(str, Enum):
    """Shape of an event record."""

    SINGLE = "single"
    RANGE = "range"


class CellBucket(str, Enum):
    """Temporal bucket of a grid cell relative to the current age in weeks."""

    PAST = "past"
    PRESENT = "present"
    FUTURE = "future"


class MarkerFrequency(str, Enum):
    """Which month starts get a marker on the month rail.

    Attributes:
        ALL: Every month.
        QUARTER: January, April, July, October.
        HALF_YEAR: January and July.
        YEAR: January only.
    """

    ALL = "all"
    QUARTER = "quarter"
    HALF_YEAR = "half-year"
    YEAR = "year"


# =============================================================================
# Event records
# =============================================================================


def _validate_key(value: str) -> str:
    canonical = canonical_week_key(value)
    if canonical is None:
        raise ValueError(f"Week key must look like YYYY-W##, got {value!r}")
    return canonical


class SingleEvent(BaseModel):
    """An event occupying exactly one week."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["single"] = EventKind.SINGLE.value
    week_key: str
    description: str

    @field_validator("week_key")
    @classmethod
    def validate_week_key(cls, v: str) -> str:
        return _validate_key(v)

    @property
    def anchor_week_key(self) -> str:
        """Week the event's note and highlight are attached to."""
        return self.week_key

    def covers(self, week_key: str) -> bool:
        """Same ``(year, week)`` pair, so padding differences do not matter."""
        cell = parse_week_key(week_key)
        return cell is not None and cell == parse_week_key(self.week_key)


class RangeEvent(BaseModel):
    """An event spanning an inclusive range of weeks."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["range"] = EventKind.RANGE.value
    start_week_key: str
    end_week_key: str
    description: str

    @field_validator("start_week_key", "end_week_key")
    @classmethod
    def validate_week_keys(cls, v: str) -> str:
        return _validate_key(v)

    @property
    def anchor_week_key(self) -> str:
        return self.start_week_key

    def covers(self, week_key: str) -> bool:
        """Inclusive interval membership comparing ``(year, week)`` pairs."""
        cell = parse_week_key(week_key)
        if cell is None:
            return False
        start = parse_week_key(self.start_week_key)
        end = parse_week_key(self.end_week_key)
        cell_year, cell_week = cell
        start_year, start_week = start
        end_year, end_week = end
        after_start = cell_year > start_year or (
            cell_year == start_year and cell_week >= start_week
        )
        before_end = cell_year < end_year or (cell_year == end_year and cell_week <= end_week)
        return after_start and before_end


EventRecord = Annotated[Union[SingleEvent, RangeEvent], Field(discriminator="kind")]


# =============================================================================
# Categories
# =============================================================================


class EventCategory(BaseModel):
    """A named, colored grouping of events.

    ``built_in`` is derived from identity and never persisted.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    color: str
    built_in: bool = Field(default=False, exclude=True)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Event type name must not be empty")
        return v


MAJOR_LIFE = EventCategory(name="Major Life", color="#4CAF50", built_in=True)
TRAVEL = EventCategory(name="Travel", color="#2196F3", built_in=True)
RELATIONSHIP = EventCategory(name="Relationship", color="#E91E63", built_in=True)
EDUCATION_CAREER = EventCategory(name="Education/Career", color="#9C27B0", built_in=True)

# Precedence order for cell styling
BUILT_IN_CATEGORIES: tuple[EventCategory, ...] = (
    MAJOR_LIFE,
    TRAVEL,
    RELATIONSHIP,
    EDUCATION_CAREER,
)
BUILT_IN_NAMES = frozenset(c.name for c in BUILT_IN_CATEGORIES)

DEFAULT_CUSTOM_COLOR = "#FF9800"


# =============================================================================
# Settings aggregate
# =============================================================================


SETTINGS_SCHEMA_VERSION = 2


class TimelineSettings(BaseModel):
    """Complete timeline state: birthday, colors, events and fill state.

    Field aliases are the camelCase names the settings file uses, so
    ``model_dump(by_alias=True)`` yields the persisted shape for scalar
    fields. Events are stored typed; ``chronos.storage`` converts them to the
    string wire format.

    Example:
        >>> settings = TimelineSettings(birthday=date(1990, 1, 1))
        >>> settings = settings.evolve(lifespan=100)
    """

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )

    birthday: date = date(2003, 7, 18)
    lifespan: int = Field(default=90, ge=50, le=120)
    default_view: str = "weeks"

    past_cell_color: str = "#44cf6e"
    present_cell_color: str = "#a882ff"
    future_cell_color: str = "#d8e2e6"

    custom_event_types: tuple[EventCategory, ...] = ()
    events: dict[str, tuple[EventRecord, ...]] = Field(default_factory=dict)

    quote: str = "the only true luxury is time."
    notes_folder: str = ""

    enable_auto_fill: bool = True
    auto_fill_day: int = Field(default=1, ge=0, le=6)
    """Day of week to auto-fill on, Sunday=0 ... Saturday=6"""

    enable_manual_fill: bool = False
    filled_weeks: tuple[str, ...] = ()
    filled_week_color: str = "#8bc34a"

    show_decade_markers: bool = True
    show_week_markers: bool = True
    show_month_markers: bool = True
    show_birthday_marker: bool = True
    month_marker_frequency: MarkerFrequency = MarkerFrequency.ALL

    zoom_level: float = Field(default=1.0, ge=0.5, le=3.0)
    start_week_on_monday: bool = True

    schema_version: int = SETTINGS_SCHEMA_VERSION

    @field_validator("filled_weeks", mode="before")
    @classmethod
    def dedupe_filled_weeks(cls, v: Any) -> Any:
        """Canonicalize keys, keep the first occurrence of each, drop malformed ones."""
        if isinstance(v, (list, tuple, set, frozenset)):
            seen: dict[str, None] = {}
            for key in v:
                canonical = canonical_week_key(key)
                if canonical is not None:
                    seen.setdefault(canonical, None)
            return tuple(seen)
        return v

    @field_validator("custom_event_types")
    @classmethod
    def validate_unique_names(
        cls, v: tuple[EventCategory, ...]
    ) -> tuple[EventCategory, ...]:
        names = [c.name for c in v]
        for name in names:
            if name in BUILT_IN_NAMES:
                raise ValueError(f"Custom event type shadows built-in type '{name}'")
        if len(names) != len(set(names)):
            raise ValueError("Custom event type names must be unique")
        return tuple(c.model_copy(update={"built_in": False}) for c in v)

    def evolve(self, **changes: Any) -> TimelineSettings:
        """Return a new, fully validated snapshot with ``changes`` applied."""
        data = {name: getattr(self, name) for name in type(self).model_fields}
        data.update(changes)
        return type(self).model_validate(data)

    # Queries -----------------------------------------------------------------

    def categories(self) -> list[EventCategory]:
        """All categories in precedence order: built-ins, then custom."""
        return [*BUILT_IN_CATEGORIES, *self.custom_event_types]

    def get_category(self, name: str) -> EventCategory | None:
        for category in self.categories():
            if category.name == name:
                return category
        return None

    def has_category(self, name: str) -> bool:
        return self.get_category(name) is not None

    def events_for(self, name: str) -> tuple[SingleEvent | RangeEvent, ...]:
        return self.events.get(name, ())

    def is_filled(self, week_key: str) -> bool:
        return canonical_week_key(week_key) in self.filled_weeks


# =============================================================================
# Derived views for the renderer
# =============================================================================


class CellDescriptor(BaseModel):
    """What the renderer needs to draw one grid cell."""

    model_config = ConfigDict(frozen=True)

    week_key: str
    week_index: int
    bucket: CellBucket
    background_color: str
    event_color: str | None = None
    event_description: str | None = None
    event_category: str | None = None
    tooltip: str = ""
    is_filled: bool = False
    is_upcoming_highlight: bool = False

    @property
    def has_event(self) -> bool:
        return self.event_category is not None


class MonthMarker(BaseModel):
    """A month label on the month rail."""

    model_config = ConfigDict(frozen=True)

    week_index: int
    label: str
    is_first_of_year: bool = False
    is_birth_month: bool = False
    full_label: str


class AxisMarker(BaseModel):
    """A decade or week label positioned in pixels along one axis."""

    model_config = ConfigDict(frozen=True)

    label: str
    position: float
