"""Core week model for the ChronOS life timeline.

This package holds everything that decides what a grid cell shows:

- **weeks**: ``YYYY-W##`` week key codec (ISO-8601)
- **chronology**: week ages, week ranges, layout positions, rail markers
- **models** / **records**: typed settings and event records, wire format
- **events**: TimelineStore mutation API and event matching
- **resolver**: per-cell bucket, event, fill and highlight resolution
- **autofill**: weekly auto-fill decision and scheduler
- **notes**: week and event note templates

Example:
    >>> from chronos.core import TimelineSettings, TimelineStore, resolve_cell
    >>> store = TimelineStore(TimelineSettings(birthday=date(1990, 5, 1)))
    >>> store.add_event("Travel", build_event("Lisbon", "2024-06-03"))
    >>> resolve_cell(store.settings, "2024-W23", 1778, now=datetime.now()).tooltip
    'Lisbon'
"""

from chronos.core.autofill import (
    AutoFillDecision,
    AutoFillScheduler,
    apply_auto_fill,
    should_auto_fill_today,
)
from chronos.core.chronology import (
    GridLayout,
    cell_date,
    cell_index,
    cell_week_key,
    decade_markers,
    full_week_age,
    month_markers,
    week_keys_between,
    week_markers,
    year_position,
)
from chronos.core.errors import (
    CategoryNotFoundError,
    ChronosError,
    DuplicateNameError,
    EventValidationError,
)
from chronos.core.events import TimelineStore, build_event, events_in_week, find_match
from chronos.core.models import (
    BUILT_IN_CATEGORIES,
    AxisMarker,
    CellBucket,
    CellDescriptor,
    EventCategory,
    EventKind,
    MarkerFrequency,
    MonthMarker,
    RangeEvent,
    SingleEvent,
    TimelineSettings,
)
from chronos.core.notes import NoteSpec, NoteWriter, event_note, week_note
from chronos.core.records import parse_event, serialize_event
from chronos.core.resolver import (
    CategoryResolver,
    category_resolvers,
    resolve_cell,
    resolve_grid,
)
from chronos.core.weeks import (
    date_from_week_key,
    date_range_label,
    parse_week_key,
    week_key_from_date,
)

__all__ = [
    # Week keys
    "week_key_from_date",
    "date_from_week_key",
    "date_range_label",
    "parse_week_key",
    # Chronology
    "GridLayout",
    "full_week_age",
    "week_keys_between",
    "year_position",
    "month_markers",
    "decade_markers",
    "week_markers",
    "cell_index",
    "cell_date",
    "cell_week_key",
    # Models
    "TimelineSettings",
    "EventCategory",
    "EventKind",
    "SingleEvent",
    "RangeEvent",
    "CellBucket",
    "CellDescriptor",
    "MarkerFrequency",
    "MonthMarker",
    "AxisMarker",
    "BUILT_IN_CATEGORIES",
    "parse_event",
    "serialize_event",
    # Store
    "TimelineStore",
    "build_event",
    "find_match",
    "events_in_week",
    # Resolver
    "CategoryResolver",
    "category_resolvers",
    "resolve_cell",
    "resolve_grid",
    # Auto-fill
    "AutoFillDecision",
    "AutoFillScheduler",
    "should_auto_fill_today",
    "apply_auto_fill",
    # Notes
    "NoteSpec",
    "NoteWriter",
    "week_note",
    "event_note",
    # Errors
    "ChronosError",
    "DuplicateNameError",
    "CategoryNotFoundError",
    "EventValidationError",
]
