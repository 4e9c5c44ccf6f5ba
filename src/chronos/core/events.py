"""Event store: categorized event collections and the fill set.

``TimelineStore`` owns the current ``TimelineSettings`` snapshot. Every
mutation builds a new snapshot through ``_commit()``, logs what changed and
why, and notifies listeners, typically the settings repository so state is
persisted after each change. A failed operation raises before commit and
leaves the snapshot untouched.

Example:
    >>> store = TimelineStore(TimelineSettings(), listeners=[repository.save])
    >>> store.add_event("Travel", RangeEvent(
    ...     start_week_key="2024-W01", end_week_key="2024-W03", description="Trip"))
    >>> find_match(store.settings, "Travel", "2024-W02").description
    'Trip'
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Callable, Iterable

from chronos.core.errors import CategoryNotFoundError, DuplicateNameError, EventValidationError
from chronos.core.models import (
    BUILT_IN_CATEGORIES,
    BUILT_IN_NAMES,
    DEFAULT_CUSTOM_COLOR,
    EventCategory,
    RangeEvent,
    SingleEvent,
    TimelineSettings,
)
from chronos.core.weeks import canonical_week_key, is_week_key, week_key_from_date

logger = logging.getLogger(__name__)

SettingsListener = Callable[[TimelineSettings], Any]


# =============================================================================
# Queries
# =============================================================================


def find_match(
    settings: TimelineSettings, category: str, week_key: str
) -> SingleEvent | RangeEvent | None:
    """First record of ``category`` covering ``week_key``, in collection order."""
    for record in settings.events_for(category):
        if record.covers(week_key):
            return record
    return None


def events_in_week(
    settings: TimelineSettings, week_key: str
) -> list[tuple[EventCategory, SingleEvent | RangeEvent]]:
    """Every ``(category, record)`` covering a week, in precedence order."""
    hits = []
    for category in settings.categories():
        for record in settings.events_for(category.name):
            if record.covers(week_key):
                hits.append((category, record))
    return hits


# =============================================================================
# Form validation
# =============================================================================


def _to_week_key(value: date | datetime | str | None, field: str, article: str = "a") -> str:
    if value is None or value == "":
        raise EventValidationError(f"Please select {article} {field}")
    if isinstance(value, (date, datetime)):
        return week_key_from_date(value)
    value = value.strip()
    if is_week_key(value):
        return value
    try:
        return week_key_from_date(date.fromisoformat(value))
    except ValueError as e:
        raise EventValidationError(f"Invalid {field}: {value!r}") from e


def build_event(
    description: str | None,
    start: date | datetime | str | None,
    end: date | datetime | str | None = None,
    *,
    is_range: bool = False,
) -> SingleEvent | RangeEvent:
    """Validate raw form input and build a record.

    Args:
        description: Event description (required, stripped).
        start: Date, ISO date string or week key of the event (or range start).
        end: Range end; required when ``is_range`` is True.
        is_range: Build a RangeEvent instead of a SingleEvent.

    Raises:
        EventValidationError: If a required field is missing or malformed.
    """
    description = (description or "").strip()
    if not description:
        raise EventValidationError("Please add a description")

    start_key = _to_week_key(start, "date")
    if not is_range:
        return SingleEvent(week_key=start_key, description=description)

    end_key = _to_week_key(end, "end date", "an")
    start_key, end_key = sorted([start_key, end_key], key=_sort_key)
    return RangeEvent(start_week_key=start_key, end_week_key=end_key, description=description)


def _sort_key(week_key: str) -> tuple[int, int]:
    year, week = week_key.split("-W")
    return int(year), int(week)


# =============================================================================
# Store
# =============================================================================


class TimelineStore:
    """Mutation API over an immutable settings snapshot.

    Attributes:
        settings: The current snapshot (read-only property).
    """

    def __init__(
        self,
        settings: TimelineSettings | None = None,
        listeners: Iterable[SettingsListener] | None = None,
    ) -> None:
        self._settings = settings or TimelineSettings()
        self._listeners: list[SettingsListener] = list(listeners or [])

    @property
    def settings(self) -> TimelineSettings:
        return self._settings

    def subscribe(self, listener: SettingsListener) -> None:
        """Call ``listener`` with every new snapshot."""
        self._listeners.append(listener)

    def _commit(self, reason: str, **changes: Any) -> TimelineSettings:
        new_settings = self._settings.evolve(**changes)
        self._settings = new_settings
        logger.info(f"{reason} (changed: {', '.join(sorted(changes))})")
        for listener in self._listeners:
            listener(new_settings)
        return new_settings

    # Categories --------------------------------------------------------------

    def _ensure_name_free(self, name: str, ignore: str | None = None) -> None:
        for category in self._settings.categories():
            if category.name == name and category.name != ignore:
                raise DuplicateNameError(name)

    def add_category(self, name: str, color: str = DEFAULT_CUSTOM_COLOR) -> EventCategory:
        """Create a custom category with an empty collection.

        Raises:
            EventValidationError: If the name is blank.
            DuplicateNameError: If any category already uses the name.
        """
        name = (name or "").strip()
        if not name:
            raise EventValidationError("Please enter a name for the event type")
        self._ensure_name_free(name)

        category = EventCategory(name=name, color=color)
        events = dict(self._settings.events)
        events.setdefault(name, ())
        self._commit(
            f"Added event type '{name}'",
            custom_event_types=(*self._settings.custom_event_types, category),
            events=events,
        )
        return category

    def remove_category(self, name: str) -> bool:
        """Delete a custom category together with all its events.

        Returns:
            False (and no change) for built-in or unknown names.
        """
        if name in BUILT_IN_NAMES:
            logger.warning(f"Refusing to delete built-in event type '{name}'")
            return False
        remaining = tuple(c for c in self._settings.custom_event_types if c.name != name)
        if len(remaining) == len(self._settings.custom_event_types):
            return False

        events = {k: v for k, v in self._settings.events.items() if k != name}
        self._commit(f"Deleted event type '{name}'", custom_event_types=remaining, events=events)
        return True

    def rename_category(
        self, old_name: str, new_name: str, color: str | None = None
    ) -> EventCategory:
        """Rename (and optionally recolor) a custom category.

        Raises:
            CategoryNotFoundError: If ``old_name`` is unknown or built-in.
            EventValidationError: If ``new_name`` is blank.
            DuplicateNameError: If ``new_name`` is used by another category.
        """
        if old_name in BUILT_IN_NAMES:
            raise CategoryNotFoundError(old_name, "is built-in and cannot be edited")
        current = next(
            (c for c in self._settings.custom_event_types if c.name == old_name), None
        )
        if current is None:
            raise CategoryNotFoundError(old_name)

        new_name = (new_name or "").strip()
        if not new_name:
            raise EventValidationError("Please enter a name for the event type")
        self._ensure_name_free(new_name, ignore=old_name)

        updated = EventCategory(name=new_name, color=color or current.color)
        categories = tuple(
            updated if c.name == old_name else c for c in self._settings.custom_event_types
        )
        events = {}
        for key, records in self._settings.events.items():
            events[new_name if key == old_name else key] = records
        events.setdefault(new_name, ())

        self._commit(
            f"Renamed event type '{old_name}' to '{new_name}'",
            custom_event_types=categories,
            events=events,
        )
        return updated

    # Events ------------------------------------------------------------------

    def add_event(
        self,
        category: str,
        record: SingleEvent | RangeEvent,
        color: str | None = None,
    ) -> SingleEvent | RangeEvent:
        """Append a record to a category's collection.

        An unknown category name is registered as a new custom category
        (with ``color`` or the default custom color) before the record is
        added.
        """
        category = (category or "").strip()
        if not category:
            raise EventValidationError("Please choose an event type")

        custom_types = self._settings.custom_event_types
        if not self._settings.has_category(category):
            custom_types = (
                *custom_types,
                EventCategory(name=category, color=color or DEFAULT_CUSTOM_COLOR),
            )

        events = dict(self._settings.events)
        events[category] = (*events.get(category, ()), record)
        self._commit(
            f"Event added to '{category}': {record.description}",
            custom_event_types=custom_types,
            events=events,
        )
        return record

    def remove_event(self, category: str, record: SingleEvent | RangeEvent) -> bool:
        """Remove the first record equal to ``record`` from a collection."""
        records = list(self._settings.events_for(category))
        if record not in records:
            return False
        records.remove(record)
        events = dict(self._settings.events)
        events[category] = tuple(records)
        self._commit(f"Event removed from '{category}': {record.description}", events=events)
        return True

    def clear_category(self, name: str) -> int:
        """Drop every event of one category, keeping the category.

        Returns:
            Number of events removed.
        """
        if not self._settings.has_category(name):
            raise CategoryNotFoundError(name)
        removed = len(self._settings.events_for(name))
        events = dict(self._settings.events)
        events[name] = ()
        self._commit(f"Cleared all '{name}' events", events=events)
        return removed

    def clear_custom_events(self) -> int:
        """Empty every custom category's collection."""
        events = {
            c.name: self._settings.events.get(c.name, ()) for c in BUILT_IN_CATEGORIES
        }
        removed = 0
        for category in self._settings.custom_event_types:
            removed += len(self._settings.events_for(category.name))
            events[category.name] = ()
        self._commit("Cleared all custom events", events=events)
        return removed

    # Filled weeks ------------------------------------------------------------

    @staticmethod
    def _canonical(week_key: str) -> str:
        canonical = canonical_week_key(week_key)
        if canonical is None:
            raise EventValidationError(f"Invalid week key: {week_key!r}")
        return canonical

    def mark_filled(self, week_key: str) -> bool:
        """Add a week to the filled set, stored in zero-padded form.

        Returns:
            False if the week was already filled.
        """
        week_key = self._canonical(week_key)
        if self._settings.is_filled(week_key):
            return False
        self._commit(
            f"Marked week {week_key} as filled",
            filled_weeks=(*self._settings.filled_weeks, week_key),
        )
        return True

    def toggle_filled(self, week_key: str) -> bool:
        """Flip a week's filled state.

        Returns:
            The new filled state.
        """
        week_key = self._canonical(week_key)
        if not self._settings.is_filled(week_key):
            return self.mark_filled(week_key)
        self._commit(
            f"Cleared filled mark on week {week_key}",
            filled_weeks=tuple(k for k in self._settings.filled_weeks if k != week_key),
        )
        return False

    # Settings ----------------------------------------------------------------

    def update_settings(self, reason: str = "Settings updated", **changes: Any) -> TimelineSettings:
        """Apply scalar setting changes (colors, birthday, zoom, ...)."""
        if not changes:
            return self._settings
        return self._commit(reason, **changes)
