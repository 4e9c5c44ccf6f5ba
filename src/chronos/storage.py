"""Settings persistence.

Reads and writes the timeline settings as JSON in the plugin's camelCase
schema, so existing ``data.json`` files load unchanged:

    {
      "birthday": "1990-01-01",
      "lifespan": 90,
      "greenEvents": ["2012-W36:Graduation"],
      "blueEvents": ["2019-W27:2019-W29:Road trip"],
      "customEventTypes": [{"name": "Sport", "color": "#FF9800"}],
      "customEvents": {"Sport": ["2021-W10:Marathon"]},
      "filledWeeks": ["2024-W02"],
      ...
    }

Loading merges the stored record over the defaults once, so every field is
populated. Fields that fail validation fall back to their default with a
warning; unknown keys are ignored. I/O failures are logged and reported
through return values. They never raise into the caller.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from chronos.core.models import (
    BUILT_IN_NAMES,
    DEFAULT_CUSTOM_COLOR,
    EDUCATION_CAREER,
    MAJOR_LIFE,
    RELATIONSHIP,
    SETTINGS_SCHEMA_VERSION,
    TRAVEL,
    TimelineSettings,
)
from chronos.core.records import parse_events, serialize_event

logger = logging.getLogger(__name__)

# Legacy per-color keys of the built-in collections
BUILT_IN_EVENT_KEYS = {
    "greenEvents": MAJOR_LIFE.name,
    "blueEvents": TRAVEL.name,
    "pinkEvents": RELATIONSHIP.name,
    "purpleEvents": EDUCATION_CAREER.name,
}
CUSTOM_TYPES_KEY = "customEventTypes"
CUSTOM_EVENTS_KEY = "customEvents"
EVENT_FIELDS = {"events"}


class StorageError(Exception):
    """Raised by ``settings_from_payload`` for payloads that are not objects."""

    pass


# =============================================================================
# Payload conversion
# =============================================================================


def settings_to_payload(settings: TimelineSettings) -> dict[str, Any]:
    """Convert a snapshot to the persisted JSON-compatible dict."""
    payload = settings.model_dump(mode="json", by_alias=True, exclude=EVENT_FIELDS)
    for key, category in BUILT_IN_EVENT_KEYS.items():
        payload[key] = [serialize_event(r) for r in settings.events_for(category)]
    payload[CUSTOM_EVENTS_KEY] = {
        name: [serialize_event(r) for r in records]
        for name, records in settings.events.items()
        if name not in BUILT_IN_NAMES
    }
    return payload


def _events_from_payload(payload: dict[str, Any]) -> dict[str, list]:
    events: dict[str, list] = {}
    sources: list[tuple[str, Any]] = [
        (category, payload.get(key, [])) for key, category in BUILT_IN_EVENT_KEYS.items()
    ]
    custom = payload.get(CUSTOM_EVENTS_KEY) or {}
    if isinstance(custom, dict):
        for name, raw_events in custom.items():
            if name in BUILT_IN_NAMES:
                logger.warning(f"Ignoring custom events filed under built-in type '{name}'")
                continue
            sources.append((name, raw_events))
    else:
        logger.warning(f"Ignoring malformed {CUSTOM_EVENTS_KEY}: expected an object")

    for category, raw_events in sources:
        if not isinstance(raw_events, list):
            logger.warning(f"Ignoring malformed event list for '{category}'")
            continue
        records, rejected = parse_events(raw_events)
        for raw in rejected:
            logger.warning(f"Dropped unreadable '{category}' event: {raw!r}")
        events[category] = records
    return events


def _custom_types_from_payload(raw_types: Any) -> list[dict[str, Any]]:
    """Keep the usable custom event type entries, dropping the rest one by one."""
    if not isinstance(raw_types, list):
        logger.warning(f"Ignoring malformed {CUSTOM_TYPES_KEY}: expected a list")
        return []

    kept: list[dict[str, Any]] = []
    seen: set[str] = set()
    for entry in raw_types:
        name = entry.get("name") if isinstance(entry, dict) else None
        if not isinstance(name, str) or not name.strip():
            logger.warning(f"Dropped unreadable custom event type: {entry!r}")
            continue
        name = name.strip()
        if name in BUILT_IN_NAMES or name in seen:
            logger.warning(f"Dropped custom event type '{name}': name already in use")
            continue
        color = entry.get("color")
        if not isinstance(color, str) or not color.strip():
            color = DEFAULT_CUSTOM_COLOR
        seen.add(name)
        kept.append({"name": name, "color": color})
    return kept


def settings_from_payload(payload: dict[str, Any]) -> TimelineSettings:
    """Build a fully-populated snapshot from a (possibly partial) payload.

    Raises:
        StorageError: If ``payload`` is not a dict.
    """
    if not isinstance(payload, dict):
        raise StorageError(f"Settings payload must be an object, got {type(payload).__name__}")

    stored_version = payload.get("schemaVersion", 1)
    if stored_version != SETTINGS_SCHEMA_VERSION:
        logger.info(
            f"Upgrading settings schema from v{stored_version} to v{SETTINGS_SCHEMA_VERSION}"
        )

    defaults = settings_to_payload(TimelineSettings())
    merged: dict[str, Any] = {**defaults, **payload}
    for key in (*BUILT_IN_EVENT_KEYS, CUSTOM_EVENTS_KEY):
        merged.pop(key, None)
    merged[CUSTOM_TYPES_KEY] = _custom_types_from_payload(merged.get(CUSTOM_TYPES_KEY, []))
    merged["events"] = _events_from_payload(payload)
    merged["schemaVersion"] = SETTINGS_SCHEMA_VERSION

    # Drop fields that fail validation and retry with their defaults
    for _ in range(len(merged)):
        try:
            return TimelineSettings.model_validate(merged)
        except ValidationError as e:
            bad_fields = {str(err["loc"][0]) for err in e.errors() if err["loc"]}
            bad_fields &= set(merged)
            if not bad_fields:
                break
            for field in sorted(bad_fields):
                logger.warning(f"Invalid setting '{field}' ({merged[field]!r}); using default")
                if field == "events":
                    merged[field] = {}
                else:
                    merged[field] = defaults.get(field)
                    if merged[field] is None:
                        del merged[field]

    logger.warning("Settings could not be repaired; using defaults")
    return TimelineSettings()


# =============================================================================
# Repository
# =============================================================================


class SettingsRepository:
    """JSON file store for TimelineSettings.

    Args:
        path: Settings file location. Parent directories are created on save.

    Example:
        >>> repo = SettingsRepository(Path("~/.chronos/settings.json").expanduser())
        >>> settings = repo.load() or TimelineSettings()
        >>> store = TimelineStore(settings, listeners=[repo.save])
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> TimelineSettings | None:
        """Read settings from disk.

        Returns:
            The merged settings, or None when the file is missing or unreadable.
        """
        if not self.path.exists():
            logger.debug(f"No settings file at {self.path}")
            return None
        try:
            content = self.path.read_text(encoding="utf-8")
            if not content.strip():
                return None
            payload = json.loads(content)
            return settings_from_payload(payload)
        except json.JSONDecodeError as e:
            logger.warning(f"Settings file {self.path} is not valid JSON: {e}")
        except StorageError as e:
            logger.warning(f"Settings file {self.path} has unexpected format: {e}")
        except OSError as e:
            logger.warning(f"Failed to read settings file {self.path}: {type(e).__name__}")
        return None

    def load_or_default(self) -> TimelineSettings:
        return self.load() or TimelineSettings()

    def save(self, settings: TimelineSettings) -> bool:
        """Write settings atomically.

        Returns:
            True on success, False if the file could not be written.
        """
        payload = settings_to_payload(settings)
        tmp_name: str | None = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self.path.parent,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
                delete=False,
            ) as f:
                tmp_name = f.name
                json.dump(payload, f, indent=2, ensure_ascii=False)
            os.replace(tmp_name, self.path)
            tmp_name = None
        except OSError as e:
            logger.error(f"Failed to save settings to {self.path}: {e}")
            return False
        finally:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
        logger.debug(f"Settings saved to {self.path}")
        return True
