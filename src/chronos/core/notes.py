"""Week and event note templates.

The core only computes a note's relative path and its initial markdown.
``NoteWriter`` creates missing files under a base directory. Failures there
are logged and reported as None and never affect the timeline state: an
event may be recorded even if its note could not be written.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from chronos.core.models import RangeEvent, SingleEvent
from chronos.core.weeks import parse_week_key, week_key_from_date, week_note_stem

logger = logging.getLogger(__name__)

NOTE_SUFFIX = ".md"


class NoteSpec(BaseModel):
    """A note to create: vault-relative path and initial content."""

    model_config = ConfigDict(frozen=True)

    path: str
    content: str


def note_path(file_name: str, notes_folder: str = "") -> str:
    """Prefix ``file_name`` with the notes folder, if one is configured."""
    folder = (notes_folder or "").strip()
    if not folder:
        return file_name
    if not folder.endswith("/"):
        folder += "/"
    return f"{folder}{file_name}"


def week_note(week_key: str, notes_folder: str = "") -> NoteSpec | None:
    """Note for one week; None for a malformed key."""
    parsed = parse_week_key(week_key)
    if parsed is None:
        return None
    year, week = parsed
    content = f"# Week {week}, {year}\n\n## Reflections\n\n## Tasks\n\n## Notes\n"
    return NoteSpec(
        path=note_path(f"{week_note_stem(week_key)}{NOTE_SUFFIX}", notes_folder),
        content=content,
    )


def current_week_note(now: date | datetime, notes_folder: str = "") -> NoteSpec:
    return week_note(week_key_from_date(now), notes_folder)


def event_note(
    record: SingleEvent | RangeEvent, category: str, notes_folder: str = ""
) -> NoteSpec:
    """Note describing an event, filed under the event's (first) week."""
    if isinstance(record, RangeEvent):
        dates = f"Start Date: {record.start_week_key}\nEnd Date: {record.end_week_key}\n"
    else:
        dates = f"Date: {record.week_key}\n"
    content = f"# Event: {record.description}\n\n{dates}Type: {category}\n\n## Notes\n\n"
    return NoteSpec(
        path=note_path(f"{week_note_stem(record.anchor_week_key)}{NOTE_SUFFIX}", notes_folder),
        content=content,
    )


class NoteWriter:
    """Creates notes on disk under ``base_dir``.

    Existing files are never overwritten.
    """

    def __init__(self, base_dir: Path) -> None:
        self.base_dir = Path(base_dir)

    def resolve(self, spec: NoteSpec) -> Path:
        return self.base_dir / spec.path

    def ensure(self, spec: NoteSpec) -> Path | None:
        """Return the note's path, creating it from the template if missing.

        Returns:
            The file path, or None when the folder or file could not be written.
        """
        target = self.resolve(spec)
        if target.exists():
            return target
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"Could not create notes folder {target.parent}: {e}")
            return None
        try:
            with open(target, "x", encoding="utf-8") as f:
                f.write(spec.content)
        except FileExistsError:
            return target
        except OSError as e:
            logger.error(f"Could not create note {target}: {e}")
            return None
        logger.info(f"Created note {target}")
        return target
