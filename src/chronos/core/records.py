"""Serializer/parser pair for the persisted event string format.

Two shapes must stay byte-compatible with existing settings files:

    "<weekKey>:<description>"
    "<startWeekKey>:<endWeekKey>:<description>"

A string is read as a range only when both leading fields are well-formed
week keys. Remaining fields are re-joined, so a description such as
``"Flight: LHR"`` survives a round trip.
"""

from __future__ import annotations

import logging
from typing import Iterable

from chronos.core.models import RangeEvent, SingleEvent
from chronos.core.weeks import is_week_key

logger = logging.getLogger(__name__)

FIELD_SEPARATOR = ":"


def serialize_event(record: SingleEvent | RangeEvent) -> str:
    """Encode a record in the persisted string format."""
    if isinstance(record, RangeEvent):
        return FIELD_SEPARATOR.join(
            [record.start_week_key, record.end_week_key, record.description]
        )
    return f"{record.week_key}{FIELD_SEPARATOR}{record.description}"


def parse_event(raw: str) -> SingleEvent | RangeEvent | None:
    """Decode a persisted event string.

    Returns:
        The typed record, or None when the leading field is not a week key.
    """
    if not isinstance(raw, str):
        return None
    fields = raw.split(FIELD_SEPARATOR)
    if len(fields) < 2 or not is_week_key(fields[0]):
        logger.debug(f"Skipping unparseable event record: {raw!r}")
        return None

    if len(fields) >= 3 and is_week_key(fields[1]):
        return RangeEvent(
            start_week_key=fields[0],
            end_week_key=fields[1],
            description=FIELD_SEPARATOR.join(fields[2:]),
        )
    return SingleEvent(week_key=fields[0], description=FIELD_SEPARATOR.join(fields[1:]))


def parse_events(raw_events: Iterable[str]) -> tuple[list[SingleEvent | RangeEvent], list[str]]:
    """Parse a persisted collection.

    Returns:
        ``(records, rejected)`` where rejected holds the strings that could
        not be parsed, in input order.
    """
    records: list[SingleEvent | RangeEvent] = []
    rejected: list[str] = []
    for raw in raw_events:
        record = parse_event(raw)
        if record is None:
            rejected.append(raw)
        else:
            records.append(record)
    return records, rejected
