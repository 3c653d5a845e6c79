"""
Card Transformers

Normalizes raw upstream payloads into the NormalizedCardData shape rendered by
dashboard cards. Upstream payloads are not trusted: every item field is looked
up through an ordered list of candidate keys and falls back to a default.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Sequence

from app.services.fetch_types import NormalizedCardData, SourceKind
from app.utils.timezone import to_iso_z, utc_now


logger = logging.getLogger(__name__)

MAX_CARD_ITEMS = 5


@dataclass(slots=True, frozen=True)
class FieldRule:
    """Output field resolved from the first candidate key holding a value."""
    name: str
    candidates: tuple[str, ...]
    default: Any

    def resolve(self, raw: dict[str, Any]) -> Any:
        for candidate in self.candidates:
            value = raw.get(candidate)
            if value is not None and value != "":
                return value
        return self.default


TRANSIT_FIELDS: tuple[FieldRule, ...] = (
    FieldRule("route", ("route",), "Unknown Route"),
    FieldRule("destination", ("destination",), "Unknown Destination"),
    FieldRule("arrivalTime", ("arrival_time", "arrivalTime"), "TBD"),
    FieldRule("minutes", ("minutes_away", "minutesAway"), "N/A"),
)

EVENT_FIELDS: tuple[FieldRule, ...] = (
    FieldRule("title", ("title", "summary"), "Untitled Event"),
    FieldRule("time", ("start_time", "startTime", "start"), "TBD"),
    FieldRule("description", ("description",), ""),
    FieldRule("location", ("location",), ""),
)

TASK_FIELDS: tuple[FieldRule, ...] = (
    FieldRule("title", ("text", "title"), "Untitled Task"),
    FieldRule("type", ("type",), "todo"),
    FieldRule("priority", ("priority",), "normal"),
    FieldRule("completed", ("completed",), False),
    FieldRule("difficulty", ("difficulty",), 1),
)

PLACEHOLDERS: dict[SourceKind, tuple[str, str]] = {
    SourceKind.TRANSIT: ("CTA Transit", "Transit data unavailable"),
    SourceKind.EVENTS: ("Calendar Events", "No events available"),
    SourceKind.TASKS: ("Habitica Tasks", "Tasks unavailable"),
}


def normalize_items(raw_items: Sequence[Any], rules: Sequence[FieldRule]) -> list[dict[str, Any]]:
    """
    Apply field rules to the first MAX_CARD_ITEMS entries, preserving order

    Args:
        raw_items: Items from the upstream payload
        rules: Field rules describing the output item shape

    Returns:
        List of normalized item dictionaries
    """
    items = []
    for raw in list(raw_items)[:MAX_CARD_ITEMS]:
        if not isinstance(raw, dict):
            logger.debug("Ignoring non-object item of type %s", type(raw).__name__)
            raw = {}
        items.append({rule.name: rule.resolve(raw) for rule in rules})
    return items


def placeholder_card(kind: SourceKind) -> NormalizedCardData:
    """Shape returned when no payload is available for a source."""
    title, content = PLACEHOLDERS[kind]
    return NormalizedCardData(title=title, content=content, items=[])


def _stamp(now: datetime | None) -> str:
    return to_iso_z(now or utc_now())


def transform_transit_data(data: Any, now: datetime | None = None) -> NormalizedCardData:
    """Normalize arrivals from /api/data."""
    if not isinstance(data, list):
        return placeholder_card(SourceKind.TRANSIT)

    items = normalize_items(data, TRANSIT_FIELDS)
    return NormalizedCardData(
        title="CTA Transit",
        subtitle=f"Next {len(items)} arrivals",
        items=items,
        last_updated=_stamp(now),
    )


def transform_events_data(data: Any, now: datetime | None = None) -> NormalizedCardData:
    """Normalize calendar events from /api/events."""
    if not isinstance(data, list):
        return placeholder_card(SourceKind.EVENTS)

    items = normalize_items(data, EVENT_FIELDS)
    return NormalizedCardData(
        title="Upcoming Events",
        subtitle=f"{len(items)} events today",
        items=items,
        last_updated=_stamp(now),
    )


def transform_tasks_data(data: Any, now: datetime | None = None) -> NormalizedCardData:
    """
    Normalize Habitica tasks from /api/habitica

    Accepts either a bare list of tasks or an object with a 'tasks' list.
    """
    if data is None:
        return placeholder_card(SourceKind.TASKS)

    if isinstance(data, list):
        tasks = data
    elif isinstance(data, dict) and isinstance(data.get("tasks"), list):
        tasks = data["tasks"]
    else:
        tasks = []

    items = normalize_items(tasks, TASK_FIELDS)
    completed = sum(1 for item in items if item["completed"])
    return NormalizedCardData(
        title="Habitica Tasks",
        subtitle=f"{completed}/{len(items)} completed",
        items=items,
        last_updated=_stamp(now),
    )


TRANSFORMERS: dict[SourceKind, Callable[..., NormalizedCardData]] = {
    SourceKind.TRANSIT: transform_transit_data,
    SourceKind.EVENTS: transform_events_data,
    SourceKind.TASKS: transform_tasks_data,
}


def transform(kind: SourceKind, data: Any, now: datetime | None = None) -> NormalizedCardData:
    """Dispatch a raw payload to the transformer registered for its source."""
    return TRANSFORMERS[kind](data, now)
