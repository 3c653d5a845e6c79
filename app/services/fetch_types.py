"""
Shared types used across the upstream fetching and card normalization pipeline.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class SourceKind(str, Enum):
    """Upstream feeds the dashboard knows how to render as cards."""

    TRANSIT = "transit"
    EVENTS = "events"
    TASKS = "tasks"

    @property
    def endpoint(self) -> str:
        return SOURCE_ENDPOINTS[self]

    @property
    def background_color(self) -> str:
        return SOURCE_BACKGROUND_COLORS[self]


SOURCE_ENDPOINTS: dict[SourceKind, str] = {
    SourceKind.TRANSIT: "/api/data",
    SourceKind.EVENTS: "/api/events",
    SourceKind.TASKS: "/api/habitica",
}

SOURCE_BACKGROUND_COLORS: dict[SourceKind, str] = {
    SourceKind.TRANSIT: "#fff3cd",
    SourceKind.EVENTS: "#d1ecf1",
    SourceKind.TASKS: "#d4edda",
}


@dataclass(slots=True, frozen=True)
class CacheEntry:
    """Raw upstream payload from a single successful fetch."""
    key: SourceKind
    payload: Any
    fetched_at: datetime


@dataclass(slots=True)
class NormalizedCardData:
    """Display shape shared by every upstream-backed card."""
    title: str
    items: list[dict[str, Any]] = field(default_factory=list)
    subtitle: str | None = None
    content: str | None = None
    last_updated: str | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"title": self.title}
        if self.subtitle is not None:
            payload["subtitle"] = self.subtitle
        if self.content is not None:
            payload["content"] = self.content
        payload["items"] = [dict(item) for item in self.items]
        if self.last_updated is not None:
            payload["lastUpdated"] = self.last_updated
        return payload


__all__ = [
    "SourceKind",
    "SOURCE_ENDPOINTS",
    "SOURCE_BACKGROUND_COLORS",
    "CacheEntry",
    "NormalizedCardData",
]
