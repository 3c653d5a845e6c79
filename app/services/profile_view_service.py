"""
Profile View Service

Builds the UI-facing view of the active profile: grid layout, zones with
resolved cards, and upstream-backed cards populated with normalized data.
"""
from __future__ import annotations

import copy
import logging
from typing import Any

from app.services.fetch_types import NormalizedCardData, SourceKind
from app.services.profile_store import ACTIVE_PROFILE_KEY, JsonFileStore, card_key, profile_key
from app.services.upstream_cache import UpstreamDataService

logger = logging.getLogger(__name__)

GRID_CONFIG: dict[str, Any] = {
    "columns": "400px 1fr 400px",
    "rows": "1fr",
    "areas": [["left", "center", "right"]],
}

CARD_DATA_FIELDS = ("title", "subtitle", "content", "items", "lastUpdated")

DEFAULT_UI_PROFILE: dict[str, Any] = {
    "id": "default-profile",
    "name": "Default Dashboard",
    "gridConfig": GRID_CONFIG,
    "zones": [
        {
            "id": "left",
            "name": "Sidebar",
            "gridArea": "left",
            "cards": [
                {
                    "id": "welcome-card",
                    "type": "text",
                    "config": {
                        "title": "Welcome to Projector",
                        "content": (
                            "This is your dashboard. You can customize zones and add "
                            "various card types to display different information."
                        ),
                        "backgroundColor": "#f8f9fa",
                        "textColor": "#333",
                    },
                },
                {
                    "id": "transit-card",
                    "type": "transit",
                    "config": {
                        "title": "CTA Transit",
                        "content": "Loading transit data...",
                        "backgroundColor": "#fff3cd",
                    },
                },
            ],
        },
        {
            "id": "center",
            "name": "Main Content",
            "gridArea": "center",
            "cards": [
                {
                    "id": "events-card",
                    "type": "events",
                    "config": {
                        "title": "Calendar Events",
                        "content": "Loading events...",
                        "backgroundColor": "#d1ecf1",
                    },
                },
                {
                    "id": "activity-card",
                    "type": "text",
                    "config": {
                        "title": "Recent Activity",
                        "content": (
                            "• Profile created successfully\n• Dashboard initialized\n"
                            "• Sample cards loaded\n• System ready for customization"
                        ),
                        "backgroundColor": "#f8f9fa",
                    },
                },
            ],
        },
        {
            "id": "right",
            "name": "Right Sidebar",
            "gridArea": "right",
            "cards": [
                {
                    "id": "tasks-card",
                    "type": "tasks",
                    "config": {
                        "title": "Habitica Tasks",
                        "content": "Loading tasks...",
                        "backgroundColor": "#d4edda",
                    },
                },
                {
                    "id": "notifications-card",
                    "type": "status",
                    "config": {
                        "title": "Notifications",
                        "items": [
                            {"label": "Welcome!", "status": "new", "color": "blue"},
                            {"label": "Setup Complete", "status": "success", "color": "green"},
                        ],
                    },
                },
            ],
        },
    ],
}


def default_profile_for_ui() -> dict[str, Any]:
    """Fresh copy of the built-in dashboard shown when no profile is active."""
    return copy.deepcopy(DEFAULT_UI_PROFILE)


async def transform_profile_for_ui(store: JsonFileStore, profile: dict[str, Any]) -> dict[str, Any]:
    """
    Convert a stored profile into the UI layout shape

    Card ids listed in each zone are resolved against the store; ids with no
    stored card are skipped.

    Args:
        store: Backing store used to resolve card ids
        profile: Stored profile record

    Returns:
        Dictionary with id, name, gridConfig and an ordered list of zones
    """
    zones = []
    for zone_id, zone_data in (profile.get("zones") or {}).items():
        cards = []
        for card_id in zone_data.get("cards") or []:
            card = await store.read(card_key(card_id))
            if card is None:
                logger.warning(f"Card {card_id} referenced by zone {zone_id} not found; skipping")
                continue
            cards.append(card)

        zones.append({
            "id": zone_id,
            "name": f"{zone_id[:1].upper()}{zone_id[1:]} Zone",
            "gridArea": zone_id,
            "cards": cards,
        })

    return {
        "id": profile.get("id"),
        "name": profile.get("name"),
        "gridConfig": copy.deepcopy(GRID_CONFIG),
        "zones": zones,
    }


def apply_card_data(card: dict[str, Any], kind: SourceKind, data: NormalizedCardData) -> None:
    """Overwrite a card's display fields with normalized upstream data, in place."""
    fields = data.to_dict()
    config = dict(card.get("config") or {})
    for name in CARD_DATA_FIELDS:
        if name in fields:
            config[name] = fields[name]
        else:
            config.pop(name, None)
    config["backgroundColor"] = kind.background_color
    card["config"] = config


def populate_cards_with_data(
    profile: dict[str, Any],
    card_data: dict[SourceKind, NormalizedCardData],
) -> dict[str, Any]:
    """
    Return a copy of a UI profile whose upstream-backed cards carry live data

    Cards whose type is not a SourceKind are left untouched.
    """
    populated = copy.deepcopy(profile)
    kinds = {kind.value: kind for kind in SourceKind}

    for zone in populated.get("zones", []):
        for card in zone.get("cards", []):
            kind = kinds.get(card.get("type")) if isinstance(card, dict) else None
            if kind is None or kind not in card_data:
                continue
            apply_card_data(card, kind, card_data[kind])

    return populated


async def get_active_profile_for_ui(store: JsonFileStore, upstream: UpstreamDataService) -> dict[str, Any]:
    """
    Compose the active profile for the dashboard UI

    Falls back to the built-in default profile when no pointer is set or the
    pointer references a missing profile. If populating card data fails
    unexpectedly, the unpopulated profile is returned.
    """
    active = await store.read(ACTIVE_PROFILE_KEY)

    if not active:
        logger.info("No active profile set, using default profile")
        base_profile = default_profile_for_ui()
    else:
        profile = await store.read(profile_key(active.get("profileId", "")))
        if profile is None:
            logger.warning(f"Active profile not found, using default profile: profileId={active.get('profileId')}")
            base_profile = default_profile_for_ui()
        else:
            base_profile = await transform_profile_for_ui(store, profile)

    try:
        card_data = await upstream.get_all()
        return populate_cards_with_data(base_profile, card_data)
    except Exception as e:
        logger.error(f"Error populating cards with data: {e}", exc_info=True)
        return base_profile
