"""
Profile Service

Business rules for profile, card and active-profile CRUD on top of the JSON
file store.
"""
import logging
from typing import Any

from app.exceptions import BadRequestError, ConflictError, NotFoundError
from app.schemas import ActiveProfileRequest, CardRequest, ProfileRequest
from app.services.profile_store import (
    ACTIVE_PROFILE_KEY,
    CARD_PREFIX,
    PROFILE_PREFIX,
    JsonFileStore,
    card_key,
    profile_key,
)
from app.services.upstream_cache import UpstreamDataService
from app.utils.timezone import utc_now_iso

logger = logging.getLogger(__name__)


async def get_profile(store: JsonFileStore, profile_id: str) -> dict:
    profile = await store.read(profile_key(profile_id))
    if profile is None:
        raise NotFoundError("Profile not found")
    return profile


async def save_profile(store: JsonFileStore, profile_id: str, request: ProfileRequest) -> dict:
    """
    Create or replace a profile

    Args:
        store: Backing store
        profile_id: Id from the request path, overrides any id in the body
        request: Validated profile payload

    Returns:
        The stored profile record
    """
    key = profile_key(profile_id)
    if not store.is_valid_key(key):
        raise BadRequestError("Invalid profile id")

    profile = {
        **request.model_dump(exclude_none=True),
        "id": profile_id,
        "updatedAt": utc_now_iso(),
    }
    await store.write(key, profile)
    logger.info(f"Profile saved: id={profile_id}, name={profile['name']}")
    return profile


async def delete_profile(store: JsonFileStore, profile_id: str) -> None:
    """
    Delete a profile unless it is the active one

    Raises:
        NotFoundError: If the profile does not exist
        ConflictError: If the active profile pointer references it
    """
    await get_profile(store, profile_id)

    active = await store.read(ACTIVE_PROFILE_KEY)
    if active and active.get("profileId") == profile_id:
        logger.warning(f"Refusing to delete active profile: id={profile_id}")
        raise ConflictError("Cannot delete active profile")

    await store.delete(profile_key(profile_id))
    logger.info(f"Profile deleted: id={profile_id}")


async def get_card(store: JsonFileStore, card_id: str) -> dict:
    card = await store.read(card_key(card_id))
    if card is None:
        raise NotFoundError("Card not found")
    return card


async def save_card(store: JsonFileStore, card_id: str, request: CardRequest) -> dict:
    """Create or replace a card; the path id wins over any id in the body."""
    key = card_key(card_id)
    if not store.is_valid_key(key):
        raise BadRequestError("Invalid card id")

    card = {
        **request.model_dump(exclude_unset=True),
        "id": card_id,
        "updatedAt": utc_now_iso(),
    }
    await store.write(key, card)
    logger.info(f"Card saved: id={card_id}, type={card['type']}")
    return card


async def delete_card(store: JsonFileStore, card_id: str) -> None:
    await get_card(store, card_id)
    await store.delete(card_key(card_id))
    logger.info(f"Card deleted: id={card_id}")


async def get_active_profile(store: JsonFileStore) -> dict:
    """
    Return the active profile pointer merged with the profile it references

    Raises:
        NotFoundError: If no pointer is set or the referenced profile is gone
    """
    active = await store.read(ACTIVE_PROFILE_KEY)
    if not active:
        raise NotFoundError("No active profile set")

    profile = await store.read(profile_key(active.get("profileId", "")))
    if profile is None:
        raise NotFoundError("Active profile not found")

    return {**active, "profile": profile}


async def set_active_profile(store: JsonFileStore, request: ActiveProfileRequest) -> dict:
    profile = await store.read(profile_key(request.profileId))
    if profile is None:
        raise NotFoundError("Profile not found")

    active = {
        "profileId": request.profileId,
        "updatedAt": utc_now_iso(),
    }
    await store.write(ACTIVE_PROFILE_KEY, active)
    logger.info(f"Active profile updated: profileId={request.profileId}")
    return {**active, "profile": profile}


async def get_status(store: JsonFileStore, upstream: UpstreamDataService) -> dict[str, Any]:
    """Health summary with stored entity counts and upstream cache ages."""
    profiles = await store.count(PROFILE_PREFIX)
    cards = await store.count(CARD_PREFIX)
    active = await store.read(ACTIVE_PROFILE_KEY)

    return {
        "status": "healthy",
        "timestamp": utc_now_iso(),
        "cache": {
            "profiles": profiles,
            "cards": cards,
            "activeProfile": active.get("profileId") if active else None,
        },
        "upstream": upstream.cache_snapshot(),
    }
