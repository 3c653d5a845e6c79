from typing import Annotated
from fastapi import APIRouter, Depends, Response, status
import logging

from app.dependencies import get_profile_store, get_upstream_service
from app.schemas import ActiveProfileRequest, CardRequest, ErrorResponse, ProfileRequest
from app.services import (
    JsonFileStore,
    SourceKind,
    UpstreamDataService,
    profile_service,
    profile_view_service,
)


logger = logging.getLogger(__name__)

Store = Annotated[JsonFileStore, Depends(get_profile_store)]
Upstream = Annotated[UpstreamDataService, Depends(get_upstream_service)]

NOT_FOUND = {404: {"model": ErrorResponse}}

display_router = APIRouter(prefix="/display", tags=["display"])
api_router = APIRouter(prefix="/api", tags=["ui"])


@display_router.get("/activeProfile", responses=NOT_FOUND)
async def get_active_profile(store: Store) -> dict:
    """Active profile pointer together with the profile it references"""
    return await profile_service.get_active_profile(store)


@display_router.put("/activeProfile", responses=NOT_FOUND)
async def put_active_profile(request: ActiveProfileRequest, store: Store) -> dict:
    """Point the dashboard at an existing profile"""
    return await profile_service.set_active_profile(store, request)


@display_router.get("/profiles/{profile_id}", responses=NOT_FOUND)
async def get_profile(profile_id: str, store: Store) -> dict:
    return await profile_service.get_profile(store, profile_id)


@display_router.put("/profiles/{profile_id}")
async def put_profile(profile_id: str, request: ProfileRequest, store: Store) -> dict:
    """Create or replace a profile"""
    return await profile_service.save_profile(store, profile_id, request)


@display_router.delete(
    "/profiles/{profile_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={**NOT_FOUND, 409: {"model": ErrorResponse}},
)
async def delete_profile(profile_id: str, store: Store) -> Response:
    """Delete a profile; the active profile cannot be deleted"""
    await profile_service.delete_profile(store, profile_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@display_router.get("/cards/{card_id}", responses=NOT_FOUND)
async def get_card(card_id: str, store: Store) -> dict:
    return await profile_service.get_card(store, card_id)


@display_router.put("/cards/{card_id}")
async def put_card(card_id: str, request: CardRequest, store: Store) -> dict:
    """Create or replace a card"""
    return await profile_service.save_card(store, card_id, request)


@display_router.delete("/cards/{card_id}", status_code=status.HTTP_204_NO_CONTENT, responses=NOT_FOUND)
async def delete_card(card_id: str, store: Store) -> Response:
    await profile_service.delete_card(store, card_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@display_router.get("/status")
async def get_status(store: Store, upstream: Upstream) -> dict:
    """Health check with stored entity counts"""
    return await profile_service.get_status(store, upstream)


@api_router.get("/profile/active")
async def get_active_profile_for_ui(store: Store, upstream: Upstream) -> dict:
    """
    Active profile composed for the dashboard UI

    Transit, events and tasks cards are populated with cached upstream data.
    """
    return await profile_view_service.get_active_profile_for_ui(store, upstream)


@api_router.get("/cards/{kind}")
async def get_card_data(kind: SourceKind, upstream: Upstream) -> dict:
    """Normalized data for a single upstream source"""
    card = await upstream.get(kind)
    return card.to_dict()


@api_router.post("/cache/invalidate")
async def invalidate_cache(upstream: Upstream) -> dict:
    """
    Drop all cached upstream payloads

    The next card request fetches fresh data from upstream.
    """
    logger.info("Upstream cache invalidation triggered via API")
    upstream.invalidate()
    return {"status": "ok"}
