"""
Dependency Providers

Process-wide service instances handed to FastAPI routes through `Depends`.
Each service is built lazily from settings on first use and lives for the
rest of the process. Tests swap them out with `app.dependency_overrides`.
"""
import logging

from app.config import settings
from app.services.profile_store import JsonFileStore
from app.services.upstream_cache import UpstreamDataService


logger = logging.getLogger(__name__)

_profile_store: JsonFileStore | None = None
_upstream_service: UpstreamDataService | None = None


def get_profile_store() -> JsonFileStore:
    """
    Get or create the global profile/card store.

    Returns:
        The JsonFileStore rooted at settings.data_dir
    """
    global _profile_store
    if _profile_store is None:
        _profile_store = JsonFileStore(settings.data_dir)
        logger.debug(f"Created profile store at {settings.data_dir}")
    return _profile_store


def get_upstream_service() -> UpstreamDataService:
    """
    Get or create the global upstream cache-and-fetch service.

    Returns:
        The UpstreamDataService configured from settings
    """
    global _upstream_service
    if _upstream_service is None:
        _upstream_service = UpstreamDataService(
            settings.ctaapi_url,
            cache_ttl_seconds=settings.cache_ttl_sec,
            request_timeout_seconds=settings.request_timeout_sec,
        )
        logger.debug("Created upstream data service")
    return _upstream_service


def reset_services() -> None:
    """
    Drop the global service instances (mainly for testing).

    WARNING: Only use this in test environments!
    """
    global _profile_store, _upstream_service
    _profile_store = None
    _upstream_service = None
