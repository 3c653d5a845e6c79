"""
Services package for the Projector dashboard

This package contains all business logic and service layer components.
"""
from app.services import profile_service, profile_view_service
from app.services.fetch_types import NormalizedCardData, SourceKind
from app.services.profile_store import JsonFileStore
from app.services.scheduler_service import cache_warm_scheduler
from app.services.upstream_cache import UpstreamDataService

__all__ = [
    'profile_service',
    'profile_view_service',
    'NormalizedCardData',
    'SourceKind',
    'JsonFileStore',
    'UpstreamDataService',
    'cache_warm_scheduler',
]
