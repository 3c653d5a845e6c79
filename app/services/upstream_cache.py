"""
Upstream Data Service

Fetches transit, events and task data from the upstream aggregation API,
caches raw payloads per source with a TTL and falls back to the last known
good payload when a fetch fails. Callers never see upstream exceptions.
"""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Any, Callable

import httpx

from app.services.card_transformers import transform
from app.services.fetch_types import CacheEntry, NormalizedCardData, SourceKind
from app.utils.logging_helpers import log_card_summary, sanitize_url_for_logging
from app.utils.timezone import to_iso_z, utc_now


logger = logging.getLogger(__name__)

DEFAULT_CACHE_TTL_SECONDS = 300
DEFAULT_REQUEST_TIMEOUT_SECONDS = 10.0


class UpstreamFetchError(Exception):
    """Raised when an upstream payload cannot be fetched or decoded."""

    def __init__(self, kind: SourceKind, message: str):
        super().__init__(f"{kind.value}: {message}")
        self.kind = kind


class UpstreamDataService:
    """
    Cache-and-fetch layer over the upstream aggregation API.

    The cache is a plain mapping keyed by SourceKind. Entries are replaced
    wholesale on every successful fetch and never merged. Concurrent misses for
    the same source are not coalesced; each issues its own request and the last
    one to complete wins.
    """

    def __init__(
        self,
        base_url: str,
        *,
        cache_ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS,
        request_timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.cache_ttl = timedelta(seconds=cache_ttl_seconds)
        self.request_timeout = request_timeout_seconds
        self._transport = transport
        self._clock = clock
        self._cache: dict[SourceKind, CacheEntry] = {}

    async def fetch_with_cache(self, kind: SourceKind, *, force: bool = False) -> Any | None:
        """
        Return the raw payload for a source, honouring the cache policy

        Args:
            kind: Source to resolve
            force: Skip the freshness check and always hit upstream

        Returns:
            Fresh payload, cached payload (fresh or stale after a failed fetch),
            or None when the fetch failed and nothing was cached
        """
        cached = self._cache.get(kind)
        if not force and cached and self._is_fresh(cached):
            logger.debug("Using cached data for %s", kind.value)
            return cached.payload

        try:
            payload = await self._request(kind)
        except UpstreamFetchError as exc:
            logger.error("Error fetching %s: %s", kind.value, exc)
            if cached:
                logger.warning("Using expired cache for %s due to error", kind.value)
                return cached.payload
            return None

        self._cache[kind] = CacheEntry(key=kind, payload=payload, fetched_at=self._clock())
        logger.info("Fetched fresh data for %s", kind.value)
        return payload

    async def get(self, kind: SourceKind) -> NormalizedCardData:
        """Resolve one source and normalize it for card display."""
        was_cached = kind in self._cache and self._is_fresh(self._cache[kind])
        try:
            payload = await self.fetch_with_cache(kind)
        except Exception as exc:
            logger.error("Unexpected error resolving %s: %s", kind.value, exc, exc_info=True)
            payload = None
        card = transform(kind, payload)
        log_card_summary(logger, kind.value, len(card.items), was_cached)
        return card

    async def get_all(self) -> dict[SourceKind, NormalizedCardData]:
        """
        Resolve every source concurrently

        Each source settles independently. A failure in one never cancels or
        empties the others; it degrades to the placeholder shape instead.
        """
        return await self._gather_cards(force=False)

    async def refresh_all(self) -> dict[SourceKind, NormalizedCardData]:
        """Fetch every source ignoring the TTL, keeping the stale fallback."""
        return await self._gather_cards(force=True)

    def invalidate(self) -> None:
        """Drop all cache entries; in-flight fetches may still repopulate them."""
        self._cache.clear()
        logger.info("Upstream cache cleared")

    def cache_snapshot(self) -> dict[str, str]:
        """Return the fetch time of every cached source."""
        return {
            kind.value: to_iso_z(entry.fetched_at)
            for kind, entry in self._cache.items()
        }

    async def _gather_cards(self, *, force: bool) -> dict[SourceKind, NormalizedCardData]:
        kinds = list(SourceKind)
        tasks = [
            asyncio.create_task(self.fetch_with_cache(kind, force=force))
            for kind in kinds
        ]
        results = await asyncio.gather(*tasks, return_exceptions=True)

        cards: dict[SourceKind, NormalizedCardData] = {}
        for kind, result in zip(kinds, results):
            if isinstance(result, BaseException):
                logger.error(
                    "Unexpected error resolving %s: %s",
                    kind.value,
                    result,
                    exc_info=result,
                )
                result = None
            cards[kind] = transform(kind, result)
        return cards

    def _is_fresh(self, entry: CacheEntry) -> bool:
        return self._clock() - entry.fetched_at < self.cache_ttl

    async def _request(self, kind: SourceKind) -> Any:
        url = f"{self.base_url}{kind.endpoint}"
        logger.info("Making request to %s", sanitize_url_for_logging(url))

        try:
            async with httpx.AsyncClient(timeout=self.request_timeout, transport=self._transport) as client:
                response = await client.get(url)
                response.raise_for_status()
                return response.json()
        except httpx.TimeoutException as exc:
            raise UpstreamFetchError(kind, "Request timeout") from exc
        except httpx.HTTPStatusError as exc:
            raise UpstreamFetchError(kind, f"HTTP {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise UpstreamFetchError(kind, f"{type(exc).__name__}: {exc}") from exc
        except ValueError as exc:
            raise UpstreamFetchError(kind, f"Failed to parse JSON: {exc}") from exc
