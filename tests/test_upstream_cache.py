import asyncio

import httpx
import pytest

from app.mock_upstream import MOCK_PAYLOADS
from app.services.fetch_types import SourceKind
from app.services.upstream_cache import UpstreamDataService
from tests.helpers import (
    UPSTREAM_URL,
    connect_error,
    malformed_json,
    read_timeout,
    server_error,
)


TRANSIT = "/api/data"
EVENTS = "/api/events"
TASKS = "/api/habitica"


class TestFetchWithCache:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("kind", list(SourceKind))
    async def test_second_call_within_ttl_hits_cache(self, upstream_service, scripted_upstream, clock, kind):
        first = await upstream_service.fetch_with_cache(kind)
        clock.advance(299)
        second = await upstream_service.fetch_with_cache(kind)

        assert scripted_upstream.count(kind.endpoint) == 1
        assert first == second == MOCK_PAYLOADS[kind.endpoint]

    @pytest.mark.asyncio
    async def test_expired_entry_is_refetched(self, upstream_service, scripted_upstream, clock):
        await upstream_service.fetch_with_cache(SourceKind.TRANSIT)
        clock.advance(300)
        await upstream_service.fetch_with_cache(SourceKind.TRANSIT)

        assert scripted_upstream.count(TRANSIT) == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize("failure", [connect_error, read_timeout, malformed_json, server_error])
    async def test_failure_after_success_serves_stale_payload(
        self, upstream_service, scripted_upstream, clock, failure
    ):
        fresh = await upstream_service.fetch_with_cache(SourceKind.EVENTS)
        clock.advance(600)
        scripted_upstream.failures[EVENTS] = failure

        stale = await upstream_service.fetch_with_cache(SourceKind.EVENTS)

        assert stale == fresh
        assert scripted_upstream.count(EVENTS) == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize("failure", [connect_error, read_timeout, malformed_json, server_error])
    async def test_failure_without_cache_returns_none(self, upstream_service, scripted_upstream, failure):
        scripted_upstream.failures[TASKS] = failure

        assert await upstream_service.fetch_with_cache(SourceKind.TASKS) is None

    @pytest.mark.asyncio
    async def test_failed_fetch_keeps_original_timestamp(self, upstream_service, scripted_upstream, clock):
        await upstream_service.fetch_with_cache(SourceKind.TRANSIT)
        fetched_at = upstream_service.cache_snapshot()["transit"]
        clock.advance(600)
        scripted_upstream.failures[TRANSIT] = connect_error

        await upstream_service.fetch_with_cache(SourceKind.TRANSIT)

        assert upstream_service.cache_snapshot()["transit"] == fetched_at

    @pytest.mark.asyncio
    async def test_successful_refetch_replaces_entry_wholesale(self, upstream_service, scripted_upstream, clock):
        await upstream_service.fetch_with_cache(SourceKind.TRANSIT)
        clock.advance(301)
        scripted_upstream.failures[TRANSIT] = lambda request: httpx.Response(200, json=[{"route": "Green"}])

        payload = await upstream_service.fetch_with_cache(SourceKind.TRANSIT)

        assert payload == [{"route": "Green"}]

    @pytest.mark.asyncio
    async def test_force_bypasses_fresh_entry(self, upstream_service, scripted_upstream):
        await upstream_service.fetch_with_cache(SourceKind.TASKS)
        await upstream_service.fetch_with_cache(SourceKind.TASKS, force=True)

        assert scripted_upstream.count(TASKS) == 2


class TestGet:
    @pytest.mark.asyncio
    async def test_returns_normalized_card(self, upstream_service):
        card = await upstream_service.get(SourceKind.TRANSIT)

        assert card.items[0] == {"route": "Red Line", "destination": "Howard",
                                 "arrivalTime": "2:15 PM", "minutes": 5}

    @pytest.mark.asyncio
    async def test_placeholder_when_upstream_down_and_nothing_cached(self, upstream_service, scripted_upstream):
        scripted_upstream.failures[EVENTS] = connect_error

        card = await upstream_service.get(SourceKind.EVENTS)

        assert card.to_dict() == {"title": "Calendar Events", "content": "No events available", "items": []}

    @pytest.mark.asyncio
    async def test_unexpected_error_degrades_to_placeholder(self, upstream_service, monkeypatch):
        async def explode(kind, *, force=False):
            raise RuntimeError("bug")

        monkeypatch.setattr(upstream_service, "fetch_with_cache", explode)

        card = await upstream_service.get(SourceKind.TASKS)

        assert card.content == "Tasks unavailable"


class TestGetAll:
    @pytest.mark.asyncio
    async def test_returns_all_three_sources(self, upstream_service):
        cards = await upstream_service.get_all()

        assert set(cards) == set(SourceKind)
        assert cards[SourceKind.TASKS].subtitle == "1/2 completed"
        assert cards[SourceKind.EVENTS].subtitle == "2 events today"

    @pytest.mark.asyncio
    async def test_single_source_failure_is_isolated(self, upstream_service, scripted_upstream):
        scripted_upstream.failures[TRANSIT] = read_timeout

        cards = await upstream_service.get_all()

        assert cards[SourceKind.TRANSIT].content == "Transit data unavailable"
        assert len(cards[SourceKind.EVENTS].items) == 2
        assert len(cards[SourceKind.TASKS].items) == 2

    @pytest.mark.asyncio
    async def test_all_sources_failing_still_returns_three_fields(self, upstream_service, scripted_upstream):
        for path in (TRANSIT, EVENTS, TASKS):
            scripted_upstream.failures[path] = connect_error

        cards = await upstream_service.get_all()

        assert len(cards) == 3
        assert all(card.items == [] for card in cards.values())

    @pytest.mark.asyncio
    async def test_fetches_are_dispatched_concurrently(self, clock):
        started = asyncio.Event()
        in_flight = 0
        peak = 0

        async def handler(request: httpx.Request) -> httpx.Response:
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            if peak == 3:
                started.set()
            await asyncio.wait_for(started.wait(), timeout=1)
            in_flight -= 1
            return httpx.Response(200, json=MOCK_PAYLOADS[request.url.path])

        service = UpstreamDataService(UPSTREAM_URL, transport=httpx.MockTransport(handler), clock=clock)

        cards = await service.get_all()

        assert peak == 3
        assert len(cards[SourceKind.TRANSIT].items) == 2

    @pytest.mark.asyncio
    async def test_refresh_all_ignores_ttl(self, upstream_service, scripted_upstream):
        await upstream_service.get_all()
        await upstream_service.refresh_all()

        assert scripted_upstream.count(TRANSIT) == 2
        assert scripted_upstream.count(EVENTS) == 2
        assert scripted_upstream.count(TASKS) == 2


class TestInvalidate:
    @pytest.mark.asyncio
    async def test_invalidate_forces_fresh_fetch(self, upstream_service, scripted_upstream):
        await upstream_service.get_all()
        upstream_service.invalidate()
        await upstream_service.get_all()

        assert scripted_upstream.count(TRANSIT) == 2
        assert upstream_service.cache_snapshot().keys() == {"transit", "events", "tasks"}

    @pytest.mark.asyncio
    async def test_invalidate_drops_stale_fallback(self, upstream_service, scripted_upstream):
        await upstream_service.fetch_with_cache(SourceKind.TRANSIT)
        upstream_service.invalidate()
        scripted_upstream.failures[TRANSIT] = connect_error

        assert await upstream_service.fetch_with_cache(SourceKind.TRANSIT) is None
        assert upstream_service.cache_snapshot() == {}

    @pytest.mark.asyncio
    async def test_in_flight_fetch_repopulates_after_invalidate(self, clock):
        requested = asyncio.Event()
        release = asyncio.Event()

        async def handler(request: httpx.Request) -> httpx.Response:
            requested.set()
            await release.wait()
            return httpx.Response(200, json=MOCK_PAYLOADS[request.url.path])

        service = UpstreamDataService(UPSTREAM_URL, transport=httpx.MockTransport(handler), clock=clock)

        fetch = asyncio.create_task(service.fetch_with_cache(SourceKind.TRANSIT))
        await asyncio.wait_for(requested.wait(), timeout=1)
        service.invalidate()
        release.set()
        payload = await asyncio.wait_for(fetch, timeout=1)

        assert payload == MOCK_PAYLOADS["/api/data"]
        assert list(service.cache_snapshot()) == ["transit"]


@pytest.mark.asyncio
async def test_mock_responder_round_trip(mock_upstream_service):
    cards = await mock_upstream_service.get_all()

    assert cards[SourceKind.TRANSIT].items[1]["destination"] == "O'Hare"
    assert cards[SourceKind.EVENTS].items[1]["location"] == ""
    assert cards[SourceKind.TASKS].items[0]["difficulty"] == 2


@pytest.mark.asyncio
async def test_base_url_trailing_slash_is_ignored(scripted_upstream, clock):
    service = UpstreamDataService(
        f"{UPSTREAM_URL}/",
        transport=httpx.MockTransport(scripted_upstream),
        clock=clock,
    )

    await service.fetch_with_cache(SourceKind.EVENTS)

    assert scripted_upstream.calls == [EVENTS]
