from datetime import datetime, timedelta, timezone

import httpx

from app.mock_upstream import MOCK_PAYLOADS


UPSTREAM_URL = "http://upstream.test"


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class ScriptedUpstream:
    """
    httpx handler serving the mock payloads, with per-path failure injection.

    `failures[path]` holds a callable taking the request and returning a
    response or raising an httpx error.
    """

    def __init__(self):
        self.calls: list[str] = []
        self.failures: dict[str, object] = {}

    def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.calls.append(path)
        failure = self.failures.get(path)
        if failure is not None:
            return failure(request)
        if path in MOCK_PAYLOADS:
            return httpx.Response(200, json=MOCK_PAYLOADS[path])
        return httpx.Response(404, json={"error": "Not found"})

    def count(self, path: str) -> int:
        return self.calls.count(path)


def connect_error(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("connection refused", request=request)


def read_timeout(request: httpx.Request) -> httpx.Response:
    raise httpx.ReadTimeout("timed out", request=request)


def malformed_json(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, content=b"<html>not json</html>")


def server_error(request: httpx.Request) -> httpx.Response:
    return httpx.Response(500, json={"error": "boom"})


def make_profile_body(name: str = "Kitchen", **zone_cards: list[str]) -> dict:
    return {
        "name": name,
        "zones": {
            zone: {
                "width": 400,
                "height": 600,
                "cards": zone_cards.get(zone, []),
            }
            for zone in ("left", "center", "right")
        },
    }
