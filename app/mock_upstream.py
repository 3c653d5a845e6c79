"""
Mock Upstream Responder

Static stand-in for the upstream aggregation API. Serves fixed payloads for
the transit, events and tasks endpoints so the dashboard can be developed and
tested without the real service.

Run with: python -m app.mock_upstream
"""
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import settings, setup_logging


logger = logging.getLogger(__name__)

MOCK_PAYLOADS: dict[str, object] = {
    "/api/data": [
        {
            "route": "Red Line",
            "destination": "Howard",
            "arrival_time": "2:15 PM",
            "minutes_away": 5,
        },
        {
            "route": "Blue Line",
            "destination": "O'Hare",
            "arrival_time": "2:20 PM",
            "minutes_away": 8,
        },
    ],
    "/api/events": [
        {
            "title": "Team Meeting",
            "start_time": "3:00 PM",
            "description": "Weekly team sync",
            "location": "Conference Room A",
        },
        {
            "title": "Doctor Appointment",
            "start_time": "4:30 PM",
            "description": "Annual checkup",
        },
    ],
    "/api/habitica": {
        "tasks": [
            {
                "text": "Complete project documentation",
                "type": "todo",
                "priority": "high",
                "completed": False,
                "difficulty": 2,
            },
            {
                "text": "Review pull requests",
                "type": "todo",
                "priority": "medium",
                "completed": True,
                "difficulty": 1,
            },
        ]
    },
}


mock_app = FastAPI(title="Mock Upstream", version="0.1.0")

mock_app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@mock_app.api_route("/{path:path}", methods=["GET", "POST", "PUT", "DELETE", "PATCH"])
async def serve_mock(path: str, request: Request) -> JSONResponse:
    """Return the fixed payload for a known GET path, 404 otherwise"""
    logger.info(f"Mock upstream: {request.method} {request.url.path}")
    payload = MOCK_PAYLOADS.get(f"/{path}")
    if request.method != "GET" or payload is None:
        return JSONResponse(status_code=404, content={"error": "Not found"})
    return JSONResponse(status_code=200, content=payload)


if __name__ == "__main__":
    import uvicorn

    setup_logging()
    logger.info(f"Mock upstream running on http://localhost:{settings.mock_upstream_port}")
    for endpoint in MOCK_PAYLOADS:
        logger.info(f"  http://localhost:{settings.mock_upstream_port}{endpoint}")
    uvicorn.run(mock_app, host="localhost", port=settings.mock_upstream_port)
