"""Track route - public API matching the tracker client."""

from datetime import UTC, datetime

from fastapi import APIRouter, Request

from profilerelay.server.dependencies import Relay
from profilerelay.server.models import TrackBody, TrackEvent

router = APIRouter(tags=["track"])


@router.post("/track")
async def track(
    data: TrackBody,
    request: Request,
    relay: Relay,
) -> dict:
    """Relay an anonymous visitor event to the upstream store."""
    event = TrackEvent(
        name=data.event or "",
        properties=data.properties or {},
        anonymous_id=data.anonymous_id or "",
        timestamp=datetime.now(UTC).isoformat(),
        user_agent=request.headers.get("user-agent"),
        client_ip=request.client.host if request.client else None,
    )
    result = await relay.relay(event)
    return {
        "success": True,
        "message": "Event tracked successfully",
        "eventId": result.event_id,
    }
