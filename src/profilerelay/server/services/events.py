"""Event relay: forwards tracked events to the upstream store."""

import logging
import time
from collections.abc import Callable
from typing import Any

from profilerelay.server.errors import ValidationError
from profilerelay.server.upstream import UpstreamClient, ensure_success, parse_body, resource_id
from profilerelay.tracker.schema import (
    CLIENT_IP_PROPERTY,
    USER_AGENT_PROPERTY,
    TrackEvent,
    TrackResult,
)

logger = logging.getLogger(__name__)


def _context_properties(event: TrackEvent) -> dict[str, Any]:
    """Request context injected under reserved property keys."""
    context: dict[str, Any] = {}
    if event.user_agent:
        context[USER_AGENT_PROPERTY] = event.user_agent
    if event.client_ip:
        context[CLIENT_IP_PROPERTY] = event.client_ip
    return context


def merge_properties(event: TrackEvent) -> dict[str, Any]:
    """Merge the event's property sources.

    Sources are applied in order, later ones winning: caller properties,
    then request context. A caller-supplied ``$ip`` or ``$user_agent`` is
    replaced by the captured context value.
    """
    sources = [event.properties, _context_properties(event)]
    merged: dict[str, Any] = {}
    for source in sources:
        merged.update(source)
    return merged


def _monetary_value(properties: dict[str, Any]) -> int | float | None:
    value = properties.get("value")
    if isinstance(value, bool) or not isinstance(value, int | float):
        return None
    return value


def build_event_document(event: TrackEvent, submitted_at: int) -> dict:
    """Build the upstream event document.

    The profile is keyed by ``anonymous_id`` only. ``unique_id`` combines
    the anonymous id with the submission clock reading as a best-effort
    dedup key.
    """
    properties = merge_properties(event)
    attributes: dict[str, Any] = {
        "profile": {
            "data": {
                "type": "profile",
                "attributes": {"anonymous_id": event.anonymous_id},
            }
        },
        "metric": {
            "data": {
                "type": "metric",
                "attributes": {"name": event.name},
            }
        },
        "properties": properties,
        "time": event.timestamp,
        "unique_id": f"{event.anonymous_id}_{submitted_at}",
    }
    value = _monetary_value(properties)
    if value is not None:
        attributes["value"] = value
    return {"data": {"type": "event", "attributes": attributes}}


class EventRelay:
    """Converts a validated event into the upstream format and submits it."""

    def __init__(
        self,
        upstream: UpstreamClient,
        clock: Callable[[], int] = time.time_ns,
    ) -> None:
        self.upstream = upstream
        self.clock = clock

    async def relay(self, event: TrackEvent) -> TrackResult:
        """Submit one event.

        Raises:
            ValidationError: name or anonymous_id is empty.
            UpstreamError: the store answered with a non-2xx status.
            TransportError: the store could not be reached.
        """
        if not event.name:
            raise ValidationError("Missing required field: event")
        if not event.anonymous_id:
            raise ValidationError("Missing required field: anonymousId")

        document = build_event_document(event, self.clock())
        logger.debug("Relaying event %r for %s", event.name, event.anonymous_id)

        response = await self.upstream.create_event(document)
        ensure_success(response, "Upstream rejected event")

        event_id = resource_id(parse_body(response)) or event.anonymous_id
        logger.info("Event %r relayed (%s)", event.name, event_id)
        return TrackResult(event_id=event_id)
