"""Request-scoped access to the upstream client and services."""

from typing import Annotated

from fastapi import Depends, Request

from profilerelay.server.services.events import EventRelay
from profilerelay.server.services.profiles import IdentifyReconciler
from profilerelay.server.upstream import UpstreamClient


def get_upstream(request: Request) -> UpstreamClient:
    """Get the upstream client from app state."""
    return request.app.state.upstream


def get_event_relay(upstream: Annotated[UpstreamClient, Depends(get_upstream)]) -> EventRelay:
    return EventRelay(upstream)


def get_reconciler(
    upstream: Annotated[UpstreamClient, Depends(get_upstream)],
) -> IdentifyReconciler:
    return IdentifyReconciler(upstream)


Relay = Annotated[EventRelay, Depends(get_event_relay)]
Reconciler = Annotated[IdentifyReconciler, Depends(get_reconciler)]
