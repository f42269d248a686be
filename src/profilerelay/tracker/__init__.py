"""
Profile Relay Tracker - client SDK for anonymous event tracking.

The tracker assigns each visitor a durable anonymous id, tags every event
with it, and lets the visitor be identified by email later so their
anonymous activity is merged into a known profile.

Example:
    >>> from profilerelay.tracker import Tracker
    >>> async with Tracker("https://relay.example.com") as tracker:
    ...     await tracker.track("Viewed Product", {"product_id": "12345"})
    ...     await tracker.identify("user@example.com", {"firstName": "Ada"})
"""

from profilerelay.tracker.client import Tracker
from profilerelay.tracker.identity import (
    AnonymousIdentityProvider,
    FileIdentityStore,
    IdentityStore,
    MemoryIdentityStore,
    generate_anonymous_id,
)
from profilerelay.tracker.schema import (
    IdentifyRequest,
    IdentifyResult,
    TrackEvent,
    TrackResult,
)

__all__ = [
    # Client
    "Tracker",
    # Identity
    "AnonymousIdentityProvider",
    "IdentityStore",
    "MemoryIdentityStore",
    "FileIdentityStore",
    "generate_anonymous_id",
    # Models
    "TrackEvent",
    "IdentifyRequest",
    "TrackResult",
    "IdentifyResult",
]

__version__ = "0.1.0"
