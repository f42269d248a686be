"""
Profile Relay - anonymous event tracking relayed to a profile store.

Visitors get a durable anonymous id on the client; events tagged with it are
relayed to the upstream profile/event store, and identify calls reconcile the
visitor with an existing profile for the same email.

Example:
    >>> from profilerelay import Tracker
    >>> async with Tracker("https://relay.example.com") as tracker:
    ...     await tracker.track("Viewed Page", {"url": "https://shop.example.com/"})
"""

from profilerelay.tracker import (
    AnonymousIdentityProvider,
    FileIdentityStore,
    IdentifyRequest,
    IdentifyResult,
    MemoryIdentityStore,
    Tracker,
    TrackEvent,
    TrackResult,
)

__all__ = [
    # Client
    "Tracker",
    # Identity
    "AnonymousIdentityProvider",
    "MemoryIdentityStore",
    "FileIdentityStore",
    # Models
    "TrackEvent",
    "IdentifyRequest",
    "TrackResult",
    "IdentifyResult",
]

__version__ = "0.1.0"
