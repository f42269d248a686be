"""
Profile Relay Schema

This module defines the data types shared by the tracker SDK and the relay
server. Events and identify requests are immutable once constructed and live
only for the duration of one relay call.

The schema covers:
- Behavioral events keyed by an anonymous visitor identity
- Identify requests that attach an email to that identity
- The results returned to callers of track and identify
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# =============================================================================
# CONSTANTS
# =============================================================================

PROMOTED_PROFILE_FIELDS = {
    "firstName": "first_name",
    "lastName": "last_name",
    "phone": "phone_number",
}
"""
Identify properties lifted to top-level profile attributes.

Keys are the names callers use inside ``properties``; values are the
attribute names the upstream profile store expects.
"""

USER_AGENT_PROPERTY = "$user_agent"
CLIENT_IP_PROPERTY = "$ip"


# =============================================================================
# CORE MODELS
# =============================================================================


class TrackEvent(BaseModel):
    """
    Behavioral event attributed to an anonymous visitor.

    Attributes:
        name: Metric name (e.g., "Viewed Product").
        properties: Caller-supplied event properties.
        anonymous_id: Anonymous identity of the visitor.
        timestamp: When the event occurred, as an ISO-8601 string.
        user_agent: Client user agent, if known.
        client_ip: Client IP address, if known.

    Example:
        >>> event = TrackEvent(
        ...     name="Viewed Product",
        ...     properties={"product_id": "12345", "value": 29.99},
        ...     anonymous_id="6f1c...",
        ...     timestamp=datetime.now(UTC).isoformat(),
        ... )
    """

    model_config = ConfigDict(frozen=True)

    name: str
    properties: dict[str, Any] = Field(default_factory=dict)
    anonymous_id: str
    timestamp: str
    user_agent: str | None = None
    client_ip: str | None = None


class IdentifyRequest(BaseModel):
    """
    Request to attach an email (and profile attributes) to a visitor.

    ``firstName``, ``lastName`` and ``phone`` inside ``properties`` are
    promoted to top-level profile attributes upstream.

    Attributes:
        email: Email address of the visitor.
        anonymous_id: Anonymous identity to merge, if the visitor has one.
        properties: Profile properties.
    """

    model_config = ConfigDict(frozen=True)

    email: str
    anonymous_id: str | None = None
    properties: dict[str, Any] = Field(default_factory=dict)


class TrackResult(BaseModel):
    """Outcome of a relayed event."""

    event_id: str


class IdentifyResult(BaseModel):
    """
    Outcome of an identify call.

    Attributes:
        profile_id: Upstream profile id. None when the upstream accepted the
            create with an empty body.
        updated: True when an existing profile was updated instead of created.
    """

    profile_id: str | None
    updated: bool = False
