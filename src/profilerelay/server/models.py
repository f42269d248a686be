"""Server-side models for the profile relay."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# Re-export SDK schema types for convenience
from profilerelay.tracker.schema import (
    IdentifyRequest,
    IdentifyResult,
    TrackEvent,
    TrackResult,
)

__all__ = [
    # SDK re-exports
    "IdentifyRequest",
    "IdentifyResult",
    "TrackEvent",
    "TrackResult",
    # Server models
    "TrackBody",
    "IdentifyBody",
]


# =============================================================================
# API Input Models
# =============================================================================
# Required fields are optional here so that missing values reach the services
# and come back as ValidationError (400) rather than a schema error.


class TrackBody(BaseModel):
    """Input for POST /track (matches the tracker client)."""

    model_config = ConfigDict(populate_by_name=True)

    event: str | None = None
    properties: dict[str, Any] | None = None
    anonymous_id: str | None = Field(default=None, alias="anonymousId")


class IdentifyBody(BaseModel):
    """Input for POST /identify."""

    model_config = ConfigDict(populate_by_name=True)

    email: str | None = None
    anonymous_id: str | None = Field(default=None, alias="anonymousId")
    properties: dict[str, Any] | None = None
