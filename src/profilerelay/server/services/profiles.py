"""Identify reconciliation against the upstream profile store.

A create is attempted first. When the store reports that a profile with the
same email already exists (HTTP 409 carrying ``duplicate_profile_id``), the
same attributes are sent as a partial update to that profile instead, so
identify converges on one profile per email.

Two concurrent identifies for the same email can both take the conflict
path and update the same profile. Both send the same attribute set, so the
race is benign. The create-then-update sequence is not atomic: if the update
response is lost, the profile is still updated.
"""

import logging
import re
from typing import Any

import httpx

from profilerelay.server.errors import UpstreamError, ValidationError
from profilerelay.server.upstream import UpstreamClient, ensure_success, parse_body, resource_id
from profilerelay.tracker.schema import PROMOTED_PROFILE_FIELDS, IdentifyRequest, IdentifyResult

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def validate_email(email: str | None) -> str:
    """Return ``email`` if it looks like an address, else raise ValidationError."""
    if not email:
        raise ValidationError("Missing required field: email")
    if not EMAIL_PATTERN.fullmatch(email):
        raise ValidationError("Invalid email format")
    return email


def build_profile_attributes(request: IdentifyRequest) -> dict[str, Any]:
    """Build profile attributes, promoting name and phone fields to the top level."""
    properties = {
        key: value
        for key, value in request.properties.items()
        if key not in PROMOTED_PROFILE_FIELDS
    }
    attributes: dict[str, Any] = {"email": request.email}
    if request.anonymous_id:
        attributes["anonymous_id"] = request.anonymous_id
    attributes["properties"] = properties
    for source_key, attribute in PROMOTED_PROFILE_FIELDS.items():
        value = request.properties.get(source_key)
        if value:
            attributes[attribute] = value
    return attributes


def duplicate_profile_id(response: httpx.Response) -> str | None:
    """Extract ``duplicate_profile_id`` from a 409 error document."""
    body = parse_body(response)
    if not body:
        return None
    errors = body.get("errors")
    if not isinstance(errors, list):
        return None
    for error in errors:
        if not isinstance(error, dict):
            continue
        meta = error.get("meta")
        if isinstance(meta, dict) and meta.get("duplicate_profile_id"):
            return str(meta["duplicate_profile_id"])
    return None


class IdentifyReconciler:
    """Creates a profile, or updates the existing one when the email is taken."""

    def __init__(self, upstream: UpstreamClient) -> None:
        self.upstream = upstream

    async def reconcile(self, request: IdentifyRequest) -> IdentifyResult:
        """Identify a visitor.

        Returns:
            ``updated=False`` with the new profile id when the create was
            accepted, ``updated=True`` with the existing id after a conflict.

        Raises:
            ValidationError: email missing or malformed.
            UpstreamError: create failed for any reason other than a
                recognised conflict, or the follow-up update failed.
            TransportError: the store could not be reached.
        """
        validate_email(request.email)
        attributes = build_profile_attributes(request)

        logger.debug("Creating profile for %s", request.email)
        response = await self.upstream.create_profile(
            {"data": {"type": "profile", "attributes": attributes}}
        )

        if response.is_success:
            profile_id = resource_id(parse_body(response))
            logger.info("Profile created (%s)", profile_id)
            return IdentifyResult(profile_id=profile_id, updated=False)

        if response.status_code != httpx.codes.CONFLICT:
            raise UpstreamError("Upstream rejected profile", response.status_code, response.text)

        existing_id = duplicate_profile_id(response)
        if existing_id is None:
            raise UpstreamError(
                "Unrecognized conflict shape from upstream",
                response.status_code,
                response.text,
            )

        logger.info("Profile for %s already exists (%s); updating", request.email, existing_id)
        response = await self.upstream.update_profile(
            existing_id,
            {"data": {"type": "profile", "id": existing_id, "attributes": attributes}},
        )
        ensure_success(response, "Upstream rejected profile update")

        logger.info("Profile updated (%s)", existing_id)
        return IdentifyResult(profile_id=existing_id, updated=True)
