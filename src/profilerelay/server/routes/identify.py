"""Identify route - merges anonymous activity into a known profile."""

from fastapi import APIRouter

from profilerelay.server.dependencies import Reconciler
from profilerelay.server.models import IdentifyBody, IdentifyRequest

router = APIRouter(tags=["identify"])


@router.post("/identify")
async def identify(
    data: IdentifyBody,
    reconciler: Reconciler,
) -> dict:
    """Identify a visitor by email.

    Creates the profile, or updates the existing one when the email is
    already known upstream.
    """
    result = await reconciler.reconcile(
        IdentifyRequest(
            email=data.email or "",
            anonymous_id=data.anonymous_id,
            properties=data.properties or {},
        )
    )
    return {
        "success": True,
        "message": "User identified successfully",
        "profileId": result.profile_id,
        "updated": result.updated,
    }
