"""API routes for the profile relay server."""

from fastapi import APIRouter

from profilerelay.server.routes.identify import router as identify_router
from profilerelay.server.routes.track import router as track_router

router = APIRouter()
router.include_router(track_router)
router.include_router(identify_router)
