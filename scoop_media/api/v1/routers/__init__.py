"""Aggregated router for the media API."""

from fastapi import APIRouter

from scoop_media.api.v1.routers.media import router as media_router

router = APIRouter()
router.include_router(media_router)

__all__ = ["router"]
