"""
📦 Scoop Media · Media API
=========================

Routes used by the mobile client to move post media and avatars in and out of
the media bucket. All routes require an authenticated caller and respond with
`Cache-Control: no-store`.

Routes (4)
----------
- POST   /upload-url      → Presigned PUT for post media (image or video)
- POST   /avatar-url      → Presigned PUT for an avatar image
- POST   /process-video   → Trim (and maybe compress) an uploaded clip
- DELETE /media/{key}     → Delete an object the caller owns (key may contain `/`)

Errors
------
401 no caller · 400 bad body · 403 not the owner · 501 no bucket configured ·
500 delete failed. Video processing never fails because of ffmpeg: the
original key comes back with `processed: false`.
"""

from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from scoop_media.core.limiter import rate_limit
from scoop_media.core.security import Identity, get_current_identity
from scoop_media.schemas.media import (
    DeleteOut,
    ProcessVideoIn,
    ProcessVideoOut,
    UploadUrlIn,
    UploadUrlOut,
)
from scoop_media.security_headers import NO_STORE_HEADERS
from scoop_media.services.media_service import MediaService

router = APIRouter(tags=["Media"])


def _json(data: Any, status_code: int = 200) -> JSONResponse:
    return JSONResponse(data, status_code=status_code, headers=dict(NO_STORE_HEADERS))


def get_media_service(request: Request) -> MediaService:
    """The service built in the app lifespan (or injected by `create_app`)."""
    return request.app.state.media_service


@router.post("/upload-url", response_model=UploadUrlOut, summary="Presigned PUT for post media")
@rate_limit("30/minute")
async def upload_url(
    request: Request,
    payload: Optional[UploadUrlIn] = Body(default=None),
    identity: Identity = Depends(get_current_identity),
    service: MediaService = Depends(get_media_service),
) -> JSONResponse:
    content_type = payload.content_type if payload else None
    ticket = await run_in_threadpool(service.issue_upload_url, identity.user_id, content_type)
    return _json(UploadUrlOut(url=ticket.url, key=ticket.key).model_dump())


@router.post("/avatar-url", response_model=UploadUrlOut, summary="Presigned PUT for an avatar")
@rate_limit("10/minute")
async def avatar_url(
    request: Request,
    payload: Optional[UploadUrlIn] = Body(default=None),
    identity: Identity = Depends(get_current_identity),
    service: MediaService = Depends(get_media_service),
) -> JSONResponse:
    content_type = payload.content_type if payload else None
    ticket = await run_in_threadpool(service.issue_avatar_url, identity.user_id, content_type)
    return _json(UploadUrlOut(url=ticket.url, key=ticket.key).model_dump())


@router.post("/process-video", response_model=ProcessVideoOut, summary="Trim an uploaded clip")
@rate_limit("10/minute")
async def process_video(
    request: Request,
    payload: Optional[ProcessVideoIn] = Body(default=None),
    identity: Identity = Depends(get_current_identity),
    service: MediaService = Depends(get_media_service),
) -> JSONResponse:
    payload = payload or ProcessVideoIn()
    # Blocking: download, ffmpeg and upload all run in the worker thread.
    result = await run_in_threadpool(
        service.process_video,
        identity.user_id,
        payload.key,
        payload.start_time,
        payload.end_time,
    )
    return _json(ProcessVideoOut(key=result.key, processed=result.processed).model_dump())


@router.delete("/media/{key:path}", response_model=DeleteOut, summary="Delete owned media")
@rate_limit("30/minute")
async def delete_media(
    request: Request,
    key: str,
    identity: Identity = Depends(get_current_identity),
    service: MediaService = Depends(get_media_service),
) -> JSONResponse:
    # The router has already percent-decoded the path once (`%2F` → `/`).
    outcome = await run_in_threadpool(service.delete_media, identity.user_id, key)
    return _json(DeleteOut(**outcome).model_dump())


__all__ = ["router", "get_media_service"]
