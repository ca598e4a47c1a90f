"""HTTP routes listing, updating and deleting provider resources."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

from ..auth.auth_dependencies import require_admin_session
from ..auth.auth_service import AuthenticatedAdmin
from ..errors import upstream_error, validation_error
from ..providers.providers_base import UpstreamError
from .media_models import ImageView, MediaKind, VideoView
from .media_service import MediaService

router = APIRouter(prefix="/api", tags=["media"])
logger = logging.getLogger(__name__)


class VideoUpdateRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    thumb_time: str | None = None
    playlist: str | None = None


def get_media_service(request: Request) -> MediaService:
    try:
        return request.app.state.media_service  # type: ignore[attr-defined]
    except AttributeError as exc:  # pragma: no cover - defensive path
        raise RuntimeError("MediaService is not configured") from exc


async def _read_update_request(request: Request) -> VideoUpdateRequest:
    """Parse the optional JSON body; only called once the session is verified."""
    body = await request.body()
    if not body.strip():
        return VideoUpdateRequest()
    try:
        return VideoUpdateRequest.model_validate_json(body)
    except ValidationError as exc:
        raise validation_error("Malformed request body") from exc


@router.get("/videos", response_model=list[VideoView])
async def list_videos(
    admin: AuthenticatedAdmin = Depends(require_admin_session),
    service: MediaService = Depends(get_media_service),
) -> list[VideoView]:
    try:
        return await service.list_videos()
    except UpstreamError as exc:
        logger.error("media.list.failed", extra={"kind": "video", "error": str(exc)})
        raise upstream_error(str(exc)) from exc


@router.get("/images", response_model=list[ImageView])
async def list_images(
    admin: AuthenticatedAdmin = Depends(require_admin_session),
    service: MediaService = Depends(get_media_service),
) -> list[ImageView]:
    try:
        return await service.list_images()
    except UpstreamError as exc:
        logger.error("media.list.failed", extra={"kind": "image", "error": str(exc)})
        raise upstream_error(str(exc)) from exc


@router.post("/videos/{public_id:path}/update")
async def update_video(
    public_id: str,
    request: Request,
    admin: AuthenticatedAdmin = Depends(require_admin_session),
    service: MediaService = Depends(get_media_service),
) -> dict[str, Any]:
    payload = await _read_update_request(request)
    try:
        await service.update_video(
            public_id, thumb_time=payload.thumb_time, playlist=payload.playlist
        )
    except UpstreamError as exc:
        logger.error("media.update.failed", extra={"public_id": public_id, "error": str(exc)})
        raise upstream_error(str(exc)) from exc
    return {"success": True}


async def _delete(service: MediaService, kind: MediaKind, public_id: str) -> dict[str, Any]:
    try:
        result = await service.delete(kind, public_id)
    except UpstreamError as exc:
        logger.error(
            "media.delete.failed",
            extra={"kind": kind.value, "public_id": public_id, "error": str(exc)},
        )
        raise upstream_error(str(exc)) from exc
    return {"success": True, "result": result}


@router.delete("/videos/{public_id:path}")
async def delete_video(
    public_id: str,
    admin: AuthenticatedAdmin = Depends(require_admin_session),
    service: MediaService = Depends(get_media_service),
) -> dict[str, Any]:
    return await _delete(service, MediaKind.VIDEO, public_id)


@router.delete("/images/{public_id:path}")
async def delete_image(
    public_id: str,
    admin: AuthenticatedAdmin = Depends(require_admin_session),
    service: MediaService = Depends(get_media_service),
) -> dict[str, Any]:
    return await _delete(service, MediaKind.IMAGE, public_id)
