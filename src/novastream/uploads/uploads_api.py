"""HTTP routes for video and image uploads."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable
from typing import Any, TypeVar

from fastapi import APIRouter, Depends, Request

from ..auth.auth_dependencies import get_app_config, require_admin_session
from ..auth.auth_service import AuthenticatedAdmin
from ..config import AppConfig
from ..errors import (
    payload_too_large_error,
    rate_limited_error,
    upstream_error,
    validation_error,
)
from ..media.media_api import get_media_service
from ..media.media_models import MediaKind
from ..media.media_service import MediaService, UploadMetadata
from ..providers.providers_base import UpstreamError
from .multipart import read_multipart
from .uploads_errors import MalformedUploadError, PayloadTooLargeError, UploadAbortedError
from .uploads_gate import UploadGate
from .uploads_models import MultipartPayload

router = APIRouter(prefix="/api", tags=["uploads"])
logger = logging.getLogger(__name__)

T = TypeVar("T")


def get_upload_gate(request: Request) -> UploadGate:
    try:
        return request.app.state.upload_gate  # type: ignore[attr-defined]
    except AttributeError as exc:  # pragma: no cover - defensive path
        raise RuntimeError("UploadGate is not configured") from exc


async def forward_until_disconnect(
    request: Request, operation: Awaitable[T], *, poll_seconds: float
) -> T:
    """Await ``operation``, cancelling it if the client goes away first."""
    task = asyncio.ensure_future(operation)
    try:
        while True:
            done, _ = await asyncio.wait({task}, timeout=poll_seconds)
            if done:
                return task.result()
            if await request.is_disconnected():
                raise UploadAbortedError("client disconnected while forwarding upload")
    finally:
        if not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task


async def _handle_upload(
    request: Request,
    *,
    kind: MediaKind,
    file_field: str,
    metadata_from: Any,
    service: MediaService,
    gate: UploadGate,
    config: AppConfig,
) -> dict[str, Any]:
    if gate.saturated():
        logger.warning(
            "upload.rate_limited",
            extra={"kind": kind.value, "limit": gate.limit},
        )
        raise rate_limited_error("Too many uploads in progress, retry later")

    async with gate:
        try:
            payload: MultipartPayload = await read_multipart(
                request,
                file_field=file_field,
                max_file_bytes=config.max_upload_bytes,
                max_field_bytes=config.max_field_bytes,
            )
        except PayloadTooLargeError as exc:
            logger.warning("upload.payload_too_large", extra={"kind": kind.value})
            raise payload_too_large_error(str(exc)) from exc
        except (MalformedUploadError, UploadAbortedError) as exc:
            logger.warning(
                "upload.invalid_body", extra={"kind": kind.value, "reason": str(exc)}
            )
            raise validation_error(str(exc)) from exc

        try:
            upload = payload.file
            if upload is None:
                raise validation_error("No file")
            logger.info(
                "upload.received",
                extra={"kind": kind.value, "filename": upload.filename, "size": upload.size},
            )
            return await forward_until_disconnect(
                request,
                service.upload(kind, upload, metadata_from(payload)),
                poll_seconds=config.disconnect_poll_seconds,
            )
        except UpstreamError as exc:
            logger.error("upload.upstream_failed", extra={"kind": kind.value, "error": str(exc)})
            raise upstream_error(str(exc)) from exc
        except UploadAbortedError as exc:
            logger.warning("upload.client_disconnected", extra={"kind": kind.value})
            raise validation_error(str(exc)) from exc
        finally:
            payload.release()


def _video_metadata(payload: MultipartPayload) -> UploadMetadata:
    return UploadMetadata(
        title=payload.text("title", "Untitled"),
        description=payload.text("description"),
        collection=payload.text("playlist") or None,
        thumb_time=payload.text("thumbTime") or None,
    )


def _image_metadata(payload: MultipartPayload) -> UploadMetadata:
    return UploadMetadata(
        title=payload.text("title", "Untitled"),
        description=payload.text("description"),
        collection=payload.text("collection", "General"),
    )


@router.post("/upload")
async def upload_video(
    request: Request,
    admin: AuthenticatedAdmin = Depends(require_admin_session),
    service: MediaService = Depends(get_media_service),
    gate: UploadGate = Depends(get_upload_gate),
    config: AppConfig = Depends(get_app_config),
) -> dict[str, Any]:
    """Stream the ``video`` part to the provider."""
    descriptor = await _handle_upload(
        request,
        kind=MediaKind.VIDEO,
        file_field="video",
        metadata_from=_video_metadata,
        service=service,
        gate=gate,
        config=config,
    )
    return {"success": True, "video": descriptor}


@router.post("/upload-image")
async def upload_image(
    request: Request,
    admin: AuthenticatedAdmin = Depends(require_admin_session),
    service: MediaService = Depends(get_media_service),
    gate: UploadGate = Depends(get_upload_gate),
    config: AppConfig = Depends(get_app_config),
) -> dict[str, Any]:
    """Stream the ``image`` part to the provider, tagged with its collection."""
    descriptor = await _handle_upload(
        request,
        kind=MediaKind.IMAGE,
        file_field="image",
        metadata_from=_image_metadata,
        service=service,
        gate=gate,
        config=config,
    )
    return {"success": True, "image": descriptor}
