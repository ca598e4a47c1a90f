"""Domain service proxying media operations to the provider."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import structlog

from ..providers.providers_base import MediaProvider
from ..uploads.uploads_models import BufferedUpload
from .media_models import (
    DEFAULT_COLLECTION,
    DEFAULT_THUMB_TIME,
    DEFAULT_TITLE,
    ImageView,
    MediaKind,
    VideoView,
    encode_context,
    image_view_from_resource,
    video_view_from_resource,
)

logger = structlog.get_logger(__name__)


@dataclass(slots=True)
class UploadMetadata:
    """Caller-supplied text attached to an upload."""

    title: str = DEFAULT_TITLE
    description: str = ""
    collection: str | None = None
    thumb_time: str | None = None

    def context(self) -> str:
        values = {"title": self.title or DEFAULT_TITLE, "description": self.description}
        if self.thumb_time:
            values["thumbTime"] = self.thumb_time
        return encode_context(values)

    def tags(self) -> list[str]:
        return [self.collection] if self.collection else []


@dataclass(slots=True)
class MediaService:
    """Thin façade between HTTP handlers and the media provider."""

    provider: MediaProvider
    video_folder: str
    image_folder: str
    max_results: int = 100
    log: Any = field(default_factory=lambda: logger)

    def folder_for(self, kind: MediaKind) -> str:
        return self.video_folder if kind is MediaKind.VIDEO else self.image_folder

    async def list_videos(self) -> list[VideoView]:
        resources = await self.provider.list_resources(
            MediaKind.VIDEO,
            prefix=f"{self.video_folder}/",
            max_results=self.max_results,
        )
        return [video_view_from_resource(resource) for resource in resources]

    async def list_images(self) -> list[ImageView]:
        resources = await self.provider.list_resources(
            MediaKind.IMAGE,
            prefix=f"{self.image_folder}/",
            max_results=self.max_results,
        )
        return [image_view_from_resource(resource) for resource in resources]

    async def upload(
        self, kind: MediaKind, payload: BufferedUpload, metadata: UploadMetadata
    ) -> dict[str, Any]:
        """Forward ``payload`` to the provider; return its descriptor verbatim."""
        self.log.info(
            "media.upload.start",
            kind=kind.value,
            filename=payload.filename,
            size=payload.size,
        )
        descriptor = await self.provider.upload(
            kind,
            payload,
            folder=self.folder_for(kind),
            context=metadata.context(),
            tags=metadata.tags(),
        )
        self.log.info(
            "media.upload.done", kind=kind.value, public_id=descriptor.get("public_id")
        )
        return descriptor

    async def update_video(
        self, public_id: str, *, thumb_time: str | None, playlist: str | None
    ) -> None:
        await self.provider.add_context(
            MediaKind.VIDEO,
            public_id,
            {"thumbTime": thumb_time or DEFAULT_THUMB_TIME},
        )
        await self.provider.replace_tags(
            MediaKind.VIDEO, public_id, [playlist or DEFAULT_COLLECTION]
        )
        self.log.info("media.update.done", kind=MediaKind.VIDEO.value, public_id=public_id)

    async def delete(self, kind: MediaKind, public_id: str) -> dict[str, Any]:
        """Destroy ``public_id``; a provider "not found" counts as success."""
        result = await self.provider.destroy(kind, public_id, invalidate=True)
        self.log.info(
            "media.delete.done",
            kind=kind.value,
            public_id=public_id,
            result=result.get("result"),
        )
        return result


__all__ = ["MediaService", "UploadMetadata"]
