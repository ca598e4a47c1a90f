"""View models and context helpers for provider resources."""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

DEFAULT_TITLE = "Untitled"
DEFAULT_COLLECTION = "General"
DEFAULT_THUMB_TIME = "0.5"


class MediaKind(StrEnum):
    """Provider resource types handled by the gateway."""

    VIDEO = "video"
    IMAGE = "image"


class _View(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    url: str
    title: str = DEFAULT_TITLE
    description: str = ""
    size: int = 0
    uploaded_at: str | None = None


class VideoView(_View):
    playlist: str = DEFAULT_COLLECTION
    thumb_time: str = DEFAULT_THUMB_TIME


class ImageView(_View):
    collection: str = DEFAULT_COLLECTION


def _escape(value: str) -> str:
    return value.replace("\\", "\\\\").replace("|", "\\|").replace("=", "\\=")


def encode_context(values: Mapping[str, str]) -> str:
    """Serialise ``values`` as a provider context string ``k=v|k=v``."""

    return "|".join(f"{_escape(key)}={_escape(str(value))}" for key, value in values.items())


def custom_context(resource: Mapping[str, Any]) -> dict[str, str]:
    context = resource.get("context") or {}
    custom = context.get("custom") if isinstance(context, Mapping) else None
    if not isinstance(custom, Mapping):
        return {}
    return {str(key): str(value) for key, value in custom.items()}


def first_tag(resource: Mapping[str, Any]) -> str | None:
    tags = resource.get("tags") or []
    if isinstance(tags, list) and tags:
        return str(tags[0])
    return None


def _base_fields(resource: Mapping[str, Any]) -> dict[str, Any]:
    custom = custom_context(resource)
    return {
        "id": resource["public_id"],
        "url": resource.get("secure_url") or resource.get("url") or "",
        "title": custom.get("title") or DEFAULT_TITLE,
        "description": custom.get("description") or "",
        "size": int(resource.get("bytes") or 0),
        "uploaded_at": resource.get("created_at"),
    }


def video_view_from_resource(resource: Mapping[str, Any]) -> VideoView:
    custom = custom_context(resource)
    return VideoView(
        **_base_fields(resource),
        playlist=first_tag(resource) or DEFAULT_COLLECTION,
        thumb_time=custom.get("thumbTime") or DEFAULT_THUMB_TIME,
    )


def image_view_from_resource(resource: Mapping[str, Any]) -> ImageView:
    return ImageView(
        **_base_fields(resource),
        collection=first_tag(resource) or DEFAULT_COLLECTION,
    )


__all__ = [
    "DEFAULT_COLLECTION",
    "DEFAULT_THUMB_TIME",
    "DEFAULT_TITLE",
    "ImageView",
    "MediaKind",
    "VideoView",
    "custom_context",
    "encode_context",
    "first_tag",
    "image_view_from_resource",
    "video_view_from_resource",
]
