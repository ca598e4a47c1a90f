"""Abstract media provider definition."""

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from typing import Any

from ..media.media_models import MediaKind
from ..uploads.uploads_models import BufferedUpload


class UpstreamError(Exception):
    """Raised when the media provider rejects or fails a call."""


class MediaProvider(ABC):
    """Operations the gateway needs from the remote media store."""

    @abstractmethod
    async def list_resources(
        self, kind: MediaKind, *, prefix: str, max_results: int
    ) -> list[dict[str, Any]]:
        """Return raw resource records under ``prefix`` with tags and context."""

    @abstractmethod
    async def upload(
        self,
        kind: MediaKind,
        payload: BufferedUpload,
        *,
        folder: str,
        context: str,
        tags: Sequence[str] = (),
    ) -> dict[str, Any]:
        """Stream ``payload`` to the provider and return its resource descriptor."""

    @abstractmethod
    async def add_context(
        self, kind: MediaKind, public_id: str, context: Mapping[str, str]
    ) -> dict[str, Any]:
        """Merge ``context`` keys into the resource's context."""

    @abstractmethod
    async def replace_tags(
        self, kind: MediaKind, public_id: str, tags: Sequence[str]
    ) -> dict[str, Any]:
        """Replace every tag of the resource with ``tags``."""

    @abstractmethod
    async def destroy(
        self, kind: MediaKind, public_id: str, *, invalidate: bool = True
    ) -> dict[str, Any]:
        """Delete the resource, optionally invalidating CDN caches."""
