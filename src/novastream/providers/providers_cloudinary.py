"""Cloudinary media provider driver."""

from __future__ import annotations

import time
import uuid
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

import httpx
import structlog
from cloudinary.utils import api_sign_request

from ..media.media_models import MediaKind, encode_context
from ..uploads.uploads_models import BufferedUpload
from .providers_base import MediaProvider, UpstreamError

logger = structlog.get_logger(__name__)


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return f"Cloudinary responded with status {response.status_code}"
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    return f"Cloudinary responded with status {response.status_code}"


@dataclass(slots=True)
class CloudinaryDriver(MediaProvider):
    """Talk to the Cloudinary Upload and Admin APIs over httpx."""

    cloud_name: str
    api_key: str
    api_secret: str
    api_base_url: str = "https://api.cloudinary.com/v1_1"
    timeout_seconds: float = 600.0
    chunk_size: int = 6_000_000
    transport: httpx.AsyncBaseTransport | None = None
    clock: Callable[[], float] = field(default=time.time)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout_seconds, transport=self.transport)

    def _url(self, *parts: str) -> str:
        return "/".join((self.api_base_url.rstrip("/"), self.cloud_name, *parts))

    def _signed(self, params: Mapping[str, Any]) -> dict[str, Any]:
        """Attach timestamp, api_key and signature to Upload API params."""
        signed = {key: value for key, value in params.items() if value not in (None, "")}
        signed["timestamp"] = str(int(self.clock()))
        signed["signature"] = api_sign_request(signed, self.api_secret)
        signed["api_key"] = self.api_key
        return signed

    @staticmethod
    def _form(params: Mapping[str, Any]) -> dict[str, Any]:
        # Array params travel as ``name[]`` while being signed as ``name``.
        return {
            (f"{key}[]" if isinstance(value, list) else key): value
            for key, value in params.items()
        }

    async def _post(
        self,
        client: httpx.AsyncClient,
        url: str,
        *,
        data: Mapping[str, Any],
        files: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        operation: str,
    ) -> dict[str, Any]:
        try:
            response = await client.post(url, data=dict(data), files=files, headers=headers)
        except httpx.HTTPError as exc:
            logger.error("cloudinary.request.failed", operation=operation, error=str(exc))
            raise UpstreamError(f"Cloudinary {operation} failed: {exc}") from exc
        if response.status_code >= 400:
            message = _error_message(response)
            logger.warning(
                "cloudinary.request.rejected",
                operation=operation,
                status_code=response.status_code,
                message=message,
            )
            raise UpstreamError(message)
        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamError(f"Cloudinary {operation} returned a malformed body") from exc

    async def list_resources(
        self, kind: MediaKind, *, prefix: str, max_results: int
    ) -> list[dict[str, Any]]:
        params = {
            "type": "upload",
            "prefix": prefix,
            "max_results": str(max_results),
            "context": "true",
            "tags": "true",
        }
        url = self._url("resources", kind.value, "upload")
        try:
            async with self._client() as client:
                response = await client.get(
                    url, params=params, auth=(self.api_key, self.api_secret)
                )
        except httpx.HTTPError as exc:
            logger.error("cloudinary.request.failed", operation="list", error=str(exc))
            raise UpstreamError(f"Cloudinary list failed: {exc}") from exc
        if response.status_code >= 400:
            raise UpstreamError(_error_message(response))
        try:
            resources = response.json().get("resources")
        except (ValueError, AttributeError) as exc:
            raise UpstreamError("Cloudinary list returned a malformed body") from exc
        if not isinstance(resources, list):
            raise UpstreamError("Cloudinary list response missing resources")
        return resources

    async def upload(
        self,
        kind: MediaKind,
        payload: BufferedUpload,
        *,
        folder: str,
        context: str,
        tags: Sequence[str] = (),
    ) -> dict[str, Any]:
        if payload.size == 0:
            raise UpstreamError("Empty file")
        params = self._signed(
            {"folder": folder, "context": context, "tags": ",".join(tags)}
        )
        url = self._url(kind.value, "upload")
        total = payload.size
        chunked = total > self.chunk_size
        upload_id = uuid.uuid4().hex
        result: dict[str, Any] = {}

        async with self._client() as client:
            for offset, chunk in payload.iter_chunks(self.chunk_size):
                headers: dict[str, str] = {}
                if chunked:
                    end = offset + len(chunk) - 1
                    headers = {
                        "X-Unique-Upload-Id": upload_id,
                        "Content-Range": f"bytes {offset}-{end}/{total}",
                    }
                    logger.debug(
                        "cloudinary.upload.chunk",
                        upload_id=upload_id,
                        offset=offset,
                        size=len(chunk),
                        total=total,
                    )
                result = await self._post(
                    client,
                    url,
                    data=params,
                    files={"file": (payload.filename, chunk, payload.content_type)},
                    headers=headers,
                    operation="upload",
                )

        logger.info(
            "cloudinary.upload.done",
            kind=kind.value,
            public_id=result.get("public_id"),
            size=total,
            chunked=chunked,
        )
        return result

    async def add_context(
        self, kind: MediaKind, public_id: str, context: Mapping[str, str]
    ) -> dict[str, Any]:
        params = self._signed(
            {"command": "add", "context": encode_context(context), "public_ids": [public_id]}
        )
        async with self._client() as client:
            return await self._post(
                client, self._url(kind.value, "context"), data=self._form(params),
                operation="context",
            )

    async def replace_tags(
        self, kind: MediaKind, public_id: str, tags: Sequence[str]
    ) -> dict[str, Any]:
        params = self._signed(
            {"command": "replace", "tag": ",".join(tags), "public_ids": [public_id]}
        )
        async with self._client() as client:
            return await self._post(
                client, self._url(kind.value, "tags"), data=self._form(params),
                operation="tags",
            )

    async def destroy(
        self, kind: MediaKind, public_id: str, *, invalidate: bool = True
    ) -> dict[str, Any]:
        params = self._signed(
            {
                "public_id": public_id,
                "type": "upload",
                "invalidate": "true" if invalidate else "false",
            }
        )
        async with self._client() as client:
            result = await self._post(
                client, self._url(kind.value, "destroy"), data=params, operation="destroy"
            )
        logger.info(
            "cloudinary.destroy.done",
            kind=kind.value,
            public_id=public_id,
            result=result.get("result"),
        )
        return result


__all__ = ["CloudinaryDriver"]
