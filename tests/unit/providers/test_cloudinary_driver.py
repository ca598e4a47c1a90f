from __future__ import annotations

import base64
from typing import Any
from urllib.parse import parse_qs

import httpx
import pytest
from cloudinary.utils import api_sign_request

from src.novastream.media.media_models import MediaKind
from src.novastream.providers.providers_base import UpstreamError
from src.novastream.providers.providers_cloudinary import CloudinaryDriver
from src.novastream.uploads.uploads_models import BufferedUpload

pytestmark = pytest.mark.unit

API_SECRET = "cloud-secret"
NOW = 1_700_000_000


class Recorder:
    """Collects requests and answers them from a queue of responses."""

    def __init__(self, *responses: httpx.Response | Exception) -> None:
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        outcome = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def build_driver(recorder: Recorder, **overrides: Any) -> CloudinaryDriver:
    params: dict[str, Any] = {
        "cloud_name": "demo-cloud",
        "api_key": "123456",
        "api_secret": API_SECRET,
        "api_base_url": "https://api.cloudinary.test/v1_1",
        "transport": httpx.MockTransport(recorder),
        "clock": lambda: NOW,
    }
    params.update(overrides)
    return CloudinaryDriver(**params)


def make_upload(body: bytes) -> BufferedUpload:
    upload = BufferedUpload(field_name="video", filename="clip.mp4", content_type="video/mp4")
    upload.append(body)
    return upload


def form_fields(request: httpx.Request) -> dict[str, list[str]]:
    return parse_qs(request.content.decode(), keep_blank_values=True)


def multipart_field(request: httpx.Request, name: str) -> str:
    marker = f'name="{name}"\r\n\r\n'.encode()
    start = request.content.index(marker) + len(marker)
    end = request.content.index(b"\r\n", start)
    return request.content[start:end].decode()


@pytest.mark.asyncio
async def test_list_resources_uses_admin_api_with_basic_auth() -> None:
    recorder = Recorder(
        httpx.Response(200, json={"resources": [{"public_id": "video-streaming-app/a"}]})
    )

    resources = await build_driver(recorder).list_resources(
        MediaKind.VIDEO, prefix="video-streaming-app/", max_results=100
    )

    assert resources == [{"public_id": "video-streaming-app/a"}]
    (request,) = recorder.requests
    assert request.method == "GET"
    assert request.url.path == "/v1_1/demo-cloud/resources/video/upload"
    assert request.url.params["prefix"] == "video-streaming-app/"
    assert request.url.params["max_results"] == "100"
    assert request.url.params["context"] == "true"
    assert request.url.params["tags"] == "true"
    expected_auth = base64.b64encode(f"123456:{API_SECRET}".encode()).decode()
    assert request.headers["authorization"] == f"Basic {expected_auth}"


@pytest.mark.asyncio
async def test_list_resources_maps_rejection_to_upstream_error() -> None:
    recorder = Recorder(
        httpx.Response(401, json={"error": {"message": "Invalid api_key"}})
    )

    with pytest.raises(UpstreamError, match="Invalid api_key"):
        await build_driver(recorder).list_resources(
            MediaKind.IMAGE, prefix="photo-gallery-app/", max_results=10
        )


@pytest.mark.asyncio
async def test_small_upload_is_single_signed_request() -> None:
    recorder = Recorder(httpx.Response(200, json={"public_id": "video-streaming-app/x"}))

    result = await build_driver(recorder).upload(
        MediaKind.VIDEO,
        make_upload(b"tiny-video"),
        folder="video-streaming-app",
        context="title=Clip|description=",
        tags=["Trips"],
    )

    assert result == {"public_id": "video-streaming-app/x"}
    (request,) = recorder.requests
    assert request.url.path == "/v1_1/demo-cloud/video/upload"
    assert "content-range" not in request.headers
    signed = {
        "folder": "video-streaming-app",
        "context": "title=Clip|description=",
        "tags": "Trips",
        "timestamp": str(NOW),
    }
    assert multipart_field(request, "signature") == api_sign_request(signed, API_SECRET)
    assert multipart_field(request, "api_key") == "123456"
    assert multipart_field(request, "folder") == "video-streaming-app"
    assert b'filename="clip.mp4"' in request.content
    assert b"tiny-video" in request.content


@pytest.mark.asyncio
async def test_large_upload_is_sent_in_ranged_chunks() -> None:
    recorder = Recorder(
        httpx.Response(200, json={"done": False}),
        httpx.Response(200, json={"done": False}),
        httpx.Response(200, json={"public_id": "video-streaming-app/big"}),
    )

    result = await build_driver(recorder, chunk_size=4).upload(
        MediaKind.VIDEO,
        make_upload(b"0123456789"),
        folder="video-streaming-app",
        context="title=Big",
    )

    assert result == {"public_id": "video-streaming-app/big"}
    ranges = [request.headers["content-range"] for request in recorder.requests]
    assert ranges == ["bytes 0-3/10", "bytes 4-7/10", "bytes 8-9/10"]
    upload_ids = {request.headers["x-unique-upload-id"] for request in recorder.requests}
    assert len(upload_ids) == 1


@pytest.mark.asyncio
async def test_upload_rejects_empty_payload_without_calling_provider() -> None:
    recorder = Recorder(httpx.Response(200, json={}))

    with pytest.raises(UpstreamError, match="Empty file"):
        await build_driver(recorder).upload(
            MediaKind.IMAGE, make_upload(b""), folder="photo-gallery-app", context=""
        )
    assert recorder.requests == []


@pytest.mark.asyncio
async def test_upload_maps_provider_error_message() -> None:
    recorder = Recorder(
        httpx.Response(400, json={"error": {"message": "Invalid image file"}})
    )

    with pytest.raises(UpstreamError, match="Invalid image file"):
        await build_driver(recorder).upload(
            MediaKind.IMAGE, make_upload(b"nope"), folder="photo-gallery-app", context=""
        )


@pytest.mark.asyncio
async def test_transport_failure_becomes_upstream_error() -> None:
    recorder = Recorder(httpx.ConnectError("connection refused"))

    with pytest.raises(UpstreamError):
        await build_driver(recorder).destroy(MediaKind.VIDEO, "video-streaming-app/a")


@pytest.mark.asyncio
async def test_destroy_requests_cache_invalidation() -> None:
    recorder = Recorder(httpx.Response(200, json={"result": "ok"}))

    result = await build_driver(recorder).destroy(MediaKind.IMAGE, "photo-gallery-app/p")

    assert result == {"result": "ok"}
    (request,) = recorder.requests
    assert request.url.path == "/v1_1/demo-cloud/image/destroy"
    fields = form_fields(request)
    assert fields["public_id"] == ["photo-gallery-app/p"]
    assert fields["invalidate"] == ["true"]
    assert fields["type"] == ["upload"]
    signed = {
        "public_id": "photo-gallery-app/p",
        "type": "upload",
        "invalidate": "true",
        "timestamp": str(NOW),
    }
    assert fields["signature"] == [api_sign_request(signed, API_SECRET)]


@pytest.mark.asyncio
async def test_destroy_not_found_is_returned_not_raised() -> None:
    recorder = Recorder(httpx.Response(200, json={"result": "not found"}))

    result = await build_driver(recorder).destroy(MediaKind.VIDEO, "video-streaming-app/gone")

    assert result == {"result": "not found"}


@pytest.mark.asyncio
async def test_add_context_and_replace_tags_target_single_resource() -> None:
    recorder = Recorder(httpx.Response(200, json={"public_ids": ["video-streaming-app/a"]}))
    driver = build_driver(recorder)

    await driver.add_context(MediaKind.VIDEO, "video-streaming-app/a", {"thumbTime": "3"})
    await driver.replace_tags(MediaKind.VIDEO, "video-streaming-app/a", ["Music"])

    context_request, tags_request = recorder.requests
    assert context_request.url.path == "/v1_1/demo-cloud/video/context"
    context_fields = form_fields(context_request)
    assert context_fields["command"] == ["add"]
    assert context_fields["context"] == ["thumbTime=3"]
    assert context_fields["public_ids[]"] == ["video-streaming-app/a"]

    assert tags_request.url.path == "/v1_1/demo-cloud/video/tags"
    tag_fields = form_fields(tags_request)
    assert tag_fields["command"] == ["replace"]
    assert tag_fields["tag"] == ["Music"]
    assert tag_fields["public_ids[]"] == ["video-streaming-app/a"]
