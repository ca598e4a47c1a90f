"""In-memory multipart/form-data reader.

Starlette's form parser spools file parts larger than 1 MiB to a temporary
file. Uploads here must never touch local disk, so the request stream is fed
straight into ``python_multipart`` and the single expected file part is kept in
a :class:`BufferedUpload`. Size caps are enforced while bytes arrive.
"""

from __future__ import annotations

import structlog
from python_multipart.exceptions import MultipartParseError
from python_multipart.multipart import MultipartParser, parse_options_header
from starlette.requests import ClientDisconnect, Request

from .uploads_errors import MalformedUploadError, PayloadTooLargeError, UploadAbortedError
from .uploads_models import BufferedUpload, MultipartPayload

logger = structlog.get_logger(__name__)

# Room for boundaries, part headers and the text fields around the file.
BODY_OVERHEAD_BYTES = 1024 * 1024


class _FormCollector:
    """Callback target for :class:`MultipartParser`."""

    def __init__(self, *, file_field: str, max_file_bytes: int, max_field_bytes: int) -> None:
        self.file_field = file_field
        self.max_file_bytes = max_file_bytes
        self.max_field_bytes = max_field_bytes
        self.payload = MultipartPayload()
        self._headers: dict[bytes, bytes] = {}
        self._header_field = b""
        self._header_value = b""
        self._name = ""
        self._filename: str | None = None
        self._text = bytearray()
        self._file: BufferedUpload | None = None
        self._discard = False

    def callbacks(self) -> dict[str, object]:
        return {
            "on_part_begin": self.on_part_begin,
            "on_part_data": self.on_part_data,
            "on_part_end": self.on_part_end,
            "on_header_field": self.on_header_field,
            "on_header_value": self.on_header_value,
            "on_header_end": self.on_header_end,
            "on_headers_finished": self.on_headers_finished,
        }

    def on_part_begin(self) -> None:
        self._headers = {}
        self._name = ""
        self._filename = None
        self._text = bytearray()
        self._file = None
        self._discard = False

    def on_header_field(self, data: bytes, start: int, end: int) -> None:
        self._header_field += data[start:end]

    def on_header_value(self, data: bytes, start: int, end: int) -> None:
        self._header_value += data[start:end]

    def on_header_end(self) -> None:
        self._headers[self._header_field.lower()] = self._header_value
        self._header_field = b""
        self._header_value = b""

    def on_headers_finished(self) -> None:
        disposition = self._headers.get(b"content-disposition")
        if disposition is None:
            raise MalformedUploadError("multipart part without Content-Disposition")
        _, options = parse_options_header(disposition)
        self._name = options.get(b"name", b"").decode("utf-8", errors="replace")
        filename = options.get(b"filename")
        if filename is None:
            return
        self._filename = filename.decode("utf-8", errors="replace")
        if self._name != self.file_field or self.payload.file is not None:
            self._discard = True
            return
        content_type = self._headers.get(b"content-type", b"application/octet-stream")
        self._file = BufferedUpload(
            field_name=self._name,
            filename=self._filename or "upload",
            content_type=content_type.decode("latin-1"),
        )

    def on_part_data(self, data: bytes, start: int, end: int) -> None:
        if self._discard:
            return
        if self._file is not None:
            if self._file.size + (end - start) > self.max_file_bytes:
                raise PayloadTooLargeError(f"file exceeds {self.max_file_bytes} bytes")
            self._file.append(data[start:end])
            return
        if self._filename is not None:
            return
        if len(self._text) + (end - start) > self.max_field_bytes:
            raise PayloadTooLargeError(f"field {self._name!r} exceeds {self.max_field_bytes} bytes")
        self._text.extend(data[start:end])

    def on_part_end(self) -> None:
        if self._file is not None:
            # Browsers send an empty part with filename="" when no file was chosen.
            if self._filename and self._file.size > 0:
                self.payload.file = self._file
            self._file = None
            return
        if self._filename is None and self._name:
            self.payload.fields[self._name] = self._text.decode("utf-8", errors="replace")

    def discard(self) -> None:
        if self._file is not None:
            self._file.release()
        self.payload.release()


async def read_multipart(
    request: Request,
    *,
    file_field: str,
    max_file_bytes: int,
    max_field_bytes: int = 64 * 1024,
) -> MultipartPayload:
    """Parse ``request`` into text fields plus one in-memory file part."""

    content_type, params = parse_options_header(request.headers.get("content-type", ""))
    if content_type != b"multipart/form-data":
        raise MalformedUploadError("expected multipart/form-data body")
    boundary = params.get(b"boundary")
    if not boundary:
        raise MalformedUploadError("multipart boundary is missing")

    max_body = max_file_bytes + BODY_OVERHEAD_BYTES
    declared = request.headers.get("content-length")
    if declared is not None:
        try:
            declared_size = int(declared)
        except ValueError:
            raise MalformedUploadError("invalid Content-Length header") from None
        if declared_size > max_body:
            raise PayloadTooLargeError(f"request body of {declared_size} bytes exceeds limit")

    collector = _FormCollector(
        file_field=file_field,
        max_file_bytes=max_file_bytes,
        max_field_bytes=max_field_bytes,
    )
    parser = MultipartParser(boundary, collector.callbacks())
    received = 0
    try:
        async for chunk in request.stream():
            received += len(chunk)
            if received > max_body:
                raise PayloadTooLargeError(f"request body exceeds {max_body} bytes")
            parser.write(chunk)
        parser.finalize()
    except ClientDisconnect as exc:
        collector.discard()
        raise UploadAbortedError("client disconnected during upload") from exc
    except MultipartParseError as exc:
        collector.discard()
        raise MalformedUploadError(str(exc)) from exc
    except (PayloadTooLargeError, MalformedUploadError):
        collector.discard()
        raise

    payload = collector.payload
    logger.debug(
        "upload.multipart.parsed",
        fields=sorted(payload.fields),
        file_size=payload.file.size if payload.file else None,
        body_bytes=received,
    )
    return payload


__all__ = ["BODY_OVERHEAD_BYTES", "read_multipart"]
