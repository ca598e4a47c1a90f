"""Data structures for the upload streaming path."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field


@dataclass(slots=True)
class BufferedUpload:
    """A file part held in memory for the lifetime of a single request.

    The buffer is owned exclusively by the request that received it. Consumers
    read it through :meth:`iter_chunks`; :meth:`release` drops the reference once
    the provider call finished or the request was aborted.
    """

    field_name: str
    filename: str
    content_type: str
    _buffer: bytearray = field(default_factory=bytearray, repr=False)
    released: bool = False

    @property
    def size(self) -> int:
        return len(self._buffer)

    def append(self, data: bytes) -> None:
        self._buffer.extend(data)

    def iter_chunks(self, chunk_size: int) -> Iterator[tuple[int, bytes]]:
        """Yield ``(offset, chunk)`` pairs covering the buffer in order."""
        if chunk_size < 1:
            raise ValueError("chunk_size must be positive")
        if self.released:
            raise RuntimeError("upload buffer already released")
        buffer = self._buffer
        total = len(buffer)
        for offset in range(0, total, chunk_size):
            with memoryview(buffer) as view:
                chunk = bytes(view[offset : offset + chunk_size])
            yield offset, chunk

    def release(self) -> None:
        self._buffer = bytearray()
        self.released = True


@dataclass(slots=True)
class MultipartPayload:
    """Text fields and the (optional) file part of a multipart request."""

    fields: dict[str, str] = field(default_factory=dict)
    file: BufferedUpload | None = None

    def text(self, name: str, default: str = "") -> str:
        value = self.fields.get(name, "").strip()
        return value or default

    def release(self) -> None:
        if self.file is not None:
            self.file.release()


__all__ = ["BufferedUpload", "MultipartPayload"]
