"""Reusable error primitives for API exception handling."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


@dataclass(slots=True)
class ApiError(Exception):
    """Structured application-level error for HTTP handlers."""

    status_code: int
    code: str
    message: str
    headers: Mapping[str, str] | None = None

    def to_response(self) -> JSONResponse:
        """Materialise the error into the ``success: false`` envelope."""

        return JSONResponse(
            status_code=self.status_code,
            content={"success": False, "error": self.code, "message": self.message},
            headers=dict(self.headers or {}),
        )


async def api_error_handler(_: Request, exc: ApiError) -> JSONResponse:
    """Convert :class:`ApiError` exceptions into JSON payloads."""

    return exc.to_response()


async def request_validation_handler(
    _: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report malformed request bodies as plain validation failures."""

    return validation_error("Malformed request body").to_response()


def validation_error(message: str) -> ApiError:
    return ApiError(status.HTTP_400_BAD_REQUEST, "validation_error", message)


def unauthorized_error(message: str = "Unauthorized") -> ApiError:
    return ApiError(status.HTTP_401_UNAUTHORIZED, "unauthorized", message)


def payload_too_large_error(message: str) -> ApiError:
    return ApiError(
        status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, "payload_too_large", message
    )


def rate_limited_error(message: str) -> ApiError:
    return ApiError(status.HTTP_429_TOO_MANY_REQUESTS, "rate_limited", message)


def upstream_error(message: str) -> ApiError:
    """Return an :class:`ApiError` for a failed media-provider call."""

    return ApiError(status.HTTP_500_INTERNAL_SERVER_ERROR, "upstream_error", message)


__all__ = [
    "ApiError",
    "api_error_handler",
    "payload_too_large_error",
    "rate_limited_error",
    "request_validation_handler",
    "unauthorized_error",
    "upstream_error",
    "validation_error",
]
