"""Dependency wiring helpers."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from .auth.auth_api import router as auth_router
from .auth.auth_dependencies import SessionRejected, session_rejected_handler
from .auth.auth_service import AuthService
from .config import AppConfig
from .errors import ApiError, api_error_handler, request_validation_handler
from .media.media_api import router as media_router
from .media.media_service import MediaService
from .pages.pages_router import PublicFiles, build_pages_router
from .providers.providers_base import MediaProvider
from .providers.providers_cloudinary import CloudinaryDriver
from .uploads.uploads_api import router as uploads_router
from .uploads.uploads_gate import UploadGate

logger = logging.getLogger(__name__)


def build_media_provider(config: AppConfig) -> MediaProvider:
    return CloudinaryDriver(
        cloud_name=config.cloudinary_cloud_name,
        api_key=config.cloudinary_api_key,
        api_secret=config.cloudinary_api_secret,
        api_base_url=config.cloudinary_api_base_url,
        timeout_seconds=config.provider_timeout_seconds,
        chunk_size=config.upload_chunk_size,
    )


def include_routers(
    app: FastAPI,
    config: AppConfig,
    *,
    media_provider: MediaProvider | None = None,
) -> None:
    """Attach services, error handlers and routers to ``app``."""
    provider = media_provider or build_media_provider(config)

    app.state.config = config
    app.state.auth_service = AuthService.from_config(config)
    app.state.media_service = MediaService(
        provider=provider,
        video_folder=config.video_folder,
        image_folder=config.image_folder,
        max_results=config.list_max_results,
    )
    app.state.upload_gate = UploadGate(config.max_concurrent_uploads)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(config.cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(ApiError, api_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(SessionRejected, session_rejected_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, request_validation_handler)  # type: ignore[arg-type]

    app.include_router(auth_router)
    app.include_router(uploads_router)
    app.include_router(media_router)
    app.include_router(build_pages_router(config.public_dir))

    if config.public_dir.is_dir():
        app.mount(
            "/",
            PublicFiles(directory=config.public_dir, html=False),
            name="public",
        )
    else:
        logger.warning("public directory %s not found; static assets disabled", config.public_dir)
