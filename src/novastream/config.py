"""Application configuration loaded from the environment.

Administrator identity, signing secret and Cloudinary credentials are required;
the remaining knobs carry the defaults the gateway has always run with
(``nova_auth`` cookie, 30 day sessions, 1 GiB uploads).
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

GIB = 1024 * 1024 * 1024


class AppConfig(BaseSettings):
    """Immutable settings container built once at process start."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    admin_email: str = Field(min_length=1, description="Administrator login email.")
    admin_password: str = Field(min_length=1, description="Administrator password.")
    jwt_secret: str = Field(min_length=1, description="HS256 secret for session tokens.")

    cloudinary_cloud_name: str = Field(min_length=1)
    cloudinary_api_key: str = Field(min_length=1)
    cloudinary_api_secret: str = Field(min_length=1)

    port: int = Field(default=3000, ge=1, le=65535)
    public_dir: Path = Field(
        default=Path("public"),
        description="Directory with the HTML/JS/CSS front end.",
    )
    login_page: str = "/login.html"

    session_cookie_name: str = "nova_auth"
    session_ttl_days: int = Field(default=30, ge=1)
    cookie_secure: bool = True

    max_upload_bytes: int = Field(default=GIB, ge=1)
    max_field_bytes: int = Field(
        default=64 * 1024,
        ge=1,
        description="Upper bound for a single text field of a multipart upload.",
    )
    max_concurrent_uploads: int = Field(
        default=2,
        ge=1,
        description="Buffered uploads allowed in flight; bounds worst-case memory.",
    )
    upload_chunk_size: int = Field(default=6_000_000, ge=5 * 1024 * 1024)
    disconnect_poll_seconds: float = Field(default=1.0, gt=0)

    video_folder: str = "video-streaming-app"
    image_folder: str = "photo-gallery-app"
    list_max_results: int = Field(default=100, ge=1, le=500)
    provider_timeout_seconds: float = Field(default=600.0, gt=0)
    cloudinary_api_base_url: str = "https://api.cloudinary.com/v1_1"

    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
    log_level: str = "INFO"

    @property
    def session_max_age_seconds(self) -> int:
        return self.session_ttl_days * 24 * 60 * 60


def load_config(**overrides: object) -> AppConfig:
    """Build :class:`AppConfig`, refusing to continue when secrets are missing."""

    try:
        return AppConfig(**overrides)  # type: ignore[arg-type]
    except ValidationError as exc:
        fields = sorted(
            {str(error["loc"][0]).upper() for error in exc.errors() if error["loc"]}
        )
        raise RuntimeError(
            "invalid or missing configuration: " + ", ".join(fields)
        ) from exc


__all__ = ["AppConfig", "GIB", "load_config"]
