from __future__ import annotations

import os
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

os.environ.setdefault("ADMIN_EMAIL", "admin@nova.test")
os.environ.setdefault("ADMIN_PASSWORD", "correct-horse")
os.environ.setdefault("JWT_SECRET", "test-signing-secret-0123456789abcdef")
os.environ.setdefault("CLOUDINARY_CLOUD_NAME", "demo-cloud")
os.environ.setdefault("CLOUDINARY_API_KEY", "123456")
os.environ.setdefault("CLOUDINARY_API_SECRET", "cloud-secret")

from src.novastream.config import AppConfig, load_config  # noqa: E402
from src.novastream.main import create_app  # noqa: E402
from tests.mocks.providers import RecordingMediaProvider  # noqa: E402

ADMIN_EMAIL = os.environ["ADMIN_EMAIL"]
ADMIN_PASSWORD = os.environ["ADMIN_PASSWORD"]


@pytest.fixture
def public_dir(tmp_path: Path) -> Path:
    root = tmp_path / "public"
    root.mkdir()
    (root / "index.html").write_text("<h1>videos</h1>", encoding="utf-8")
    (root / "photos.html").write_text("<h1>photos</h1>", encoding="utf-8")
    (root / "login.html").write_text("<form>login</form>", encoding="utf-8")
    (root / "app.js").write_text("console.log('nova');", encoding="utf-8")
    return root


@pytest.fixture
def config(public_dir: Path) -> AppConfig:
    return load_config(public_dir=public_dir)


@pytest.fixture
def provider() -> RecordingMediaProvider:
    return RecordingMediaProvider()


@pytest.fixture
def app(config: AppConfig, provider: RecordingMediaProvider) -> FastAPI:
    return create_app(config, media_provider=provider)


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app, base_url="https://testserver", follow_redirects=False)


@pytest.fixture
def session_token(app: FastAPI) -> str:
    return app.state.auth_service.codec.issue(ADMIN_EMAIL)


@pytest.fixture
def admin_client(client: TestClient, config: AppConfig, session_token: str) -> TestClient:
    client.cookies.set(config.session_cookie_name, session_token)
    return client
