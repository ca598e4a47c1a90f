from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

pytestmark = pytest.mark.unit


@pytest.mark.parametrize("path", ["/", "/index.html", "/photos.html"])
def test_protected_pages_redirect_without_session(client: TestClient, path: str) -> None:
    response = client.get(path)

    assert response.status_code == 302
    assert response.headers["location"] == "/login.html"


@pytest.mark.parametrize(
    ("path", "marker"),
    [("/", "videos"), ("/index.html", "videos"), ("/photos.html", "photos")],
)
def test_protected_pages_served_with_session(
    admin_client: TestClient, path: str, marker: str
) -> None:
    response = admin_client.get(path)

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    assert marker in response.text


def test_login_page_and_assets_are_public(client: TestClient) -> None:
    login = client.get("/login.html")
    script = client.get("/app.js")

    assert login.status_code == 200
    assert "login" in login.text
    assert script.status_code == 200


def test_unknown_static_file_is_404(client: TestClient) -> None:
    assert client.get("/missing.css").status_code == 404


@pytest.mark.parametrize("path", ["/photos.html/", "/index.html/", "/photos.html//"])
def test_trailing_slash_variants_stay_guarded(client: TestClient, path: str) -> None:
    response = client.get(path)

    assert response.status_code == 302
    assert response.headers["location"] == "/login.html"


@pytest.mark.parametrize("path", ["/", "/index.html", "/photos.html"])
def test_head_on_protected_pages_is_guarded(client: TestClient, path: str) -> None:
    response = client.head(path)

    assert response.status_code == 302
    assert response.headers["location"] == "/login.html"


def test_head_on_protected_page_with_session(admin_client: TestClient) -> None:
    response = admin_client.head("/photos.html")

    assert response.status_code == 200
    assert response.content == b""


def test_trailing_slash_variant_served_with_session(admin_client: TestClient) -> None:
    response = admin_client.get("/photos.html/")

    assert response.status_code == 200
    assert "photos" in response.text
