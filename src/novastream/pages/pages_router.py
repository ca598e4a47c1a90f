"""Session-guarded HTML pages served from the public directory."""

from __future__ import annotations

import os
from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import FileResponse, Response
from fastapi.staticfiles import StaticFiles
from starlette.types import Scope

from ..auth.auth_dependencies import require_admin_page
from ..auth.auth_service import AuthenticatedAdmin

PROTECTED_PAGES = {
    "/": "index.html",
    "/index.html": "index.html",
    "/photos.html": "photos.html",
}
PROTECTED_FILES = frozenset(os.path.normcase(name) for name in PROTECTED_PAGES.values())


class PublicFiles(StaticFiles):
    """Static mount for the public directory.

    Requests that resolve to a protected page (``/photos.html/``, ``HEAD`` on a
    path the page routes do not match, ...) go through the page guard first.
    """

    async def get_response(self, path: str, scope: Scope) -> Response:
        if os.path.normcase(os.path.normpath(path)) in PROTECTED_FILES:
            require_admin_page(Request(scope))
        return await super().get_response(path, scope)


def build_pages_router(public_dir: Path) -> APIRouter:
    router = APIRouter(tags=["pages"])

    def _page_endpoint(filename: str):
        def serve_page(
            admin: AuthenticatedAdmin = Depends(require_admin_page),
        ) -> FileResponse:
            path = public_dir / filename
            if not path.is_file():
                raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
            return FileResponse(path, media_type="text/html")

        return serve_page

    for route_path, filename in PROTECTED_PAGES.items():
        router.add_api_route(
            route_path,
            _page_endpoint(filename),
            methods=["GET", "HEAD"],
            include_in_schema=False,
            name=f"page:{filename}:{route_path}",
        )
    return router


__all__ = ["PROTECTED_PAGES", "PublicFiles", "build_pages_router"]
