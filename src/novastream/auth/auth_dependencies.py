"""Session guard dependencies for FastAPI routers.

Every protected route depends on :func:`require_admin_session` (API, 401 JSON)
or :func:`require_admin_page` (pages, redirect to the login page). A rejected
cookie is cleared on the way out so the browser stops replaying it.
"""

from __future__ import annotations

from collections.abc import Callable

import structlog
from fastapi import Request, Response, status
from fastapi.responses import RedirectResponse

from ..config import AppConfig
from ..errors import unauthorized_error
from .auth_service import AuthenticatedAdmin, AuthService
from .auth_tokens import InvalidTokenError, TokenExpiredError

logger = structlog.get_logger(__name__)


class SessionRejected(Exception):
    """Raised by the guard; rendered by :func:`session_rejected_handler`."""

    def __init__(self, reason: str, *, redirect_to: str | None, clear_cookie: bool) -> None:
        super().__init__(reason)
        self.reason = reason
        self.redirect_to = redirect_to
        self.clear_cookie = clear_cookie


def get_auth_service(request: Request) -> AuthService:
    try:
        return request.app.state.auth_service  # type: ignore[attr-defined]
    except AttributeError as exc:  # pragma: no cover - defensive path
        raise RuntimeError("AuthService is not configured") from exc


def get_app_config(request: Request) -> AppConfig:
    try:
        return request.app.state.config  # type: ignore[attr-defined]
    except AttributeError as exc:  # pragma: no cover - defensive path
        raise RuntimeError("AppConfig is not configured") from exc


def set_session_cookie(response: Response, config: AppConfig, token: str, max_age: int) -> None:
    response.set_cookie(
        key=config.session_cookie_name,
        value=token,
        max_age=max_age,
        path="/",
        httponly=True,
        secure=config.cookie_secure,
        samesite="strict",
    )


def clear_session_cookie(response: Response, config: AppConfig) -> None:
    response.delete_cookie(
        key=config.session_cookie_name,
        path="/",
        httponly=True,
        secure=config.cookie_secure,
        samesite="strict",
    )


def session_guard(*, redirect: bool = False) -> Callable[[Request], AuthenticatedAdmin]:
    """Build a dependency admitting only requests with a valid session cookie."""

    def _guard(request: Request) -> AuthenticatedAdmin:
        config = get_app_config(request)
        token = request.cookies.get(config.session_cookie_name)
        target = config.login_page if redirect else None
        if not token:
            logger.info("auth.session.rejected", path=request.url.path, reason="missing_token")
            raise SessionRejected("missing_token", redirect_to=target, clear_cookie=False)

        service = get_auth_service(request)
        try:
            return service.resolve_session(token)
        except TokenExpiredError:
            reason = "token_expired"
        except InvalidTokenError:
            reason = "invalid_token"
        logger.warning("auth.session.rejected", path=request.url.path, reason=reason)
        raise SessionRejected(reason, redirect_to=target, clear_cookie=True)

    return _guard


require_admin_session = session_guard()
require_admin_page = session_guard(redirect=True)


async def session_rejected_handler(request: Request, exc: SessionRejected) -> Response:
    """Turn a guard rejection into a redirect or a 401 envelope."""

    response: Response
    if exc.redirect_to is not None:
        response = RedirectResponse(exc.redirect_to, status_code=status.HTTP_302_FOUND)
    else:
        response = unauthorized_error("Authentication required").to_response()
    if exc.clear_cookie:
        clear_session_cookie(response, get_app_config(request))
    return response


__all__ = [
    "SessionRejected",
    "clear_session_cookie",
    "get_app_config",
    "get_auth_service",
    "require_admin_page",
    "require_admin_session",
    "session_guard",
    "session_rejected_handler",
    "set_session_cookie",
]
