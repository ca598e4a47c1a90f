"""Authentication API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse, RedirectResponse, Response
from pydantic import BaseModel

from ..config import AppConfig
from ..errors import unauthorized_error, validation_error
from .auth_dependencies import (
    clear_session_cookie,
    get_app_config,
    get_auth_service,
    set_session_cookie,
)
from .auth_service import AuthService, InvalidCredentialsError

router = APIRouter(prefix="/api", tags=["auth"])


class LoginRequest(BaseModel):
    email: str | None = None
    password: str | None = None


def _client_ip(request: Request) -> str | None:
    if request.client:
        return request.client.host
    return None


@router.post("/login")
def login(
    payload: LoginRequest,
    request: Request,
    service: AuthService = Depends(get_auth_service),
    config: AppConfig = Depends(get_app_config),
) -> Response:
    if not payload.email or not payload.password:
        raise validation_error("email and password are required")
    try:
        session = service.login(
            email=payload.email,
            password=payload.password,
            client_ip=_client_ip(request),
        )
    except InvalidCredentialsError as exc:
        raise unauthorized_error("Unauthorized") from exc

    response = JSONResponse(
        status_code=status.HTTP_200_OK,
        content={"success": True},
        headers={"Cache-Control": "no-store", "Pragma": "no-cache"},
    )
    set_session_cookie(response, config, session.token, session.max_age_seconds)
    return response


@router.get("/logout")
def logout(config: AppConfig = Depends(get_app_config)) -> Response:
    response = RedirectResponse(config.login_page, status_code=status.HTTP_302_FOUND)
    clear_session_cookie(response, config)
    return response
