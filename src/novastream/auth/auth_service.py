"""Administrator authentication and session resolution."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

import structlog

from ..config import AppConfig
from .auth_tokens import InvalidTokenError, TokenCodec

logger = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class AdminIdentity:
    """The single administrator allowed to sign in."""

    email: str
    password: str

    def matches(self, email: str, password: str) -> bool:
        # Plain equality; see DESIGN.md before hardening.
        return email == self.email and password == self.password


@dataclass(frozen=True, slots=True)
class AuthenticatedAdmin:
    """Verified session context handed to protected handlers."""

    email: str
    issued_at: datetime
    expires_at: datetime


@dataclass(frozen=True, slots=True)
class IssuedSession:
    token: str
    max_age_seconds: int


class AuthError(Exception):
    """Base class for auth failures."""


class InvalidCredentialsError(AuthError):
    """Raised when email/password mismatch."""


@dataclass(slots=True)
class AuthService:
    """Authenticate the static administrator and resolve session cookies."""

    admin: AdminIdentity
    codec: TokenCodec

    @classmethod
    def from_config(cls, config: AppConfig) -> "AuthService":
        return cls(
            admin=AdminIdentity(email=config.admin_email, password=config.admin_password),
            codec=TokenCodec(
                secret=config.jwt_secret,
                ttl=timedelta(days=config.session_ttl_days),
            ),
        )

    def login(
        self, email: str, password: str, client_ip: str | None = None
    ) -> IssuedSession:
        """Validate credentials and mint a session token."""
        if not self.admin.matches(email, password):
            logger.warning(
                "auth.login.failure",
                reason="invalid_credentials",
                client_ip=client_ip,
            )
            raise InvalidCredentialsError("Unauthorized")

        token = self.codec.issue(self.admin.email)
        max_age = int(self.codec.ttl.total_seconds())
        logger.info("auth.login.success", client_ip=client_ip, expires_in=max_age)
        return IssuedSession(token=token, max_age_seconds=max_age)

    def resolve_session(self, token: str) -> AuthenticatedAdmin:
        """Verify ``token`` and check it was issued for the configured admin."""
        verified = self.codec.verify(token)
        if verified.identity != self.admin.email:
            raise InvalidTokenError("Token subject is not the administrator")
        return AuthenticatedAdmin(
            email=verified.identity,
            issued_at=verified.issued_at,
            expires_at=verified.expires_at,
        )


__all__ = [
    "AdminIdentity",
    "AuthError",
    "AuthService",
    "AuthenticatedAdmin",
    "InvalidCredentialsError",
    "IssuedSession",
]
