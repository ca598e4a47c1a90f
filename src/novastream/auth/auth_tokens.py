"""Signed, time-bound session tokens carried in the ``nova_auth`` cookie."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from jwt import ExpiredSignatureError
from jwt import InvalidTokenError as PyJWTInvalidTokenError

ALGORITHM = "HS256"
DEFAULT_TTL = timedelta(days=30)


def _utcnow() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(tz=timezone.utc)


class InvalidTokenError(Exception):
    """Raised when a token cannot be verified."""


class TokenExpiredError(InvalidTokenError):
    """Raised when a structurally valid token is past its expiry."""


@dataclass(frozen=True, slots=True)
class VerifiedToken:
    """Claims extracted from a token whose signature and expiry checked out."""

    identity: str
    issued_at: datetime
    expires_at: datetime


@dataclass(slots=True)
class TokenCodec:
    """Issue and verify HS256 JWTs binding an identity to an expiry."""

    secret: str
    ttl: timedelta = DEFAULT_TTL
    clock: Callable[[], datetime] = field(default=_utcnow)

    def issue(self, identity: str) -> str:
        issued_at = self.clock()
        payload: dict[str, Any] = {
            "sub": identity,
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + self.ttl).timestamp()),
        }
        return jwt.encode(payload, self.secret, algorithm=ALGORITHM)

    def verify(self, token: str) -> VerifiedToken:
        """Decode ``token``; raise :class:`InvalidTokenError` on any failure."""
        try:
            payload: dict[str, Any] = jwt.decode(
                token,
                self.secret,
                algorithms=[ALGORITHM],
                options={"require": ["exp", "iat", "sub"]},
            )
        except ExpiredSignatureError as exc:
            raise TokenExpiredError("Token expired") from exc
        except PyJWTInvalidTokenError as exc:
            raise InvalidTokenError("Invalid token") from exc

        identity = payload.get("sub")
        if not isinstance(identity, str) or not identity:
            raise InvalidTokenError("Invalid token subject")
        return VerifiedToken(
            identity=identity,
            issued_at=datetime.fromtimestamp(int(payload["iat"]), tz=timezone.utc),
            expires_at=datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc),
        )


__all__ = [
    "DEFAULT_TTL",
    "InvalidTokenError",
    "TokenCodec",
    "TokenExpiredError",
    "VerifiedToken",
]
