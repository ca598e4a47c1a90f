"""Administrator login, session tokens and the session guard."""

from .auth_service import AdminIdentity, AuthenticatedAdmin, AuthService
from .auth_tokens import InvalidTokenError, TokenCodec, TokenExpiredError

__all__ = [
    "AdminIdentity",
    "AuthService",
    "AuthenticatedAdmin",
    "InvalidTokenError",
    "TokenCodec",
    "TokenExpiredError",
]
