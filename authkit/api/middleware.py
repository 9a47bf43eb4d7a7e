"""Security middleware for FastAPI - bearer token validation and request context."""

from typing import Callable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from authkit.api.errors import auth_error_json
from authkit.context import clear_current_payload, set_current_payload
from authkit.exceptions import AccountUnavailableError, AuthError
from authkit.guard import SessionGuard, check_role, parse_bearer
from authkit.types import SessionPayload


class AuthMiddleware(BaseHTTPMiddleware):
    """Middleware that runs the session guard and sets the request context.

    For protected routes:
    1. Reads the ``Authorization: Bearer <token>`` header
    2. Validates it via SessionGuard
    3. Stores payload and token in request.state and the payload context
    4. Clears context after request completes

    Public paths bypass authentication entirely.
    """

    PUBLIC_PATHS = [
        "/auth/register",
        "/auth/login",
        "/auth/verify-email",
        "/auth/resend-verification",
        "/auth/forgot-password",
        "/auth/reset-password",
        "/health",
        "/docs",
        "/openapi.json",
    ]

    def __init__(self, app, guard: SessionGuard, public_paths: list[str] | None = None):
        super().__init__(app)
        self._guard = guard
        self._public_paths = public_paths if public_paths is not None else self.PUBLIC_PATHS

    def _is_public_path(self, path: str) -> bool:
        """Check if path is in public paths list."""
        for public_path in self._public_paths:
            if path == public_path or path.startswith(public_path + "/"):
                return True
        return False

    async def dispatch(self, request: Request, call_next):
        """Process request through middleware."""
        if self._is_public_path(request.url.path):
            return await call_next(request)

        try:
            token = parse_bearer(request.headers.get("Authorization"))
            payload = self._guard.authenticate_token(token)
        except AuthError as e:
            return auth_error_json(e)

        set_current_payload(payload)
        request.state.session_payload = payload
        request.state.session_token = token

        try:
            return await call_next(request)
        finally:
            clear_current_payload()


def current_payload(request: Request) -> SessionPayload:
    """FastAPI dependency returning the payload set by AuthMiddleware."""
    payload = getattr(request.state, "session_payload", None)
    if payload is None:
        raise AccountUnavailableError("Authorization payload not found")
    return payload


def require_roles(*allowed_roles: str) -> Callable[[Request], SessionPayload]:
    """FastAPI dependency factory enforcing a role allow-list."""

    def _dependency(request: Request) -> SessionPayload:
        return check_role(getattr(request.state, "session_payload", None), allowed_roles)

    return _dependency
