"""FastAPI adapter for the auth core."""

from authkit.api.base import (
    APIError,
    APIMeta,
    APIResponse,
    success_response,
    error_response,
    mapped_error_response,
)
from authkit.api.errors import register_error_handlers, auth_error_json
from authkit.api.middleware import AuthMiddleware, current_payload, require_roles
from authkit.api.routes import create_auth_router
