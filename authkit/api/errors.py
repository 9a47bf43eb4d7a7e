"""Global exception handlers for FastAPI."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.responses import JSONResponse

from authkit.api.base import error_response, mapped_error_response
from authkit.errors import ErrorCodes, map_error
from authkit.exceptions import AuthError

logger = logging.getLogger(__name__)


def auth_error_json(exc: Exception) -> JSONResponse:
    """Render any exception as an enveloped JSON error."""
    mapped = map_error(exc)
    return JSONResponse(
        status_code=mapped.status_code,
        content=mapped_error_response(mapped).model_dump(mode="json"),
    )


def register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the app."""

    @app.exception_handler(AuthError)
    async def auth_error_handler(request: Request, exc: AuthError):
        return auth_error_json(exc)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=422,
            content=error_response(
                ErrorCodes.VALIDATION_ERROR,
                "Request validation failed",
                {"errors": [
                    {"loc": list(error.get("loc", ())), "msg": error.get("msg")}
                    for error in exc.errors()
                ]},
            ).model_dump(mode="json"),
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception")
        return auth_error_json(exc)
