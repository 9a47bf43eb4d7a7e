"""Translate auth failure kinds into transport-facing error codes.

One table, one lookup. The first entry matching the exception's MRO wins,
so subclasses defined by embedding applications inherit their parent's
mapping. Anything that is not an ``AuthError`` is an internal error and its
text is never exposed.
"""

from typing import Any

from pydantic import BaseModel, Field

from authkit.exceptions import (
    AccountInactiveError,
    AccountUnavailableError,
    AlreadyVerifiedError,
    AuthError,
    ConfigurationError,
    DuplicateEmailError,
    DuplicateUsernameError,
    ForbiddenError,
    InvalidCredentialsError,
    InvalidStatusTransitionError,
    NotFoundError,
    PasswordPolicyError,
    PasswordResetNotFoundError,
    SessionExpiredError,
    SessionSupersededError,
    TokenExpiredError,
    TokenInvalidError,
    UserDeletedError,
    UserNotVerifiedError,
    UserSuspendedError,
    VerificationNotFoundError,
)


class ErrorCodes:
    """Machine-readable error codes returned to clients."""

    # Authentication
    UNAUTHORIZED = "UNAUTHORIZED"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    INVALID_TOKEN = "INVALID_TOKEN"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    SESSION_EXPIRED = "SESSION_EXPIRED"
    MULTI_DEVICE_LOGIN = "MULTI_DEVICE_LOGIN"

    # Account state
    USER_NOT_VERIFIED = "USER_NOT_VERIFIED"
    USER_SUSPENDED = "USER_SUSPENDED"
    ACCOUNT_INACTIVE = "ACCOUNT_INACTIVE"
    INVALID_STATUS_TRANSITION = "INVALID_STATUS_TRANSITION"

    # Authorization
    FORBIDDEN = "FORBIDDEN"

    # Resources
    NOT_FOUND = "NOT_FOUND"
    DUPLICATE_EMAIL = "DUPLICATE_EMAIL"
    DUPLICATE_USERNAME = "DUPLICATE_USERNAME"

    # Workflows
    VERIFICATION_NOT_FOUND = "VERIFICATION_NOT_FOUND"
    ALREADY_VERIFIED = "ALREADY_VERIFIED"
    PASSWORD_RESET_NOT_FOUND = "PASSWORD_RESET_NOT_FOUND"

    # Validation
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Infrastructure
    INTERNAL_ERROR = "INTERNAL_ERROR"


GENERIC_UNAUTHORIZED_MESSAGE = "Authenticated user not found or has been deleted"
INTERNAL_ERROR_MESSAGE = "An unexpected error occurred"


class MappedError(BaseModel):
    """Transport-facing rendering of a failure."""

    status_code: int
    code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    details: dict[str, Any] | None = None


# (kind, HTTP status, code, fixed message or None to use the exception text)
_ERROR_TABLE: list[tuple[type[AuthError], int, str, str | None]] = [
    (NotFoundError, 404, ErrorCodes.NOT_FOUND, None),
    (DuplicateEmailError, 409, ErrorCodes.DUPLICATE_EMAIL, None),
    (DuplicateUsernameError, 409, ErrorCodes.DUPLICATE_USERNAME, None),
    (InvalidCredentialsError, 401, ErrorCodes.INVALID_CREDENTIALS, "Invalid credentials provided"),
    (UserNotVerifiedError, 403, ErrorCodes.USER_NOT_VERIFIED, None),
    (UserSuspendedError, 403, ErrorCodes.USER_SUSPENDED, None),
    (AccountInactiveError, 403, ErrorCodes.ACCOUNT_INACTIVE, None),
    (UserDeletedError, 401, ErrorCodes.UNAUTHORIZED, GENERIC_UNAUTHORIZED_MESSAGE),
    (AccountUnavailableError, 401, ErrorCodes.UNAUTHORIZED, GENERIC_UNAUTHORIZED_MESSAGE),
    (TokenInvalidError, 401, ErrorCodes.INVALID_TOKEN, None),
    (TokenExpiredError, 401, ErrorCodes.TOKEN_EXPIRED, None),
    (SessionExpiredError, 401, ErrorCodes.SESSION_EXPIRED, None),
    (SessionSupersededError, 401, ErrorCodes.MULTI_DEVICE_LOGIN, None),
    (VerificationNotFoundError, 404, ErrorCodes.VERIFICATION_NOT_FOUND, None),
    (AlreadyVerifiedError, 409, ErrorCodes.ALREADY_VERIFIED, None),
    (PasswordResetNotFoundError, 404, ErrorCodes.PASSWORD_RESET_NOT_FOUND, None),
    (ForbiddenError, 403, ErrorCodes.FORBIDDEN, "You do not have permission to access this resource"),
    (PasswordPolicyError, 400, ErrorCodes.VALIDATION_ERROR, None),
    (InvalidStatusTransitionError, 409, ErrorCodes.INVALID_STATUS_TRANSITION, None),
    (ConfigurationError, 500, ErrorCodes.INTERNAL_ERROR, INTERNAL_ERROR_MESSAGE),
]

_BY_TYPE = {kind: (status, code, message) for kind, status, code, message in _ERROR_TABLE}


def _details(exc: BaseException) -> dict[str, Any] | None:
    if isinstance(exc, ForbiddenError):
        return {"role": exc.role, "allowed_roles": exc.allowed_roles}
    if isinstance(exc, PasswordPolicyError):
        return {"min_length": exc.min_length}
    if isinstance(exc, InvalidStatusTransitionError):
        return {"current": exc.current, "target": exc.target}
    return None


def map_error(exc: BaseException) -> MappedError:
    """Map an exception to status, code, message and optional details."""
    for kind in type(exc).__mro__:
        if kind in _BY_TYPE:
            status, code, message = _BY_TYPE[kind]
            return MappedError(
                status_code=status,
                code=code,
                message=message or str(exc) or code,
                details=_details(exc),
            )

    return MappedError(
        status_code=500,
        code=ErrorCodes.INTERNAL_ERROR,
        message=INTERNAL_ERROR_MESSAGE,
    )
