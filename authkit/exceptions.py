"""Typed exceptions for auth failures.

Each class is one failure kind. Kinds are assigned once, where the failure
is understood, and translated to transport codes by ``authkit.errors``.
"""


class AuthError(Exception):
    """Base class for authentication/authorization errors."""


class NotFoundError(AuthError):
    """Requested account or record does not exist."""


class DuplicateEmailError(AuthError):
    """Email address is already registered."""


class DuplicateUsernameError(AuthError):
    """Username is already taken."""


class InvalidCredentialsError(AuthError):
    """
    Email or password is wrong.

    Deliberately does not say which one.
    """


class UserNotVerifiedError(AuthError):
    """Account exists but its email address has not been verified."""


class UserSuspendedError(AuthError):
    """Account is suspended by an administrator."""


class UserDeletedError(AuthError):
    """
    Account has been soft-deleted.

    Note: In user-facing responses, don't reveal that the account existed.
    Stores may raise this; the core folds it into a generic outcome.
    """


class AccountInactiveError(AuthError):
    """Account is in a non-active status with no more specific error."""


class AccountUnavailableError(AuthError):
    """Token owner is missing or deleted. Rendered as a generic unauthorized."""


class TokenInvalidError(AuthError):
    """Session token is malformed, forged, or uses an unknown scheme."""


class TokenExpiredError(AuthError):
    """Session token is authentic but past its expiry."""


class SessionExpiredError(AuthError):
    """No active session is recorded for the account. Login again."""


class SessionSupersededError(AuthError):
    """A newer login on another device replaced this session."""


class VerificationNotFoundError(AuthError):
    """Verification ticket is unknown, expired, or already used."""


class AlreadyVerifiedError(AuthError):
    """Email address was verified before."""


class PasswordResetNotFoundError(AuthError):
    """Password reset ticket is unknown, expired, or already used."""


class ForbiddenError(AuthError):
    """Authenticated, but the role is not allowed to perform the action."""

    def __init__(self, role: str, allowed_roles: list[str]):
        self.role = role
        self.allowed_roles = allowed_roles
        super().__init__(
            f"Role '{role}' is not in allowed roles: {', '.join(allowed_roles)}"
        )


class PasswordPolicyError(AuthError):
    """Password does not satisfy the configured policy."""

    def __init__(self, min_length: int):
        self.min_length = min_length
        super().__init__(f"Password must be at least {min_length} characters long")


class InvalidStatusTransitionError(AuthError):
    """Requested status change is not an edge of the account lifecycle."""

    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Cannot change account status from '{current}' to '{target}'")


class ConfigurationError(AuthError):
    """Operation needs a collaborator that was not configured."""
