"""Embeddable authentication core."""

from authkit.exceptions import (
    AuthError,
    NotFoundError,
    DuplicateEmailError,
    DuplicateUsernameError,
    InvalidCredentialsError,
    UserNotVerifiedError,
    UserSuspendedError,
    UserDeletedError,
    AccountInactiveError,
    AccountUnavailableError,
    TokenInvalidError,
    TokenExpiredError,
    SessionExpiredError,
    SessionSupersededError,
    VerificationNotFoundError,
    AlreadyVerifiedError,
    PasswordResetNotFoundError,
    ForbiddenError,
    PasswordPolicyError,
    InvalidStatusTransitionError,
    ConfigurationError,
)
from authkit.types import (
    Account,
    AccountStatus,
    AccountUpdate,
    AccountView,
    NewAccount,
    SessionPayload,
    VerificationTicket,
    PasswordResetTicket,
    RegisterRequest,
    LoginRequest,
    LoginResult,
    can_transition,
)
from authkit.config import AuthConfig
from authkit.errors import ErrorCodes, MappedError, map_error
from authkit.hasher import PasswordHasher
from authkit.tokens import TokenCodec
from authkit.store import AccountStore, Notifier
from authkit.memory_store import InMemoryAccountStore
from authkit.security_logger import SecurityLogger, SecurityEvent, SecurityRecord
from authkit.dispatcher import NotificationDispatcher
from authkit.guard import SessionGuard, check_role, require_role
from authkit.service import AccountService
