"""Session guard - validates inbound session tokens and enforces session policy."""

import hmac
from typing import Iterable

from authkit.config import AuthConfig
from authkit.context import get_current_payload
from authkit.exceptions import (
    AccountInactiveError,
    AccountUnavailableError,
    ForbiddenError,
    NotFoundError,
    SessionExpiredError,
    SessionSupersededError,
    TokenInvalidError,
    UserDeletedError,
    UserNotVerifiedError,
    UserSuspendedError,
)
from authkit.security_logger import SecurityEvent, SecurityLogger
from authkit.store import AccountStore
from authkit.tokens import TokenCodec
from authkit.types import Account, AccountStatus, SessionPayload

BEARER_SCHEME = "bearer"


def parse_bearer(authorization: str | None) -> str:
    """Extract the token from a ``Bearer <token>`` credential.

    Raises:
        TokenInvalidError: Missing credential or unsupported scheme.
    """
    if not authorization:
        raise TokenInvalidError("Authorization credential is not provided")

    # anything after the token is ignored
    fields = authorization.split()
    if len(fields) < 2:
        raise TokenInvalidError("Invalid authorization header format")

    scheme, token = fields[0], fields[1]
    if scheme.lower() != BEARER_SCHEME:
        raise TokenInvalidError(f"Unsupported authorization type: {scheme}")
    return token


class SessionGuard:
    """Validates session tokens against the codec, the account and session policy.

    Checks run in a fixed order and stop at the first failure:
    1. Bearer scheme
    2. Token signature and expiry
    3. Account exists and is not deleted
    4. Account status is active
    5. Token is the account's active session (single-device only)
    """

    def __init__(
        self,
        codec: TokenCodec,
        store: AccountStore,
        config: AuthConfig,
        security_logger: SecurityLogger | None = None,
    ):
        self._codec = codec
        self._store = store
        self._config = config
        self._security_logger = security_logger or SecurityLogger()

    def authenticate(self, authorization: str | None) -> SessionPayload:
        """Validate a raw ``Authorization`` credential.

        Raises:
            TokenInvalidError, TokenExpiredError, AccountUnavailableError,
            UserNotVerifiedError, UserSuspendedError, AccountInactiveError,
            SessionExpiredError, SessionSupersededError
        """
        token = parse_bearer(authorization)
        return self.authenticate_token(token)

    def authenticate_token(self, token: str) -> SessionPayload:
        """Validate an already extracted token (steps 2-5)."""
        payload = self._codec.verify(token)
        account = self._load_account(payload)
        self._check_status(account)
        if self._config.enforce_single_device:
            self._check_active_session(account, token)
        return payload

    def _load_account(self, payload: SessionPayload) -> Account:
        try:
            account = self._store.get_account_by_id(payload.account_id)
        except (NotFoundError, UserDeletedError):
            account = None

        if account is None or account.status == AccountStatus.DELETED:
            self._security_logger.log(
                SecurityEvent.SESSION_REJECTED,
                account_id=payload.account_id,
                details={"reason": "account_unavailable"},
            )
            raise AccountUnavailableError("Authenticated user not found or has been deleted")
        return account

    @staticmethod
    def _check_status(account: Account) -> None:
        if account.status == AccountStatus.ACTIVE:
            return
        if account.status == AccountStatus.PENDING:
            raise UserNotVerifiedError("User account is not verified")
        if account.status == AccountStatus.SUSPENDED:
            raise UserSuspendedError("User account is suspended")
        raise AccountInactiveError("User account is not active")

    def _check_active_session(self, account: Account, token: str) -> None:
        if not account.active_session_token:
            raise SessionExpiredError("Session expired, please login again")

        if not hmac.compare_digest(
            account.active_session_token.encode("utf-8"), token.encode("utf-8")
        ):
            self._security_logger.log(
                SecurityEvent.SESSION_REJECTED,
                email=account.email,
                account_id=account.id,
                details={"reason": "superseded"},
            )
            raise SessionSupersededError("User logged in with a different device or session")


def check_role(payload: SessionPayload | None, allowed_roles: Iterable[str]) -> SessionPayload:
    """Require the payload's role to be in the allow-list (case-insensitive).

    Raises:
        AccountUnavailableError: No verified payload.
        ForbiddenError: Role not allowed.
    """
    if payload is None:
        raise AccountUnavailableError("Authorization payload not found for role check")

    allowed = list(allowed_roles)
    role = payload.role.casefold()
    if not any(role == candidate.casefold() for candidate in allowed):
        raise ForbiddenError(payload.role, allowed)
    return payload


def require_role(*allowed_roles: str) -> SessionPayload:
    """Apply ``check_role`` to the payload of the current request."""
    return check_role(get_current_payload(), allowed_roles)
