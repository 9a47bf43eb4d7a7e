"""Account workflow engine - registration, login, verification and password flows."""

import logging
import secrets
from datetime import timedelta
from uuid import UUID

from authkit.config import AuthConfig
from authkit.dispatcher import NotificationDispatcher
from authkit.exceptions import (
    AccountInactiveError,
    AlreadyVerifiedError,
    ConfigurationError,
    DuplicateEmailError,
    InvalidCredentialsError,
    InvalidStatusTransitionError,
    NotFoundError,
    PasswordPolicyError,
    PasswordResetNotFoundError,
    UserDeletedError,
    UserNotVerifiedError,
    VerificationNotFoundError,
)
from authkit.hasher import PasswordHasher
from authkit.security_logger import SecurityEvent, SecurityLogger
from authkit.store import AccountStore, Notifier
from authkit.timezone import now_utc
from authkit.tokens import TokenCodec
from authkit.types import (
    Account,
    AccountStatus,
    AccountUpdate,
    AccountView,
    LoginRequest,
    LoginResult,
    NewAccount,
    PasswordResetTicket,
    RegisterRequest,
    SessionPayload,
    VerificationTicket,
    can_transition,
)

logger = logging.getLogger(__name__)


class AccountService:
    """Orchestrates account workflows.

    Handles:
    - Registration (with fire-and-forget verification email)
    - Login (with single-device session enforcement)
    - Email verification and re-sending verification links
    - Forgotten/reset and changed passwords
    - Administrative status changes

    Nothing is cached between calls; every operation re-reads the store.
    Side effects that happen after the outcome is decided (email dispatch,
    ticket cleanup, active token persistence) are reported as security
    events and never turn a success into a failure.
    """

    def __init__(
        self,
        config: AuthConfig,
        store: AccountStore,
        hasher: PasswordHasher,
        codec: TokenCodec,
        notifier: Notifier | None = None,
        security_logger: SecurityLogger | None = None,
        dispatcher: NotificationDispatcher | None = None,
    ):
        self._config = config
        self._store = store
        self._hasher = hasher
        self._codec = codec
        self._notifier = notifier
        self._security_logger = security_logger or SecurityLogger()
        self._owns_dispatcher = dispatcher is None and notifier is not None
        if self._owns_dispatcher:
            dispatcher = NotificationDispatcher(
                max_workers=config.notification_workers,
                security_logger=self._security_logger,
            )
        self._dispatcher = dispatcher

    def close(self) -> None:
        """Stop the notification dispatcher if this service created it.

        An injected dispatcher belongs to the caller and is left running.
        Waits for queued emails to finish.
        """
        if self._owns_dispatcher and self._dispatcher is not None:
            self._dispatcher.shutdown(wait=True)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _normalize_email(email: str) -> str:
        return email.strip().lower()

    def _check_password_policy(self, password: str) -> None:
        if len(password) < self._config.min_password_length:
            raise PasswordPolicyError(self._config.min_password_length)

    def _find_account_for_login(self, email: str) -> Account | None:
        """Look up by email, folding not-found and deleted into None."""
        try:
            account = self._store.get_account_by_email(email)
        except (NotFoundError, UserDeletedError):
            return None
        if account is None or account.status == AccountStatus.DELETED:
            return None
        return account

    def _get_account(self, account_id: UUID) -> Account:
        """Load account by id.

        Raises:
            NotFoundError: If account is missing or deleted.
        """
        try:
            account = self._store.get_account_by_id(account_id)
        except UserDeletedError as e:
            raise NotFoundError(f"Account {account_id} not found") from e
        if account is None or account.status == AccountStatus.DELETED:
            raise NotFoundError(f"Account {account_id} not found")
        return account

    def _new_ticket_token(self) -> str:
        return secrets.token_hex(self._config.ticket_token_bytes)

    def _link(self, path: str, token: str) -> str:
        return f"{self._config.app_base_url.rstrip('/')}{path}?token={token}"

    def _require_notifier(self) -> Notifier:
        if self._notifier is None or self._dispatcher is None:
            raise ConfigurationError("No notifier configured for outbound email")
        return self._notifier

    def _report_failure(
        self,
        event: SecurityEvent,
        error: Exception,
        email: str | None = None,
        account_id: UUID | None = None,
        **details,
    ) -> None:
        self._security_logger.log(
            event,
            email=email,
            account_id=account_id,
            details={"error": str(error), "error_type": type(error).__name__, **details},
            level=logging.ERROR,
        )

    def _issue_verification(self, account: Account) -> None:
        """Store a fresh verification ticket and queue the email.

        Ticket storage errors propagate; delivery errors are reported by
        the dispatcher.
        """
        notifier = self._require_notifier()
        now = now_utc()
        ticket = VerificationTicket(
            token=self._new_ticket_token(),
            account_id=account.id,
            email=account.email,
            created_at=now,
            expires_at=now + timedelta(hours=self._config.verification_token_hours),
        )
        self._store.store_verification_ticket(ticket)
        self._security_logger.log(
            SecurityEvent.VERIFICATION_ISSUED,
            email=account.email,
            account_id=account.id,
        )

        link = self._link(self._config.verify_email_path, ticket.token)
        recipient, display_name = account.email, account.display_name
        self._dispatcher.submit(
            lambda: notifier.send_verification_email(recipient, display_name, link),
            sent_event=SecurityEvent.VERIFICATION_EMAIL_SENT,
            failed_event=SecurityEvent.VERIFICATION_EMAIL_FAILED,
            email=recipient,
            account_id=account.id,
        )

    # ------------------------------------------------------------------
    # Registration and verification
    # ------------------------------------------------------------------

    def register(self, request: RegisterRequest) -> AccountView:
        """Register a new account in pending status.

        Flow:
        1. Check password policy (before touching the store)
        2. Reject emails that are already registered
        3. Hash password and create account with the default role
        4. If a notifier is configured, issue a verification ticket and
           dispatch the email without waiting for it

        Raises:
            PasswordPolicyError: Password too short.
            DuplicateEmailError: Email already registered.
        """
        self._check_password_policy(request.password)
        email = self._normalize_email(request.email)

        try:
            existing = self._store.get_account_by_email(email)
        except NotFoundError:
            existing = None

        if existing is not None:
            self._security_logger.log(
                SecurityEvent.REGISTRATION_REJECTED,
                email=email,
                details={"reason": "duplicate_email"},
            )
            raise DuplicateEmailError("Email address already in use")

        account = self._store.create_account(
            NewAccount(
                username=email,
                email=email,
                password_hash=self._hasher.hash(request.password),
                display_name=request.display_name,
                role=self._config.default_role,
                status=AccountStatus.PENDING,
            )
        )
        self._security_logger.log(
            SecurityEvent.ACCOUNT_REGISTERED,
            email=account.email,
            account_id=account.id,
        )

        if self._notifier is not None:
            try:
                self._issue_verification(account)
            except Exception as e:
                # Account exists either way; the user can ask for a new link
                self._report_failure(
                    SecurityEvent.VERIFICATION_ISSUE_FAILED,
                    e,
                    email=account.email,
                    account_id=account.id,
                )

        return account.to_view()

    def verify_email(self, token: str) -> AccountView:
        """Consume a verification ticket and activate its account.

        Raises:
            VerificationNotFoundError: Ticket unknown, expired or stale.
            AlreadyVerifiedError: Account was already active.
            InvalidStatusTransitionError: Account is neither pending nor active.
        """
        try:
            ticket = self._store.get_verification_ticket(token)
        except NotFoundError:
            ticket = None

        if ticket is None:
            self._security_logger.log(
                SecurityEvent.VERIFICATION_FAILED,
                details={"reason": "ticket_not_found"},
            )
            raise VerificationNotFoundError("Verification data not found or already used")

        if ticket.is_expired(now_utc()):
            self._security_logger.log(
                SecurityEvent.VERIFICATION_FAILED,
                email=ticket.email,
                account_id=ticket.account_id,
                details={"reason": "ticket_expired"},
            )
            self._delete_verification_ticket(token, ticket.account_id)
            raise VerificationNotFoundError("Verification link has expired")

        try:
            account = self._get_account(ticket.account_id)
        except NotFoundError as e:
            raise VerificationNotFoundError("Verification data not found or already used") from e

        if account.email.lower() != ticket.email.lower():
            # Ticket was issued for an address the account no longer uses
            raise VerificationNotFoundError("Verification data not found or already used")

        if account.status == AccountStatus.ACTIVE:
            self._delete_verification_ticket(token, account.id)
            raise AlreadyVerifiedError("Email address is already verified")

        if account.status != AccountStatus.PENDING:
            raise InvalidStatusTransitionError(account.status.value, AccountStatus.ACTIVE.value)

        updated = self._store.update_account(
            account.id, AccountUpdate(status=AccountStatus.ACTIVE)
        )
        self._delete_verification_ticket(token, account.id)

        self._security_logger.log(
            SecurityEvent.EMAIL_VERIFIED,
            email=updated.email,
            account_id=updated.id,
        )
        return updated.to_view()

    def _delete_verification_ticket(self, token: str, account_id: UUID) -> None:
        try:
            self._store.delete_verification_ticket(token)
        except Exception as e:
            self._report_failure(
                SecurityEvent.TICKET_CLEANUP_FAILED,
                e,
                account_id=account_id,
                ticket="verification",
            )

    def resend_verification(self, email: str) -> None:
        """Replace any outstanding verification ticket with a new one.

        Unknown or already verified emails are silently ignored so the
        response does not reveal which addresses are registered.

        Raises:
            ConfigurationError: No notifier configured.
        """
        self._require_notifier()
        email = self._normalize_email(email)

        account = self._find_account_for_login(email)
        if account is None or account.status != AccountStatus.PENDING:
            self._security_logger.log(
                SecurityEvent.VERIFICATION_FAILED,
                email=email,
                details={"reason": "resend_not_applicable"},
            )
            return

        self._store.delete_verification_tickets_for_account(account.id)
        self._issue_verification(account)

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def login(self, request: LoginRequest) -> LoginResult:
        """Check credentials and issue a session token.

        Status is checked before the password, so a pending account gets
        UserNotVerifiedError without its password being evaluated.

        Raises:
            InvalidCredentialsError: Unknown/deleted email or wrong password.
            UserNotVerifiedError: Email not verified yet.
            AccountInactiveError: Suspended or pending deletion.
        """
        email = self._normalize_email(request.email)
        account = self._find_account_for_login(email)

        if account is None:
            self._security_logger.log(
                SecurityEvent.LOGIN_FAILED,
                email=email,
                details={"reason": "account_not_found"},
            )
            raise InvalidCredentialsError("Invalid credentials provided")

        if account.status == AccountStatus.PENDING:
            self._security_logger.log(
                SecurityEvent.LOGIN_FAILED,
                email=email,
                account_id=account.id,
                details={"reason": "not_verified"},
            )
            raise UserNotVerifiedError("User account is not verified")

        if account.status != AccountStatus.ACTIVE:
            self._security_logger.log(
                SecurityEvent.LOGIN_FAILED,
                email=email,
                account_id=account.id,
                details={"reason": "inactive", "status": account.status.value},
            )
            raise AccountInactiveError("User account is not active")

        if not self._hasher.verify(account.password_hash, request.password):
            self._security_logger.log(
                SecurityEvent.LOGIN_FAILED,
                email=email,
                account_id=account.id,
                details={"reason": "wrong_password"},
            )
            raise InvalidCredentialsError("Invalid credentials provided")

        token, payload = self._codec.issue(
            account.id,
            account.username,
            account.role,
            timedelta(minutes=self._config.access_token_minutes),
        )

        if self._config.enforce_single_device:
            # Overwriting the active token is what logs out every other device
            try:
                self._store.update_account(
                    account.id, AccountUpdate(active_session_token=token)
                )
            except Exception as e:
                self._report_failure(
                    SecurityEvent.ACTIVE_TOKEN_PERSIST_FAILED,
                    e,
                    email=account.email,
                    account_id=account.id,
                )

        if self._hasher.needs_rehash(account.password_hash):
            try:
                self._store.update_account(
                    account.id,
                    AccountUpdate(password_hash=self._hasher.hash(request.password)),
                )
            except Exception as e:
                self._report_failure(
                    SecurityEvent.PASSWORD_REHASH_FAILED,
                    e,
                    email=account.email,
                    account_id=account.id,
                )

        self._security_logger.log(
            SecurityEvent.LOGIN_SUCCEEDED,
            email=account.email,
            account_id=account.id,
            details={"token_id": str(payload.token_id)},
        )

        return LoginResult(
            access_token=token,
            expires_at=payload.expires_at,
            account=account.to_view(),
        )

    def logout(self, payload: SessionPayload, token: str) -> None:
        """End the presented session.

        Only meaningful with single-device enforcement: the active token is
        cleared if it is the one presented. A newer session is left alone.
        Safe to call repeatedly.
        """
        if not self._config.enforce_single_device:
            return

        try:
            account = self._store.get_account_by_id(payload.account_id)
        except (NotFoundError, UserDeletedError):
            return
        if account is None or account.active_session_token != token:
            return

        self._store.update_account(account.id, AccountUpdate(active_session_token=None))
        self._security_logger.log(
            SecurityEvent.SESSION_REVOKED,
            email=account.email,
            account_id=account.id,
            details={"token_id": str(payload.token_id)},
        )

    # ------------------------------------------------------------------
    # Passwords
    # ------------------------------------------------------------------

    def request_password_reset(self, email: str) -> None:
        """Send a password reset link.

        Unknown and deleted accounts are silently ignored so the response
        does not reveal which addresses are registered.

        Raises:
            ConfigurationError: No notifier configured.
        """
        notifier = self._require_notifier()
        email = self._normalize_email(email)

        account = self._find_account_for_login(email)
        if account is None or account.status == AccountStatus.PENDING_DELETE:
            self._security_logger.log(
                SecurityEvent.PASSWORD_RESET_FAILED,
                email=email,
                details={"reason": "account_not_found"},
            )
            return

        now = now_utc()
        ticket = PasswordResetTicket(
            token=self._new_ticket_token(),
            account_id=account.id,
            created_at=now,
            expires_at=now + timedelta(minutes=self._config.password_reset_token_minutes),
        )
        self._store.store_password_reset_ticket(ticket)
        self._security_logger.log(
            SecurityEvent.PASSWORD_RESET_REQUESTED,
            email=account.email,
            account_id=account.id,
        )

        link = self._link(self._config.reset_password_path, ticket.token)
        recipient, display_name = account.email, account.display_name
        self._dispatcher.submit(
            lambda: notifier.send_password_reset_email(recipient, display_name, link),
            sent_event=SecurityEvent.PASSWORD_RESET_EMAIL_SENT,
            failed_event=SecurityEvent.PASSWORD_RESET_EMAIL_FAILED,
            email=recipient,
            account_id=account.id,
        )

    def reset_password(self, token: str, new_password: str) -> AccountView:
        """Consume a reset ticket and set a new password.

        With single-device enforcement the active session is cleared in the
        same update, so every token issued before the reset stops working.

        Raises:
            PasswordPolicyError: New password too short.
            PasswordResetNotFoundError: Ticket unknown, expired, or account gone.
        """
        self._check_password_policy(new_password)

        try:
            ticket = self._store.get_password_reset_ticket(token)
        except NotFoundError:
            ticket = None

        if ticket is None:
            self._security_logger.log(
                SecurityEvent.PASSWORD_RESET_FAILED,
                details={"reason": "ticket_not_found"},
            )
            raise PasswordResetNotFoundError("Password reset token not found or already used")

        if ticket.is_expired(now_utc()):
            self._security_logger.log(
                SecurityEvent.PASSWORD_RESET_FAILED,
                account_id=ticket.account_id,
                details={"reason": "ticket_expired"},
            )
            self._delete_reset_ticket(token, ticket.account_id)
            raise PasswordResetNotFoundError("Password reset link has expired")

        try:
            account = self._get_account(ticket.account_id)
        except NotFoundError as e:
            raise PasswordResetNotFoundError(
                "Password reset token not found or already used"
            ) from e

        updated = self._store.update_account(account.id, self._password_update(new_password))
        self._delete_reset_ticket(token, account.id)

        self._security_logger.log(
            SecurityEvent.PASSWORD_RESET_COMPLETED,
            email=updated.email,
            account_id=updated.id,
        )
        return updated.to_view()

    def _password_update(self, new_password: str) -> AccountUpdate:
        if self._config.enforce_single_device:
            return AccountUpdate(
                password_hash=self._hasher.hash(new_password),
                active_session_token=None,
            )
        return AccountUpdate(password_hash=self._hasher.hash(new_password))

    def _delete_reset_ticket(self, token: str, account_id: UUID) -> None:
        try:
            self._store.delete_password_reset_ticket(token)
        except Exception as e:
            self._report_failure(
                SecurityEvent.TICKET_CLEANUP_FAILED,
                e,
                account_id=account_id,
                ticket="password_reset",
            )

    def change_password(self, account_id: UUID, old_password: str, new_password: str) -> AccountView:
        """Change password for an authenticated account.

        Raises:
            PasswordPolicyError: New password too short.
            NotFoundError: Account missing.
            InvalidCredentialsError: Old password wrong.
        """
        self._check_password_policy(new_password)
        account = self._get_account(account_id)

        if not self._hasher.verify(account.password_hash, old_password):
            self._security_logger.log(
                SecurityEvent.LOGIN_FAILED,
                email=account.email,
                account_id=account.id,
                details={"reason": "wrong_password", "operation": "change_password"},
            )
            raise InvalidCredentialsError("Invalid credentials provided")

        updated = self._store.update_account(account.id, self._password_update(new_password))
        self._security_logger.log(
            SecurityEvent.PASSWORD_CHANGED,
            email=updated.email,
            account_id=updated.id,
        )
        return updated.to_view()

    # ------------------------------------------------------------------
    # Profile and lifecycle
    # ------------------------------------------------------------------

    def get_account(self, account_id: UUID) -> AccountView:
        """Raises NotFoundError if the account is missing or deleted."""
        return self._get_account(account_id).to_view()

    def change_display_name(self, account_id: UUID, display_name: str) -> AccountView:
        account = self._get_account(account_id)
        updated = self._store.update_account(
            account.id, AccountUpdate(display_name=display_name)
        )
        return updated.to_view()

    def change_status(self, account_id: UUID, target: AccountStatus) -> AccountView:
        """Move an account along a lifecycle edge.

        Leaving active clears the active session token so outstanding
        sessions stop working immediately.

        Raises:
            NotFoundError: Account missing.
            InvalidStatusTransitionError: Not an allowed edge.
        """
        # an account read back in deleted status falls through to the edge check
        try:
            account = self._store.get_account_by_id(account_id)
        except (NotFoundError, UserDeletedError) as e:
            raise NotFoundError(f"Account {account_id} not found") from e
        if account is None:
            raise NotFoundError(f"Account {account_id} not found")

        # pending -> active only happens through email verification
        verification_edge = (
            account.status == AccountStatus.PENDING and target == AccountStatus.ACTIVE
        )
        if verification_edge or not can_transition(account.status, target):
            raise InvalidStatusTransitionError(account.status.value, target.value)

        if target == AccountStatus.ACTIVE:
            update = AccountUpdate(status=target)
        else:
            update = AccountUpdate(status=target, active_session_token=None)

        updated = self._store.update_account(account.id, update)
        self._security_logger.log(
            SecurityEvent.STATUS_CHANGED,
            email=updated.email,
            account_id=updated.id,
            details={"from": account.status.value, "to": target.value},
        )
        return updated.to_view()

    def suspend_account(self, account_id: UUID) -> AccountView:
        return self.change_status(account_id, AccountStatus.SUSPENDED)

    def reinstate_account(self, account_id: UUID) -> AccountView:
        return self.change_status(account_id, AccountStatus.ACTIVE)

    def schedule_deletion(self, account_id: UUID) -> AccountView:
        return self.change_status(account_id, AccountStatus.PENDING_DELETE)

    def delete_account(self, account_id: UUID) -> AccountView:
        """Finalize a soft delete. The account must be pending deletion."""
        return self.change_status(account_id, AccountStatus.DELETED)
