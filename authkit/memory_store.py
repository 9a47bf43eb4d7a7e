"""In-memory AccountStore.

Reference implementation of ``authkit.store.AccountStore`` for tests,
examples and single-process tools. Data lives for the lifetime of the
object; nothing is persisted.
"""

import threading
from uuid import UUID, uuid4

from authkit.exceptions import DuplicateEmailError, DuplicateUsernameError, NotFoundError
from authkit.timezone import now_utc
from authkit.types import (
    Account,
    AccountUpdate,
    NewAccount,
    PasswordResetTicket,
    VerificationTicket,
)


class InMemoryAccountStore:
    """Thread-safe dict-backed store.

    Emails are matched case-insensitively. Uniqueness is checked under the
    same lock as the insert, so concurrent registrations cannot both win.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._accounts: dict[UUID, Account] = {}
        self._email_index: dict[str, UUID] = {}
        self._username_index: dict[str, UUID] = {}
        self._verification_tickets: dict[str, VerificationTicket] = {}
        self._reset_tickets: dict[str, PasswordResetTicket] = {}

    def create_account(self, account: NewAccount) -> Account:
        """Create new account.

        Raises:
            DuplicateEmailError: Email already registered.
            DuplicateUsernameError: Username already taken.
        """
        email = account.email.lower()
        with self._lock:
            if email in self._email_index:
                raise DuplicateEmailError("Email address already in use")
            if account.username in self._username_index:
                raise DuplicateUsernameError("Username already in use")

            now = now_utc()
            created = Account(
                id=uuid4(),
                username=account.username,
                email=email,
                password_hash=account.password_hash,
                display_name=account.display_name,
                role=account.role,
                status=account.status,
                created_at=now,
                updated_at=now,
            )
            self._accounts[created.id] = created
            self._email_index[email] = created.id
            self._username_index[created.username] = created.id
            return created

    def get_account_by_email(self, email: str) -> Account | None:
        """Find account by email (case-insensitive)."""
        with self._lock:
            account_id = self._email_index.get(email.lower())
            if account_id is None:
                return None
            return self._accounts.get(account_id)

    def get_account_by_id(self, account_id: UUID) -> Account | None:
        with self._lock:
            return self._accounts.get(account_id)

    def update_account(self, account_id: UUID, update: AccountUpdate) -> Account:
        """Apply explicitly set fields and bump updated_at.

        Raises:
            NotFoundError: If account does not exist.
        """
        with self._lock:
            current = self._accounts.get(account_id)
            if current is None:
                raise NotFoundError(f"Account {account_id} not found")
            updated = current.model_copy(
                update={**update.changes(), "updated_at": now_utc()}
            )
            self._accounts[account_id] = updated
            return updated

    def store_verification_ticket(self, ticket: VerificationTicket) -> None:
        with self._lock:
            self._verification_tickets[ticket.token] = ticket

    def get_verification_ticket(self, token: str) -> VerificationTicket | None:
        with self._lock:
            return self._verification_tickets.get(token)

    def delete_verification_ticket(self, token: str) -> None:
        """Remove ticket. Safe to call with unknown token."""
        with self._lock:
            self._verification_tickets.pop(token, None)

    def delete_verification_tickets_for_account(self, account_id: UUID) -> None:
        with self._lock:
            stale = [
                token
                for token, ticket in self._verification_tickets.items()
                if ticket.account_id == account_id
            ]
            for token in stale:
                del self._verification_tickets[token]

    def store_password_reset_ticket(self, ticket: PasswordResetTicket) -> None:
        with self._lock:
            self._reset_tickets[ticket.token] = ticket

    def get_password_reset_ticket(self, token: str) -> PasswordResetTicket | None:
        with self._lock:
            return self._reset_tickets.get(token)

    def delete_password_reset_ticket(self, token: str) -> None:
        """Remove ticket. Safe to call with unknown token."""
        with self._lock:
            self._reset_tickets.pop(token, None)
