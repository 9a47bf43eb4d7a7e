"""Capabilities the core expects from the embedding application.

Any object with these methods works; nothing needs to inherit from the
protocols. Lookups report "not found" as ``None`` (raising
``authkit.exceptions.NotFoundError`` is accepted too). Every other
exception is treated as a real failure and propagates.

Email uniqueness and the active session token are written with a plain
read-then-write sequence. Stores that can should implement
``create_account`` and ``update_account`` as atomic conditional writes.
"""

from typing import Protocol
from uuid import UUID

from authkit.types import (
    Account,
    AccountUpdate,
    NewAccount,
    PasswordResetTicket,
    VerificationTicket,
)


class AccountStore(Protocol):
    """Durable accounts and tickets."""

    def create_account(self, account: NewAccount) -> Account:
        """Persist a new account. Raises DuplicateEmailError on conflict."""
        ...

    def get_account_by_email(self, email: str) -> Account | None: ...

    def get_account_by_id(self, account_id: UUID) -> Account | None: ...

    def update_account(self, account_id: UUID, update: AccountUpdate) -> Account:
        """Apply the fields set on ``update``. Raises NotFoundError if missing."""
        ...

    def store_verification_ticket(self, ticket: VerificationTicket) -> None: ...

    def get_verification_ticket(self, token: str) -> VerificationTicket | None: ...

    def delete_verification_ticket(self, token: str) -> None: ...

    def delete_verification_tickets_for_account(self, account_id: UUID) -> None: ...

    def store_password_reset_ticket(self, ticket: PasswordResetTicket) -> None: ...

    def get_password_reset_ticket(self, token: str) -> PasswordResetTicket | None: ...

    def delete_password_reset_ticket(self, token: str) -> None: ...


class Notifier(Protocol):
    """Outbound delivery of verification and reset links."""

    def send_verification_email(
        self, recipient: str, display_name: str, link: str
    ) -> None: ...

    def send_password_reset_email(
        self, recipient: str, display_name: str, link: str
    ) -> None: ...
