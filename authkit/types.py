"""Pydantic models for the auth domain."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field


class AccountStatus(str, Enum):
    """Account lifecycle status."""

    PENDING = "pending"  # awaiting email verification
    ACTIVE = "active"
    SUSPENDED = "suspended"
    PENDING_DELETE = "pending_delete"
    DELETED = "deleted"  # terminal, soft delete


STATUS_TRANSITIONS: dict[AccountStatus, frozenset[AccountStatus]] = {
    AccountStatus.PENDING: frozenset({AccountStatus.ACTIVE, AccountStatus.PENDING_DELETE}),
    AccountStatus.ACTIVE: frozenset({AccountStatus.SUSPENDED, AccountStatus.PENDING_DELETE}),
    AccountStatus.SUSPENDED: frozenset({AccountStatus.ACTIVE, AccountStatus.PENDING_DELETE}),
    AccountStatus.PENDING_DELETE: frozenset({AccountStatus.DELETED}),
    AccountStatus.DELETED: frozenset(),
}


def can_transition(current: AccountStatus, target: AccountStatus) -> bool:
    """Whether ``current -> target`` is an edge of the account lifecycle."""
    return target in STATUS_TRANSITIONS[current]


class AccountView(BaseModel):
    """Account as exposed outward. Never carries secrets."""

    id: UUID
    username: str
    email: EmailStr
    display_name: str
    role: str
    status: AccountStatus
    created_at: datetime
    updated_at: datetime


class Account(BaseModel):
    """The canonical identity record owned by the store."""

    id: UUID
    username: str
    email: EmailStr
    password_hash: str = Field(..., exclude=True, repr=False)
    display_name: str
    role: str = Field(..., description="Free-form role tag defined by the application")
    status: AccountStatus
    created_at: datetime
    updated_at: datetime
    active_session_token: str | None = Field(
        None,
        exclude=True,
        repr=False,
        description="Only set when single-device enforcement is on",
    )

    model_config = {"from_attributes": True}

    def to_view(self) -> AccountView:
        """Sanitized view without the password digest or session token."""
        return AccountView(
            id=self.id,
            username=self.username,
            email=self.email,
            display_name=self.display_name,
            role=self.role,
            status=self.status,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


class NewAccount(BaseModel):
    """Data required to create an account."""

    username: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password_hash: str = Field(..., repr=False)
    display_name: str = Field(..., max_length=255)
    role: str
    status: AccountStatus = AccountStatus.PENDING


class AccountUpdate(BaseModel):
    """
    Partial account update.

    Only fields that were explicitly set are applied, so
    ``AccountUpdate(active_session_token=None)`` clears the active token
    while ``AccountUpdate()`` leaves everything untouched.
    """

    display_name: str | None = Field(None, max_length=255)
    password_hash: str | None = Field(None, repr=False)
    role: str | None = None
    status: AccountStatus | None = None
    active_session_token: str | None = Field(None, repr=False)

    def changes(self) -> dict:
        """Fields to apply, keyed by Account attribute name."""
        return self.model_dump(exclude_unset=True)


class SessionPayload(BaseModel):
    """Verified contents of a session token. Read-only once issued."""

    token_id: UUID = Field(..., description="Unique per issuance")
    account_id: UUID
    username: str
    role: str = Field(..., description="Role snapshot at issuance")
    issued_at: datetime
    expires_at: datetime

    model_config = {"frozen": True}


class VerificationTicket(BaseModel):
    """Single-use email verification ticket."""

    token: str = Field(..., description="Random hex token")
    account_id: UUID
    email: EmailStr
    created_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at


class PasswordResetTicket(BaseModel):
    """Single-use password reset ticket."""

    token: str = Field(..., description="Random hex token")
    account_id: UUID
    created_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at


# Wire-facing shapes. Length policy for passwords is enforced by the service
# because the minimum is configurable per instance.


class RegisterRequest(BaseModel):
    """Request payload for registration."""

    email: EmailStr
    password: str = Field(..., min_length=1, repr=False)
    display_name: str = Field(..., min_length=1, max_length=255)


class LoginRequest(BaseModel):
    """Request payload for login."""

    email: EmailStr
    password: str = Field(..., min_length=1, repr=False)


class VerifyEmailRequest(BaseModel):
    """Token from a verification link."""

    token: str = Field(..., min_length=1)


class ResendVerificationRequest(BaseModel):
    email: EmailStr


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    token: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=1, repr=False)


class ChangePasswordRequest(BaseModel):
    old_password: str = Field(..., min_length=1, repr=False)
    new_password: str = Field(..., min_length=1, repr=False)


class ChangeDisplayNameRequest(BaseModel):
    display_name: str = Field(..., min_length=1, max_length=255)


class LoginResult(BaseModel):
    """Issued session token and the account it belongs to."""

    access_token: str
    expires_at: datetime
    account: AccountView
