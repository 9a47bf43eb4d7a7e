"""Tests for auth domain models and the account lifecycle."""

from datetime import timedelta
from uuid import uuid4

import pytest
from pydantic import ValidationError

from authkit.timezone import now_utc
from authkit.types import (
    Account,
    AccountStatus,
    AccountUpdate,
    PasswordResetTicket,
    RegisterRequest,
    SessionPayload,
    VerificationTicket,
    can_transition,
)


def _account(**overrides) -> Account:
    now = now_utc()
    values = {
        "id": uuid4(),
        "username": "alice@example.com",
        "email": "alice@example.com",
        "password_hash": "$argon2id$secret",
        "display_name": "Alice",
        "role": "user",
        "status": AccountStatus.ACTIVE,
        "created_at": now,
        "updated_at": now,
        "active_session_token": "session-token",
    }
    values.update(overrides)
    return Account(**values)


class TestAccountStatus:
    """Test lifecycle edges."""

    @pytest.mark.parametrize(
        "current,target",
        [
            (AccountStatus.PENDING, AccountStatus.ACTIVE),
            (AccountStatus.PENDING, AccountStatus.PENDING_DELETE),
            (AccountStatus.ACTIVE, AccountStatus.SUSPENDED),
            (AccountStatus.ACTIVE, AccountStatus.PENDING_DELETE),
            (AccountStatus.SUSPENDED, AccountStatus.ACTIVE),
            (AccountStatus.SUSPENDED, AccountStatus.PENDING_DELETE),
            (AccountStatus.PENDING_DELETE, AccountStatus.DELETED),
        ],
    )
    def test_allowed_edges(self, current, target):
        assert can_transition(current, target) is True

    @pytest.mark.parametrize(
        "current,target",
        [
            (AccountStatus.ACTIVE, AccountStatus.PENDING),
            (AccountStatus.ACTIVE, AccountStatus.DELETED),
            (AccountStatus.SUSPENDED, AccountStatus.PENDING),
            (AccountStatus.PENDING_DELETE, AccountStatus.ACTIVE),
        ],
    )
    def test_rejected_edges(self, current, target):
        assert can_transition(current, target) is False

    def test_deleted_is_terminal(self):
        assert not any(can_transition(AccountStatus.DELETED, target) for target in AccountStatus)

    def test_values_are_strings(self):
        assert AccountStatus("pending_delete") == AccountStatus.PENDING_DELETE


class TestAccount:
    """Test secret handling on the account record."""

    def test_secrets_excluded_from_dump(self):
        dumped = _account().model_dump()

        assert "password_hash" not in dumped
        assert "active_session_token" not in dumped

    def test_secrets_excluded_from_repr(self):
        text = repr(_account())

        assert "argon2" not in text
        assert "session-token" not in text

    def test_to_view(self):
        account = _account()
        view = account.to_view()

        assert view.id == account.id
        assert view.status == AccountStatus.ACTIVE
        assert not hasattr(view, "password_hash")


class TestAccountUpdate:
    """Test explicit-field partial updates."""

    def test_empty_update(self):
        assert AccountUpdate().changes() == {}

    def test_explicit_none_clears(self):
        assert AccountUpdate(active_session_token=None).changes() == {"active_session_token": None}

    def test_only_set_fields(self):
        changes = AccountUpdate(display_name="Bob", status=AccountStatus.SUSPENDED).changes()

        assert changes == {"display_name": "Bob", "status": AccountStatus.SUSPENDED}


class TestSessionPayload:
    """Test payload immutability."""

    def test_frozen(self):
        now = now_utc()
        payload = SessionPayload(
            token_id=uuid4(),
            account_id=uuid4(),
            username="alice",
            role="user",
            issued_at=now,
            expires_at=now + timedelta(minutes=5),
        )

        with pytest.raises(ValidationError):
            payload.role = "admin"


class TestTickets:
    """Test ticket expiry."""

    def test_verification_ticket_expiry(self):
        now = now_utc()
        ticket = VerificationTicket(
            token="ab" * 16,
            account_id=uuid4(),
            email="alice@example.com",
            created_at=now,
            expires_at=now + timedelta(hours=1),
        )

        assert ticket.is_expired(now) is False
        assert ticket.is_expired(ticket.expires_at) is False
        assert ticket.is_expired(ticket.expires_at + timedelta(seconds=1)) is True

    def test_reset_ticket_expiry(self):
        now = now_utc()
        ticket = PasswordResetTicket(
            token="cd" * 16,
            account_id=uuid4(),
            created_at=now,
            expires_at=now + timedelta(minutes=5),
        )

        assert ticket.is_expired(now + timedelta(minutes=6)) is True


class TestRequests:
    """Test request payload validation."""

    def test_invalid_email(self):
        with pytest.raises(ValidationError):
            RegisterRequest(email="not-an-email", password="password1", display_name="Alice")

    def test_empty_display_name(self):
        with pytest.raises(ValidationError):
            RegisterRequest(email="alice@example.com", password="password1", display_name="")

    def test_password_not_in_repr(self):
        request = RegisterRequest(
            email="alice@example.com", password="hunter22-secret", display_name="Alice"
        )

        assert "hunter22-secret" not in repr(request)
