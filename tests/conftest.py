"""Shared test fixtures for the authkit test suite."""

from unittest.mock import Mock

import pytest

from authkit.config import AuthConfig
from authkit.context import clear_current_payload
from authkit.dispatcher import NotificationDispatcher
from authkit.guard import SessionGuard
from authkit.hasher import PasswordHasher
from authkit.memory_store import InMemoryAccountStore
from authkit.security_logger import SecurityLogger, SecurityRecord
from authkit.service import AccountService
from authkit.store import Notifier
from authkit.tokens import TokenCodec
from authkit.types import AccountView, RegisterRequest


# =============================================================================
# TEST CONSTANTS
# =============================================================================

TEST_SECRET = "test-secret-key-that-is-long-enough-0123456789"
TEST_EMAIL = "alice@example.com"
TEST_PASSWORD = "correct-horse-battery"
TEST_DISPLAY_NAME = "Alice"


# =============================================================================
# CONTEXT FIXTURES
# =============================================================================


@pytest.fixture(autouse=True)
def reset_payload_context():
    """Ensure clean payload context before and after each test."""
    clear_current_payload()
    yield
    clear_current_payload()


# =============================================================================
# CORE FIXTURES
# =============================================================================


@pytest.fixture
def config():
    """Test config with cheap argon2 parameters."""
    return AuthConfig(
        token_secret=TEST_SECRET,
        password_time_cost=1,
        password_memory_cost=1024,
        password_parallelism=1,
        app_base_url="https://app.example.com",
    )


@pytest.fixture
def store():
    return InMemoryAccountStore()


@pytest.fixture
def hasher(config):
    return PasswordHasher.from_config(config)


@pytest.fixture
def codec(config):
    return TokenCodec.from_config(config)


@pytest.fixture
def security_records():
    """Collects every reported security event."""
    return []


@pytest.fixture
def security_logger(security_records):
    def _sink(record: SecurityRecord) -> None:
        security_records.append(record)

    return SecurityLogger(sink=_sink)


@pytest.fixture
def mock_notifier():
    """Mock notifier - no actual emails sent in tests."""
    mock = Mock(spec=Notifier)
    mock.send_verification_email.return_value = None
    mock.send_password_reset_email.return_value = None
    return mock


@pytest.fixture
def dispatcher(security_logger):
    dispatcher = NotificationDispatcher(max_workers=1, security_logger=security_logger)
    yield dispatcher
    dispatcher.shutdown(wait=True)


@pytest.fixture
def service(config, store, hasher, codec, mock_notifier, security_logger, dispatcher):
    return AccountService(
        config=config,
        store=store,
        hasher=hasher,
        codec=codec,
        notifier=mock_notifier,
        security_logger=security_logger,
        dispatcher=dispatcher,
    )


@pytest.fixture
def guard(codec, store, config, security_logger):
    return SessionGuard(codec, store, config, security_logger)


# =============================================================================
# ACCOUNT HELPERS
# =============================================================================


def verification_token_for(store: InMemoryAccountStore, account_id) -> str:
    """Return the outstanding verification ticket token for an account."""
    tokens = [
        ticket.token
        for ticket in store._verification_tickets.values()
        if ticket.account_id == account_id
    ]
    assert len(tokens) == 1
    return tokens[0]


def reset_token_for(store: InMemoryAccountStore, account_id) -> str:
    """Return the outstanding password reset ticket token for an account."""
    tokens = [
        ticket.token
        for ticket in store._reset_tickets.values()
        if ticket.account_id == account_id
    ]
    assert len(tokens) == 1
    return tokens[0]


@pytest.fixture
def register_account(service, store, dispatcher):
    """Register an account; verify it unless asked not to."""

    def _register(
        email: str = TEST_EMAIL,
        password: str = TEST_PASSWORD,
        display_name: str = TEST_DISPLAY_NAME,
        verify: bool = True,
    ) -> AccountView:
        account = service.register(
            RegisterRequest(email=email, password=password, display_name=display_name)
        )
        dispatcher.flush()
        if verify:
            account = service.verify_email(verification_token_for(store, account.id))
        return account

    return _register


@pytest.fixture
def verification_token(store):
    """Lookup for the outstanding verification token of an account."""
    return lambda account_id: verification_token_for(store, account_id)


@pytest.fixture
def reset_token(store):
    """Lookup for the outstanding password reset token of an account."""
    return lambda account_id: reset_token_for(store, account_id)
