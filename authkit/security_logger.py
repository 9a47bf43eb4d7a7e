"""Security event reporting for the auth audit trail.

Every event is written to the ``authkit.security`` logger. Applications that
want a durable audit log pass a sink; it receives the same record. Sink
failures are logged and never reach the operation that emitted the event.
"""

import logging
from datetime import datetime
from enum import Enum
from typing import Any, Callable
from uuid import UUID

from pydantic import BaseModel, Field

from authkit.timezone import now_utc

security_log = logging.getLogger("authkit.security")
logger = logging.getLogger(__name__)


class SecurityEvent(Enum):
    """Auth security event types."""

    ACCOUNT_REGISTERED = "account_registered"
    REGISTRATION_REJECTED = "registration_rejected"
    VERIFICATION_ISSUED = "verification_issued"
    VERIFICATION_ISSUE_FAILED = "verification_issue_failed"
    VERIFICATION_EMAIL_SENT = "verification_email_sent"
    VERIFICATION_EMAIL_FAILED = "verification_email_failed"
    EMAIL_VERIFIED = "email_verified"
    VERIFICATION_FAILED = "verification_failed"
    LOGIN_SUCCEEDED = "login_succeeded"
    LOGIN_FAILED = "login_failed"
    ACTIVE_TOKEN_PERSIST_FAILED = "active_token_persist_failed"
    PASSWORD_REHASH_FAILED = "password_rehash_failed"
    TICKET_CLEANUP_FAILED = "ticket_cleanup_failed"
    PASSWORD_RESET_REQUESTED = "password_reset_requested"
    PASSWORD_RESET_EMAIL_SENT = "password_reset_email_sent"
    PASSWORD_RESET_EMAIL_FAILED = "password_reset_email_failed"
    PASSWORD_RESET_COMPLETED = "password_reset_completed"
    PASSWORD_RESET_FAILED = "password_reset_failed"
    PASSWORD_CHANGED = "password_changed"
    SESSION_REJECTED = "session_rejected"
    SESSION_REVOKED = "session_revoked"
    STATUS_CHANGED = "status_changed"


class SecurityRecord(BaseModel):
    """One reported security event."""

    event: SecurityEvent
    email: str | None = None
    account_id: UUID | None = None
    details: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime


class SecurityLogger:
    """Structured security event reporter."""

    def __init__(self, sink: Callable[[SecurityRecord], None] | None = None):
        self._sink = sink

    def log(
        self,
        event: SecurityEvent,
        email: str | None = None,
        account_id: UUID | None = None,
        details: dict[str, Any] | None = None,
        level: int = logging.INFO,
    ) -> SecurityRecord:
        """Report a security event."""
        record = SecurityRecord(
            event=event,
            email=email,
            account_id=account_id,
            details=details or {},
            created_at=now_utc(),
        )

        security_log.log(
            level,
            "%s email=%s account_id=%s details=%s",
            event.value,
            email,
            account_id,
            record.details,
        )

        if self._sink is not None:
            try:
                self._sink(record)
            except Exception:
                logger.exception("Security event sink failed for %s", event.value)

        return record
