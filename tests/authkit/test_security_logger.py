"""Tests for SecurityLogger - security event reporting."""

import logging
from uuid import uuid4

from authkit.security_logger import SecurityEvent, SecurityLogger


class TestLog:
    """Test event reporting."""

    def test_returns_record(self):
        account_id = uuid4()

        record = SecurityLogger().log(
            SecurityEvent.LOGIN_SUCCEEDED,
            email="alice@example.com",
            account_id=account_id,
            details={"token_id": "abc"},
        )

        assert record.event == SecurityEvent.LOGIN_SUCCEEDED
        assert record.email == "alice@example.com"
        assert record.account_id == account_id
        assert record.details == {"token_id": "abc"}
        assert record.created_at.tzinfo is not None

    def test_details_default_to_empty(self):
        assert SecurityLogger().log(SecurityEvent.LOGIN_FAILED).details == {}

    def test_writes_to_security_logger(self, caplog):
        with caplog.at_level(logging.INFO, logger="authkit.security"):
            SecurityLogger().log(SecurityEvent.EMAIL_VERIFIED, email="alice@example.com")

        assert "email_verified" in caplog.text
        assert "alice@example.com" in caplog.text

    def test_level_is_honored(self, caplog):
        with caplog.at_level(logging.INFO, logger="authkit.security"):
            SecurityLogger().log(SecurityEvent.VERIFICATION_EMAIL_FAILED, level=logging.ERROR)

        assert caplog.records[-1].levelno == logging.ERROR


class TestSink:
    """Test the optional audit sink."""

    def test_sink_receives_record(self):
        received = []
        logger = SecurityLogger(sink=received.append)

        record = logger.log(SecurityEvent.PASSWORD_CHANGED)

        assert received == [record]

    def test_sink_failure_is_contained(self, caplog):
        def _broken_sink(record):
            raise RuntimeError("audit table missing")

        with caplog.at_level(logging.ERROR, logger="authkit.security_logger"):
            record = SecurityLogger(sink=_broken_sink).log(SecurityEvent.PASSWORD_CHANGED)

        assert record.event == SecurityEvent.PASSWORD_CHANGED
        assert "Security event sink failed" in caplog.text
