"""Propagate the verified session payload through the call stack using contextvars."""

from contextlib import contextmanager
from contextvars import ContextVar

from authkit.types import SessionPayload

_current_payload: ContextVar[SessionPayload | None] = ContextVar(
    "current_session_payload", default=None
)


def get_current_payload() -> SessionPayload | None:
    """
    Get the payload the guard verified for the current request.

    Returns None outside an authenticated request.
    """
    return _current_payload.get()


def set_current_payload(payload: SessionPayload) -> None:
    """
    Set the verified payload in context.

    Called by transport middleware after the guard accepts a token.
    """
    _current_payload.set(payload)


def clear_current_payload() -> None:
    """
    Clear the payload.

    Must be called in a finally block to prevent context leakage.
    """
    _current_payload.set(None)


@contextmanager
def payload_context(payload: SessionPayload):
    """
    Context manager for temporarily setting the payload.

    Useful for tests and for background jobs acting on behalf of a user.
    """
    previous = _current_payload.get()
    set_current_payload(payload)
    try:
        yield payload
    finally:
        if previous is None:
            clear_current_payload()
        else:
            set_current_payload(previous)
