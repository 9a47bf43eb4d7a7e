"""Fire-and-forget delivery of outbound notifications.

Jobs run on a worker pool owned by the dispatcher, not by the request that
queued them, so a slow or failing mail provider never delays or fails the
operation. Outcomes are only observable through security events.
"""

import concurrent.futures
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable
from uuid import UUID

from authkit.security_logger import SecurityEvent, SecurityLogger

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """Background worker pool for notifier calls."""

    def __init__(self, max_workers: int = 2, security_logger: SecurityLogger | None = None):
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="authkit-notify",
        )
        self._security_logger = security_logger or SecurityLogger()
        self._pending: set[Future] = set()
        self._lock = threading.Lock()

    def submit(
        self,
        send: Callable[[], None],
        *,
        sent_event: SecurityEvent,
        failed_event: SecurityEvent,
        email: str | None = None,
        account_id: UUID | None = None,
    ) -> Future:
        """Queue a delivery job and return immediately.

        The job reports its own outcome before its future completes, so
        ``flush`` returning means every outcome has been reported.

        Raises:
            RuntimeError: If the dispatcher has been shut down.
        """

        def _deliver() -> None:
            try:
                send()
            except Exception as e:
                self._security_logger.log(
                    failed_event,
                    email=email,
                    account_id=account_id,
                    details={"error": str(e), "error_type": type(e).__name__},
                    level=logging.ERROR,
                )
                return
            self._security_logger.log(sent_event, email=email, account_id=account_id)

        future = self._executor.submit(_deliver)
        with self._lock:
            self._pending.add(future)
        future.add_done_callback(self._forget)
        return future

    def _forget(self, future: Future) -> None:
        with self._lock:
            self._pending.discard(future)

    def flush(self, timeout: float | None = None) -> bool:
        """Wait for queued jobs. Returns True if none are left running."""
        with self._lock:
            pending = list(self._pending)
        if not pending:
            return True
        _, not_done = concurrent.futures.wait(pending, timeout=timeout)
        if not_done:
            logger.warning(f"{len(not_done)} notification(s) still pending after flush")
        return not not_done

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting jobs; optionally wait for queued ones."""
        self._executor.shutdown(wait=wait)
