"""
Call serializer for Lungcat.

At most one upstream LLM call may be in flight per process, regardless of
which user asked. A second caller is rejected immediately rather than
queued; callers are expected to serve fallback content instead.
"""

import logging
import uuid
from contextlib import contextmanager
from threading import Lock
from typing import Iterator, Optional

from lungcat.errors import ConcurrencyRejectedError

logger = logging.getLogger(__name__)


class CallSerializer:
    """Non-blocking, process-wide mutual exclusion around upstream calls."""

    def __init__(self):
        self._lock = Lock()
        self._in_progress = False
        self._call_id: Optional[str] = None
        self._label: Optional[str] = None

    @property
    def in_progress(self) -> bool:
        with self._lock:
            return self._in_progress

    @property
    def current_call_id(self) -> Optional[str]:
        with self._lock:
            return self._call_id

    def try_acquire(self, label: Optional[str] = None) -> bool:
        """
        Atomically claim the gate.

        Args:
            label: Free-form description of the caller, for logs.

        Returns:
            True if acquired, False if another call holds it.
        """
        with self._lock:
            if self._in_progress:
                logger.info(
                    "Upstream call %s (%s) in progress, rejecting %s",
                    self._call_id, self._label, label,
                )
                return False
            self._in_progress = True
            self._call_id = uuid.uuid4().hex[:12]
            self._label = label
            logger.debug("Acquired upstream gate: call_id=%s label=%s", self._call_id, label)
            return True

    def release(self) -> None:
        """Free the gate. Safe to call when not held."""
        with self._lock:
            if not self._in_progress:
                return
            logger.debug("Released upstream gate: call_id=%s", self._call_id)
            self._in_progress = False
            self._call_id = None
            self._label = None

    @contextmanager
    def hold(self, label: Optional[str] = None) -> Iterator[str]:
        """
        Hold the gate for the duration of the block.

        Yields:
            The call id.

        Raises:
            ConcurrencyRejectedError: If the gate is already held.
        """
        if not self.try_acquire(label):
            raise ConcurrencyRejectedError(self.current_call_id)
        call_id = self.current_call_id
        try:
            yield call_id
        finally:
            self.release()

    def get_stats(self) -> dict:
        with self._lock:
            return {
                "in_progress": self._in_progress,
                "call_id": self._call_id,
                "label": self._label,
            }
