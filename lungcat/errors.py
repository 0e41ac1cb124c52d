"""Exception types for Lungcat.

None of these escape the orchestrator's public methods; they exist so each
component can report a precise failure and the orchestrator can map it to
fallback content.
"""

from typing import Optional


class LungcatError(Exception):
    """Base class for all Lungcat errors."""
    pass


class QuotaExceededError(LungcatError):
    """Raised when a user's daily or monthly AI call quota is used up."""
    def __init__(self, user_id: str, period: str, used: int, limit: int):
        self.user_id = user_id
        self.period = period
        self.used = used
        self.limit = limit
        super().__init__(
            f"User '{user_id}' exceeded {period} AI quota: {used}/{limit} calls"
        )


class ConcurrencyRejectedError(LungcatError):
    """Raised when another upstream call is already in flight."""
    def __init__(self, holder_call_id: Optional[str] = None):
        self.holder_call_id = holder_call_id
        super().__init__(
            f"Upstream call already in progress (call_id={holder_call_id})"
        )


class UpstreamError(LungcatError):
    """Raised on network errors, timeouts, non-2xx or unparseable LLM output."""
    def __init__(self, provider: str, message: str):
        self.provider = provider
        super().__init__(f"{provider}: {message}")


class PersistenceError(LungcatError):
    """Raised when the key-value store cannot be read or written."""
    def __init__(self, operation: str, key: str, message: str):
        self.operation = operation
        self.key = key
        super().__init__(f"Store {operation} failed for '{key}': {message}")
