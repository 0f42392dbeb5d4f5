"""
Exception types shared across the Kapture API.

Quota denial is not an error: it is returned as an EntitlementDecision.
"""
from typing import Optional


class KaptureError(Exception):
    """Base class for application errors."""


class ConfigurationError(KaptureError):
    """Raised when a plan, limit or setting cannot be resolved."""


class StorageUnavailable(KaptureError):
    """Raised when the usage ledger (relational store) cannot be reached."""

    def __init__(self, operation: str, message: Optional[str] = None) -> None:
        self.operation = operation
        super().__init__(message or f"Usage storage unavailable during {operation}")


class CacheUnavailable(KaptureError):
    """Raised inside the cache front when Redis cannot be reached."""


class NotFoundError(KaptureError):
    """Raised when a requested record does not exist or is not owned by the caller."""


class LostIncrement(KaptureError):
    """
    Usage that could not be persisted after the metered action succeeded.

    Logged, never raised to the user.
    """

    def __init__(self, user_id: int, action_kind: str, delta: int, period_key: str) -> None:
        self.user_id = user_id
        self.action_kind = action_kind
        self.delta = delta
        self.period_key = period_key
        super().__init__(
            f"Lost usage increment: user_id={user_id}, action_kind={action_kind}, "
            f"delta={delta}, period={period_key}"
        )


class ProviderError(KaptureError):
    """Raised when an external vendor (AI provider) call fails."""


class ConflictError(KaptureError):
    """Raised when a write would collide with a record owned by someone else."""
