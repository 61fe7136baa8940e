"""
Persistence exceptions.
"""

from .base import StorefrontException


class StoreUnavailableException(StorefrontException):
    """Raised when the order store cannot complete a unit of work in time."""

    retryable = True

    def __init__(self, reason: str):
        super().__init__(
            f"Order store unavailable: {reason}",
            details={'reason': reason}
        )
        self.reason = reason
