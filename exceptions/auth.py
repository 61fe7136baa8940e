"""
Identity-related exceptions.
"""

from .base import StorefrontException


class AuthException(StorefrontException):
    """Base exception for identity errors."""
    pass


class UnauthenticatedException(AuthException):
    """Raised when a request carries no verified user identity."""

    def __init__(self, reason: str = "No verified user identity"):
        super().__init__(
            f"Unauthenticated: {reason}",
            details={'reason': reason}
        )
        self.reason = reason


class InvalidIdentityEventException(AuthException):
    """Raised when an identity lifecycle event is unsigned or malformed."""

    def __init__(self, reason: str):
        super().__init__(
            f"Invalid identity event: {reason}",
            details={'reason': reason}
        )
        self.reason = reason


class CheckoutRateLimitedException(AuthException):
    """Raised when a user exceeds the checkout rate limit."""

    retryable = True

    def __init__(self, user_id: str, retry_after_seconds: int):
        super().__init__(
            f"Too many checkouts for user {user_id}, retry in {retry_after_seconds}s",
            details={'user_id': user_id, 'retry_after_seconds': retry_after_seconds}
        )
        self.user_id = user_id
        self.retry_after_seconds = retry_after_seconds
