"""
Payment gateway and webhook exceptions.
"""

from .base import StorefrontException


class PaymentException(StorefrontException):
    """Base exception for payment-related errors."""
    pass


class SignatureInvalidException(PaymentException):
    """Raised when a webhook signature is missing, stale or does not verify."""

    def __init__(self, reason: str):
        super().__init__(
            f"Webhook signature invalid: {reason}",
            details={'reason': reason}
        )
        self.reason = reason


class MissingOrderReferenceException(PaymentException):
    """Raised when a payment event carries no usable order identifier."""

    def __init__(self, event_id: str | None, event_type: str | None):
        super().__init__(
            f"Event {event_id} ({event_type}) has no order reference",
            details={'event_id': event_id, 'event_type': event_type}
        )
        self.event_id = event_id
        self.event_type = event_type


class GatewayUnavailableException(PaymentException):
    """Raised on timeouts, connection failures and 5xx answers from the gateway."""

    retryable = True

    def __init__(self, reason: str, order_id: int | None = None):
        super().__init__(
            f"Payment gateway unavailable: {reason}",
            details={'reason': reason, 'order_id': order_id}
        )
        self.reason = reason
        self.order_id = order_id


class PaymentSessionRejectedException(PaymentException):
    """Raised when the gateway refuses the session request itself."""

    def __init__(self, order_id: int, reason: str):
        super().__init__(
            f"Payment session for order {order_id} rejected: {reason}",
            details={'order_id': order_id, 'reason': reason}
        )
        self.order_id = order_id
        self.reason = reason
