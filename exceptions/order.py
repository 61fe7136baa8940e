"""
Order-related exceptions.
"""

from .base import StorefrontException


class OrderException(StorefrontException):
    """Base exception for order-related errors."""
    pass


class OrderNotFoundException(OrderException):
    """Raised when order is not found in database."""

    def __init__(self, order_id: int):
        super().__init__(
            f"Order {order_id} not found",
            details={'order_id': order_id}
        )
        self.order_id = order_id


class InvalidTransitionException(OrderException):
    """Raised when a status transition is not allowed by the state machine."""

    def __init__(self, order_id: int, current_status: str, requested_status: str):
        super().__init__(
            f"Order {order_id} cannot move from '{current_status}' to '{requested_status}'",
            details={'order_id': order_id, 'current_status': current_status,
                     'requested_status': requested_status}
        )
        self.order_id = order_id
        self.current_status = current_status
        self.requested_status = requested_status


class OrderTotalMismatchException(OrderException):
    """Raised when an order total does not equal the sum of its lines."""

    def __init__(self, declared_total: str, computed_total: str):
        super().__init__(
            f"Order total {declared_total} does not match line sum {computed_total}",
            details={'declared_total': declared_total, 'computed_total': computed_total}
        )
        self.declared_total = declared_total
        self.computed_total = computed_total


class OrderOwnershipException(OrderException):
    """Raised when user attempts to access an order they don't own."""

    def __init__(self, order_id: int, user_id: str):
        super().__init__(
            f"User {user_id} does not have permission to access order {order_id}",
            details={'order_id': order_id, 'user_id': user_id}
        )
        self.order_id = order_id
        self.user_id = user_id
