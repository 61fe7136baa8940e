"""
Cart-related exceptions.
"""

from .base import StorefrontException


class CartException(StorefrontException):
    """Base exception for cart-related errors."""
    pass


class EmptyCartException(CartException):
    """Raised when trying to checkout with empty cart."""

    def __init__(self, user_id: str | None = None):
        super().__init__(
            f"Cart is empty for user {user_id}",
            details={'user_id': user_id}
        )
        self.user_id = user_id


class InvalidQuantityException(CartException):
    """Raised when a cart line quantity is out of range."""

    def __init__(self, product_id: str, quantity: int):
        super().__init__(
            f"Invalid quantity {quantity} for product {product_id}",
            details={'product_id': product_id, 'quantity': quantity}
        )
        self.product_id = product_id
        self.quantity = quantity


class CartLineNotFoundException(CartException):
    """Raised when cart line not found."""

    def __init__(self, product_id: str, variant_label: str | None = None):
        super().__init__(
            f"Cart line {product_id} ({variant_label or 'base'}) not found",
            details={'product_id': product_id, 'variant_label': variant_label}
        )
        self.product_id = product_id
        self.variant_label = variant_label
