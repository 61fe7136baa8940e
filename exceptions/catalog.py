"""
Catalog-related exceptions.
"""

from decimal import Decimal

from .base import StorefrontException


class CatalogException(StorefrontException):
    """Base exception for catalog errors."""
    pass


class ProductNotFoundException(CatalogException):
    """Raised when a product is missing or inactive."""

    def __init__(self, product_id: str):
        super().__init__(
            f"Product {product_id} not found",
            details={'product_id': product_id}
        )
        self.product_id = product_id


class PriceMismatchException(CatalogException):
    """Raised when a client-declared unit price differs from the catalog price."""

    def __init__(self, product_id: str, declared: Decimal, actual: Decimal):
        super().__init__(
            f"Price mismatch for product {product_id}: declared {declared}, catalog {actual}",
            details={'product_id': product_id, 'declared': str(declared), 'actual': str(actual)}
        )
        self.product_id = product_id
        self.declared = declared
        self.actual = actual
