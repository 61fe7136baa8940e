"""
Custom exceptions for the storefront service.

This module provides a hierarchy of custom exceptions for consistent error handling
throughout the application.

Exception Hierarchy:
--------------------
StorefrontException (base)
├── AuthException
│   ├── UnauthenticatedException
│   ├── InvalidIdentityEventException
│   └── CheckoutRateLimitedException
├── CartException
│   ├── EmptyCartException
│   ├── InvalidQuantityException
│   └── CartLineNotFoundException
├── CatalogException
│   ├── ProductNotFoundException
│   └── PriceMismatchException
├── OrderException
│   ├── OrderNotFoundException
│   ├── InvalidTransitionException
│   ├── OrderTotalMismatchException
│   └── OrderOwnershipException
├── PaymentException
│   ├── SignatureInvalidException
│   ├── MissingOrderReferenceException
│   ├── GatewayUnavailableException
│   └── PaymentSessionRejectedException
└── StoreUnavailableException

Usage:
------
Services raise specific exceptions:
    raise OrderNotFoundException(order_id=123)

The HTTP layer maps them to status codes (see utils/error_handler.py):
    try:
        await ledger.find_order(order_id)
    except OrderNotFoundException as e:
        return error_response(e)
"""

from .base import StorefrontException
from .auth import AuthException, UnauthenticatedException, InvalidIdentityEventException, CheckoutRateLimitedException
from .cart import CartException, EmptyCartException, InvalidQuantityException, CartLineNotFoundException
from .catalog import CatalogException, ProductNotFoundException, PriceMismatchException
from .order import (
    OrderException,
    OrderNotFoundException,
    InvalidTransitionException,
    OrderTotalMismatchException,
    OrderOwnershipException
)
from .payment import (
    PaymentException,
    SignatureInvalidException,
    MissingOrderReferenceException,
    GatewayUnavailableException,
    PaymentSessionRejectedException
)
from .store import StoreUnavailableException

__all__ = [
    # Base
    'StorefrontException',

    # Auth
    'AuthException',
    'UnauthenticatedException',
    'InvalidIdentityEventException',
    'CheckoutRateLimitedException',

    # Cart
    'CartException',
    'EmptyCartException',
    'InvalidQuantityException',
    'CartLineNotFoundException',

    # Catalog
    'CatalogException',
    'ProductNotFoundException',
    'PriceMismatchException',

    # Order
    'OrderException',
    'OrderNotFoundException',
    'InvalidTransitionException',
    'OrderTotalMismatchException',
    'OrderOwnershipException',

    # Payment
    'PaymentException',
    'SignatureInvalidException',
    'MissingOrderReferenceException',
    'GatewayUnavailableException',
    'PaymentSessionRejectedException',

    # Store
    'StoreUnavailableException',
]
