"""
Error Handler Utility for HTTP routes

Provides centralized error handling with:
- Automatic exception to HTTP status mapping
- Consistent JSON error bodies
- A retry hint for transient failures (checkout retry affordance)
- Logging for debugging

Usage in server.py:
    from utils.error_handler import storefront_exception_handler

    app.add_exception_handler(StorefrontException, storefront_exception_handler)
"""

import logging

from fastapi import Request, status
from fastapi.responses import JSONResponse

from exceptions import (
    StorefrontException,
    UnauthenticatedException,
    InvalidIdentityEventException,
    CheckoutRateLimitedException,
    EmptyCartException,
    InvalidQuantityException,
    CartLineNotFoundException,
    ProductNotFoundException,
    PriceMismatchException,
    OrderNotFoundException,
    InvalidTransitionException,
    OrderTotalMismatchException,
    OrderOwnershipException,
    SignatureInvalidException,
    MissingOrderReferenceException,
    GatewayUnavailableException,
    PaymentSessionRejectedException,
    StoreUnavailableException,
)

# Map exception types to HTTP status codes
ERROR_STATUS_MAPPING: dict[type[StorefrontException], int] = {
    # Identity
    UnauthenticatedException: status.HTTP_401_UNAUTHORIZED,
    InvalidIdentityEventException: status.HTTP_400_BAD_REQUEST,
    CheckoutRateLimitedException: status.HTTP_429_TOO_MANY_REQUESTS,

    # Cart
    EmptyCartException: status.HTTP_400_BAD_REQUEST,
    InvalidQuantityException: status.HTTP_400_BAD_REQUEST,
    CartLineNotFoundException: status.HTTP_404_NOT_FOUND,

    # Catalog
    ProductNotFoundException: status.HTTP_404_NOT_FOUND,
    PriceMismatchException: status.HTTP_409_CONFLICT,

    # Order
    OrderNotFoundException: status.HTTP_404_NOT_FOUND,
    InvalidTransitionException: status.HTTP_409_CONFLICT,
    OrderTotalMismatchException: status.HTTP_400_BAD_REQUEST,
    OrderOwnershipException: status.HTTP_403_FORBIDDEN,

    # Payment
    SignatureInvalidException: status.HTTP_400_BAD_REQUEST,
    MissingOrderReferenceException: status.HTTP_400_BAD_REQUEST,
    GatewayUnavailableException: status.HTTP_503_SERVICE_UNAVAILABLE,
    PaymentSessionRejectedException: status.HTTP_502_BAD_GATEWAY,

    # Store
    StoreUnavailableException: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def get_status_code(exception: StorefrontException) -> int:
    """
    Resolve the HTTP status for a service exception.

    Subclasses inherit the status of their closest mapped ancestor; unmapped
    exceptions are answered with 500.
    """
    for exception_type in type(exception).__mro__:
        if exception_type in ERROR_STATUS_MAPPING:
            return ERROR_STATUS_MAPPING[exception_type]
    logging.error(f"Unmapped exception type: {type(exception).__name__}")
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def build_error_body(exception: StorefrontException) -> dict:
    return {
        "error": type(exception).__name__,
        "message": exception.message,
        "retryable": exception.retryable,
    }


def error_response(exception: StorefrontException) -> JSONResponse:
    status_code = get_status_code(exception)
    if status_code >= 500:
        logging.error(f"Service error handled: {type(exception).__name__} - {str(exception)}")
    else:
        logging.warning(f"Service error handled: {type(exception).__name__} - {str(exception)}")

    headers = None
    if isinstance(exception, CheckoutRateLimitedException):
        headers = {"Retry-After": str(exception.retry_after_seconds)}
    return JSONResponse(status_code=status_code, content=build_error_body(exception), headers=headers)


async def storefront_exception_handler(request: Request, exc: StorefrontException) -> JSONResponse:
    return error_response(exc)
