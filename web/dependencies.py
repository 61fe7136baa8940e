import logging

from fastapi import Header, Request

import config
from db import Database
from exceptions.auth import UnauthenticatedException
from middleware.rate_limit import RateLimiter
from services.checkout import CheckoutService
from services.order_ledger import OrderLedgerService
from services.user import UserService
from services.webhook import WebhookReceiver
from utils.identity_token_validator import IdentityValidationError, extract_user_id, validate_identity_token

logger = logging.getLogger(__name__)


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_checkout_service(request: Request) -> CheckoutService:
    return request.app.state.checkout_service


def get_order_ledger(request: Request) -> OrderLedgerService:
    return request.app.state.order_ledger


def get_webhook_receiver(request: Request) -> WebhookReceiver:
    return request.app.state.webhook_receiver


def get_user_service(request: Request) -> UserService:
    return request.app.state.user_service


def get_rate_limiter(request: Request) -> RateLimiter | None:
    return request.app.state.rate_limiter


async def require_user_id(x_identity_token: str | None = Header(default=None)) -> str:
    """
    Resolve the verified identity provider user id of the request.

    Raises:
        UnauthenticatedException: header missing or assertion invalid
    """
    if not x_identity_token:
        raise UnauthenticatedException("missing X-Identity-Token header")

    try:
        validated_data = validate_identity_token(
            token=x_identity_token,
            signing_secret=config.IDENTITY_SIGNING_SECRET,
            max_age_seconds=config.IDENTITY_TOKEN_MAX_AGE_SECONDS
        )
        return extract_user_id(validated_data)
    except IdentityValidationError as e:
        logger.warning(f"Identity validation failed: {e}")
        raise UnauthenticatedException(str(e))
