"""
API router for the storefront checkout.

Security:
- Validates the identity assertion (X-Identity-Token) on every call
- Rate limiting per user (when Redis is configured)
- Order ownership verification
"""

import logging
import uuid
from datetime import datetime

from fastapi import APIRouter, Depends, Path

import config
from enums.rate_limit_operation import RateLimitOperation
from middleware.rate_limit import RateLimiter
from models.cart import CheckoutRequest
from models.order import OrderDetailsDTO
from models.payment import CheckoutSessionDTO
from services.checkout import CheckoutService
from services.order_ledger import OrderLedgerService
from web.dependencies import get_checkout_service, get_order_ledger, get_rate_limiter, require_user_id

logger = logging.getLogger(__name__)

checkout_router = APIRouter(tags=["checkout"])


def generate_correlation_id() -> str:
    """Generate unique correlation ID for request tracing."""
    return f"{datetime.now().strftime('%Y%m%d-%H%M%S')}-{uuid.uuid4().hex[:8]}"


@checkout_router.post("/checkout", response_model=CheckoutSessionDTO)
async def create_checkout(payload: CheckoutRequest,
                          user_id: str = Depends(require_user_id),
                          checkout_service: CheckoutService = Depends(get_checkout_service),
                          rate_limiter: RateLimiter | None = Depends(get_rate_limiter)):
    """
    Turn the posted cart into a PENDING order and a payment session.

    Request Headers:
        X-Identity-Token: signed identity assertion

    Request Body:
        {
            "items": [
                {"product_id": "empanadas", "name": "Empanadas (Beef)", "variant_label": "Beef",
                 "unit_price": "3.50", "quantity": 2}
            ]
        }

    Returns:
        200: {"order_id": 1, "session_id": "cs_test_...", "url": "https://checkout.stripe.com/..."}
        400: Empty cart or invalid quantity
        401: Missing/invalid identity
        429: Too many checkouts
        503: Gateway or store unavailable, retry later
    """
    correlation_id = generate_correlation_id()
    logger.info(f"[{correlation_id}] Checkout requested by user {user_id} ({len(payload.items)} lines)")

    if rate_limiter is not None:
        await rate_limiter.enforce(
            RateLimitOperation.CHECKOUT_CREATE.value,
            user_id,
            max_count=config.MAX_CHECKOUTS_PER_USER_PER_HOUR,
            window_seconds=3600
        )

    checkout_session = await checkout_service.begin_checkout(user_id, payload.items)
    logger.info(f"[{correlation_id}] Order {checkout_session.order_id} awaiting payment")
    return checkout_session


@checkout_router.get("/orders/{order_id}", response_model=OrderDetailsDTO)
async def get_order(order_id: int = Path(..., gt=0),
                    user_id: str = Depends(require_user_id),
                    ledger: OrderLedgerService = Depends(get_order_ledger)):
    """Order status page: the order with its lines, visible to its owner only."""
    return await ledger.find_order_for_user(order_id, user_id)
