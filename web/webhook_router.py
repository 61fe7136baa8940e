"""
Inbound webhooks.

- /webhooks/payment: signed Stripe events, reconciles order status
- /webhooks/identity: signed identity provider user lifecycle events

Both endpoints read the raw body: signatures are computed over the exact bytes sent.
"""

import logging

from fastapi import APIRouter, Depends, Request

from services.user import UserService
from services.webhook import WebhookReceiver
from web.dependencies import get_user_service, get_webhook_receiver

logger = logging.getLogger(__name__)

webhook_router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@webhook_router.post("/payment")
async def payment_webhook(request: Request, receiver: WebhookReceiver = Depends(get_webhook_receiver)):
    """
    Returns:
        200: Event handled, duplicate, ignored or rejected (never redelivered)
        400: Signature invalid (gateway redelivers)
        503: Order store unavailable (gateway redelivers)
    """
    raw_body = await request.body()
    result = await receiver.handle_event(raw_body, request.headers.get("Stripe-Signature"))
    return result.model_dump(mode="json")


@webhook_router.post("/identity")
async def identity_webhook(request: Request, user_service: UserService = Depends(get_user_service)):
    raw_body = await request.body()
    result = await user_service.handle_identity_event(raw_body, request.headers.get("X-Identity-Signature"))
    return result.model_dump(mode="json")
