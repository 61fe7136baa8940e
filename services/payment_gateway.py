"""
Stripe adapter: every call to the payment processor goes through here.

Two operations are used by the storefront:
- create_session: open a hosted Checkout session for one order
- parse_event: verify and decode a signed webhook delivery
"""

import asyncio
import json
import logging

import stripe

import config
from enums.currency import Currency
from exceptions.payment import (
    GatewayUnavailableException,
    PaymentSessionRejectedException,
    SignatureInvalidException,
)
from models.payment import LineItemManifestEntryDTO, PaymentSessionDTO

logger = logging.getLogger(__name__)

ORDER_METADATA_KEY = "orderId"


class StripeGateway:
    """
    Payment Gateway backed by Stripe Checkout.

    SDK calls are blocking, they run in a worker thread bounded by
    GATEWAY_TIMEOUT_SECONDS. The API key is passed per request instead of
    being set on the stripe module.
    """

    def __init__(self,
                 api_key: str | None = None,
                 webhook_secret: str | None = None,
                 currency: Currency | None = None,
                 tolerance_seconds: int | None = None,
                 timeout_seconds: float | None = None):
        self.api_key = api_key if api_key is not None else config.STRIPE_SECRET_KEY
        self.webhook_secret = webhook_secret if webhook_secret is not None else config.STRIPE_WEBHOOK_SECRET
        self.currency = currency or config.CURRENCY
        self.tolerance_seconds = (tolerance_seconds if tolerance_seconds is not None
                                  else config.STRIPE_WEBHOOK_TOLERANCE_SECONDS)
        self.timeout_seconds = timeout_seconds if timeout_seconds is not None else config.GATEWAY_TIMEOUT_SECONDS

    def build_session_params(self,
                             order_id: int,
                             manifest: list[LineItemManifestEntryDTO],
                             success_url: str,
                             cancel_url: str) -> dict:
        metadata = {ORDER_METADATA_KEY: str(order_id)}
        return {
            "mode": "payment",
            "line_items": [
                {
                    "price_data": {
                        "currency": self.currency.to_gateway_code(),
                        "product_data": {"name": entry.name},
                        "unit_amount": entry.unit_amount,
                    },
                    "quantity": entry.quantity,
                }
                for entry in manifest
            ],
            "success_url": success_url,
            "cancel_url": cancel_url,
            "client_reference_id": str(order_id),
            "metadata": metadata,
            # Copied onto the payment intent so payment_intent.* events carry it too
            "payment_intent_data": {"metadata": metadata},
        }

    async def create_session(self,
                             order_id: int,
                             manifest: list[LineItemManifestEntryDTO],
                             success_url: str,
                             cancel_url: str) -> PaymentSessionDTO:
        """
        Open a Checkout session scoped to order_id.

        The idempotency key is derived from the order id, so a retried request
        for the same order returns the session Stripe already created.

        Raises:
            GatewayUnavailableException: timeout, connection error, rate limit or 5xx
            PaymentSessionRejectedException: Stripe refused the request (4xx)
        """
        params = self.build_session_params(order_id, manifest, success_url, cancel_url)
        idempotency_key = f"checkout-order-{order_id}"

        try:
            session = await asyncio.wait_for(
                asyncio.to_thread(
                    stripe.checkout.Session.create,
                    api_key=self.api_key,
                    idempotency_key=idempotency_key,
                    **params,
                ),
                timeout=self.timeout_seconds,
            )
        except TimeoutError as e:
            logger.warning(f"[Gateway] Session creation for order {order_id} timed out after {self.timeout_seconds}s")
            raise GatewayUnavailableException(f"timed out after {self.timeout_seconds}s", order_id) from e
        except (stripe.APIConnectionError, stripe.RateLimitError) as e:
            logger.warning(f"[Gateway] Transient Stripe error for order {order_id}: {type(e).__name__}")
            raise GatewayUnavailableException(type(e).__name__, order_id) from e
        except stripe.InvalidRequestError as e:
            logger.error(f"[Gateway] Stripe rejected session for order {order_id}: {e.user_message or e}")
            raise PaymentSessionRejectedException(order_id, str(e.user_message or e)) from e
        except stripe.StripeError as e:
            if e.http_status is None or e.http_status >= 500:
                logger.warning(f"[Gateway] Stripe unavailable for order {order_id}: {type(e).__name__} ({e.http_status})")
                raise GatewayUnavailableException(f"{type(e).__name__} ({e.http_status})", order_id) from e
            logger.error(f"[Gateway] Stripe error for order {order_id}: {type(e).__name__} ({e.http_status})")
            raise PaymentSessionRejectedException(order_id, str(e.user_message or e)) from e

        logger.info(f"[Gateway] Checkout session {session.id} opened for order {order_id}")
        return PaymentSessionDTO(session_id=session.id, url=session.url)

    def parse_event(self, raw_body: bytes, signature_header: str | None) -> dict:
        """
        Verify the Stripe-Signature header and decode the event.

        Returns:
            Event as a plain dict: {"id", "type", "data": {"object": {...}}}

        Raises:
            SignatureInvalidException: header missing, signature or timestamp invalid, body unparsable
        """
        if not signature_header:
            raise SignatureInvalidException("missing signature header")
        if not self.webhook_secret:
            raise SignatureInvalidException("webhook secret not configured")

        try:
            payload = raw_body.decode("utf-8")
        except UnicodeDecodeError as e:
            raise SignatureInvalidException("body is not valid UTF-8") from e

        try:
            stripe.WebhookSignature.verify_header(payload, signature_header, self.webhook_secret,
                                                  self.tolerance_seconds)
        except stripe.SignatureVerificationError as e:
            raise SignatureInvalidException(str(e)) from e

        try:
            event = json.loads(payload)
        except ValueError as e:
            raise SignatureInvalidException("signed body is not valid JSON") from e

        if not isinstance(event, dict):
            raise SignatureInvalidException("signed body is not a JSON object")
        return event
