"""
Unit Tests: StripeGateway

The Stripe SDK is patched at stripe.checkout.Session.create, no network calls.
"""

import json
import time
from types import SimpleNamespace
from unittest.mock import patch

import pytest
import stripe

from conftest import TEST_STRIPE_WEBHOOK_SECRET, stripe_signature_header
from enums.currency import Currency
from exceptions.payment import (
    GatewayUnavailableException,
    PaymentSessionRejectedException,
    SignatureInvalidException,
)
from models.payment import LineItemManifestEntryDTO
from services.payment_gateway import StripeGateway


@pytest.fixture
def stripe_gateway():
    return StripeGateway(api_key="sk_test_storefront0123456789", webhook_secret=TEST_STRIPE_WEBHOOK_SECRET,
                         currency=Currency.USD, tolerance_seconds=300, timeout_seconds=2)


@pytest.fixture
def manifest():
    return [
        LineItemManifestEntryDTO(name="Empanadas", unit_amount=400, quantity=2),
        LineItemManifestEntryDTO(name="Churros (5 pieces)", unit_amount=700, quantity=1),
    ]


class TestSessionParams:

    def test_line_items_and_metadata(self, stripe_gateway, manifest):
        params = stripe_gateway.build_session_params(7, manifest, "https://shop.test/ok", "https://shop.test/cancel")

        assert params["mode"] == "payment"
        assert params["metadata"] == {"orderId": "7"}
        assert params["payment_intent_data"]["metadata"] == {"orderId": "7"}
        assert params["client_reference_id"] == "7"
        assert params["line_items"][0] == {
            "price_data": {"currency": "usd", "product_data": {"name": "Empanadas"}, "unit_amount": 400},
            "quantity": 2,
        }
        assert params["success_url"] == "https://shop.test/ok"


class TestCreateSession:

    @pytest.mark.asyncio
    async def test_session_created_with_idempotency_key(self, stripe_gateway, manifest):
        fake_session = SimpleNamespace(id="cs_test_7", url="https://checkout.stripe.com/c/pay/cs_test_7")
        with patch("stripe.checkout.Session.create", return_value=fake_session) as create:
            result = await stripe_gateway.create_session(7, manifest, "https://ok", "https://cancel")

        assert result.session_id == "cs_test_7"
        assert result.url == fake_session.url
        kwargs = create.call_args.kwargs
        assert kwargs["idempotency_key"] == "checkout-order-7"
        assert kwargs["api_key"] == "sk_test_storefront0123456789"
        assert kwargs["metadata"] == {"orderId": "7"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [
        stripe.APIConnectionError("connection reset"),
        stripe.RateLimitError("slow down", http_status=429),
        stripe.APIError("internal", http_status=500),
    ])
    async def test_transient_errors_unavailable(self, stripe_gateway, manifest, error):
        with patch("stripe.checkout.Session.create", side_effect=error):
            with pytest.raises(GatewayUnavailableException) as exc_info:
                await stripe_gateway.create_session(7, manifest, "https://ok", "https://cancel")

        assert exc_info.value.retryable is True
        assert exc_info.value.order_id == 7

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [
        stripe.InvalidRequestError("Invalid currency", param="currency", http_status=400),
        stripe.AuthenticationError("Invalid API key", http_status=401),
    ])
    async def test_client_errors_rejected(self, stripe_gateway, manifest, error):
        with patch("stripe.checkout.Session.create", side_effect=error):
            with pytest.raises(PaymentSessionRejectedException):
                await stripe_gateway.create_session(7, manifest, "https://ok", "https://cancel")

    @pytest.mark.asyncio
    async def test_timeout_unavailable(self, manifest):
        slow_gateway = StripeGateway(api_key="sk_test_storefront0123456789",
                                     webhook_secret=TEST_STRIPE_WEBHOOK_SECRET, timeout_seconds=0.05)

        def slow_create(**kwargs):
            time.sleep(0.3)
            return SimpleNamespace(id="cs_late", url="https://late")

        with patch("stripe.checkout.Session.create", side_effect=slow_create):
            with pytest.raises(GatewayUnavailableException):
                await slow_gateway.create_session(7, manifest, "https://ok", "https://cancel")


class TestParseEvent:

    def test_valid_event_decoded(self, stripe_gateway):
        body = json.dumps({"id": "evt_1", "type": "checkout.session.completed", "data": {"object": {}}}).encode()

        event = stripe_gateway.parse_event(body, stripe_signature_header(body))

        assert event["id"] == "evt_1"
        assert event["type"] == "checkout.session.completed"

    def test_missing_secret_rejected(self):
        unconfigured = StripeGateway(api_key="sk_test_x", webhook_secret="")
        body = b'{"id": "evt_1"}'

        with pytest.raises(SignatureInvalidException):
            unconfigured.parse_event(body, stripe_signature_header(body))

    def test_malformed_header_rejected(self, stripe_gateway):
        with pytest.raises(SignatureInvalidException):
            stripe_gateway.parse_event(b'{"id": "evt_1"}', "not-a-signature")

    def test_signed_non_object_rejected(self, stripe_gateway):
        body = b'["not", "an", "event"]'

        with pytest.raises(SignatureInvalidException):
            stripe_gateway.parse_event(body, stripe_signature_header(body))

    def test_non_utf8_body_rejected(self, stripe_gateway):
        with pytest.raises(SignatureInvalidException):
            stripe_gateway.parse_event(b"\xff\xfe", "t=1,v1=abc")
