"""
Unit Tests: WebhookReceiver.handle_event

Events are signed with the test webhook secret and verified by the real
Stripe signature check; orders live in the in-memory order store.
"""

import json
from decimal import Decimal
from unittest.mock import patch

import pytest
import pytest_asyncio

from conftest import stripe_event, stripe_signature_header
from enums.order_status import OrderStatus
from enums.webhook_result_status import WebhookResultStatus
from exceptions.payment import MissingOrderReferenceException, SignatureInvalidException
from exceptions.store import StoreUnavailableException
from models.orderLine import OrderLineDTO
from services.webhook import WebhookReceiver


@pytest_asyncio.fixture
async def pending_order(ledger, user):
    lines = [OrderLineDTO(product_id="empanadas", name="Empanadas", quantity=2, unit_price=Decimal("4.00"))]
    return await ledger.create_pending_order(user.id, lines, Decimal("8.00"))


async def deliver(receiver, body: bytes):
    return await receiver.handle_event(body, stripe_signature_header(body))


class TestSignature:

    @pytest.mark.asyncio
    async def test_missing_header_rejected(self, webhook_receiver, pending_order):
        body = stripe_event("checkout.session.completed", pending_order.id)

        with pytest.raises(SignatureInvalidException):
            await webhook_receiver.handle_event(body, None)

    @pytest.mark.asyncio
    async def test_wrong_secret_rejected(self, webhook_receiver, ledger, pending_order):
        body = stripe_event("checkout.session.completed", pending_order.id)
        header = stripe_signature_header(body, secret="whsec_attacker_secret_0000000000")

        with pytest.raises(SignatureInvalidException):
            await webhook_receiver.handle_event(body, header)

        assert (await ledger.find_order(pending_order.id)).status == OrderStatus.PENDING

    @pytest.mark.asyncio
    async def test_tampered_body_rejected(self, webhook_receiver, pending_order):
        body = stripe_event("checkout.session.completed", pending_order.id)
        header = stripe_signature_header(body)
        tampered = body.replace(b'"pi_test_123"', b'"pi_evil_456"')

        with pytest.raises(SignatureInvalidException):
            await webhook_receiver.handle_event(tampered, header)

    @pytest.mark.asyncio
    async def test_stale_timestamp_rejected(self, webhook_receiver, pending_order):
        body = stripe_event("checkout.session.completed", pending_order.id)
        header = stripe_signature_header(body, timestamp=1_000_000_000)

        with pytest.raises(SignatureInvalidException):
            await webhook_receiver.handle_event(body, header)


class TestCheckoutCompleted:

    @pytest.mark.asyncio
    async def test_moves_order_to_processing(self, webhook_receiver, ledger, pending_order):
        result = await deliver(webhook_receiver, stripe_event("checkout.session.completed", pending_order.id))

        assert result.status == WebhookResultStatus.PROCESSED
        assert result.order_id == pending_order.id
        order = await ledger.find_order(pending_order.id)
        assert order.status == OrderStatus.PROCESSING
        assert order.external_payment_ref == "pi_test_123"

    @pytest.mark.asyncio
    async def test_redelivery_is_duplicate(self, webhook_receiver, ledger, pending_order):
        body = stripe_event("checkout.session.completed", pending_order.id)
        await deliver(webhook_receiver, body)
        before = await ledger.find_order(pending_order.id)

        result = await deliver(webhook_receiver, body)

        assert result.status == WebhookResultStatus.DUPLICATE
        assert await ledger.find_order(pending_order.id) == before

    @pytest.mark.asyncio
    async def test_session_id_used_when_no_payment_intent(self, webhook_receiver, ledger, pending_order):
        body = stripe_event("checkout.session.completed", pending_order.id, payment_intent=None)

        await deliver(webhook_receiver, body)

        assert (await ledger.find_order(pending_order.id)).external_payment_ref == "cs_test_abc"


class TestOtherEvents:

    @pytest.mark.asyncio
    async def test_payment_succeeded_completes_order(self, webhook_receiver, ledger, pending_order):
        result = await deliver(webhook_receiver, stripe_event("payment_intent.succeeded", pending_order.id))

        assert result.status == WebhookResultStatus.PROCESSED
        assert (await ledger.find_order(pending_order.id)).status == OrderStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_late_session_completed_after_payment(self, webhook_receiver, ledger, pending_order):
        await deliver(webhook_receiver, stripe_event("payment_intent.succeeded", pending_order.id, event_id="evt_2"))

        result = await deliver(webhook_receiver, stripe_event("checkout.session.completed", pending_order.id))

        assert result.status == WebhookResultStatus.DUPLICATE
        assert (await ledger.find_order(pending_order.id)).status == OrderStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_unrelated_event_ignored(self, webhook_receiver, ledger, pending_order):
        result = await deliver(webhook_receiver, stripe_event("customer.created", pending_order.id))

        assert result.status == WebhookResultStatus.IGNORED
        assert (await ledger.find_order(pending_order.id)).status == OrderStatus.PENDING

    @pytest.mark.asyncio
    async def test_missing_order_reference_rejected(self, webhook_receiver):
        result = await deliver(webhook_receiver, stripe_event("checkout.session.completed", None))

        assert result.status == WebhookResultStatus.REJECTED
        assert result.order_id is None

    @pytest.mark.asyncio
    async def test_non_object_metadata_rejected(self, webhook_receiver, ledger, pending_order):
        event = json.loads(stripe_event("checkout.session.completed", pending_order.id))
        event["data"]["object"]["metadata"] = "oops"
        body = json.dumps(event).encode("utf-8")

        result = await deliver(webhook_receiver, body)

        assert result.status == WebhookResultStatus.REJECTED
        assert (await ledger.find_order(pending_order.id)).status == OrderStatus.PENDING

    @pytest.mark.asyncio
    @pytest.mark.parametrize("data", ["oops", [], {"object": "oops"}, {"object": [1, 2]}, None])
    async def test_non_object_event_data_rejected(self, webhook_receiver, data):
        body = json.dumps({"id": "evt_bad", "type": "checkout.session.completed", "data": data}).encode("utf-8")

        result = await deliver(webhook_receiver, body)

        assert result.status == WebhookResultStatus.REJECTED
        assert result.order_id is None

    @pytest.mark.asyncio
    async def test_non_string_event_type_ignored(self, webhook_receiver):
        body = json.dumps({"id": "evt_bad", "type": ["checkout.session.completed"], "data": {}}).encode("utf-8")

        result = await deliver(webhook_receiver, body)

        assert result.status == WebhookResultStatus.IGNORED
        assert result.event_type is None

    @pytest.mark.asyncio
    async def test_unknown_order_rejected(self, webhook_receiver):
        result = await deliver(webhook_receiver, stripe_event("checkout.session.completed", 31337))

        assert result.status == WebhookResultStatus.REJECTED
        assert result.order_id == 31337

    @pytest.mark.asyncio
    async def test_store_outage_propagates(self, webhook_receiver, pending_order):
        body = stripe_event("checkout.session.completed", pending_order.id)

        with patch("services.order_ledger.OrderRepository.transition_status",
                   side_effect=StoreUnavailableException("database is locked")):
            with pytest.raises(StoreUnavailableException):
                await deliver(webhook_receiver, body)


class TestExtractOrderId:

    @pytest.mark.parametrize("metadata", [{}, {"orderId": ""}, {"orderId": "abc"}, {"orderId": "0"}, {"orderId": "-4"}])
    def test_unusable_references(self, metadata):
        event = {"id": "evt_1", "type": "checkout.session.completed", "data": {"object": {"metadata": metadata}}}

        with pytest.raises(MissingOrderReferenceException):
            WebhookReceiver.extract_order_id(event)

    def test_numeric_string_reference(self):
        event = {"data": {"object": {"metadata": {"orderId": " 42 "}}}}

        assert WebhookReceiver.extract_order_id(event) == 42

    def test_expanded_payment_intent(self):
        event = json.loads(stripe_event("payment_intent.succeeded", 1))
        event["data"]["object"]["payment_intent"] = {"id": "pi_expanded"}

        assert WebhookReceiver.extract_payment_ref(event) == "pi_expanded"

    @pytest.mark.parametrize("metadata", ["oops", ["orderId", "1"], 7])
    def test_non_object_metadata(self, metadata):
        event = {"id": "evt_1", "type": "checkout.session.completed", "data": {"object": {"metadata": metadata}}}

        with pytest.raises(MissingOrderReferenceException):
            WebhookReceiver.extract_order_id(event)

    def test_payment_ref_from_non_object_data(self):
        assert WebhookReceiver.extract_payment_ref({"data": "oops"}) is None
