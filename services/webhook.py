import logging

from enums.order_status import OrderStatus
from enums.transition_outcome import TransitionOutcome
from enums.webhook_result_status import WebhookResultStatus
from exceptions.order import InvalidTransitionException, OrderNotFoundException
from exceptions.payment import MissingOrderReferenceException
from models.payment import WebhookResultDTO
from services.order_ledger import OrderLedgerService
from services.payment_gateway import ORDER_METADATA_KEY, StripeGateway

logger = logging.getLogger(__name__)

# Gateway event type -> order status it reconciles to
EVENT_STATUS_MAPPING: dict[str, OrderStatus] = {
    "checkout.session.completed": OrderStatus.PROCESSING,
    "checkout.session.async_payment_succeeded": OrderStatus.COMPLETED,
    "payment_intent.succeeded": OrderStatus.COMPLETED,
}


class WebhookReceiver:
    """
    Reconciles orders from signed payment gateway events.

    Delivery is at-least-once and unordered. Only a bad signature escapes this
    boundary (the gateway must redeliver), store outages propagate so the
    delivery is retried, everything else is logged and acknowledged.
    """

    def __init__(self, ledger: OrderLedgerService, gateway: StripeGateway):
        self.ledger = ledger
        self.gateway = gateway

    @staticmethod
    def _event_object(event: dict) -> dict:
        data = event.get("data")
        if not isinstance(data, dict):
            return {}
        event_object = data.get("object")
        return event_object if isinstance(event_object, dict) else {}

    @staticmethod
    def extract_order_id(event: dict) -> int:
        """
        Read metadata.orderId of the event object.

        Raises:
            MissingOrderReferenceException: absent, not a positive integer, or
                any level of the path is not a JSON object
        """
        metadata = WebhookReceiver._event_object(event).get("metadata")
        if not isinstance(metadata, dict):
            raise MissingOrderReferenceException(event.get("id"), event.get("type"))
        raw_order_id = metadata.get(ORDER_METADATA_KEY)
        try:
            order_id = int(str(raw_order_id).strip())
        except (TypeError, ValueError):
            order_id = None
        if order_id is None or order_id <= 0:
            raise MissingOrderReferenceException(event.get("id"), event.get("type"))
        return order_id

    @staticmethod
    def extract_payment_ref(event: dict) -> str | None:
        event_object = WebhookReceiver._event_object(event)
        payment_intent = event_object.get("payment_intent")
        if isinstance(payment_intent, dict):
            payment_intent = payment_intent.get("id")
        payment_ref = payment_intent or event_object.get("id")
        return payment_ref if isinstance(payment_ref, str) else None

    async def handle_event(self, raw_body: bytes, signature_header: str | None) -> WebhookResultDTO:
        """
        Verify and apply one webhook delivery.

        Raises:
            SignatureInvalidException: the caller must answer with a non-2xx status
            StoreUnavailableException: the order store failed, delivery should be retried
        """
        event = self.gateway.parse_event(raw_body, signature_header)
        event_id = event.get("id")
        event_type = event.get("type")
        if not isinstance(event_type, str):
            event_type = None

        target_status = EVENT_STATUS_MAPPING.get(event_type)
        if target_status is None:
            logger.info(f"[Webhook] Event {event_id} ({event_type}) acknowledged and ignored")
            return WebhookResultDTO(status=WebhookResultStatus.IGNORED, event_type=event_type)

        try:
            order_id = self.extract_order_id(event)
        except MissingOrderReferenceException as e:
            logger.error(f"[Webhook] {e}")
            return WebhookResultDTO(status=WebhookResultStatus.REJECTED, event_type=event_type, detail=e.message)

        payment_ref = self.extract_payment_ref(event)
        try:
            outcome = await self.ledger.transition_status(order_id, target_status, payment_ref,
                                                          source=f"webhook {event_id}")
        except (OrderNotFoundException, InvalidTransitionException) as e:
            logger.error(f"[Webhook] Event {event_id} ({event_type}) not applied: {e}")
            return WebhookResultDTO(status=WebhookResultStatus.REJECTED, event_type=event_type,
                                    order_id=order_id, detail=e.message)

        if outcome == TransitionOutcome.APPLIED:
            logger.info(f"[Webhook] Order {order_id} -> {target_status.value} ({event_type}, ref {payment_ref})")
            return WebhookResultDTO(status=WebhookResultStatus.PROCESSED, event_type=event_type, order_id=order_id)

        logger.info(f"[Webhook] Duplicate or late event {event_id} ({event_type}) for order {order_id}")
        return WebhookResultDTO(status=WebhookResultStatus.DUPLICATE, event_type=event_type, order_id=order_id)
