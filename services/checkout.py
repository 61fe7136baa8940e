import logging

import config
from db import Database
from enums.order_status import OrderStatus
from exceptions.auth import UnauthenticatedException
from exceptions.base import StorefrontException
from exceptions.cart import EmptyCartException, InvalidQuantityException
from exceptions.catalog import PriceMismatchException, ProductNotFoundException
from exceptions.payment import GatewayUnavailableException, PaymentSessionRejectedException
from models.cart import CheckoutLineDTO
from models.orderLine import OrderLineDTO
from models.payment import CheckoutSessionDTO, LineItemManifestEntryDTO, PaymentSessionDTO
from models.user import UserDTO
from repositories.catalog import CatalogRepository
from repositories.user import UserRepository
from services.order_ledger import OrderLedgerService
from services.payment_gateway import StripeGateway
from utils.money import line_total_minor_units, sum_lines, to_minor_units
from utils.transaction_manager import TransactionManager

logger = logging.getLogger(__name__)

# orders.total_amount is Numeric(10, 2)
MAX_ORDER_TOTAL_MINOR_UNITS = 99_999_999_99


class CheckoutService:
    """
    Turns a posted cart into a PENDING order and a payment session.

    Unit prices are taken from the posted lines unless CHECKOUT_VERIFY_PRICES
    is enabled, in which case they must match the catalog.
    """

    def __init__(self, database: Database, ledger: OrderLedgerService, gateway: StripeGateway):
        self.database = database
        self.ledger = ledger
        self.gateway = gateway

    @staticmethod
    def validate_lines(user_external_id: str | None, lines: list[CheckoutLineDTO]) -> None:
        if not user_external_id or not user_external_id.strip():
            raise UnauthenticatedException()
        if not lines:
            raise EmptyCartException(user_external_id)
        total_minor_units = 0
        for line in lines:
            if line.quantity < 1 or line.quantity > config.MAX_LINE_QUANTITY:
                raise InvalidQuantityException(line.product_id, line.quantity)
            total_minor_units += line_total_minor_units(line.unit_price, line.quantity)
            if total_minor_units > MAX_ORDER_TOTAL_MINOR_UNITS:
                raise InvalidQuantityException(line.product_id, line.quantity)

    @staticmethod
    def build_manifest(lines: list[CheckoutLineDTO]) -> list[LineItemManifestEntryDTO]:
        return [
            LineItemManifestEntryDTO(name=line.name, unit_amount=to_minor_units(line.unit_price), quantity=line.quantity)
            for line in lines
        ]

    @TransactionManager.with_retry()
    async def _resolve_user(self, user_external_id: str) -> UserDTO:
        async with TransactionManager.atomic_transaction(self.database) as session:
            user = await UserRepository.get_by_external_id(user_external_id, session)
        if user is None:
            # Users exist only once the identity provider announced them
            raise UnauthenticatedException(f"unknown user {user_external_id}")
        return user

    @TransactionManager.with_retry()
    async def _verify_prices(self, lines: list[CheckoutLineDTO]) -> None:
        async with TransactionManager.atomic_transaction(self.database) as session:
            products = await CatalogRepository.get_products_by_ids([line.product_id for line in lines], session)

        for line in lines:
            product = products.get(line.product_id)
            if product is None:
                raise ProductNotFoundException(line.product_id)
            variant = product.find_variant(line.variant_label)
            catalog_price = variant.price if variant else product.base_price
            if to_minor_units(catalog_price) != to_minor_units(line.unit_price):
                raise PriceMismatchException(line.product_id, line.unit_price, catalog_price)

    @TransactionManager.with_retry()
    async def _open_payment_session(self, order_id: int, manifest: list[LineItemManifestEntryDTO],
                                    success_url: str, cancel_url: str) -> PaymentSessionDTO:
        return await self.gateway.create_session(order_id, manifest, success_url, cancel_url)

    async def _cancel_abandoned_order(self, order_id: int) -> None:
        try:
            await self.ledger.transition_status(order_id, OrderStatus.CANCELLED, source="checkout")
        except StorefrontException as e:
            logger.error(f"[Checkout] Could not cancel order {order_id} after gateway failure: {e}")

    async def begin_checkout(self,
                             user_external_id: str | None,
                             lines: list[CheckoutLineDTO],
                             success_url: str | None = None,
                             cancel_url: str | None = None) -> CheckoutSessionDTO:
        """
        Create a PENDING order for the posted cart and open a payment session for it.

        Every call persists one order with its lines, whether or not the user
        then completes the payment.

        Raises:
            UnauthenticatedException: no verified user id, or the user is unknown
            EmptyCartException: no lines
            InvalidQuantityException: a line quantity below 1 or above MAX_LINE_QUANTITY,
                or a total the order store cannot hold
            ProductNotFoundException / PriceMismatchException: catalog check failed
            GatewayUnavailableException: gateway still unreachable after retries (order CANCELLED)
            PaymentSessionRejectedException: gateway refused the session (order CANCELLED)
            StoreUnavailableException: order store still failing after retries
        """
        self.validate_lines(user_external_id, lines)
        user = await self._resolve_user(user_external_id)

        if config.CHECKOUT_VERIFY_PRICES:
            await self._verify_prices(lines)

        order_lines = [
            OrderLineDTO(
                product_id=line.product_id,
                variant_id=line.variant_id,
                variant_label=line.variant_label,
                name=line.name,
                quantity=line.quantity,
                unit_price=line.unit_price,
            )
            for line in lines
        ]
        total = sum_lines((line.unit_price, line.quantity) for line in lines)
        order = await self.ledger.create_pending_order(user.id, order_lines, total)

        try:
            payment_session = await self._open_payment_session(
                order.id,
                self.build_manifest(lines),
                success_url or config.CHECKOUT_SUCCESS_URL,
                cancel_url or config.CHECKOUT_CANCEL_URL,
            )
        except (GatewayUnavailableException, PaymentSessionRejectedException):
            await self._cancel_abandoned_order(order.id)
            raise

        await self.ledger.attach_payment_session(order.id, payment_session.session_id)
        logger.info(f"[Checkout] User {user_external_id} redirected to session {payment_session.session_id} "
                    f"for order {order.id} ({order.total_amount})")
        return CheckoutSessionDTO(order_id=order.id, session_id=payment_session.session_id, url=payment_session.url)
