import logging
from datetime import datetime
from decimal import Decimal

from sqlalchemy import func

import config
from db import Database
from enums.currency import Currency
from enums.order_status import OrderStatus
from enums.transition_outcome import TransitionOutcome
from exceptions.cart import EmptyCartException
from exceptions.order import (
    InvalidTransitionException,
    OrderNotFoundException,
    OrderOwnershipException,
    OrderTotalMismatchException,
)
from models.order import Order, OrderDTO, OrderDetailsDTO
from models.orderLine import OrderLineDTO
from repositories.order import OrderRepository
from repositories.orderLine import OrderLineRepository
from repositories.user import UserRepository
from utils.money import sum_lines, to_minor_units
from utils.order_state_machine import OrderStateMachine
from utils.transaction_manager import TransactionManager

logger = logging.getLogger(__name__)


class OrderLedgerService:
    """
    Owner of order and order-line records.

    Orders are created in PENDING together with all their lines in one
    transaction, and only ever move forward through OrderStateMachine via a
    single conditional UPDATE, which makes redelivered webhooks harmless.
    """

    def __init__(self, database: Database):
        self.database = database

    @TransactionManager.with_retry()
    async def create_pending_order(self,
                                   user_id: int,
                                   lines: list[OrderLineDTO],
                                   total: Decimal,
                                   currency: Currency | None = None) -> OrderDTO:
        """
        Persist a PENDING order and its lines atomically.

        Raises:
            EmptyCartException: no lines
            OrderTotalMismatchException: total differs from the sum of the lines
        """
        if not lines:
            raise EmptyCartException()

        computed_total = sum_lines((line.unit_price, line.quantity) for line in lines)
        if to_minor_units(total) != to_minor_units(computed_total):
            raise OrderTotalMismatchException(str(total), str(computed_total))

        async with TransactionManager.atomic_transaction(self.database) as session:
            order_id = await OrderRepository.create(OrderDTO(
                user_id=user_id,
                status=OrderStatus.PENDING,
                total_amount=computed_total,
                currency=currency or config.CURRENCY,
            ), session)
            await OrderLineRepository.create_many(order_id, lines, session)
            order = await OrderRepository.get_by_id(order_id, session)

        logger.info(f"[Ledger] Order {order_id} created for user {user_id}: "
                    f"{len(lines)} lines, total {order.total_amount} {order.currency.value}")
        return order

    @staticmethod
    def _transition_values(new_status: OrderStatus, external_payment_ref: str | None) -> dict:
        now = datetime.now()
        values = {"updated_at": now}
        if new_status in (OrderStatus.PROCESSING, OrderStatus.COMPLETED):
            values["paid_at"] = func.coalesce(Order.paid_at, now)
        if new_status == OrderStatus.COMPLETED:
            values["completed_at"] = now
        if new_status == OrderStatus.CANCELLED:
            values["cancelled_at"] = now
        if external_payment_ref:
            values["external_payment_ref"] = external_payment_ref
        return values

    @TransactionManager.with_retry()
    async def transition_status(self,
                                order_id: int,
                                new_status: OrderStatus,
                                external_payment_ref: str | None = None,
                                source: str = "system") -> TransitionOutcome:
        """
        Idempotently move an order to new_status.

        Returns:
            APPLIED when the order moved, UNCHANGED when it already was in
            new_status or in a final status (duplicate or late delivery)

        Raises:
            OrderNotFoundException: no such order
            InvalidTransitionException: the move goes backwards, e.g. COMPLETED -> PENDING
        """
        predecessors = OrderStateMachine.get_predecessors(new_status)
        values = self._transition_values(new_status, external_payment_ref)

        async with TransactionManager.atomic_transaction(self.database) as session:
            applied = await OrderRepository.transition_status(order_id, predecessors, new_status, session, **values)
            current_status = None
            if not applied:
                current_status = await OrderRepository.get_status(order_id, session)

        if applied:
            OrderStateMachine.log_transition(order_id, new_status, source)
            return TransitionOutcome.APPLIED

        if current_status is None:
            raise OrderNotFoundException(order_id)

        OrderStateMachine.log_rejected_transition(order_id, current_status, new_status, source)
        if OrderStateMachine.is_redundant_transition(current_status, new_status):
            return TransitionOutcome.UNCHANGED
        raise InvalidTransitionException(order_id, current_status.value, new_status.value)

    @TransactionManager.with_retry()
    async def attach_payment_session(self, order_id: int, checkout_session_id: str) -> None:
        async with TransactionManager.atomic_transaction(self.database) as session:
            updated = await OrderRepository.attach_checkout_session(order_id, checkout_session_id, session)
        if not updated:
            raise OrderNotFoundException(order_id)
        logger.info(f"[Ledger] Order {order_id} linked to checkout session {checkout_session_id}")

    @TransactionManager.with_retry()
    async def find_order(self, order_id: int) -> OrderDetailsDTO:
        """
        Raises:
            OrderNotFoundException: no such order
        """
        async with TransactionManager.atomic_transaction(self.database) as session:
            order = await OrderRepository.get_by_id(order_id, session)
            lines = await OrderLineRepository.get_by_order_id(order_id, session) if order else []
        if order is None:
            raise OrderNotFoundException(order_id)
        return OrderDetailsDTO(**order.model_dump(), lines=lines)

    async def find_order_for_user(self, order_id: int, user_external_id: str) -> OrderDetailsDTO:
        """
        Same as find_order, restricted to the order's owner.

        Raises:
            OrderNotFoundException: no such order
            OrderOwnershipException: order belongs to another user
        """
        order = await self.find_order(order_id)
        async with TransactionManager.atomic_transaction(self.database) as session:
            owner = await UserRepository.get_by_id(order.user_id, session)
        if owner is None or owner.external_id != user_external_id:
            raise OrderOwnershipException(order_id, user_external_id)
        return order
