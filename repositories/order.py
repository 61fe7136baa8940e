from datetime import datetime
import logging

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from enums.order_status import OrderStatus
from models.order import Order, OrderDTO

logger = logging.getLogger(__name__)


class OrderRepository:
    @staticmethod
    async def create(order_dto: OrderDTO, session: AsyncSession) -> int:
        order = Order(**order_dto.model_dump(exclude_none=True, exclude={'id'}))
        session.add(order)
        await session.flush()
        return order.id

    @staticmethod
    async def get_by_id(order_id: int, session: AsyncSession) -> OrderDTO | None:
        stmt = select(Order).where(Order.id == order_id)
        order = await session.execute(stmt)
        order = order.scalar()
        if order is not None:
            return OrderDTO.model_validate(order, from_attributes=True)
        else:
            return None

    @staticmethod
    async def get_status(order_id: int, session: AsyncSession) -> OrderStatus | None:
        stmt = select(Order.status).where(Order.id == order_id)
        status = await session.execute(stmt)
        return status.scalar()

    @staticmethod
    async def get_by_user_id(user_id: int, session: AsyncSession) -> list[OrderDTO]:
        stmt = select(Order).where(Order.user_id == user_id).order_by(Order.created_at.desc(), Order.id.desc())
        orders = await session.execute(stmt)
        return [OrderDTO.model_validate(order, from_attributes=True) for order in orders.scalars().all()]

    @staticmethod
    async def transition_status(order_id: int,
                                from_statuses: list[OrderStatus],
                                to_status: OrderStatus,
                                session: AsyncSession,
                                **values) -> bool:
        """
        Move an order to to_status only if it is currently in one of from_statuses.

        A single conditional UPDATE: the row is checked and written in one
        statement, so two concurrent deliveries can never both apply it.

        Returns:
            True if the row was updated
        """
        if not from_statuses:
            return False
        stmt = (
            update(Order)
            .where(Order.id == order_id, Order.status.in_(from_statuses))
            .values(status=to_status, **values)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.rowcount == 1

    @staticmethod
    async def attach_checkout_session(order_id: int, checkout_session_id: str, session: AsyncSession) -> bool:
        stmt = (
            update(Order)
            .where(Order.id == order_id)
            .values(checkout_session_id=checkout_session_id, updated_at=datetime.now())
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.rowcount == 1
