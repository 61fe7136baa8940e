from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models.orderLine import OrderLine, OrderLineDTO


class OrderLineRepository:
    @staticmethod
    async def create_many(order_id: int, order_lines: list[OrderLineDTO], session: AsyncSession) -> None:
        for order_line_dto in order_lines:
            order_line = OrderLine(**order_line_dto.model_dump(exclude={'id', 'order_id'}), order_id=order_id)
            session.add(order_line)
        await session.flush()

    @staticmethod
    async def get_by_order_id(order_id: int, session: AsyncSession) -> list[OrderLineDTO]:
        stmt = select(OrderLine).where(OrderLine.order_id == order_id).order_by(OrderLine.id)
        order_lines = await session.execute(stmt)
        return [OrderLineDTO.model_validate(order_line, from_attributes=True)
                for order_line in order_lines.scalars().all()]
