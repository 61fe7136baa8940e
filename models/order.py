from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel
from sqlalchemy import Column, Integer, Numeric, DateTime, ForeignKey, String, func, CheckConstraint, Index, Enum as SQLEnum
from sqlalchemy.orm import relationship

from enums.currency import Currency
from enums.order_status import OrderStatus
from models.base import Base
from models.orderLine import OrderLineDTO


class Order(Base):
    __tablename__ = 'orders'

    id = Column(Integer, primary_key=True, unique=True)
    user_id = Column(Integer, ForeignKey('users.id'), nullable=False)
    status = Column(SQLEnum(OrderStatus), nullable=False, default=OrderStatus.PENDING)
    # Fixed at creation from the order lines, never recomputed
    total_amount = Column(Numeric(10, 2), nullable=False)
    currency = Column(SQLEnum(Currency), nullable=False)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())
    paid_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    cancelled_at = Column(DateTime, nullable=True)

    # Payment Gateway references
    checkout_session_id = Column(String, nullable=True)
    external_payment_ref = Column(String, nullable=True)  # Payment intent id, set by the webhook

    # Relations
    user = relationship('User', backref='orders')
    lines = relationship('OrderLine', back_populates='order', cascade='all, delete-orphan', passive_deletes=True)

    __table_args__ = (
        CheckConstraint('total_amount > 0', name='check_order_total_amount_positive'),
        Index('ix_orders_user_id', 'user_id'),
    )


class OrderDTO(BaseModel):
    id: int | None = None
    user_id: int | None = None
    status: OrderStatus | None = None
    total_amount: Decimal | None = None
    currency: Currency | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    paid_at: datetime | None = None
    completed_at: datetime | None = None
    cancelled_at: datetime | None = None
    checkout_session_id: str | None = None
    external_payment_ref: str | None = None


class OrderDetailsDTO(OrderDTO):
    lines: list[OrderLineDTO] = []
