from decimal import Decimal

from pydantic import BaseModel
from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, CheckConstraint, Index
from sqlalchemy.orm import relationship

from models.base import Base


# Snapshot of one cart line; no foreign key to the catalog so later
# catalog edits never rewrite a placed order
class OrderLine(Base):
    __tablename__ = 'order_lines'

    __table_args__ = (
        CheckConstraint('quantity > 0', name='ck_order_line_positive_quantity'),
        CheckConstraint('unit_price > 0', name='ck_order_line_positive_price'),
        Index('ix_order_lines_order_id', 'order_id'),
    )

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey('orders.id', ondelete='CASCADE'), nullable=False)
    product_id = Column(String, nullable=False)
    variant_id = Column(Integer, nullable=True)
    variant_label = Column(String, nullable=True)
    name = Column(String, nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)

    order = relationship("Order", back_populates="lines")


class OrderLineDTO(BaseModel):
    id: int | None = None
    order_id: int | None = None
    product_id: str
    variant_id: int | None = None
    variant_label: str | None = None
    name: str
    quantity: int
    unit_price: Decimal
