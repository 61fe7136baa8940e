from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Numeric, ForeignKey, CheckConstraint, Index, func
from sqlalchemy.orm import relationship

from models.base import Base


# Product is a menu entry of the storefront, read-only from the cart's perspective
class Product(Base):
    __tablename__ = 'products'

    id = Column(String, primary_key=True)  # Slug, e.g. "empanadas"
    name = Column(String, nullable=False)
    description = Column(String, nullable=True)
    base_price = Column(Numeric(10, 2), nullable=False)
    category = Column(String, nullable=False)
    image = Column(String, nullable=True)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=func.now())

    variants = relationship("ProductVariant", back_populates="product", cascade="all, delete-orphan",
                            lazy="selectin", order_by="ProductVariant.id")

    __table_args__ = (
        CheckConstraint('base_price > 0', name='check_product_base_price_positive'),
    )


# Variant price supersedes the product base price when selected
class ProductVariant(Base):
    __tablename__ = 'product_variants'

    id = Column(Integer, primary_key=True)
    product_id = Column(String, ForeignKey('products.id', ondelete='CASCADE'), nullable=False)
    label = Column(String, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)

    product = relationship("Product", back_populates="variants")

    __table_args__ = (
        CheckConstraint('price > 0', name='check_variant_price_positive'),
        Index('ix_product_variants_unique_label', 'product_id', 'label', unique=True),
    )


class ProductVariantDTO(BaseModel):
    id: int | None = None
    product_id: str | None = None
    label: str
    price: Decimal


class ProductDTO(BaseModel):
    id: str
    name: str
    description: str | None = None
    base_price: Decimal
    category: str | None = None
    image: str | None = None
    active: bool = True
    created_at: datetime | None = None
    variants: list[ProductVariantDTO] = []

    def find_variant(self, label: str | None) -> ProductVariantDTO | None:
        if label is None:
            return None
        return next((variant for variant in self.variants if variant.label == label), None)
