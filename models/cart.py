# The cart is never persisted server-side: it lives in one browsing session
# and reaches the server only as the list of checkout lines posted to /checkout
from decimal import Decimal

from pydantic import BaseModel, Field


class CartLine(BaseModel):
    product_id: str
    product_name: str
    variant_id: int | None = None
    variant_label: str | None = None
    unit_price: Decimal  # Snapshot taken on first add
    quantity: int = 1

    @property
    def key(self) -> tuple[str, str | None]:
        return self.product_id, self.variant_label


class CheckoutLineDTO(BaseModel):
    product_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    variant_id: int | None = None
    variant_label: str | None = None
    unit_price: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    # Range is checked by the checkout service so callers get InvalidQuantity
    quantity: int


class CheckoutRequest(BaseModel):
    """Body of POST /checkout."""
    items: list[CheckoutLineDTO] = []
