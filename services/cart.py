import logging
from decimal import Decimal

from exceptions.cart import CartLineNotFoundException, InvalidQuantityException
from models.cart import CartLine, CheckoutLineDTO
from models.product import ProductDTO
from utils.money import sum_lines

logger = logging.getLogger(__name__)


def display_name(product_name: str, variant_label: str | None) -> str:
    """Line title shown in the cart and on the processor receipt, e.g. "Churros (5 pieces plain)"."""
    if variant_label:
        return f"{product_name} ({variant_label})"
    return product_name


class CartStore:
    """
    In-memory cart of one browsing session.

    Lines are keyed by (product id, variant label). Nothing here is persisted
    and nothing suspends: the store is confined to a single session and needs
    no locking.

    Usage:
        cart = CartStore()
        cart.add_item(empanadas)
        cart.add_item(churros, "5 pieces plain")
        cart.set_quantity("empanadas", None, 2)
        cart.total_price()   # Decimal("16.00")
    """

    def __init__(self):
        self._lines: dict[tuple[str, str | None], CartLine] = {}

    def add_item(self, product: ProductDTO, variant_label: str | None = None) -> CartLine:
        """
        Add one unit of product (optionally a variant) to the cart.

        The unit price is the variant price when variant_label names a known
        variant, otherwise the product base price. A repeated add of the same
        key increments the quantity and keeps the price captured on first add.
        """
        key = (product.id, variant_label)
        line = self._lines.get(key)
        if line is not None:
            line.quantity += 1
            return line

        variant = product.find_variant(variant_label)
        if variant_label is not None and variant is None:
            logger.warning(f"Unknown variant '{variant_label}' for product {product.id}, using base price")

        line = CartLine(
            product_id=product.id,
            product_name=product.name,
            variant_id=variant.id if variant else None,
            variant_label=variant_label,
            unit_price=variant.price if variant else product.base_price,
            quantity=1,
        )
        self._lines[key] = line
        return line

    def set_quantity(self, product_id: str, variant_label: str | None, quantity: int) -> CartLine | None:
        """
        Set the quantity of an existing line.

        Returns:
            The updated line, or None when quantity 0 removed it

        Raises:
            InvalidQuantityException: quantity is negative
            CartLineNotFoundException: no line with this key
        """
        if quantity < 0:
            raise InvalidQuantityException(product_id, quantity)

        key = (product_id, variant_label)
        if key not in self._lines:
            raise CartLineNotFoundException(product_id, variant_label)

        if quantity == 0:
            del self._lines[key]
            return None

        line = self._lines[key]
        line.quantity = quantity
        return line

    def remove_item(self, product_id: str, variant_label: str | None = None) -> None:
        self.set_quantity(product_id, variant_label, 0)

    def total_items(self) -> int:
        return sum(line.quantity for line in self._lines.values())

    def total_price(self) -> Decimal:
        return sum_lines((line.unit_price, line.quantity) for line in self._lines.values())

    def clear(self) -> None:
        self._lines.clear()

    @property
    def is_empty(self) -> bool:
        return not self._lines

    @property
    def lines(self) -> list[CartLine]:
        return [line.model_copy() for line in self._lines.values()]

    def to_checkout_lines(self) -> list[CheckoutLineDTO]:
        """Lines in the shape posted to POST /checkout."""
        return [
            CheckoutLineDTO(
                product_id=line.product_id,
                name=display_name(line.product_name, line.variant_label),
                variant_id=line.variant_id,
                variant_label=line.variant_label,
                unit_price=line.unit_price,
                quantity=line.quantity,
            )
            for line in self._lines.values()
        ]
