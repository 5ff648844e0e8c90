"""
Cart validation service.

Checks the shape of a proposed cart and prices each line against the live
inventory before anything is written. Read-only against the inventory store.
"""

import re

from lounge_pos.config import get_logger
from lounge_pos.core.entities.product import Product
from lounge_pos.core.entities.sale import CartLine, ValidatedCart, ValidatedLine
from lounge_pos.core.exceptions import (
    InsufficientStockError,
    InvalidInputError,
    ProductNotFoundError,
)
from lounge_pos.core.interfaces import IInventoryStore

logger = get_logger(__name__)


class CartValidator:
    """
    Two-phase cart validation: every line is checked before any mutation.

    Duplicate product ids are not coalesced. Each line is compared with the
    same product snapshot, read once per distinct product; the commit-time
    decrement re-checks the combined quantity.
    """

    DEFAULT_PRODUCT_ID_PATTERN = r"^[A-Za-z0-9_-]{1,64}$"

    def __init__(
        self,
        inventory_store: IInventoryStore,
        product_id_pattern: str | None = None,
    ):
        self._inventory_store = inventory_store
        self._product_id_re = re.compile(product_id_pattern or self.DEFAULT_PRODUCT_ID_PATTERN)

    def check_structure(self, lines: list[CartLine]) -> None:
        """Reject empty carts, malformed product ids and quantities below 1."""
        if not lines:
            raise InvalidInputError("items", "cart must contain at least one item")

        for index, line in enumerate(lines):
            if not isinstance(line.product_id, str) or not self._product_id_re.match(
                line.product_id
            ):
                raise InvalidInputError(
                    f"items[{index}].product_id", "invalid product id", line.product_id
                )
            if isinstance(line.quantity, bool) or not isinstance(line.quantity, int):
                raise InvalidInputError(
                    f"items[{index}].quantity", "quantity must be an integer", line.quantity
                )
            if line.quantity < 1:
                raise InvalidInputError(
                    f"items[{index}].quantity", "quantity must be at least 1", line.quantity
                )

    async def validate(self, lines: list[CartLine]) -> ValidatedCart:
        """Validate every line and price it from the current product record.

        Raises:
            InvalidInputError: empty cart or malformed line
            ProductNotFoundError: unknown product
            InsufficientStockError: quantity on hand below the line quantity
        """
        self.check_structure(lines)

        snapshot: dict[str, Product] = {}
        validated: list[ValidatedLine] = []

        for line in lines:
            product = snapshot.get(line.product_id)
            if product is None:
                product = await self._inventory_store.get_product(line.product_id)
                if product is None:
                    raise ProductNotFoundError(line.product_id)
                snapshot[line.product_id] = product

            if product.quantity_on_hand < line.quantity:
                raise InsufficientStockError(
                    product_id=product.id,
                    available=product.quantity_on_hand,
                    requested=line.quantity,
                    product_name=product.name,
                )

            validated.append(
                ValidatedLine(
                    product_id=product.id,
                    product_name=product.name,
                    quantity=line.quantity,
                    unit_price=product.unit_price,
                    unit_cost=product.unit_cost,
                    reorder_level=product.reorder_level,
                )
            )

        cart = ValidatedCart(lines=validated)
        logger.debug(
            "cart_validated",
            lines=len(cart.lines),
            products=len(snapshot),
            cart_total=cart.cart_total,
        )
        return cart
