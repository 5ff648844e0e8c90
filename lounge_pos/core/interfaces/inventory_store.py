"""Abstract interface for inventory storage."""

from abc import ABC, abstractmethod

from lounge_pos.core.entities.product import Product


class IInventoryStore(ABC):
    """Interface for product stock persistence.

    ``decrement`` and ``increment`` are atomic per product. ``decrement``
    re-checks the quantity on hand at write time and never lets it go
    negative.
    """

    @abstractmethod
    async def get_product(self, product_id: str) -> Product | None:
        """Get product by ID."""
        pass

    @abstractmethod
    async def decrement(self, product_id: str, quantity: int) -> int:
        """Remove ``quantity`` units and return the new quantity on hand.

        Raises:
            ProductNotFoundError: product does not exist
            StockConflictError: fewer than ``quantity`` units remain
        """
        pass

    @abstractmethod
    async def increment(self, product_id: str, quantity: int) -> int:
        """Return ``quantity`` units to stock and return the new quantity on hand.

        Raises:
            ProductNotFoundError: product does not exist
        """
        pass

    @abstractmethod
    async def create_product(self, product: Product) -> Product:
        """Create a product (seeding and tests)."""
        pass

    @abstractmethod
    async def list_products(self, limit: int = 100, offset: int = 0) -> list[Product]:
        """List products ordered by name."""
        pass
