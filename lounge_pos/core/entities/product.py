"""Product domain entity (inventory side)."""

from datetime import UTC, datetime

from pydantic import BaseModel, Field


class Product(BaseModel):
    """A sellable product and its live stock level."""

    id: str
    name: str
    category: str = ""
    unit_price: float = Field(ge=0)  # selling price
    unit_cost: float = Field(ge=0)  # buying price
    quantity_on_hand: int = Field(default=0, ge=0)
    reorder_level: int = Field(default=5, ge=0)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def is_low_stock(self) -> bool:
        return self.quantity_on_hand <= self.reorder_level

    @property
    def profit_margin(self) -> float:
        """Margin over cost as a percentage, 0 when cost is 0."""
        if self.unit_cost == 0:
            return 0.0
        return round((self.unit_price - self.unit_cost) / self.unit_cost * 100, 2)
