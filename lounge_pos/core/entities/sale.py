"""Sale domain entities: cart lines, validated lines and persisted sale records."""

from datetime import UTC, date, datetime, time
from enum import Enum

from pydantic import BaseModel, Field, model_validator


class TenderType(str, Enum):
    """Payment instruments accepted at the till."""

    CASH = "cash"
    MOBILE_MONEY = "mobile-money"


PaymentDeclaration = dict[TenderType, float]
PaymentSplit = dict[TenderType, float]


class SaleState(str, Enum):
    """States of one sale attempt."""

    RECEIVED = "received"
    VALIDATED = "validated"
    ALLOCATED = "allocated"
    PERSISTED = "persisted"
    COMMITTED = "committed"
    ABORTED = "aborted"


class Actor(BaseModel):
    """Caller identity, opaque to the core."""

    id: str
    role: str


class CartLine(BaseModel):
    """A requested product and quantity."""

    product_id: str
    quantity: int


class ValidatedLine(BaseModel):
    """A cart line priced against the product snapshot read at validation."""

    product_id: str
    product_name: str
    quantity: int
    unit_price: float
    unit_cost: float
    reorder_level: int = 5
    line_total: float = 0.0  # unit_price * quantity
    line_profit: float = 0.0  # (unit_price - unit_cost) * quantity

    @model_validator(mode="after")
    def compute_line(self) -> "ValidatedLine":
        """Compute line_total and line_profit from price, cost and quantity."""
        self.line_total = round(self.unit_price * self.quantity, 2)
        self.line_profit = round((self.unit_price - self.unit_cost) * self.quantity, 2)
        return self


class ValidatedCart(BaseModel):
    """All lines of a cart that passed validation."""

    lines: list[ValidatedLine]
    cart_total: float = 0.0

    @model_validator(mode="after")
    def compute_total(self) -> "ValidatedCart":
        self.cart_total = round(sum(line.line_total for line in self.lines), 2)
        return self

    def quantities_by_product(self) -> dict[str, int]:
        """Requested quantity per distinct product, in first-seen order."""
        totals: dict[str, int] = {}
        for line in self.lines:
            totals[line.product_id] = totals.get(line.product_id, 0) + line.quantity
        return totals


class SaleRecord(BaseModel):
    """One persisted, auditable sale line."""

    id: int | None = None
    product_id: str
    product_name: str
    quantity_sold: int
    unit_price: float
    total_price: float
    payment_split: PaymentSplit = Field(default_factory=dict)
    unit_cost: float
    profit: float
    sold_by: str
    sold_by_role: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def from_line(
        cls,
        line: ValidatedLine,
        split: PaymentSplit,
        actor: Actor,
        created_at: datetime,
    ) -> "SaleRecord":
        return cls(
            product_id=line.product_id,
            product_name=line.product_name,
            quantity_sold=line.quantity,
            unit_price=line.unit_price,
            total_price=line.line_total,
            payment_split=split,
            unit_cost=line.unit_cost,
            profit=line.line_profit,
            sold_by=actor.id,
            sold_by_role=actor.role,
            created_at=created_at,
        )


class SaleSummary(BaseModel):
    """Totals over the records committed by one sale."""

    total_revenue: float = 0.0
    total_profit: float = 0.0
    total_items: int = 0
    payment_totals: dict[TenderType, float] = Field(default_factory=dict)

    @classmethod
    def from_records(cls, records: list[SaleRecord]) -> "SaleSummary":
        payment_totals: dict[TenderType, float] = {}
        for record in records:
            for tender, amount in record.payment_split.items():
                payment_totals[tender] = round(payment_totals.get(tender, 0.0) + amount, 2)
        return cls(
            total_revenue=round(sum(r.total_price for r in records), 2),
            total_profit=round(sum(r.profit for r in records), 2),
            total_items=sum(r.quantity_sold for r in records),
            payment_totals=payment_totals,
        )


class SalesTotals(BaseModel):
    """Ledger aggregate over a filtered set of sale records."""

    total_revenue: float = 0.0
    total_profit: float = 0.0
    total_transactions: int = 0
    total_items: int = 0

    @property
    def profit_margin(self) -> float:
        """Profit as a percentage of revenue."""
        if self.total_revenue == 0:
            return 0.0
        return round(self.total_profit / self.total_revenue * 100, 2)


class SaleRecordFilter(BaseModel):
    """Ledger query filter. Date bounds are inclusive instants."""

    sold_by: str | None = None
    created_from: datetime | None = None
    created_to: datetime | None = None

    @classmethod
    def for_days(
        cls,
        first: date,
        last: date | None = None,
        sold_by: str | None = None,
    ) -> "SaleRecordFilter":
        """Filter covering whole local calendar days ``first`` to ``last``."""
        last = last or first
        return cls(
            sold_by=sold_by,
            created_from=datetime.combine(first, time.min).astimezone(),
            created_to=datetime.combine(last, time.max).astimezone(),
        )
