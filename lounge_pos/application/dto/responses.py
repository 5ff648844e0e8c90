"""Response DTOs for the sale transaction core.

Pydantic v2 models returned by the use cases' ``to_response`` helpers.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from lounge_pos.core.entities.sale import SaleRecord


class SaleRecordResponse(BaseModel):
    """One committed sale line."""

    id: int = Field(..., description="Sale record ID")
    product_id: str = Field(..., description="Product ID")
    product_name: str = Field(..., description="Product name at time of sale")
    quantity_sold: int = Field(..., description="Units sold")
    unit_price: float = Field(..., description="Selling price per unit")
    total_price: float = Field(..., description="unit_price * quantity_sold")
    payment_split: dict[str, float] = Field(..., description="Tender to amount")
    unit_cost: float = Field(..., description="Buying price per unit")
    profit: float = Field(..., description="(unit_price - unit_cost) * quantity_sold")
    sold_by: str = Field(..., description="Seller ID")
    sold_by_role: str = Field(..., description="Seller role")
    created_at: datetime = Field(..., description="Commit timestamp")

    @classmethod
    def from_record(cls, record: SaleRecord) -> "SaleRecordResponse":
        return cls(
            id=record.id,  # type: ignore[arg-type]
            product_id=record.product_id,
            product_name=record.product_name,
            quantity_sold=record.quantity_sold,
            unit_price=record.unit_price,
            total_price=record.total_price,
            payment_split={t.value: amount for t, amount in record.payment_split.items()},
            unit_cost=record.unit_cost,
            profit=record.profit,
            sold_by=record.sold_by,
            sold_by_role=record.sold_by_role,
            created_at=record.created_at,
        )


class SaleSummaryResponse(BaseModel):
    """Totals for one committed sale."""

    total_revenue: float
    total_profit: float
    total_items: int
    payment_totals: dict[str, float]


class CreateSaleResponse(BaseModel):
    """Response for a committed sale."""

    lines: list[SaleRecordResponse]
    summary: SaleSummaryResponse


class ReverseSaleResponse(BaseModel):
    """Response for a reversed sale record."""

    sale_record_id: int
    product_id: str
    quantity_returned: int
    message: str = ""


class SalesTotalsResponse(BaseModel):
    """Aggregate figures for a ledger query."""

    total_revenue: float
    total_profit: float
    total_transactions: int
    total_items: int
    profit_margin: float


class ListSalesResponse(BaseModel):
    """Paginated ledger query result."""

    records: list[SaleRecordResponse]
    totals: SalesTotalsResponse
    limit: int
    offset: int
