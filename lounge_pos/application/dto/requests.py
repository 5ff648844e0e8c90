"""Request DTOs for the sale transaction core.

Pydantic v2 models validated once at the boundary. Field aliases accept the
camelCase names used on the wire; snake_case names are accepted as well.
"""

from datetime import date
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from lounge_pos.core.entities.sale import Actor, CartLine, PaymentDeclaration, TenderType
from lounge_pos.core.exceptions import InvalidInputError


class _RequestModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")


class ActorRequest(_RequestModel):
    """Caller identity resolved by the identity collaborator."""

    id: str = Field(..., min_length=1, description="Actor ID")
    role: str = Field(..., min_length=1, description="Actor role", examples=["admin", "manager"])

    def to_actor(self) -> Actor:
        return Actor(id=self.id, role=self.role)


class CartItemRequest(_RequestModel):
    """A single cart line."""

    product_id: str = Field(..., alias="productId", min_length=1, description="Product ID")
    quantity: int = Field(..., ge=1, strict=True, description="Units to sell")

    def to_cart_line(self) -> CartLine:
        return CartLine(product_id=self.product_id, quantity=self.quantity)


class PaymentRequest(_RequestModel):
    """Declared split-tender payment. Omitted tenders are not used."""

    cash: float | None = Field(default=None, allow_inf_nan=False, description="Cash amount")
    mobile_money: float | None = Field(
        default=None,
        alias="mobileMoney",
        allow_inf_nan=False,
        description="Mobile money amount",
    )

    def to_declaration(self) -> PaymentDeclaration:
        declared: PaymentDeclaration = {}
        if self.cash is not None:
            declared[TenderType.CASH] = self.cash
        if self.mobile_money is not None:
            declared[TenderType.MOBILE_MONEY] = self.mobile_money
        return declared


class CreateSaleRequest(_RequestModel):
    """Request to record a multi-item sale."""

    items: list[CartItemRequest] = Field(..., min_length=1, description="Cart lines")
    payment: PaymentRequest = Field(..., description="Declared payment")
    actor: ActorRequest = Field(..., description="Selling actor")

    def cart_lines(self) -> list[CartLine]:
        return [item.to_cart_line() for item in self.items]


class ReverseSaleRequest(_RequestModel):
    """Request to delete a sale record and return its quantity to stock."""

    sale_record_id: int = Field(..., alias="saleRecordId", gt=0, description="Sale record ID")
    actor: ActorRequest = Field(..., description="Actor performing the reversal")


class ListSalesRequest(_RequestModel):
    """Query over the sale ledger."""

    sold_by: str | None = Field(default=None, alias="soldBy", description="Filter by seller")
    date_from: date | None = Field(
        default=None, alias="dateFrom", description="First day included (ISO date)"
    )
    date_to: date | None = Field(
        default=None, alias="dateTo", description="Last day included (ISO date)"
    )
    today_only: bool = Field(
        default=False, alias="todayOnly", description="Restrict to the current day"
    )
    limit: int = Field(default=50, ge=1, le=500, description="Page size")
    offset: int = Field(default=0, ge=0, description="Records to skip")


RequestT = TypeVar("RequestT", bound=BaseModel)


def parse_request(model: type[RequestT], data: Any) -> RequestT:
    """Validate raw request data into ``model``.

    Raises:
        InvalidInputError: the payload does not match the request shape; the
            first offending field is reported
    """
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ())) or "request"
        raise InvalidInputError(field, first.get("msg", "invalid value"), first.get("input")) from e
