"""Request and response DTOs."""

from lounge_pos.application.dto.requests import (
    ActorRequest,
    CartItemRequest,
    CreateSaleRequest,
    ListSalesRequest,
    PaymentRequest,
    ReverseSaleRequest,
    parse_request,
)
from lounge_pos.application.dto.responses import (
    CreateSaleResponse,
    ListSalesResponse,
    ReverseSaleResponse,
    SaleRecordResponse,
    SalesTotalsResponse,
    SaleSummaryResponse,
)

__all__ = [
    # Requests
    "ActorRequest",
    "CartItemRequest",
    "PaymentRequest",
    "CreateSaleRequest",
    "ReverseSaleRequest",
    "ListSalesRequest",
    "parse_request",
    # Responses
    "SaleRecordResponse",
    "SaleSummaryResponse",
    "CreateSaleResponse",
    "ReverseSaleResponse",
    "SalesTotalsResponse",
    "ListSalesResponse",
]
