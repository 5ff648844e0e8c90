"""
Application layer - use cases, DTOs and service factories.

Requests are parsed once at the boundary with ``parse_request`` and handed
to a use case obtained from ``lounge_pos.application.services``.
"""

from lounge_pos.application.dto import (
    CreateSaleRequest,
    CreateSaleResponse,
    ListSalesRequest,
    ListSalesResponse,
    ReverseSaleRequest,
    ReverseSaleResponse,
    parse_request,
)
from lounge_pos.application.services import (
    get_create_sale_use_case,
    get_event_dispatcher,
    get_list_sales_use_case,
    get_reverse_sale_use_case,
    reset_services,
    shutdown_services,
)
from lounge_pos.application.use_cases import (
    CreateSaleUseCase,
    ListSalesUseCase,
    ReverseSaleUseCase,
)

__all__ = [
    # DTOs
    "CreateSaleRequest",
    "CreateSaleResponse",
    "ReverseSaleRequest",
    "ReverseSaleResponse",
    "ListSalesRequest",
    "ListSalesResponse",
    "parse_request",
    # Use cases
    "CreateSaleUseCase",
    "ReverseSaleUseCase",
    "ListSalesUseCase",
    # Factories
    "get_event_dispatcher",
    "get_create_sale_use_case",
    "get_reverse_sale_use_case",
    "get_list_sales_use_case",
    "shutdown_services",
    "reset_services",
]
