"""Application use cases."""

from lounge_pos.application.use_cases.create_sale import (
    CreateSaleResult,
    CreateSaleUseCase,
    TransactionFactory,
)
from lounge_pos.application.use_cases.list_sales import ListSalesResult, ListSalesUseCase
from lounge_pos.application.use_cases.reverse_sale import ReverseSaleResult, ReverseSaleUseCase

__all__ = [
    "CreateSaleUseCase",
    "CreateSaleResult",
    "ReverseSaleUseCase",
    "ReverseSaleResult",
    "ListSalesUseCase",
    "ListSalesResult",
    "TransactionFactory",
]
