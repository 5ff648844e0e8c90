"""Core domain entities."""

from lounge_pos.core.entities.product import Product
from lounge_pos.core.entities.sale import (
    Actor,
    CartLine,
    PaymentDeclaration,
    PaymentSplit,
    SaleRecord,
    SaleRecordFilter,
    SalesTotals,
    SaleState,
    SaleSummary,
    TenderType,
    ValidatedCart,
    ValidatedLine,
)

__all__ = [
    "Product",
    "Actor",
    "CartLine",
    "PaymentDeclaration",
    "PaymentSplit",
    "SaleRecord",
    "SaleRecordFilter",
    "SalesTotals",
    "SaleState",
    "SaleSummary",
    "TenderType",
    "ValidatedCart",
    "ValidatedLine",
]
