"""
Core business logic services.

Layer-pure services that depend only on:
- lounge_pos/core/entities/*
- lounge_pos/core/interfaces/*
- lounge_pos/core/exceptions.py

NO infrastructure imports. All dependencies injected via constructor.
"""

from lounge_pos.core.services.cart_validator import CartValidator
from lounge_pos.core.services.event_dispatcher import (
    PROFIT_UPDATED,
    SALE_CREATED,
    SALE_DELETED,
    STOCK_UPDATED,
    EventDispatcher,
)
from lounge_pos.core.services.payment_allocator import PaymentAllocator

__all__ = [
    "CartValidator",
    "PaymentAllocator",
    "EventDispatcher",
    "SALE_CREATED",
    "SALE_DELETED",
    "STOCK_UPDATED",
    "PROFIT_UPDATED",
]
