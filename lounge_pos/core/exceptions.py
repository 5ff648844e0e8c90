"""
Domain exceptions for the Lounge POS core.

Every exception carries a stable ``code``, a coarse machine-readable ``kind``
and a ``details`` mapping with enough context for the caller to correct the
request and retry.
"""

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Error categories reported to callers."""

    INVALID_INPUT = "invalid_input"
    NOT_FOUND = "not_found"
    INSUFFICIENT_STOCK = "insufficient_stock"
    PAYMENT_MISMATCH = "payment_mismatch"
    PERSISTENCE_FAILURE = "persistence_failure"
    UNAUTHORIZED = "unauthorized"
    INTERNAL = "internal"


class POSError(Exception):
    """Base exception for all Lounge POS errors."""

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict:
        """Convert to dictionary for error responses."""
        return {
            "error": self.code,
            "kind": self.kind.value,
            "message": self.message,
            "details": self.details,
        }


# Input Exceptions
class InvalidInputError(POSError):
    """Malformed cart, payment or reversal request."""

    kind = ErrorKind.INVALID_INPUT

    def __init__(self, field: str, message: str, value: Any = None):
        super().__init__(
            f"Invalid input for '{field}': {message}",
            code="INVALID_INPUT",
            details={
                "field": field,
                "message": message,
                "value": str(value)[:100] if value is not None else None,
            },
        )


# Lookup Exceptions
class NotFoundError(POSError):
    """Base exception for unknown references."""

    kind = ErrorKind.NOT_FOUND


class ProductNotFoundError(NotFoundError):
    """Product not present in the inventory store."""

    def __init__(self, product_id: str):
        super().__init__(
            f"Product not found: {product_id}",
            code="PRODUCT_NOT_FOUND",
            details={"product_id": product_id},
        )


class SaleRecordNotFoundError(NotFoundError):
    """Sale record not present in the ledger."""

    def __init__(self, sale_record_id: int):
        super().__init__(
            f"Sale record not found: {sale_record_id}",
            code="SALE_RECORD_NOT_FOUND",
            details={"sale_record_id": sale_record_id},
        )


# Stock Exceptions
class InsufficientStockError(POSError):
    """Requested quantity exceeds the quantity on hand."""

    kind = ErrorKind.INSUFFICIENT_STOCK

    def __init__(
        self,
        product_id: str,
        available: int,
        requested: int,
        product_name: str | None = None,
        stage: str = "validation",
    ):
        label = product_name or product_id
        super().__init__(
            f"Insufficient stock for {label}. "
            f"Available: {available}, Requested: {requested}",
            code="INSUFFICIENT_STOCK",
            details={
                "product_id": product_id,
                "product_name": product_name,
                "available": available,
                "requested": requested,
                "stage": stage,
            },
        )
        self.product_id = product_id
        self.available = available
        self.requested = requested


class StockConflictError(InsufficientStockError):
    """Stock fell below the requested quantity between validation and commit."""

    def __init__(self, product_id: str, available: int, requested: int):
        super().__init__(
            product_id=product_id,
            available=available,
            requested=requested,
            stage="commit",
        )


# Payment Exceptions
class PaymentMismatchError(POSError):
    """Declared payment does not reconcile with the cart total."""

    kind = ErrorKind.PAYMENT_MISMATCH

    def __init__(self, cart_total: float, total_declared: float, tolerance: float):
        super().__init__(
            f"Declared payment {total_declared:.2f} does not match "
            f"cart total {cart_total:.2f}",
            code="PAYMENT_MISMATCH",
            details={
                "cart_total": cart_total,
                "total_declared": total_declared,
                "difference": round(total_declared - cart_total, 6),
                "tolerance": tolerance,
            },
        )
        self.cart_total = cart_total
        self.total_declared = total_declared


# Storage Exceptions
class StorageError(POSError):
    """Base exception for storage operations."""

    kind = ErrorKind.PERSISTENCE_FAILURE


class DatabaseError(StorageError):
    """Database operation failed."""

    def __init__(self, operation: str, error: str):
        super().__init__(
            f"Database error during {operation}: {error}",
            code="DATABASE_ERROR",
            details={"operation": operation, "error": error},
        )


class PersistenceError(StorageError):
    """The atomic commit step failed; nothing was applied unless noted."""

    def __init__(self, operation: str, reason: str, outcome: str = "rolled_back"):
        super().__init__(
            f"Persistence failure during {operation}: {reason}",
            code="PERSISTENCE_FAILURE",
            details={"operation": operation, "reason": reason, "outcome": outcome},
        )
        self.outcome = outcome


# Authorization Exceptions
class UnauthorizedError(POSError):
    """Actor is not allowed to perform the action.

    Raised by the identity collaborator in front of the processor, never by
    the processor itself.
    """

    kind = ErrorKind.UNAUTHORIZED

    def __init__(self, actor_id: str, role: str, action: str):
        super().__init__(
            f"Role '{role}' may not {action}",
            code="UNAUTHORIZED",
            details={"actor_id": actor_id, "role": role, "action": action},
        )


# Notification Exceptions
class NotificationError(POSError):
    """Notification sink could not deliver an event."""

    def __init__(self, event: str, reason: str):
        super().__init__(
            f"Failed to deliver '{event}': {reason}",
            code="NOTIFICATION_FAILED",
            details={"event": event, "reason": reason},
        )


class ConfigurationError(POSError):
    """Configuration error."""

    pass
