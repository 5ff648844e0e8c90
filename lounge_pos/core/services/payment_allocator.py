"""
Payment allocation service.

Reconciles a declared split-tender payment with the cart total, then spreads
each tender across the cart lines in proportion to the line totals.
"""

import math

from lounge_pos.core.entities.sale import (
    PaymentDeclaration,
    PaymentSplit,
    ValidatedLine,
)
from lounge_pos.core.exceptions import InvalidInputError, PaymentMismatchError


class PaymentAllocator:
    """
    Proportional split-tender allocation.

    Each line receives ``declared[tender] * line_total / cart_total`` per
    tender, rounded to currency minor units. Rounding residue is left on the
    lines as computed; per-tender sums may differ from the declared amount
    by a few minor units.
    """

    DEFAULT_TOLERANCE = 0.01
    DEFAULT_PLACES = 2

    def __init__(self, tolerance: float | None = None, places: int | None = None):
        self._tolerance = tolerance if tolerance is not None else self.DEFAULT_TOLERANCE
        self._places = places if places is not None else self.DEFAULT_PLACES

    def reconcile(self, cart_total: float, declaration: PaymentDeclaration) -> float:
        """Check the declaration and return the declared total.

        Raises:
            InvalidInputError: empty declaration, negative amount, or all zero
            PaymentMismatchError: declared total outside the tolerance
        """
        if not declaration:
            raise InvalidInputError("payment", "at least one payment method required")

        for tender, amount in declaration.items():
            if not math.isfinite(amount):
                raise InvalidInputError(
                    f"payment.{tender.value}", "payment amounts must be finite numbers", amount
                )
            if amount < 0:
                raise InvalidInputError(
                    f"payment.{tender.value}", "payment amounts cannot be negative", amount
                )

        if all(amount == 0 for amount in declaration.values()):
            raise InvalidInputError("payment", "at least one payment method required")

        total_declared = round(sum(declaration.values()), 6)
        # compared at micro-unit precision; a difference of exactly 0.01 is accepted
        if round(abs(total_declared - cart_total), 6) > self._tolerance:
            raise PaymentMismatchError(
                cart_total=cart_total,
                total_declared=total_declared,
                tolerance=self._tolerance,
            )
        return total_declared

    def allocate(
        self,
        lines: list[ValidatedLine],
        cart_total: float,
        declaration: PaymentDeclaration,
    ) -> list[PaymentSplit]:
        """Return one tender-to-amount mapping per line, in line order."""
        self.reconcile(cart_total, declaration)

        splits: list[PaymentSplit] = []
        for line in lines:
            split: PaymentSplit = {}
            for tender, amount in declaration.items():
                if cart_total == 0:
                    split[tender] = 0.0
                else:
                    split[tender] = round(amount * (line.line_total / cart_total), self._places)
            splits.append(split)
        return splits
