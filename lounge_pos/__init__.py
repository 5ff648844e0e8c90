"""
Lounge POS - sale transaction core for a small bar/lounge point of sale.

Validates multi-item carts against live stock, reconciles split-tender
payments, and commits sale records and stock decrements atomically.
"""

__version__ = "1.0.0"
