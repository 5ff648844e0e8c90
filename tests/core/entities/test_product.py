"""Tests for Product entity."""

import pytest
from pydantic import ValidationError

from lounge_pos.core.entities.product import Product


class TestProduct:
    """Tests for Product entity."""

    def test_create_minimal(self):
        product = Product(id="P1", name="Balozi Bottle", unit_price=300, unit_cost=169)
        assert product.quantity_on_hand == 0
        assert product.reorder_level == 5
        assert product.category == ""
        assert product.created_at.tzinfo is not None

    def test_negative_quantity_rejected(self):
        with pytest.raises(ValidationError):
            Product(id="P1", name="X", unit_price=1, unit_cost=1, quantity_on_hand=-1)

    def test_negative_price_rejected(self):
        with pytest.raises(ValidationError):
            Product(id="P1", name="X", unit_price=-1, unit_cost=1)

    def test_is_low_stock(self):
        product = Product(id="P1", name="X", unit_price=1, unit_cost=1, quantity_on_hand=5)
        assert product.is_low_stock is True
        product.quantity_on_hand = 6
        assert product.is_low_stock is False

    def test_profit_margin(self):
        product = Product(id="P1", name="X", unit_price=1000, unit_cost=600)
        assert product.profit_margin == pytest.approx(66.67)

    def test_profit_margin_zero_cost(self):
        product = Product(id="P1", name="X", unit_price=50, unit_cost=0)
        assert product.profit_margin == 0.0
