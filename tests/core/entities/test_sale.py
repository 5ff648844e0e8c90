"""Tests for sale entities."""

from datetime import UTC, date, datetime

import pytest

from lounge_pos.core.entities.sale import (
    Actor,
    SaleRecord,
    SaleRecordFilter,
    SalesTotals,
    SaleSummary,
    TenderType,
    ValidatedCart,
    ValidatedLine,
)


def _line(product_id: str = "P1", quantity: int = 3, price: float = 1000, cost: float = 600):
    return ValidatedLine(
        product_id=product_id,
        product_name=f"Product {product_id}",
        quantity=quantity,
        unit_price=price,
        unit_cost=cost,
    )


class TestValidatedLine:
    def test_line_totals_computed(self):
        line = _line()
        assert line.line_total == 3000
        assert line.line_profit == 1200

    def test_line_totals_rounded(self):
        line = _line(quantity=3, price=0.1, cost=0.05)
        assert line.line_total == 0.3
        assert line.line_profit == 0.15


class TestValidatedCart:
    def test_cart_total(self):
        cart = ValidatedCart(lines=[_line("P1", 3), _line("P2", 1, price=500, cost=300)])
        assert cart.cart_total == 3500

    def test_quantities_by_product_sums_duplicates(self):
        cart = ValidatedCart(lines=[_line("P1", 2), _line("P2", 1), _line("P1", 3)])
        assert cart.quantities_by_product() == {"P1": 5, "P2": 1}
        assert list(cart.quantities_by_product()) == ["P1", "P2"]


class TestSaleRecord:
    def test_from_line(self):
        created = datetime(2025, 3, 1, 20, 0, tzinfo=UTC)
        record = SaleRecord.from_line(
            _line(),
            {TenderType.CASH: 3000.0},
            Actor(id="u1", role="manager"),
            created,
        )
        assert record.id is None
        assert record.quantity_sold == 3
        assert record.unit_price == 1000
        assert record.total_price == 3000
        assert record.profit == 1200
        assert record.payment_split == {TenderType.CASH: 3000.0}
        assert record.sold_by == "u1"
        assert record.sold_by_role == "manager"
        assert record.created_at == created


class TestSaleSummary:
    def test_from_records(self):
        actor = Actor(id="u1", role="admin")
        now = datetime.now(UTC)
        records = [
            SaleRecord.from_line(
                _line("P1", 1, 700, 400),
                {TenderType.CASH: 350.0, TenderType.MOBILE_MONEY: 350.0},
                actor,
                now,
            ),
            SaleRecord.from_line(
                _line("P2", 1, 300, 100),
                {TenderType.CASH: 150.0, TenderType.MOBILE_MONEY: 150.0},
                actor,
                now,
            ),
        ]
        summary = SaleSummary.from_records(records)
        assert summary.total_revenue == 1000
        assert summary.total_profit == 500
        assert summary.total_items == 2
        assert summary.payment_totals == {
            TenderType.CASH: 500.0,
            TenderType.MOBILE_MONEY: 500.0,
        }


class TestSalesTotals:
    def test_profit_margin(self):
        totals = SalesTotals(total_revenue=1000, total_profit=250)
        assert totals.profit_margin == 25.0

    def test_profit_margin_no_revenue(self):
        assert SalesTotals().profit_margin == 0.0


class TestSaleRecordFilter:
    def test_for_days_single_day(self):
        record_filter = SaleRecordFilter.for_days(date(2025, 3, 1), sold_by="u1")
        assert record_filter.sold_by == "u1"
        assert record_filter.created_from.tzinfo is not None
        assert record_filter.created_from.date() == date(2025, 3, 1)
        assert record_filter.created_to.date() == date(2025, 3, 1)
        assert record_filter.created_from < record_filter.created_to

    def test_for_days_range(self):
        record_filter = SaleRecordFilter.for_days(date(2025, 3, 1), date(2025, 3, 7))
        assert record_filter.created_to.date() == date(2025, 3, 7)
        assert (record_filter.created_to - record_filter.created_from).days == pytest.approx(6, abs=1)
