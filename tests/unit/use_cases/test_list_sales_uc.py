"""Tests for ListSalesUseCase."""

from datetime import UTC, date, datetime, timedelta

import pytest

from lounge_pos.application.dto.requests import ListSalesRequest, parse_request
from lounge_pos.application.use_cases.list_sales import ListSalesUseCase
from lounge_pos.core.entities import SaleRecord, TenderType
from lounge_pos.core.exceptions import InvalidInputError


def _record(sold_by: str, created_at: datetime, total: float = 1000, profit: float = 400) -> SaleRecord:
    return SaleRecord(
        product_id="P1",
        product_name="Tusker Lager 500ml",
        quantity_sold=1,
        unit_price=total,
        total_price=total,
        payment_split={TenderType.CASH: total},
        unit_cost=total - profit,
        profit=profit,
        sold_by=sold_by,
        sold_by_role="manager",
        created_at=created_at,
    )


@pytest.fixture
async def seeded_ledger(ledger):
    now = datetime.now(UTC)
    await ledger.insert_many(
        [
            _record("u1", now - timedelta(days=3), total=500, profit=100),
            _record("u2", now - timedelta(days=1)),
            _record("u1", now),
            _record("u2", now, total=300, profit=50),
        ]
    )
    return ledger


@pytest.fixture
def use_case(seeded_ledger):
    return ListSalesUseCase(sale_ledger=seeded_ledger)


class TestListSalesUseCase:
    async def test_all_sales_newest_first(self, use_case):
        result = await use_case.execute(parse_request(ListSalesRequest, {}))
        assert len(result.records) == 4
        assert result.records[0].created_at >= result.records[-1].created_at
        assert result.totals.total_transactions == 4
        assert result.totals.total_revenue == 2800

    async def test_today_only(self, use_case):
        result = await use_case.execute(parse_request(ListSalesRequest, {"todayOnly": True}))
        assert result.totals.total_transactions == 2
        assert result.totals.total_revenue == 1300
        assert result.totals.total_profit == 450

    async def test_sold_by(self, use_case):
        result = await use_case.execute(parse_request(ListSalesRequest, {"soldBy": "u1"}))
        assert {r.sold_by for r in result.records} == {"u1"}
        assert result.totals.total_items == 2

    async def test_date_range(self, use_case):
        start = date.today() - timedelta(days=1)
        result = await use_case.execute(
            parse_request(ListSalesRequest, {"dateFrom": start.isoformat()})
        )
        assert result.totals.total_transactions == 3

    async def test_inverted_range_rejected(self, use_case):
        with pytest.raises(InvalidInputError):
            await use_case.execute(
                parse_request(ListSalesRequest, {"dateFrom": "2025-03-07", "dateTo": "2025-03-01"})
            )

    async def test_pagination(self, use_case):
        result = await use_case.execute(parse_request(ListSalesRequest, {"limit": 2, "offset": 1}))
        assert len(result.records) == 2
        assert result.totals.total_transactions == 4

    def test_build_filter_none(self):
        assert ListSalesUseCase.build_filter(ListSalesRequest()) is None

    async def test_to_response(self, use_case):
        result = await use_case.execute(parse_request(ListSalesRequest, {"soldBy": "u2"}))
        response = use_case.to_response(result)
        assert response.totals.total_revenue == 1300
        assert response.totals.profit_margin == pytest.approx(34.62)
        assert response.records[0].payment_split in ({"cash": 300.0}, {"cash": 1000.0})
