"""List Sales Use Case - read-only ledger queries with totals."""

from dataclasses import dataclass
from datetime import date

from lounge_pos.application.dto.requests import ListSalesRequest
from lounge_pos.application.dto.responses import (
    ListSalesResponse,
    SaleRecordResponse,
    SalesTotalsResponse,
)
from lounge_pos.config import get_logger
from lounge_pos.core.entities.sale import SaleRecord, SaleRecordFilter, SalesTotals
from lounge_pos.core.exceptions import InvalidInputError
from lounge_pos.core.interfaces import ISaleLedger

logger = get_logger(__name__)


@dataclass
class ListSalesResult:
    """Result of a ledger query."""

    records: list[SaleRecord]
    totals: SalesTotals
    limit: int
    offset: int


class ListSalesUseCase:
    """Sales for a seller and/or a range of days, newest first, with totals."""

    def __init__(self, sale_ledger: ISaleLedger | None = None):
        self._sale_ledger = sale_ledger

    async def _get_sale_ledger(self) -> ISaleLedger:
        if self._sale_ledger is None:
            from lounge_pos.infrastructure.storage.sqlite import get_sale_ledger

            self._sale_ledger = await get_sale_ledger()
        return self._sale_ledger

    @staticmethod
    def build_filter(request: ListSalesRequest) -> SaleRecordFilter | None:
        """Translate the request into a ledger filter. Day bounds are inclusive."""
        if request.today_only:
            return SaleRecordFilter.for_days(date.today(), sold_by=request.sold_by)

        if request.date_from and request.date_to and request.date_from > request.date_to:
            raise InvalidInputError("date_from", "must not be after date_to", request.date_from)

        if request.date_from or request.date_to:
            record_filter = SaleRecordFilter(sold_by=request.sold_by)
            if request.date_from:
                record_filter.created_from = SaleRecordFilter.for_days(request.date_from).created_from
            if request.date_to:
                record_filter.created_to = SaleRecordFilter.for_days(request.date_to).created_to
            return record_filter

        if request.sold_by:
            return SaleRecordFilter(sold_by=request.sold_by)
        return None

    async def execute(self, request: ListSalesRequest) -> ListSalesResult:
        """Execute list sales use case."""
        ledger = await self._get_sale_ledger()
        record_filter = self.build_filter(request)

        records = await ledger.list_records(
            record_filter, limit=request.limit, offset=request.offset
        )
        totals = await ledger.summarize(record_filter)

        logger.info(
            "sales_listed",
            count=len(records),
            sold_by=request.sold_by,
            today_only=request.today_only,
            total_revenue=totals.total_revenue,
        )
        return ListSalesResult(
            records=records,
            totals=totals,
            limit=request.limit,
            offset=request.offset,
        )

    def to_response(self, result: ListSalesResult) -> ListSalesResponse:
        """Convert result to API response."""
        totals = result.totals
        return ListSalesResponse(
            records=[SaleRecordResponse.from_record(r) for r in result.records],
            totals=SalesTotalsResponse(
                total_revenue=totals.total_revenue,
                total_profit=totals.total_profit,
                total_transactions=totals.total_transactions,
                total_items=totals.total_items,
                profit_margin=totals.profit_margin,
            ),
            limit=result.limit,
            offset=result.offset,
        )
