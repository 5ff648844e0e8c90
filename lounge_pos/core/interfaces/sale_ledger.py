"""Abstract interface for the sale ledger."""

from abc import ABC, abstractmethod

from lounge_pos.core.entities.sale import SaleRecord, SaleRecordFilter, SalesTotals


class ISaleLedger(ABC):
    """Interface for sale record persistence.

    Records are append-only; the only mutation after insert is deletion by
    the reversal path.
    """

    @abstractmethod
    async def insert_many(self, records: list[SaleRecord]) -> list[SaleRecord]:
        """Insert all records or none. Returns the records with ids assigned.

        A record that already carries an id is stored under that id.
        """
        pass

    @abstractmethod
    async def get(self, record_id: int) -> SaleRecord | None:
        """Get sale record by ID."""
        pass

    @abstractmethod
    async def delete_one(self, record_id: int) -> bool:
        """Delete a sale record. Returns False if it did not exist."""
        pass

    @abstractmethod
    async def list_records(
        self,
        record_filter: SaleRecordFilter | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[SaleRecord]:
        """List sale records, newest first."""
        pass

    @abstractmethod
    async def summarize(self, record_filter: SaleRecordFilter | None = None) -> SalesTotals:
        """Aggregate revenue, profit and counts over matching records."""
        pass
