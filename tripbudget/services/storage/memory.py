"""
In-Memory Storage Implementation

Used by the test suite and when the app runs without Google credentials
(storage_backend = "memory"). Records are kept as encoded rows, exactly
as the Sheets backend stores them, so both backends round-trip the same way.

Nothing survives a process restart.
"""

from typing import Optional

import structlog

from tripbudget.services.storage.interface import (
    NotFoundError,
    RecordStoreInterface,
    TripStore,
)
from tripbudget.services.storage.schema import (
    EXPENSES_SCHEMA,
    INCOMES_SCHEMA,
    MEMBERS_SCHEMA,
    TRIP_DAYS_SCHEMA,
    CollectionSchema,
    RecordT,
)


logger = structlog.get_logger(__name__)


class InMemoryRecordStore(RecordStoreInterface[RecordT]):
    """Dict-backed store for one collection, keyed by record id."""

    def __init__(self, schema: CollectionSchema):
        self.schema = schema
        # Insertion-ordered: id -> row
        self._rows: dict[str, list[str]] = {}

    async def list_records(self) -> list[RecordT]:
        records = []
        for record_id, row in self._rows.items():
            try:
                records.append(self.schema.from_row(row))
            except ValueError as e:
                logger.warning(
                    "malformed_row_skipped",
                    collection=self.schema.name,
                    record_id=record_id,
                    error=str(e),
                )
        return self.schema.sort(records)

    async def get_record(self, record_id: str) -> Optional[RecordT]:
        row = self._rows.get(record_id)
        if row is None:
            return None
        try:
            return self.schema.from_row(row)
        except ValueError as e:
            logger.warning(
                "malformed_row_skipped",
                collection=self.schema.name,
                record_id=record_id,
                error=str(e),
            )
            return None

    async def create_record(self, fields: dict) -> str:
        record_id = self.schema.new_id()
        record = self.schema.build_record(record_id, fields)
        self._rows[record_id] = self.schema.to_row(record)
        return record_id

    async def update_record(self, record_id: str, fields: dict) -> None:
        row = self._rows.get(record_id)
        if row is None:
            raise NotFoundError(f"{self.schema.name} record not found: {record_id}")

        patch = self.schema.encode_patch(fields)
        self._rows[record_id] = self.schema.merge_row(row, patch)

    async def remove_record(self, record_id: str) -> bool:
        return self._rows.pop(record_id, None) is not None


def create_memory_trip_store() -> TripStore:
    """Build an empty in-memory store for all four collections."""
    return TripStore(
        trip_days=InMemoryRecordStore(TRIP_DAYS_SCHEMA),
        members=InMemoryRecordStore(MEMBERS_SCHEMA),
        expenses=InMemoryRecordStore(EXPENSES_SCHEMA),
        incomes=InMemoryRecordStore(INCOMES_SCHEMA),
    )
