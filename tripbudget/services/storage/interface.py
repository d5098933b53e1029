"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for record storage.
This allows us to:
1. Swap Google Sheets for a document database later
2. Use in-memory storage for testing
3. Keep the aggregation logic decoupled from where records live

One interface serves all four collections; a CollectionSchema
tells each store instance which record model and row layout it holds.
"""

from abc import ABC, abstractmethod
from typing import Generic, Optional

from tripbudget.models.records import Expense, Income, Member, TripDay
from tripbudget.services.storage.schema import (
    Collection,
    CollectionSchema,
    RecordT,
)


class RecordStoreInterface(ABC, Generic[RecordT]):
    """
    Abstract interface for one keyed collection.

    Any storage implementation must implement these methods.
    """

    schema: CollectionSchema

    @property
    def collection(self) -> Collection:
        return self.schema.collection

    @abstractmethod
    async def list_records(self) -> list[RecordT]:
        """
        Return every record in natural order.

        Trip days by date ascending, expenses and incomes by
        timestamp descending, members in insertion order.

        Raises:
            StoreUnavailable: If the backend cannot be reached
            StorageError: If the read fails
        """
        pass

    @abstractmethod
    async def get_record(self, record_id: str) -> Optional[RecordT]:
        """
        Retrieve a record by id.

        Returns:
            The record if found, None otherwise
        """
        pass

    @abstractmethod
    async def create_record(self, fields: dict) -> str:
        """
        Create a record from already-validated fields.

        Assigns a new identifier, and for timestamped collections a
        server-side timestamp unless one is supplied.

        Returns:
            The new record's id
        """
        pass

    @abstractmethod
    async def update_record(self, record_id: str, fields: dict) -> None:
        """
        Merge the supplied fields into an existing record.

        Only the supplied fields are written. A stored timestamp is
        left untouched unless a new one is part of `fields`.

        Raises:
            NotFoundError: If the record doesn't exist
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def remove_record(self, record_id: str) -> bool:
        """
        Delete a record. Idempotent.

        Returns:
            True if a record was removed, False if it was already absent
        """
        pass


class TripStore:
    """
    The four collections of one trip, handed around as a unit.

    Built once at process start and passed to the flows that need it.
    """

    def __init__(
        self,
        trip_days: RecordStoreInterface[TripDay],
        members: RecordStoreInterface[Member],
        expenses: RecordStoreInterface[Expense],
        incomes: RecordStoreInterface[Income],
    ):
        self.trip_days = trip_days
        self.members = members
        self.expenses = expenses
        self.incomes = incomes

    def for_collection(self, collection: Collection) -> RecordStoreInterface:
        return {
            Collection.TRIP_DAYS: self.trip_days,
            Collection.MEMBERS: self.members,
            Collection.EXPENSES: self.expenses,
            Collection.INCOMES: self.incomes,
        }[collection]


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Record not found in storage."""
    pass


class StoreUnavailable(StorageError):
    """Could not connect to storage backend."""
    pass
