"""Services package."""

from tripbudget.services.storage import (
    Collection,
    GoogleSheetsClient,
    GoogleSheetsRecordStore,
    InMemoryRecordStore,
    NotFoundError,
    RecordStoreInterface,
    StorageError,
    StoreUnavailable,
    TripStore,
    create_memory_trip_store,
    create_sheets_trip_store,
)

__all__ = [
    "Collection",
    "GoogleSheetsClient",
    "GoogleSheetsRecordStore",
    "InMemoryRecordStore",
    "NotFoundError",
    "RecordStoreInterface",
    "StorageError",
    "StoreUnavailable",
    "TripStore",
    "create_memory_trip_store",
    "create_sheets_trip_store",
]
