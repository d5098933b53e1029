"""
Storage Services Package

Provides the abstract record store interface and concrete implementations.
Google Sheets is the production backend; the in-memory backend serves tests
and credential-less runs.
"""

from tripbudget.services.storage.interface import (
    NotFoundError,
    RecordStoreInterface,
    StorageError,
    StoreUnavailable,
    TripStore,
)
from tripbudget.services.storage.schema import (
    SCHEMAS,
    Collection,
    CollectionSchema,
)
from tripbudget.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsRecordStore,
    create_sheets_trip_store,
)
from tripbudget.services.storage.memory import (
    InMemoryRecordStore,
    create_memory_trip_store,
)

__all__ = [
    # Interfaces
    "RecordStoreInterface",
    "TripStore",
    # Schemas
    "SCHEMAS",
    "Collection",
    "CollectionSchema",
    # Exceptions
    "NotFoundError",
    "StorageError",
    "StoreUnavailable",
    # Google Sheets implementation
    "GoogleSheetsClient",
    "GoogleSheetsRecordStore",
    "create_sheets_trip_store",
    # In-memory implementation
    "InMemoryRecordStore",
    "create_memory_trip_store",
]
