"""
Collection Schemas

Maps each of the four collections to its record model and its
flat row layout. Both storage backends store rows of strings:

- identifiers are store-generated hex UUIDs
- amounts are decimal strings ("1500.00" stays exact)
- dates and timestamps are ISO-8601 strings, timestamps always in UTC

DESIGN DECISION: A single serialization format for every backend.
Mixing timestamp formats across reads and writes is a bug, so the
encoding lives here and nowhere else.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Generic, Optional, TypeVar
from uuid import uuid4

from pydantic import BaseModel

from tripbudget.models.records import Expense, Income, Member, TripDay


RecordT = TypeVar("RecordT", bound=BaseModel)


class Collection(str, Enum):
    """The four top-level collections."""
    TRIP_DAYS = "tripDays"
    MEMBERS = "members"
    EXPENSES = "expenses"
    INCOMES = "incomes"


def utcnow() -> datetime:
    """Server-side timestamp for newly created records."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive timestamps as UTC, convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def encode_value(value: Any) -> str:
    """Encode a single field value for a row cell."""
    if value is None:
        return ""
    if isinstance(value, datetime):
        return as_utc(value).isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


class CollectionSchema(Generic[RecordT]):
    """
    Row layout and ordering for one collection.

    Column 0 is always the record id.
    """

    def __init__(
        self,
        collection: Collection,
        model: type[RecordT],
        columns: list[str],
        sort_key: Optional[Callable[[RecordT], Any]] = None,
        sort_descending: bool = False,
        timestamp_field: Optional[str] = None,
    ):
        if columns[0] != "id":
            raise ValueError("First column must be 'id'")
        self.collection = collection
        self.model = model
        self.columns = columns
        self.sort_key = sort_key
        self.sort_descending = sort_descending
        self.timestamp_field = timestamp_field

    @property
    def name(self) -> str:
        return self.collection.value

    @property
    def is_timestamped(self) -> bool:
        return self.timestamp_field is not None

    def new_id(self) -> str:
        return uuid4().hex

    def build_record(self, record_id: str, fields: dict) -> RecordT:
        """
        Build the full record for a create.

        Timestamped collections get a server-side timestamp
        unless the caller supplied one.
        """
        data = {key: value for key, value in fields.items() if key != "id"}
        if self.is_timestamped:
            supplied = data.get(self.timestamp_field)
            data[self.timestamp_field] = as_utc(supplied) if supplied else utcnow()
        return self.model.model_validate({"id": record_id, **data})

    def to_row(self, record: RecordT) -> list[str]:
        return [encode_value(getattr(record, column)) for column in self.columns]

    def from_row(self, row: list) -> RecordT:
        """Parse a row. Raises if the row is malformed."""
        padded = list(row) + [""] * (len(self.columns) - len(row))
        data = dict(zip(self.columns, padded))
        return self.model.model_validate(data)

    def encode_patch(self, fields: dict) -> dict[str, str]:
        """
        Encode the supplied fields of an update, column by column.

        A None value means "not supplied" and is dropped. Fields that
        are not columns, and the id, are rejected.
        """
        patch = {}
        for key, value in fields.items():
            if key == "id" or key not in self.columns:
                raise ValueError(f"Unknown field for {self.name}: {key}")
            if value is None:
                continue
            patch[key] = encode_value(value)
        return patch

    def merge_row(self, row: list, patch: dict[str, str]) -> list[str]:
        """
        Apply an encoded patch to a stored row.

        The merged row must still parse; raises ValueError otherwise,
        so a bad patch never reaches the store.
        """
        merged = list(row) + [""] * (len(self.columns) - len(row))
        for column, value in patch.items():
            merged[self.columns.index(column)] = value
        self.from_row(merged)
        return merged

    def sort(self, records: list[RecordT]) -> list[RecordT]:
        """Natural ordering; insertion order when there is no sort key."""
        if self.sort_key is None:
            return list(records)
        return sorted(records, key=self.sort_key, reverse=self.sort_descending)


TRIP_DAYS_SCHEMA = CollectionSchema(
    collection=Collection.TRIP_DAYS,
    model=TripDay,
    columns=["id", "label", "date", "places", "budget"],
    sort_key=lambda day: day.date,
)

MEMBERS_SCHEMA = CollectionSchema(
    collection=Collection.MEMBERS,
    model=Member,
    columns=["id", "name", "role"],
)

_LEDGER_COLUMNS = ["id", "member_id", "member_name", "amount", "purpose", "timestamp"]

EXPENSES_SCHEMA = CollectionSchema(
    collection=Collection.EXPENSES,
    model=Expense,
    columns=_LEDGER_COLUMNS,
    sort_key=lambda entry: as_utc(entry.timestamp),
    sort_descending=True,
    timestamp_field="timestamp",
)

INCOMES_SCHEMA = CollectionSchema(
    collection=Collection.INCOMES,
    model=Income,
    columns=_LEDGER_COLUMNS,
    sort_key=lambda entry: as_utc(entry.timestamp),
    sort_descending=True,
    timestamp_field="timestamp",
)

SCHEMAS: dict[Collection, CollectionSchema] = {
    Collection.TRIP_DAYS: TRIP_DAYS_SCHEMA,
    Collection.MEMBERS: MEMBERS_SCHEMA,
    Collection.EXPENSES: EXPENSES_SCHEMA,
    Collection.INCOMES: INCOMES_SCHEMA,
}
