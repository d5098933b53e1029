"""
Tests for the Google Sheets backend.

A fake worksheet stands in for gspread so no network calls are made.
"""

import asyncio
from datetime import datetime, timezone
from decimal import Decimal

import pytest
from gspread.utils import a1_to_rowcol

from tripbudget.config import GoogleSheetsSettings
from tripbudget.services.storage import (
    Collection,
    GoogleSheetsClient,
    NotFoundError,
    SCHEMAS,
    StorageError,
    create_sheets_trip_store,
)


class FakeWorksheet:
    """The subset of gspread.Worksheet the store uses."""

    def __init__(self, header):
        self.rows = [list(header)]
        self.batch_calls = []

    def get_all_values(self):
        return [list(row) for row in self.rows]

    def col_values(self, col):
        return [row[col - 1] if len(row) >= col else "" for row in self.rows]

    def row_values(self, row):
        return list(self.rows[row - 1])

    def append_row(self, values, value_input_option=None):
        self.rows.append([str(v) for v in values])

    def batch_update(self, data, value_input_option=None):
        self.batch_calls.append(data)
        for cell in data:
            row, col = a1_to_rowcol(cell["range"])
            self.rows[row - 1][col - 1] = cell["values"][0][0]

    def delete_rows(self, index):
        del self.rows[index - 1]


class FailingWorksheet(FakeWorksheet):
    def row_values(self, row):
        raise RuntimeError("quota exceeded")


class TimeoutAfterAppendWorksheet(FakeWorksheet):
    """Stores the first appended row, then loses the response."""

    def __init__(self, header):
        super().__init__(header)
        self.timeouts_left = 1

    def append_row(self, values, value_input_option=None):
        super().append_row(values, value_input_option)
        if self.timeouts_left and len(self.rows) > 1:
            self.timeouts_left -= 1
            raise RuntimeError("read timeout")


class FakeSheetsClient:
    """Hands out one fake worksheet per collection."""

    def __init__(self, worksheet_class=FakeWorksheet):
        self.sheets = {
            collection: worksheet_class(schema.columns)
            for collection, schema in SCHEMAS.items()
        }

    def get_collection_sheet(self, schema):
        return self.sheets[schema.collection]


@pytest.fixture
def client():
    return FakeSheetsClient()


@pytest.fixture
def store(client):
    return create_sheets_trip_store(client)


def add_expense(store, **overrides):
    fields = {
        "member_id": "m1",
        "member_name": "Alice",
        "amount": Decimal("200.00"),
        "purpose": "Gas",
        "timestamp": datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc),
    }
    fields.update(overrides)
    return asyncio.run(store.expenses.create_record(fields))


class TestGoogleSheetsStore:
    """Tests for GoogleSheetsRecordStore against a fake worksheet."""

    def test_create_appends_encoded_row(self, store, client):
        expense_id = add_expense(store)
        sheet = client.sheets[Collection.EXPENSES]

        assert sheet.rows[0] == ["id", "member_id", "member_name", "amount", "purpose", "timestamp"]
        assert sheet.rows[1] == [expense_id, "m1", "Alice", "200.00", "Gas", "2024-05-01T09:00:00+00:00"]

    def test_get_record(self, store):
        expense_id = add_expense(store)
        expense = asyncio.run(store.expenses.get_record(expense_id))

        assert expense.amount == Decimal("200.00")
        assert expense.timestamp == datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)

    def test_get_missing_record(self, store):
        assert asyncio.run(store.members.get_record("nope")) is None

    def test_update_writes_only_supplied_cells(self, store, client):
        """Test that a merge update is one batch touching only the given columns."""
        expense_id = add_expense(store)
        sheet = client.sheets[Collection.EXPENSES]

        asyncio.run(store.expenses.update_record(expense_id, {"amount": Decimal("250.00")}))

        assert len(sheet.batch_calls) == 1
        assert sheet.batch_calls[0] == [{"range": "D2", "values": [["250.00"]]}]
        assert sheet.rows[1][5] == "2024-05-01T09:00:00+00:00"

    def test_update_missing_record(self, store):
        with pytest.raises(NotFoundError):
            asyncio.run(store.members.update_record("nope", {"name": "Bob"}))

    def test_remove_is_idempotent(self, store, client):
        expense_id = add_expense(store)

        assert asyncio.run(store.expenses.remove_record(expense_id)) is True
        assert asyncio.run(store.expenses.remove_record(expense_id)) is False
        assert len(client.sheets[Collection.EXPENSES].rows) == 1

    def test_list_skips_blank_and_malformed_rows(self, store, client):
        """Test that hand-edited rows do not break the whole collection."""
        good_id = add_expense(store)
        sheet = client.sheets[Collection.EXPENSES]
        sheet.rows.append(["", "", "", "", "", ""])
        sheet.rows.append(["bad", "m1", "Alice", "lots", "Gas", "yesterday"])

        expenses = asyncio.run(store.expenses.list_records())

        assert [e.id for e in expenses] == [good_id]

    def test_list_sorted_newest_first(self, store):
        add_expense(store, purpose="Breakfast", timestamp=datetime(2024, 5, 1, 8, 0, tzinfo=timezone.utc))
        add_expense(store, purpose="Dinner", timestamp=datetime(2024, 5, 1, 20, 0, tzinfo=timezone.utc))

        expenses = asyncio.run(store.expenses.list_records())
        assert [e.purpose for e in expenses] == ["Dinner", "Breakfast"]

    def test_lost_append_response_does_not_duplicate(self):
        """Test that retrying a create after a timeout keeps a single row."""
        client = FakeSheetsClient(TimeoutAfterAppendWorksheet)
        store = create_sheets_trip_store(client)

        expense_id = add_expense(store)

        expenses = asyncio.run(store.expenses.list_records())
        assert [e.id for e in expenses] == [expense_id]
        assert client.sheets[Collection.EXPENSES].timeouts_left == 0

    def test_update_with_none_timestamp_keeps_it(self, store, client):
        expense_id = add_expense(store)

        asyncio.run(store.expenses.update_record(
            expense_id, {"amount": Decimal("250.00"), "timestamp": None},
        ))

        sheet = client.sheets[Collection.EXPENSES]
        assert sheet.batch_calls == [[{"range": "D2", "values": [["250.00"]]}]]
        assert len(asyncio.run(store.expenses.list_records())) == 1

    def test_update_that_breaks_row_writes_nothing(self, store, client):
        expense_id = add_expense(store)

        with pytest.raises(ValueError):
            asyncio.run(store.expenses.update_record(expense_id, {"timestamp": "yesterday"}))

        sheet = client.sheets[Collection.EXPENSES]
        assert sheet.batch_calls == []
        assert sheet.rows[1][5] == "2024-05-01T09:00:00+00:00"

    def test_get_malformed_row_returns_none(self, store, client):
        """Test that a hand-edited member row reads as absent instead of raising."""
        sheet = client.sheets[Collection.MEMBERS]
        sheet.rows.append(["m1", "A", ""])

        assert asyncio.run(store.members.get_record("m1")) is None

    def test_backend_errors_become_storage_errors(self):
        store = create_sheets_trip_store(FakeSheetsClient(FailingWorksheet))
        expense_id = add_expense(store)

        with pytest.raises(StorageError):
            asyncio.run(store.expenses.get_record(expense_id))


class TestGoogleSheetsClient:
    """Tests for the client wrapper that do not need a connection."""

    def test_sheet_names_default_to_collection_names(self, tmp_path):
        credentials = tmp_path / "credentials.json"
        credentials.write_text("{}")
        settings = GoogleSheetsSettings(
            credentials_path=str(credentials),
            spreadsheet_id="sheet-123",
        )
        client = GoogleSheetsClient(settings)

        assert client.sheet_name(Collection.TRIP_DAYS) == "tripDays"
        assert client.sheet_name(Collection.INCOMES) == "incomes"

    def test_custom_sheet_name(self, tmp_path):
        credentials = tmp_path / "credentials.json"
        credentials.write_text("{}")
        settings = GoogleSheetsSettings(
            credentials_path=str(credentials),
            spreadsheet_id="sheet-123",
            expenses_sheet_name="Spend",
        )
        assert GoogleSheetsClient(settings).sheet_name(Collection.EXPENSES) == "Spend"
