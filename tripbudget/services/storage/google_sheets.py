"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is used as the storage backend because:
1. Trip organizers can view the ledger directly in Sheets
2. No database setup required
3. Easy to export at the end of the trip

Each collection is one worksheet: a header row, then one record per row.
Column A holds the store-generated id.

TRADEOFFS:
- No transactions across worksheets; the four collections are read
  independently and may reflect slightly different points in time
- Limited query capabilities (we sort and filter in Python)

Updates are a merge: only the cells of the supplied fields are written,
in a single batch request. The stored timestamp is never read and
re-written to preserve it.
"""

from typing import Optional

import gspread
import structlog
from google.oauth2.service_account import Credentials
from gspread.utils import rowcol_to_a1
from tenacity import (
    retry,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from tripbudget.config import GoogleSheetsSettings
from tripbudget.services.storage.interface import (
    NotFoundError,
    RecordStoreInterface,
    StorageError,
    StoreUnavailable,
    TripStore,
)
from tripbudget.services.storage.schema import (
    EXPENSES_SCHEMA,
    INCOMES_SCHEMA,
    MEMBERS_SCHEMA,
    TRIP_DAYS_SCHEMA,
    Collection,
    CollectionSchema,
    RecordT,
)


logger = structlog.get_logger(__name__)

SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/drive",
]

# Retry transient backend failures only. Bad input and missing records
# fail the same way every time; connect() already retries on its own.
_with_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    retry=retry_if_not_exception_type((NotFoundError, StoreUnavailable, ValueError)),
    reraise=True,
)


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    Constructed once from explicit settings and shared by the four
    collection stores; it connects lazily on first use.
    """

    def __init__(self, settings: GoogleSheetsSettings):
        self._settings = settings
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._worksheets: dict[Collection, gspread.Worksheet] = {}

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=SCOPES,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise StoreUnavailable(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise StoreUnavailable(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise StoreUnavailable(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def sheet_name(self, collection: Collection) -> str:
        return {
            Collection.TRIP_DAYS: self._settings.trip_days_sheet_name,
            Collection.MEMBERS: self._settings.members_sheet_name,
            Collection.EXPENSES: self._settings.expenses_sheet_name,
            Collection.INCOMES: self._settings.incomes_sheet_name,
        }[collection]

    def get_collection_sheet(self, schema: CollectionSchema) -> gspread.Worksheet:
        """Get or create the worksheet for a collection."""
        if schema.collection in self._worksheets:
            return self._worksheets[schema.collection]

        spreadsheet = self.get_spreadsheet()
        title = self.sheet_name(schema.collection)
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=1000,
                cols=len(schema.columns),
            )
            sheet.append_row(schema.columns)
            logger.info("worksheet_created", collection=schema.name, title=title)

        self._worksheets[schema.collection] = sheet
        return sheet


class GoogleSheetsRecordStore(RecordStoreInterface[RecordT]):
    """
    Google Sheets implementation of one collection.

    Values are written RAW so amounts and ISO timestamps come back
    exactly as they were stored.
    """

    def __init__(self, schema: CollectionSchema, client: GoogleSheetsClient):
        self.schema = schema
        self._client = client

    def _sheet(self) -> gspread.Worksheet:
        return self._client.get_collection_sheet(self.schema)

    def _find_row_index(self, sheet: gspread.Worksheet, record_id: str) -> Optional[int]:
        """1-based sheet row for a record id, None if absent."""
        ids = sheet.col_values(1)
        for idx, value in enumerate(ids[1:], start=2):  # Row 1 is the header
            if value == record_id:
                return idx
        return None

    @_with_retry
    async def list_records(self) -> list[RecordT]:
        try:
            all_rows = self._sheet().get_all_values()[1:]  # Skip header
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to list {self.schema.name}: {e}")

        records = []
        for row in all_rows:
            if not row or not row[0]:  # Skip empty rows
                continue
            try:
                records.append(self.schema.from_row(row))
            except ValueError as e:
                logger.warning(
                    "malformed_row_skipped",
                    collection=self.schema.name,
                    record_id=row[0],
                    error=str(e),
                )
        return self.schema.sort(records)

    async def get_record(self, record_id: str) -> Optional[RecordT]:
        try:
            sheet = self._sheet()
            row_idx = self._find_row_index(sheet, record_id)
            if row_idx is None:
                return None
            row = sheet.row_values(row_idx)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to get {self.schema.name} record: {e}")

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
        # The id is fixed before the first attempt so a retry can tell
        # whether an earlier append already landed.
        record_id = self.schema.new_id()
        record = self.schema.build_record(record_id, fields)
        await self._append_once(record_id, self.schema.to_row(record))
        return record_id

    @_with_retry
    async def _append_once(self, record_id: str, row: list[str]) -> None:
        try:
            sheet = self._sheet()
            if self._find_row_index(sheet, record_id) is not None:
                logger.info(
                    "append_already_applied",
                    collection=self.schema.name,
                    record_id=record_id,
                )
                return
            sheet.append_row(row, value_input_option="RAW")
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to create {self.schema.name} record: {e}")

    @_with_retry
    async def update_record(self, record_id: str, fields: dict) -> None:
        patch = self.schema.encode_patch(fields)
        try:
            sheet = self._sheet()
            row_idx = self._find_row_index(sheet, record_id)
            if row_idx is None:
                raise NotFoundError(
                    f"{self.schema.name} record not found: {record_id}"
                )
            if not patch:
                return
            row = sheet.row_values(row_idx)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update {self.schema.name} record: {e}")

        # Raises ValueError before anything is written
        self.schema.merge_row(row, patch)

        cells = [
            {
                "range": rowcol_to_a1(row_idx, self.schema.columns.index(column) + 1),
                "values": [[value]],
            }
            for column, value in patch.items()
        ]
        try:
            sheet.batch_update(cells, value_input_option="RAW")
        except Exception as e:
            raise StorageError(f"Failed to update {self.schema.name} record: {e}")

    @_with_retry
    async def remove_record(self, record_id: str) -> bool:
        try:
            sheet = self._sheet()
            row_idx = self._find_row_index(sheet, record_id)
            if row_idx is None:
                return False
            sheet.delete_rows(row_idx)
            return True
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to delete {self.schema.name} record: {e}")


def create_sheets_trip_store(client: GoogleSheetsClient) -> TripStore:
    """Build the four collection stores on one shared client."""
    return TripStore(
        trip_days=GoogleSheetsRecordStore(TRIP_DAYS_SCHEMA, client),
        members=GoogleSheetsRecordStore(MEMBERS_SCHEMA, client),
        expenses=GoogleSheetsRecordStore(EXPENSES_SCHEMA, client),
        incomes=GoogleSheetsRecordStore(INCOMES_SCHEMA, client),
    )
