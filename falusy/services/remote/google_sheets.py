"""
Google Sheets Remote Data Service

DESIGN DECISION: Google Sheets can serve as the hosted document store because:
1. A small business owner can open their data directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)
4. Easy to export/migrate later

Layout: one worksheet per collection, one document per row:
    id | userId | data_json | updated_at

TRADEOFFS:
- No server push: live queries poll and emit a Snapshot only when the
  result set changed
- No transactions (callers already tolerate non-atomic cascades)
- Equality filtering happens in Python after reading the sheet
"""

import asyncio
import datetime as dt
import json
from decimal import Decimal
from typing import Any, Optional
from uuid import uuid4

import gspread
import structlog
from google.oauth2.service_account import Credentials
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from falusy.config import get_settings
from falusy.services.remote.interface import (
    Collection,
    LiveQuery,
    NotFoundError,
    PermissionDeniedError,
    RemoteDataService,
    RemoteError,
    ServiceUnavailableError,
    Snapshot,
    SubscriptionError,
    matches,
)


logger = structlog.get_logger(__name__)

DOCUMENT_COLUMNS = [
    "id",
    "userId",
    "data_json",
    "updated_at",
]

SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/drive",
]


def _json_default(value: Any) -> Any:
    if isinstance(value, (dt.datetime, dt.date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def classify_error(exc: Exception) -> RemoteError:
    """Map a gspread/transport failure to a structured RemoteError."""
    if isinstance(exc, RemoteError):
        return exc
    if isinstance(exc, gspread.exceptions.APIError):
        status = getattr(exc, "code", None)
        if status is None and getattr(exc, "response", None) is not None:
            status = exc.response.status_code
        if status in (401, 403):
            return PermissionDeniedError(str(exc))
        if status == 404:
            return NotFoundError(str(exc))
    if isinstance(exc, gspread.exceptions.SpreadsheetNotFound):
        return NotFoundError(f"Spreadsheet not found: {exc}")
    return ServiceUnavailableError(f"Google Sheets request failed: {exc}")


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._worksheets: dict[Collection, gspread.Worksheet] = {}
        self._settings = get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(ServiceUnavailableError),
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
                raise PermissionDeniedError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise classify_error(e)

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except Exception as e:
                raise classify_error(e)
        return self._spreadsheet

    def get_worksheet(self, collection: Collection) -> gspread.Worksheet:
        """Get or create the worksheet backing a collection."""
        if collection not in self._worksheets:
            spreadsheet = self.get_spreadsheet()
            try:
                sheet = spreadsheet.worksheet(collection.value)
            except gspread.WorksheetNotFound:
                # Create the sheet with headers
                sheet = spreadsheet.add_worksheet(
                    title=collection.value,
                    rows=1000,
                    cols=len(DOCUMENT_COLUMNS),
                )
                sheet.append_row(DOCUMENT_COLUMNS)
            self._worksheets[collection] = sheet
        return self._worksheets[collection]


class PollingLiveQuery(LiveQuery):
    """
    Live query emulated by polling.

    Emits the first result set right away, then a Snapshot whenever the
    serialized result changes. A failing poll is reported once as a
    SubscriptionError; polling continues and the first successful poll
    after an outage is always delivered.
    """

    def __init__(
        self,
        service: "GoogleSheetsRemoteDataService",
        collection: Collection,
        where: Optional[dict[str, Any]],
        interval: float,
    ):
        self._service = service
        self._collection = collection
        self._where = dict(where or {})
        self._interval = interval
        self._closed = asyncio.Event()

    async def __aiter__(self):
        last_seen: Optional[str] = None
        failing = False
        while not self._closed.is_set():
            try:
                documents = await self._service.query(self._collection, **self._where)
            except RemoteError as e:
                if not failing:
                    failing = True
                    last_seen = None
                    yield SubscriptionError(e)
                else:
                    logger.debug(
                        "live_query_still_failing",
                        collection=self._collection.value,
                        kind=e.kind.value,
                    )
            else:
                failing = False
                fingerprint = json.dumps(documents, sort_keys=True, default=_json_default)
                if fingerprint != last_seen:
                    last_seen = fingerprint
                    yield Snapshot(documents)
            try:
                await asyncio.wait_for(self._closed.wait(), timeout=self._interval)
            except asyncio.TimeoutError:
                continue

    async def close(self) -> None:
        self._closed.set()


class GoogleSheetsRemoteDataService(RemoteDataService):
    """
    Google Sheets implementation of the remote document service.

    Documents are JSON-serialized into the data_json column; userId is
    duplicated into its own column so the sheet stays readable.

    gspread is synchronous, so every sheet call runs in a worker thread
    through asyncio.to_thread.
    """

    def __init__(
        self,
        client: Optional[GoogleSheetsClient] = None,
        poll_interval: Optional[float] = None,
    ):
        self._client = client or GoogleSheetsClient()
        self._poll_interval = poll_interval or get_settings().remote.poll_interval_seconds

    def _document_to_row(self, doc_id: str, data: dict[str, Any]) -> list:
        payload = {key: value for key, value in data.items() if key != "id"}
        return [
            doc_id,
            str(payload.get("userId") or ""),
            json.dumps(payload, default=_json_default, ensure_ascii=False),
            dt.datetime.now(dt.timezone.utc).isoformat(),
        ]

    def _row_to_document(self, row: list) -> dict[str, Any]:
        data = json.loads(row[2]) if len(row) > 2 and row[2] else {}
        data["id"] = row[0]
        return data

    # ------------------------------------------------------------------
    # Blocking sheet access (run in worker threads)
    # ------------------------------------------------------------------

    def _rows(self, collection: Collection) -> list[list]:
        try:
            return self._client.get_worksheet(collection).get_all_values()[1:]
        except Exception as e:
            raise classify_error(e)

    def _find_row(self, collection: Collection, doc_id: str) -> Optional[int]:
        """1-based sheet row index of a document (row 1 is the header)."""
        for idx, row in enumerate(self._rows(collection), start=2):
            if row and row[0] == doc_id:
                return idx
        return None

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(ServiceUnavailableError),
        reraise=True,
    )
    def _append(self, collection: Collection, row: list) -> None:
        try:
            self._client.get_worksheet(collection).append_row(row, value_input_option="RAW")
        except Exception as e:
            raise classify_error(e)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(ServiceUnavailableError),
        reraise=True,
    )
    def _write(self, collection: Collection, doc_id: str, data: dict[str, Any]) -> None:
        row_index = self._find_row(collection, doc_id)
        row = self._document_to_row(doc_id, data)
        try:
            sheet = self._client.get_worksheet(collection)
            if row_index is None:
                sheet.append_row(row, value_input_option="RAW")
            else:
                sheet.update(range_name=f"A{row_index}:D{row_index}", values=[row])
        except Exception as e:
            raise classify_error(e)

    def _remove(self, collection: Collection, doc_id: str) -> None:
        row_index = self._find_row(collection, doc_id)
        if row_index is None:
            return
        try:
            self._client.get_worksheet(collection).delete_rows(row_index)
        except Exception as e:
            raise classify_error(e)

    # ------------------------------------------------------------------
    # RemoteDataService
    # ------------------------------------------------------------------

    async def create(self, collection: Collection, data: dict[str, Any]) -> str:
        doc_id = uuid4().hex
        await asyncio.to_thread(self._append, collection, self._document_to_row(doc_id, data))
        return doc_id

    async def set(self, collection: Collection, doc_id: str, data: dict[str, Any]) -> None:
        await asyncio.to_thread(self._write, collection, doc_id, data)

    async def update(self, collection: Collection, doc_id: str, changes: dict[str, Any]) -> None:
        existing = await self.get(collection, doc_id)
        if existing is None:
            raise NotFoundError(f"{collection.value}/{doc_id} does not exist")
        await self.set(collection, doc_id, {**existing, **changes})

    async def delete(self, collection: Collection, doc_id: str) -> None:
        await asyncio.to_thread(self._remove, collection, doc_id)

    async def get(self, collection: Collection, doc_id: str) -> Optional[dict[str, Any]]:
        for row in await asyncio.to_thread(self._rows, collection):
            if row and row[0] == doc_id:
                return self._row_to_document(row)
        return None

    async def query(self, collection: Collection, **equals: Any) -> list[dict[str, Any]]:
        documents = []
        for row in await asyncio.to_thread(self._rows, collection):
            if not row or not row[0]:  # Skip empty rows
                continue
            try:
                document = self._row_to_document(row)
            except ValueError:
                logger.warning(
                    "malformed_sheet_row",
                    collection=collection.value,
                    doc_id=row[0],
                )
                continue
            if matches(document, equals):
                documents.append(document)
        return documents

    def subscribe(
        self,
        collection: Collection,
        where: Optional[dict[str, Any]] = None,
    ) -> LiveQuery:
        return PollingLiveQuery(self, collection, where, self._poll_interval)
