"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is the storage backend because:
1. The user can view and edit their budget, lookup map and stats directly
2. No database setup required
3. Monthly stats are computed by sheet formulas, not by this code

TRADEOFFS:
- No transactions: read-then-append is not atomic (see DESIGN.md)
- Limited query capabilities (we filter in Python)

gspread is synchronous, so every API call is pushed to a worker thread
with asyncio.to_thread; independent reads can then run concurrently.
"""

import asyncio
import json
from typing import Any, Callable, Optional

import gspread
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from budget_buddy.config import GoogleSheetsSettings, get_settings
from budget_buddy.errors import StoreError
from budget_buddy.services.storage.interface import Row, Rows, TabularStore

SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets",
]


class GoogleSheetsClient(TabularStore):
    """
    Tabular store backed by the Google Sheets values API.

    Handles authentication, and wraps every API failure in a StoreError
    naming the operation and range. Only the connection step is retried;
    reads and appends are not, so a failed append is never replayed.
    """

    def __init__(
        self,
        settings: Optional[GoogleSheetsSettings] = None,
        spreadsheet: Optional[gspread.Spreadsheet] = None,
    ):
        # Loading settings here makes missing credentials fail at startup
        self._settings = settings or get_settings().google_sheets
        self._client: Optional[gspread.Client] = None
        self._spreadsheet = spreadsheet

    @property
    def settings(self) -> GoogleSheetsSettings:
        return self._settings

    def _credentials(self) -> Credentials:
        if self._settings.credentials_json:
            info = json.loads(self._settings.credentials_json)
            return Credentials.from_service_account_info(info, scopes=SCOPES)
        return Credentials.from_service_account_file(
            self._settings.credentials_path,
            scopes=SCOPES,
        )

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
                self._client = gspread.authorize(self._credentials())
            except FileNotFoundError as e:
                raise StoreError(
                    f"Google credentials file not found: {self._settings.credentials_path}",
                    operation="connect",
                    collaborator="google_sheets",
                ) from e
            except json.JSONDecodeError as e:
                raise StoreError(
                    "Google credentials JSON is not valid JSON",
                    operation="connect",
                    collaborator="google_sheets",
                ) from e
            except Exception as e:
                raise StoreError(
                    f"Failed to connect to Google Sheets: {e}",
                    operation="connect",
                    collaborator="google_sheets",
                ) from e

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(self._settings.spreadsheet_id)
            except gspread.SpreadsheetNotFound as e:
                raise StoreError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}",
                    operation="open_spreadsheet",
                    collaborator="google_sheets",
                ) from e
        return self._spreadsheet

    async def _call(self, operation: str, target: Any, func: Callable[[gspread.Spreadsheet], Any]) -> Any:
        """Run a blocking gspread call in a thread, wrapping failures."""
        try:
            spreadsheet = await asyncio.to_thread(self.get_spreadsheet)
            return await asyncio.to_thread(func, spreadsheet)
        except StoreError:
            raise
        except Exception as e:
            raise StoreError(
                f"Google Sheets {operation} failed: {e}",
                operation=operation,
                collaborator="google_sheets",
                offending_input=target,
            ) from e

    @staticmethod
    def _values(value_range: Any, operation: str, target: Any) -> Rows:
        if not isinstance(value_range, dict):
            raise StoreError(
                "Malformed response from Google Sheets",
                operation=operation,
                collaborator="google_sheets",
                offending_input=target,
            )
        values = value_range.get("values", [])
        if not isinstance(values, list) or not all(isinstance(row, list) for row in values):
            raise StoreError(
                "Malformed values in Google Sheets response",
                operation=operation,
                collaborator="google_sheets",
                offending_input=target,
            )
        return values

    async def read_range(self, range_name: str) -> Rows:
        response = await self._call(
            "read_range",
            range_name,
            lambda spreadsheet: spreadsheet.values_get(range_name),
        )
        return self._values(response, "read_range", range_name)

    async def batch_read(self, range_names: list[str]) -> list[Rows]:
        response = await self._call(
            "batch_read",
            range_names,
            lambda spreadsheet: spreadsheet.values_batch_get(range_names),
        )
        value_ranges = response.get("valueRanges") if isinstance(response, dict) else None
        if not isinstance(value_ranges, list) or len(value_ranges) != len(range_names):
            raise StoreError(
                "Google Sheets batch read returned the wrong number of ranges",
                operation="batch_read",
                collaborator="google_sheets",
                offending_input=range_names,
            )
        return [self._values(value_range, "batch_read", range_names) for value_range in value_ranges]

    async def append_row(self, range_name: str, row: Row) -> None:
        await self._call(
            "append_row",
            range_name,
            lambda spreadsheet: spreadsheet.values_append(
                range_name,
                params={"valueInputOption": "USER_ENTERED"},
                body={"values": [row]},
            ),
        )
