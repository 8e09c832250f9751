"""Tests for the Google Sheets store, against a fake gspread spreadsheet."""

import asyncio

import pytest

from budget_buddy.config import GoogleSheetsSettings
from budget_buddy.errors import StoreError
from budget_buddy.services.storage import GoogleSheetsClient


class FakeSpreadsheet:
    """Mimics the values_* methods of gspread.Spreadsheet."""

    def __init__(self, values=None, batch=None, error=None):
        self._values = values
        self._batch = batch
        self._error = error
        self.appended = []

    def values_get(self, range_name):
        if self._error:
            raise self._error
        return self._values

    def values_batch_get(self, ranges):
        if self._error:
            raise self._error
        return self._batch

    def values_append(self, range_name, params=None, body=None):
        if self._error:
            raise self._error
        self.appended.append((range_name, params, body))
        return {"updates": {"updatedRows": 1}}


@pytest.fixture
def settings():
    return GoogleSheetsSettings(spreadsheet_id="sheet-123", credentials_json="{}")


class TestGoogleSheetsClient:
    """Tests for GoogleSheetsClient."""

    def test_read_range(self, settings):
        """Test values are returned as rows."""
        spreadsheet = FakeSpreadsheet(values={"range": "budget!A1:B2", "values": [["a", "b"], ["c"]]})
        client = GoogleSheetsClient(settings, spreadsheet=spreadsheet)
        assert asyncio.run(client.read_range("budget!A:B")) == [["a", "b"], ["c"]]

    def test_read_empty_range(self, settings):
        """Test a range without values is an empty list."""
        client = GoogleSheetsClient(settings, spreadsheet=FakeSpreadsheet(values={"range": "x"}))
        assert asyncio.run(client.read_range("budget!A:B")) == []

    def test_batch_read(self, settings):
        """Test one result per requested range, in order."""
        spreadsheet = FakeSpreadsheet(batch={"valueRanges": [{"values": [["id"]]}, {}]})
        client = GoogleSheetsClient(settings, spreadsheet=spreadsheet)
        assert asyncio.run(client.batch_read(["a!A:A", "b!A:C"])) == [[["id"]], []]

    def test_batch_read_wrong_count(self, settings):
        """Test a response with a missing range is a StoreError."""
        spreadsheet = FakeSpreadsheet(batch={"valueRanges": [{"values": []}]})
        client = GoogleSheetsClient(settings, spreadsheet=spreadsheet)
        with pytest.raises(StoreError):
            asyncio.run(client.batch_read(["a!A:A", "b!A:C"]))

    def test_malformed_values(self, settings):
        """Test non-list values are a StoreError."""
        client = GoogleSheetsClient(settings, spreadsheet=FakeSpreadsheet(values={"values": "oops"}))
        with pytest.raises(StoreError):
            asyncio.run(client.read_range("budget!A:B"))

    def test_append_row(self, settings):
        """Test rows are appended with user-entered semantics."""
        spreadsheet = FakeSpreadsheet()
        client = GoogleSheetsClient(settings, spreadsheet=spreadsheet)
        asyncio.run(client.append_row("raw_transactions!A:J", ["id", "2026-02-11"]))

        range_name, params, body = spreadsheet.appended[0]
        assert range_name == "raw_transactions!A:J"
        assert params == {"valueInputOption": "USER_ENTERED"}
        assert body == {"values": [["id", "2026-02-11"]]}

    def test_api_errors_are_wrapped(self, settings):
        """Test gspread failures surface as StoreError with context."""
        client = GoogleSheetsClient(settings, spreadsheet=FakeSpreadsheet(error=ConnectionError("reset")))
        with pytest.raises(StoreError) as exc_info:
            asyncio.run(client.append_row("raw_transactions!A:J", ["x"]))
        assert exc_info.value.operation == "append_row"
        assert exc_info.value.collaborator == "google_sheets"
        assert exc_info.value.offending_input == "raw_transactions!A:J"
