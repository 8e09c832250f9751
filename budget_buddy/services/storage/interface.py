"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for tabular storage.
This allows us to:
1. Swap Google Sheets for a real database later
2. Use in-memory storage for testing
3. Keep ingestion and query logic decoupled from the Sheets API

The interface is intentionally tiny: named rectangular ranges that can
be read, batch-read, or appended to. There are no in-place updates or
deletes - the transaction log is append-only.

IMPORTANT: Implementations do NOT guarantee atomicity of concurrent
appends. Two writers racing on read-then-append can both succeed.
"""

from abc import ABC, abstractmethod

from budget_buddy.errors import NotFoundError, StoreError

Row = list
Rows = list[Row]


class TabularStore(ABC):
    """
    Read/append access to named ranges (e.g. "raw_transactions!A:J").

    Rows are returned as lists of cell values, header row included.
    Trailing empty cells may be omitted, so rows can be ragged.
    """

    @abstractmethod
    async def read_range(self, range_name: str) -> Rows:
        """
        Read all rows of a range.

        Raises:
            StoreError: If the store is unreachable or the response is malformed
        """
        pass

    @abstractmethod
    async def batch_read(self, range_names: list[str]) -> list[Rows]:
        """
        Read several ranges in one round trip.

        Returns one list of rows per requested range, in request order.

        Raises:
            StoreError: If the store is unreachable or the response is malformed
        """
        pass

    @abstractmethod
    async def append_row(self, range_name: str, row: Row) -> None:
        """
        Append a single row after the last row of the range.

        Raises:
            StoreError: If the write fails
        """
        pass


__all__ = ["NotFoundError", "Row", "Rows", "StoreError", "TabularStore"]
