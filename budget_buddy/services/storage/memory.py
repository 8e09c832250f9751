"""
In-Memory Tabular Store

Behaves like the Sheets values API closely enough for tests and local
demos: A1-style ranges address a sheet and a column/row window, cells
come back as strings, and trailing blanks are trimmed.
"""

import re
from dataclasses import dataclass
from typing import Optional

from budget_buddy.errors import StoreError
from budget_buddy.services.storage.interface import Row, Rows, TabularStore

_A1_RANGE = re.compile(r"^([A-Z]*)(\d*)(?::([A-Z]*)(\d*))?$")


@dataclass(frozen=True)
class RangeRef:
    """A parsed A1 range. Indexes are zero-based and inclusive; None means open."""
    sheet: str
    start_col: int = 0
    start_row: int = 0
    end_col: Optional[int] = None
    end_row: Optional[int] = None


def column_index(letters: str) -> int:
    """'A' -> 0, 'Z' -> 25, 'AA' -> 26."""
    index = 0
    for char in letters:
        index = index * 26 + (ord(char) - ord("A") + 1)
    return index - 1


def parse_range(range_name: str) -> RangeRef:
    """Parse 'Sheet!A2:C' style ranges. A bare sheet name selects everything."""
    sheet, _, window = range_name.partition("!")
    sheet = sheet.strip("'")
    if not sheet:
        raise StoreError(
            "Range has no sheet name",
            operation="parse_range",
            collaborator="memory",
            offending_input=range_name,
        )
    if not window:
        return RangeRef(sheet=sheet)

    match = _A1_RANGE.match(window.upper())
    if not match:
        raise StoreError(
            "Unsupported range notation",
            operation="parse_range",
            collaborator="memory",
            offending_input=range_name,
        )
    start_col, start_row, end_col, end_row = match.groups()
    if end_col is None and end_row is None:
        # Single cell or single column
        end_col, end_row = start_col, start_row
    return RangeRef(
        sheet=sheet,
        start_col=column_index(start_col) if start_col else 0,
        start_row=int(start_row) - 1 if start_row else 0,
        end_col=column_index(end_col) if end_col else None,
        end_row=int(end_row) - 1 if end_row else None,
    )


def _trim(row: Row) -> Row:
    row = list(row)
    while row and row[-1] == "":
        row.pop()
    return row


class InMemoryTabularStore(TabularStore):
    """
    Tabular store backed by a dict of sheet name -> rows.

    Every append is recorded in `appends` so tests can assert on writes.
    """

    def __init__(self, sheets: Optional[dict[str, Rows]] = None):
        self._sheets: dict[str, Rows] = {
            name: [[self._to_cell(value) for value in row] for row in rows]
            for name, rows in (sheets or {}).items()
        }
        self.appends: list[tuple[str, Row]] = []
        self.read_count = 0

    @staticmethod
    def _to_cell(value) -> str:
        return "" if value is None else str(value)

    def sheet(self, name: str) -> Rows:
        """Raw rows of a sheet (for assertions)."""
        return self._sheets.get(name, [])

    def _read(self, range_name: str) -> Rows:
        ref = parse_range(range_name)
        if ref.sheet not in self._sheets:
            raise StoreError(
                f"Unable to parse range: {range_name}",
                operation="read_range",
                collaborator="memory",
                offending_input=range_name,
            )
        rows = self._sheets[ref.sheet]
        end_row = ref.end_row + 1 if ref.end_row is not None else None
        end_col = ref.end_col + 1 if ref.end_col is not None else None
        window = [_trim(row[ref.start_col:end_col]) for row in rows[ref.start_row:end_row]]
        while window and not window[-1]:
            window.pop()
        return window

    async def read_range(self, range_name: str) -> Rows:
        self.read_count += 1
        return self._read(range_name)

    async def batch_read(self, range_names: list[str]) -> list[Rows]:
        self.read_count += 1
        return [self._read(name) for name in range_names]

    async def append_row(self, range_name: str, row: Row) -> None:
        ref = parse_range(range_name)
        values = [""] * ref.start_col + [self._to_cell(value) for value in row]
        self._sheets.setdefault(ref.sheet, []).append(values)
        self.appends.append((range_name, list(row)))
