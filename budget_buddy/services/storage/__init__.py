"""
Storage Services Package

Provides the abstract tabular store interface and its implementations.
Google Sheets is the production backend; the in-memory store is used
by tests and offline demos.
"""

from budget_buddy.services.storage.interface import (
    NotFoundError,
    Row,
    Rows,
    StoreError,
    TabularStore,
)
from budget_buddy.services.storage.google_sheets import GoogleSheetsClient
from budget_buddy.services.storage.memory import InMemoryTabularStore, parse_range

__all__ = [
    # Interface
    "Row",
    "Rows",
    "TabularStore",
    # Exceptions
    "NotFoundError",
    "StoreError",
    # Implementations
    "GoogleSheetsClient",
    "InMemoryTabularStore",
    "parse_range",
]
