"""Services package."""

from budget_buddy.services.classifier import (
    CategoryClassifier,
    GeminiCategoryClassifier,
    parse_classifier_response,
)
from budget_buddy.services.storage import (
    GoogleSheetsClient,
    InMemoryTabularStore,
    NotFoundError,
    StoreError,
    TabularStore,
)

__all__ = [
    # Classifier services
    "CategoryClassifier",
    "GeminiCategoryClassifier",
    "parse_classifier_response",
    # Storage services
    "GoogleSheetsClient",
    "InMemoryTabularStore",
    "NotFoundError",
    "StoreError",
    "TabularStore",
]
