"""
Shared fixtures for Budget Buddy tests.

No real API calls: the store is an InMemoryTabularStore and the
classifier/LLM collaborators are small fakes.
"""

from decimal import Decimal

import pytest

from budget_buddy.errors import ClassifierError
from budget_buddy.models.transaction import ClassifierVerdict
from budget_buddy.services.classifier import CategoryClassifier
from budget_buddy.services.storage import InMemoryTabularStore

TXN_HEADER = [
    "id", "date", "merchant", "amount", "category", "sentiment",
    "confidence", "source", "city", "recorded_at",
]


class FakeClassifier(CategoryClassifier):
    """Returns a fixed verdict and records every call."""

    def __init__(self, verdict=None):
        self.verdict = verdict or ClassifierVerdict(
            category="Eating Out", sentiment="Discretionary", confidence=0.9
        )
        self.calls = []

    async def classify(self, merchant_name: str, merchant_hint: str, amount: Decimal):
        self.calls.append((merchant_name, merchant_hint, amount))
        return self.verdict


class FailingClassifier(CategoryClassifier):
    """Always fails, like a classifier that is down."""

    def __init__(self, error: Exception = None):
        self.error = error or ClassifierError("timeout", operation="classify", collaborator="fake")
        self.calls = 0

    async def classify(self, merchant_name: str, merchant_hint: str, amount: Decimal):
        self.calls += 1
        raise self.error


class FailingAppendStore(InMemoryTabularStore):
    """Reads work, appends fail."""

    async def append_row(self, range_name, row):
        raise ConnectionError("sheet unavailable")


def make_sheets(transactions=None, rules=None, budget=None, actuals=None) -> dict:
    return {
        "raw_transactions": [TXN_HEADER] + list(transactions or []),
        "lookup_map": [["fragment", "category", "sentiment"]] + list(rules or []),
        "budget": [["category", "target"]] + list(budget or []),
        "monthly_stats": list(actuals or [["category"]]),
    }


def txn_row(txn_id, when, merchant, amount, category="Groceries"):
    return [txn_id, when, merchant, amount, category, "Essential", "1.0", "MAP", "Unknown", ""]


@pytest.fixture
def event_payload() -> dict:
    return {
        "dateTime": "2026-02-11T09:30:00Z",
        "merchant": {"name": "Uber Eats", "city": "Johannesburg", "category": "Restaurants"},
        "centsAmount": 15450,
    }


@pytest.fixture
def store() -> InMemoryTabularStore:
    return InMemoryTabularStore(make_sheets(
        rules=[
            ["UBER", "Transport & Fuel", "Essential"],
            ["UBER EATS", "Eating Out", "Discretionary"],
            ["Woolworths", "Groceries", "Essential"],
        ],
    ))


@pytest.fixture
def classifier() -> FakeClassifier:
    return FakeClassifier()
