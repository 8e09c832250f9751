"""Tests for the transaction ingestion pipeline."""

import asyncio
from decimal import Decimal

import pytest

from budget_buddy.errors import ErrorKind, StoreError, ValidationError
from budget_buddy.ingestion import IngestionPipeline
from budget_buddy.models.transaction import (
    Category,
    CategorySource,
    ClassifierVerdict,
    IngestStatus,
    Sentiment,
)
from budget_buddy.services.storage import InMemoryTabularStore

from conftest import (
    FailingAppendStore,
    FailingClassifier,
    FakeClassifier,
    make_sheets,
    txn_row,
)


def make_pipeline(store, classifier, **kwargs):
    return IngestionPipeline(store=store, classifier=classifier, **kwargs)


class TestIngest:
    """Tests for IngestionPipeline.ingest."""

    def test_rule_match_records_map_source(self, store, classifier, event_payload):
        """Test a lookup-map hit is recorded with source MAP and full confidence."""
        pipeline = make_pipeline(store, classifier)
        result = asyncio.run(pipeline.ingest(event_payload))

        assert result.status == IngestStatus.RECORDED
        txn = result.transaction
        assert txn.category == Category.EATING_OUT
        assert txn.sentiment == Sentiment.DISCRETIONARY
        assert txn.source == CategorySource.MAP
        assert txn.confidence == 1.0
        assert txn.amount == Decimal("154.50")
        assert classifier.calls == []
        assert len(store.appends) == 1

    def test_row_layout(self, store, classifier, event_payload):
        """Test exactly one row in the raw-log layout is appended."""
        pipeline = make_pipeline(store, classifier)
        result = asyncio.run(pipeline.ingest(event_payload))

        range_name, row = store.appends[0]
        assert range_name == "raw_transactions!A:J"
        assert row[0] == result.transaction_id == "2026-02-11T09:30:00Z_UBEREATS_15450"
        assert row[2] == "Uber Eats"
        assert row[3] == "154.50"
        assert row[8] == "Johannesburg"

    def test_resubmission_is_duplicate(self, store, classifier, event_payload):
        """Test ingesting the same event twice writes one row."""
        pipeline = make_pipeline(store, classifier)
        first = asyncio.run(pipeline.ingest(event_payload))
        second = asyncio.run(pipeline.ingest(event_payload))

        assert first.status == IngestStatus.RECORDED
        assert second.status == IngestStatus.DUPLICATE
        assert second.transaction_id == first.transaction_id
        assert second.transaction is None
        assert len(store.appends) == 1

    def test_duplicate_outside_window_is_recorded(self, classifier, event_payload):
        """Test only the most recent ids are checked."""
        existing = "2026-02-11T09:30:00Z_UBEREATS_15450"
        rows = [txn_row(existing, "2026-02-11", "Uber Eats", "154.50")]
        rows += [txn_row(f"later_{i}", "2026-02-12", "Spar", "1.00") for i in range(3)]
        store = InMemoryTabularStore(make_sheets(transactions=rows))
        pipeline = make_pipeline(store, classifier, dedup_window=3)

        result = asyncio.run(pipeline.ingest(event_payload))
        assert result.status == IngestStatus.RECORDED

    def test_classifier_used_without_rule(self, classifier):
        """Test unmatched merchants go to the classifier with an upper-cased name."""
        store = InMemoryTabularStore(make_sheets())
        pipeline = make_pipeline(store, classifier)
        payload = {
            "dateTime": "2026-02-11",
            "merchant": {"name": "Mugg & Bean", "category": "Restaurants"},
            "centsAmount": 8900,
        }
        result = asyncio.run(pipeline.ingest(payload))

        assert classifier.calls == [("MUGG & BEAN", "Restaurants", Decimal("89.00"))]
        assert result.transaction.source == CategorySource.LLM
        assert result.transaction.category == Category.EATING_OUT
        assert result.transaction.confidence == 0.9

    def test_classifier_failure_falls_back(self):
        """Test a failing classifier still records the transaction as Uncategorized."""
        store = InMemoryTabularStore(make_sheets())
        classifier = FailingClassifier()
        pipeline = make_pipeline(store, classifier)
        payload = {"dateTime": "2026-02-11", "merchant": {"name": "Unknown Shop"}, "centsAmount": 100}

        result = asyncio.run(pipeline.ingest(payload))

        assert classifier.calls == 1
        assert result.status == IngestStatus.RECORDED
        assert result.transaction.category == Category.UNCATEGORIZED
        assert result.transaction.sentiment == Sentiment.DISCRETIONARY
        assert result.transaction.confidence == 0.0
        assert result.transaction.source == CategorySource.LLM

    def test_unexpected_classifier_exception_falls_back(self):
        """Test any exception from the classifier is absorbed."""
        store = InMemoryTabularStore(make_sheets())
        pipeline = make_pipeline(store, FailingClassifier(RuntimeError("boom")))
        payload = {"dateTime": "2026-02-11", "merchant": {"name": "Shop"}, "centsAmount": 100}

        result = asyncio.run(pipeline.ingest(payload))
        assert result.transaction.category == Category.UNCATEGORIZED

    def test_classifier_label_is_coerced(self):
        """Test a free-text classifier label is stored as Uncategorized."""
        store = InMemoryTabularStore(make_sheets())
        classifier = FakeClassifier(
            ClassifierVerdict(category="Fine Dining", sentiment="Discretionary", confidence=0.7)
        )
        pipeline = make_pipeline(store, classifier)
        payload = {"dateTime": "2026-02-11", "merchant": {"name": "Shop"}, "centsAmount": 100}

        result = asyncio.run(pipeline.ingest(payload))
        assert result.transaction.category == Category.UNCATEGORIZED
        assert result.transaction.confidence == 0.7

    def test_invalid_payload(self, store, classifier):
        """Test malformed payloads raise ValidationError and write nothing."""
        pipeline = make_pipeline(store, classifier)

        with pytest.raises(ValidationError) as exc_info:
            asyncio.run(pipeline.ingest({"dateTime": "2026-02-11", "centsAmount": 100}))

        assert exc_info.value.kind == ErrorKind.VALIDATION
        assert any("merchant" in problem for problem in exc_info.value.offending_input)
        assert store.appends == []
        assert store.read_count == 0

    def test_store_failure_writes_nothing(self, classifier, event_payload):
        """Test an append failure surfaces as StoreError."""
        store = FailingAppendStore(make_sheets())
        pipeline = make_pipeline(store, classifier)

        with pytest.raises(StoreError) as exc_info:
            asyncio.run(pipeline.ingest(event_payload))

        assert exc_info.value.operation == "append_row"
        assert store.appends == []

    def test_unreadable_store(self, classifier, event_payload):
        """Test a missing sheet fails before any classification or write."""
        store = InMemoryTabularStore({})
        pipeline = make_pipeline(store, classifier)

        with pytest.raises(StoreError):
            asyncio.run(pipeline.ingest(event_payload))
        assert classifier.calls == []
        assert store.appends == []

    def test_invalid_window(self, store, classifier):
        """Test the dedup window must be positive."""
        with pytest.raises(ValueError):
            make_pipeline(store, classifier, dedup_window=0)
