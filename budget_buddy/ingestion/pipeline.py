"""
Transaction Ingestion Pipeline

Flow for one incoming transaction event:
1. Validate the payload and derive the deterministic transaction id
2. One batched read: recent transaction ids + the lookup map
3. Duplicate check against the recent-id window -> "duplicate", no write
4. Lookup-map rule match (longest fragment first) -> source MAP
5. Otherwise ask the classifier -> source LLM
   (any classifier failure degrades to Uncategorized, never an error)
6. Append exactly one row to the raw log -> "recorded"

DEDUPLICATION: only the last `dedup_window` ids are checked. Older
duplicates are not caught, and two concurrent submissions of the same
event can both pass the check (read-then-append is not atomic on a
spreadsheet). Both are accepted tradeoffs; see DESIGN.md.
"""

from typing import Any, Optional, Union
from uuid import UUID

import structlog
from pydantic import ValidationError as PydanticValidationError

from budget_buddy.audit import AuditLogger, create_correlation_id
from budget_buddy.errors import BudgetBuddyError, StoreError, ValidationError
from budget_buddy.ingestion.rules import match_rule
from budget_buddy.models.audit import AuditEventBuilder
from budget_buddy.models.transaction import (
    CategoryRule,
    CategorySource,
    ClassifierVerdict,
    IngestResult,
    IngestStatus,
    RawTransactionEvent,
    Transaction,
    cell,
)
from budget_buddy.services.classifier import CategoryClassifier
from budget_buddy.services.storage import Rows, TabularStore

logger = structlog.get_logger(__name__)

DEFAULT_DEDUP_WINDOW = 50


class IngestionPipeline:
    """
    Records incoming transactions in the raw log, categorized and deduplicated.

    Stateless between calls: the rule table and recent ids are re-read
    for every event, so edits to the lookup map apply immediately.
    """

    def __init__(
        self,
        store: TabularStore,
        classifier: CategoryClassifier,
        transactions_range: str = "raw_transactions!A:J",
        transaction_ids_range: str = "raw_transactions!A:A",
        rules_range: str = "lookup_map!A:C",
        dedup_window: int = DEFAULT_DEDUP_WINDOW,
        audit_logger: Optional[AuditLogger] = None,
    ):
        if dedup_window < 1:
            raise ValueError("dedup_window must be at least 1")
        self._store = store
        self._classifier = classifier
        self._transactions_range = transactions_range
        self._transaction_ids_range = transaction_ids_range
        self._rules_range = rules_range
        self._dedup_window = dedup_window
        self._audit_logger = audit_logger or AuditLogger()

    @staticmethod
    def parse_event(payload: Union[RawTransactionEvent, dict[str, Any]]) -> RawTransactionEvent:
        """Validate a raw payload, raising our ValidationError on bad input."""
        if isinstance(payload, RawTransactionEvent):
            return payload
        try:
            return RawTransactionEvent.model_validate(payload)
        except PydanticValidationError as e:
            problems = [
                f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
                for err in e.errors()
            ]
            raise ValidationError(
                "Invalid transaction payload",
                operation="ingest",
                offending_input=problems,
            ) from e

    async def _load_context(self) -> tuple[set[str], list[CategoryRule]]:
        """Recent ids and the lookup map, in one batched read."""
        try:
            id_rows, rule_rows = await self._store.batch_read(
                [self._transaction_ids_range, self._rules_range]
            )
        except BudgetBuddyError:
            raise
        except Exception as e:
            raise StoreError(
                f"Failed to read ingestion context: {e}",
                operation="batch_read",
                collaborator="store",
                offending_input=[self._transaction_ids_range, self._rules_range],
            ) from e

        return self._recent_ids(id_rows), self._rules(rule_rows)

    def _recent_ids(self, id_rows: Rows) -> set[str]:
        ids = [cell(row, 0) for row in id_rows[1:]]  # Skip header
        ids = [txn_id for txn_id in ids if txn_id]
        return set(ids[-self._dedup_window:])

    @staticmethod
    def _rules(rule_rows: Rows) -> list[CategoryRule]:
        rules = []
        for row in rule_rows[1:]:  # Skip header
            rule = CategoryRule.from_row(row)
            if rule is not None:
                rules.append(rule)
        return rules

    async def _classify(
        self,
        event: RawTransactionEvent,
        transaction_id: str,
        correlation_id: UUID,
    ) -> ClassifierVerdict:
        """Ask the classifier; any failure becomes the Uncategorized fallback."""
        try:
            verdict = await self._classifier.classify(
                event.merchant.name.upper(),
                event.merchant.category,
                event.amount,
            )
            if not isinstance(verdict, ClassifierVerdict):
                verdict = ClassifierVerdict.model_validate(verdict)
            return verdict
        except Exception as e:
            await self._audit_logger.log(
                AuditEventBuilder.classifier_fallback(
                    transaction_id=transaction_id,
                    merchant=event.merchant.name,
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            )
            return ClassifierVerdict.fallback()

    async def ingest(
        self,
        payload: Union[RawTransactionEvent, dict[str, Any]],
        correlation_id: Optional[UUID] = None,
    ) -> IngestResult:
        """
        Ingest one transaction event.

        Returns:
            IngestResult with status "recorded" (and the transaction)
            or "duplicate" (nothing written)

        Raises:
            ValidationError: Malformed payload
            StoreError: Store unreachable; nothing was written
        """
        correlation_id = correlation_id or create_correlation_id()
        event = self.parse_event(payload)
        transaction_id = event.transaction_id
        log = logger.bind(transaction_id=transaction_id, correlation_id=str(correlation_id))

        recent_ids, rules = await self._load_context()

        if transaction_id in recent_ids:
            log.info("duplicate_transaction_skipped")
            await self._audit_logger.log(
                AuditEventBuilder.duplicate_skipped(
                    transaction_id=transaction_id,
                    window=self._dedup_window,
                    correlation_id=correlation_id,
                )
            )
            return IngestResult(status=IngestStatus.DUPLICATE, transaction_id=transaction_id)

        rule = match_rule(event.merchant.name, rules)
        if rule is not None:
            category, sentiment, confidence = rule.category, rule.sentiment, 1.0
            source = CategorySource.MAP
        else:
            verdict = await self._classify(event, transaction_id, correlation_id)
            category, sentiment, confidence = verdict.category, verdict.sentiment, verdict.confidence
            source = CategorySource.LLM

        transaction = Transaction(
            id=transaction_id,
            date=event.date_time,
            merchant=event.merchant.name,
            amount=event.amount,
            category=category,
            sentiment=sentiment,
            confidence=confidence,
            source=source,
            merchant_city=event.merchant.city,
        )

        try:
            await self._store.append_row(self._transactions_range, transaction.to_row())
        except Exception as e:
            await self._audit_logger.log(
                AuditEventBuilder.store_error(
                    operation="append_row",
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            )
            if isinstance(e, BudgetBuddyError):
                raise
            raise StoreError(
                f"Failed to append transaction: {e}",
                operation="append_row",
                collaborator="store",
                offending_input=transaction_id,
            ) from e

        log.info("transaction_recorded", category=category.value, source=source.value)
        await self._audit_logger.log(
            AuditEventBuilder.transaction_recorded(
                transaction_id=transaction_id,
                merchant=transaction.merchant,
                category=category.value,
                source=source.value,
                confidence=confidence,
                correlation_id=correlation_id,
            )
        )
        return IngestResult(
            status=IngestStatus.RECORDED,
            transaction_id=transaction_id,
            transaction=transaction,
        )
