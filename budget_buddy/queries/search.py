"""
Transaction Search

Scans the raw transaction log once and applies every supplied filter
(AND semantics). The running total covers ALL matches, so the caller
can answer "how much did I spend at X" even when only the first few
transactions are returned.
"""

from decimal import Decimal
from typing import Any, Optional, Union
from uuid import UUID

from pydantic import ValidationError as PydanticValidationError

from budget_buddy.audit import AuditLogger, create_correlation_id
from budget_buddy.errors import BudgetBuddyError, StoreError, ValidationError
from budget_buddy.models.audit import AuditEventBuilder
from budget_buddy.models.query import SearchCriteria, SearchResult, TransactionSummary
from budget_buddy.models.transaction import cell, parse_amount
from budget_buddy.services.storage import Row, TabularStore

# Raw log columns: [id, date, merchant, amount, category, ...]
DATE_COL, MERCHANT_COL, AMOUNT_COL, CATEGORY_COL = 1, 2, 3, 4

_CENT = Decimal("0.01")


def _summarize(row: Row) -> Optional[TransactionSummary]:
    if not any(cell(row, i) for i in range(len(row))):
        return None
    return TransactionSummary(
        date=cell(row, DATE_COL),
        merchant=cell(row, MERCHANT_COL),
        amount=parse_amount(cell(row, AMOUNT_COL)),
        category=cell(row, CATEGORY_COL, "Uncategorized"),
    )


def matches(txn: TransactionSummary, criteria: SearchCriteria) -> bool:
    """True when the transaction passes every supplied filter."""
    if criteria.month and not txn.date.startswith(criteria.month):
        return False
    if criteria.date and not txn.date.startswith(criteria.date):
        return False
    if criteria.merchant and criteria.merchant.casefold() not in txn.merchant.casefold():
        return False
    if criteria.category and txn.category.casefold() != criteria.category.casefold():
        return False
    if criteria.min_amount is not None and txn.amount < criteria.min_amount:
        return False
    return True


def describe(criteria: SearchCriteria, count: int) -> str:
    parts = [f"Found {count} transaction{'s' if count != 1 else ''}"]
    if criteria.merchant:
        parts.append(f"merchant: {criteria.merchant}")
    if criteria.category:
        parts.append(f"category: {criteria.category}")
    if criteria.date:
        parts.append(f"on {criteria.date}")
    elif criteria.month:
        parts.append(f"in {criteria.month}")
    if criteria.min_amount is not None:
        parts.append(f"amount >= {criteria.min_amount}")
    return " | ".join(parts)


class TransactionSearch:
    """Multi-criteria filter, sort and cap over the raw transaction log."""

    def __init__(
        self,
        store: TabularStore,
        transactions_range: str = "raw_transactions!A:J",
        default_limit: int = 10,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._transactions_range = transactions_range
        self._default_limit = default_limit
        self._audit_logger = audit_logger or AuditLogger()

    @staticmethod
    def parse_criteria(criteria: Union[SearchCriteria, dict[str, Any], None]) -> SearchCriteria:
        if isinstance(criteria, SearchCriteria):
            return criteria
        try:
            return SearchCriteria.model_validate(criteria or {})
        except PydanticValidationError as e:
            raise ValidationError(
                "Invalid search criteria",
                operation="search_transactions",
                offending_input=[
                    f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
                    for err in e.errors()
                ],
            ) from e

    async def search(
        self,
        criteria: Union[SearchCriteria, dict[str, Any], None] = None,
        correlation_id: Optional[UUID] = None,
    ) -> SearchResult:
        """
        Run a search.

        Matches are sorted by date, newest first; transactions sharing a
        date keep their log order. `transaction_count` is the number of
        matches before the limit is applied.
        """
        criteria = self.parse_criteria(criteria)
        limit = criteria.limit or self._default_limit

        try:
            rows = await self._store.read_range(self._transactions_range)
        except BudgetBuddyError:
            raise
        except Exception as e:
            raise StoreError(
                f"Failed to read transactions: {e}",
                operation="read_range",
                collaborator="store",
                offending_input=self._transactions_range,
            ) from e

        found: list[TransactionSummary] = []
        total = Decimal("0")
        for row in rows[1:]:  # Skip header
            txn = _summarize(row)
            if txn is None or not matches(txn, criteria):
                continue
            found.append(txn)
            total += txn.amount

        # sorted() with reverse=True is still stable for equal dates
        found = sorted(found, key=lambda txn: txn.date, reverse=True)

        await self._audit_logger.log(
            AuditEventBuilder.transactions_searched(
                criteria=criteria.model_dump(mode="json", exclude_none=True),
                match_count=len(found),
                correlation_id=correlation_id or create_correlation_id(),
            )
        )
        return SearchResult(
            query_summary=describe(criteria, len(found)),
            total_found=total.quantize(_CENT),
            transaction_count=len(found),
            transactions=found[:limit],
        )
