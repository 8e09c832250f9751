"""
Budget Status Aggregation

Joins the per-category budget targets against one month's actual spend.

Sheet layout:
- Targets:  header row, then [category, monthly target]
- Actuals:  header row [label, "2026-01", "2026-02", ...],
            then [category, amount, amount, ...]

Status policy per category (remaining = target - actual):
- remaining < 0                          -> OVER_BUDGET
- 0 <= remaining < target * warning_ratio -> WARNING
- otherwise                               -> OK
A zero target is therefore OK unless something was spent.
"""

import asyncio
import re
from decimal import Decimal
from typing import Optional
from uuid import UUID

from budget_buddy.audit import AuditLogger, create_correlation_id
from budget_buddy.errors import BudgetBuddyError, NotFoundError, StoreError, ValidationError
from budget_buddy.models.audit import AuditEventBuilder
from budget_buddy.models.query import BudgetOverview, BudgetRow, BudgetStatus
from budget_buddy.models.transaction import BudgetTarget, cell, parse_amount
from budget_buddy.services.storage import Rows, TabularStore

_MONTH = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")


def budget_status(target: Decimal, remaining: Decimal, warning_ratio: Decimal) -> BudgetStatus:
    if remaining < 0:
        return BudgetStatus.OVER_BUDGET
    if remaining < target * warning_ratio:
        return BudgetStatus.WARNING
    return BudgetStatus.OK


class BudgetAggregator:
    """Computes budget-vs-actual status for a month."""

    def __init__(
        self,
        store: TabularStore,
        budget_range: str = "budget!A:B",
        actuals_range: str = "monthly_stats!A:ZZ",
        warning_ratio: float = 0.2,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._budget_range = budget_range
        self._actuals_range = actuals_range
        self._warning_ratio = Decimal(str(warning_ratio))
        self._audit_logger = audit_logger or AuditLogger()

    async def _read_tables(self) -> tuple[Rows, Rows]:
        """Targets and actuals are independent; read them concurrently."""
        try:
            targets, actuals = await asyncio.gather(
                self._store.read_range(self._budget_range),
                self._store.read_range(self._actuals_range),
            )
        except BudgetBuddyError:
            raise
        except Exception as e:
            raise StoreError(
                f"Failed to read budget tables: {e}",
                operation="read_range",
                collaborator="store",
                offending_input=[self._budget_range, self._actuals_range],
            ) from e
        return targets, actuals

    @staticmethod
    def _actuals_for_month(actual_rows: Rows, month: str) -> dict[str, Decimal]:
        """Map category -> actual spend for the month's column."""
        header = [cell(actual_rows[0], i) for i in range(len(actual_rows[0]))] if actual_rows else []
        try:
            # Column 0 holds the category labels
            column = header.index(month, 1)
        except ValueError:
            raise NotFoundError(
                f"No actuals column for month {month}",
                operation="get_budget_status",
                offending_input=month,
            )

        actuals: dict[str, Decimal] = {}
        for row in actual_rows[1:]:
            category = cell(row, 0)
            if category:
                actuals[category] = parse_amount(cell(row, column))
        return actuals

    async def compute_status(
        self,
        month: str,
        correlation_id: Optional[UUID] = None,
    ) -> BudgetOverview:
        """
        Budget overview for `month` (YYYY-MM).

        Raises:
            ValidationError: Month is not YYYY-MM
            NotFoundError: The actuals table has no column for the month
            StoreError: Store unreachable
        """
        month = (month or "").strip()
        if not _MONTH.match(month):
            raise ValidationError(
                "Month must be in YYYY-MM format",
                operation="get_budget_status",
                offending_input=month,
            )

        target_rows, actual_rows = await self._read_tables()
        actuals = self._actuals_for_month(actual_rows, month)

        rows = []
        for target_row in target_rows[1:]:  # Skip header
            target = BudgetTarget.from_row(target_row)
            if target is None:
                continue
            actual = actuals.get(target.category, Decimal("0"))
            remaining = target.monthly_target_amount - actual
            rows.append(BudgetRow(
                category=target.category,
                target=target.monthly_target_amount,
                actual=actual,
                remaining=remaining,
                status=budget_status(target.monthly_target_amount, remaining, self._warning_ratio),
            ))

        overview = BudgetOverview(
            month=month,
            total_target=sum((row.target for row in rows), Decimal("0")),
            total_actual=sum((row.actual for row in rows), Decimal("0")),
            total_remaining=sum((row.remaining for row in rows), Decimal("0")),
            rows=rows,
        )

        await self._audit_logger.log(
            AuditEventBuilder.budget_status_queried(
                month=month,
                category_count=len(rows),
                over_budget=overview.categories_over_budget,
                correlation_id=correlation_id or create_correlation_id(),
            )
        )
        return overview
