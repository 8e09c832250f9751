"""
Budget and Search Result Models

These are the structured results returned by the query layer.
They are what the advisor agent (and the dashboard) consume, so they
stay small and flat.
"""

from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator


# =============================================================================
# BUDGET STATUS
# =============================================================================

class BudgetStatus(str, Enum):
    """Per-category budget health."""
    OK = "OK"
    WARNING = "WARNING"          # Less than the warning share of target left
    OVER_BUDGET = "OVER_BUDGET"  # Spent more than the target


class BudgetRow(BaseModel):
    """Target vs actual for one category in one month."""

    category: str
    target: Decimal
    actual: Decimal
    remaining: Decimal
    status: BudgetStatus


class BudgetOverview(BaseModel):
    """Budget status for a month, rows in budget-table order."""

    month: str
    total_target: Decimal
    total_actual: Decimal
    total_remaining: Decimal
    rows: list[BudgetRow] = Field(default_factory=list)

    @property
    def categories_over_budget(self) -> list[str]:
        return [row.category for row in self.rows if row.status == BudgetStatus.OVER_BUDGET]

    def to_tool_payload(self) -> dict:
        """Plain JSON-friendly form for the advisor."""
        return {
            "month": self.month,
            "totalTarget": float(self.total_target),
            "totalActual": float(self.total_actual),
            "totalRemaining": float(self.total_remaining),
            "rows": [
                {
                    "category": row.category,
                    "target": float(row.target),
                    "actual": float(row.actual),
                    "remaining": float(row.remaining),
                    "status": row.status.value,
                }
                for row in self.rows
            ],
        }


# =============================================================================
# TRANSACTION SEARCH
# =============================================================================

class SearchCriteria(BaseModel):
    """
    Transaction search filters. All optional, combined with AND.

    Blank strings are treated as "not supplied", since tool-calling
    models often send empty values for unused parameters.
    """

    merchant: Optional[str] = Field(
        default=None,
        description="Case-insensitive substring of the merchant name"
    )
    category: Optional[str] = Field(
        default=None,
        description="Case-insensitive exact category"
    )
    month: Optional[str] = Field(
        default=None,
        description="YYYY-MM, prefix-matched against the date"
    )
    date: Optional[str] = Field(
        default=None,
        description="YYYY-MM-DD (or any prefix of the stored date)"
    )
    min_amount: Optional[Decimal] = Field(
        default=None,
        validation_alias=AliasChoices("min_amount", "minAmount"),
        description="Inclusive lower bound on amount"
    )
    limit: Optional[int] = Field(
        default=None,
        ge=1,
        description="Maximum number of transactions returned"
    )

    @field_validator('merchant', 'category', 'month', 'date', mode='before')
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v

    @field_validator('min_amount', mode='before')
    @classmethod
    def blank_number_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator('limit', mode='before')
    @classmethod
    def zero_limit_to_default(cls, v: Any) -> Any:
        """Blank or 0 means "use the default limit"; models send 0 for unused numbers."""
        if isinstance(v, str) and not v.strip():
            return None
        # Tool-calling models send JSON numbers, so a limit may arrive as 5.0
        if isinstance(v, float) and v.is_integer():
            v = int(v)
        if v in (0, "0") and not isinstance(v, bool):
            return None
        return v


class TransactionSummary(BaseModel):
    """The slice of a raw-log row returned by search."""

    date: str
    merchant: str
    amount: Decimal
    category: str


class SearchResult(BaseModel):
    """Search outcome. `total_found` sums every match, not just the returned page."""

    query_summary: str
    total_found: Decimal
    transaction_count: int = Field(ge=0)
    transactions: list[TransactionSummary] = Field(default_factory=list)

    def to_tool_payload(self) -> dict:
        return {
            "query_summary": self.query_summary,
            "total_found": float(self.total_found),
            "transaction_count": self.transaction_count,
            "transactions": [
                {
                    "date": txn.date,
                    "merchant": txn.merchant,
                    "amount": float(txn.amount),
                    "category": txn.category,
                }
                for txn in self.transactions
            ],
        }
