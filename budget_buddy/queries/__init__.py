"""Query and aggregation package."""

from budget_buddy.queries.budget import BudgetAggregator, budget_status
from budget_buddy.queries.executor import (
    GET_BUDGET_STATUS,
    SEARCH_TRANSACTIONS,
    TOOL_DEFINITIONS,
    ToolExecutor,
    ToolResult,
)
from budget_buddy.queries.search import TransactionSearch

__all__ = [
    "BudgetAggregator",
    "GET_BUDGET_STATUS",
    "SEARCH_TRANSACTIONS",
    "TOOL_DEFINITIONS",
    "ToolExecutor",
    "ToolResult",
    "TransactionSearch",
    "budget_status",
]
