"""
Tool Execution Engine

DESIGN DECISION: Query execution is DETERMINISTIC.
The advisor LLM only chooses a tool and its arguments.
This engine runs the tool against the actual stored data,
and the LLM then phrases the answer from the returned payload.

At no point does the LLM have direct access to answer questions.
It can only see what this engine returns from storage.
"""

from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from budget_buddy.errors import ErrorKind, NotFoundError, ValidationError
from budget_buddy.models.transaction import Category
from budget_buddy.queries.budget import BudgetAggregator
from budget_buddy.queries.search import TransactionSearch

GET_BUDGET_STATUS = "getBudgetStatus"
SEARCH_TRANSACTIONS = "searchTransactions"


class ToolResult(BaseModel):
    """Result of running one tool, in a form the LLM can read."""

    tool: str
    success: bool
    data: dict[str, Any] = Field(default_factory=dict)
    error_kind: Optional[ErrorKind] = None
    error_message: Optional[str] = None


# Tool declarations shown to the advisor model
TOOL_DEFINITIONS = [
    {
        "name": GET_BUDGET_STATUS,
        "description": "Get budget targets vs actuals for a specific month.",
        "parameters": {
            "month": "The month to check in YYYY-MM format (e.g., 2026-02). Required.",
        },
    },
    {
        "name": SEARCH_TRANSACTIONS,
        "description": "Search transaction history for specific merchants, categories, dates or amounts.",
        "parameters": {
            "merchant": "Name of the merchant (e.g., Uber)",
            "category": f"The strict category name, one of {[c.value for c in Category]}",
            "month": "YYYY-MM format",
            "date": "Specific date in YYYY-MM-DD format. Use this for today, yesterday, or specific days.",
            "min_amount": "Minimum amount filter",
            "limit": "Max results to return",
        },
    },
]


class ToolExecutor:
    """
    Runs the read-only query tools by name.

    Caller errors (unknown month, bad arguments) are returned as
    unsuccessful ToolResults so the advisor can explain them.
    Store failures propagate.
    """

    def __init__(self, budget: BudgetAggregator, search: TransactionSearch):
        self._budget = budget
        self._search = search

    @property
    def tool_names(self) -> list[str]:
        return [GET_BUDGET_STATUS, SEARCH_TRANSACTIONS]

    async def get_budget_status(self, args: dict[str, Any], correlation_id: Optional[UUID] = None) -> dict:
        overview = await self._budget.compute_status(str(args.get("month") or ""), correlation_id)
        return overview.to_tool_payload()

    async def search_transactions(self, args: dict[str, Any], correlation_id: Optional[UUID] = None) -> dict:
        result = await self._search.search(args, correlation_id)
        return result.to_tool_payload()

    async def execute(
        self,
        tool: str,
        args: Optional[dict[str, Any]] = None,
        correlation_id: Optional[UUID] = None,
    ) -> ToolResult:
        args = args or {}
        handlers = {
            GET_BUDGET_STATUS: self.get_budget_status,
            SEARCH_TRANSACTIONS: self.search_transactions,
        }
        handler = handlers.get(tool)
        if handler is None:
            return ToolResult(
                tool=tool,
                success=False,
                error_kind=ErrorKind.NOT_FOUND,
                error_message=f"Tool {tool} not found",
            )

        try:
            data = await handler(args, correlation_id)
        except (NotFoundError, ValidationError) as e:
            return ToolResult(
                tool=tool,
                success=False,
                error_kind=e.kind,
                error_message=str(e),
            )
        return ToolResult(tool=tool, success=True, data=data)
