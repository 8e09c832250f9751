"""Tests for the tool executor and the advisor agent."""

import asyncio
from datetime import date

import pytest

from budget_buddy.agents import AdvisorAgent, fallback_summary
from budget_buddy.config import GeminiSettings
from budget_buddy.errors import ErrorKind, StoreError
from budget_buddy.queries import (
    GET_BUDGET_STATUS,
    SEARCH_TRANSACTIONS,
    BudgetAggregator,
    ToolExecutor,
    ToolResult,
    TransactionSearch,
)
from budget_buddy.services.storage import InMemoryTabularStore

from conftest import make_sheets, txn_row


class FakeResponse:
    def __init__(self, text):
        self.text = text


class ScriptedModel:
    """Returns queued answers in order; an Exception in the queue is raised."""

    def __init__(self, *answers):
        self._answers = list(answers)
        self.prompts = []

    async def generate_content_async(self, prompt):
        self.prompts.append(prompt)
        answer = self._answers.pop(0)
        if isinstance(answer, Exception):
            raise answer
        return FakeResponse(answer)


def make_agent(*answers):
    model = ScriptedModel(*answers)
    return AdvisorAgent(settings=GeminiSettings(api_key="test-key"), model=model), model


@pytest.fixture
def executor():
    store = InMemoryTabularStore(make_sheets(
        transactions=[txn_row("t1", "2026-02-01", "Uber", "50.00", "Transport & Fuel")],
        budget=[["Transport & Fuel", "40"]],
        actuals=[["category", "2026-02"], ["Transport & Fuel", "50"]],
    ))
    return ToolExecutor(BudgetAggregator(store), TransactionSearch(store))


class TestToolExecutor:
    """Tests for ToolExecutor.execute."""

    def test_budget_status(self, executor):
        """Test getBudgetStatus returns the overview payload."""
        result = asyncio.run(executor.execute(GET_BUDGET_STATUS, {"month": "2026-02"}))
        assert result.success
        assert result.data["rows"][0]["status"] == "OVER_BUDGET"

    def test_search(self, executor):
        """Test searchTransactions returns the search payload."""
        result = asyncio.run(executor.execute(SEARCH_TRANSACTIONS, {"merchant": "uber"}))
        assert result.success
        assert result.data["total_found"] == 50.0

    def test_unknown_tool(self, executor):
        """Test unknown tools are reported, not raised."""
        result = asyncio.run(executor.execute("deleteEverything", {}))
        assert not result.success
        assert result.error_kind == ErrorKind.NOT_FOUND

    def test_missing_month_is_reported(self, executor):
        """Test NotFound from a tool becomes an unsuccessful result."""
        result = asyncio.run(executor.execute(GET_BUDGET_STATUS, {"month": "2099-01"}))
        assert not result.success
        assert result.error_kind == ErrorKind.NOT_FOUND

    def test_store_errors_propagate(self):
        """Test store failures are not hidden from the caller."""
        store = InMemoryTabularStore({})
        executor = ToolExecutor(BudgetAggregator(store), TransactionSearch(store))
        with pytest.raises(StoreError):
            asyncio.run(executor.execute(SEARCH_TRANSACTIONS, {}))


class TestAdvisorAgent:
    """Tests for AdvisorAgent with a scripted model."""

    def test_plan_tool_call(self):
        """Test a JSON plan becomes a ToolCall."""
        agent, model = make_agent('{"tool": "getBudgetStatus", "args": {"month": "2026-02"}}')
        call = asyncio.run(agent.plan("Am I over budget?", today=date(2026, 2, 11)))

        assert call.tool == GET_BUDGET_STATUS
        assert call.args == {"month": "2026-02"}
        assert "2026-02-11" in model.prompts[0]

    def test_plan_without_tool(self):
        """Test a null tool carries the direct reply."""
        agent, _ = make_agent('{"tool": null, "args": {}, "reply": "Hello!"}')
        call = asyncio.run(agent.plan("Hi"))
        assert call.tool is None
        assert call.reply == "Hello!"

    def test_plan_failure(self):
        """Test a failing model yields no tool and an apology."""
        agent, _ = make_agent(RuntimeError("quota"))
        call = asyncio.run(agent.plan("Am I over budget?"))
        assert call.tool is None
        assert call.reply.startswith("Sorry")

    def test_response_uses_tool_data(self):
        """Test the phrasing prompt contains the tool result."""
        agent, model = make_agent("You spent R50.00 at Uber.")
        result = ToolResult(tool=SEARCH_TRANSACTIONS, success=True, data={"total_found": 50.0})
        reply = asyncio.run(agent.generate_response("Uber spend?", result))

        assert reply.response == "You spent R50.00 at Uber."
        assert reply.data_used
        assert '"total_found": 50.0' in model.prompts[0]

    def test_response_failure_uses_fallback(self):
        """Test a failing model falls back to a deterministic summary."""
        agent, _ = make_agent(RuntimeError("quota"))
        result = ToolResult(
            tool=SEARCH_TRANSACTIONS,
            success=True,
            data={"query_summary": "Found 1 transaction", "total_found": 50.0, "transaction_count": 1},
        )
        reply = asyncio.run(agent.generate_response("Uber spend?", result))
        assert reply.response == "Found 1 transaction, totalling R50.00."

    def test_failed_tool_skips_model(self):
        """Test unsuccessful tool results are explained without an LLM call."""
        agent, model = make_agent()
        result = ToolResult(
            tool=GET_BUDGET_STATUS,
            success=False,
            error_kind=ErrorKind.NOT_FOUND,
            error_message="No actuals column for month 2099-01",
        )
        reply = asyncio.run(agent.generate_response("Budget?", result))
        assert "No actuals column" in reply.response
        assert not reply.data_used
        assert model.prompts == []


class TestFallbackSummary:
    """Tests for fallback_summary."""

    def test_budget_summary(self):
        """Test categories that are not OK are listed."""
        result = ToolResult(
            tool=GET_BUDGET_STATUS,
            success=True,
            data={
                "month": "2026-02",
                "totalTarget": 100.0,
                "totalActual": 90.0,
                "totalRemaining": 10.0,
                "rows": [
                    {"category": "Groceries", "status": "WARNING"},
                    {"category": "Travel", "status": "OK"},
                ],
            },
        )
        summary = fallback_summary(result, "R")
        assert summary.startswith("Budget for 2026-02: spent R90.00 of R100.00")
        assert "- Groceries: warning" in summary
        assert "Travel" not in summary
