"""
Budget Advisor Agent

DESIGN DECISION: The LLM is a TRANSLATOR, not an ORACLE.

FLOW:
1. Question -> LLM picks at most one tool and its arguments (JSON only)
2. Tool runs deterministically on stored data (ToolExecutor)
3. Tool result -> LLM phrases the answer from that data only

CRITICAL BOUNDARIES:
- CAN: choose between getBudgetStatus and searchTransactions
- CAN: explain results in plain language, in the user's currency
- CANNOT: answer spending questions from its own knowledge
- MUST: say so when the tool returned nothing or failed
"""

import json
from datetime import date
from typing import Any, Optional

import google.generativeai as genai
import structlog
from pydantic import BaseModel, Field

from budget_buddy.config import GeminiSettings, get_settings
from budget_buddy.queries.executor import (
    GET_BUDGET_STATUS,
    SEARCH_TRANSACTIONS,
    TOOL_DEFINITIONS,
    ToolResult,
)

logger = structlog.get_logger(__name__)


class ToolCall(BaseModel):
    """
    The advisor's plan for a question.

    `tool` is None when no data lookup is needed; `reply` then carries
    the model's direct answer (greetings, help text).
    """

    tool: Optional[str] = None
    args: dict[str, Any] = Field(default_factory=dict)
    reply: Optional[str] = None


class AdvisorReply(BaseModel):
    """Natural language answer generated FROM a tool result."""

    response: str
    data_used: bool


def _extract_json(text: str) -> Optional[dict]:
    start = text.find("{")
    end = text.rfind("}") + 1
    if start < 0 or end <= start:
        return None
    try:
        data = json.loads(text[start:end])
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, dict) else None


def fallback_summary(result: ToolResult, currency: str = "R") -> str:
    """Deterministic answer used when the LLM cannot phrase one."""
    if not result.success:
        return f"I couldn't get that information: {result.error_message}"

    data = result.data
    if result.tool == GET_BUDGET_STATUS:
        lines = [
            f"Budget for {data['month']}: spent {currency}{data['totalActual']:,.2f} "
            f"of {currency}{data['totalTarget']:,.2f} "
            f"({currency}{data['totalRemaining']:,.2f} remaining)."
        ]
        for row in data["rows"]:
            if row["status"] != "OK":
                lines.append(f"- {row['category']}: {row['status'].replace('_', ' ').lower()}")
        return "\n".join(lines)

    if result.tool == SEARCH_TRANSACTIONS:
        if not data["transaction_count"]:
            return "I don't have any transactions matching your question."
        return (
            f"{data['query_summary']}, totalling {currency}{data['total_found']:,.2f}."
        )

    return "Here is what I found."


class AdvisorAgent:
    """
    Gemini-backed conversational layer over the query tools.

    Planning and phrasing are separate calls so that the second one only
    ever sees the question and real tool output.
    """

    def __init__(
        self,
        settings: Optional[GeminiSettings] = None,
        model: Optional[genai.GenerativeModel] = None,
        currency: str = "R",
    ):
        self._settings = settings or get_settings().gemini
        self._model = model or self._configure_genai()
        self._currency = currency

    def _configure_genai(self) -> genai.GenerativeModel:
        """Configure Google Generative AI."""
        genai.configure(api_key=self._settings.api_key)
        return genai.GenerativeModel(
            model_name=self._settings.advisor_model_name,
            generation_config={
                "temperature": self._settings.temperature,
                "max_output_tokens": self._settings.max_tokens,
            },
        )

    def build_plan_prompt(self, question: str, today: date) -> str:
        return f"""You are Budget Buddy, a helpful financial advisor with access to tools
that return real data about the user's spending and budgets.

Current Date: {today.isoformat()} - use this as the default if no date is specified.
Currency: {self._currency}

Available tools:
{json.dumps(TOOL_DEFINITIONS, indent=2)}

Question: "{question}"

Decide whether a tool is needed to answer. Always use a tool to find facts. Never guess.

Respond with ONLY a JSON object:
{{"tool": "<tool name or null>", "args": {{...}}, "reply": "<only when tool is null>"}}

Examples:
"Am I over budget this month?" ->
{{"tool": "{GET_BUDGET_STATUS}", "args": {{"month": "{today.strftime('%Y-%m')}"}}}}

"How much did I spend at Uber over R50 in January 2026?" ->
{{"tool": "{SEARCH_TRANSACTIONS}", "args": {{"merchant": "uber", "month": "2026-01", "min_amount": 50}}}}

"Hi!" ->
{{"tool": null, "args": {{}}, "reply": "Hi! Ask me about your budget or spending."}}"""

    async def plan(self, question: str, today: Optional[date] = None) -> ToolCall:
        """Turn a question into at most one tool call."""
        prompt = self.build_plan_prompt(question, today or date.today())
        try:
            response = await self._model.generate_content_async(prompt)
            data = _extract_json(response.text)
        except Exception as e:
            logger.warning("advisor_plan_failed", error=str(e))
            data = None

        if data is None:
            return ToolCall(
                reply="Sorry, I couldn't understand that question. Try asking about a month or a merchant.",
            )

        tool = data.get("tool")
        args = data.get("args")
        return ToolCall(
            tool=tool if isinstance(tool, str) and tool else None,
            args=args if isinstance(args, dict) else {},
            reply=data.get("reply") if isinstance(data.get("reply"), str) else None,
        )

    async def generate_response(self, question: str, result: ToolResult) -> AdvisorReply:
        """
        Phrase an answer from a tool result.

        CRITICAL: The LLM can ONLY use the data provided.
        """
        if not result.success:
            return AdvisorReply(response=fallback_summary(result, self._currency), data_used=False)

        prompt = f"""You are Budget Buddy. Answer the user's question using ONLY the tool result below.

Question: "{question}"

Tool: {result.tool}
Result:
{json.dumps(result.data, indent=2, default=str)}

Currency: {self._currency} - quote all values in this currency.
- Use simple language and keep it concise
- If asked yes/no, answer clearly first
- Do NOT add any information not in the result"""

        try:
            response = await self._model.generate_content_async(prompt)
            text = response.text.strip()
            if text:
                return AdvisorReply(response=text, data_used=True)
        except Exception as e:
            logger.warning("advisor_response_failed", error=str(e))

        return AdvisorReply(response=fallback_summary(result, self._currency), data_used=True)
