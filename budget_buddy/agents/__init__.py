"""AI Agents package."""

from budget_buddy.agents.ai_agents import (
    AdvisorAgent,
    AdvisorReply,
    ToolCall,
    fallback_summary,
)

__all__ = [
    "AdvisorAgent",
    "AdvisorReply",
    "ToolCall",
    "fallback_summary",
]
