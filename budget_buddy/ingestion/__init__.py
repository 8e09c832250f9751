"""Transaction ingestion package."""

from budget_buddy.ingestion.pipeline import IngestionPipeline
from budget_buddy.ingestion.rules import match_rule, order_rules

__all__ = ["IngestionPipeline", "match_rule", "order_rules"]
