"""
Data Models Package

This package contains all Pydantic models used in Budget Buddy.
All data crossing the store and classifier boundaries must conform to these schemas.
"""

from budget_buddy.models.transaction import (
    BudgetTarget,
    Category,
    CategoryRule,
    CategorySource,
    ClassifierVerdict,
    IngestResult,
    IngestStatus,
    MerchantDetails,
    RawTransactionEvent,
    Sentiment,
    Transaction,
    cents_to_amount,
    generate_transaction_id,
    normalize_merchant,
    parse_amount,
)
from budget_buddy.models.query import (
    BudgetOverview,
    BudgetRow,
    BudgetStatus,
    SearchCriteria,
    SearchResult,
    TransactionSummary,
)
from budget_buddy.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Transaction models
    "BudgetTarget",
    "Category",
    "CategoryRule",
    "CategorySource",
    "ClassifierVerdict",
    "IngestResult",
    "IngestStatus",
    "MerchantDetails",
    "RawTransactionEvent",
    "Sentiment",
    "Transaction",
    "cents_to_amount",
    "generate_transaction_id",
    "normalize_merchant",
    "parse_amount",
    # Query models
    "BudgetOverview",
    "BudgetRow",
    "BudgetStatus",
    "SearchCriteria",
    "SearchResult",
    "TransactionSummary",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
