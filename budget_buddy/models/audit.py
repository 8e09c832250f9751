"""
Audit Models for Budget Buddy

Every ingestion outcome and every analytical query is recorded as an
audit event. This gives:
1. Traceability of which category source (MAP vs LLM) was used and why
2. Visibility into classifier fallbacks and store failures
3. A history of the questions the advisor answered

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Ingestion
    TRANSACTION_RECORDED = "transaction_recorded"
    DUPLICATE_SKIPPED = "duplicate_skipped"
    CLASSIFIER_FALLBACK = "classifier_fallback"
    INGESTION_REJECTED = "ingestion_rejected"

    # Queries
    BUDGET_STATUS_QUERIED = "budget_status_queried"
    TRANSACTIONS_SEARCHED = "transactions_searched"
    QUESTION_ANSWERED = "question_answered"

    # System events
    STORE_ERROR = "store_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """A single audit event."""

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # What entity is this about? (e.g. 'transaction', 'query')
    entity_type: Optional[str] = None
    entity_id: Optional[str] = Field(
        default=None,
        description="Transaction id, month, or query id"
    )

    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate events of one request"
    )

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)

    error_kind: Optional[str] = None
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_kind": self.error_kind,
            "error_message": self.error_message,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, entity_type, entity_id,
         correlation_id, description, details_json, error_kind, error_message]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.entity_type or "",
            self.entity_id or "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details, default=str) if self.details else "",
            self.error_kind or "",
            self.error_message or "",
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.transaction_recorded(txn_id, "MAP", "Groceries", correlation_id)
    """

    @staticmethod
    def transaction_recorded(
        transaction_id: str,
        merchant: str,
        category: str,
        source: str,
        confidence: float,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_RECORDED,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"Transaction recorded: {merchant} -> {category} ({source})",
            details={
                "merchant": merchant,
                "category": category,
                "source": source,
                "confidence": confidence,
            },
        )

    @staticmethod
    def duplicate_skipped(
        transaction_id: str,
        window: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DUPLICATE_SKIPPED,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description="Duplicate transaction, not recorded",
            details={"dedup_window": window},
        )

    @staticmethod
    def classifier_fallback(
        transaction_id: str,
        merchant: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CLASSIFIER_FALLBACK,
            severity=AuditSeverity.WARNING,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"Classifier unavailable for {merchant}; using Uncategorized",
            details={"merchant": merchant},
            error_kind="classifier",
            error_message=error_message,
        )

    @staticmethod
    def ingestion_rejected(
        error_kind: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INGESTION_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="transaction",
            correlation_id=correlation_id,
            description=f"Transaction rejected: {error_kind}",
            details=details or {},
            error_kind=error_kind,
            error_message=error_message,
        )

    @staticmethod
    def budget_status_queried(
        month: str,
        category_count: int,
        over_budget: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUDGET_STATUS_QUERIED,
            entity_type="month",
            entity_id=month,
            correlation_id=correlation_id,
            description=f"Budget status for {month}: {category_count} categories",
            details={"over_budget": over_budget},
        )

    @staticmethod
    def transactions_searched(
        criteria: dict,
        match_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTIONS_SEARCHED,
            entity_type="query",
            correlation_id=correlation_id,
            description=f"Transaction search matched {match_count} rows",
            details={"criteria": criteria, "match_count": match_count},
        )

    @staticmethod
    def question_answered(
        question: str,
        tool: Optional[str],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.QUESTION_ANSWERED,
            entity_type="query",
            correlation_id=correlation_id,
            description=f"Advisor answered using {tool or 'no tool'}",
            details={"question": question[:200], "tool": tool},
        )

    @staticmethod
    def store_error(
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"Store error during {operation}",
            details={"operation": operation},
            error_kind="store",
            error_message=error_message,
            correlation_id=correlation_id,
        )
