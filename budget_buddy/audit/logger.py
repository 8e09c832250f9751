"""
Audit Logger

DESIGN DECISION: Every ingestion outcome and query is logged.
This provides:
1. Traceability of how each transaction was categorized
2. Debugging capability when the classifier or store misbehave
3. A history of advisor questions

The audit logger:
- Always writes a structured local log line
- Optionally appends the event to the spreadsheet's audit range
- Gracefully handles failures (a failed audit write never breaks ingestion)
- Supports correlation IDs to trace the events of one request
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from budget_buddy.models.audit import AuditEvent, AuditSeverity
from budget_buddy.services.storage import TabularStore


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. The spreadsheet audit range (when a store is given)
    """

    def __init__(
        self,
        storage: Optional[TabularStore] = None,
        audit_range: str = "audit_log!A:K",
    ):
        """
        Args:
            storage: Store to persist events to. If None, only logs locally.
            audit_range: Range the events are appended to.
        """
        self._storage = storage
        self._audit_range = audit_range
        self._logger = structlog.get_logger("budget_buddy.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Returns True if the storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity == AuditSeverity.ERROR:
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                await self._storage.append_row(self._audit_range, event.to_sheets_row())
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a request and pass it through all
    subsequent operations.
    """
    return uuid4()
