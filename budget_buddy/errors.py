"""
Error Taxonomy for Budget Buddy

DESIGN DECISION: Every failure the core can surface belongs to one of a
small, closed set of kinds. Errors carry structured context (operation,
collaborator, offending input) rather than pre-formatted strings, so the
transport layer can map them to status codes and the audit log can record
them without parsing messages.

Propagation policy:
- VALIDATION and NOT_FOUND are caller errors. Surfaced, never retried.
- STORE is surfaced as a failure. Ingestion performs no partial writes.
- CLASSIFIER is never surfaced by ingestion. It degrades to Uncategorized.
- CONFIGURATION is raised at construction time, before first use.
"""

from enum import Enum
from typing import Any, Optional


class ErrorKind(str, Enum):
    """Closed set of error kinds."""
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    STORE = "store"
    CLASSIFIER = "classifier"
    CONFIGURATION = "configuration"


class BudgetBuddyError(Exception):
    """
    Base exception for all Budget Buddy errors.

    Attributes:
        kind: The error kind (one of ErrorKind)
        operation: Operation that failed (e.g. 'ingest', 'read_range')
        collaborator: External collaborator involved, if any
        offending_input: The input that triggered the error, if relevant
    """

    kind: ErrorKind = ErrorKind.STORE

    def __init__(
        self,
        message: str,
        *,
        operation: Optional[str] = None,
        collaborator: Optional[str] = None,
        offending_input: Any = None,
    ):
        super().__init__(message)
        self.message = message
        self.operation = operation
        self.collaborator = collaborator
        self.offending_input = offending_input

    def to_dict(self) -> dict:
        """Structured form for logging and transport responses."""
        return {
            "kind": self.kind.value,
            "message": self.message,
            "operation": self.operation,
            "collaborator": self.collaborator,
            "offending_input": self.offending_input,
        }

    def __str__(self) -> str:
        context = [
            f"{name}={value}"
            for name, value in (
                ("operation", self.operation),
                ("collaborator", self.collaborator),
            )
            if value
        ]
        if context:
            return f"{self.message} ({', '.join(context)})"
        return self.message


class ValidationError(BudgetBuddyError):
    """Malformed or missing required input fields."""
    kind = ErrorKind.VALIDATION


class NotFoundError(BudgetBuddyError):
    """Requested entity does not exist (e.g. month absent from actuals)."""
    kind = ErrorKind.NOT_FOUND


class StoreError(BudgetBuddyError):
    """Tabular store unreachable or returned a malformed response."""
    kind = ErrorKind.STORE


class ClassifierError(BudgetBuddyError):
    """Category classifier failed or returned an unusable response."""
    kind = ErrorKind.CLASSIFIER


class ConfigurationError(BudgetBuddyError):
    """Required configuration is missing or invalid."""
    kind = ErrorKind.CONFIGURATION
