"""
Category Classifier Interface

The classifier is the fallback for merchants the lookup map does not
cover. It is treated as unreliable: it may time out, fail, or answer
with free text. Implementations raise ClassifierError for all of these;
the ingestion pipeline turns that into the Uncategorized fallback.
"""

import json
from abc import ABC, abstractmethod
from decimal import Decimal

from pydantic import ValidationError as PydanticValidationError

from budget_buddy.errors import ClassifierError
from budget_buddy.models.transaction import ClassifierVerdict


class CategoryClassifier(ABC):
    """Opaque category classification service."""

    @abstractmethod
    async def classify(
        self,
        merchant_name: str,
        merchant_hint: str,
        amount: Decimal,
    ) -> ClassifierVerdict:
        """
        Classify a transaction.

        Args:
            merchant_name: Upper-cased merchant name
            merchant_hint: Card network's merchant category (may be "Unknown")
            amount: Transaction amount

        Raises:
            ClassifierError: On any failure or unusable response
        """
        pass


def parse_classifier_response(text: str, collaborator: str = "classifier") -> ClassifierVerdict:
    """
    Parse a classifier's JSON answer into a ClassifierVerdict.

    Tolerates prose or code fences around the JSON object.
    """
    if not isinstance(text, str):
        raise ClassifierError(
            "Classifier returned no text",
            operation="parse_response",
            collaborator=collaborator,
        )

    start = text.find("{")
    end = text.rfind("}") + 1
    if start < 0 or end <= start:
        raise ClassifierError(
            "No JSON object in classifier response",
            operation="parse_response",
            collaborator=collaborator,
            offending_input=text[:200],
        )

    try:
        data = json.loads(text[start:end])
        return ClassifierVerdict.model_validate(data)
    except (json.JSONDecodeError, PydanticValidationError) as e:
        raise ClassifierError(
            f"Malformed classifier response: {e}",
            operation="parse_response",
            collaborator=collaborator,
            offending_input=text[:200],
        ) from e
