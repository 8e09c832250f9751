"""Category classifier services package."""

from budget_buddy.services.classifier.interface import (
    CategoryClassifier,
    parse_classifier_response,
)
from budget_buddy.services.classifier.gemini_classifier import GeminiCategoryClassifier

__all__ = [
    "CategoryClassifier",
    "GeminiCategoryClassifier",
    "parse_classifier_response",
]
