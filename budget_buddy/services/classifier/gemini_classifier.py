"""
Gemini Category Classifier

Asks a Gemini model to place a merchant in the fixed taxonomy.
The model is asked for a JSON object only:
    {"category": "...", "sentiment": "Essential|Discretionary", "confidence": 0.0-1.0}

Category labels outside the taxonomy are coerced to Uncategorized by
ClassifierVerdict; everything else unusable raises ClassifierError.
"""

import json
from decimal import Decimal
from typing import Optional

import google.generativeai as genai

from budget_buddy.config import GeminiSettings, get_settings
from budget_buddy.errors import ClassifierError
from budget_buddy.models.transaction import Category, ClassifierVerdict
from budget_buddy.services.classifier.interface import (
    CategoryClassifier,
    parse_classifier_response,
)


class GeminiCategoryClassifier(CategoryClassifier):
    """Gemini-backed implementation of CategoryClassifier."""

    def __init__(
        self,
        settings: Optional[GeminiSettings] = None,
        model: Optional[genai.GenerativeModel] = None,
    ):
        self._settings = settings or get_settings().gemini
        self._model = model or self._configure_genai()

    def _configure_genai(self) -> genai.GenerativeModel:
        """Configure Google Generative AI."""
        genai.configure(api_key=self._settings.api_key)
        return genai.GenerativeModel(
            model_name=self._settings.model_name,
            generation_config={
                "temperature": self._settings.temperature,
                "max_output_tokens": self._settings.classifier_max_tokens,
                "response_mime_type": "application/json",
            },
        )

    @staticmethod
    def build_prompt(merchant_name: str, merchant_hint: str, amount: Decimal) -> str:
        categories = json.dumps([category.value for category in Category])
        return f"""You are a strict financial classifier for a personal budget.

Transaction Details:
- Merchant: "{merchant_name}"
- Merchant Classification: "{merchant_hint}"
- Amount: R{amount}

Allowed Categories: {categories}

Task:
1. Analyze the Merchant and Merchant Classification.
2. Assign the most accurate Category from the allowed list.
3. Determine sentiment (Essential vs Discretionary).
4. Return JSON: {{"category": "String", "sentiment": "String", "confidence": Number}}
"""

    async def classify(
        self,
        merchant_name: str,
        merchant_hint: str,
        amount: Decimal,
    ) -> ClassifierVerdict:
        prompt = self.build_prompt(merchant_name, merchant_hint, amount)
        try:
            response = await self._model.generate_content_async(prompt)
            text = response.text
        except Exception as e:
            raise ClassifierError(
                f"Gemini request failed: {e}",
                operation="classify",
                collaborator="gemini",
                offending_input=merchant_name,
            ) from e

        return parse_classifier_response(text, collaborator="gemini")
