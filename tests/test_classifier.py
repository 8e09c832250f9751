"""Tests for the category classifier boundary."""

import asyncio
from decimal import Decimal

import pytest

from budget_buddy.config import GeminiSettings
from budget_buddy.errors import ClassifierError, ErrorKind
from budget_buddy.models.transaction import Category, Sentiment
from budget_buddy.services.classifier import GeminiCategoryClassifier, gemini_classifier, parse_classifier_response


class FakeResponse:
    def __init__(self, text):
        self.text = text


class FakeModel:
    """Stands in for genai.GenerativeModel."""

    def __init__(self, text=None, error=None):
        self._text = text
        self._error = error
        self.prompts = []

    async def generate_content_async(self, prompt):
        self.prompts.append(prompt)
        if self._error:
            raise self._error
        return FakeResponse(self._text)


def make_classifier(model):
    return GeminiCategoryClassifier(settings=GeminiSettings(api_key="test-key"), model=model)


class TestParseClassifierResponse:
    """Tests for parse_classifier_response."""

    def test_plain_json(self):
        """Test a well-formed JSON answer."""
        verdict = parse_classifier_response(
            '{"category": "Groceries", "sentiment": "Essential", "confidence": 0.95}'
        )
        assert verdict.category == Category.GROCERIES
        assert verdict.sentiment == Sentiment.ESSENTIAL
        assert verdict.confidence == 0.95

    def test_json_in_code_fence(self):
        """Test JSON wrapped in prose or a code fence is still parsed."""
        verdict = parse_classifier_response(
            'Sure!\n```json\n{"category": "Travel", "sentiment": "Discretionary", "confidence": 2}\n```'
        )
        assert verdict.category == Category.TRAVEL
        assert verdict.confidence == 1.0

    @pytest.mark.parametrize(
        "text",
        [
            "I think it's groceries",
            '{"category": "Groceries", "confidence": "high"}',
            '{"category": "Groceries"',
            "",
        ],
    )
    def test_unusable_responses(self, text):
        """Test unusable answers raise ClassifierError."""
        with pytest.raises(ClassifierError) as exc_info:
            parse_classifier_response(text)
        assert exc_info.value.kind == ErrorKind.CLASSIFIER


class TestGeminiCategoryClassifier:
    """Tests for GeminiCategoryClassifier with a fake model."""

    def test_classify(self):
        """Test the prompt carries the transaction details and the answer is parsed."""
        model = FakeModel('{"category": "Eating Out", "sentiment": "Discretionary", "confidence": 0.8}')
        verdict = asyncio.run(make_classifier(model).classify("UBER EATS", "Restaurants", Decimal("154.50")))

        assert verdict.category == Category.EATING_OUT
        prompt = model.prompts[0]
        assert '"UBER EATS"' in prompt
        assert '"Restaurants"' in prompt
        assert "154.50" in prompt
        assert "Uncategorized" in prompt

    def test_request_failure(self):
        """Test API errors become ClassifierError."""
        model = FakeModel(error=TimeoutError("deadline exceeded"))
        with pytest.raises(ClassifierError) as exc_info:
            asyncio.run(make_classifier(model).classify("SPAR", "Unknown", Decimal("1")))
        assert exc_info.value.collaborator == "gemini"

    def test_model_configuration(self, monkeypatch):
        """Test the classifier model uses the configured token cap and JSON output."""
        created = {}

        def fake_model(model_name, generation_config):
            created.update(model_name=model_name, generation_config=generation_config)
            return FakeModel("{}")

        monkeypatch.setattr(gemini_classifier.genai, "configure", lambda **kwargs: None)
        monkeypatch.setattr(gemini_classifier.genai, "GenerativeModel", fake_model)

        settings = GeminiSettings(api_key="test-key", classifier_max_tokens=128)
        GeminiCategoryClassifier(settings=settings)

        assert created["model_name"] == "gemini-2.5-flash-lite"
        assert created["generation_config"]["max_output_tokens"] == 128
        assert created["generation_config"]["response_mime_type"] == "application/json"
