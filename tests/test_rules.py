"""Tests for lookup-map rule matching."""

from budget_buddy.ingestion.rules import match_rule, order_rules
from budget_buddy.models.transaction import Category, CategoryRule


def rule(fragment, category="Groceries", sentiment="Essential"):
    return CategoryRule(merchant_key_fragment=fragment, category=category, sentiment=sentiment)


class TestMatchRule:
    """Tests for match_rule."""

    def test_longest_fragment_wins(self):
        """Test the longer fragment beats a shorter one regardless of sheet order."""
        rules = [rule("UBER", "Transport & Fuel"), rule("UBER EATS", "Eating Out")]
        assert match_rule("UBER EATS JHB", rules).category == Category.EATING_OUT

    def test_case_insensitive(self):
        """Test fragments match regardless of case."""
        assert match_rule("woolworths sandton", [rule("WOOLWORTHS")]) is not None

    def test_no_match(self):
        """Test None when no fragment is contained in the name."""
        assert match_rule("Spar", [rule("UBER")]) is None

    def test_empty_inputs(self):
        """Test empty merchant names and empty rule tables."""
        assert match_rule("", [rule("UBER")]) is None
        assert match_rule("UBER", []) is None

    def test_equal_length_keeps_sheet_order(self):
        """Test ties go to the rule listed first."""
        rules = [rule("SPAR", "Groceries"), rule("PARK", "Transport & Fuel")]
        assert match_rule("SPARK", rules).category == Category.GROCERIES

    def test_order_rules_does_not_mutate(self):
        """Test the caller's list is left as-is."""
        rules = [rule("A"), rule("ABC"), rule("AB")]
        ordered = order_rules(rules)
        assert [r.merchant_key_fragment for r in ordered] == ["ABC", "AB", "A"]
        assert [r.merchant_key_fragment for r in rules] == ["A", "ABC", "AB"]
