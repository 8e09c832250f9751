"""
Merchant Rule Matching

Deterministic category assignment from the lookup map. A rule matches
when its fragment is a case-insensitive substring of the merchant name.
Longer fragments are tried first so that "UBER EATS" beats "UBER";
fragments of equal length keep their order in the sheet.

Pure functions: no I/O, no mutation of the caller's rule list.
"""

from typing import Iterable, Optional

from budget_buddy.models.transaction import CategoryRule


def order_rules(rules: Iterable[CategoryRule]) -> list[CategoryRule]:
    """Longest fragment first; sorted() is stable, so ties keep sheet order."""
    return sorted(rules, key=lambda rule: len(rule.merchant_key_fragment), reverse=True)


def match_rule(merchant_name: str, rules: Iterable[CategoryRule]) -> Optional[CategoryRule]:
    """Return the winning rule for a merchant, or None."""
    if not merchant_name:
        return None

    haystack = merchant_name.casefold()
    for rule in order_rules(rules):
        fragment = rule.merchant_key_fragment.casefold()
        if fragment and fragment in haystack:
            return rule
    return None
