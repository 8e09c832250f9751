"""
Budget Buddy - Source Package

Logs card transactions into a Google Sheets budget, categorizes them
(lookup map first, Gemini as fallback), and answers questions about
budgets and spending from the stored data.

DESIGN PRINCIPLES:
1. Deterministic rules before generative guesses
2. Ingestion never fails because the classifier is down
3. Resubmitting the same event is a no-op, not an error
4. The advisor only speaks from data the tools returned
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Budget Buddy Team"
