"""
Transaction Data Models for Budget Buddy

These models define the strict schemas for data crossing the system's
boundaries:
1. Incoming transaction events (from the card/bank webhook)
2. Rows of the spreadsheet-backed store (raw log, lookup map)
3. Responses from the category classifier

DESIGN DECISION: The spreadsheet and the classifier are loosely typed.
Everything read from them is parsed through these models first, so that
downstream code never deals with missing cells or free-text labels.
"""

import re
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class Category(str, Enum):
    """
    The fixed category taxonomy.

    Every persisted transaction has one of these. Anything else
    (classifier free text, typos in the lookup map) becomes UNCATEGORIZED.
    """
    GROCERIES = "Groceries"
    EATING_OUT = "Eating Out"
    ALCOHOL = "Alcohol"
    TRANSPORT_FUEL = "Transport & Fuel"
    CAR_MAINTENANCE = "Car & Maintenance"
    INTERNET_MOBILE = "Internet & Mobile"
    TECH_HARDWARE = "Tech & Hardware"
    HEALTH_MEDICAL = "Health & Medical"
    PERSONAL_CARE = "Personal Care"
    HOME_UTILITIES = "Home & Utilities"
    ENTERTAINMENT = "Entertainment"
    TRAVEL = "Travel"
    SUBSCRIPTIONS = "Subscriptions"
    ONLINE_SHOPPING = "Online Shopping"
    CLOTHING = "Clothing"
    UNCATEGORIZED = "Uncategorized"

    @classmethod
    def coerce(cls, value: Any) -> "Category":
        """Map any label onto the taxonomy (case-insensitive)."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            wanted = value.strip().casefold()
            for member in cls:
                if member.value.casefold() == wanted:
                    return member
        return cls.UNCATEGORIZED


class Sentiment(str, Enum):
    """Whether a spend was needed or chosen."""
    ESSENTIAL = "Essential"
    DISCRETIONARY = "Discretionary"

    @classmethod
    def coerce(cls, value: Any) -> "Sentiment":
        if isinstance(value, cls):
            return value
        if isinstance(value, str) and value.strip().casefold() == "essential":
            return cls.ESSENTIAL
        return cls.DISCRETIONARY


class CategorySource(str, Enum):
    """Where a transaction's category came from."""
    MAP = "MAP"  # Deterministic lookup-map rule
    LLM = "LLM"  # Classifier fallback


# =============================================================================
# HELPERS
# =============================================================================

_NON_ALPHANUMERIC = re.compile(r"[^A-Za-z0-9]")
_NON_NUMERIC = re.compile(r"[^0-9.\-]")
_CENT = Decimal("0.01")


def normalize_merchant(merchant: str) -> str:
    """Strip non-alphanumeric characters and upper-case."""
    return _NON_ALPHANUMERIC.sub("", merchant).upper()


def generate_transaction_id(txn_date: str, merchant: str, cents: int) -> str:
    """
    Deterministic transaction id.

    Resubmitting the same (date, merchant, amount) event yields the same id,
    which is what duplicate detection keys on.
    """
    return f"{txn_date}_{normalize_merchant(merchant)}_{cents}"


def cents_to_amount(cents: int) -> Decimal:
    """Convert minor units to a 2-decimal currency amount."""
    return (Decimal(cents) / 100).quantize(_CENT)


def parse_amount(value: Any) -> Decimal:
    """
    Parse an amount cell from the spreadsheet.

    Cells may carry currency symbols or thousands separators
    ("R1,234.50"). Blank or unparseable cells count as zero.
    """
    if value is None:
        return Decimal("0")
    if isinstance(value, (int, float, Decimal)):
        return Decimal(str(value))
    cleaned = _NON_NUMERIC.sub("", str(value))
    if not cleaned:
        return Decimal("0")
    try:
        return Decimal(cleaned)
    except InvalidOperation:
        return Decimal("0")


def cell(row: list, index: int, default: str = "") -> str:
    """Get a cell as a stripped string; the Sheets API drops trailing blanks."""
    try:
        value = row[index]
    except IndexError:
        return default
    if value is None:
        return default
    value = str(value).strip()
    return value if value else default


# =============================================================================
# INCOMING EVENT
# =============================================================================

class MerchantDetails(BaseModel):
    """Merchant block of an incoming transaction event."""
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Raw merchant display name"
    )
    city: str = Field(
        default="Unknown",
        description="Merchant city"
    )
    category: str = Field(
        default="Unknown",
        description="Card network's merchant category, used as a classifier hint"
    )

    @field_validator('city', 'category', mode='before')
    @classmethod
    def default_blank(cls, v: Any) -> Any:
        """Some feeds send the category as {"name": ...}; blanks mean Unknown."""
        if isinstance(v, dict):
            v = v.get("name")
        if v is None or (isinstance(v, str) and not v.strip()):
            return "Unknown"
        return v


class RawTransactionEvent(BaseModel):
    """
    A transaction event as submitted by the card/bank webhook.

    Example payload:
        {"dateTime": "2026-02-11T09:30:00Z",
         "merchant": {"name": "Uber Eats", "city": "Johannesburg", "category": "Restaurants"},
         "centsAmount": 15450}
    """
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    date_time: str = Field(
        ...,
        min_length=10,
        validation_alias=AliasChoices("dateTime", "date_time"),
        description="ISO-8601 date or datetime"
    )
    merchant: MerchantDetails
    cents_amount: int = Field(
        ...,
        validation_alias=AliasChoices("centsAmount", "cents_amount"),
        description="Amount in minor currency units"
    )

    @field_validator('date_time')
    @classmethod
    def validate_iso_date(cls, v: str) -> str:
        """The leading YYYY-MM-DD must be a real date; month/date search depends on it."""
        try:
            date.fromisoformat(v[:10])
        except ValueError:
            raise ValueError(f"dateTime must start with an ISO date (YYYY-MM-DD), got {v!r}")
        return v

    @field_validator('cents_amount', mode='before')
    @classmethod
    def reject_fractional_cents(cls, v: Any) -> Any:
        if isinstance(v, bool):
            raise ValueError("centsAmount must be an integer")
        if isinstance(v, float) and not v.is_integer():
            raise ValueError("centsAmount must be a whole number of cents")
        return v

    @property
    def transaction_id(self) -> str:
        return generate_transaction_id(self.date_time, self.merchant.name, self.cents_amount)

    @property
    def amount(self) -> Decimal:
        return cents_to_amount(self.cents_amount)


# =============================================================================
# PERSISTED MODELS
# =============================================================================

class Transaction(BaseModel):
    """
    A recorded transaction (one row of the raw log).

    Created once at ingestion time; never mutated or deleted.
    """

    id: str = Field(..., min_length=1)
    date: str = Field(..., description="ISO-8601 date or datetime as submitted")
    merchant: str = Field(..., description="Raw merchant display name")
    amount: Decimal = Field(..., decimal_places=2)
    category: Category
    sentiment: Sentiment
    confidence: float = Field(ge=0.0, le=1.0)
    source: CategorySource
    merchant_city: str = "Unknown"
    recorded_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    def to_row(self) -> list:
        """
        Convert to a raw-log row.

        Columns: [id, date, merchant, amount, category, sentiment,
                  confidence, source, merchant_city, recorded_at]
        """
        return [
            self.id,
            self.date,
            self.merchant,
            f"{self.amount:.2f}",
            self.category.value,
            self.sentiment.value,
            self.confidence,
            self.source.value,
            self.merchant_city,
            self.recorded_at.isoformat(),
        ]


class CategoryRule(BaseModel):
    """A lookup-map row: merchant name fragment -> category/sentiment."""

    merchant_key_fragment: str
    category: Category
    sentiment: Sentiment

    @field_validator('category', mode='before')
    @classmethod
    def coerce_category(cls, v: Any) -> Category:
        return Category.coerce(v)

    @field_validator('sentiment', mode='before')
    @classmethod
    def coerce_sentiment(cls, v: Any) -> Sentiment:
        return Sentiment.coerce(v)

    @classmethod
    def from_row(cls, row: list) -> Optional["CategoryRule"]:
        """Parse a lookup-map row; rows without a fragment are ignored."""
        fragment = cell(row, 0)
        if not fragment:
            return None
        return cls(
            merchant_key_fragment=fragment,
            category=cell(row, 1),
            sentiment=cell(row, 2),
        )


class BudgetTarget(BaseModel):
    """A budget-table row. Category labels are kept as written in the sheet."""

    category: str
    monthly_target_amount: Decimal

    @classmethod
    def from_row(cls, row: list) -> Optional["BudgetTarget"]:
        category = cell(row, 0)
        if not category:
            return None
        return cls(category=category, monthly_target_amount=parse_amount(cell(row, 1)))


# =============================================================================
# CLASSIFIER BOUNDARY
# =============================================================================

class ClassifierVerdict(BaseModel):
    """
    Parsed classifier response.

    Category and sentiment are coerced into their closed sets;
    confidence is clamped to [0, 1]. A non-numeric confidence or a
    non-object response is a validation failure.
    """

    category: Category
    sentiment: Sentiment = Sentiment.DISCRETIONARY
    confidence: float

    @field_validator('category', mode='before')
    @classmethod
    def coerce_category(cls, v: Any) -> Category:
        return Category.coerce(v)

    @field_validator('sentiment', mode='before')
    @classmethod
    def coerce_sentiment(cls, v: Any) -> Sentiment:
        return Sentiment.coerce(v)

    @field_validator('confidence', mode='before')
    @classmethod
    def clamp_confidence(cls, v: Any) -> float:
        if isinstance(v, bool):
            raise ValueError("confidence must be a number")
        try:
            value = float(v)
        except (TypeError, ValueError):
            raise ValueError(f"confidence must be a number, got {v!r}")
        if value != value:  # NaN
            raise ValueError("confidence must be a number")
        return min(max(value, 0.0), 1.0)

    @classmethod
    def fallback(cls) -> "ClassifierVerdict":
        """Verdict used when the classifier is unavailable."""
        return cls(
            category=Category.UNCATEGORIZED,
            sentiment=Sentiment.DISCRETIONARY,
            confidence=0.0,
        )


# =============================================================================
# INGESTION RESULT
# =============================================================================

class IngestStatus(str, Enum):
    RECORDED = "recorded"
    DUPLICATE = "duplicate"


class IngestResult(BaseModel):
    """Outcome of ingesting one event."""

    status: IngestStatus
    transaction_id: str
    transaction: Optional[Transaction] = None
