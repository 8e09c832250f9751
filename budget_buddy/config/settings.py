"""
Configuration Management for Budget Buddy

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Collaborators (Google Sheets, Gemini) receive their settings object
explicitly in their constructors and load it eagerly, so a missing
credential fails at startup with a ConfigurationError instead of on the
first request.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional, TypeVar

from pydantic import Field, ValidationError as PydanticValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from budget_buddy.errors import ConfigurationError


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    spreadsheet_id: str = Field(
        ...,
        min_length=1,
        description="ID of the Google Sheets spreadsheet to use"
    )
    credentials_path: Optional[str] = Field(
        default=None,
        description="Path to Google service account credentials JSON"
    )
    credentials_json: Optional[str] = Field(
        default=None,
        description="Service account credentials as a JSON string"
    )

    # Ranges within the spreadsheet (all include a header row)
    transactions_range: str = Field(
        default="raw_transactions!A:J",
        description="Append-only raw transaction log"
    )
    transaction_ids_range: str = Field(
        default="raw_transactions!A:A",
        description="Transaction id column, used for duplicate checks"
    )
    rules_range: str = Field(
        default="lookup_map!A:C",
        description="Merchant fragment -> category/sentiment lookup table"
    )
    budget_range: str = Field(
        default="budget!A:B",
        description="Per-category monthly budget targets"
    )
    actuals_range: str = Field(
        default="monthly_stats!A:ZZ",
        description="Actual spend: one row per category, one column per month"
    )
    audit_range: str = Field(
        default="audit_log!A:K",
        description="Audit log range"
    )
    audit_spreadsheet_id: Optional[str] = Field(
        default=None,
        description="Spreadsheet holding the audit range; defaults to spreadsheet_id"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: Optional[str]) -> Optional[str]:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if v and not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before running the application."
            )
        return v

    @model_validator(mode='after')
    def require_credentials(self) -> 'GoogleSheetsSettings':
        if not self.credentials_path and not self.credentials_json:
            raise ValueError(
                "Either GOOGLE_SHEETS_CREDENTIALS_PATH or "
                "GOOGLE_SHEETS_CREDENTIALS_JSON must be set"
            )
        return self


class GeminiSettings(BaseSettings):
    """Gemini LLM configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    api_key: str = Field(
        ...,
        min_length=1,
        description="Gemini API key"
    )
    model_name: str = Field(
        default="gemini-2.5-flash-lite",
        description="Gemini model used for category classification"
    )
    advisor_model_name: str = Field(
        default="gemini-2.5-flash",
        description="Gemini model used by the conversational advisor"
    )
    max_tokens: int = Field(
        default=1024,
        ge=100,
        le=8192,
        description="Maximum tokens in an advisor response"
    )
    classifier_max_tokens: int = Field(
        default=256,
        ge=16,
        le=8192,
        description="Maximum tokens in a classifier response (a small JSON object)"
    )
    temperature: float = Field(
        default=0.1,
        ge=0.0,
        le=1.0,
        description="Model temperature (lower = more deterministic)"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    # Ingestion
    dedup_window: int = Field(
        default=50,
        ge=1,
        le=5000,
        description="How many of the most recent transaction ids are checked for duplicates"
    )

    # Queries
    warning_ratio: float = Field(
        default=0.2,
        gt=0.0,
        lt=1.0,
        description="Remaining budget below this share of target is a WARNING"
    )
    default_search_limit: int = Field(
        default=10,
        ge=1,
        le=500,
        description="Default cap on returned search results"
    )

    # Audit
    persist_audit: bool = Field(
        default=False,
        description="Append audit events to the audit range of the spreadsheet"
    )

    currency_symbol: str = Field(
        default="R",
        description="Currency symbol used in user-facing replies"
    )


SettingsT = TypeVar("SettingsT", bound=BaseSettings)


def load_settings(settings_cls: type[SettingsT]) -> SettingsT:
    """
    Instantiate a settings class, converting validation failures
    into a ConfigurationError naming the missing/invalid fields.
    """
    try:
        return settings_cls()
    except PydanticValidationError as e:
        fields = [".".join(str(part) for part in err["loc"]) or "settings" for err in e.errors()]
        raise ConfigurationError(
            f"Invalid {settings_cls.__name__}: {e.error_count()} problem(s)",
            operation="load_settings",
            offending_input=fields,
        ) from e


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Note: These are loaded lazily to allow partial configuration

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return load_settings(GoogleSheetsSettings)

    @property
    def gemini(self) -> GeminiSettings:
        return load_settings(GeminiSettings)

    @property
    def app(self) -> AppSettings:
        return load_settings(AppSettings)


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus
    {setting_name}_error entries for the failures.
    """
    results = {}
    settings = get_settings()

    for name in ("google_sheets", "gemini", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except ConfigurationError as e:
            results[name] = False
            results[f"{name}_error"] = f"{e} {e.offending_input}"

    return results
