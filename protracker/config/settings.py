"""
Configuration management for ProTracker.
"""

from decimal import Decimal
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from protracker.models.currency import normalize_currency_code


class ProTrackerConfig(BaseSettings):
    """Configuration settings for ProTracker."""

    # Storage
    data_dir: Path = Field(default=Path("data"), alias="PROTRACKER_DATA_DIR")
    receipts_dir: Optional[Path] = Field(default=None, alias="RECEIPTS_DIR")

    # Application Configuration
    environment: str = Field(default="development", alias="ENVIRONMENT")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Billing defaults
    default_currency: str = Field(default="USD", alias="DEFAULT_CURRENCY")
    invoice_due_days: int = Field(default=30, ge=0, alias="INVOICE_DUE_DAYS")

    # Time field reconciliation
    hours_rounding: str = Field(default="up", alias="HOURS_ROUNDING")
    equal_times_policy: str = Field(default="full_day", alias="EQUAL_TIMES_POLICY")
    time_tolerance_hours: Decimal = Field(
        default=Decimal("0.01"), ge=0, alias="TIME_TOLERANCE_HOURS"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        populate_by_name=True,
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Ensure log level is valid."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v):
        """Ensure environment is valid."""
        valid_envs = ["development", "testing", "production"]
        if v.lower() not in valid_envs:
            raise ValueError(f"Environment must be one of: {valid_envs}")
        return v.lower()

    @field_validator("default_currency")
    @classmethod
    def validate_default_currency(cls, v):
        return normalize_currency_code(v)

    @field_validator("hours_rounding")
    @classmethod
    def validate_hours_rounding(cls, v):
        valid_modes = ["up", "half_up"]
        if v.lower() not in valid_modes:
            raise ValueError(f"Hours rounding must be one of: {valid_modes}")
        return v.lower()

    @field_validator("equal_times_policy")
    @classmethod
    def validate_equal_times_policy(cls, v):
        valid_policies = ["full_day", "zero"]
        if v.lower() not in valid_policies:
            raise ValueError(f"Equal times policy must be one of: {valid_policies}")
        return v.lower()

    @property
    def resolved_receipts_dir(self) -> Path:
        """Receipt storage directory, defaulting to ``<data_dir>/receipts``."""
        return self.receipts_dir or self.data_dir / "receipts"


def load_config(env_file: Optional[str] = None) -> ProTrackerConfig:
    """Load configuration from environment variables and .env file."""
    if env_file:
        load_dotenv(env_file)
    else:
        load_dotenv()

    return ProTrackerConfig()


# Global configuration instance
_config: Optional[ProTrackerConfig] = None


def get_config() -> ProTrackerConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reload_config(env_file: Optional[str] = None) -> ProTrackerConfig:
    """Reload configuration (useful for testing)."""
    global _config
    _config = load_config(env_file)
    return _config
