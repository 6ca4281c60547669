# lead_intake/core/config.py
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from lead_intake.core.exceptions import ConfigurationError
from lead_intake.models.buyer import BuyerTarget, DispatchMode
from lead_intake.models.vertical import Vertical


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    environment: str = Field(default="development", validation_alias="ENVIRONMENT")
    debug: bool = Field(default=False, validation_alias="DEBUG")
    service_name: str = Field(default="lead-intake", validation_alias="SERVICE_NAME")

    # Server
    api_prefix: str = Field(default="/api", validation_alias="API_PREFIX")

    # Logging
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_format: str = Field(default="json", validation_alias="LOG_FORMAT")

    # Row store (Google Sheets)
    row_store_backend: str = Field(default="sheets", validation_alias="ROW_STORE_BACKEND")
    google_sheets_id: Optional[str] = Field(default=None, validation_alias="GOOGLE_SHEETS_ID")
    google_service_account_email: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("GOOGLE_SERVICE_ACCOUNT_EMAIL", "GOOGLE_CLIENT_EMAIL"),
    )
    google_private_key: str = Field(default="", validation_alias="GOOGLE_PRIVATE_KEY")
    leads_range: str = Field(default="Leads!A:M", validation_alias="LEADS_RANGE")
    optouts_range: str = Field(default="OptOuts!A:E", validation_alias="OPTOUTS_RANGE")
    row_store_timeout_seconds: float = Field(default=10.0, validation_alias="ROW_STORE_TIMEOUT_SECONDS")

    # Intake policy
    default_vertical: str = Field(default="auto", validation_alias="DEFAULT_VERTICAL")
    phone_max_digits: int = Field(default=10, validation_alias="PHONE_MAX_DIGITS")
    require_consent: bool = Field(default=False, validation_alias="REQUIRE_CONSENT")
    suppression_cache_seconds: float = Field(default=0.0, validation_alias="SUPPRESSION_CACHE_SECONDS")

    # Buyer dispatch
    dispatch_mode: str = Field(default="dry-run", validation_alias="DISPATCH_MODE")
    buyer_timeout_seconds: float = Field(default=5.0, validation_alias="BUYER_TIMEOUT_SECONDS")
    auto_buyer_url: Optional[str] = Field(default=None, validation_alias="AUTO_BUYER_URL")
    auto_buyer_token: Optional[str] = Field(default=None, validation_alias="AUTO_BUYER_TOKEN")
    auto_buyer_enabled: bool = Field(default=True, validation_alias="AUTO_BUYER_ENABLED")
    home_buyer_url: Optional[str] = Field(default=None, validation_alias="HOME_BUYER_URL")
    home_buyer_token: Optional[str] = Field(default=None, validation_alias="HOME_BUYER_TOKEN")
    home_buyer_enabled: bool = Field(default=True, validation_alias="HOME_BUYER_ENABLED")
    extra_buyers: str = Field(default="", validation_alias="EXTRA_BUYERS")

    # Buyer payload metadata
    form_version: str = Field(default="v1-seo-2026-01", validation_alias="FORM_VERSION")
    site_name: str = Field(default="searchnrate.com", validation_alias="SITE_NAME")

    # Monitoring
    sentry_dsn: Optional[str] = Field(default=None, validation_alias="SENTRY_DSN")
    metrics_enabled: bool = Field(default=True, validation_alias="METRICS_ENABLED")

    @field_validator("environment")
    def validate_environment(cls, v):
        valid_envs = ["development", "testing", "staging", "production"]
        if v not in valid_envs:
            raise ValueError(f"environment must be one of {valid_envs}")
        return v

    @field_validator("log_level")
    def validate_log_level(cls, v):
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return v.upper()

    @field_validator("log_format")
    def validate_log_format(cls, v):
        valid_formats = ["json", "console"]
        if v not in valid_formats:
            raise ValueError(f"log_format must be one of {valid_formats}")
        return v

    @field_validator("row_store_backend")
    def validate_row_store_backend(cls, v):
        valid_backends = ["sheets", "memory"]
        if v not in valid_backends:
            raise ValueError(f"row_store_backend must be one of {valid_backends}")
        return v

    @field_validator("dispatch_mode")
    def validate_dispatch_mode(cls, v):
        v = v.strip().lower().replace("_", "-")
        if v not in ("dry-run", "live"):
            raise ValueError("dispatch_mode must be 'dry-run' or 'live'")
        return v

    @field_validator("default_vertical")
    def validate_default_vertical(cls, v):
        return v.strip().lower()

    @field_validator("phone_max_digits")
    def validate_phone_max_digits(cls, v):
        if v < 0:
            raise ValueError("phone_max_digits must be >= 0 (0 means unbounded)")
        return v

    @field_validator("row_store_timeout_seconds", "buyer_timeout_seconds")
    def validate_timeouts(cls, v):
        if v <= 0:
            raise ValueError("timeouts must be positive")
        return v

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def is_testing(self) -> bool:
        return self.environment == "testing"

    def private_key(self) -> str:
        """Service-account key with wrapping quotes, literal ``\\n`` and CRs cleaned up."""
        key = self.google_private_key.strip()
        if len(key) >= 2 and key[0] == key[-1] and key[0] in ("'", '"'):
            key = key[1:-1]
        return key.replace("\\n", "\n").replace("\r", "").strip()

    def missing_sheets_settings(self) -> List[str]:
        missing = []
        if not self.google_sheets_id:
            missing.append("GOOGLE_SHEETS_ID")
        if not self.google_service_account_email:
            missing.append("GOOGLE_SERVICE_ACCOUNT_EMAIL")
        if "BEGIN PRIVATE KEY" not in self.private_key():
            missing.append("GOOGLE_PRIVATE_KEY")
        return missing

    def extra_buyer_entries(self) -> List[Dict[str, Any]]:
        if not self.extra_buyers.strip():
            return []
        entries = json.loads(self.extra_buyers)
        if not isinstance(entries, list):
            raise ValueError("EXTRA_BUYERS must be a JSON list")
        return entries


@dataclass(frozen=True)
class IntakeConfig:
    """Runtime configuration resolved once at startup and shared read-only."""

    dispatch_mode: DispatchMode = DispatchMode.DRY_RUN
    default_vertical: Vertical = Vertical.AUTO
    phone_max_digits: int = 10
    require_consent: bool = False
    buyers: Tuple[BuyerTarget, ...] = ()
    buyer_timeout_seconds: float = 5.0
    row_store_timeout_seconds: float = 10.0
    suppression_cache_seconds: float = 0.0
    leads_range: str = "Leads!A:M"
    optouts_range: str = "OptOuts!A:E"
    environment: str = "production"
    form_version: str = "v1-seo-2026-01"
    site_name: str = "searchnrate.com"

    @classmethod
    def from_settings(cls, s: Settings) -> "IntakeConfig":
        default_vertical = Vertical.parse(s.default_vertical)
        if default_vertical is None:
            raise ConfigurationError(
                f"DEFAULT_VERTICAL must be one of {[v.value for v in Vertical]}",
                details={"value": s.default_vertical},
            )
        try:
            extra = tuple(BuyerTarget.from_mapping(entry) for entry in s.extra_buyer_entries())
        except (ValueError, TypeError, AttributeError) as e:
            raise ConfigurationError(f"Invalid EXTRA_BUYERS: {e}") from e

        buyers = (
            BuyerTarget(
                name="auto_buyer",
                verticals=frozenset({Vertical.AUTO}),
                endpoint_url=s.auto_buyer_url or None,
                auth_token=s.auto_buyer_token or None,
                enabled=s.auto_buyer_enabled,
            ),
            BuyerTarget(
                name="home_buyer",
                verticals=frozenset({Vertical.HOME}),
                endpoint_url=s.home_buyer_url or None,
                auth_token=s.home_buyer_token or None,
                enabled=s.home_buyer_enabled,
            ),
        ) + extra

        names = [b.name for b in buyers]
        if len(names) != len(set(names)):
            raise ConfigurationError("Buyer names must be unique", details={"buyers": names})

        return cls(
            dispatch_mode=DispatchMode(s.dispatch_mode),
            default_vertical=default_vertical,
            phone_max_digits=s.phone_max_digits,
            require_consent=s.require_consent,
            buyers=buyers,
            buyer_timeout_seconds=s.buyer_timeout_seconds,
            row_store_timeout_seconds=s.row_store_timeout_seconds,
            suppression_cache_seconds=s.suppression_cache_seconds,
            leads_range=s.leads_range,
            optouts_range=s.optouts_range,
            environment=s.environment,
            form_version=s.form_version,
            site_name=s.site_name,
        )

    def enabled_buyer_names(self) -> List[str]:
        return [b.name for b in self.buyers if b.is_dispatchable]


settings = Settings()
