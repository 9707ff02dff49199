"""Environment and CLI runtime configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Self

from dotenv import load_dotenv

from numisma.errors import ConfigError

LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def parse_bool(value: str | None, default: bool) -> bool:
    """Parse truthy environment strings."""
    if value is None:
        return default
    text = value.strip().lower()
    if not text:
        return default
    return text in {"1", "true", "yes", "y", "on"}


@dataclass(frozen=True)
class Settings:
    """Immutable runtime settings."""

    log_level: str = "INFO"
    base_currency: str = "USD"
    validate_imports: bool = True
    normalize_dates: bool = True
    normalize_numbers: bool = True
    normalize_booleans: bool = True
    reports_dir: str = "reports"

    @classmethod
    def from_env(cls) -> Self:
        """Create settings from ``.env`` and environment variables."""
        load_dotenv()
        raw = cls(
            log_level=str(os.getenv("LOG_LEVEL", "INFO")).strip().upper(),
            base_currency=str(os.getenv("BASE_CURRENCY", "USD")).strip().upper(),
            validate_imports=parse_bool(os.getenv("IMPORT_VALIDATE"), True),
            normalize_dates=parse_bool(os.getenv("NORMALIZE_DATES"), True),
            normalize_numbers=parse_bool(os.getenv("NORMALIZE_NUMBERS"), True),
            normalize_booleans=parse_bool(os.getenv("NORMALIZE_BOOLEANS"), True),
            reports_dir=str(os.getenv("REPORTS_DIR", "reports")).strip(),
        )
        return raw.validate()

    def with_overrides(self, **kwargs: object) -> Self:
        """Return a new settings object with updated values."""
        overrides = dict(kwargs)
        currency = overrides.get("base_currency")
        if isinstance(currency, str):
            overrides["base_currency"] = currency.strip().upper()
        updated = replace(self, **overrides)
        return updated.validate()

    def validate(self) -> Self:
        """Validate settings fields."""
        if self.log_level not in LOG_LEVELS:
            supported = ", ".join(sorted(LOG_LEVELS))
            raise ConfigError(f"log_level must be one of {supported}")
        if len(self.base_currency) != 3 or not self.base_currency.isalpha():
            raise ConfigError("base_currency must be a three-letter currency code")
        if not self.reports_dir:
            raise ConfigError("reports_dir must not be empty")
        return self
