from __future__ import annotations

import pytest

from numisma.config import Settings, parse_bool
from numisma.errors import ConfigError
from numisma.importing.types import ImportOptions

ENV_KEYS = [
    "LOG_LEVEL",
    "BASE_CURRENCY",
    "IMPORT_VALIDATE",
    "NORMALIZE_DATES",
    "NORMALIZE_NUMBERS",
    "NORMALIZE_BOOLEANS",
    "REPORTS_DIR",
]


def _clear_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("numisma.config.load_dotenv", lambda *args, **kwargs: None)
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_defaults_without_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    _clear_env(monkeypatch)

    settings = Settings.from_env()

    assert settings == Settings()
    assert settings.validate_imports is True
    assert settings.reports_dir == "reports"


def test_environment_values_are_parsed(monkeypatch: pytest.MonkeyPatch) -> None:
    _clear_env(monkeypatch)
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("BASE_CURRENCY", "eur")
    monkeypatch.setenv("IMPORT_VALIDATE", "false")
    monkeypatch.setenv("NORMALIZE_NUMBERS", "0")
    monkeypatch.setenv("REPORTS_DIR", "out/reports")

    settings = Settings.from_env()

    assert settings.log_level == "DEBUG"
    assert settings.base_currency == "EUR"
    assert settings.validate_imports is False
    assert settings.normalize_numbers is False
    assert settings.normalize_dates is True
    assert settings.reports_dir == "out/reports"


def test_invalid_log_level_is_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    _clear_env(monkeypatch)
    monkeypatch.setenv("LOG_LEVEL", "chatty")

    with pytest.raises(ConfigError, match="log_level"):
        Settings.from_env()


def test_overrides_are_validated() -> None:
    settings = Settings().with_overrides(base_currency=" gbp ")

    assert settings.base_currency == "GBP"
    with pytest.raises(ValueError, match="base_currency"):
        Settings().with_overrides(base_currency="pounds")


@pytest.mark.parametrize(
    ("value", "expected"),
    [(None, True), ("", True), ("yes", True), ("ON", True), ("false", False), ("nope", False)],
)
def test_parse_bool(value: str | None, expected: bool) -> None:
    assert parse_bool(value, True) is expected


def test_import_options_follow_settings() -> None:
    settings = Settings(validate_imports=False, normalize_booleans=False)

    options = ImportOptions.from_settings(settings)

    assert options.validate is False
    assert options.normalize_booleans is False
    assert options.transform_options().normalize_dates is True
