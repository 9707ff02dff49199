from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from numisma import cli
from numisma.cli import apply_cli_overrides, build_parser, resolve_window
from numisma.config import Settings
from numisma.importing.backup import create_backup
from numisma.importing.service import import_portfolio_record, import_position_record


class StubLogger:
    def __init__(self) -> None:
        self.imports: list[tuple[str, bool]] = []
        self.batches: list[tuple[int, int, int]] = []
        self.backups: list[Any] = []
        self.performances: list[tuple[str, float, float, float]] = []
        self.allocations: list[str] = []
        self.periods: list[tuple[Any, ...]] = []
        self.reports: list[str] = []
        self.errors: list[str] = []

    def import_result(self, label: str, result: Any) -> None:
        self.imports.append((label, result.success))

    def batch_summary(self, total: int, succeeded: int, failed: int) -> None:
        self.batches.append((total, succeeded, failed))

    def backup_metadata(self, metadata: Any) -> None:
        self.backups.append(metadata)

    def performance(
        self, label: str, total_value: float, profit_loss: float, return_percentage: float
    ) -> None:
        self.performances.append((label, total_value, profit_loss, return_percentage))

    def allocation(self, asset: str | None, value: float, percentage: float) -> None:
        _ = (value, percentage)
        self.allocations.append(asset)

    def risk(self, average_risk_level: float, max_drawdown: float, volatility: float) -> None:
        _ = (average_risk_level, max_drawdown, volatility)

    def period(self, *args: Any) -> None:
        self.periods.append(args)

    def report(self, path: str) -> None:
        self.reports.append(path)

    def error(self, message: str) -> None:
        self.errors.append(message)


@pytest.fixture
def stub_logger(monkeypatch: pytest.MonkeyPatch) -> StubLogger:
    logger = StubLogger()
    monkeypatch.setattr("numisma.config.load_dotenv", lambda *args, **kwargs: None)
    for key in ("LOG_LEVEL", "BASE_CURRENCY", "IMPORT_VALIDATE", "REPORTS_DIR"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setattr(cli, "HumanLogger", lambda level="INFO", currency="USD": logger)
    return logger


def _portfolio_payload(**overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": "p1",
        "name": "Test",
        "dateCreated": "2024-01-01",
        "status": "active",
        "positionIds": ["pos_1", "pos_2"],
        "userId": "user-1",
        "baseCurrency": "USD",
    }
    payload.update(overrides)
    return payload


def _position_payload(position_id: str, ticker: str, value: float, cost: float) -> dict[str, Any]:
    return {
        "id": position_id,
        "name": f"{ticker} Long",
        "riskLevel": 6,
        "portfolio": "p1",
        "walletType": "hot",
        "seedCapitalTier": "C1",
        "strategy": "Swing",
        "asset": {
            "name": ticker,
            "ticker": ticker,
            "pair": f"{ticker}/USD",
            "locationType": "exchange",
            "wallet": "main",
        },
        "positionDetails": {
            "status": "active",
            "side": "long",
            "timeFrame": "4H",
            "orders": [],
            "dateOpened": "2024-01-10",
            "totalCost": cost,
        },
        "userId": "user-1",
        "dateCreated": "2024-01-10",
        "dateUpdated": "2024-01-10",
        "currentValue": value,
    }


def _write_backup(tmp_path: Path) -> Path:
    portfolio = import_portfolio_record(_portfolio_payload()).data
    positions = [
        import_position_record(_position_payload("pos_1", "BTC", 50000, 45000)).data,
        import_position_record(_position_payload("pos_2", "ETH", 15000, 14000)).data,
    ]
    path = tmp_path / "backup.txt"
    path.write_text(create_backup("user-1", [portfolio], positions), encoding="utf-8")
    return path


def test_cli_overrides_produce_expected_settings() -> None:
    parser = build_parser()
    args = parser.parse_args(
        [
            "--log-level",
            "debug",
            "--base-currency",
            "eur",
            "import",
            "data.json",
            "--no-validate",
            "--no-dates",
            "--no-booleans",
        ]
    )

    settings = apply_cli_overrides(Settings(), args)

    assert settings.log_level == "DEBUG"
    assert settings.base_currency == "EUR"
    assert settings.validate_imports is False
    assert settings.normalize_dates is False
    assert settings.normalize_numbers is True
    assert settings.normalize_booleans is False


def test_cli_requires_a_command() -> None:
    parser = build_parser()

    with pytest.raises(SystemExit):
        parser.parse_args([])


def test_window_requires_both_bounds() -> None:
    parser = build_parser()
    args = parser.parse_args(["metrics", "backup.txt", "--start", "2024-01-01"])

    with pytest.raises(ValueError, match="--start and --end"):
        resolve_window(args)


def test_window_rejects_reversed_bounds() -> None:
    parser = build_parser()
    args = parser.parse_args(
        ["metrics", "backup.txt", "--start", "2024-02-01", "--end", "2024-01-01"]
    )

    with pytest.raises(ValueError, match="after"):
        resolve_window(args)


def test_import_prints_one_record(
    tmp_path: Path, stub_logger: StubLogger, capsys: pytest.CaptureFixture[str]
) -> None:
    path = tmp_path / "portfolio.json"
    path.write_text(json.dumps(_portfolio_payload()), encoding="utf-8")

    exit_code = cli.main(["import", str(path)])

    assert exit_code == 0
    record = json.loads(capsys.readouterr().out.strip())
    assert record["success"] is True
    assert record["data"]["id"] == "p1"
    assert stub_logger.imports == [("portfolio.json", True)]


def test_batch_import_exits_non_zero_on_any_failure(
    tmp_path: Path, stub_logger: StubLogger, capsys: pytest.CaptureFixture[str]
) -> None:
    invalid = _portfolio_payload(id="p2")
    del invalid["name"]
    path = tmp_path / "portfolios.json"
    path.write_text(json.dumps([_portfolio_payload(), invalid]), encoding="utf-8")

    exit_code = cli.main(["import", str(path), "--batch"])

    assert exit_code == 1
    lines = capsys.readouterr().out.strip().splitlines()
    assert [json.loads(line)["success"] for line in lines] == [True, False]
    assert stub_logger.batches == [(2, 1, 1)]


def test_configuration_errors_exit_with_two(
    stub_logger: StubLogger, capsys: pytest.CaptureFixture[str]
) -> None:
    exit_code = cli.main(["--log-level", "chatty", "import", "data.json"])

    assert exit_code == 2
    assert "Configuration error" in capsys.readouterr().out
    assert stub_logger.imports == []


def test_backup_info_prints_metadata(
    tmp_path: Path, stub_logger: StubLogger, capsys: pytest.CaptureFixture[str]
) -> None:
    path = _write_backup(tmp_path)

    exit_code = cli.main(["backup-info", str(path)])

    assert exit_code == 0
    record = json.loads(capsys.readouterr().out.strip())
    assert record["positionCount"] == 2
    assert stub_logger.backups[0].user_id == "user-1"


def test_metrics_prints_performance_and_period(
    tmp_path: Path, stub_logger: StubLogger, capsys: pytest.CaptureFixture[str]
) -> None:
    path = _write_backup(tmp_path)

    exit_code = cli.main(
        ["metrics", str(path), "--portfolio", "p1", "--start", "2024-01-01", "--end", "2024-01-31"]
    )

    assert exit_code == 0
    record = json.loads(capsys.readouterr().out.strip())
    assert record["performance"]["totalValue"] == 65000
    assert record["period"]["periodValue"] == 65000
    assert stub_logger.allocations == ["BTC", "ETH"]
    assert stub_logger.performances[0][0] == "p1"
    assert len(stub_logger.periods) == 1


def test_metrics_for_unknown_portfolio_fails(tmp_path: Path, stub_logger: StubLogger) -> None:
    path = _write_backup(tmp_path)

    exit_code = cli.main(["metrics", str(path), "--portfolio", "nope"])

    assert exit_code == 1
    assert stub_logger.errors == ["Unknown portfolio 'nope'"]


def test_metrics_reports_malformed_backup(tmp_path: Path, stub_logger: StubLogger) -> None:
    path = tmp_path / "broken.txt"
    path.write_text("{oops", encoding="utf-8")

    exit_code = cli.main(["metrics", str(path)])

    assert exit_code == 1
    assert stub_logger.errors[0].startswith("BACKUP_FORMAT_ERROR")


def test_missing_backup_file_fails(tmp_path: Path, stub_logger: StubLogger) -> None:
    exit_code = cli.main(["backup-info", str(tmp_path / "missing.txt")])

    assert exit_code == 1
    assert stub_logger.errors[0].startswith("FILE_READ_ERROR")


def test_report_defaults_to_reports_dir(
    tmp_path: Path, stub_logger: StubLogger, monkeypatch: pytest.MonkeyPatch
) -> None:
    path = _write_backup(tmp_path)
    monkeypatch.setenv("REPORTS_DIR", str(tmp_path / "reports"))

    exit_code = cli.main(["report", str(path), "--portfolio", "p1"])

    assert exit_code == 0
    expected = tmp_path / "reports" / "p1_report.html"
    assert expected.exists()
    assert stub_logger.reports == [str(expected)]


def test_report_writes_to_explicit_output(tmp_path: Path, stub_logger: StubLogger) -> None:
    path = _write_backup(tmp_path)
    output = tmp_path / "custom" / "summary.html"

    exit_code = cli.main(["report", str(path), "--output", str(output), "--title", "Q1"])

    assert exit_code == 0
    assert "<title>Q1</title>" in output.read_text(encoding="utf-8")
