"""Command-line interface for numisma."""

from __future__ import annotations

import argparse
import json
import sys
from datetime import datetime
from pathlib import Path

import pandas as pd

from numisma.config import Settings
from numisma.domain.models import Position
from numisma.errors import DataImportError
from numisma.importing.backup import BackupRestore, read_backup_metadata, restore_backup
from numisma.importing.service import (
    import_from_file,
    import_multiple_from_file,
    read_source_text,
)
from numisma.importing.types import BatchSummary, ImportOptions
from numisma.logging import HumanLogger, generate_portfolio_report
from numisma.metrics.portfolio import metrics_for_period, performance


def build_parser() -> argparse.ArgumentParser:
    """Build CLI parser."""
    parser = argparse.ArgumentParser(
        prog="numisma",
        description="Import, validate and summarize crypto portfolio data",
    )
    parser.add_argument("--log-level", type=str, help="Console log level")
    parser.add_argument("--base-currency", type=str, help="Currency used in log output")
    commands = parser.add_subparsers(dest="command", required=True)

    import_parser = commands.add_parser("import", help="Import portfolio JSON")
    import_parser.add_argument("path", type=str, help="JSON file with one portfolio or an array")
    import_parser.add_argument(
        "--batch",
        action="store_true",
        help="Treat the file as an array and import each element independently",
    )
    import_parser.add_argument("--no-validate", action="store_true", help="Skip validation")
    import_parser.add_argument("--no-dates", action="store_true", help="Keep dates as given")
    import_parser.add_argument("--no-numbers", action="store_true", help="Keep numbers as given")
    import_parser.add_argument(
        "--no-booleans", action="store_true", help="Keep booleans as given"
    )

    info_parser = commands.add_parser("backup-info", help="Show backup metadata")
    info_parser.add_argument("path", type=str, help="Backup file")

    metrics_parser = commands.add_parser("metrics", help="Compute metrics from a backup")
    metrics_parser.add_argument("path", type=str, help="Backup file")
    metrics_parser.add_argument("--portfolio", type=str, help="Only positions of this portfolio id")
    metrics_parser.add_argument("--start", type=str, help="Period start (ISO date)")
    metrics_parser.add_argument("--end", type=str, help="Period end (ISO date)")

    report_parser = commands.add_parser("report", help="Write an HTML report from a backup")
    report_parser.add_argument("path", type=str, help="Backup file")
    report_parser.add_argument("--portfolio", type=str, help="Only positions of this portfolio id")
    report_parser.add_argument("--output", type=str, help="Output HTML path")
    report_parser.add_argument("--title", type=str, help="Report title")
    return parser


def apply_cli_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    """Apply CLI values onto environment-derived settings."""
    overrides: dict[str, object] = {}
    if args.log_level:
        overrides["log_level"] = args.log_level.strip().upper()
    if args.base_currency:
        overrides["base_currency"] = args.base_currency
    if getattr(args, "no_validate", False):
        overrides["validate_imports"] = False
    if getattr(args, "no_dates", False):
        overrides["normalize_dates"] = False
    if getattr(args, "no_numbers", False):
        overrides["normalize_numbers"] = False
    if getattr(args, "no_booleans", False):
        overrides["normalize_booleans"] = False
    return settings.with_overrides(**overrides)


def resolve_window(args: argparse.Namespace) -> tuple[datetime, datetime] | None:
    """Parse ``--start``/``--end`` into a UTC window, or None when absent."""
    start_text = getattr(args, "start", None)
    end_text = getattr(args, "end", None)
    if start_text is None and end_text is None:
        return None
    if start_text is None or end_text is None:
        raise ValueError("--start and --end must be used together")
    start = _parse_cli_date(start_text, "--start")
    end = _parse_cli_date(end_text, "--end")
    if start > end:
        raise ValueError("--start must not be after --end")
    return start, end


def run_import(settings: Settings, args: argparse.Namespace, logger: HumanLogger) -> int:
    options = ImportOptions.from_settings(settings)
    if args.batch:
        results = import_multiple_from_file(args.path, options)
    else:
        results = [import_from_file(args.path, options)]
    for index, result in enumerate(results):
        print(json.dumps(result.to_record(), sort_keys=True))
        label = f"#{index}" if args.batch else Path(args.path).name
        logger.import_result(label, result)
    if args.batch:
        summary = BatchSummary.from_results(results)
        logger.batch_summary(summary.total, summary.succeeded, summary.failed)
    return 0 if all(result.success for result in results) else 1


def run_backup_info(args: argparse.Namespace, logger: HumanLogger) -> int:
    metadata = read_backup_metadata(read_source_text(args.path))
    logger.backup_metadata(metadata)
    print(json.dumps(metadata.to_record(), sort_keys=True))
    return 0


def run_metrics(
    settings: Settings,
    args: argparse.Namespace,
    logger: HumanLogger,
    window: tuple[datetime, datetime] | None,
) -> int:
    restored = _restore(settings, args.path, logger)
    positions = _select_positions(restored, args.portfolio)
    if positions is None:
        logger.error(f"Unknown portfolio '{args.portfolio}'")
        return 1
    summary = performance(positions)
    logger.performance(
        args.portfolio or "all",
        summary.total_value,
        summary.profit_loss,
        summary.return_percentage,
    )
    for allocation in summary.asset_allocations:
        logger.allocation(allocation.asset, allocation.value, allocation.percentage)
    risk = summary.risk_metrics
    logger.risk(risk.average_risk_level, risk.max_drawdown, risk.volatility)
    output: dict[str, object] = {"performance": summary.to_record()}
    if window is not None:
        start, end = window
        period = metrics_for_period(positions, start, end)
        logger.period(
            start.date().isoformat(),
            end.date().isoformat(),
            len(period.position_valuations),
            period.period_value,
            period.period_profit_loss,
            period.period_return,
        )
        output["period"] = period.to_record()
    print(json.dumps(output, sort_keys=True))
    return 0


def run_report(settings: Settings, args: argparse.Namespace, logger: HumanLogger) -> int:
    restored = _restore(settings, args.path, logger)
    positions = _select_positions(restored, args.portfolio)
    if positions is None:
        logger.error(f"Unknown portfolio '{args.portfolio}'")
        return 1
    name = args.portfolio or "portfolio"
    output = args.output or str(Path(settings.reports_dir) / f"{name}_report.html")
    title = args.title or f"{name} report"
    path = generate_portfolio_report(positions, output, title, currency=settings.base_currency)
    logger.report(str(path))
    return 0


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint."""
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        settings = apply_cli_overrides(Settings.from_env(), args)
        window = resolve_window(args)
    except ValueError as exc:
        print(f"Configuration error: {exc}")
        return 2
    logger = HumanLogger(settings.log_level, currency=settings.base_currency)
    if args.command == "import":
        return run_import(settings, args, logger)
    try:
        if args.command == "backup-info":
            return run_backup_info(args, logger)
        if args.command == "metrics":
            return run_metrics(settings, args, logger, window)
        return run_report(settings, args, logger)
    except DataImportError as exc:
        logger.error(f"{exc.code} | {exc.message}")
        return 1


def _restore(settings: Settings, path: str, logger: HumanLogger) -> BackupRestore:
    restored = restore_backup(read_source_text(path), ImportOptions.from_settings(settings))
    logger.backup_metadata(restored.metadata)
    for kind, index, result in restored.failures():
        logger.import_result(f"{kind} #{index}", result)
    return restored


def _select_positions(restored: BackupRestore, portfolio_id: str | None) -> list[Position] | None:
    if portfolio_id is None:
        return restored.valid_positions()
    known = {portfolio.id for portfolio in restored.valid_portfolios()}
    if portfolio_id not in known:
        return None
    return restored.valid_positions(portfolio_id)


def _parse_cli_date(text: str, flag: str) -> datetime:
    parsed = pd.to_datetime(text, utc=True, errors="coerce")
    if parsed is pd.NaT:
        raise ValueError(f"{flag} must be an ISO date, got '{text}'")
    return parsed.to_pydatetime()


if __name__ == "__main__":
    sys.exit(main())
