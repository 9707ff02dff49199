"""Concise human-readable console logger."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from numisma.format import format_currency, format_number, format_percentage


class HumanLogger:
    """Console logger with fixed line types."""

    def __init__(self, level: str = "INFO", currency: str = "USD") -> None:
        self.currency = currency
        self._logger = logging.getLogger("numisma")
        self._logger.setLevel(getattr(logging, level.upper(), logging.INFO))
        self._logger.propagate = False
        if not self._logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter("%(asctime)s | %(message)s", "%Y-%m-%d %H:%M:%S")
            handler.setFormatter(formatter)
            self._logger.addHandler(handler)

    def import_result(self, label: str, result: Any) -> None:
        """Log one import outcome; ``result`` is an ``ImportResult``."""
        if result.success:
            data = result.data
            parts = [f"import | {label} | ok"]
            record_id = getattr(data, "id", None)
            if record_id:
                parts.append(f"id {record_id}")
            name = getattr(data, "name", None)
            if name:
                parts.append(str(name))
            self._logger.info(" | ".join(parts))
            return
        parts = [f"import | {label} | failed | {result.error.message}"]
        paths = self._failed_paths(result.error.details)
        if paths:
            parts.append("fields " + ", ".join(paths))
        self._logger.warning(" | ".join(parts))

    def batch_summary(self, total: int, succeeded: int, failed: int) -> None:
        self._logger.info("batch | total %d | ok %d | failed %d", total, succeeded, failed)

    def backup_metadata(self, metadata: Any) -> None:
        self._logger.info(
            "backup | version %s | user %s | portfolios %d | positions %d "
            "| assets %d | orders %d | at %s",
            metadata.version,
            metadata.user_id or "-",
            metadata.portfolio_count,
            metadata.position_count,
            metadata.asset_count,
            metadata.order_count,
            metadata.timestamp,
        )

    def performance(
        self,
        label: str,
        total_value: float,
        profit_loss: float,
        return_percentage: float,
    ) -> None:
        self._logger.info(
            "performance | %s | value %s | pnl %s | return %s",
            label,
            format_currency(total_value, self.currency),
            format_currency(profit_loss, self.currency, sign_display="except_zero"),
            format_percentage(return_percentage, sign_display="except_zero"),
        )

    def allocation(self, asset: str | None, value: float, percentage: float) -> None:
        self._logger.info(
            "allocation | %s | %s | %s",
            asset,
            format_currency(value, self.currency),
            format_percentage(percentage),
        )

    def risk(self, average_risk_level: float, max_drawdown: float, volatility: float) -> None:
        self._logger.info(
            "risk | avg_level %s | max_drawdown %s | volatility %s",
            format_number(average_risk_level),
            format_currency(max_drawdown, self.currency),
            format_number(volatility),
        )

    def period(
        self,
        start: str,
        end: str,
        positions: int,
        value: float,
        profit_loss: float,
        period_return: float,
    ) -> None:
        self._logger.info(
            "period | %s -> %s | positions %d | value %s | pnl %s | return %s",
            start,
            end,
            positions,
            format_currency(value, self.currency),
            format_currency(profit_loss, self.currency, sign_display="except_zero"),
            format_percentage(period_return, sign_display="except_zero"),
        )

    def report(self, path: str) -> None:
        self._logger.info("report | %s", path)

    def error(self, message: str) -> None:
        self._logger.error("error | %s", message)

    @staticmethod
    def _failed_paths(details: Any) -> list[str]:
        if not isinstance(details, Sequence) or isinstance(details, str):
            return []
        paths: list[str] = []
        for item in details:
            path = getattr(item, "path", None)
            if path and path not in paths:
                paths.append(path)
        return paths
