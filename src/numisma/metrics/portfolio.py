"""Aggregate figures computed over a list of positions."""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from typing import Any

import pandas as pd

from numisma.domain.models import Genesis, Position, PositionStatus

VALUATION_COLUMNS = [
    "id",
    "position_id",
    "value",
    "market_price",
    "quantity",
    "cost_basis",
    "profit_loss",
    "percentage_return",
    "is_open",
    "tags",
]


@dataclass(frozen=True)
class AssetAllocation:
    asset: str | None
    value: float
    percentage: float

    def to_record(self) -> dict[str, Any]:
        return {"asset": self.asset, "value": self.value, "percentage": self.percentage}


@dataclass(frozen=True)
class RiskMetrics:
    """Simplified risk figures.

    ``volatility`` is the mean of squared position returns, not a variance.
    """

    average_risk_level: float
    max_drawdown: float
    volatility: float

    def to_record(self) -> dict[str, Any]:
        return {
            "averageRiskLevel": self.average_risk_level,
            "maxDrawdown": self.max_drawdown,
            "volatility": self.volatility,
        }


@dataclass(frozen=True)
class PortfolioPerformance:
    total_value: float
    profit_loss: float
    return_percentage: float
    asset_allocations: tuple[AssetAllocation, ...]
    risk_metrics: RiskMetrics

    def to_record(self) -> dict[str, Any]:
        return {
            "totalValue": self.total_value,
            "profitLoss": self.profit_loss,
            "returnPercentage": self.return_percentage,
            "assetAllocations": [item.to_record() for item in self.asset_allocations],
            "riskMetrics": self.risk_metrics.to_record(),
        }


@dataclass(frozen=True)
class PositionValuation:
    """Point-in-time projection of one position."""

    id: str
    position_id: str
    value: float
    market_price: float
    quantity: float
    cost_basis: float
    profit_loss: float
    percentage_return: float
    is_open: bool
    tags: tuple[str, ...] = ()

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "positionId": self.position_id,
            "value": self.value,
            "marketPrice": self.market_price,
            "quantity": self.quantity,
            "costBasis": self.cost_basis,
            "profitLoss": self.profit_loss,
            "percentageReturn": self.percentage_return,
            "isOpen": self.is_open,
            "tags": list(self.tags),
        }


@dataclass(frozen=True)
class PeriodMetrics:
    period_value: float
    period_profit_loss: float
    period_return: float
    position_valuations: tuple[PositionValuation, ...]

    def to_record(self) -> dict[str, Any]:
        return {
            "periodValue": self.period_value,
            "periodProfitLoss": self.period_profit_loss,
            "periodReturn": self.period_return,
            "positionValuations": [item.to_record() for item in self.position_valuations],
        }


def total_value(positions: Iterable[Position]) -> float:
    """Sum of current values; positions without one count as zero."""
    return sum(_amount(position.current_value) for position in positions)


def profit_loss(positions: Iterable[Position]) -> float:
    """Sum of realized and unrealized profit/loss."""
    return sum(_position_profit_loss(position) for position in positions)


def return_percentage(positions: Iterable[Position], initial_investment: float) -> float:
    if initial_investment == 0:
        return 0.0
    return (total_value(positions) - initial_investment) / initial_investment * 100


def asset_allocations(positions: Sequence[Position]) -> list[AssetAllocation]:
    """Share of total value per asset ticker, largest first.

    Tickers that tie on value keep the order in which they first appear.
    Positions without a ticker share one allocation whose asset is ``None``.
    """
    total = total_value(positions)
    if not positions or total == 0:
        return []
    frame = pd.DataFrame(
        {
            "asset": [position.asset.ticker for position in positions],
            "value": [_amount(position.current_value) for position in positions],
        }
    )
    grouped = frame.groupby("asset", sort=False, dropna=False)["value"].sum()
    allocations = [
        AssetAllocation(
            asset=None if pd.isna(asset) else str(asset),
            value=float(value),
            percentage=float(value) / total * 100,
        )
        for asset, value in grouped.items()
    ]
    return sorted(allocations, key=lambda allocation: allocation.value, reverse=True)


def risk_metrics(positions: Sequence[Position]) -> RiskMetrics:
    if not positions:
        return RiskMetrics(average_risk_level=0.0, max_drawdown=0.0, volatility=0.0)
    count = len(positions)
    average_risk_level = sum(_amount(position.risk_level) for position in positions) / count
    max_drawdown = min(
        (_amount(position.position_details.unrealized_profit_loss) for position in positions),
        default=0.0,
    )
    volatility = (
        sum(_amount(position.position_details.current_return) ** 2 for position in positions)
        / count
    )
    return RiskMetrics(
        average_risk_level=average_risk_level,
        max_drawdown=min(max_drawdown, 0.0),
        volatility=volatility,
    )


def performance(positions: Sequence[Position]) -> PortfolioPerformance:
    """Value, profit/loss, return on summed cost, allocations and risk."""
    invested = _invested(positions)
    return PortfolioPerformance(
        total_value=total_value(positions),
        profit_loss=profit_loss(positions),
        return_percentage=return_percentage(positions, invested),
        asset_allocations=tuple(asset_allocations(positions)),
        risk_metrics=risk_metrics(positions),
    )


def position_valuations(positions: Iterable[Position]) -> list[PositionValuation]:
    valuations: list[PositionValuation] = []
    for position in positions:
        details = position.position_details
        market_data = position.asset.market_data
        valuations.append(
            PositionValuation(
                id=f"val_{position.id}",
                position_id=position.id,
                value=_amount(position.current_value),
                market_price=_amount(market_data.current_price if market_data else None),
                quantity=_amount(details.total_size),
                cost_basis=_amount(details.total_cost),
                profit_loss=_position_profit_loss(position),
                percentage_return=_amount(details.current_return),
                is_open=details.status == PositionStatus.ACTIVE,
                tags=tuple(position.tags),
            )
        )
    return valuations


def metrics_for_period(
    positions: Iterable[Position],
    start: datetime,
    end: datetime,
) -> PeriodMetrics:
    """Re-run the aggregates over positions active at any point in [start, end].

    A genesis open date precedes every window; a genesis close date means the
    position closed before any window. Positions without a usable open date
    are left out.
    """
    window_start = _as_utc(start)
    window_end = _as_utc(end)
    active = [
        position
        for position in positions
        if _active_during(position, window_start, window_end)
    ]
    invested = _invested(active)
    return PeriodMetrics(
        period_value=total_value(active),
        period_profit_loss=profit_loss(active),
        period_return=return_percentage(active, invested),
        position_valuations=tuple(position_valuations(active)),
    )


def valuations_frame(positions: Iterable[Position]) -> pd.DataFrame:
    """Valuations as a DataFrame, one row per position."""
    rows = [asdict(valuation) for valuation in position_valuations(positions)]
    return pd.DataFrame(rows, columns=VALUATION_COLUMNS)


def _active_during(position: Position, start: datetime, end: datetime) -> bool:
    details = position.position_details
    opened = _point_in_time(details.date_opened)
    if opened is None:
        return False
    if isinstance(opened, datetime) and opened > end:
        return False
    if details.date_closed is None:
        return True
    closed = _point_in_time(details.date_closed)
    if closed is None or isinstance(closed, Genesis):
        return False
    return closed >= start


def _point_in_time(value: Any) -> datetime | Genesis | None:
    if value is None or value is pd.NaT:
        return None
    if isinstance(value, Genesis):
        return value
    if isinstance(value, str):
        if value == Genesis.GENESIS.value:
            return Genesis.GENESIS
        parsed = pd.to_datetime(value, utc=True, errors="coerce")
        if parsed is pd.NaT:
            return None
        return parsed.to_pydatetime()
    if isinstance(value, datetime):
        return _as_utc(value)
    return None


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def _invested(positions: Iterable[Position]) -> float:
    return sum(_amount(position.position_details.total_cost) for position in positions)


def _position_profit_loss(position: Position) -> float:
    details = position.position_details
    return _amount(details.realized_profit_loss) + _amount(details.unrealized_profit_loss)


def _amount(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    if math.isnan(value):
        return 0.0
    return float(value)
