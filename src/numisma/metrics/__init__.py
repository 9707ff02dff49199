"""Portfolio metrics."""

from .portfolio import (
    AssetAllocation,
    PeriodMetrics,
    PortfolioPerformance,
    PositionValuation,
    RiskMetrics,
    asset_allocations,
    metrics_for_period,
    performance,
    position_valuations,
    profit_loss,
    return_percentage,
    risk_metrics,
    total_value,
    valuations_frame,
)

__all__ = [
    "AssetAllocation",
    "PeriodMetrics",
    "PortfolioPerformance",
    "PositionValuation",
    "RiskMetrics",
    "asset_allocations",
    "metrics_for_period",
    "performance",
    "position_valuations",
    "profit_loss",
    "return_percentage",
    "risk_metrics",
    "total_value",
    "valuations_frame",
]
