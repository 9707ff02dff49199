"""Domain models for portfolios, positions, assets and orders."""

from .models import (
    GENESIS,
    Asset,
    DateOrGenesis,
    DisplayMetadata,
    Genesis,
    JournalEntry,
    LocationType,
    MarketData,
    Order,
    OrderDirection,
    OrderStatus,
    OrderType,
    Portfolio,
    PortfolioStatus,
    Position,
    PositionDetails,
    PositionSide,
    PositionStatus,
    RiskProfile,
    Sentiment,
    SizeUnit,
    TargetAllocation,
    Thesis,
    TimeFrame,
    WalletType,
)

__all__ = [
    "GENESIS",
    "Asset",
    "DateOrGenesis",
    "DisplayMetadata",
    "Genesis",
    "JournalEntry",
    "LocationType",
    "MarketData",
    "Order",
    "OrderDirection",
    "OrderStatus",
    "OrderType",
    "Portfolio",
    "PortfolioStatus",
    "Position",
    "PositionDetails",
    "PositionSide",
    "PositionStatus",
    "RiskProfile",
    "Sentiment",
    "SizeUnit",
    "TargetAllocation",
    "Thesis",
    "TimeFrame",
    "WalletType",
]
