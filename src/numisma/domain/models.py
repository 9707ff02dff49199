"""Core portfolio domain models."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum, StrEnum
from typing import Any


class Genesis(Enum):
    """Marker for events that happened before tracking began."""

    GENESIS = "genesis"

    def __str__(self) -> str:
        return self.value


GENESIS = Genesis.GENESIS

DateOrGenesis = datetime | Genesis


class LocationType(StrEnum):
    """Where an asset is held."""

    EXCHANGE = "exchange"
    DEX = "dex"
    COLD_STORAGE = "cold_storage"
    DEFI = "defi"
    STAKING = "staking"
    LENDING = "lending"


class OrderStatus(StrEnum):
    SUBMITTED = "submitted"
    FILLED = "filled"
    CANCELLED = "cancelled"
    PARTIALLY_FILLED = "partially_filled"
    EXPIRED = "expired"


class OrderType(StrEnum):
    TRIGGER = "trigger"
    MARKET = "market"
    LIMIT = "limit"
    TRAILING_STOP = "trailing_stop"
    OCO = "oco"


class OrderDirection(StrEnum):
    ENTRY = "entry"
    EXIT = "exit"


class SizeUnit(StrEnum):
    """Unit an order's filled quantity is expressed in."""

    PERCENTAGE = "percentage"
    BASE = "base"
    QUOTE = "quote"
    FIAT = "fiat"


class WalletType(StrEnum):
    HOT = "hot"
    COLD = "cold"


class PositionStatus(StrEnum):
    ACTIVE = "active"
    CLOSED = "closed"
    PARTIAL = "partial"


class PositionSide(StrEnum):
    LONG = "long"
    SHORT = "short"


class TimeFrame(StrEnum):
    """Chart timeframe a position is managed on."""

    M1 = "1m"
    M5 = "5m"
    M15 = "15m"
    M30 = "30m"
    H1 = "1H"
    H4 = "4H"
    D1 = "1D"
    D3 = "3D"
    W1 = "1W"
    MO1 = "1M"


class Sentiment(StrEnum):
    BULLISH = "bullish"
    BEARISH = "bearish"
    NEUTRAL = "neutral"


class PortfolioStatus(StrEnum):
    """Portfolio lifecycle; archived and deleted are terminal soft states."""

    ACTIVE = "active"
    ARCHIVED = "archived"
    DELETED = "deleted"


class RiskProfile(StrEnum):
    CONSERVATIVE = "conservative"
    MODERATE = "moderate"
    AGGRESSIVE = "aggressive"
    CUSTOM = "custom"


@dataclass(frozen=True)
class MarketData:
    """Market snapshot captured with an asset."""

    current_price: float | None = None
    price_change_percentage_24h: float | None = None
    market_cap: float | None = None
    volume_24h: float | None = None
    last_updated: DateOrGenesis | None = None

    def to_record(self, *, json_safe: bool = True) -> dict[str, Any]:
        return {
            "currentPrice": self.current_price,
            "priceChangePercentage24h": self.price_change_percentage_24h,
            "marketCap": self.market_cap,
            "volume24h": self.volume_24h,
            "lastUpdated": _date_value(self.last_updated, json_safe),
        }


@dataclass(frozen=True)
class Asset:
    """Asset traded by a position, owned by that position."""

    name: str
    ticker: str
    pair: str
    location_type: LocationType
    wallet: str
    exchange: str | None = None
    network: str | None = None
    contract_address: str | None = None
    icon_url: str | None = None
    category: str | None = None
    market_data: MarketData | None = None

    def to_record(self, *, json_safe: bool = True) -> dict[str, Any]:
        return {
            "name": self.name,
            "ticker": self.ticker,
            "pair": self.pair,
            "locationType": _enum_value(self.location_type),
            "wallet": self.wallet,
            "exchange": self.exchange,
            "network": self.network,
            "contractAddress": self.contract_address,
            "iconUrl": self.icon_url,
            "category": self.category,
            "marketData": (
                None if self.market_data is None else self.market_data.to_record(json_safe=json_safe)
            ),
        }


@dataclass(frozen=True)
class Order:
    """Single order recorded against a position."""

    id: str
    position_id: str
    status: OrderStatus
    order_type: OrderType
    direction: OrderDirection
    date_open: DateOrGenesis | None = None
    average_price: float | None = None
    total_cost: float | None = None
    fee: float | Genesis | None = None
    fee_unit: str | None = None
    filled: float | None = None
    unit: SizeUnit | None = None
    trigger: float | None = None
    estimated_cost: float | None = None
    expiration: DateOrGenesis | None = None
    exchange_order_id: str | None = None
    exchange_api_ref: str | None = None
    is_automated: bool | None = None
    is_hidden: bool | None = None
    parent_order_id: str | None = None
    notes: str | None = None

    def to_record(self, *, json_safe: bool = True) -> dict[str, Any]:
        return {
            "id": self.id,
            "positionId": self.position_id,
            "status": _enum_value(self.status),
            "type": _enum_value(self.order_type),
            "direction": _enum_value(self.direction),
            "dateOpen": _date_value(self.date_open, json_safe),
            "averagePrice": self.average_price,
            "totalCost": self.total_cost,
            "fee": _genesis_value(self.fee, json_safe),
            "feeUnit": self.fee_unit,
            "filled": self.filled,
            "unit": _enum_value(self.unit),
            "trigger": self.trigger,
            "estimatedCost": self.estimated_cost,
            "expiration": _date_value(self.expiration, json_safe),
            "exchangeOrderId": self.exchange_order_id,
            "exchangeApiRef": self.exchange_api_ref,
            "isAutomated": self.is_automated,
            "isHidden": self.is_hidden,
            "parentOrderId": self.parent_order_id,
            "notes": self.notes,
        }


@dataclass(frozen=True)
class Thesis:
    """Documented reasoning behind a position."""

    reasoning: str
    invalidation: str | None = None
    fulfillment: str | None = None
    notes: str | None = None
    technical_analysis: str | None = None
    fundamental_analysis: str | None = None
    time_horizon: str | None = None
    risk_reward_ratio: str | None = None

    def to_record(self) -> dict[str, Any]:
        return {
            "reasoning": self.reasoning,
            "invalidation": self.invalidation,
            "fulfillment": self.fulfillment,
            "notes": self.notes,
            "technicalAnalysis": self.technical_analysis,
            "fundamentalAnalysis": self.fundamental_analysis,
            "timeHorizon": self.time_horizon,
            "riskRewardRatio": self.risk_reward_ratio,
        }


@dataclass(frozen=True)
class JournalEntry:
    id: str
    position_id: str
    thought: str
    timestamp: DateOrGenesis
    user_id: str
    attachments: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()
    sentiment: Sentiment | None = None
    is_key_learning: bool | None = None

    def to_record(self, *, json_safe: bool = True) -> dict[str, Any]:
        return {
            "id": self.id,
            "positionId": self.position_id,
            "thought": self.thought,
            "timestamp": _date_value(self.timestamp, json_safe),
            "userId": self.user_id,
            "attachments": list(self.attachments),
            "tags": list(self.tags),
            "sentiment": _enum_value(self.sentiment),
            "isKeyLearning": self.is_key_learning,
        }


@dataclass(frozen=True)
class PositionDetails:
    """Execution state of a position: orders, dates and computed figures."""

    status: PositionStatus
    side: PositionSide
    time_frame: TimeFrame
    orders: tuple[Order, ...] = ()
    stop_loss: tuple[Order, ...] = ()
    take_profit: tuple[Order, ...] = ()
    transaction_fee: float | Genesis | None = None
    date_opened: DateOrGenesis | None = None
    date_closed: DateOrGenesis | None = None
    average_entry_price: float | None = None
    average_exit_price: float | None = None
    total_size: float | None = None
    total_cost: float | None = None
    realized_profit_loss: float | None = None
    unrealized_profit_loss: float | None = None
    current_return: float | None = None
    target_price: float | None = None
    stop_price: float | None = None
    risk_reward_ratio: float | None = None
    is_leveraged: bool | None = None
    leverage: float | None = None

    def to_record(self, *, json_safe: bool = True) -> dict[str, Any]:
        return {
            "status": _enum_value(self.status),
            "side": _enum_value(self.side),
            "timeFrame": _enum_value(self.time_frame),
            "orders": [order.to_record(json_safe=json_safe) for order in self.orders],
            "stopLoss": [order.to_record(json_safe=json_safe) for order in self.stop_loss],
            "takeProfit": [order.to_record(json_safe=json_safe) for order in self.take_profit],
            "transactionFee": _genesis_value(self.transaction_fee, json_safe),
            "dateOpened": _date_value(self.date_opened, json_safe),
            "dateClosed": _date_value(self.date_closed, json_safe),
            "averageEntryPrice": self.average_entry_price,
            "averageExitPrice": self.average_exit_price,
            "totalSize": self.total_size,
            "totalCost": self.total_cost,
            "realizedProfitLoss": self.realized_profit_loss,
            "unrealizedProfitLoss": self.unrealized_profit_loss,
            "currentReturn": self.current_return,
            "targetPrice": self.target_price,
            "stopPrice": self.stop_price,
            "riskRewardRatio": self.risk_reward_ratio,
            "isLeveraged": self.is_leveraged,
            "leverage": self.leverage,
        }


@dataclass(frozen=True)
class Position:
    """A tracked trade or holding, the central record of a portfolio."""

    id: str
    name: str
    risk_level: float
    portfolio: str
    wallet_type: WalletType
    seed_capital_tier: str
    strategy: str
    asset: Asset
    position_details: PositionDetails
    user_id: str
    date_created: DateOrGenesis | None = None
    date_updated: DateOrGenesis | None = None
    thesis: Thesis | None = None
    journal: tuple[JournalEntry, ...] = ()
    tags: tuple[str, ...] = ()
    current_value: float | None = None
    is_hidden: bool | None = None
    alerts_enabled: bool | None = None

    def to_record(self, *, json_safe: bool = True) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "riskLevel": self.risk_level,
            "portfolio": self.portfolio,
            "walletType": _enum_value(self.wallet_type),
            "seedCapitalTier": self.seed_capital_tier,
            "strategy": self.strategy,
            "asset": self.asset.to_record(json_safe=json_safe),
            "positionDetails": self.position_details.to_record(json_safe=json_safe),
            "userId": self.user_id,
            "dateCreated": _date_value(self.date_created, json_safe),
            "dateUpdated": _date_value(self.date_updated, json_safe),
            "thesis": None if self.thesis is None else self.thesis.to_record(),
            "journal": [entry.to_record(json_safe=json_safe) for entry in self.journal],
            "tags": list(self.tags),
            "currentValue": self.current_value,
            "isHidden": self.is_hidden,
            "alertsEnabled": self.alerts_enabled,
        }


@dataclass(frozen=True)
class TargetAllocation:
    asset: str
    percentage: float


@dataclass(frozen=True)
class DisplayMetadata:
    color: str | None = None
    sort_order: float | None = None
    is_pinned: bool | None = None
    icon: str | None = None
    header_image: str | None = None


@dataclass(frozen=True)
class Portfolio:
    """Named collection of positions referenced by id."""

    id: str
    name: str
    date_created: DateOrGenesis
    status: PortfolioStatus
    user_id: str
    base_currency: str
    position_ids: tuple[str, ...] = ()
    description: str | None = None
    tags: tuple[str, ...] = ()
    notes: str | None = None
    risk_profile: RiskProfile | None = None
    target_allocations: tuple[TargetAllocation, ...] | None = None
    current_value: float | None = None
    initial_investment: float | None = None
    profit_loss: float | None = None
    return_percentage: float | None = None
    is_public: bool | None = None
    display_metadata: DisplayMetadata | None = None

    def target_allocation_total(self) -> float:
        """Sum of target percentages; expected to stay at or below 100."""
        if not self.target_allocations:
            return 0.0
        return sum(allocation.percentage for allocation in self.target_allocations)

    def to_record(self, *, json_safe: bool = True) -> dict[str, Any]:
        """Convert to the camelCase wire layout."""
        target_allocations = None
        if self.target_allocations is not None:
            target_allocations = [
                {"asset": allocation.asset, "percentage": allocation.percentage}
                for allocation in self.target_allocations
            ]
        display_metadata = None
        if self.display_metadata is not None:
            display_metadata = {
                "color": self.display_metadata.color,
                "sortOrder": self.display_metadata.sort_order,
                "isPinned": self.display_metadata.is_pinned,
                "icon": self.display_metadata.icon,
                "headerImage": self.display_metadata.header_image,
            }
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "dateCreated": _date_value(self.date_created, json_safe),
            "status": _enum_value(self.status),
            "positionIds": list(self.position_ids),
            "userId": self.user_id,
            "tags": list(self.tags),
            "notes": self.notes,
            "baseCurrency": self.base_currency,
            "riskProfile": _enum_value(self.risk_profile),
            "targetAllocations": target_allocations,
            "currentValue": self.current_value,
            "initialInvestment": self.initial_investment,
            "profitLoss": self.profit_loss,
            "returnPercentage": self.return_percentage,
            "isPublic": self.is_public,
            "displayMetadata": display_metadata,
        }


def _enum_value(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    return value


def _genesis_value(value: Any, json_safe: bool) -> Any:
    if json_safe and isinstance(value, Genesis):
        return value.value
    return value


def _date_value(value: Any, json_safe: bool) -> Any:
    if not json_safe:
        return value
    if isinstance(value, Genesis):
        return value.value
    if isinstance(value, (datetime, date)):
        # NaT is a datetime subclass whose isoformat() is "NaT".
        if value != value:
            return None
        return value.isoformat()
    return value
