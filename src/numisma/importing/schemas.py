"""Pydantic contracts for externally supplied portfolio data.

The schemas mirror the camelCase JSON layout used by backups and imports.
Values keep their wire types after validation (dates stay strings, for
example); turning them into canonical domain values is the job of
``numisma.importing.transformers``.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Annotated, Any, Optional, Union

from pydantic import (
    AllowInfNan,
    BaseModel,
    ConfigDict,
    Field,
    PlainValidator,
    Strict,
    StrictBool,
    model_validator,
)
from pydantic.alias_generators import to_camel

from numisma.domain.models import (
    GENESIS,
    LocationType,
    OrderDirection,
    OrderStatus,
    OrderType,
    PortfolioStatus,
    PositionSide,
    PositionStatus,
    RiskProfile,
    Sentiment,
    SizeUnit,
    TimeFrame,
    WalletType,
)


def _check_date_input(value: Any) -> Union[datetime, date, str]:
    if isinstance(value, (datetime, date, str)):
        return value
    raise ValueError("expected a date, a date string or 'genesis'")


def _check_number_or_genesis(value: Any) -> Union[float, str]:
    if value == GENESIS.value:
        return value
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError("expected a number or 'genesis'")
    if value != value or value in (float("inf"), float("-inf")):
        raise ValueError("expected a finite number")
    return float(value)


def _check_number_string_or_genesis(value: Any) -> Union[float, str]:
    if isinstance(value, str):
        return value
    return _check_number_or_genesis(value)


Number = Annotated[float, Strict(), AllowInfNan(False)]
DateInput = Annotated[Union[datetime, date, str], PlainValidator(_check_date_input)]
FeeInput = Annotated[Union[float, str], PlainValidator(_check_number_or_genesis)]
TransactionFeeInput = Annotated[
    Union[float, str], PlainValidator(_check_number_string_or_genesis)
]


class WireModel(BaseModel):
    """Base for wire contracts: camelCase aliases, unknown keys dropped."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


class MarketDataSchema(WireModel):
    current_price: Optional[Number] = None
    price_change_percentage_24h: Optional[Number] = Field(
        default=None, alias="priceChangePercentage24h"
    )
    market_cap: Optional[Number] = None
    volume_24h: Optional[Number] = Field(default=None, alias="volume24h")
    last_updated: Optional[DateInput] = None


class AssetSchema(WireModel):
    name: str
    ticker: str
    pair: str
    location_type: LocationType
    wallet: str
    exchange: Optional[str] = None
    network: Optional[str] = None
    contract_address: Optional[str] = None
    icon_url: Optional[str] = None
    category: Optional[str] = None
    market_data: Optional[MarketDataSchema] = None


class OrderSchema(WireModel):
    id: str
    position_id: str
    status: OrderStatus
    order_type: OrderType = Field(alias="type")
    direction: OrderDirection
    date_open: Optional[DateInput] = None
    average_price: Optional[Number] = None
    total_cost: Optional[Number] = None
    fee: Optional[FeeInput] = None
    fee_unit: Optional[str] = None
    filled: Optional[Number] = None
    unit: Optional[SizeUnit] = None
    trigger: Optional[Number] = None
    estimated_cost: Optional[Number] = None
    expiration: Optional[DateInput] = None
    exchange_order_id: Optional[str] = None
    exchange_api_ref: Optional[str] = None
    is_automated: Optional[StrictBool] = None
    is_hidden: Optional[StrictBool] = None
    parent_order_id: Optional[str] = None
    notes: Optional[str] = None


class ThesisSchema(WireModel):
    reasoning: str
    invalidation: Optional[str] = None
    fulfillment: Optional[str] = None
    notes: Optional[str] = None
    technical_analysis: Optional[str] = None
    fundamental_analysis: Optional[str] = None
    time_horizon: Optional[str] = None
    risk_reward_ratio: Optional[str] = None


class JournalEntrySchema(WireModel):
    id: str
    position_id: str
    thought: str
    timestamp: DateInput
    user_id: str
    attachments: Optional[list[str]] = None
    tags: Optional[list[str]] = None
    sentiment: Optional[Sentiment] = None
    is_key_learning: Optional[StrictBool] = None


class PositionDetailsSchema(WireModel):
    status: PositionStatus
    side: PositionSide
    time_frame: TimeFrame
    orders: list[OrderSchema]
    stop_loss: Optional[list[OrderSchema]] = None
    take_profit: Optional[list[OrderSchema]] = None
    transaction_fee: Optional[TransactionFeeInput] = None
    date_opened: Optional[DateInput] = None
    date_closed: Optional[DateInput] = None
    average_entry_price: Optional[Number] = None
    average_exit_price: Optional[Number] = None
    total_size: Optional[Number] = None
    total_cost: Optional[Number] = None
    realized_profit_loss: Optional[Number] = None
    unrealized_profit_loss: Optional[Number] = None
    current_return: Optional[Number] = None
    target_price: Optional[Number] = None
    stop_price: Optional[Number] = None
    risk_reward_ratio: Optional[Number] = None
    is_leveraged: Optional[StrictBool] = None
    leverage: Optional[Number] = None

    @model_validator(mode="after")
    def _status_matches_close_date(self) -> "PositionDetailsSchema":
        if self.status is PositionStatus.CLOSED and self.date_closed is None:
            raise ValueError("a closed position requires dateClosed")
        if self.status is PositionStatus.ACTIVE and self.date_closed is not None:
            raise ValueError("an active position cannot have dateClosed")
        return self


class PositionSchema(WireModel):
    id: str
    name: str
    risk_level: Number = Field(ge=1, le=10)
    portfolio: str
    wallet_type: WalletType
    seed_capital_tier: str
    strategy: str
    asset: AssetSchema
    position_details: PositionDetailsSchema
    user_id: str
    date_created: DateInput
    date_updated: DateInput
    thesis: Optional[ThesisSchema] = None
    journal: Optional[list[JournalEntrySchema]] = None
    tags: Optional[list[str]] = None
    current_value: Optional[Number] = None
    is_hidden: Optional[StrictBool] = None
    alerts_enabled: Optional[StrictBool] = None


class TargetAllocationSchema(WireModel):
    asset: str
    percentage: Number


class DisplayMetadataSchema(WireModel):
    color: Optional[str] = None
    sort_order: Optional[Number] = None
    is_pinned: Optional[StrictBool] = None
    icon: Optional[str] = None
    header_image: Optional[str] = None


class PortfolioSchema(WireModel):
    id: str
    name: str
    date_created: DateInput
    status: PortfolioStatus
    position_ids: list[str]
    user_id: str
    base_currency: str
    description: Optional[str] = None
    tags: Optional[list[str]] = None
    notes: Optional[str] = None
    risk_profile: Optional[RiskProfile] = None
    target_allocations: Optional[list[TargetAllocationSchema]] = None
    current_value: Optional[Number] = None
    initial_investment: Optional[Number] = None
    profit_loss: Optional[Number] = None
    return_percentage: Optional[Number] = None
    is_public: Optional[StrictBool] = None
    display_metadata: Optional[DisplayMetadataSchema] = None


class BackupMetadataSchema(WireModel):
    version: str
    timestamp: str
    user_id: str
    data_version: str
    portfolio_count: int = Field(ge=0)
    position_count: int = Field(ge=0)
    asset_count: int = Field(ge=0)
    order_count: int = Field(ge=0)
