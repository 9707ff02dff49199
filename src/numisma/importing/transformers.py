"""Normalization of loosely typed import data into domain records.

Transformers never mutate their input: every call builds new frozen
records field by field. They work on validated schema models, on raw
camelCase mappings (when validation is skipped) and on domain records, so
transforming an already normalized record yields an equal record.
"""

from __future__ import annotations

import copy
import logging
import math
import re
from collections.abc import Mapping
from datetime import UTC, date, datetime, time
from enum import Enum
from typing import Any, TypeVar

import pandas as pd
from pydantic import BaseModel

from numisma.domain.models import (
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
from numisma.errors import TransformationError
from numisma.importing.types import (
    FieldError,
    ImportOptions,
    TransformOptions,
    ValidationFailure,
    ValidationResult,
    ValidationSuccess,
)
from numisma.importing.validators import validate_portfolio_data, validate_position_data

logger = logging.getLogger(__name__)

NUMERIC_PREFIX = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")

EnumT = TypeVar("EnumT", bound=Enum)

PortfolioInput = BaseModel | Portfolio | Mapping[str, Any]
PositionInput = BaseModel | Position | Mapping[str, Any]


def normalize_date(value: Any) -> DateOrGenesis | None:
    """Normalize a date-like value.

    The genesis sentinel and real datetimes pass through unchanged, plain
    dates become midnight UTC and strings are parsed as UTC. Unparseable
    input yields ``pandas.NaT`` instead of raising.
    """
    if value is None:
        return None
    if isinstance(value, Genesis):
        return value
    if isinstance(value, str) and value == GENESIS.value:
        return GENESIS
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=UTC)
    if isinstance(value, str):
        parsed = pd.to_datetime(value.strip(), utc=True, errors="coerce")
        if pd.isna(parsed):
            logger.debug("unparseable date %r normalized to NaT", value)
            return pd.NaT
        return parsed.to_pydatetime()
    return pd.NaT


def normalize_number(value: Any) -> float | int | None:
    """Return numbers as-is, parse the leading number of a string, else ``None``.

    ``"12abc"`` gives ``12.0``; a string that does not start with a number
    gives ``None``.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        if isinstance(value, float) and math.isnan(value):
            return None
        return value
    if isinstance(value, str):
        match = NUMERIC_PREFIX.match(value.strip())
        if match is None:
            return None
        return float(match.group())
    return None


def normalize_boolean(value: Any) -> bool | None:
    """Booleans pass through; only the string ``"true"`` (any case) is true."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.lower() == "true"
    return None


def normalize_string_array(value: Any) -> tuple[str, ...]:
    if isinstance(value, (list, tuple)):
        return tuple(str(item) for item in value)
    return ()


def transform_portfolio_data(
    data: PortfolioInput,
    options: TransformOptions | None = None,
) -> Portfolio:
    """Build a normalized ``Portfolio`` from validated or raw portfolio data."""
    options = options or TransformOptions()
    record = _as_record(data, "portfolio")

    target_allocations = None
    raw_allocations = record.get("targetAllocations")
    if raw_allocations is not None:
        target_allocations = tuple(
            _target_allocation(item) for item in _as_list(raw_allocations, "targetAllocations")
        )

    display_metadata = None
    raw_metadata = record.get("displayMetadata")
    if raw_metadata is not None:
        metadata = _as_mapping(raw_metadata, "displayMetadata")
        display_metadata = DisplayMetadata(
            color=metadata.get("color"),
            sort_order=_number(metadata.get("sortOrder"), options),
            is_pinned=_boolean(metadata.get("isPinned"), options),
            icon=metadata.get("icon"),
            header_image=metadata.get("headerImage"),
        )

    return Portfolio(
        id=record.get("id"),
        name=record.get("name"),
        date_created=_date(record.get("dateCreated"), options),
        status=_enum(PortfolioStatus, record.get("status")),
        user_id=record.get("userId"),
        base_currency=record.get("baseCurrency"),
        position_ids=normalize_string_array(record.get("positionIds")),
        description=record.get("description"),
        tags=normalize_string_array(record.get("tags")),
        notes=record.get("notes"),
        risk_profile=_enum(RiskProfile, record.get("riskProfile")),
        target_allocations=target_allocations,
        current_value=_number(record.get("currentValue"), options),
        initial_investment=_number(record.get("initialInvestment"), options),
        profit_loss=_number(record.get("profitLoss"), options),
        return_percentage=_number(record.get("returnPercentage"), options),
        is_public=_boolean(record.get("isPublic"), options),
        display_metadata=display_metadata,
    )


def transform_position_data(
    data: PositionInput,
    options: TransformOptions | None = None,
) -> Position:
    """Build a normalized ``Position`` with its asset, orders and journal."""
    options = options or TransformOptions()
    record = _as_record(data, "position")
    details = _as_mapping(record.get("positionDetails") or {}, "positionDetails")

    thesis = None
    raw_thesis = record.get("thesis")
    if raw_thesis is not None:
        thesis_record = _as_mapping(raw_thesis, "thesis")
        thesis = Thesis(
            reasoning=thesis_record.get("reasoning"),
            invalidation=thesis_record.get("invalidation"),
            fulfillment=thesis_record.get("fulfillment"),
            notes=thesis_record.get("notes"),
            technical_analysis=thesis_record.get("technicalAnalysis"),
            fundamental_analysis=thesis_record.get("fundamentalAnalysis"),
            time_horizon=thesis_record.get("timeHorizon"),
            risk_reward_ratio=thesis_record.get("riskRewardRatio"),
        )

    position_details = PositionDetails(
        status=_enum(PositionStatus, details.get("status")),
        side=_enum(PositionSide, details.get("side")),
        time_frame=_enum(TimeFrame, details.get("timeFrame")),
        orders=_orders(details.get("orders"), "orders", options),
        stop_loss=_orders(details.get("stopLoss"), "stopLoss", options),
        take_profit=_orders(details.get("takeProfit"), "takeProfit", options),
        transaction_fee=_fee(details.get("transactionFee"), options),
        date_opened=_date(details.get("dateOpened"), options),
        date_closed=_date(details.get("dateClosed"), options),
        average_entry_price=_number(details.get("averageEntryPrice"), options),
        average_exit_price=_number(details.get("averageExitPrice"), options),
        total_size=_number(details.get("totalSize"), options),
        total_cost=_number(details.get("totalCost"), options),
        realized_profit_loss=_number(details.get("realizedProfitLoss"), options),
        unrealized_profit_loss=_number(details.get("unrealizedProfitLoss"), options),
        current_return=_number(details.get("currentReturn"), options),
        target_price=_number(details.get("targetPrice"), options),
        stop_price=_number(details.get("stopPrice"), options),
        risk_reward_ratio=_number(details.get("riskRewardRatio"), options),
        is_leveraged=_boolean(details.get("isLeveraged"), options),
        leverage=_number(details.get("leverage"), options),
    )

    journal = tuple(
        _journal_entry(item, options)
        for item in _as_list(record.get("journal") or [], "journal")
    )

    return Position(
        id=record.get("id"),
        name=record.get("name"),
        risk_level=_number(record.get("riskLevel"), options),
        portfolio=record.get("portfolio"),
        wallet_type=_enum(WalletType, record.get("walletType")),
        seed_capital_tier=record.get("seedCapitalTier"),
        strategy=record.get("strategy"),
        asset=_asset(record.get("asset") or {}, options),
        position_details=position_details,
        user_id=record.get("userId"),
        date_created=_date(record.get("dateCreated"), options),
        date_updated=_date(record.get("dateUpdated"), options),
        thesis=thesis,
        journal=journal,
        tags=normalize_string_array(record.get("tags")),
        current_value=_number(record.get("currentValue"), options),
        is_hidden=_boolean(record.get("isHidden"), options),
        alerts_enabled=_boolean(record.get("alertsEnabled"), options),
    )


def transform_raw_portfolio_data(
    data: Any,
    options: ImportOptions | None = None,
) -> ValidationResult[Portfolio]:
    """Validate (unless disabled) and transform raw portfolio data.

    Raises ``TransformationError`` when validation is skipped and the data
    cannot be shaped into a portfolio.
    """
    options = options or ImportOptions()
    if options.validate:
        validation = validate_portfolio_data(data)
        if isinstance(validation, ValidationFailure):
            return validation
        data = validation.data
    return ValidationSuccess(data=transform_portfolio_data(data, options.transform_options()))


def transform_raw_position_data(
    data: Any,
    options: ImportOptions | None = None,
) -> ValidationResult[Position]:
    options = options or ImportOptions()
    if options.validate:
        validation = validate_position_data(data)
        if isinstance(validation, ValidationFailure):
            return validation
        data = validation.data
    return ValidationSuccess(data=transform_position_data(data, options.transform_options()))


def transform_raw_portfolio_data_array(
    items: list[Any],
    options: ImportOptions | None = None,
) -> ValidationResult[tuple[Portfolio, ...]]:
    """Transform every item or fail as a whole, with paths prefixed by index."""
    portfolios: list[Portfolio] = []
    errors: list[FieldError] = []
    for index, item in enumerate(items):
        try:
            result = transform_raw_portfolio_data(item, options)
        except TransformationError as exc:
            errors.append(
                FieldError(path=str(index), message=exc.message, code=exc.code.lower())
            )
            continue
        if isinstance(result, ValidationFailure):
            errors.extend(
                FieldError(
                    path=f"{index}.{error.path}" if error.path else str(index),
                    message=error.message,
                    code=error.code,
                    received=error.received,
                )
                for error in result.errors
            )
            continue
        portfolios.append(result.data)
    if errors:
        return ValidationFailure(errors=tuple(errors))
    return ValidationSuccess(data=tuple(portfolios))


def _as_record(data: Any, kind: str) -> dict[str, Any]:
    if isinstance(data, BaseModel):
        return data.model_dump(by_alias=True)
    if isinstance(data, (Portfolio, Position)):
        return data.to_record(json_safe=False)
    if isinstance(data, Mapping):
        return copy.deepcopy(dict(data))
    raise TransformationError(
        f"Expected {kind} data to be an object, got {type(data).__name__}",
        details={"kind": kind},
    )


def _as_mapping(value: Any, field_name: str) -> Mapping[str, Any]:
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True)
    if isinstance(value, Mapping):
        return value
    raise TransformationError(
        f"Expected '{field_name}' to be an object, got {type(value).__name__}",
        details={"field": field_name},
    )


def _as_list(value: Any, field_name: str) -> list[Any] | tuple[Any, ...]:
    if isinstance(value, (list, tuple)):
        return value
    raise TransformationError(
        f"Expected '{field_name}' to be an array, got {type(value).__name__}",
        details={"field": field_name},
    )


def _enum(enum_type: type[EnumT], value: Any) -> EnumT | Any:
    if value is None or isinstance(value, enum_type):
        return value
    try:
        return enum_type(value)
    except ValueError:
        return value


def _date(value: Any, options: TransformOptions) -> Any:
    return normalize_date(value) if options.normalize_dates else value


def _number(value: Any, options: TransformOptions) -> Any:
    return normalize_number(value) if options.normalize_numbers else value


def _boolean(value: Any, options: TransformOptions) -> Any:
    return normalize_boolean(value) if options.normalize_booleans else value


def _fee(value: Any, options: TransformOptions) -> Any:
    if isinstance(value, Genesis) or value == GENESIS.value:
        return GENESIS
    return _number(value, options)


def _target_allocation(value: Any) -> TargetAllocation:
    allocation = _as_mapping(value, "targetAllocations")
    percentage = normalize_number(allocation.get("percentage"))
    return TargetAllocation(
        asset=str(allocation.get("asset")),
        percentage=percentage if percentage is not None else 0,
    )


def _asset(value: Any, options: TransformOptions) -> Asset:
    record = _as_mapping(value, "asset")
    market_data = None
    raw_market = record.get("marketData")
    if raw_market is not None:
        market = _as_mapping(raw_market, "asset.marketData")
        market_data = MarketData(
            current_price=_number(market.get("currentPrice"), options),
            price_change_percentage_24h=_number(market.get("priceChangePercentage24h"), options),
            market_cap=_number(market.get("marketCap"), options),
            volume_24h=_number(market.get("volume24h"), options),
            last_updated=_date(market.get("lastUpdated"), options),
        )
    return Asset(
        name=record.get("name"),
        ticker=record.get("ticker"),
        pair=record.get("pair"),
        location_type=_enum(LocationType, record.get("locationType")),
        wallet=record.get("wallet"),
        exchange=record.get("exchange"),
        network=record.get("network"),
        contract_address=record.get("contractAddress"),
        icon_url=record.get("iconUrl"),
        category=record.get("category"),
        market_data=market_data,
    )


def _orders(value: Any, field_name: str, options: TransformOptions) -> tuple[Order, ...]:
    if value is None:
        return ()
    return tuple(_order(item, field_name, options) for item in _as_list(value, field_name))


def _order(value: Any, field_name: str, options: TransformOptions) -> Order:
    record = _as_mapping(value, field_name)
    return Order(
        id=record.get("id"),
        position_id=record.get("positionId"),
        status=_enum(OrderStatus, record.get("status")),
        order_type=_enum(OrderType, record.get("type")),
        direction=_enum(OrderDirection, record.get("direction")),
        date_open=_date(record.get("dateOpen"), options),
        average_price=_number(record.get("averagePrice"), options),
        total_cost=_number(record.get("totalCost"), options),
        fee=_fee(record.get("fee"), options),
        fee_unit=record.get("feeUnit"),
        filled=_number(record.get("filled"), options),
        unit=_enum(SizeUnit, record.get("unit")),
        trigger=_number(record.get("trigger"), options),
        estimated_cost=_number(record.get("estimatedCost"), options),
        expiration=_date(record.get("expiration"), options),
        exchange_order_id=record.get("exchangeOrderId"),
        exchange_api_ref=record.get("exchangeApiRef"),
        is_automated=_boolean(record.get("isAutomated"), options),
        is_hidden=_boolean(record.get("isHidden"), options),
        parent_order_id=record.get("parentOrderId"),
        notes=record.get("notes"),
    )


def _journal_entry(value: Any, options: TransformOptions) -> JournalEntry:
    record = _as_mapping(value, "journal")
    return JournalEntry(
        id=record.get("id"),
        position_id=record.get("positionId"),
        thought=record.get("thought"),
        timestamp=_date(record.get("timestamp"), options),
        user_id=record.get("userId"),
        attachments=normalize_string_array(record.get("attachments")),
        tags=normalize_string_array(record.get("tags")),
        sentiment=_enum(Sentiment, record.get("sentiment")),
        is_key_learning=_boolean(record.get("isKeyLearning"), options),
    )
