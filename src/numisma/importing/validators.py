"""Structural validation of untyped JSON values against the domain contracts."""

from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from numisma.importing.schemas import AssetSchema, OrderSchema, PortfolioSchema, PositionSchema
from numisma.importing.types import (
    FieldError,
    ValidationFailure,
    ValidationResult,
    ValidationSuccess,
)

SchemaT = TypeVar("SchemaT", bound=BaseModel)


def validate_portfolio_data(data: Any) -> ValidationResult[PortfolioSchema]:
    """Validate raw portfolio data against the portfolio contract."""
    return _validate(PortfolioSchema, data)


def validate_position_data(data: Any) -> ValidationResult[PositionSchema]:
    """Validate raw position data against the position contract."""
    return _validate(PositionSchema, data)


def validate_asset_data(data: Any) -> ValidationResult[AssetSchema]:
    return _validate(AssetSchema, data)


def validate_order_data(data: Any) -> ValidationResult[OrderSchema]:
    return _validate(OrderSchema, data)


def field_errors(exc: ValidationError) -> tuple[FieldError, ...]:
    """Flatten a pydantic error into one entry per failing field path."""
    errors: list[FieldError] = []
    for detail in exc.errors(include_url=False):
        code = str(detail.get("type", "invalid"))
        received = None if code == "missing" else detail.get("input")
        errors.append(
            FieldError(
                path=format_path(detail.get("loc", ())),
                message=str(detail.get("msg", "")),
                code=code,
                received=received,
            )
        )
    return tuple(errors)


def format_path(location: tuple[int | str, ...]) -> str:
    """Join a pydantic location into a dotted wire path."""
    return ".".join(str(part) for part in location)


def _validate(schema: type[SchemaT], data: Any) -> ValidationResult[SchemaT]:
    try:
        validated = schema.model_validate(data)
    except ValidationError as exc:
        return ValidationFailure(errors=field_errors(exc))
    return ValidationSuccess(data=validated)
