"""Backup documents: create, inspect and restore.

Two layouts are understood when restoring:

* a full backup, ``{"metadata": {...}, "data": {"portfolios": [...],
  "positions": [...], "assets": [...], "orders": [...]}}``;
* the single-portfolio import layout, ``{"portfolio": {...},
  "positions": [...], "portfolioPositions": [...], ...}``.

Backups are written base64 encoded; plain JSON text is accepted as well.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from pydantic import ValidationError

from numisma.domain.models import Asset, Order, Portfolio, Position
from numisma.errors import BackupFormatError, SchemaValidationError
from numisma.importing.schemas import BackupMetadataSchema
from numisma.importing.service import import_portfolio_record, import_position_record
from numisma.importing.types import ImportOptions, ImportResult
from numisma.importing.validators import field_errors

logger = logging.getLogger(__name__)

BACKUP_VERSION = "1.0.0"
DATA_VERSION = "1.0.0"
DEFAULT_BASE_CURRENCY = "USD"


@dataclass(frozen=True)
class BackupMetadata:
    version: str
    timestamp: str
    user_id: str
    data_version: str
    portfolio_count: int
    position_count: int
    asset_count: int
    order_count: int

    def to_record(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "timestamp": self.timestamp,
            "userId": self.user_id,
            "dataVersion": self.data_version,
            "portfolioCount": self.portfolio_count,
            "positionCount": self.position_count,
            "assetCount": self.asset_count,
            "orderCount": self.order_count,
        }


@dataclass(frozen=True)
class BackupRestore:
    """Restored records, one import result per portfolio and position."""

    metadata: BackupMetadata
    portfolios: tuple[ImportResult[Portfolio], ...]
    positions: tuple[ImportResult[Position], ...]

    @property
    def success(self) -> bool:
        return all(result.success for result in (*self.portfolios, *self.positions))

    def valid_portfolios(self) -> list[Portfolio]:
        return [result.data for result in self.portfolios if result.success]

    def valid_positions(self, portfolio_id: str | None = None) -> list[Position]:
        """Return restored positions, optionally only those of one portfolio."""
        positions = [result.data for result in self.positions if result.success]
        if portfolio_id is None:
            return positions
        return [position for position in positions if position.portfolio == portfolio_id]

    def failures(self) -> list[tuple[str, int, ImportResult[Any]]]:
        failed: list[tuple[str, int, ImportResult[Any]]] = []
        for kind, results in (("portfolio", self.portfolios), ("position", self.positions)):
            for index, result in enumerate(results):
                if not result.success:
                    failed.append((kind, index, result))
        return failed


def create_backup(
    user_id: str,
    portfolios: Iterable[Portfolio],
    positions: Iterable[Position],
    now: datetime | None = None,
) -> str:
    """Serialize portfolios and positions into a base64 backup document."""
    portfolio_list = list(portfolios)
    position_list = list(positions)
    assets = extract_unique_assets(position_list)
    orders = extract_orders(position_list)
    metadata = BackupMetadata(
        version=BACKUP_VERSION,
        timestamp=(now or datetime.now(tz=UTC)).isoformat(),
        user_id=user_id,
        data_version=DATA_VERSION,
        portfolio_count=len(portfolio_list),
        position_count=len(position_list),
        asset_count=len(assets),
        order_count=len(orders),
    )
    document = {
        "metadata": metadata.to_record(),
        "data": {
            "portfolios": [portfolio.to_record() for portfolio in portfolio_list],
            "positions": [position.to_record() for position in position_list],
            "assets": [asset.to_record() for asset in assets],
            "orders": [order.to_record() for order in orders],
        },
    }
    payload = json.dumps(document, sort_keys=True)
    return base64.b64encode(payload.encode("utf-8")).decode("ascii")


def decode_backup_text(text: str) -> str:
    """Undo base64 encoding when present; plain text is returned unchanged."""
    try:
        return base64.b64decode(text.strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return text


def read_backup_metadata(text: str) -> BackupMetadata:
    """Return the metadata of a backup document in either layout."""
    document = _load_document(text)
    if is_portfolio_import_format(document):
        positions = _record_list(document, "positions")
        portfolio = _as_object(document.get("portfolio"), "portfolio")
        return BackupMetadata(
            version=BACKUP_VERSION,
            timestamp=datetime.now(tz=UTC).isoformat(),
            user_id=str(portfolio.get("userId", "")),
            data_version=DATA_VERSION,
            portfolio_count=1,
            position_count=len(positions),
            asset_count=len({_ticker(position) for position in positions}),
            order_count=sum(len(_raw_orders(position)) for position in positions),
        )
    if is_full_backup_format(document):
        return _metadata_from_record(document["metadata"])
    raise BackupFormatError("Unrecognized backup layout", details={"keys": sorted(document)})


def restore_backup(text: str, options: ImportOptions | None = None) -> BackupRestore:
    """Validate and normalize every record of a backup document."""
    document = _load_document(text)
    if is_portfolio_import_format(document):
        logger.debug("restoring single-portfolio import layout")
        metadata = read_backup_metadata(text)
        portfolio_record, position_records = _expand_portfolio_import(document)
        portfolio_records = [portfolio_record]
    elif is_full_backup_format(document):
        logger.debug("restoring full backup layout")
        metadata = _metadata_from_record(document["metadata"])
        data = _as_object(document.get("data"), "data")
        portfolio_records = _record_list(data, "portfolios")
        position_records = _record_list(data, "positions")
    else:
        raise BackupFormatError("Unrecognized backup layout", details={"keys": sorted(document)})

    portfolios = tuple(import_portfolio_record(record, options) for record in portfolio_records)
    positions = tuple(import_position_record(record, options) for record in position_records)
    restored = BackupRestore(metadata=metadata, portfolios=portfolios, positions=positions)
    logger.debug(
        "restored %d portfolios and %d positions (%d failures)",
        len(portfolios),
        len(positions),
        len(restored.failures()),
    )
    return restored


def is_portfolio_import_format(document: Mapping[str, Any]) -> bool:
    return all(key in document for key in ("portfolio", "positions", "portfolioPositions"))


def is_full_backup_format(document: Mapping[str, Any]) -> bool:
    return "metadata" in document and "data" in document


def extract_unique_assets(positions: Iterable[Position]) -> list[Asset]:
    """Return the first asset seen for each ticker, in position order."""
    unique: dict[str, Asset] = {}
    for position in positions:
        unique.setdefault(position.asset.ticker, position.asset)
    return list(unique.values())


def extract_orders(positions: Iterable[Position]) -> list[Order]:
    return [order for position in positions for order in position.position_details.orders]


def _load_document(text: str) -> dict[str, Any]:
    decoded = decode_backup_text(text)
    try:
        document = json.loads(decoded)
    except json.JSONDecodeError as exc:
        raise BackupFormatError(
            f"Invalid JSON: {exc.msg} (line {exc.lineno}, column {exc.colno})",
            details={"line": exc.lineno, "column": exc.colno},
        ) from exc
    except (ValueError, RecursionError) as exc:
        raise BackupFormatError(
            f"Invalid JSON: {exc}", details={"error": type(exc).__name__}
        ) from exc
    if not isinstance(document, dict):
        raise BackupFormatError("Backup document must be a JSON object")
    return document


def _expand_portfolio_import(
    document: Mapping[str, Any],
) -> tuple[dict[str, Any], list[Any]]:
    portfolio = dict(_as_object(document.get("portfolio"), "portfolio"))
    links = _record_list(document, "portfolioPositions")
    portfolio_id = portfolio.get("id")
    user_id = portfolio.get("userId")

    expanded = {
        **portfolio,
        "positionIds": [
            link.get("positionId") for link in links if isinstance(link, Mapping)
        ],
        "displayMetadata": portfolio.get("displayMetadata") or {},
        "tags": portfolio.get("tags") or [],
        "status": portfolio.get("status") or "active",
        "baseCurrency": portfolio.get("baseCurrency") or DEFAULT_BASE_CURRENCY,
        "currentValue": portfolio.get("currentValue") or 0,
        "initialInvestment": portfolio.get("initialInvestment") or 0,
        "profitLoss": portfolio.get("profitLoss") or 0,
        "returnPercentage": portfolio.get("returnPercentage") or 0,
        "isPublic": portfolio.get("isPublic") or False,
    }
    positions = [
        {**position, "portfolio": portfolio_id, "userId": user_id}
        if isinstance(position, Mapping)
        else position
        for position in _record_list(document, "positions")
    ]
    return expanded, positions


def _metadata_from_record(record: Any) -> BackupMetadata:
    try:
        schema = BackupMetadataSchema.model_validate(record)
    except ValidationError as exc:
        raise SchemaValidationError(
            "Invalid backup metadata",
            details=[error.to_record() for error in field_errors(exc)],
        ) from exc
    return BackupMetadata(
        version=schema.version,
        timestamp=schema.timestamp,
        user_id=schema.user_id,
        data_version=schema.data_version,
        portfolio_count=schema.portfolio_count,
        position_count=schema.position_count,
        asset_count=schema.asset_count,
        order_count=schema.order_count,
    )


def _as_object(value: Any, field_name: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise BackupFormatError(f"Backup field '{field_name}' must be an object")
    return value


def _record_list(document: Mapping[str, Any], field_name: str) -> list[Any]:
    value = document.get(field_name)
    if value is None:
        return []
    if not isinstance(value, list):
        raise BackupFormatError(f"Backup field '{field_name}' must be an array")
    return value


def _ticker(position: Any) -> Any:
    if not isinstance(position, Mapping):
        return None
    asset = position.get("asset")
    return asset.get("ticker") if isinstance(asset, Mapping) else None


def _raw_orders(position: Any) -> list[Any]:
    if not isinstance(position, Mapping):
        return []
    details = position.get("positionDetails")
    if not isinstance(details, Mapping):
        return []
    orders = details.get("orders")
    return orders if isinstance(orders, list) else []
