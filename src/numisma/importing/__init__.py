"""Validation, normalization and import of portfolio data."""

from .backup import (
    BackupMetadata,
    BackupRestore,
    create_backup,
    decode_backup_text,
    extract_orders,
    extract_unique_assets,
    read_backup_metadata,
    restore_backup,
)
from .service import (
    import_from_file,
    import_from_json,
    import_multiple_from_file,
    import_multiple_from_json,
    import_portfolio_record,
    import_position_record,
)
from .transformers import (
    normalize_boolean,
    normalize_date,
    normalize_number,
    normalize_string_array,
    transform_portfolio_data,
    transform_position_data,
    transform_raw_portfolio_data,
    transform_raw_portfolio_data_array,
    transform_raw_position_data,
)
from .types import (
    BatchSummary,
    FieldError,
    ImportFailure,
    ImportOptions,
    ImportResult,
    TransformOptions,
    ValidationFailure,
    ValidationSuccess,
)
from .validators import (
    validate_asset_data,
    validate_order_data,
    validate_portfolio_data,
    validate_position_data,
)

__all__ = [
    "BackupMetadata",
    "BackupRestore",
    "BatchSummary",
    "FieldError",
    "ImportFailure",
    "ImportOptions",
    "ImportResult",
    "TransformOptions",
    "ValidationFailure",
    "ValidationSuccess",
    "create_backup",
    "decode_backup_text",
    "extract_orders",
    "extract_unique_assets",
    "import_from_file",
    "import_from_json",
    "import_multiple_from_file",
    "import_multiple_from_json",
    "import_portfolio_record",
    "import_position_record",
    "normalize_boolean",
    "normalize_date",
    "normalize_number",
    "normalize_string_array",
    "read_backup_metadata",
    "restore_backup",
    "transform_portfolio_data",
    "transform_position_data",
    "transform_raw_portfolio_data",
    "transform_raw_portfolio_data_array",
    "transform_raw_position_data",
    "validate_asset_data",
    "validate_order_data",
    "validate_portfolio_data",
    "validate_position_data",
]
