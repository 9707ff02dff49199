"""Entry points that turn JSON text or files into validated domain records.

Every failure is returned as an ``ImportResult``; nothing raises past these
functions.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Callable
from pathlib import Path
from typing import IO, Any

from numisma.domain.models import Portfolio, Position
from numisma.errors import FileReadError, TransformationError
from numisma.importing.transformers import (
    transform_raw_portfolio_data,
    transform_raw_position_data,
)
from numisma.importing.types import (
    FILE_READ_FALLBACK_MESSAGE,
    NOT_AN_ARRAY_MESSAGE,
    VALIDATION_FAILED_MESSAGE,
    ImportOptions,
    ImportResult,
    ValidationFailure,
    ValidationResult,
)

logger = logging.getLogger(__name__)

ImportSource = str | os.PathLike[str] | IO[str] | IO[bytes]


def import_from_json(
    text: str,
    options: ImportOptions | None = None,
) -> ImportResult[Portfolio]:
    """Parse, validate and normalize one portfolio from JSON text."""
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as exc:
        return _json_failure(exc)
    except (ValueError, RecursionError) as exc:
        return _parse_failure(exc)
    return import_portfolio_record(parsed, options)


def import_from_file(
    source: ImportSource,
    options: ImportOptions | None = None,
) -> ImportResult[Portfolio]:
    """Read a path or file-like object and import one portfolio from it."""
    try:
        content = read_source_text(source)
    except FileReadError as exc:
        return ImportResult.fail(exc.message, exc.details)
    return import_from_json(content, options)


def import_multiple_from_json(
    text: str,
    options: ImportOptions | None = None,
) -> list[ImportResult[Portfolio]]:
    """Import every element of a JSON array independently, in input order."""
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as exc:
        return [_json_failure(exc)]
    except (ValueError, RecursionError) as exc:
        return [_parse_failure(exc)]
    if not isinstance(parsed, list):
        return [ImportResult.fail(NOT_AN_ARRAY_MESSAGE)]
    results = [import_portfolio_record(item, options) for item in parsed]
    logger.debug(
        "batch import finished: %d of %d succeeded",
        sum(1 for result in results if result.success),
        len(results),
    )
    return results


def import_multiple_from_file(
    source: ImportSource,
    options: ImportOptions | None = None,
) -> list[ImportResult[Portfolio]]:
    try:
        content = read_source_text(source)
    except FileReadError as exc:
        return [ImportResult.fail(exc.message, exc.details)]
    return import_multiple_from_json(content, options)


def import_portfolio_record(
    value: Any,
    options: ImportOptions | None = None,
) -> ImportResult[Portfolio]:
    """Run the single-record path on an already parsed JSON value."""
    return _import_record(transform_raw_portfolio_data, value, options)


def import_position_record(
    value: Any,
    options: ImportOptions | None = None,
) -> ImportResult[Position]:
    return _import_record(transform_raw_position_data, value, options)


def read_source_text(source: ImportSource) -> str:
    """Return the UTF-8 text of a path or readable object.

    Raises ``FileReadError`` carrying the underlying error message.
    """
    try:
        if hasattr(source, "read"):
            content = source.read()
        else:
            content = Path(source).read_text(encoding="utf-8")
        if isinstance(content, bytes):
            content = content.decode("utf-8")
    except (OSError, ValueError) as exc:
        message = str(exc) or FILE_READ_FALLBACK_MESSAGE
        raise FileReadError(message, details={"source": _describe_source(source)}) from exc
    if not isinstance(content, str):
        raise FileReadError(
            FILE_READ_FALLBACK_MESSAGE,
            details={"source": _describe_source(source)},
        )
    return content


def _import_record(
    transform: Callable[[Any, ImportOptions | None], ValidationResult[Any]],
    value: Any,
    options: ImportOptions | None,
) -> ImportResult[Any]:
    try:
        result = transform(value, options)
    except TransformationError as exc:
        return ImportResult.fail(exc.message, exc.details)
    if isinstance(result, ValidationFailure):
        return ImportResult.fail(VALIDATION_FAILED_MESSAGE, result.errors)
    return ImportResult.ok(result.data)


def _json_failure(exc: json.JSONDecodeError) -> ImportResult[Any]:
    return ImportResult.fail(
        f"Invalid JSON: {exc.msg} (line {exc.lineno}, column {exc.colno})",
        details={"line": exc.lineno, "column": exc.colno, "position": exc.pos},
    )


# Well-formed JSON can still exceed the integer digit limit or nesting depth.
def _parse_failure(exc: ValueError | RecursionError) -> ImportResult[Any]:
    logger.debug("json parsing failed: %s", exc)
    return ImportResult.fail(f"Invalid JSON: {exc}", details={"error": type(exc).__name__})


def _describe_source(source: ImportSource) -> str:
    name = getattr(source, "name", None)
    if isinstance(name, str):
        return name
    if isinstance(source, (str, os.PathLike)):
        return os.fspath(source)
    return type(source).__name__
