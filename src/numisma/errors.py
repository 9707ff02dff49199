"""Custom exceptions for clearer error handling across the package."""

from __future__ import annotations

from typing import Any


class NumismaError(Exception):
    """Base exception for all package-specific errors."""


class ConfigError(NumismaError, ValueError):
    """Raised when environment configuration is invalid or missing."""


class DataImportError(NumismaError):
    """Base exception for failures while importing external data."""

    code = "IMPORT_ERROR"

    def __init__(self, message: str, details: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class SchemaValidationError(DataImportError):
    """Raised when data does not match a domain contract."""

    code = "VALIDATION_ERROR"


class TransformationError(DataImportError):
    """Raised when data cannot be normalized into domain records."""

    code = "TRANSFORMATION_ERROR"


class FileReadError(DataImportError):
    """Raised when an import source cannot be read."""

    code = "FILE_READ_ERROR"


class BackupFormatError(DataImportError):
    """Raised when a backup document matches no known layout."""

    code = "BACKUP_FORMAT_ERROR"
