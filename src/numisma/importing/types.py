"""Result and option types shared by validators, transformers and importers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Generic, Literal, TypeVar

if TYPE_CHECKING:
    from numisma.config import Settings

T = TypeVar("T")

VALIDATION_FAILED_MESSAGE = "Validation failed"
NOT_AN_ARRAY_MESSAGE = "Input must be an array of portfolio data"
FILE_READ_FALLBACK_MESSAGE = "Failed to read file"


@dataclass(frozen=True)
class FieldError:
    """One field that failed its contract."""

    path: str
    message: str
    code: str
    received: Any = None

    def to_record(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "message": self.message,
            "code": self.code,
            "received": _json_safe(self.received),
        }


@dataclass(frozen=True)
class ValidationSuccess(Generic[T]):
    data: T
    success: Literal[True] = True


@dataclass(frozen=True)
class ValidationFailure:
    errors: tuple[FieldError, ...]
    success: Literal[False] = False

    def paths(self) -> list[str]:
        """Return the failing field paths in report order."""
        return [error.path for error in self.errors]


ValidationResult = ValidationSuccess[T] | ValidationFailure


@dataclass(frozen=True)
class TransformOptions:
    """Which loosely typed values the transformers should normalize."""

    normalize_dates: bool = True
    normalize_numbers: bool = True
    normalize_booleans: bool = True


@dataclass(frozen=True)
class ImportOptions:
    """Options accepted by every import entry point."""

    validate: bool = True
    normalize_dates: bool = True
    normalize_numbers: bool = True
    normalize_booleans: bool = True

    @classmethod
    def from_settings(cls, settings: Settings) -> ImportOptions:
        return cls(
            validate=settings.validate_imports,
            normalize_dates=settings.normalize_dates,
            normalize_numbers=settings.normalize_numbers,
            normalize_booleans=settings.normalize_booleans,
        )

    def transform_options(self) -> TransformOptions:
        return TransformOptions(
            normalize_dates=self.normalize_dates,
            normalize_numbers=self.normalize_numbers,
            normalize_booleans=self.normalize_booleans,
        )


@dataclass(frozen=True)
class ImportFailure:
    """Failure payload of an import result."""

    message: str
    details: Any = None

    def to_record(self) -> dict[str, Any]:
        record: dict[str, Any] = {"message": self.message}
        if self.details is not None:
            record["details"] = _json_safe(self.details)
        return record


@dataclass(frozen=True)
class ImportResult(Generic[T]):
    """Outcome of importing one record; never raised, always returned."""

    success: bool
    data: T | None = None
    error: ImportFailure | None = None

    @classmethod
    def ok(cls, data: T) -> ImportResult[T]:
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, message: str, details: Any = None) -> ImportResult[T]:
        return cls(success=False, error=ImportFailure(message=message, details=details))

    def to_record(self) -> dict[str, Any]:
        record: dict[str, Any] = {"success": self.success}
        if self.data is not None:
            to_record = getattr(self.data, "to_record", None)
            record["data"] = to_record() if callable(to_record) else self.data
        if self.error is not None:
            record["error"] = self.error.to_record()
        return record


@dataclass(frozen=True)
class BatchSummary:
    total: int
    succeeded: int
    failed: int
    failed_indexes: tuple[int, ...] = field(default_factory=tuple)

    @classmethod
    def from_results(cls, results: list[ImportResult[Any]]) -> BatchSummary:
        failed_indexes = tuple(index for index, result in enumerate(results) if not result.success)
        return cls(
            total=len(results),
            succeeded=len(results) - len(failed_indexes),
            failed=len(failed_indexes),
            failed_indexes=failed_indexes,
        )


def _json_safe(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, (list, tuple)):
        return [_json_safe(item) for item in value]
    if isinstance(value, dict):
        return {str(key): _json_safe(item) for key, item in value.items()}
    to_record = getattr(value, "to_record", None)
    if callable(to_record):
        return to_record()
    return str(value)
