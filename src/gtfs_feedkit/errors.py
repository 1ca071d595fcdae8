"""Error taxonomy and validation report types for GTFS decoding and loading."""

from collections import Counter
from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Kinds of failure raised by decoders or collected by the static loader."""

    MALFORMED_SCALAR = "MalformedScalar"
    TRUNCATED_MESSAGE = "TruncatedMessage"
    INVALID_WIRE_TYPE = "InvalidWireType"
    INVALID_TAG = "InvalidTag"
    VARINT_OVERFLOW = "VarintOverflow"
    INVALID_UTF8 = "InvalidUtf8"
    NESTING_TOO_DEEP = "NestingTooDeep"
    INPUT_LIMIT_EXCEEDED = "InputLimitExceeded"
    MISSING_REQUIRED_FIELD = "MissingRequiredField"
    MISSING_COLUMN = "MissingColumn"
    MISSING_TABLE = "MissingTable"
    DUPLICATE_ID = "DuplicateId"
    UNKNOWN_ENUM_VALUE = "UnknownEnumValue"
    DANGLING_REFERENCE = "DanglingReference"
    ORDER_VIOLATION = "OrderViolation"
    DATE_RANGE_VIOLATION = "DateRangeViolation"


class GtfsError(Exception):
    """Base class for every error raised by gtfs_feedkit."""

    kind: ErrorKind


class MalformedScalar(GtfsError, ValueError):
    """A literal could not be parsed into its domain scalar."""

    kind = ErrorKind.MALFORMED_SCALAR

    def __init__(self, field: str, value: object, reason: str = "") -> None:
        self.field = field
        self.value = value
        self.reason = reason
        message = f"Malformed value for '{field}': {value!r}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class UnknownEnumValue(MalformedScalar):
    """A coded column held a value outside its enumeration."""

    kind = ErrorKind.UNKNOWN_ENUM_VALUE


class InputLimitExceeded(GtfsError):
    """Input is larger than the caller-supplied guard allows."""

    kind = ErrorKind.INPUT_LIMIT_EXCEEDED

    def __init__(self, what: str, limit: int, actual: int) -> None:
        self.what = what
        self.limit = limit
        self.actual = actual
        super().__init__(f"{what} exceeds limit of {limit} (got {actual})")


class DecodeError(GtfsError):
    """Realtime buffer could not be decoded.

    Attributes:
        offset: Absolute byte offset in the input buffer where decoding failed,
            or None when the failure is not tied to a position.
    """

    kind: ErrorKind = ErrorKind.TRUNCATED_MESSAGE

    def __init__(self, message: str, offset: int | None = None) -> None:
        self.offset = offset
        if offset is not None:
            message = f"{message} at byte {offset}"
        super().__init__(message)


class TruncatedMessage(DecodeError):
    """Buffer ended in the middle of a field."""

    kind = ErrorKind.TRUNCATED_MESSAGE


class InvalidWireType(DecodeError):
    """Tag carried a wire type that does not exist."""

    kind = ErrorKind.INVALID_WIRE_TYPE


class InvalidTag(DecodeError):
    """Tag carried field number zero."""

    kind = ErrorKind.INVALID_TAG


class VarintOverflow(DecodeError):
    """Varint ran longer than ten bytes."""

    kind = ErrorKind.VARINT_OVERFLOW


class InvalidUtf8(DecodeError):
    """String field did not hold valid UTF-8."""

    kind = ErrorKind.INVALID_UTF8


class NestingTooDeep(DecodeError):
    """Nested messages or groups exceed the configured depth."""

    kind = ErrorKind.NESTING_TOO_DEEP


class MissingRequiredField(DecodeError):
    """A required realtime field was absent."""

    kind = ErrorKind.MISSING_REQUIRED_FIELD

    def __init__(self, path: str, offset: int | None = None) -> None:
        self.path = path
        super().__init__(f"Missing required field '{path}'", offset)


@dataclass(frozen=True, slots=True)
class Violation:
    """A single static feed violation.

    `row` is the 1-based data row number within the table (header excluded),
    or None for table-level findings.
    """

    table: str
    row: int | None
    kind: ErrorKind
    message: str
    entity_id: str | None = None
    field: str | None = None
    value: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-friendly dictionary."""
        return {
            "table": self.table,
            "row": self.row,
            "entity_id": self.entity_id,
            "kind": self.kind.value,
            "field": self.field,
            "value": self.value,
            "message": self.message,
        }


@dataclass
class ValidationReport:
    """Aggregate of every violation found while loading a static feed."""

    violations: list[Violation] = field(default_factory=list)

    def add(self, violation: Violation) -> None:
        self.violations.append(violation)

    def __len__(self) -> int:
        return len(self.violations)

    def __iter__(self) -> Iterator[Violation]:
        return iter(self.violations)

    def __bool__(self) -> bool:
        return bool(self.violations)

    @property
    def is_valid(self) -> bool:
        """True when no violation was collected."""
        return not self.violations

    def by_kind(self, kind: ErrorKind) -> list[Violation]:
        """Return the violations of a single kind, in discovery order."""
        return [v for v in self.violations if v.kind == kind]

    def for_table(self, table: str) -> list[Violation]:
        """Return the violations reported against one table."""
        return [v for v in self.violations if v.table == table]

    def counts(self) -> dict[str, int]:
        """Count violations per kind."""
        return dict(Counter(v.kind.value for v in self.violations))

    def summary(self) -> str:
        """Generate a human-readable summary."""
        if self.is_valid:
            return "Feed is valid"
        tables = sorted({v.table for v in self.violations})
        return (
            f"Feed has {len(self.violations)} violation(s) "
            f"across {len(tables)} table(s): {', '.join(tables)}"
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-friendly dictionary."""
        return {
            "valid": self.is_valid,
            "violation_count": len(self.violations),
            "counts": self.counts(),
            "summary": self.summary(),
            "violations": [v.to_dict() for v in self.violations],
        }


class FeedValidationError(GtfsError):
    """Static feed failed validation; carries the full report."""

    def __init__(self, report: ValidationReport) -> None:
        self.report = report
        super().__init__(report.summary())
