"""Exception hierarchy for reading OOXML spreadsheet packages.

XlsxError (base)
├── ContainerError
│   └── PartNotFoundError
├── DecodeError
├── IntegrityError
│   ├── IndexOutOfRangeError
│   ├── RelationshipNotFoundError
│   ├── StyleIndexOutOfRangeError
│   ├── OverlappingMergeError
│   └── MalformedDrawingError
├── SheetNotFoundError
└── CapabilityDisabledError

Recoverable fallbacks never raise; they are logged by the module that
substitutes the default.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    # Container errors (E1xxx)
    CONTAINER_UNREADABLE = "E1001"
    PART_NOT_FOUND = "E1002"

    # Decode errors (E2xxx)
    MALFORMED_XML = "E2001"
    MALFORMED_VALUE = "E2002"

    # Integrity errors (E3xxx)
    INDEX_OUT_OF_RANGE = "E3001"
    RELATIONSHIP_NOT_FOUND = "E3002"
    STYLE_INDEX_OUT_OF_RANGE = "E3003"
    OVERLAPPING_MERGE = "E3004"
    MALFORMED_DRAWING = "E3005"

    # Lookup errors (E4xxx)
    SHEET_NOT_FOUND = "E4001"

    # Configuration errors (E5xxx)
    CAPABILITY_DISABLED = "E5001"


class XlsxError(Exception):
    default_code = ErrorCode.CONTAINER_UNREADABLE

    def __init__(
        self,
        message: str,
        *,
        part: str | None = None,
        code: ErrorCode | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.part = part
        self.code = code or self.default_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "error_code": self.code.value,
            "error_type": type(self).__name__,
            "message": self.message,
        }
        if self.part is not None:
            payload["part"] = self.part
        if self.details:
            payload["details"] = self.details
        return payload

    def __str__(self) -> str:
        if self.part:
            return f"[{self.code.value}] {self.message} ({self.part})"
        return f"[{self.code.value}] {self.message}"


class ContainerError(XlsxError):
    """The archive, or one entry of it, cannot be read."""

    default_code = ErrorCode.CONTAINER_UNREADABLE


class PartNotFoundError(ContainerError):
    default_code = ErrorCode.PART_NOT_FOUND

    def __init__(self, part: str) -> None:
        super().__init__("Part not found in package", part=part)


class DecodeError(XlsxError):
    """A part holds malformed XML or an attribute that cannot be decoded."""

    default_code = ErrorCode.MALFORMED_XML


class IntegrityError(XlsxError):
    """A structure references an index or id that does not exist."""

    default_code = ErrorCode.INDEX_OUT_OF_RANGE


class IndexOutOfRangeError(IntegrityError):
    default_code = ErrorCode.INDEX_OUT_OF_RANGE

    def __init__(self, what: str, index: int, length: int, *, part: str | None = None) -> None:
        super().__init__(
            f"{what} index {index} out of range (size {length})",
            part=part,
            details={"index": index, "length": length},
        )
        self.index = index
        self.length = length


class RelationshipNotFoundError(IntegrityError):
    default_code = ErrorCode.RELATIONSHIP_NOT_FOUND

    def __init__(self, rel_id: str, *, part: str) -> None:
        super().__init__(f"Relationship {rel_id!r} not declared in manifest", part=part, details={"id": rel_id})
        self.rel_id = rel_id


class StyleIndexOutOfRangeError(IntegrityError):
    default_code = ErrorCode.STYLE_INDEX_OUT_OF_RANGE

    def __init__(self, table: str, index: int, length: int) -> None:
        super().__init__(
            f"{table} index {index} out of range (size {length})",
            part="xl/styles.xml",
            details={"table": table, "index": index, "length": length},
        )
        self.table = table
        self.index = index


class OverlappingMergeError(IntegrityError):
    default_code = ErrorCode.OVERLAPPING_MERGE

    def __init__(self, first: str, second: str, *, part: str | None = None) -> None:
        super().__init__(
            f"Merged regions {first} and {second} overlap",
            part=part,
            details={"first": first, "second": second},
        )


class MalformedDrawingError(IntegrityError):
    default_code = ErrorCode.MALFORMED_DRAWING


class SheetNotFoundError(XlsxError, LookupError):
    default_code = ErrorCode.SHEET_NOT_FOUND

    def __init__(self, key: object, message: str | None = None) -> None:
        super().__init__(message or f"No sheet matches {key!r}", details={"key": str(key)})


class CapabilityDisabledError(XlsxError):
    default_code = ErrorCode.CAPABILITY_DISABLED

    def __init__(self, capability: str) -> None:
        super().__init__(f"The {capability!r} capability is disabled in ReaderOptions")
        self.capability = capability
