"""
Music League Engine - Error Taxonomy

Every failed archive load resolves to exactly one error kind. Kinds are
stable strings so they can be aggregated in logs, returned by the API and
asserted in tests.

Error Code Format: MLE-{CATEGORY}-{NUMBER}
- NET (200-299): Fetching archive bytes
- ARCHIVE (500-599): Archive validation (untrusted input)
- INTERNAL (900-999): Unexpected internal errors

Row-level data problems are NOT errors: the parser and joiner recover them
locally with safe defaults and never raise.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class ErrorKind(str, Enum):
    """Kinds of failure for a single archive load."""

    FETCH_FAILED = "fetch_failed"
    ARCHIVE_TOO_LARGE = "archive_too_large"
    TOO_MANY_ENTRIES = "too_many_entries"
    PATH_TRAVERSAL = "path_traversal"
    ABSOLUTE_PATH = "absolute_path"
    UNSUPPORTED_FILE_TYPE = "unsupported_file_type"
    FILE_TOO_LARGE = "file_too_large"
    INVALID_ARCHIVE = "invalid_archive"
    TIMEOUT = "timeout"
    INTERNAL = "internal"


@dataclass(frozen=True)
class ErrorCode:
    """Immutable error code definition."""

    code: str
    kind: ErrorKind
    message: str
    retryable: bool = False

    def __str__(self) -> str:
        return self.code


ERROR_CODES: dict[ErrorKind, ErrorCode] = {
    ErrorKind.FETCH_FAILED: ErrorCode(
        code="MLE-NET-200",
        kind=ErrorKind.FETCH_FAILED,
        message="Archive could not be fetched",
        retryable=True,
    ),
    ErrorKind.TIMEOUT: ErrorCode(
        code="MLE-NET-201",
        kind=ErrorKind.TIMEOUT,
        message="Archive load exceeded its deadline",
        retryable=True,
    ),
    ErrorKind.ARCHIVE_TOO_LARGE: ErrorCode(
        code="MLE-ARCHIVE-500",
        kind=ErrorKind.ARCHIVE_TOO_LARGE,
        message="Archive exceeds the size limit",
    ),
    ErrorKind.TOO_MANY_ENTRIES: ErrorCode(
        code="MLE-ARCHIVE-501",
        kind=ErrorKind.TOO_MANY_ENTRIES,
        message="Archive contains too many entries",
    ),
    ErrorKind.PATH_TRAVERSAL: ErrorCode(
        code="MLE-ARCHIVE-502",
        kind=ErrorKind.PATH_TRAVERSAL,
        message="Archive entry name contains a path traversal segment",
    ),
    ErrorKind.ABSOLUTE_PATH: ErrorCode(
        code="MLE-ARCHIVE-503",
        kind=ErrorKind.ABSOLUTE_PATH,
        message="Archive entry name is an absolute path",
    ),
    ErrorKind.UNSUPPORTED_FILE_TYPE: ErrorCode(
        code="MLE-ARCHIVE-504",
        kind=ErrorKind.UNSUPPORTED_FILE_TYPE,
        message="Archive entry is not a CSV file",
    ),
    ErrorKind.FILE_TOO_LARGE: ErrorCode(
        code="MLE-ARCHIVE-505",
        kind=ErrorKind.FILE_TOO_LARGE,
        message="Archive entry exceeds the per-file size limit",
    ),
    ErrorKind.INVALID_ARCHIVE: ErrorCode(
        code="MLE-ARCHIVE-506",
        kind=ErrorKind.INVALID_ARCHIVE,
        message="Payload is not a readable ZIP archive",
    ),
    ErrorKind.INTERNAL: ErrorCode(
        code="MLE-INTERNAL-900",
        kind=ErrorKind.INTERNAL,
        message="Unexpected error while loading archive",
    ),
}


# =============================================================================
# Exceptions
# =============================================================================


class LeagueLoadError(Exception):
    """Base error for a failed archive load. Fatal for that archive only."""

    def __init__(self, kind: ErrorKind, message: str, file_name: Optional[str] = None):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.file_name = file_name

    @property
    def error_code(self) -> ErrorCode:
        return ERROR_CODES[self.kind]

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "code": self.error_code.code,
            "message": self.message,
            "file_name": self.file_name,
            "retryable": self.error_code.retryable,
        }

    def __str__(self) -> str:
        if self.file_name:
            return f"[{self.error_code.code}] {self.file_name}: {self.message}"
        return f"[{self.error_code.code}] {self.message}"


class FetchFailedError(LeagueLoadError):
    """Non-success transport response or transport error."""

    def __init__(self, message: str, file_name: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(ErrorKind.FETCH_FAILED, message, file_name)
        self.status_code = status_code


class ArchiveValidationError(LeagueLoadError):
    """Archive rejected before any entry content was trusted."""

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        file_name: Optional[str] = None,
        entry_name: Optional[str] = None,
    ):
        super().__init__(kind, message, file_name)
        self.entry_name = entry_name


class LoadTimeoutError(LeagueLoadError):
    """Per-archive deadline elapsed."""

    def __init__(self, file_name: str, timeout_ms: int):
        super().__init__(
            ErrorKind.TIMEOUT,
            f"Timeout processing file {file_name} after {timeout_ms}ms",
            file_name,
        )
        self.timeout_ms = timeout_ms


# =============================================================================
# Data form of a failure (fan-out level)
# =============================================================================


@dataclass(frozen=True, slots=True)
class LoadFailure:
    """One archive that did not produce a League."""

    category_id: str
    title: str
    file_name: str
    kind: ErrorKind
    message: str

    @classmethod
    def from_exception(
        cls, exc: BaseException, *, category_id: str, title: str, file_name: str
    ) -> "LoadFailure":
        if isinstance(exc, LeagueLoadError):
            return cls(category_id, title, file_name, exc.kind, exc.message)
        return cls(category_id, title, file_name, ErrorKind.INTERNAL, f"{type(exc).__name__}: {exc}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "category_id": self.category_id,
            "title": self.title,
            "file_name": self.file_name,
            "kind": self.kind.value,
            "code": ERROR_CODES[self.kind].code,
            "message": self.message,
        }
