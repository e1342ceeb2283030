# src/checksumly/errors.py

from __future__ import annotations

from enum import Enum
from pathlib import Path


def _printable(path: str) -> str:
    return path.encode("utf-8", "backslashreplace").decode("utf-8")


class ChecksumError(Exception):
    """Base class for every failure the core reports."""

    exit_code = 1


class PathError(ChecksumError):
    """A path cannot be normalized relative to the base directory."""

    exit_code = 5

    def __init__(self, path, message: str | None = None):
        self.path = str(path)
        super().__init__(message or f"Path cannot be resolved under base: {_printable(self.path)}")


class ManifestReason(str, Enum):
    EMPTY_OR_MISSING = "empty_or_missing"
    SCHEMA_MISMATCH = "schema_mismatch"
    CORRUPT = "corrupt"


class ManifestError(ChecksumError):
    """Missing/empty hash table, incoherent header or unparsable entry."""

    exit_code = 2

    def __init__(self, reason: ManifestReason, detail: str, path: Path | str | None = None):
        self.reason = reason
        self.detail = detail
        self.path = str(path) if path is not None else None
        super().__init__(detail)


class ScanError(ChecksumError):
    """A file or directory could not be read while traversing the tree."""

    exit_code = 3

    def __init__(self, path, cause: BaseException | str | None = None):
        self.path = str(path)
        self.cause = cause
        message = f"Cannot read: {_printable(self.path)}"
        if cause:
            message = f"{message} ({cause})"
        super().__init__(message)


class WriteError(ChecksumError):
    """The atomic replace of the hash table could not complete."""

    exit_code = 4

    def __init__(self, path, cause: BaseException | None = None):
        self.path = str(path)
        self.cause = cause
        message = f"Cannot write hash table: {self.path}"
        if cause:
            message = f"{message} ({cause})"
        super().__init__(message)
