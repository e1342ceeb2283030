# src/checksumly/models.py

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Sequence

from .config import DEFAULT_FILE_TYPES, SCHEMA_TAG
from .path_utils import is_within_scope, reldir_segments, render_record, split_record


# ------------------------------
# File type filter
# ------------------------------
@dataclass(frozen=True)
class FileTypeFilter:
    """Set of lower-case extensions; empty means every file ("*")."""

    extensions: tuple[str, ...] = ()

    @classmethod
    def parse(cls, text: str | None) -> "FileTypeFilter":
        if text is None:
            return cls()
        parts = [p.strip().lower().lstrip(".") for p in str(text).split(",")]
        parts = [p for p in parts if p]
        if not parts or DEFAULT_FILE_TYPES in parts:
            return cls()
        return cls(tuple(sorted(set(parts))))

    @property
    def matches_all(self) -> bool:
        return not self.extensions

    def matches(self, filename: str) -> bool:
        if self.matches_all:
            return True
        lower = filename.lower()
        return any(lower.endswith("." + ext) for ext in self.extensions)

    def render(self) -> str:
        return DEFAULT_FILE_TYPES if self.matches_all else ",".join(self.extensions)

    def __str__(self) -> str:
        return self.render()


# ------------------------------
# Table header and entries
# ------------------------------
@dataclass(frozen=True)
class Header:
    base_path: str
    file_types: FileTypeFilter
    schema_tag: str = SCHEMA_TAG

    def lines(self) -> tuple[str, str, str]:
        return (self.base_path, self.file_types.render(), self.schema_tag)


@dataclass(frozen=True)
class Entry:
    """One table row: a directory marker (name empty) or a file record."""

    reldir: str
    name: str = ""
    mtime: str = ""
    digest: str = ""

    @property
    def is_directory(self) -> bool:
        return not self.name

    @property
    def segments(self) -> tuple[str, ...]:
        return reldir_segments(self.reldir)

    def render(self) -> str:
        return render_record((self.reldir, self.name, self.mtime, self.digest))

    @classmethod
    def parse(cls, line: str) -> "Entry":
        """Parse a rendered table line. Raises ValueError when malformed."""
        fields = split_record(line)
        if len(fields) != 4:
            raise ValueError(f"expected 4 fields, found {len(fields)}")

        reldir, name, mtime, digest = fields
        if not reldir.startswith("./"):
            raise ValueError(f"relative folder must start with './': {reldir!r}")
        if ".." in reldir_segments(reldir):
            raise ValueError(f"relative folder escapes base: {reldir!r}")
        if name and not (mtime and digest):
            raise ValueError(f"file record without time or hash: {name!r}")
        if not name and (mtime or digest):
            raise ValueError("folder marker carries time or hash")

        return cls(reldir, name, mtime, digest)


@dataclass(frozen=True)
class Scope:
    """Relative folder (plus filter) an update or check may touch."""

    reldir: str
    file_types: FileTypeFilter = field(default_factory=FileTypeFilter)

    @property
    def segments(self) -> tuple[str, ...]:
        return reldir_segments(self.reldir)

    def contains(self, reldir: str) -> bool:
        return is_within_scope(reldir, self.reldir)


# ------------------------------
# Scoped reads
# ------------------------------
def fingerprint_lines(lines: Iterable[str]) -> str:
    h = hashlib.sha256()
    for line in lines:
        h.update(line.encode("utf-8"))
        h.update(b"\n")
    return h.hexdigest()


@dataclass(frozen=True)
class SpliceMarker:
    """Where the scope's block sits inside the retained lines, and what it held."""

    position: int
    line_count: int
    fingerprint: str
    contiguous: bool = True

    def matches(self, lines: Sequence[str]) -> bool:
        return (
            self.contiguous
            and self.line_count == len(lines)
            and self.fingerprint == fingerprint_lines(lines)
        )


@dataclass(frozen=True)
class ScopeRead:
    header: Header
    scope: Scope
    outside: tuple[str, ...] = ()
    inside: tuple[str, ...] = ()
    marker: SpliceMarker | None = None

    def spliced(self, fresh_lines: Sequence[str]) -> list[str]:
        if self.marker is None:
            raise ValueError("scope was not read for update")
        pos = self.marker.position
        return [*self.outside[:pos], *fresh_lines, *self.outside[pos:]]


# ------------------------------
# Results
# ------------------------------
class ManifestState(str, Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"
    UPDATING = "updating"
    CHECKING = "checking"


class ChangeKind(str, Enum):
    ADDED = "added"
    REMOVED = "removed"

    @property
    def symbol(self) -> str:
        return ">" if self is ChangeKind.ADDED else "<"


@dataclass(frozen=True)
class ChangeRecord:
    kind: ChangeKind
    line: str
    entry: Entry | None = None

    def __str__(self) -> str:
        return f"{self.kind.symbol} {self.line}"


@dataclass(frozen=True)
class ChangeReport:
    unchanged: bool
    changes: tuple[ChangeRecord, ...] = ()

    @property
    def added(self) -> list[ChangeRecord]:
        return [c for c in self.changes if c.kind is ChangeKind.ADDED]

    @property
    def removed(self) -> list[ChangeRecord]:
        return [c for c in self.changes if c.kind is ChangeKind.REMOVED]


class UpdateReason(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    FORCED = "forced"
    NOTHING_TO_UPDATE = "nothing_to_update"


@dataclass(frozen=True)
class UpdateResult:
    written: bool
    reason: UpdateReason
    scope: str = "./"
    entries: int = 0


@dataclass(frozen=True)
class CheckResult:
    changed: bool
    changes: tuple[ChangeRecord, ...] = ()
    scope: str = "./"
    errors: tuple = ()
