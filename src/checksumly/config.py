"""
📄 config.py

Purpose:
    Central configuration for hash table, log file and scan defaults.

Key Features:
    - DEFAULT_HASH_FILE: hash table file name used when -H is not given.
    - DEFAULT_FILE_TYPES: file type filter matching every file.
    - ChecksumConfig: immutable per-invocation settings handed to the orchestrator.

Usage:
    Import constants into the CLI (e.g., `checksumly.py`) or build a
    ChecksumConfig with `ChecksumConfig.from_paths(...)`.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from .path_utils import to_absolute

DEFAULT_FOLDER = "."
DEFAULT_HASH_FILE = "checksum.check"
DEFAULT_FILE_TYPES = "*"
DEFAULT_LOG_FILE = "checksum.log"
DEFAULT_HASH_ALGORITHM = "md5"

SCHEMA_TAG = "RELDIR,FILENAME,TIME,HASH"
HEADER_LINES = 3

# ISO-8601 with explicit offset, e.g. 1970-01-01T00:00:01+0000
TIME_FORMAT = "%Y-%m-%dT%H:%M:%S%z"

CHUNK_SIZE = 1024 * 1024  # 1MB read blocks while hashing
TMP_SUFFIX = ".tmpfile"


def temp_path_for(path: Path) -> Path:
    """Sibling file a new hash table is written to before it replaces `path`."""
    path = Path(path)
    return path.with_name(f".{path.name}{TMP_SUFFIX}")


@dataclass(frozen=True)
class ChecksumConfig:
    """Everything one update/check run needs, resolved once up front."""

    base_dir: Path
    scope_dir: Path
    hash_file: Path
    work_dir: Path
    file_types: str | None = None
    force: bool = False
    keep_going: bool = False
    hash_algorithm: str = DEFAULT_HASH_ALGORITHM
    log_file: Path | None = None
    extra_excludes: tuple[Path, ...] = field(default_factory=tuple)

    @classmethod
    def from_paths(
        cls,
        folder: str | os.PathLike | None = None,
        *,
        base_folder: str | os.PathLike | None = None,
        hash_file: str | os.PathLike | None = None,
        file_types: str | None = None,
        force: bool = False,
        keep_going: bool = False,
        hash_algorithm: str = DEFAULT_HASH_ALGORITHM,
        log_file: str | os.PathLike | None = None,
        work_dir: str | os.PathLike | None = None,
    ) -> "ChecksumConfig":
        anchor = to_absolute(work_dir or os.getcwd())
        base = to_absolute(base_folder or DEFAULT_FOLDER, anchor)
        scope = to_absolute(folder, anchor) if folder else base
        table = to_absolute(hash_file or DEFAULT_HASH_FILE, anchor, strict=False)
        log_path = to_absolute(log_file, anchor, strict=False) if log_file else None

        return cls(
            base_dir=base,
            scope_dir=scope,
            hash_file=table,
            work_dir=anchor,
            file_types=file_types,
            force=force,
            keep_going=keep_going,
            hash_algorithm=hash_algorithm,
            log_file=log_path,
        )

    @property
    def tmp_file(self) -> Path:
        return temp_path_for(self.hash_file)

    @property
    def excluded_paths(self) -> frozenset[Path]:
        """Files the scanner must never record (the table itself and friends)."""
        paths = {self.hash_file, self.tmp_file, *self.extra_excludes}
        if self.log_file:
            paths.add(self.log_file)
        return frozenset(paths)
