"""
📄 manifest.py

Purpose:
    Owns the on-disk hash table: a 3-line header followed by one CSV record
    per folder marker or file.

Key Features:
    - load_header(): validates base folder, file types and column layout.
    - read_scope(): streams the table, separating lines inside a scope from
      the rest; for updates the scope collapses into a SpliceMarker.
    - write_full() / write_spliced(): atomic replace through a temp file, so
      the previous table survives any failure before the swap.

Usage:
    header = load_header(path, expected)
    read = read_scope(path, scope, for_update=True)
    write_spliced(path, header, read, fresh_entries)
"""

from __future__ import annotations

import contextlib
import csv
import hashlib
import logging
import os
from pathlib import Path
from typing import Iterable, Iterator, Sequence

from .config import HEADER_LINES, SCHEMA_TAG, temp_path_for
from .errors import ManifestError, ManifestReason, WriteError
from .models import Entry, FileTypeFilter, Header, ManifestState, Scope, ScopeRead, SpliceMarker

logger = logging.getLogger(__name__)


# ------------------------------
# Rendering helpers
# ------------------------------
def render_header(header: Header) -> list[str]:
    return list(header.lines())


def render_lines(entries: Iterable[Entry | str]) -> list[str]:
    return [e.render() if isinstance(e, Entry) else str(e) for e in entries]


def _strip(line: str) -> str:
    return line.rstrip("\r\n")


# ------------------------------
# Header
# ------------------------------
def manifest_state(path) -> ManifestState:
    path = Path(path)
    if path.is_file() and path.stat().st_size > 0:
        return ManifestState.INITIALIZED
    return ManifestState.UNINITIALIZED


def _parse_header(lines: Sequence[str], path: Path) -> Header:
    if len(lines) < HEADER_LINES:
        raise ManifestError(ManifestReason.SCHEMA_MISMATCH, f'Incomplete header in "{path.name}"', path)

    base_path, file_types, schema_tag = lines[:HEADER_LINES]
    if schema_tag != SCHEMA_TAG:
        raise ManifestError(
            ManifestReason.SCHEMA_MISMATCH,
            f'Unknown column layout "{schema_tag}". Expected: "{SCHEMA_TAG}"',
            path,
        )
    return Header(base_path, FileTypeFilter.parse(file_types), schema_tag)


def verify_header(header: Header, expected: Header, path=None) -> None:
    if header.schema_tag != expected.schema_tag:
        raise ManifestError(
            ManifestReason.SCHEMA_MISMATCH,
            f'Unknown column layout "{header.schema_tag}". Expected: "{expected.schema_tag}"',
            path,
        )
    if header.base_path != expected.base_path:
        raise ManifestError(
            ManifestReason.SCHEMA_MISMATCH,
            f'Wrong folder base. Expected: "{header.base_path}"',
            path,
        )
    if header.file_types != expected.file_types:
        raise ManifestError(
            ManifestReason.SCHEMA_MISMATCH,
            f'File types incoherence. Expected: "{header.file_types}"',
            path,
        )


def load_header(path, expected: Header | None = None) -> Header:
    """
    Read and validate the 3-line header of the hash table at `path`.

    Raises:
        ManifestError(EMPTY_OR_MISSING): file absent or zero-length.
        ManifestError(SCHEMA_MISMATCH): bad layout, or disagreement with `expected`.
        ManifestError(CORRUPT): header bytes are not valid UTF-8.
    """
    path = Path(path)
    if manifest_state(path) is ManifestState.UNINITIALIZED:
        raise ManifestError(
            ManifestReason.EMPTY_OR_MISSING,
            f'File: "{path.name}" not exists or is empty',
            path,
        )

    try:
        with open(path, encoding="utf-8", newline="") as f:
            lines = [_strip(line) for _, line in zip(range(HEADER_LINES), f)]
    except UnicodeDecodeError as e:
        raise ManifestError(ManifestReason.CORRUPT, f"Header is not valid UTF-8: {e}", path) from e

    header = _parse_header(lines, path)
    logger.debug(f"File head RELBASE: {header.base_path}")
    logger.debug(f"File head FILETYPES: {header.file_types}")

    if expected is not None:
        verify_header(header, expected, path)
    return header


def initialize(path, header: Header) -> bool:
    """Create a header-only table. Returns False if an identical one already exists."""
    path = Path(path)
    if manifest_state(path) is ManifestState.INITIALIZED:
        load_header(path, expected=header)
        logger.debug(f'File: "{path.name}" already initialized')
        return False

    _atomic_write(path, render_header(header))
    logger.info(f'File created: "{path.name}"')
    return True


# ------------------------------
# Scoped read
# ------------------------------
def _insertion_point(keys: Sequence[tuple[str, ...]], scope: Scope) -> int:
    """Index where a scope with no stored lines belongs in depth-first order."""
    target = scope.segments
    for i, key in enumerate(keys):
        if key > target:
            return i
    return len(keys)


def _body_lines(path: Path) -> Iterator[tuple[int, str]]:
    """Yield (line number, text) for every non-blank body line."""
    lineno = 0
    try:
        with open(path, encoding="utf-8", newline="") as f:
            for lineno, raw in enumerate(f, start=1):
                if lineno <= HEADER_LINES:
                    continue
                line = _strip(raw)
                if line.strip():
                    yield lineno, line
    except UnicodeDecodeError as e:
        raise ManifestError(ManifestReason.CORRUPT, f"Line {lineno + 1}: not valid UTF-8 ({e})", path) from e


def read_scope(path, scope: Scope, for_update: bool = False, expected: Header | None = None) -> ScopeRead:
    """
    Stream the hash table and split its body around `scope`.

    for_update=False: lines inside the scope are kept verbatim in `inside`.
    for_update=True: lines outside the scope are kept verbatim in `outside`
    and the scope's lines are replaced by a single SpliceMarker recording
    where they started, how many there were and their fingerprint.
    """
    path = Path(path)
    header = load_header(path, expected)

    outside: list[str] = []
    outside_keys: list[tuple[str, ...]] = []
    inside: list[str] = []
    seen_dirs: set[str] = set()

    splice_at: int | None = None
    count = 0
    fingerprint = hashlib.sha256()
    contiguous = True
    prev_inside = False
    read_from = read_to = -1

    logger.debug(f'File read: "{path}"')

    for lineno, line in _body_lines(path):
        try:
            entry = Entry.parse(line)
        except (ValueError, csv.Error) as e:
            raise ManifestError(ManifestReason.CORRUPT, f"Line {lineno}: {e}", path) from e

        if entry.is_directory:
            seen_dirs.add(entry.reldir)
        elif entry.reldir not in seen_dirs:
            raise ManifestError(
                ManifestReason.CORRUPT,
                f"Line {lineno}: file record before its folder marker {entry.reldir!r}",
                path,
            )

        if scope.contains(entry.reldir):
            if read_from == -1:
                read_from = lineno
            read_to = lineno

            if for_update:
                if splice_at is None:
                    splice_at = len(outside)
                elif not prev_inside:
                    contiguous = False
                count += 1
                fingerprint.update(line.encode("utf-8"))
                fingerprint.update(b"\n")
            else:
                inside.append(line)
            prev_inside = True
        else:
            if for_update:
                outside.append(line)
                outside_keys.append(entry.segments)
            prev_inside = False

    logger.debug(f"Read from line: {read_from}")
    logger.debug(f"Read to line: {read_to}")

    marker = None
    if for_update:
        if splice_at is None:
            splice_at = _insertion_point(outside_keys, scope)
        marker = SpliceMarker(splice_at, count, fingerprint.hexdigest(), contiguous)
        logger.debug(f"Splice position: {splice_at} ({count} stored lines, contiguous={contiguous})")

    return ScopeRead(
        header=header,
        scope=scope,
        outside=tuple(outside),
        inside=tuple(inside),
        marker=marker,
    )


# ------------------------------
# Atomic writes
# ------------------------------
def _atomic_write(path: Path, lines: Iterable[str]) -> None:
    path = Path(path)
    tmp = temp_path_for(path)

    logger.debug(f'File write: "{tmp}"')
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(tmp, "w", encoding="utf-8", newline="\n") as f:
            for line in lines:
                f.write(line)
                f.write("\n")
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, path)
    except (OSError, UnicodeError) as e:
        raise WriteError(path, e) from e
    finally:
        # gone after a successful replace; leftover after any failure
        with contextlib.suppress(OSError):
            tmp.unlink(missing_ok=True)

    logger.debug(f'File move: "{tmp.name}" to "{path.name}"')


def write_full(path, header: Header, entries: Iterable[Entry | str]) -> int:
    """Replace the whole table with `header` + `entries`. Returns the body size."""
    body = render_lines(entries)
    _atomic_write(path, [*render_header(header), *body])
    return len(body)


def write_spliced(path, header: Header, scope_read: ScopeRead, fresh: Iterable[Entry | str]) -> int:
    """Replace the scope's block with `fresh`, leaving every other line untouched."""
    body = scope_read.spliced(render_lines(fresh))
    _atomic_write(path, [*render_header(header), *body])
    return len(body)
