"""
📄 scanner.py

Purpose:
    Walks a folder sub-tree and produces the ordered hash table entries for it.

Key Features:
    - Depth-first, pre-order traversal with children sorted by name, so the
      entries of any folder and its descendants form one contiguous block.
    - One folder marker per folder, immediately followed by its matching files.
    - Pluggable content hashing (md5 by default, blake2b-128 available) and
      modification time lookup (UTC, ISO-8601 with offset).

Usage:
    entries = scan(scope_dir, base_dir, FileTypeFilter.parse("jpg,png"))
"""

from __future__ import annotations

import hashlib
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Iterable, Iterator

from .config import CHUNK_SIZE, TIME_FORMAT
from .errors import ScanError
from .models import Entry, FileTypeFilter
from .path_utils import render_reldir, to_relative

logger = logging.getLogger(__name__)

Hasher = Callable[[Path], str]
ModTime = Callable[[Path], str]
ErrorHandler = Callable[[ScanError], None]


# ------------------------------
# Collaborators
# ------------------------------
def _hash_file(path: Path, h) -> str:
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
            h.update(chunk)
    return h.hexdigest()


def md5_file(path: Path) -> str:
    return _hash_file(path, hashlib.md5())


def blake2b_file(path: Path) -> str:
    return _hash_file(path, hashlib.blake2b(digest_size=16))


HASHERS: dict[str, Hasher] = {
    "md5": md5_file,
    "blake2b": blake2b_file,
}


def get_hasher(name: str) -> Hasher:
    try:
        return HASHERS[name.lower()]
    except KeyError:
        raise ValueError(f"Unknown hash algorithm: {name} (choose from {', '.join(HASHERS)})") from None


def utc_mod_time(path: Path) -> str:
    """Last modified time of `path` in UTC, e.g. 1970-01-01T00:00:01+0000."""
    mtime = os.stat(path).st_mtime
    return datetime.fromtimestamp(mtime, tz=timezone.utc).strftime(TIME_FORMAT)


# ------------------------------
# Traversal
# ------------------------------
def _fail(error: ScanError, on_error: ErrorHandler | None) -> None:
    if on_error is None:
        raise error
    logger.warning(str(error))
    on_error(error)


def _unstorable(text: str) -> str | None:
    """Why `text` cannot be stored in a line-based UTF-8 table, if it cannot."""
    if "\n" in text or "\r" in text:
        return "line break in name"
    try:
        text.encode("utf-8")
    except UnicodeEncodeError:
        return "name is not valid UTF-8"
    return None


def iter_scan(
    scope_dir,
    base_dir,
    file_types: FileTypeFilter | None = None,
    *,
    hasher: Hasher = md5_file,
    mod_time: ModTime = utc_mod_time,
    exclude: Iterable = (),
    on_error: ErrorHandler | None = None,
) -> Iterator[Entry]:
    """
    Yield entries for `scope_dir` and every folder below it.

    Raises ScanError on the first unreadable file or folder unless `on_error`
    is given, in which case the error is handed over and the walk continues.
    """
    scope_dir = Path(scope_dir)
    base_dir = Path(base_dir)
    file_types = file_types or FileTypeFilter()
    excluded = {Path(p) for p in exclude}

    if not scope_dir.is_dir():
        raise ScanError(scope_dir, "not a folder")

    stack = [scope_dir]
    while stack:
        directory = stack.pop()
        reldir = render_reldir(to_relative(directory, base_dir))

        problem = _unstorable(reldir)
        if problem:
            _fail(ScanError(directory, problem), on_error)
            continue

        try:
            with os.scandir(directory) as it:
                children = sorted(it, key=lambda e: e.name)
        except OSError as e:
            _fail(ScanError(directory, e), on_error)
            continue

        marker = Entry(reldir)
        logger.debug(marker.render())
        yield marker

        subdirs: list[Path] = []
        for child in children:
            path = Path(child.path)
            try:
                if child.is_symlink():
                    logger.debug(f"Skipping symlink: {path}")
                    continue
                if child.is_dir(follow_symlinks=False):
                    subdirs.append(path)
                    continue
                if not child.is_file(follow_symlinks=False):
                    logger.debug(f"Skipping special file: {path}")
                    continue
            except OSError as e:
                _fail(ScanError(path, e), on_error)
                continue

            if path in excluded or not file_types.matches(child.name):
                continue

            problem = _unstorable(child.name)
            if problem:
                _fail(ScanError(path, problem), on_error)
                continue

            try:
                entry = Entry(reldir, child.name, mod_time(path), hasher(path))
            except OSError as e:
                _fail(ScanError(path, e), on_error)
                continue

            logger.debug(entry.render())
            yield entry

        # reversed so the lexically first sub-folder is walked next
        stack.extend(reversed(subdirs))


def scan(scope_dir, base_dir, file_types: FileTypeFilter | None = None, **kwargs) -> list[Entry]:
    return list(iter_scan(scope_dir, base_dir, file_types, **kwargs))
