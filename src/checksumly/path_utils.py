"""
path_utils.py — Path normalization and hash table field escaping.

Relative directories are always written with a leading "./" and posix
separators, so a table produced on one platform reads the same on another.
Fields follow RFC-4180 quoting; "%" is doubled so a rendered line can pass
through printf-style formatting unchanged.

Examples:
    to_relative(Path("/data/photos/2020"), Path("/data"))  -> "photos/2020"
    render_reldir("photos/2020")                            -> "./photos/2020"
    escape_field('say "hi", 100%')                          -> '"say ""hi"", 100%%"'
"""

from __future__ import annotations

import csv
import os
from pathlib import Path
from typing import Iterable

from .errors import PathError

FIELD_SEPARATOR = ","
QUOTE = '"'
ROOT_RELDIR = "./"


# -------------------------------------------------
# Absolute / relative paths
# -------------------------------------------------

def to_absolute(path, anchor=None, *, strict: bool = True) -> Path:
    """Absolute, symlink-free form of `path`, relative paths taken from `anchor`."""
    candidate = Path(os.path.expanduser(os.fspath(path)))
    if not candidate.is_absolute():
        candidate = Path(anchor or os.getcwd()) / candidate

    try:
        return candidate.resolve(strict=strict)
    except (OSError, RuntimeError) as e:
        raise PathError(path, f"Cannot resolve path: {path} ({e})") from e


def to_relative(absolute_path, base_dir) -> str:
    """Posix path of `absolute_path` below `base_dir`; "." for the base itself."""
    try:
        rel = Path(absolute_path).relative_to(Path(base_dir))
    except ValueError as e:
        raise PathError(absolute_path, f"Path is outside base folder {base_dir}: {absolute_path}") from e

    if ".." in rel.parts:
        raise PathError(absolute_path, f"Path escapes base folder {base_dir}: {absolute_path}")

    return rel.as_posix() or "."


def display_path(path, anchor) -> str:
    """Path as shown in the table header: relative to `anchor` when possible."""
    try:
        return Path(os.path.relpath(path, anchor)).as_posix()
    except ValueError:
        # different drive on Windows
        return Path(path).as_posix()


def render_reldir(relative: str) -> str:
    if relative in ("", ".", ROOT_RELDIR):
        return ROOT_RELDIR
    return f"./{relative.strip('/')}"


def reldir_segments(reldir: str) -> tuple[str, ...]:
    """Split a rendered relative directory into path segments ("./" -> ())."""
    rest = reldir[2:] if reldir.startswith("./") else reldir
    return tuple(part for part in rest.split("/") if part and part != ".")


def is_within_scope(reldir: str, scope_reldir: str) -> bool:
    """True if `reldir` is `scope_reldir` or one of its descendants.

    Compared on whole segments: "./Folder2" is not inside "./Folder".
    """
    segments = reldir_segments(reldir)
    scope = reldir_segments(scope_reldir)
    return segments[: len(scope)] == scope


# -------------------------------------------------
# Field escaping
# -------------------------------------------------

def escape_field(raw) -> str:
    text = "" if raw is None else str(raw)
    if FIELD_SEPARATOR in text or QUOTE in text:
        text = QUOTE + text.replace(QUOTE, QUOTE * 2) + QUOTE
    return text.replace("%", "%%")


def unescape_field(text: str) -> str:
    text = text.replace("%%", "%")
    if len(text) >= 2 and text.startswith(QUOTE) and text.endswith(QUOTE):
        text = text[1:-1].replace(QUOTE * 2, QUOTE)
    return text


def render_record(fields: Iterable) -> str:
    return FIELD_SEPARATOR.join(escape_field(f) for f in fields)


def split_record(line: str) -> list[str]:
    """Split one table line into unescaped fields.

    Raises csv.Error on malformed quoting.
    """
    reader = csv.reader([line], delimiter=FIELD_SEPARATOR, quotechar=QUOTE, strict=True)
    fields = next(reader, [])
    return [f.replace("%%", "%") for f in fields]
