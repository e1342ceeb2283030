# tests/helpers.py
import os
from pathlib import Path

import pytest

from checksumly.config import ChecksumConfig


def content_hasher(path: Path) -> str:
    """Fake hash: 'h' + file content, so a file holding '1' hashes to 'h1'."""
    return "h" + Path(path).read_text(encoding="utf-8")


def content_mod_time(path: Path) -> str:
    """Fake modification time: 't' + file content."""
    return "t" + Path(path).read_text(encoding="utf-8")


FAKES = {"hasher": content_hasher, "mod_time": content_mod_time}


def make_config(work_dir: Path, folder=None, **kwargs) -> ChecksumConfig:
    kwargs.setdefault("base_folder", ".")
    return ChecksumConfig.from_paths(folder, work_dir=work_dir, **kwargs)


def write_files(root: Path, files: dict) -> None:
    for rel, content in files.items():
        p = root / rel
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(content, encoding="utf-8")


def table_body(path: Path) -> list[str]:
    return path.read_text(encoding="utf-8").splitlines()[3:]


def write_undecodable_name(folder: Path) -> Path:
    """Create a file whose name is not valid UTF-8; skip where the filesystem refuses."""
    raw = os.path.join(os.fsencode(folder), b"bad\xff.txt")
    try:
        with open(raw, "wb") as f:
            f.write(b"x")
    except OSError:
        pytest.skip("filesystem rejects non-UTF-8 names")
    return Path(os.fsdecode(raw))
