"""
license_utils.py — Version banner printed by `checksumly -v`.
"""

import importlib.resources

from rich.console import Console
from rich.text import Text

from checksumly import __author__, __version__

console = Console(highlight=False)

FALLBACK_LICENSE = "MIT License"


def license_name() -> str:
    """First line of the bundled LICENSE.txt, e.g. "MIT License"."""
    try:
        text = importlib.resources.files("checksumly").joinpath("LICENSE.txt").read_text(encoding="utf-8")
    except (OSError, ModuleNotFoundError):
        return FALLBACK_LICENSE
    first = text.strip().splitlines()[:1]
    return first[0].strip() if first else FALLBACK_LICENSE


def version_banner() -> Text:
    text = Text()
    text.append(f"checksumly {__version__} (c) {__author__}\n", style="bold cyan")
    text.append(license_name(), style="white")
    return text


def print_version(out: Console | None = None):
    (out or console).print(version_banner())
