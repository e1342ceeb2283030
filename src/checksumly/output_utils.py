"""
output_utils.py — Rich rendering of update and check results.

Check output keeps the classic diff markers: "<" for a line only in the
hash table, ">" for a line only on disk, and a bare "0" when nothing changed.
"""

from pathlib import Path

from rich.console import Console
from rich.text import Text

from .models import ChangeKind, CheckResult, UpdateReason, UpdateResult

console = Console(highlight=False)

_STYLES = {
    ChangeKind.REMOVED: "red",
    ChangeKind.ADDED: "green",
}


def print_update_result(result: UpdateResult, hash_file: Path, out: Console | None = None):
    out = out or console
    name = Path(hash_file).name

    if result.reason is UpdateReason.NOTHING_TO_UPDATE:
        out.print(f"ℹ️ Nothing to update in {name} for {result.scope}")
    elif result.reason is UpdateReason.CREATED:
        out.print(f"✅ Created {name}: {result.entries} entries under {result.scope}")
    else:
        label = "Forced update" if result.reason is UpdateReason.FORCED else "Updated"
        out.print(f"✅ {label} {name}: {result.entries} entries under {result.scope}")


def print_check_result(result: CheckResult, out: Console | None = None):
    out = out or console

    for error in result.errors:
        out.print(Text(f"⚠️ {error}", style="yellow"))

    if not result.changed:
        out.print("0")
        return

    for change in result.changes:
        out.print(Text(str(change), style=_STYLES[change.kind]))

    added = sum(1 for c in result.changes if c.kind is ChangeKind.ADDED)
    removed = len(result.changes) - added
    out.print(Text(f"\n{removed} removed, {added} added under {result.scope}", style="bold"))
