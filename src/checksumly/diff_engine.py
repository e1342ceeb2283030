"""
diff_engine.py — Line-level comparison of stored and freshly scanned entries.

The diff is LCS based: common head and tail lines are trimmed, then lines
occurring exactly once on both sides are matched through their longest
increasing subsequence and the gaps between those anchors are diffed
recursively (patience style). Table lines are almost always unique, so in
practice this is the exact LCS at a fraction of the memory a DP table needs.

A modified file therefore shows up as a removed line followed by an added
line; there is no separate "modified" tag.
"""

from __future__ import annotations

import csv
import logging
from bisect import bisect_left
from collections import Counter
from typing import Iterator, Sequence

from .models import ChangeKind, ChangeRecord, ChangeReport, Entry, Scope

logger = logging.getLogger(__name__)

EQUAL = "="
DELETE = "-"
INSERT = "+"


# -------------------------------------------------
# LCS diff
# -------------------------------------------------

def _longest_increasing(pairs: list[tuple[int, int]]) -> list[tuple[int, int]]:
    """Longest run of `pairs` (sorted by first index) increasing in the second."""
    tails: list[int] = []
    tail_values: list[int] = []
    prev = [-1] * len(pairs)

    for k, (_, j) in enumerate(pairs):
        pos = bisect_left(tail_values, j)
        if pos > 0:
            prev[k] = tails[pos - 1]
        if pos == len(tails):
            tails.append(k)
            tail_values.append(j)
        else:
            tails[pos] = k
            tail_values[pos] = j

    result = []
    k = tails[-1] if tails else -1
    while k != -1:
        result.append(pairs[k])
        k = prev[k]
    return result[::-1]


def _unique_anchors(a: Sequence[str], a_lo: int, a_hi: int, b: Sequence[str], b_lo: int, b_hi: int):
    a_counts = Counter(a[a_lo:a_hi])
    b_counts = Counter(b[b_lo:b_hi])
    b_index = {
        b[j]: j for j in range(b_lo, b_hi) if b_counts[b[j]] == 1 and a_counts[b[j]] == 1
    }
    pairs = [(i, b_index[a[i]]) for i in range(a_lo, a_hi) if a[i] in b_index]
    return _longest_increasing(pairs)


def _diff_range(a, a_lo, a_hi, b, b_lo, b_hi) -> Iterator[tuple[str, str]]:
    while a_lo < a_hi and b_lo < b_hi and a[a_lo] == b[b_lo]:
        yield EQUAL, a[a_lo]
        a_lo += 1
        b_lo += 1

    tail = 0
    while a_lo < a_hi - tail and b_lo < b_hi - tail and a[a_hi - 1 - tail] == b[b_hi - 1 - tail]:
        tail += 1
    a_hi -= tail
    b_hi -= tail

    anchors = _unique_anchors(a, a_lo, a_hi, b, b_lo, b_hi) if a_lo < a_hi and b_lo < b_hi else []

    if not anchors:
        for i in range(a_lo, a_hi):
            yield DELETE, a[i]
        for j in range(b_lo, b_hi):
            yield INSERT, b[j]
    else:
        for i, j in anchors:
            yield from _diff_range(a, a_lo, i, b, b_lo, j)
            yield EQUAL, a[i]
            a_lo, b_lo = i + 1, j + 1
        yield from _diff_range(a, a_lo, a_hi, b, b_lo, b_hi)

    for k in range(tail):
        yield EQUAL, a[a_hi + k]


def diff_lines(stored: Sequence[str], fresh: Sequence[str]) -> list[tuple[str, str]]:
    """Edit script turning `stored` into `fresh`: (op, line) with op in "=", "-", "+"."""
    return list(_diff_range(stored, 0, len(stored), fresh, 0, len(fresh)))


# -------------------------------------------------
# Scoped report
# -------------------------------------------------

def _parse_or_none(line: str) -> Entry | None:
    try:
        return Entry.parse(line)
    except (ValueError, csv.Error):
        return None


def diff(stored: Sequence[str], fresh: Sequence[str], scope: Scope) -> ChangeReport:
    """
    Compare stored and fresh rendered lines, keeping only changes inside `scope`.
    """
    stored = list(stored)
    fresh = list(fresh)

    if stored == fresh:
        return ChangeReport(unchanged=True)

    changes: list[ChangeRecord] = []
    for op, line in diff_lines(stored, fresh):
        if op == EQUAL:
            continue

        entry = _parse_or_none(line)
        if entry is None or not scope.contains(entry.reldir):
            logger.debug(f"Ignoring change outside scope {scope.reldir}: {line}")
            continue

        kind = ChangeKind.REMOVED if op == DELETE else ChangeKind.ADDED
        changes.append(ChangeRecord(kind, line, entry))

    return ChangeReport(unchanged=False, changes=tuple(changes))
