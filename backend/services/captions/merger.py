"""Line-by-line merge of two subtitle renderings into one bilingual file."""

from __future__ import annotations

from collections.abc import Sequence


def merge(lines_a: Sequence[str], lines_b: Sequence[str]) -> list[str]:
    """Interleave two subtitle files that share the same cue structure.

    Walks both sequences in step. Equal lines (cue numbers, time codes, blank
    separators) are emitted once. An empty line on one side means the other
    side has an extra line there, e.g. a wrapped caption, so only that side
    advances. Two different non-empty lines are both emitted.

    The walk stops as soon as either side runs out; leftover lines of the other
    side are dropped. One line of look-ahead, no backtracking.
    """
    merged: list[str] = []
    i = j = 0
    while i < len(lines_a) and j < len(lines_b):
        a, b = lines_a[i], lines_b[j]
        if a == b:
            merged.append(a)
            i += 1
            j += 1
        elif a == "":
            merged.append(b)
            j += 1
        elif b == "":
            merged.append(a)
            i += 1
        else:
            merged.extend((a, b))
            i += 1
            j += 1
    return merged
