"""Diff two mapping values key by key to produce a list of changed lines."""

from __future__ import annotations

from dataclasses import dataclass

from tfdiff.formatter import format_value
from tfdiff.value import Value, Object, canonical

# Line symbols
ADDED = "+"
REMOVED = "-"
CHANGED = "~"
UNCHANGED = " "

INDENT = "  "


@dataclass(frozen=True)
class DiffLine:
    symbol: str
    key: str
    text: str
    depth: int = 0

    def render(self) -> str:
        return f"{self.symbol} {INDENT * self.depth}{self.key} = {self.text}"


def diff(before: Object, after: Object, depth: int = 0) -> list[DiffLine]:
    """Compare the top-level keys of two objects.

    Keys are visited in sorted order. Nested values are not diffed further;
    both sides are rendered whole through format_value at ``depth + 1``.
    Two values are equal when their canonical encodings are identical.

    Returns lines for added, removed and changed keys only.
    """
    lines = []
    for key in sorted(set(before.fields) | set(after.fields)):
        if key not in before.fields:
            lines.append(DiffLine(ADDED, key, format_value(after.fields[key], depth + 1), depth))
        elif key not in after.fields:
            lines.append(DiffLine(REMOVED, key, format_value(before.fields[key], depth + 1), depth))
        else:
            old_val = before.fields[key]
            new_val = after.fields[key]
            if not values_equal(old_val, new_val):
                text = f"{format_value(old_val, depth + 1)} -> {format_value(new_val, depth + 1)}"
                lines.append(DiffLine(CHANGED, key, text, depth))
    return lines


def map_values(mapping: Object, symbol: str, depth: int = 0) -> list[DiffLine]:
    """Render every key of one object with a fixed symbol (whole create/delete)."""
    return [
        DiffLine(symbol, key, format_value(mapping.fields[key], depth + 1), depth)
        for key in sorted(mapping.fields)
    ]


def values_equal(a: Value, b: Value) -> bool:
    """Deep equality over the canonical encoded form."""
    return canonical(a) == canonical(b)
