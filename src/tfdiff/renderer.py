"""Render one change record as a Markdown block with an attribute diff."""

from __future__ import annotations

from dataclasses import dataclass

from tfdiff.actions import (
    CREATE, DELETE, UPDATE, REPLACE_VERBS,
    classify_actions, action_symbol, format_action_reason,
)
from tfdiff.differ import ADDED, REMOVED, diff, map_values
from tfdiff.value import Value, Object, NULL

MAX_DIFF_LENGTH = 4000
TRUNCATION_MARKER = "\n... (diff truncated, too many changes to display)\n"


@dataclass(frozen=True)
class ChangeRecord:
    """One resource or output change: before/after snapshots plus actions."""

    address: str
    actions: tuple[str, ...] = ()
    before: Value = NULL
    after: Value = NULL
    reason: str | None = None

    @property
    def verb(self) -> str:
        return classify_actions(self.actions)


def build_attribute_diff(before: Value, after: Value, verb: str) -> str:
    """Compare before/after values and produce a compact diff body.

    create shows every key of ``after``, delete every key of ``before``,
    update and both replace forms show only the keys that differ. Anything
    else, or a side that is not an object, yields an empty body.
    """
    lines = []
    if verb == CREATE:
        if isinstance(after, Object):
            lines = map_values(after, ADDED)
    elif verb == DELETE:
        if isinstance(before, Object):
            lines = map_values(before, REMOVED)
    elif verb == UPDATE or verb in REPLACE_VERBS:
        if isinstance(before, Object) and isinstance(after, Object):
            lines = diff(before, after)

    result = "".join(line.render() + "\n" for line in lines)

    # Truncate very large diffs to keep output reasonable
    if len(result) > MAX_DIFF_LENGTH:
        result = result[:MAX_DIFF_LENGTH] + TRUNCATION_MARKER
    return result


def render_change(record: ChangeRecord) -> str:
    """Render a change record: header, optional reason, fenced diff body."""
    verb = record.verb
    parts = [f"### {action_symbol(verb)} {record.address} ({verb})\n"]

    if record.reason:
        parts.append(f"  *Reason: {format_action_reason(record.reason)}*\n")

    body = build_attribute_diff(record.before, record.after, verb)
    if body:
        parts.append("\n```diff\n")
        parts.append(body)
        parts.append("```\n\n")
    else:
        parts.append("\n")
    return "".join(parts)
