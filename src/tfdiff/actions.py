"""Classify Terraform action lists into display verbs and tallies."""

from __future__ import annotations

from typing import Any, Iterable, Sequence

# Primitive actions
CREATE = "create"
UPDATE = "update"
DELETE = "delete"
READ = "read"
NOOP = "no-op"

# Composite verbs
REPLACE_DELETE_FIRST = "replace (delete, create)"
REPLACE_CREATE_FIRST = "replace (create, delete)"
REPLACE_VERBS = (REPLACE_DELETE_FIRST, REPLACE_CREATE_FIRST)

PAIRS = {
    (DELETE, CREATE): REPLACE_DELETE_FIRST,
    (CREATE, DELETE): REPLACE_CREATE_FIRST,
}

SYMBOLS = {
    CREATE: "+",
    DELETE: "-",
    UPDATE: "~",
    REPLACE_DELETE_FIRST: "-/+",
    REPLACE_CREATE_FIRST: "-/+",
    READ: "<=",
}

ACTION_REASONS = {
    "replace_because_tainted": "resource is tainted, so must be replaced",
    "replace_because_cannot_update": "provider requires replacement to apply changes",
    "replace_by_request": "replacement was requested",
    "delete_because_no_resource_config": "no resource configuration found",
    "delete_because_no_module": "module instance no longer declared",
    "delete_because_wrong_repetition": "instance key not compatible with repetition mode",
    "delete_because_count_index": "count index out of range",
    "delete_because_each_key": "for_each key not in current configuration",
    "read_because_config_unknown": "configuration values unknown until apply",
    "read_because_dependency_pending": "depends on resource with pending changes",
}


def classify_actions(actions: Sequence[str]) -> str:
    """Reduce an ordered action list to one human-readable verb.

    ["update"] -> "update"
    ["delete", "create"] -> "replace (delete, create)"
    ["create", "delete"] -> "replace (create, delete)"
    anything else -> the tags joined with ", "
    """
    actions = [str(a) for a in actions]
    if len(actions) == 1:
        return actions[0]
    if len(actions) == 2:
        verb = PAIRS.get((actions[0], actions[1]))
        if verb:
            return verb
    return ", ".join(actions)


def action_symbol(verb: str) -> str:
    """Symbol prefix for a classified verb; a single space when unknown."""
    return SYMBOLS.get(verb, " ")


def summary_counts(records: Iterable[Any]) -> tuple[int, int, int, int, int]:
    """Tally (adds, updates, destroys, replaces, noops) across change records.

    "read" counts as a noop. Verbs outside the table are not counted.
    """
    adds = updates = destroys = replaces = noops = 0
    for record in records:
        verb = classify_actions(record.actions)
        if verb == CREATE:
            adds += 1
        elif verb == UPDATE:
            updates += 1
        elif verb == DELETE:
            destroys += 1
        elif verb in REPLACE_VERBS:
            replaces += 1
        elif verb in (NOOP, READ):
            noops += 1
    return adds, updates, destroys, replaces, noops


def format_action_reason(reason: str) -> str:
    """Convert a machine-readable action reason to a sentence; unknown codes pass through."""
    return ACTION_REASONS.get(reason, reason)
