"""Plan loading and report generation: read a JSON plan, render every change."""

from __future__ import annotations

import json
import os
import re
from dataclasses import dataclass, field
from typing import Any

import yaml

from tfdiff.actions import NOOP, READ, classify_actions, summary_counts
from tfdiff.exceptions import PlanFormatError
from tfdiff.renderer import ChangeRecord, render_change
from tfdiff.value import from_python

MAX_LOG_LENGTH = 50000
PENDING_STATUSES = ("pending", "queued", "unreachable")


@dataclass
class Plan:
    format_version: str = ""
    terraform_version: str = ""
    applyable: bool = False
    complete: bool = False
    errored: bool = False
    resource_changes: list[ChangeRecord] = field(default_factory=list)
    resource_drift: list[ChangeRecord] = field(default_factory=list)
    output_changes: dict[str, ChangeRecord] = field(default_factory=dict)

    @property
    def has_changes(self) -> bool:
        adds, updates, destroys, replaces, _ = summary_counts(self.resource_changes)
        if adds or updates or destroys or replaces:
            return True
        return any(c.verb not in (NOOP, READ) for c in self.output_changes.values())


def load_plan(path: str) -> dict[str, Any]:
    """Read a plan document from a .json, .yaml or .yml file."""
    ext = os.path.splitext(path)[1].lower()
    try:
        with open(path, "r") as f:
            if ext in (".yaml", ".yml"):
                document = yaml.safe_load(f)
            else:
                document = json.load(f)
    except OSError as e:
        raise PlanFormatError(f"Cannot read plan file: {e.strerror or e}", path=path) from e
    except (ValueError, yaml.YAMLError) as e:
        raise PlanFormatError(f"Plan file is not valid JSON/YAML: {e}", path=path) from e
    except RecursionError as e:
        raise PlanFormatError("Plan document is nested too deeply to parse", path=path) from e

    if not isinstance(document, dict):
        raise PlanFormatError("Plan document must be an object", path=path)
    return document


def _change_record(address: str, entry: Any) -> ChangeRecord:
    """Build a ChangeRecord from a resource_changes / output_changes entry."""
    entry = entry if isinstance(entry, dict) else {}
    change = entry.get("change")
    change = change if isinstance(change, dict) else {}
    actions = change.get("actions")
    actions = tuple(str(a) for a in actions) if isinstance(actions, list) else ()
    reason = entry.get("action_reason")
    return ChangeRecord(
        address=address,
        actions=actions,
        before=from_python(change.get("before")),
        after=from_python(change.get("after")),
        reason=str(reason) if reason else None,
    )


def _resource_records(entries: Any) -> list[ChangeRecord]:
    if not isinstance(entries, list):
        return []
    return [
        _change_record(str(e.get("address", "")), e)
        for e in entries if isinstance(e, dict)
    ]


def parse_plan(document: dict[str, Any]) -> Plan:
    """Extract change records and metadata from a decoded plan document."""
    outputs = document.get("output_changes")
    outputs = outputs if isinstance(outputs, dict) else {}
    return Plan(
        format_version=str(document.get("format_version") or ""),
        terraform_version=str(document.get("terraform_version") or ""),
        applyable=bool(document.get("applyable")),
        complete=bool(document.get("complete")),
        errored=bool(document.get("errored")),
        resource_changes=_resource_records(document.get("resource_changes")),
        resource_drift=_resource_records(document.get("resource_drift")),
        output_changes={str(name): _change_record(str(name), oc) for name, oc in outputs.items()},
    )


def build_plan_report(plan: Plan, title: str) -> str:
    """Build the full Markdown report for a parsed plan."""
    parts = [f"# Plan Details for {title}\n\n"]
    if plan.terraform_version:
        parts.append(f"**Terraform Version:** {plan.terraform_version}\n")
    parts.append(f"**Applyable:** {'true' if plan.applyable else 'false'}\n")
    if plan.errored:
        parts.append("**Errored:** true\n")

    adds, updates, destroys, replaces, noops = summary_counts(plan.resource_changes)
    summary = f"\n## Summary: {adds} to add, {updates} to change, {destroys} to destroy"
    if replaces > 0:
        summary += f", {replaces} to replace"
    parts.append(summary + "\n")

    if plan.resource_drift:
        parts.append(f"\n## Resource Drift ({len(plan.resource_drift)} detected)\n\n")
        parts.append("Changes detected outside of Terraform:\n\n")
        for record in plan.resource_drift:
            parts.append(render_change(record))

    if plan.resource_changes:
        # No-op and read changes are only counted, not shown
        actual = [r for r in plan.resource_changes if r.verb not in (NOOP, READ)]
        if actual:
            parts.append(f"\n## Resource Changes ({len(actual)})\n\n")
            for record in actual:
                parts.append(render_change(record))
        if noops > 0:
            parts.append(f"\n*({noops} resources unchanged, not shown)*\n")
    else:
        parts.append("\n## Resource Changes\n\nNo resource changes planned.\n")

    if plan.output_changes:
        parts.append(f"\n## Output Changes ({len(plan.output_changes)})\n\n")
        for name in sorted(plan.output_changes):
            verb = classify_actions(plan.output_changes[name].actions)
            parts.append(f"- **{name}** ({verb})\n")

    return "".join(parts)


_APPLY_COMPLETE = re.compile(
    r"Apply complete! Resources: (?:(\d+) imported, )?(\d+) added, (\d+) changed, (\d+) destroyed"
)


def apply_counts(log_text: str) -> tuple[int, int, int, int] | None:
    """(additions, changes, destructions, imports) from the last "Apply complete!" line."""
    matches = _APPLY_COMPLETE.findall(log_text)
    if not matches:
        return None
    imported, added, changed, destroyed = matches[-1]
    return int(added), int(changed), int(destroyed), int(imported or 0)


def build_log_report(title: str, log_text: str, status: str | None = None,
                     kind: str = "plan") -> str:
    """Report for a run whose JSON is unavailable: status plus the log tail.

    ``kind`` is "plan" or "apply". Only the last 50000 characters of the log
    are kept since errors are usually at the end.
    """
    label = kind.capitalize()
    parts = [f"# {label} Details for {title}\n\n"]
    if status:
        parts.append(f"**{label} Status:** {status}\n")

    if kind == "apply":
        counts = apply_counts(log_text) if log_text else None
        if counts is not None:
            added, changed, destroyed, imported = counts
            parts.append(f"**Resource Additions:** {added}\n")
            parts.append(f"**Resource Changes:** {changed}\n")
            parts.append(f"**Resource Destructions:** {destroyed}\n")
            parts.append(f"**Resource Imports:** {imported}\n")

    if status in PENDING_STATUSES:
        if kind == "apply":
            parts.append(f"\n> **Note:** Apply logs are not yet available because the apply status is `{status}`. ")
            parts.append("Re-run after the apply has started or completed to see the full logs.\n")
        else:
            parts.append(f"\n> **Note:** Detailed resource changes are not yet available because the plan status is `{status}`. ")
            parts.append("Re-run after the plan has finished to see the full execution plan.\n")
        return "".join(parts)

    if log_text:
        truncated = False
        if len(log_text) > MAX_LOG_LENGTH:
            log_text = log_text[-MAX_LOG_LENGTH:]
            truncated = True
        parts.append(f"\n## {label} Logs\n\n")
        if truncated:
            parts.append("*(Log output truncated -- showing last portion which typically contains errors)*\n\n")
        parts.append("```\n")
        parts.append(log_text)
        if not log_text.endswith("\n"):
            parts.append("\n")
        parts.append("```\n")
    elif kind == "apply":
        parts.append("\n## Apply Logs\n\nNo log output available.\n")
    elif status == "errored":
        parts.append("\n> **Note:** The plan errored but no log output is available.\n")

    return "".join(parts)
