#!/usr/bin/env python3
"""CLI entry point for the Terraform plan/state renderer."""

from __future__ import annotations

import argparse
import os
import sys
from typing import NoReturn

from tfdiff.actions import summary_counts
from tfdiff.exceptions import TfdiffError, StateNotFoundError
from tfdiff.plan import load_plan, parse_plan, build_plan_report, build_log_report
from tfdiff.state import DEFAULT_STATE_FILE, get_source, build_state_report


def add_state_args(parser: argparse.ArgumentParser) -> None:
    """Add state source arguments (azurerm backend names for Azure)."""
    parser.add_argument("--backend", choices=["local", "azure"],
                        help="State backend type (default: local)")
    parser.add_argument("--state-file",
                        help=f"Path to local state file (default: TFDIFF_STATE_FILE or {DEFAULT_STATE_FILE})")
    parser.add_argument("--storage-account-name", help="Azure storage account holding the state")
    parser.add_argument("--container-name", help="Azure blob container holding the state")
    parser.add_argument("--key", help="Blob name of the state within the container")
    # Auth
    parser.add_argument("--access-key", help="Storage account access key (default: ARM_ACCESS_KEY)")
    parser.add_argument("--client-id", help="Service principal client ID (default: ARM_CLIENT_ID)")
    parser.add_argument("--client-secret", help="Service principal client secret (default: ARM_CLIENT_SECRET)")
    parser.add_argument("--tenant-id", help="Azure AD tenant ID (default: ARM_TENANT_ID)")


def _fail(message: str) -> NoReturn:
    print(f"Error: {message}", file=sys.stderr)
    sys.exit(1)


def _write_report(report: str, out: str | None) -> None:
    print(report, end="")
    if out:
        with open(out, "w") as f:
            f.write(report)
        print(f"Report saved to {out}")


def cmd_plan(args: argparse.Namespace) -> None:
    """Render a JSON plan as a Markdown report."""
    title = args.title or os.path.basename(args.plan_file)
    try:
        plan = parse_plan(load_plan(args.plan_file))
    except TfdiffError as e:
        if not args.log_file:
            _fail(e.message)
        # Fall back to the plan log when the JSON plan is unusable
        try:
            with open(args.log_file, "r") as f:
                log_text = f.read()
        except OSError as log_err:
            _fail(f"{e.message}; log file unreadable: {log_err.strerror or log_err}")
        _write_report(build_log_report(title, log_text, args.status), args.out)
        return

    _write_report(build_plan_report(plan, title), args.out)

    # Exit with code 2 if there are changes (useful for CI)
    if plan.has_changes:
        sys.exit(2)


def cmd_apply_log(args: argparse.Namespace) -> None:
    """Render an apply log: status, resource tallies and the log tail."""
    title = args.title or os.path.basename(args.log_file)
    try:
        with open(args.log_file, "r") as f:
            log_text = f.read()
    except OSError as e:
        _fail(f"Cannot read apply log: {e.strerror or e}")
    _write_report(build_log_report(title, log_text, args.status, kind="apply"), args.out)


def cmd_summary(args: argparse.Namespace) -> None:
    """Print the one-line change tally for a plan."""
    try:
        plan = parse_plan(load_plan(args.plan_file))
    except TfdiffError as e:
        _fail(e.message)

    adds, updates, destroys, replaces, noops = summary_counts(plan.resource_changes)
    print(f"Plan: {adds} to add, {updates} to change, {destroys} to destroy, "
          f"{replaces} to replace, {noops} unchanged.")
    if plan.has_changes:
        sys.exit(2)


def cmd_state(args: argparse.Namespace) -> None:
    """Render the current state: metadata, resources and outputs."""
    try:
        source = get_source(args)
        state = source.read()
        if state is None:
            raise StateNotFoundError("State not found. The workspace may not have been applied yet.")
    except ValueError as e:
        _fail(str(e))
    except TfdiffError as e:
        _fail(e.message)

    title = args.title or getattr(source, "state_file", None) or getattr(source, "location", "state")
    _write_report(build_state_report(state, title, include_full=args.full), args.out)


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Render Terraform plans and state as compact Markdown diffs",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # plan
    p_plan = subparsers.add_parser("plan", help="Render a JSON plan (terraform show -json)")
    p_plan.add_argument("plan_file", help="Path to the JSON or YAML plan document")
    p_plan.add_argument("--title", help="Report title (default: plan file name)")
    p_plan.add_argument("--log-file", help="Plan log to show when the JSON plan is unusable")
    p_plan.add_argument("--status", help="Plan status to show alongside the log")
    p_plan.add_argument("--out", help="Save report to a file")

    # summary
    p_summary = subparsers.add_parser("summary", help="Print change counts for a plan")
    p_summary.add_argument("plan_file", help="Path to the JSON or YAML plan document")

    # apply-log
    p_apply = subparsers.add_parser("apply-log", help="Render an apply log")
    p_apply.add_argument("log_file", help="Path to the apply log")
    p_apply.add_argument("--title", help="Report title (default: log file name)")
    p_apply.add_argument("--status", help="Apply status to show alongside the log")
    p_apply.add_argument("--out", help="Save report to a file")

    # state
    p_state = subparsers.add_parser("state", help="Render the current state")
    add_state_args(p_state)
    p_state.add_argument("--title", help="Report title (default: state location)")
    p_state.add_argument("--full", action="store_true",
                         help="Include the full JSON state")
    p_state.add_argument("--out", help="Save report to a file")

    args = parser.parse_args()

    commands = {
        "plan": cmd_plan,
        "summary": cmd_summary,
        "apply-log": cmd_apply_log,
        "state": cmd_state,
    }
    commands[args.command](args)


if __name__ == "__main__":
    main()
