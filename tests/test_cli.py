"""Tests for CLI commands and exit codes."""

import json
import os
import subprocess
import sys
from types import SimpleNamespace

import pytest

SRC_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "src")


def run_cli(*args, extra_env=None, cwd=None):
    """Run tfdiff CLI as a subprocess and return (returncode, stdout, stderr)."""
    env = {k: v for k, v in os.environ.items() if not k.startswith("TFDIFF_")}
    env.update(extra_env or {})
    env["PYTHONPATH"] = os.pathsep.join(p for p in (SRC_DIR, env.get("PYTHONPATH")) if p)
    result = subprocess.run(
        [sys.executable, "-m", "tfdiff.cli", *args],
        capture_output=True, text=True, timeout=30, env=env, cwd=cwd,
    )
    return result.returncode, result.stdout, result.stderr


def _write_plan(tmp_path, resource_changes, name="plan.json"):
    path = tmp_path / name
    path.write_text(json.dumps({"terraform_version": "1.6.0", "resource_changes": resource_changes}))
    return str(path)


UPDATE_CHANGE = {
    "address": "aws_instance.web",
    "change": {"actions": ["update"], "before": {"count": 1}, "after": {"count": 2}},
}
NOOP_CHANGE = {
    "address": "aws_instance.web",
    "change": {"actions": ["no-op"], "before": {"count": 1}, "after": {"count": 1}},
}


class TestPlan:
    # Tests that a plan with changes prints the report and exits 2.
    def test_plan_with_changes_exits_2(self, tmp_path):
        rc, out, err = run_cli("plan", _write_plan(tmp_path, [UPDATE_CHANGE]))
        assert rc == 2
        assert "# Plan Details for plan.json" in out
        assert "~ count = 1 -> 2" in out

    # Tests that a plan without changes exits 0.
    def test_plan_no_changes_exits_0(self, tmp_path):
        rc, out, err = run_cli("plan", _write_plan(tmp_path, [NOOP_CHANGE]), "--title", "run-1")
        assert rc == 0
        assert "# Plan Details for run-1" in out
        assert "1 resources unchanged" in out

    # Tests that a missing plan file exits 1 with an error.
    def test_plan_missing_file_exits_1(self, tmp_path):
        rc, out, err = run_cli("plan", str(tmp_path / "nope.json"))
        assert rc == 1
        assert "Error: Cannot read plan file" in err

    # Tests the log fallback when the plan JSON is unusable.
    def test_plan_log_fallback(self, tmp_path):
        plan = tmp_path / "plan.json"
        plan.write_text("")
        log = tmp_path / "plan.log"
        log.write_text("Error: Invalid provider configuration")
        rc, out, err = run_cli("plan", str(plan), "--log-file", str(log), "--status", "errored")
        assert rc == 0
        assert "## Plan Logs" in out
        assert "Invalid provider configuration" in out

    # Tests that --out saves the report.
    def test_plan_out(self, tmp_path):
        out_file = tmp_path / "report.md"
        rc, out, err = run_cli("plan", _write_plan(tmp_path, [UPDATE_CHANGE]), "--out", str(out_file))
        assert rc == 2
        assert "~ count = 1 -> 2" in out_file.read_text()

    # Tests that a plan nested hundreds of levels deep renders collapsed.
    def test_plan_deeply_nested_value(self, tmp_path):
        nested = "{\"k\":" * 600 + "1" + "}" * 600
        path = tmp_path / "plan.json"
        path.write_text(
            '{"resource_changes":[{"address":"null_resource.x","change":{"actions":["create"],'
            '"before":null,"after":' + nested + "}}]}"
        )
        rc, out, err = run_cli("plan", str(path))
        assert rc == 2, err
        assert "+ k = {...1 keys}\n" in out

    # Tests that a plan too deep to parse is reported as an error.
    def test_plan_too_deep_to_parse_exits_1(self, tmp_path):
        path = tmp_path / "plan.json"
        path.write_text("[" * 100000 + "]" * 100000)
        rc, out, err = run_cli("plan", str(path))
        assert rc == 1
        assert "Error: Plan document is nested too deeply to parse" in err
        assert "Traceback" not in err


class TestSummary:
    # Tests the one-line tally.
    def test_summary(self, tmp_path):
        rc, out, err = run_cli("summary", _write_plan(tmp_path, [UPDATE_CHANGE, NOOP_CHANGE]))
        assert rc == 2
        assert out.strip() == "Plan: 0 to add, 1 to change, 0 to destroy, 0 to replace, 1 unchanged."


class TestState:
    # Tests that a missing state file exits 1.
    def test_state_missing_exits_1(self, tmp_path):
        rc, out, err = run_cli("state", "--state-file", str(tmp_path / "nope.tfstate"))
        assert rc == 1
        assert "State not found" in err

    # Tests rendering a local state file.
    def test_state_report(self, tmp_path):
        path = tmp_path / "terraform.tfstate"
        path.write_text(json.dumps({"serial": 4, "outputs": {"name": {"value": "x", "type": "string"}}}))
        rc, out, err = run_cli("state", "--state-file", str(path), "--title", "dev")
        assert rc == 0
        assert "# Current State for dev" in out
        assert "- **name** (type: string): `x`" in out

    # Tests that a state path that cannot be read exits 1 with an error.
    def test_state_unreadable_exits_1(self, tmp_path):
        rc, out, err = run_cli("state", "--state-file", str(tmp_path))
        assert rc == 1
        assert "Error: Cannot read state file" in err
        assert "Traceback" not in err

    # Tests that TFDIFF_STATE_FILE is honoured when --state-file is omitted.
    def test_state_file_from_env(self, tmp_path):
        path = tmp_path / "prod.tfstate"
        path.write_text(json.dumps({"serial": 9, "outputs": {}}))
        rc, out, err = run_cli("state", extra_env={"TFDIFF_STATE_FILE": str(path)}, cwd=str(tmp_path))
        assert rc == 0, err
        assert "**Serial:** 9" in out
        assert f"# Current State for {path}" in out

    # Tests that terraform.tfstate in the working directory is the default.
    def test_state_default_file(self, tmp_path):
        (tmp_path / "terraform.tfstate").write_text(json.dumps({"serial": 2}))
        rc, out, err = run_cli("state", cwd=str(tmp_path))
        assert rc == 0, err
        assert "# Current State for terraform.tfstate" in out


class TestApplyLog:
    # Tests the apply log report with the resource tallies.
    def test_apply_log(self, tmp_path):
        log = tmp_path / "apply.log"
        log.write_text("aws_instance.web: Creating...\nApply complete! Resources: 1 added, 0 changed, 0 destroyed.\n")
        rc, out, err = run_cli("apply-log", str(log), "--status", "finished")
        assert rc == 0
        assert out.startswith("# Apply Details for apply.log\n\n**Apply Status:** finished\n")
        assert "**Resource Additions:** 1\n" in out
        assert "## Apply Logs\n\n```\naws_instance.web: Creating...\n" in out

    # Tests that a missing apply log exits 1.
    def test_apply_log_missing_exits_1(self, tmp_path):
        rc, out, err = run_cli("apply-log", str(tmp_path / "nope.log"))
        assert rc == 1
        assert "Error: Cannot read apply log" in err


class TestCommandFunctions:
    # Tests that cmd_state reports azure configuration errors.
    def test_cmd_state_config_error(self, capsys, monkeypatch):
        from tfdiff.cli import cmd_state
        monkeypatch.delenv("TFDIFF_STATE_STORAGE_ACCOUNT_NAME", raising=False)
        monkeypatch.delenv("TFDIFF_STATE_CONTAINER_NAME", raising=False)
        monkeypatch.delenv("TFDIFF_STATE_KEY", raising=False)
        args = SimpleNamespace(
            backend="azure", storage_account_name=None, container_name=None,
            key=None, title=None, full=False, out=None,
        )
        with pytest.raises(SystemExit) as exc_info:
            cmd_state(args)
        assert exc_info.value.code == 1
        assert "Azure state backend requires" in capsys.readouterr().err

    # Tests that cmd_state reports state read failures instead of crashing.
    def test_cmd_state_read_error(self, capsys, tmp_path):
        from tfdiff.cli import cmd_state
        args = SimpleNamespace(backend="local", state_file=str(tmp_path), title=None, full=False, out=None)
        with pytest.raises(SystemExit) as exc_info:
            cmd_state(args)
        assert exc_info.value.code == 1
        assert "Error: Cannot read state file" in capsys.readouterr().err

    # Tests that cmd_plan exits 2 for a plan with changes.
    def test_cmd_plan_exit_code(self, tmp_path, capsys):
        from tfdiff.cli import cmd_plan
        args = SimpleNamespace(
            plan_file=_write_plan(tmp_path, [UPDATE_CHANGE]),
            title=None, log_file=None, status=None, out=None,
        )
        with pytest.raises(SystemExit) as exc_info:
            cmd_plan(args)
        assert exc_info.value.code == 2
        assert "## Summary: 0 to add, 1 to change, 0 to destroy" in capsys.readouterr().out
