"""Tests for the command line interface."""

import json
import subprocess
import sys
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from hotreload_sentinel.cli import cli
from hotreload_sentinel.config import SentinelConfig
from hotreload_sentinel.domain import AtomInfo, SentinelState, VerdictEntry
from hotreload_sentinel.verdicts import VerdictStore


@pytest.fixture
def invoke(config: SentinelConfig):
    """Run the CLI against the temporary sentinel directory."""
    runner = CliRunner()

    def _invoke(*args: str):
        return runner.invoke(cli, ["--tmp-dir", str(config.tmp_dir), *args])

    return _invoke


def pending_entry(apply_index: int = 2) -> VerdictEntry:
    return VerdictEntry(
        apply_index=apply_index,
        artifact_pair="MainPage.1.2",
        atoms=[AtomInfo(kind="modify", control_hint="Border", change_summary="Changed `a` → `b`", file="MainPage.cs", line_hint=12)],
    )


class TestStatusCommands:
    """Tests for status, report and diagnose."""

    def test_status_without_watcher(self, invoke):
        """A missing watcher reports IDLE."""
        result = invoke("status")
        assert result.exit_code == 0
        assert result.output.splitlines()[0] == "hr_status: IDLE"
        assert "watcher_alive=False" in result.output

    def test_status_ignores_stale_alive_flag(self, invoke, store: VerdictStore):
        """Liveness comes from the pid file, not the stored flag."""
        store.write(SentinelState(watcher_alive=True, last_log_activity_ts=9e12))
        result = invoke("status")
        assert "hr_status: IDLE" in result.output

    def test_report(self, invoke, store: VerdictStore):
        """report prints the one-line summary."""
        store.write(SentinelState(status="DEGRADED", apply_count=2, heartbeat_ok=True))
        result = invoke("report")
        assert result.exit_code == 0
        assert result.output.strip() == "hr_report: status=DEGRADED hints=No obvious issues found."

    def test_diagnose(self, invoke, store: VerdictStore, tmp_path: Path):
        """diagnose prints a summary, check lines and a JSON payload."""
        store.write(SentinelState(apply_count=4, not_applied_other_tfm_count=1))
        project = tmp_path / "app"
        project.mkdir()
        (project / "App.csproj").write_text("<Project />")

        result = invoke("diagnose", "--project-dir", str(project))
        assert result.exit_code == 0
        assert "hr_diagnose: status=IDLE" in result.output
        assert "apply_count=4" in result.output
        assert "not_applied_other_tfm=1" in result.output

        json_line = next(line for line in result.output.splitlines() if line.startswith("diagnose_json="))
        payload = json.loads(json_line.removeprefix("diagnose_json="))
        checks = {c["id"]: c["status"] for c in payload["checks"]}
        assert checks == {
            "enc_log_dir": "warn",
            "session_log": "warn",
            "project_file": "pass",
            "heartbeat": "warn",
        }

    def test_diagnose_artifact_preview(self, invoke, config: SentinelConfig):
        """The newest artifact pair is previewed."""
        (config.hot_reload_dir / "MainPage.1.1.old.cs").write_text("a\n")
        (config.hot_reload_dir / "MainPage.1.1.new.cs").write_text("b\n")

        result = invoke("diagnose")
        assert "artifact_file=MainPage.1.1.old.cs" in result.output
        assert "artifact_diff_preview=-a | +b" in result.output


class TestVerdictCommands:
    """Tests for pending-atoms, record-verdict and draft-issue."""

    def test_pending_atoms(self, invoke, store: VerdictStore):
        """Pending atoms are printed as compact JSON."""
        store.append_verdict(pending_entry())
        result = invoke("pending-atoms")

        payload = json.loads(result.output.splitlines()[-1])
        assert payload["pending"][0]["atoms"][0]["control_hint"] == "Border"
        assert payload["pending"][0]["atoms"][0]["index"] == 0

    def test_record_verdict(self, invoke, store: VerdictStore):
        """Recorded verdicts are echoed and persisted."""
        store.append_verdict(pending_entry())
        result = invoke("record-verdict", "--apply-index", "2", "--verdicts-json", '{"0": "no"}')

        assert result.exit_code == 0
        assert json.loads(result.output.splitlines()[-1]) == {"ok": True, "apply_index": 2, "verdict": "all_failed"}
        assert store.read().verdicts[0].verdict == "all_failed"

    def test_record_verdict_not_found(self, invoke):
        """An unknown apply index exits non-zero."""
        result = invoke("record-verdict", "--apply-index", "5", "--verdicts-json", '{"0": "yes"}')
        assert result.exit_code == 1
        assert "no verdict entry found for apply_index=5" in result.output

    @pytest.mark.parametrize("payload", ["not json", '{"0": "maybe"}', "[]"])
    def test_record_verdict_invalid_json(self, invoke, payload: str):
        """Invalid verdict JSON exits non-zero."""
        result = invoke("record-verdict", "--apply-index", "1", "--verdicts-json", payload)
        assert result.exit_code == 1
        assert "invalid verdicts" in result.output

    def test_draft_issue(self, invoke, store: VerdictStore):
        """A failed entry produces a bug draft file."""
        entry = pending_entry()
        entry.atom_verdicts = {"0": "no"}
        entry.verdict = "all_failed"
        store.append_verdict(entry)

        result = invoke("draft-issue")
        assert result.exit_code == 0
        path = Path(result.output.splitlines()[-1].removeprefix("draft_issue: written to "))
        assert path.read_text(encoding="utf-8").startswith("# [Bug] Hot Reload change not reflected on Border")


class TestWatchCommands:
    """Tests for watcher lifecycle and follow."""

    def test_watch_start(self, invoke):
        """watch-start reports the spawned pid."""
        with patch("hotreload_sentinel.cli.start_watcher", return_value=(True, 1234)):
            result = invoke("watch-start")
        assert result.output.strip() == "hr_watch_start: started pid=1234"

    def test_watch_start_already_running(self, invoke):
        """An existing watcher is reported instead of spawning another."""
        with patch("hotreload_sentinel.cli.start_watcher", return_value=(False, 99)):
            result = invoke("watch-start")
        assert result.output.strip() == "hr_watch_start: already_running pid=99"

    def test_watch_stop_not_running(self, invoke):
        """Stopping without a watcher is a no-op."""
        result = invoke("watch-stop")
        assert result.exit_code == 0
        assert result.output.strip() == "hr_watch_stop: not_running"

    def test_watch_follow_reports_apply(self, invoke, store: VerdictStore, config: SentinelConfig):
        """A new apply prints hints, the changed file and the pending atoms."""
        sleeps = 0

        def fake_sleep(seconds: float) -> None:
            nonlocal sleeps
            sleeps += 1
            if sleeps == 1:
                (config.hot_reload_dir / "MainPage.1.2.old.cs").write_text("a\n")
                (config.hot_reload_dir / "MainPage.1.2.new.cs").write_text("b\n")
                state = store.read()
                state.apply_count = 2
                state.last_heartbeat_update_count = 2
                state.add_verdict(pending_entry(2))
                store.write(state)
            else:
                raise KeyboardInterrupt

        store.write(SentinelState(apply_count=1))
        with (
            patch("hotreload_sentinel.cli.running_watcher_pid", return_value=4321),
            patch("hotreload_sentinel.cli.time.sleep", side_effect=fake_sleep),
        ):
            result = invoke("watch-follow", "--seconds", "0", "--no-confirm")

        lines = result.output.splitlines()
        assert lines[0].startswith("hr_watch_follow: streaming (interval=2s, duration=unlimited, confirm=False)")
        assert "follow status=IDLE apply_count=1 heartbeat_update_count= selected_pid=" in lines
        assert "follow_hint=Hot Reload apply observed and heartbeat advanced (likely successful)." in lines
        assert "follow_change_file=MainPage.1.2.old.cs" in lines
        assert "follow_change_preview=-a | +b" in lines
        assert "follow_atom[0]=Changed `a` → `b` | control=Border | MainPage.cs:12" in lines
        assert "follow_pending_confirmation=true apply_index=2" in lines
        assert lines[-1] == "hr_watch_follow: interrupted"


class TestEntryPoint:
    """Tests for running the package as a module."""

    def test_module_help(self, config: SentinelConfig):
        """python -m hotreload_sentinel lists the commands."""
        result = subprocess.run(
            [sys.executable, "-m", "hotreload_sentinel", "--tmp-dir", str(config.tmp_dir), "--help"],
            capture_output=True,
            text=True,
            timeout=30,
        )

        assert result.returncode == 0
        for command in ("watch-start", "watch-follow", "record-verdict", "mcp", "heartbeat-serve"):
            assert command in result.stdout
        assert "_watch-run" not in result.stdout
