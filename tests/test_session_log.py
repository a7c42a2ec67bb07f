"""Tests for incremental Session.log parsing."""

from pathlib import Path

from hotreload_sentinel.parsing.session_log import LogMarkers, SessionLogParser, classify_line

SAMPLE_LOG = [
    "Found 1 potentially changed document(s)",
    "Solution update 1.1 status: Ready",
    "Document changed, added, or deleted: 'MainPage.xaml'",
    "Document changed, added, or deleted: 'MainPage.xaml.cs'",
    "XAML Hot Reload applied changes",
    "error ENC1008: Changing a source file during a debug session is not supported",
    "Solution update 1.2 status: Blocked",
    "The connection has been closed by the remote host",
    "Found 2 potentially changed document(s)",
    "Solution update 1.3 status: ManagedModuleUpdate",
]


def write_log(path: Path, lines: list[str]) -> None:
    path.write_text("".join(f"{line}\n" for line in lines), encoding="utf-8")


def append_log(path: Path, lines: list[str]) -> None:
    with path.open("a", encoding="utf-8") as fh:
        fh.writelines(f"{line}\n" for line in lines)


def totals(*scans: LogMarkers) -> dict[str, int]:
    fields = [name for name in LogMarkers.__dataclass_fields__ if name.endswith("_count")]
    return {name: sum(getattr(scan, name) for scan in scans) for name in fields}


class TestClassifyLine:
    """Tests for single-line classification."""

    def test_apply_ready_counts_apply_and_success(self):
        """A Ready update is both an apply and a successful result."""
        markers = LogMarkers()
        classify_line("Solution update 1.1 status: Ready", markers)
        assert markers.apply_count == 1
        assert markers.result_success_count == 1
        assert markers.last_solution_update == "Solution update 1.1 status: Ready"
        assert markers.has_activity

    def test_managed_module_update_is_apply_without_success(self):
        """ManagedModuleUpdate counts as an apply only."""
        markers = LogMarkers()
        classify_line("Solution update 2.4 status: ManagedModuleUpdate", markers)
        assert markers.apply_count == 1
        assert markers.result_success_count == 0

    def test_not_applied_general(self):
        """A plain 'not built' line counts against the general class."""
        markers = LogMarkers()
        classify_line("Changes not applied because the project was not built", markers)
        assert markers.not_applied_count == 1
        assert markers.not_applied_other_tfm_count == 0

    def test_not_applied_other_tfm_is_not_double_counted(self):
        """The other target framework line increments exactly one counter."""
        markers = LogMarkers()
        classify_line(
            "Changes not applied: project not built for the other target framework net8.0-ios",
            markers,
        )
        assert markers.not_applied_other_tfm_count == 1
        assert markers.not_applied_count == 0

    def test_xaml_code_behind_is_not_a_xaml_change(self):
        """A .xaml.cs document counts only as a code-behind change."""
        markers = LogMarkers()
        classify_line("Document changed, added, or deleted: 'Views/Main.XAML.cs'", markers)
        assert markers.xaml_code_behind_change_count == 1
        assert markers.xaml_change_count == 0

    def test_unrelated_line_is_activity_only(self):
        """Unmatched lines still mark activity."""
        markers = LogMarkers()
        classify_line("Debugger attached", markers)
        assert markers.has_activity
        assert totals(markers) == totals(LogMarkers())


class TestSessionLogParser:
    """Tests for SessionLogParser."""

    def test_single_scan_counts(self, tmp_path: Path):
        """Save plus Ready apply yields save=1, apply=1, success=1."""
        log = tmp_path / "Session.log"
        write_log(log, ["Found 1 potentially changed document(s)", "Solution update 1.1 status: Ready"])

        markers = SessionLogParser().parse(log)
        assert markers.save_count == 1
        assert markers.apply_count == 1
        assert markers.result_success_count == 1

    def test_full_sample_counts(self, tmp_path: Path):
        """Every counter picks up its lines from a mixed log."""
        log = tmp_path / "Session.log"
        write_log(log, SAMPLE_LOG)

        markers = SessionLogParser().parse(log)
        assert markers.save_count == 2
        assert markers.apply_count == 2
        assert markers.result_success_count == 1
        assert markers.result_failure_count == 1
        assert markers.enc1008_count == 1
        assert markers.connection_lost_count == 1
        assert markers.xaml_apply_count == 1
        assert markers.xaml_code_behind_change_count == 1
        assert markers.xaml_change_count == 1
        assert markers.last_solution_update == "Solution update 1.3 status: ManagedModuleUpdate"

    def test_incremental_matches_whole_file(self, tmp_path: Path):
        """Two partial scans add up to one full scan."""
        incremental_log = tmp_path / "a.log"
        whole_log = tmp_path / "b.log"

        parser = SessionLogParser()
        write_log(incremental_log, SAMPLE_LOG[:4])
        first = parser.parse(incremental_log)
        append_log(incremental_log, SAMPLE_LOG[4:])
        second = parser.parse(incremental_log)

        write_log(whole_log, SAMPLE_LOG)
        whole = SessionLogParser().parse(whole_log)

        assert totals(first, second) == totals(whole)

    def test_second_scan_without_new_lines_is_empty(self, tmp_path: Path):
        """Nothing appended means no activity."""
        log = tmp_path / "Session.log"
        write_log(log, SAMPLE_LOG)
        parser = SessionLogParser()
        parser.parse(log)

        markers = parser.parse(log)
        assert not markers.has_activity
        assert parser.offset == log.stat().st_size

    def test_missing_file(self, tmp_path: Path):
        """A missing log yields empty markers and keeps the offset."""
        parser = SessionLogParser(offset=42)
        markers = parser.parse(tmp_path / "missing.log")
        assert not markers.has_activity
        assert parser.offset == 42

    def test_seek_to_end_skips_history(self, tmp_path: Path):
        """Lines written before seek_to_end are ignored."""
        log = tmp_path / "Session.log"
        write_log(log, SAMPLE_LOG)
        parser = SessionLogParser()
        parser.seek_to_end(log)

        append_log(log, ["Found 3 potentially changed document(s)"])
        markers = parser.parse(log)
        assert markers.save_count == 1
        assert markers.apply_count == 0

    def test_truncated_log_rescans_from_start(self, tmp_path: Path):
        """A log smaller than the offset is read from the beginning."""
        log = tmp_path / "Session.log"
        write_log(log, SAMPLE_LOG)
        parser = SessionLogParser()
        parser.parse(log)

        write_log(log, ["Solution update 9.1 status: Ready"])
        markers = parser.parse(log)
        assert markers.apply_count == 1

    def test_crlf_and_invalid_utf8(self, tmp_path: Path):
        """CRLF endings and undecodable bytes do not break classification."""
        log = tmp_path / "Session.log"
        log.write_bytes(b"\xff\xfe junk\r\nSolution update 1.1 status: Ready\r\n")

        markers = SessionLogParser().parse(log)
        assert markers.apply_count == 1
        assert markers.last_solution_update == "Solution update 1.1 status: Ready"
