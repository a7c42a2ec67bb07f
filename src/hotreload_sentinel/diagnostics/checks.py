"""Runtime diagnostic checks reported by ``diagnose``.

Checks cover the sentinel's own evidence plus a shallow project file lookup.
IDE settings inspection and auto-fixing are not done here.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

from hotreload_sentinel.config import ENC_LOG_DIR_ENV, SentinelConfig
from hotreload_sentinel.domain import CheckStatus, SentinelState


@dataclass
class DiagnosticCheck:
    """A single diagnostic check result."""

    id: str
    name: str
    status: CheckStatus
    message: str = ""
    auto_fixable: bool = False
    fix_command: str | None = None
    affected_files: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "status": self.status.value,
            "message": self.message,
            "auto_fixable": self.auto_fixable,
            "fix_command": self.fix_command,
            "affected_files": self.affected_files,
        }


def check_enc_log_dir() -> DiagnosticCheck:
    value = os.environ.get(ENC_LOG_DIR_ENV)
    if value:
        return DiagnosticCheck(
            id="enc_log_dir",
            name="ENC Log Directory",
            status=CheckStatus.PASS,
            message=f"{ENC_LOG_DIR_ENV}={value}",
        )
    return DiagnosticCheck(
        id="enc_log_dir",
        name="ENC Log Directory",
        status=CheckStatus.WARN,
        message=f"{ENC_LOG_DIR_ENV} is not set; Session.log will not be written.",
        fix_command=f"export {ENC_LOG_DIR_ENV}=/tmp/HotReloadLog",
    )


def check_session_log(config: SentinelConfig) -> DiagnosticCheck:
    path = config.session_log_path
    if path.exists():
        return DiagnosticCheck(
            id="session_log",
            name="Session Log",
            status=CheckStatus.PASS,
            message=f"Found {path}",
        )
    return DiagnosticCheck(
        id="session_log",
        name="Session Log",
        status=CheckStatus.WARN,
        message=f"{path} not found. Start a debug session with Hot Reload enabled.",
    )


def check_heartbeat(state: SentinelState) -> DiagnosticCheck:
    if state.heartbeat_ok:
        return DiagnosticCheck(
            id="heartbeat",
            name="App Heartbeat Endpoint",
            status=CheckStatus.PASS,
            message=f"Heartbeat reachable at {state.selected_endpoint} (pid={state.selected_pid})",
        )
    return DiagnosticCheck(
        id="heartbeat",
        name="App Heartbeat Endpoint",
        status=CheckStatus.WARN,
        message="No heartbeat endpoint reachable. App may not be running or the diagnostics endpoint is not installed.",
    )


def check_project_dir(project_dir: str | Path) -> DiagnosticCheck:
    """Look for .NET project files in ``project_dir`` and its immediate children."""
    root = Path(project_dir)
    found = sorted({*root.glob("*.csproj"), *root.glob("*/*.csproj")}) if root.is_dir() else []
    if found:
        return DiagnosticCheck(
            id="project_file",
            name="Project File",
            status=CheckStatus.PASS,
            message=f"Found {len(found)} project file(s) in {root}",
            affected_files=[str(p) for p in found],
        )
    return DiagnosticCheck(
        id="project_file",
        name="Project File",
        status=CheckStatus.WARN,
        message=f"No .csproj found in {root}; pass --project-dir to point at the app project.",
    )


def run_checks(
    config: SentinelConfig, state: SentinelState, project_dir: str | Path | None = None
) -> list[DiagnosticCheck]:
    """Run every check in display order; the project check only when a directory is given."""
    checks = [check_enc_log_dir(), check_session_log(config)]
    if project_dir is not None:
        checks.append(check_project_dir(project_dir))
    checks.append(check_heartbeat(state))
    return checks
