"""Runtime diagnostics and the reference heartbeat responder."""

from hotreload_sentinel.diagnostics.checks import DiagnosticCheck, check_project_dir, run_checks
from hotreload_sentinel.diagnostics.heartbeat_app import (
    UpdateCounter,
    create_heartbeat_app,
    remove_port_file,
    write_port_file,
)

__all__ = [
    "DiagnosticCheck",
    "UpdateCounter",
    "check_project_dir",
    "create_heartbeat_app",
    "remove_port_file",
    "run_checks",
    "write_port_file",
]
