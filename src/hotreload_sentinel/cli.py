"""Hot reload sentinel CLI entry point."""

import asyncio
import contextlib
import json
import logging
import signal
import socket
import sys
import time
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler

from hotreload_sentinel.config import TMPDIR_ENV, SentinelConfig
from hotreload_sentinel.daemon import (
    remove_pid,
    running_watcher_pid,
    sentinel_command,
    start_watcher,
    stop_watcher,
    write_pid,
)
from hotreload_sentinel.domain import AtomVerdict, CheckStatus, SentinelState, VerdictEntry
from hotreload_sentinel.monitor import compute_status
from hotreload_sentinel.parsing import diff_preview, find_latest
from hotreload_sentinel.report import format_report, pending_payload
from hotreload_sentinel.verdicts import VerdictStore, validate_atom_verdicts

console = Console()
# Logs go to stderr so stdout stays clean for machine-readable output and MCP frames
err_console = Console(stderr=True)

CHECK_ICONS = {CheckStatus.PASS: "✅", CheckStatus.WARN: "⚠️", CheckStatus.FAIL: "❌"}
MAX_LISTED_FILES = 5


def setup_logging(verbose: bool = False) -> None:
    """Configure logging with rich handler."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, console=err_console)],
    )


def _fmt(value: object) -> str:
    return "" if value is None else str(value)


def _config(ctx: click.Context) -> SentinelConfig:
    return ctx.obj["config"]


def _store(ctx: click.Context) -> VerdictStore:
    return VerdictStore(_config(ctx).state_path)


def _live_state(config: SentinelConfig, store: VerdictStore) -> SentinelState:
    """Read the state with liveness taken from the pid file rather than the stored flag."""
    state = store.read()
    state.watcher_alive = bool(running_watcher_pid(config))
    return state


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose logging")
@click.option(
    "--tmp-dir",
    type=click.Path(file_okay=False, path_type=Path),
    envvar=TMPDIR_ENV,
    help="Directory holding the state, pid and port files",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, tmp_dir: Path | None) -> None:
    """Hot reload sentinel - evidence-based hot reload diagnostics."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["config"] = SentinelConfig.from_env(tmp_dir)
    setup_logging(verbose)


@cli.command("watch-start")
@click.pass_context
def watch_start(ctx: click.Context) -> None:
    """Start the background watch loop."""
    started, pid = start_watcher(_config(ctx))
    state = "started" if started else "already_running"
    click.echo(f"hr_watch_start: {state} pid={pid}")


@cli.command("watch-stop")
@click.pass_context
def watch_stop(ctx: click.Context) -> None:
    """Stop the background watch loop."""
    pid = stop_watcher(_config(ctx))
    click.echo(f"hr_watch_stop: stopped pid={pid}" if pid else "hr_watch_stop: not_running")


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show current sentinel status."""
    state = _live_state(_config(ctx), _store(ctx))
    click.echo(f"hr_status: {compute_status(state).value}")
    click.echo(
        f"watcher_alive={state.watcher_alive} last_heartbeat={_fmt(state.last_heartbeat_ts)} "
        f"last_log_activity={_fmt(state.last_log_activity_ts)} "
        f"selected_endpoint={_fmt(state.selected_endpoint)}"
    )


@cli.command()
@click.option(
    "--project-dir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Project directory to look for .csproj files",
)
@click.pass_context
def diagnose(ctx: click.Context, project_dir: Path | None) -> None:
    """Validate the environment and summarize hot reload evidence."""
    from hotreload_sentinel.diagnostics import run_checks

    config = _config(ctx)
    state = _live_state(config, _store(ctx))

    click.echo(f"hr_diagnose: status={compute_status(state).value}")
    click.echo(
        f"summary save_count={state.save_count} apply_count={state.apply_count} "
        f"result_success={state.result_success_count} "
        f"result_failure={state.result_failure_count} "
        f"not_applied={state.not_applied_count} "
        f"not_applied_other_tfm={state.not_applied_other_tfm_count} "
        f"enc1008={state.enc1008_count} app_heartbeat_recent={state.heartbeat_ok} "
        f"heartbeat_update_count={_fmt(state.last_heartbeat_update_count)}"
    )

    checks = run_checks(config, state, project_dir)
    click.echo()
    for check in checks:
        click.echo(f"  {CHECK_ICONS[check.status]} [{check.id}] {check.name}: {check.message}")
        for path in check.affected_files[:MAX_LISTED_FILES]:
            click.echo(f"       → {path}")
        if len(check.affected_files) > MAX_LISTED_FILES:
            click.echo(f"       ... and {len(check.affected_files) - MAX_LISTED_FILES} more")

    passed = sum(1 for c in checks if c.status == CheckStatus.PASS)
    warned = sum(1 for c in checks if c.status == CheckStatus.WARN)
    failed = sum(1 for c in checks if c.status == CheckStatus.FAIL)
    click.echo()
    click.echo(f"checks: {passed} passed, {warned} warnings, {failed} failed")
    payload = {
        "checks": [c.to_dict() for c in checks],
        "summary": f"{passed}/{len(checks)} checks passed",
    }
    click.echo(f"diagnose_json={json.dumps(payload, separators=(',', ':'), ensure_ascii=False)}")

    artifact = find_latest(config.hot_reload_dir)
    if artifact is not None:
        click.echo(f"artifact_file={artifact.source_file}")
        preview = diff_preview(artifact.old_path, artifact.new_path)
        if preview:
            click.echo(f"artifact_diff_preview={preview}")


@cli.command()
@click.pass_context
def report(ctx: click.Context) -> None:
    """Summarize the state file with actionable hints."""
    click.echo(format_report(_store(ctx).read()))


def _prompt_atom_verdicts(entry: VerdictEntry) -> dict[str, str]:
    choices = click.Choice([v.value for v in AtomVerdict])
    verdicts: dict[str, str] = {}
    for i, atom in enumerate(entry.atoms):
        verdicts[str(i)] = click.prompt(
            f"Did '{atom.change_summary}' on {atom.control_hint} show up in the app?",
            type=choices,
            default=AtomVerdict.YES.value,
            err=True,
        )
    return verdicts


@cli.command("watch-follow")
@click.option("--seconds", default=60, type=click.IntRange(min=0), help="Follow duration (0 for unlimited)")
@click.option("--interval", default=2, type=click.IntRange(min=1), help="Polling interval seconds")
@click.option("--no-confirm", is_flag=True, help="Skip interactive confirmation prompts")
@click.pass_context
def watch_follow(ctx: click.Context, seconds: int, interval: int, no_confirm: bool) -> None:
    """Stream status changes and apply events in the foreground.

    The background watcher owns the state file; this command only reports what
    it records, and asks the developer to confirm new change atoms when run
    interactively.
    """
    config = _config(ctx)
    store = _store(ctx)

    if not running_watcher_pid(config):
        started, pid = start_watcher(config)
        click.echo(f"hr_watch_start: {'started' if started else 'already_running'} pid={pid}")

    confirm = not no_confirm and sys.stdin.isatty()
    deadline = time.monotonic() + seconds if seconds > 0 else None
    duration = f"{seconds}s" if deadline is not None else "unlimited"
    click.echo(
        f"hr_watch_follow: streaming (interval={interval}s, duration={duration}, confirm={confirm})"
    )

    latest = find_latest(config.hot_reload_dir)
    prev_artifact_mtime = latest.mtime if latest else None
    prev_apply: int | None = None
    prev_status = ""

    try:
        while deadline is None or time.monotonic() < deadline:
            state = _live_state(config, store)
            current = compute_status(state).value
            apply_count = state.apply_count

            if current != prev_status or apply_count != prev_apply:
                click.echo(
                    f"follow status={current} apply_count={apply_count} "
                    f"heartbeat_update_count={_fmt(state.last_heartbeat_update_count)} "
                    f"selected_pid={_fmt(state.selected_pid)}"
                )

            if prev_apply is not None and apply_count > prev_apply:
                hb_count = state.last_heartbeat_update_count
                if hb_count is not None and hb_count >= apply_count:
                    click.echo("follow_hint=Hot Reload apply observed and heartbeat advanced (likely successful).")
                else:
                    click.echo(
                        "follow_hint=Hot Reload apply observed but heartbeat did not advance "
                        "(possible failure/stale process)."
                    )

                artifact = find_latest(config.hot_reload_dir, prev_artifact_mtime)
                if artifact is not None:
                    prev_artifact_mtime = artifact.mtime
                    click.echo(f"follow_change_file={artifact.source_file}")
                    click.echo(f"follow_change_preview={diff_preview(artifact.old_path, artifact.new_path)}")

                entry = state.find_verdict(apply_count)
                if entry is not None and entry.is_pending:
                    click.echo(f"follow_atoms_count={len(entry.atoms)}")
                    for i, atom in enumerate(entry.atoms):
                        click.echo(
                            f"follow_atom[{i}]={atom.change_summary} | control={atom.control_hint} "
                            f"| {atom.file}:{atom.line_hint}"
                        )
                    click.echo(f"follow_pending_confirmation=true apply_index={apply_count}")

                    if confirm:
                        result = store.record_verdict(apply_count, _prompt_atom_verdicts(entry))
                        click.echo(f"follow_verdict={result.verdict} apply_index={apply_count}")

            prev_apply = apply_count
            prev_status = current
            time.sleep(interval)
    except KeyboardInterrupt:
        click.echo("hr_watch_follow: interrupted")
        return

    click.echo("hr_watch_follow: completed")


@cli.command("pending-atoms")
@click.pass_context
def pending_atoms(ctx: click.Context) -> None:
    """Print unconfirmed change atoms as JSON."""
    payload = pending_payload(_store(ctx).get_pending())
    click.echo(json.dumps(payload, separators=(",", ":"), ensure_ascii=False))


@cli.command("record-verdict")
@click.option("--apply-index", required=True, type=int, help="Apply index to record verdicts for")
@click.option("--verdicts-json", required=True, help='JSON object of atom index to verdict, e.g. {"0": "yes"}')
@click.pass_context
def record_verdict(ctx: click.Context, apply_index: int, verdicts_json: str) -> None:
    """Record per-atom verdicts for an apply event."""
    try:
        verdicts = validate_atom_verdicts(json.loads(verdicts_json))
    except ValueError as e:
        click.echo(f"error: invalid verdicts: {e}", err=True)
        raise SystemExit(1) from e

    result = _store(ctx).record_verdict(apply_index, verdicts)
    if not result.found:
        click.echo(f"error: no verdict entry found for apply_index={apply_index}", err=True)
        raise SystemExit(1)
    click.echo(json.dumps({"ok": True, "apply_index": apply_index, "verdict": result.verdict}))


@cli.command("draft-issue")
@click.option("--include-successful", is_flag=True, help="Append a session summary of successful applies")
@click.pass_context
def draft_issue(ctx: click.Context, include_successful: bool) -> None:
    """Write a GitHub issue draft from recorded verdicts."""
    from hotreload_sentinel.issues import build_drafts

    config = _config(ctx)
    body = build_drafts(_store(ctx).read(), include_successful=include_successful)

    out_path = config.tmp_dir / f"hotreload-issue-draft-{int(time.time())}.md"
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(body, encoding="utf-8")
    click.echo(f"draft_issue: written to {out_path}")


@cli.command()
@click.pass_context
def mcp(ctx: click.Context) -> None:
    """Run as an MCP stdio server."""
    from hotreload_sentinel.mcp import CommandRunner, McpServer, open_stdio

    config = _config(ctx)
    server = McpServer(_store(ctx), CommandRunner(sentinel_command(config), config.command_timeout))

    async def serve() -> None:
        transport = await open_stdio()
        await server.run(transport)

    with contextlib.suppress(KeyboardInterrupt):
        asyncio.run(serve())


def _free_port(host: str) -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind((host, 0))
        return sock.getsockname()[1]


@cli.command("heartbeat-serve")
@click.option("--host", default="127.0.0.1", help="Host to bind to")
@click.option("--port", default=0, help="Port to bind to (0 picks a free port)")
@click.pass_context
def heartbeat_serve(ctx: click.Context, host: str, port: int) -> None:
    """Serve a reference heartbeat endpoint and advertise it via a port file."""
    import uvicorn

    from hotreload_sentinel.diagnostics import create_heartbeat_app, remove_port_file, write_port_file

    config = _config(ctx)
    port = port or _free_port(host)
    port_file = write_port_file(config.tmp_dir, port)
    console.print(f"[bold green]Serving heartbeat on {host}:{port}[/bold green] ({port_file})")

    try:
        uvicorn.run(create_heartbeat_app(), host=host, port=port, log_level="warning")
    finally:
        remove_port_file(port_file)


@cli.command("_watch-run", hidden=True)
@click.pass_context
def watch_run(ctx: click.Context) -> None:
    """Internal: background watcher daemon."""
    from hotreload_sentinel.monitor import WatchLoop

    config = _config(ctx)
    loop = WatchLoop(config, _store(ctx))

    async def run() -> None:
        stop_event = asyncio.Event()
        running = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            with contextlib.suppress(NotImplementedError):
                running.add_signal_handler(sig, stop_event.set)
        await loop.run(stop_event)

    write_pid(config.pid_path)
    try:
        asyncio.run(run())
    finally:
        remove_pid(config.pid_path)


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
