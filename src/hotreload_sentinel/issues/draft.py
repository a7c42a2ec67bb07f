"""Markdown issue drafts built from recorded verdicts."""

from hotreload_sentinel.domain import AtomInfo, SentinelState, VerdictEntry

FAILED_VERDICTS = ("all_failed", "mixed")


def _atoms_with(entry: VerdictEntry, answers: tuple[str, ...]) -> list[AtomInfo]:
    return [
        atom
        for i, atom in enumerate(entry.atoms)
        if entry.atom_verdicts.get(str(i)) in answers
    ]


def _describe(atom: AtomInfo) -> str:
    return f"{atom.change_summary} on `{atom.control_hint}` ({atom.file}:{atom.line_hint})"


def build_title(entry: VerdictEntry) -> str:
    """Pick an issue title from the first failing atom."""
    failing = _atoms_with(entry, ("no",))
    if not failing:
        return "Hot Reload visual sync issue"

    first = failing[0]
    summary = first.change_summary.lower()
    if "shadow" in summary:
        return f"Shadow style not applied to {first.control_hint} control (Hot Reload applied successfully)"
    if "class(" in summary:
        return f"Style class not applied to {first.control_hint} control (Hot Reload applied successfully)"
    return f"Hot Reload change not reflected on {first.control_hint} (ENC apply succeeded)"


def build_issue_draft(entry: VerdictEntry, state: SentinelState) -> str:
    """Render a bug report for one apply event with failed atoms."""
    working = _atoms_with(entry, ("yes",))
    failing = _atoms_with(entry, ("no", "partial"))
    framework = "MauiReactor (MVU)" if "Reactor" in entry.artifact_pair else "XAML/MVVM"

    lines = [
        f"# [Bug] {build_title(entry)}",
        "",
        "## Environment",
        f"- UI Framework: {framework}",
        "- Tool: .NET MAUI Hot Reload",
        "",
        "## Summary",
        "Hot Reload applied the code change (ENC status Ready) but the change was not "
        "reflected in the running app.",
        "",
    ]

    if working:
        lines.append("## What Worked ✅")
        lines.extend(f"- {_describe(a)}" for a in working)
        lines.append("")
    if failing:
        lines.append("## What Didn't Work ❌")
        lines.extend(f"- {_describe(a)}" for a in failing)
        lines.append("")

        first = failing[0]
        lines += [
            "## Steps to Reproduce",
            f"1. Create a component with a `{first.control_hint}` control",
            f"2. Apply the change: {first.change_summary}",
            "3. Save the file to trigger Hot Reload",
            "4. Observe: change not reflected despite Hot Reload reporting success",
            "",
        ]

    heartbeat_advanced = "Yes" if state.last_heartbeat_update_count is not None else "Unknown"
    lines += [
        "## Hot Reload Evidence",
        f"- ENC Apply Status: `{state.last_solution_update or 'Unknown'}`",
        f"- Artifact: `{entry.artifact_pair}.old.cs` / `{entry.artifact_pair}.new.cs`",
        f"- Heartbeat advanced: {heartbeat_advanced}",
        "",
        "## Additional Context",
        f"- Verdict: `{entry.verdict}`",
        f"- Apply index: {entry.apply_index}",
    ]
    for i, atom in enumerate(entry.atoms):
        answer = entry.atom_verdicts.get(str(i), "unknown")
        icon = {"yes": "✅", "no": "❌"}.get(answer, "⚠️")
        outcome = "worked" if answer == "yes" else "did not work"
        lines.append(f"- {icon} {atom.change_summary} on `{atom.control_hint}` ({outcome})")

    return "\n".join(lines) + "\n"


def build_session_summary(entries: list[VerdictEntry], state: SentinelState) -> str:
    """Render a positive data point when no apply failed."""
    confirmed = [e for e in entries if e.verdict == "all_good"]
    lines = [
        "# [Hot Reload] Session Summary",
        "",
        "## Summary",
        "All confirmed hot reload changes during this session were applied successfully.",
        "",
        "## Hot Reload Metrics",
        f"- Apply count: {state.apply_count}",
        f"- Result success count: {state.result_success_count}",
        f"- Confirmed applies: {len(confirmed)}",
    ]
    if state.last_solution_update:
        lines.append(f"- Last solution update: {state.last_solution_update}")
    for entry in confirmed:
        lines.append(f"- Apply {entry.apply_index}: {entry.artifact_pair} ({len(entry.atoms)} atoms)")
    return "\n".join(lines) + "\n"


def build_drafts(state: SentinelState, include_successful: bool = False) -> str:
    """Drafts for every failed entry, or a session summary when none failed."""
    failed = [e for e in state.verdicts if e.verdict in FAILED_VERDICTS]
    if not failed:
        return build_session_summary(state.verdicts, state)

    body = "\n\n---\n\n".join(build_issue_draft(e, state) for e in failed)
    if include_successful:
        body += "\n\n---\n\n" + build_session_summary(state.verdicts, state)
    return body
