"""Issue draft generation from verdicts."""

from hotreload_sentinel.issues.draft import (
    build_drafts,
    build_issue_draft,
    build_session_summary,
)

__all__ = ["build_drafts", "build_issue_draft", "build_session_summary"]
