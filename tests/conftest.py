"""Pytest configuration and fixtures."""

from pathlib import Path

import pytest

from hotreload_sentinel.config import ENC_LOG_DIR_ENV, TMPDIR_ENV, SentinelConfig
from hotreload_sentinel.verdicts import VerdictStore


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch):
    """Keep the developer's sentinel environment out of tests."""
    monkeypatch.delenv(TMPDIR_ENV, raising=False)
    monkeypatch.delenv(ENC_LOG_DIR_ENV, raising=False)


@pytest.fixture
def config(tmp_path: Path) -> SentinelConfig:
    """Sentinel config rooted in a temporary directory."""
    cfg = SentinelConfig.from_env(tmp_path)
    cfg.hot_reload_dir.mkdir(parents=True, exist_ok=True)
    return cfg


@pytest.fixture
def store(config: SentinelConfig) -> VerdictStore:
    """Verdict store backed by the temporary state file."""
    return VerdictStore(config.state_path)
