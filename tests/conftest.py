from __future__ import annotations

from pathlib import Path

import pytest

from tests._fixtures.repo_builder import RepoBuilder

# Settings that would otherwise leak from a developer shell into option resolution.
_AMBIENT_ENV = (
    "OPENAI_API_KEY",
    "OPENAI_BASE_URL",
    "GOOGLE_API_KEY",
    "DEPFIX_AI_PROVIDER",
    "DEPFIX_AI_MODEL",
)


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _AMBIENT_ENV:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def repo_builder(tmp_path: Path) -> RepoBuilder:
    """A throwaway project tree under tmp_path."""
    return RepoBuilder(tmp_path)
