"""Shared pytest fixtures for buildrelay tests.

Factory functions live in ``_helpers.py``; this module re-exports them as
pytest fixtures so tests can receive them via dependency injection.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from buildrelay.core.config import ENV_KEYS, ConfigManager

from _helpers import (  # noqa: F401 - re-export for fixture use
    FakeCIClient,
    building,
    finished,
    make_config_manager,
    make_job,
    make_sample_parameters,
    pending,
    resolved,
)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's Jenkins/Discord environment out of config tests."""
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture()
def config_manager(tmp_path: Path) -> ConfigManager:
    """A real ConfigManager backed by default config (no YAML/env file)."""
    return make_config_manager(tmp_path)


@pytest.fixture()
def frontend_client() -> FakeCIClient:
    """Parameterless ``build-frontend`` job: queue item 1 resolves to build 7, which succeeds."""
    return FakeCIClient(
        jobs={"build-frontend": make_job("build-frontend")},
        trigger_ids={"build-frontend": 1},
        queue={1: [pending(1), resolved(1, 7)]},
        builds={("build-frontend", 7): [building("build-frontend", 7), finished("build-frontend", 7)]},
    )
