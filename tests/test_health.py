"""Tests for HealthChecker."""

from __future__ import annotations

from pathlib import Path

import pytest

from buildrelay.core.config import ConfigManager
from buildrelay.core.exceptions import RemoteError
from buildrelay.core.health import HealthChecker, HealthCheckResult

from _helpers import FakeCIClient


def _config(tmp_path: Path, yaml_text: str) -> ConfigManager:
    yaml_file = tmp_path / "config.yaml"
    yaml_file.write_text(yaml_text)
    mgr = ConfigManager(project_root=tmp_path, env_path=tmp_path / ".env", config_path=yaml_file)
    mgr.load()
    return mgr


CONFIGURED = """
jenkins:
  url: https://jenkins.test
  username: bot
  api_token: secret
discord:
  token: d-token
projects:
  frontend: build-frontend
"""


class _FailingClient(FakeCIClient):
    async def server_info(self) -> dict:
        raise RemoteError("GET /api/json failed with HTTP 401", status_code=401)


def test_health_check_result() -> None:
    r = HealthCheckResult(name="x", ok=True, message="ok")
    assert r.name == "x"
    assert r.ok is True
    assert r.suggestion == ""


@pytest.mark.asyncio
async def test_check_jenkins_missing_settings(config_manager: ConfigManager) -> None:
    client = FakeCIClient()
    checker = HealthChecker(config=config_manager, client_factory=lambda: client)
    result = await checker.check_jenkins()
    assert result.ok is False
    assert "JENKINS_URL" in result.message
    assert "JENKINS_API_TOKEN" in result.message
    assert result.suggestion != ""
    assert client.calls == []


@pytest.mark.asyncio
async def test_check_jenkins_connected(tmp_path: Path) -> None:
    client = FakeCIClient()
    checker = HealthChecker(config=_config(tmp_path, CONFIGURED), client_factory=lambda: client)
    result = await checker.check_jenkins()
    assert result.ok is True
    assert result.message == "Connected to https://jenkins.test (mode: NORMAL)"
    assert client.closed is True


@pytest.mark.asyncio
async def test_check_jenkins_remote_failure(tmp_path: Path) -> None:
    client = _FailingClient()
    checker = HealthChecker(config=_config(tmp_path, CONFIGURED), client_factory=lambda: client)
    result = await checker.check_jenkins()
    assert result.ok is False
    assert "401" in result.message
    assert client.closed is True


def test_check_projects_and_discord(tmp_path: Path, config_manager: ConfigManager) -> None:
    configured = HealthChecker(config=_config(tmp_path, CONFIGURED), client_factory=FakeCIClient)
    assert configured.check_projects().message == "1 project(s): frontend"
    assert configured.check_discord().ok is True

    defaults = HealthChecker(config=config_manager, client_factory=FakeCIClient)
    assert defaults.check_projects().ok is True
    discord = defaults.check_discord()
    assert discord.ok is False
    assert "DISCORD_TOKEN" in discord.message


@pytest.mark.asyncio
async def test_check_all_respects_skips(config_manager: ConfigManager) -> None:
    checker = HealthChecker(config=config_manager, client_factory=FakeCIClient)
    results = await checker.check_all(skip_jenkins=True, skip_discord=True)
    assert [r.name for r in results] == ["projects"]
    results = await checker.check_all()
    assert [r.name for r in results] == ["jenkins", "projects", "discord"]


def test_check_projects_fails_when_no_job_is_mapped(tmp_path: Path) -> None:
    empty = HealthChecker(config=_config(tmp_path, "projects: {}\n"), client_factory=FakeCIClient)
    result = empty.check_projects()
    assert result.ok is False
    assert result.message == "No projects configured"

    only_blank = HealthChecker(config=_config(tmp_path, "projects:\n  broken:\n"), client_factory=FakeCIClient)
    assert only_blank.check_projects().ok is False
