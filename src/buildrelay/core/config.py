"""Configuration loading from .env and YAML."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import dotenv_values
from pydantic import BaseModel, Field, ValidationError

from buildrelay.core.exceptions import ConfigError

log = logging.getLogger(__name__)

DEFAULT_PROJECTS: dict[str, str] = {
    "frontend": "build-frontend",
    "backend": "build-backend",
    "api": "build-api",
    "mobile": "build-mobile",
    "ms-b2b": "ms-b2b-dev",
}

#: Environment variable -> (config section, key)
ENV_KEYS: dict[str, tuple[str, str]] = {
    "JENKINS_URL": ("jenkins", "url"),
    "JENKINS_USERNAME": ("jenkins", "username"),
    "JENKINS_API_TOKEN": ("jenkins", "api_token"),
    "DISCORD_TOKEN": ("discord", "token"),
    "BUILD_PREFIX": ("discord", "prefix"),
}


def _find_project_root(start: Path | None = None) -> Path:
    """Find project root by looking for pyproject.toml upward."""
    current = Path(start or Path.cwd()).resolve()
    for _ in range(10):
        if (current / "pyproject.toml").exists():
            return current
        parent = current.parent
        if parent == current:
            break
        current = parent
    return Path.cwd().resolve()


class JenkinsConfigModel(BaseModel):
    """Jenkins section of config."""

    url: str = ""
    username: str = ""
    api_token: str = ""
    request_timeout: float = 30.0


class PollingConfigModel(BaseModel):
    """Polling section of config. A timeout of None waits forever."""

    interval: float = Field(default=1.0, ge=0)
    queue_timeout: float | None = 600.0
    build_timeout: float | None = 3600.0
    max_transient_errors: int = Field(default=0, ge=0)


class DiscordConfigModel(BaseModel):
    """Discord section of config."""

    token: str = ""
    prefix: str = "!build"


class AppConfig(BaseModel):
    """Full application configuration."""

    jenkins: JenkinsConfigModel = Field(default_factory=JenkinsConfigModel)
    polling: PollingConfigModel = Field(default_factory=PollingConfigModel)
    discord: DiscordConfigModel = Field(default_factory=DiscordConfigModel)
    projects: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_PROJECTS))


class ConfigManager:
    """Load and merge configuration from .env and YAML."""

    def __init__(
        self,
        project_root: Path | None = None,
        env_path: Path | None = None,
        config_path: Path | None = None,
    ) -> None:
        self._root = Path(project_root or _find_project_root()).resolve()
        self._env_path = Path(env_path) if env_path else self._root / ".env"
        self._config_path = Path(config_path) if config_path else self._root / "config" / "default.yaml"
        self._config: AppConfig | None = None

    def load_env(self) -> dict[str, str]:
        """Load .env file into a dict (without modifying os.environ)."""
        try:
            return {k: v for k, v in dotenv_values(self._env_path).items() if v is not None}
        except (OSError, PermissionError) as e:
            log.warning("Failed to read .env file %s: %s", self._env_path, e)
            return {}

    def load_yaml(self) -> dict[str, Any]:
        """Load YAML config file if it exists."""
        if not self._config_path.exists():
            return {}
        try:
            with open(self._config_path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, PermissionError) as e:
            log.warning("Failed to read config file %s: %s", self._config_path, e)
            return {}
        except yaml.YAMLError as e:
            log.warning("Malformed YAML in %s: %s", self._config_path, e)
            return {}
        if not isinstance(data, dict):
            log.warning("Ignoring config file %s: top level is not a mapping", self._config_path)
            return {}
        return data

    def load(self) -> AppConfig:
        """Load .env and YAML, merge with defaults, return AppConfig."""
        # Process environment wins over .env
        env = {**self.load_env(), **{k: os.environ[k] for k in ENV_KEYS if os.environ.get(k)}}
        yaml_data = self.load_yaml()

        # YAML first, then env overrides
        jenkins = dict(yaml_data.get("jenkins") or {})
        discord = dict(yaml_data.get("discord") or {})
        sections = {"jenkins": jenkins, "discord": discord}
        for env_key, (section, key) in ENV_KEYS.items():
            if env.get(env_key):
                sections[section][key] = env[env_key]

        config_dict: dict[str, Any] = {"jenkins": jenkins, "discord": discord}
        if yaml_data.get("polling"):
            config_dict["polling"] = yaml_data["polling"]
        if "projects" in yaml_data:
            projects = yaml_data["projects"] or {}
            if not isinstance(projects, dict):
                raise ConfigError(f"Invalid configuration in {self._config_path}: 'projects' must be a mapping")
            # A project without a job stays empty so the registry skips it
            config_dict["projects"] = {str(k): "" if v is None else str(v) for k, v in projects.items()}

        try:
            self._config = AppConfig(**config_dict)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration in {self._config_path}: {e}", cause=e) from e
        return self._config

    @property
    def config(self) -> AppConfig:
        """Return loaded config; load if not yet loaded."""
        if self._config is None:
            self.load()
        if self._config is None:
            raise RuntimeError("ConfigManager.load() failed to produce a config")
        return self._config

    @property
    def project_root(self) -> Path:
        return self._root
