"""Health checks for Jenkins connectivity, project map, and chat setup."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from buildrelay.core.config import ConfigManager
from buildrelay.core.exceptions import BuildRelayError
from buildrelay.core.registry import ProjectRegistry
from buildrelay.protocols.ci_client import CIClient


@dataclass
class HealthCheckResult:
    """Result of a single health check."""

    name: str
    ok: bool
    message: str = ""
    suggestion: str = ""


class HealthChecker:
    """Run health checks against the configured Jenkins server and front-ends."""

    def __init__(
        self,
        config: ConfigManager,
        client_factory: Callable[[], CIClient],
    ) -> None:
        self._config = config
        self._client_factory = client_factory

    async def check_jenkins(self) -> HealthCheckResult:
        """Check that Jenkins credentials are set and the server answers an authenticated request."""
        cfg = self._config.config.jenkins
        missing = [
            env for env, value in (
                ("JENKINS_URL", cfg.url),
                ("JENKINS_USERNAME", cfg.username),
                ("JENKINS_API_TOKEN", cfg.api_token),
            )
            if not value
        ]
        if missing:
            return HealthCheckResult(
                name="jenkins",
                ok=False,
                message=f"Missing settings: {', '.join(missing)}",
                suggestion="Set them in .env or under 'jenkins:' in config/default.yaml.",
            )
        try:
            client = self._client_factory()
            try:
                info = await client.server_info()
            finally:
                await client.aclose()
        except BuildRelayError as e:
            return HealthCheckResult(
                name="jenkins",
                ok=False,
                message=str(e),
                suggestion="Check JENKINS_URL is reachable and the API token belongs to JENKINS_USERNAME.",
            )
        mode = info.get("mode")
        message = f"Connected to {cfg.url}" + (f" (mode: {mode})" if mode else "")
        return HealthCheckResult(name="jenkins", ok=True, message=message)

    def check_projects(self) -> HealthCheckResult:
        """Check that at least one project is mapped to a job."""
        projects = ProjectRegistry(self._config.config.projects).names()
        if not projects:
            return HealthCheckResult(
                name="projects",
                ok=False,
                message="No projects configured",
                suggestion="Add a 'projects:' mapping of project name to Jenkins job in config/default.yaml.",
            )
        return HealthCheckResult(
            name="projects",
            ok=True,
            message=f"{len(projects)} project(s): {', '.join(projects)}",
        )

    def check_discord(self) -> HealthCheckResult:
        """Check that a Discord bot token is configured."""
        if not self._config.config.discord.token:
            return HealthCheckResult(
                name="discord",
                ok=False,
                message="DISCORD_TOKEN is not set",
                suggestion="Set DISCORD_TOKEN in .env to run 'buildrelay chat'.",
            )
        return HealthCheckResult(name="discord", ok=True, message="Token configured")

    async def check_all(self, *, skip_jenkins: bool = False, skip_discord: bool = False) -> list[HealthCheckResult]:
        """Run all checks; return list of results."""
        results = []
        if not skip_jenkins:
            results.append(await self.check_jenkins())
        results.append(self.check_projects())
        if not skip_discord:
            results.append(self.check_discord())
        return results
