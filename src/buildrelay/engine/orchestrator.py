"""Run a project's build end to end: parameters, trigger, queue, monitor."""

from __future__ import annotations

import asyncio

from buildrelay.core.config import AppConfig
from buildrelay.core.registry import ProjectRegistry
from buildrelay.core.schema import BuildOutcome, BuildStatus, ParameterDefinition, Project
from buildrelay.engine.build_monitor import BuildMonitor
from buildrelay.engine.parameters import ParameterResolver
from buildrelay.engine.polling import PollPolicy
from buildrelay.engine.queue_watcher import QueueWatcher
from buildrelay.engine.run_log import get_logger
from buildrelay.engine.trigger import BuildTrigger
from buildrelay.protocols.ci_client import CIClient, Notifier


class BuildOrchestrator:
    """Single entry point shared by the CLI and chat front-ends.

    Holds no per-run state, so concurrent run_build calls are independent.
    """

    def __init__(
        self,
        client: CIClient,
        registry: ProjectRegistry,
        *,
        queue_policy: PollPolicy | None = None,
        build_policy: PollPolicy | None = None,
    ) -> None:
        self._client = client
        self._registry = registry
        self._resolver = ParameterResolver(client)
        self._trigger = BuildTrigger(client)
        self._queue_watcher = QueueWatcher(client, queue_policy)
        self._monitor = BuildMonitor(client, build_policy)

    @classmethod
    def from_config(cls, config: AppConfig, client: CIClient) -> BuildOrchestrator:
        return cls(
            client,
            ProjectRegistry(config.projects),
            queue_policy=PollPolicy.for_queue(config.polling),
            build_policy=PollPolicy.for_build(config.polling),
        )

    def list_projects(self) -> list[Project]:
        return self._registry.list_projects()

    async def get_parameters(self, project_name: str) -> list[ParameterDefinition]:
        """Return the parameter definitions of a project's job."""
        job_name = self._registry.resolve(project_name)
        return await self._resolver.definitions(job_name)

    async def run_build(
        self,
        project_name: str,
        *,
        notify: Notifier | None = None,
        cancel: asyncio.Event | None = None,
    ) -> BuildOutcome:
        """
        Build project_name and wait for the result.

        Steps run strictly in order and stop at the first failure, which is raised
        as a BuildRelayError subclass tagged with its ErrorKind. notify receives
        progress messages; cancel stops waiting at the next poll boundary.
        """
        log = get_logger()
        job_name = self._registry.resolve(project_name)
        log.info("=== Build %s (job %s) ===", project_name, job_name)

        parameters = await self._resolver.default_parameters(job_name)
        log.info("Resolved %d default parameter(s) for %s", len(parameters), job_name)

        await self._notify(notify, f"Starting build for project: {project_name}")
        queue_id = await self._trigger.trigger(job_name, parameters)
        await self._notify(
            notify,
            f"Build for {project_name} queued with ID: {queue_id}. Waiting for build to start...",
        )

        build_number = await self._queue_watcher.wait(queue_id, cancel=cancel)
        console_url = self._client.build_url(job_name, build_number)
        await self._notify(
            notify,
            f"Build #{build_number} for {project_name} started! You can check the progress at: {console_url}",
        )

        build = await self._monitor.wait(job_name, build_number, cancel=cancel)
        result = build.result or BuildStatus.UNKNOWN
        log.info("=== Build %s #%s finished: %s ===", project_name, build_number, result.value)
        return BuildOutcome(
            project_name=project_name,
            job_name=job_name,
            build_number=build_number,
            result=result,
            url=console_url,
        )

    async def _notify(self, notify: Notifier | None, message: str) -> None:
        """Deliver a progress message; delivery failures are logged and otherwise ignored."""
        get_logger().info(message)
        if notify is None:
            return
        try:
            await notify(message)
        except Exception as e:
            get_logger().warning("Progress notification failed: %s", e)
