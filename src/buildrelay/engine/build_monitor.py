"""Wait for a running build to finish."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum

from buildrelay.core.exceptions import MonitorError, RemoteError
from buildrelay.core.schema import BuildInfo, BuildStatus
from buildrelay.engine.polling import PollPolicy, poll_until
from buildrelay.engine.run_log import get_logger
from buildrelay.protocols.ci_client import CIClient


class BuildState(str, Enum):
    RUNNING = "running"
    DONE = "done"
    FAILED = "failed"


@dataclass
class BuildWatch:
    """Progress of one build: RUNNING -> DONE(result) or FAILED(error). Never leaves a terminal state."""

    job_name: str
    number: int
    state: BuildState = BuildState.RUNNING
    build: BuildInfo | None = None
    error: str | None = None
    cause: BaseException | None = None
    polls: int = 0
    transient_errors: int = 0

    @property
    def done(self) -> bool:
        return self.state is not BuildState.RUNNING

    @property
    def result(self) -> BuildStatus | None:
        return self.build.result if self.build is not None and self.state is BuildState.DONE else None


class BuildMonitor:
    """Poll a build until it is no longer building."""

    def __init__(self, client: CIClient, policy: PollPolicy | None = None) -> None:
        self._client = client
        self._policy = policy or PollPolicy()

    async def poll(self, watch: BuildWatch) -> BuildWatch:
        """Fetch the build once and advance watch."""
        if watch.done:
            return watch
        watch.polls += 1
        try:
            build = await self._client.fetch_build(watch.job_name, watch.number)
        except RemoteError as e:
            watch.transient_errors += 1
            if watch.transient_errors > self._policy.max_transient_errors:
                watch.state = BuildState.FAILED
                watch.error = f"Error monitoring build status: {e}"
                watch.cause = e
            else:
                get_logger().warning("Build %s #%s fetch failed, retrying: %s", watch.job_name, watch.number, e)
            return watch
        watch.transient_errors = 0

        if build is None:
            watch.state = BuildState.FAILED
            watch.error = f"Error monitoring build status: {watch.number}"
        elif not build.building:
            if build.result is None:
                build = build.model_copy(update={"result": BuildStatus.UNKNOWN})
            watch.build = build
            watch.state = BuildState.DONE
        else:
            watch.build = build
        return watch

    async def wait(
        self,
        job_name: str,
        number: int,
        cancel: asyncio.Event | None = None,
    ) -> BuildInfo:
        """Poll until the build finishes; return its final state or raise MonitorError."""
        watch = BuildWatch(job_name=job_name, number=number)

        async def step() -> bool:
            await self.poll(watch)
            return watch.done

        await poll_until(step, self._policy, phase=f"build {job_name} #{number}", cancel=cancel)
        if watch.state is BuildState.FAILED or watch.build is None:
            get_logger().error("Monitoring %s #%s failed: %s", job_name, number, watch.error)
            raise MonitorError(watch.error or f"Error monitoring build status: {number}", cause=watch.cause)
        get_logger().info(
            "Build %s #%s finished with status %s after %d poll(s)",
            job_name,
            number,
            watch.result.value if watch.result else BuildStatus.UNKNOWN.value,
            watch.polls,
        )
        return watch.build
