"""Protocol for remote CI clients."""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Protocol

from buildrelay.core.schema import BuildInfo, JobInfo, ParameterSet, QueueItem

#: Async sink for human-readable progress messages.
Notifier = Callable[[str], Awaitable[None]]


class CIClient(Protocol):
    """Capabilities the build engine needs from a CI server.

    Every method raises :class:`~buildrelay.core.exceptions.RemoteError` when
    the call itself fails (network, authentication, unexpected status).
    ``fetch_queue_item`` and ``fetch_build`` return None when the server
    reports the resource does not exist.
    """

    async def fetch_job(self, job_name: str) -> JobInfo:
        """Return job metadata including parameter definitions."""
        ...

    async def trigger_build(self, job_name: str, parameters: ParameterSet) -> int:
        """Submit a build and return the queue item id."""
        ...

    async def fetch_queue_item(self, queue_id: int) -> QueueItem | None:
        """Return the queue item, or None if the server no longer knows it."""
        ...

    async def fetch_build(self, job_name: str, number: int) -> BuildInfo | None:
        """Return the build, or None if it does not exist."""
        ...

    async def server_info(self) -> dict[str, Any]:
        """Return server metadata; used to verify credentials."""
        ...

    def build_url(self, job_name: str, number: int) -> str:
        """Return the console URL of a build."""
        ...

    async def aclose(self) -> None:
        """Release network resources."""
        ...
