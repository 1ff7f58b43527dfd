"""Wait for a queued build request to be assigned a build number."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum

from buildrelay.core.exceptions import QueueResolutionError, RemoteError
from buildrelay.engine.polling import PollPolicy, poll_until
from buildrelay.engine.run_log import get_logger
from buildrelay.protocols.ci_client import CIClient


class QueueState(str, Enum):
    PENDING = "pending"
    RESOLVED = "resolved"
    FAILED = "failed"


@dataclass
class QueueWatch:
    """Progress of one queue item: PENDING -> RESOLVED(build_number) or FAILED(error)."""

    queue_id: int
    state: QueueState = QueueState.PENDING
    build_number: int | None = None
    error: str | None = None
    cause: BaseException | None = None
    polls: int = 0
    transient_errors: int = 0

    @property
    def done(self) -> bool:
        return self.state is not QueueState.PENDING

    def fail(self, error: str, cause: BaseException | None = None) -> None:
        self.state = QueueState.FAILED
        self.error = error
        self.cause = cause


class QueueWatcher:
    """Poll a queue item until the scheduler hands it to an executor."""

    def __init__(self, client: CIClient, policy: PollPolicy | None = None) -> None:
        self._client = client
        self._policy = policy or PollPolicy()

    async def poll(self, watch: QueueWatch) -> QueueWatch:
        """Fetch the queue item once and advance watch; terminal states are left unchanged."""
        if watch.done:
            return watch
        log = get_logger()
        watch.polls += 1
        try:
            item = await self._client.fetch_queue_item(watch.queue_id)
        except RemoteError as e:
            watch.transient_errors += 1
            if watch.transient_errors > self._policy.max_transient_errors:
                watch.fail(f"Error checking build status: {e}", e)
            else:
                log.warning(
                    "Queue item %s fetch failed (%d/%d tolerated): %s",
                    watch.queue_id,
                    watch.transient_errors,
                    self._policy.max_transient_errors,
                    e,
                )
            return watch
        watch.transient_errors = 0

        if item is None:
            watch.fail(f"Error checking queue status: {watch.queue_id}")
        elif item.cancelled:
            watch.fail(f"Queue item {watch.queue_id} was cancelled on the server")
        elif item.build_number is not None:
            watch.state = QueueState.RESOLVED
            watch.build_number = item.build_number
        elif item.why:
            log.debug("Queue item %s waiting: %s", watch.queue_id, item.why)
        return watch

    async def wait(self, queue_id: int, cancel: asyncio.Event | None = None) -> int:
        """Poll until the item resolves; return its build number or raise QueueResolutionError."""
        watch = QueueWatch(queue_id=queue_id)

        async def step() -> bool:
            await self.poll(watch)
            return watch.done

        await poll_until(step, self._policy, phase=f"queue item {queue_id}", cancel=cancel)
        if watch.state is QueueState.FAILED or watch.build_number is None:
            get_logger().error("Queue item %s failed: %s", queue_id, watch.error)
            raise QueueResolutionError(watch.error or f"Queue item {queue_id} failed", cause=watch.cause)
        get_logger().info("Queue item %s resolved to build #%s after %d poll(s)", queue_id, watch.build_number, watch.polls)
        return watch.build_number
