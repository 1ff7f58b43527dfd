"""Deadline-bounded, cancellable poll loop shared by the queue watcher and build monitor."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable

from buildrelay.core.config import PollingConfigModel
from buildrelay.core.exceptions import BuildCancelledError, PollTimeoutError
from buildrelay.engine.run_log import get_logger


@dataclass(frozen=True)
class PollPolicy:
    """How often to poll, for how long, and how many consecutive fetch failures to tolerate."""

    interval: float = 1.0
    timeout: float | None = None
    max_transient_errors: int = 0

    @classmethod
    def for_queue(cls, config: PollingConfigModel) -> PollPolicy:
        return cls(config.interval, config.queue_timeout, config.max_transient_errors)

    @classmethod
    def for_build(cls, config: PollingConfigModel) -> PollPolicy:
        return cls(config.interval, config.build_timeout, config.max_transient_errors)


async def _wait_interval(interval: float, cancel: asyncio.Event | None) -> None:
    """Sleep for one interval, returning early if cancel is set."""
    if cancel is None:
        await asyncio.sleep(interval)
        return
    try:
        await asyncio.wait_for(cancel.wait(), timeout=interval)
    except asyncio.TimeoutError:
        pass


async def poll_until(
    step: Callable[[], Awaitable[bool]],
    policy: PollPolicy,
    *,
    phase: str,
    cancel: asyncio.Event | None = None,
) -> int:
    """
    Call step() until it returns True (terminal state reached); return the number of polls.

    The first poll happens immediately. Between polls the loop waits policy.interval.
    Raises PollTimeoutError once policy.timeout has elapsed without a terminal state,
    and BuildCancelledError as soon as cancel is set (checked before every poll).
    """
    log = get_logger()
    loop = asyncio.get_running_loop()
    deadline = loop.time() + policy.timeout if policy.timeout is not None else None
    polls = 0
    while True:
        if cancel is not None and cancel.is_set():
            log.info("Polling %s cancelled after %d poll(s)", phase, polls)
            raise BuildCancelledError(f"Cancelled while waiting for {phase}")
        polls += 1
        if await step():
            return polls
        if deadline is not None:
            remaining = deadline - loop.time()
            if remaining <= 0:
                log.warning("Polling %s timed out after %d poll(s)", phase, polls)
                raise PollTimeoutError(phase, policy.timeout or 0.0)
            await _wait_interval(min(policy.interval, remaining), cancel)
        else:
            await _wait_interval(policy.interval, cancel)
