"""Submit build requests."""

from __future__ import annotations

from buildrelay.core.exceptions import RemoteError, TriggerError
from buildrelay.core.schema import ParameterSet
from buildrelay.engine.run_log import get_logger
from buildrelay.protocols.ci_client import CIClient


class BuildTrigger:
    """Queue a build of a job with a resolved parameter set."""

    def __init__(self, client: CIClient) -> None:
        self._client = client

    async def trigger(self, job_name: str, parameters: ParameterSet) -> int:
        """Submit the build and return the queue item id; raise TriggerError on failure."""
        log = get_logger()
        log.info("Triggering %s with %d parameter(s)", job_name, len(parameters))
        log.debug("Parameters for %s: %s", job_name, parameters)
        try:
            queue_id = await self._client.trigger_build(job_name, parameters)
        except RemoteError as e:
            log.error("Trigger of %s failed: %s", job_name, e)
            raise TriggerError(f"An error occurred: {e}", cause=e) from e
        log.info("Job %s queued with id %s", job_name, queue_id)
        return queue_id
