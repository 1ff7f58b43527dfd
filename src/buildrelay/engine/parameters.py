"""Resolve the default parameter set of a job."""

from __future__ import annotations

from buildrelay.core.exceptions import ParameterResolutionError, RemoteError
from buildrelay.core.schema import JobInfo, ParameterDefinition, ParameterSet
from buildrelay.engine.run_log import get_logger
from buildrelay.protocols.ci_client import CIClient


class ParameterResolver:
    """Fetch a job's parameter definitions and extract their default values."""

    def __init__(self, client: CIClient) -> None:
        self._client = client

    async def _fetch_job(self, job_name: str) -> JobInfo:
        try:
            return await self._client.fetch_job(job_name)
        except RemoteError as e:
            get_logger().warning("Could not fetch job %s: %s", job_name, e)
            raise ParameterResolutionError(job_name, cause=e) from e

    async def definitions(self, job_name: str) -> list[ParameterDefinition]:
        """Return the job's parameter definitions; empty for an unparameterized job."""
        job = await self._fetch_job(job_name)
        return list(job.parameter_definitions)

    async def default_parameters(self, job_name: str) -> ParameterSet:
        """
        Return name -> default value for every parameter the job declares.

        An unparameterized job yields an empty dict, which is a valid result.
        A parameter without a default maps to None.
        """
        job = await self._fetch_job(job_name)
        if not job.is_parameterized:
            get_logger().debug("Job %s is not parameterized", job_name)
            return {}
        return {p.name: p.default_value for p in job.parameter_definitions}
