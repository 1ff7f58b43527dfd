"""Jenkins REST API client built on httpx."""

from __future__ import annotations

import logging
import re
from typing import Any
from urllib.parse import quote

import httpx

from buildrelay.core.config import JenkinsConfigModel
from buildrelay.core.exceptions import ConfigError, RemoteError
from buildrelay.core.schema import (
    BuildInfo,
    BuildStatus,
    JobInfo,
    ParameterDefinition,
    ParameterSet,
    QueueItem,
)

log = logging.getLogger(__name__)

PARAMETERS_PROPERTY_CLASS = "hudson.model.ParametersDefinitionProperty"

_RE_QUEUE_LOCATION = re.compile(r"/queue/item/(\d+)/?$")


def _normalize_base_url(url: str) -> str:
    url = url.strip().rstrip("/")
    if "://" not in url:
        url = f"https://{url}"
    return url


def job_path(job_name: str) -> str:
    """Return the URL path of a job; folder jobs use '/' separators (``team/app``)."""
    parts = [p for p in job_name.strip("/").split("/") if p]
    return "/".join(f"job/{quote(p, safe='')}" for p in parts)


def parse_parameter_definition(raw: dict[str, Any]) -> ParameterDefinition:
    """Convert one entry of ``parameterDefinitions`` to a ParameterDefinition."""
    default = raw.get("defaultParameterValue")
    kind = raw.get("type") or str(raw.get("_class", "")).rsplit(".", 1)[-1]
    return ParameterDefinition(
        name=raw["name"],
        kind=kind,
        default_value=default.get("value") if isinstance(default, dict) else None,
        description=raw.get("description") or "",
        choices=[str(c) for c in raw.get("choices") or []],
    )


def parse_job(job_name: str, data: dict[str, Any]) -> JobInfo:
    """Build JobInfo from ``/job/<name>/api/json``."""
    param_prop = next(
        (p for p in data.get("property") or [] if p and p.get("_class") == PARAMETERS_PROPERTY_CLASS),
        None,
    )
    definitions = []
    if param_prop is not None:
        definitions = [parse_parameter_definition(d) for d in param_prop.get("parameterDefinitions") or []]
    return JobInfo(
        name=job_name,
        url=data.get("url") or "",
        is_parameterized=param_prop is not None,
        parameter_definitions=definitions,
    )


def parse_queue_item(queue_id: int, data: dict[str, Any]) -> QueueItem:
    """Build QueueItem from ``/queue/item/<id>/api/json``."""
    executable = data.get("executable") or {}
    return QueueItem(
        id=int(data.get("id", queue_id)),
        build_number=executable.get("number"),
        cancelled=bool(data.get("cancelled", False)),
        why=data.get("why"),
    )


def parse_build(job_name: str, data: dict[str, Any]) -> BuildInfo:
    """Build BuildInfo from ``/job/<name>/<number>/api/json``."""
    building = bool(data.get("building", False))
    return BuildInfo(
        job_name=job_name,
        number=int(data["number"]),
        building=building,
        result=None if building else BuildStatus.parse(data.get("result")),
        url=data.get("url"),
    )


def parse_queue_location(location: str | None) -> int | None:
    """Extract the queue item id from a trigger response ``Location`` header."""
    if not location:
        return None
    match = _RE_QUEUE_LOCATION.search(location)
    return int(match.group(1)) if match else None


class JenkinsClient:
    """Async Jenkins client authenticated with a user name and API token."""

    def __init__(
        self,
        base_url: str,
        username: str,
        api_token: str,
        *,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not base_url:
            raise ConfigError("Jenkins URL is not configured (set JENKINS_URL)")
        self.base_url = _normalize_base_url(base_url)
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            auth=httpx.BasicAuth(username, api_token),
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_config(cls, config: JenkinsConfigModel) -> JenkinsClient:
        return cls(
            config.url,
            config.username,
            config.api_token,
            timeout=config.request_timeout,
        )

    async def __aenter__(self) -> JenkinsClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _send_api_request(
        self,
        method: str,
        endpoint: str,
        params: dict[str, Any] | None = None,
        *,
        allow_not_found: bool = False,
    ) -> httpx.Response | None:
        """Send a request; return None on 404 when allow_not_found, else raise RemoteError on failure."""
        log.debug("%s %s params=%s", method, endpoint, params)
        try:
            response = await self._client.request(method, endpoint, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if status == 404 and allow_not_found:
                log.debug("Resource not found at %s", endpoint)
                return None
            log.error("HTTP status error for %s %s: %s", method, endpoint, status)
            raise RemoteError(
                f"{method} {endpoint} failed with HTTP {status}",
                status_code=status,
                cause=e,
            ) from e
        except httpx.HTTPError as e:
            log.error("HTTP error for %s %s: %s", method, endpoint, e)
            raise RemoteError(f"{method} {endpoint} failed: {e}", cause=e) from e
        return response

    async def _get_json(self, endpoint: str, *, allow_not_found: bool = False) -> dict[str, Any] | None:
        response = await self._send_api_request("GET", endpoint, allow_not_found=allow_not_found)
        if response is None:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise RemoteError(f"GET {endpoint} returned invalid JSON", cause=e) from e

    async def fetch_job(self, job_name: str) -> JobInfo:
        data = await self._get_json(f"/{job_path(job_name)}/api/json")
        return parse_job(job_name, data or {})

    async def trigger_build(self, job_name: str, parameters: ParameterSet) -> int:
        if parameters:
            endpoint = f"/{job_path(job_name)}/buildWithParameters"
            # None means "no default"; leave it to the server
            params = {k: v for k, v in parameters.items() if v is not None}
        else:
            endpoint = f"/{job_path(job_name)}/build"
            params = None
        response = await self._send_api_request("POST", endpoint, params=params)
        location = response.headers.get("location") if response is not None else None
        queue_id = parse_queue_location(location)
        if queue_id is None:
            raise RemoteError(f"POST {endpoint} returned no queue location (Location: {location!r})")
        log.debug("Queued %s as item %s", job_name, queue_id)
        return queue_id

    async def fetch_queue_item(self, queue_id: int) -> QueueItem | None:
        data = await self._get_json(f"/queue/item/{queue_id}/api/json", allow_not_found=True)
        if data is None:
            return None
        return parse_queue_item(queue_id, data)

    async def fetch_build(self, job_name: str, number: int) -> BuildInfo | None:
        data = await self._get_json(f"/{job_path(job_name)}/{number}/api/json", allow_not_found=True)
        if data is None:
            return None
        return parse_build(job_name, data)

    async def server_info(self) -> dict[str, Any]:
        return await self._get_json("/api/json") or {}

    def build_url(self, job_name: str, number: int) -> str:
        return f"{self.base_url}/{job_path(job_name)}/{number}/console"
