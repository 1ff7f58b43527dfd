"""Tests for JenkinsClient against a mocked Jenkins API."""

from __future__ import annotations

from typing import Any, Callable

import httpx
import pytest

from buildrelay.client.jenkins_client import (
    JenkinsClient,
    job_path,
    parse_job,
    parse_queue_location,
)
from buildrelay.core.config import JenkinsConfigModel
from buildrelay.core.exceptions import ConfigError, RemoteError
from buildrelay.core.schema import BuildStatus

JOB_JSON: dict[str, Any] = {
    "_class": "hudson.model.FreeStyleProject",
    "url": "https://jenkins.test/job/build-api/",
    "buildable": True,
    "lastBuild": {"number": 41},
    "property": [
        {"_class": "jenkins.model.BuildDiscarderProperty"},
        {
            "_class": "hudson.model.ParametersDefinitionProperty",
            "parameterDefinitions": [
                {
                    "_class": "hudson.model.StringParameterDefinition",
                    "name": "BRANCH",
                    "description": "Branch to build",
                    "type": "StringParameterDefinition",
                    "defaultParameterValue": {"name": "BRANCH", "value": "main"},
                },
                {
                    "_class": "hudson.model.ChoiceParameterDefinition",
                    "name": "ENV",
                    "description": "",
                    "choices": ["dev", "prod"],
                    "defaultParameterValue": {"name": "ENV", "value": "dev"},
                },
                {
                    "_class": "hudson.model.BooleanParameterDefinition",
                    "name": "CLEAN",
                    "defaultParameterValue": None,
                },
            ],
        },
    ],
}


def _client(handler: Callable[[httpx.Request], httpx.Response], url: str = "https://jenkins.test") -> JenkinsClient:
    return JenkinsClient(url, "bot", "secret", transport=httpx.MockTransport(handler))


def test_job_path_handles_folders() -> None:
    assert job_path("build-api") == "job/build-api"
    assert job_path("team/app") == "job/team/job/app"
    assert job_path("my job") == "job/my%20job"


def test_parse_queue_location() -> None:
    assert parse_queue_location("https://jenkins.test/queue/item/123/") == 123
    assert parse_queue_location("https://jenkins.test/queue/item/7") == 7
    assert parse_queue_location("https://jenkins.test/job/x/") is None
    assert parse_queue_location(None) is None


def test_parse_job_without_parameters_property() -> None:
    job = parse_job("plain", {"property": [{"_class": "other"}], "buildable": True})
    assert job.is_parameterized is False
    assert job.parameter_definitions == []


def test_base_url_without_scheme_gets_https() -> None:
    client = JenkinsClient("jenkins.test/", "u", "t")
    assert client.base_url == "https://jenkins.test"
    assert client.build_url("team/app", 3) == "https://jenkins.test/job/team/job/app/3/console"


def test_missing_url_raises_config_error() -> None:
    with pytest.raises(ConfigError, match="JENKINS_URL"):
        JenkinsClient.from_config(JenkinsConfigModel())


@pytest.mark.asyncio
async def test_fetch_job_parses_parameters() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        assert request.url.path == "/job/build-api/api/json"
        return httpx.Response(200, json=JOB_JSON)

    async with _client(handler) as client:
        job = await client.fetch_job("build-api")

    assert seen[0].headers["authorization"].startswith("Basic ")
    assert job.is_parameterized is True
    branch, env, clean = job.parameter_definitions
    assert (branch.name, branch.kind, branch.default_value, branch.description) == (
        "BRANCH",
        "StringParameterDefinition",
        "main",
        "Branch to build",
    )
    assert env.kind == "ChoiceParameterDefinition"
    assert env.choices == ["dev", "prod"]
    assert clean.default_value is None


@pytest.mark.asyncio
async def test_fetch_job_not_found_raises_remote_error() -> None:
    async with _client(lambda request: httpx.Response(404)) as client:
        with pytest.raises(RemoteError) as exc_info:
            await client.fetch_job("missing")
    assert exc_info.value.status_code == 404


@pytest.mark.asyncio
async def test_trigger_with_parameters_uses_build_with_parameters() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(201, headers={"Location": "https://jenkins.test/queue/item/321/"})

    async with _client(handler) as client:
        queue_id = await client.trigger_build("build-api", {"BRANCH": "main", "CLEAN": True, "TAG": None})

    assert queue_id == 321
    request = seen[0]
    assert request.method == "POST"
    assert request.url.path == "/job/build-api/buildWithParameters"
    assert dict(request.url.params) == {"BRANCH": "main", "CLEAN": "true"}


@pytest.mark.asyncio
async def test_trigger_without_parameters_uses_build() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(201, headers={"Location": "https://jenkins.test/queue/item/5/"})

    async with _client(handler) as client:
        assert await client.trigger_build("build-frontend", {}) == 5
    assert seen[0].url.path == "/job/build-frontend/build"


@pytest.mark.asyncio
async def test_trigger_without_location_raises() -> None:
    async with _client(lambda request: httpx.Response(201)) as client:
        with pytest.raises(RemoteError, match="no queue location"):
            await client.trigger_build("build-frontend", {})


@pytest.mark.asyncio
async def test_trigger_rejected_raises_with_status() -> None:
    async with _client(lambda request: httpx.Response(400, text="not parameterized")) as client:
        with pytest.raises(RemoteError) as exc_info:
            await client.trigger_build("build-frontend", {"X": "1"})
    assert exc_info.value.status_code == 400
    assert "HTTP 400" in exc_info.value.message


@pytest.mark.asyncio
async def test_fetch_queue_item_states() -> None:
    responses = {
        "/queue/item/1/api/json": httpx.Response(200, json={"id": 1, "why": "Waiting for executor", "executable": None}),
        "/queue/item/2/api/json": httpx.Response(200, json={"id": 2, "executable": {"number": 42, "url": "u"}}),
        "/queue/item/3/api/json": httpx.Response(200, json={"id": 3, "cancelled": True}),
        "/queue/item/4/api/json": httpx.Response(404),
    }

    async with _client(lambda request: responses[request.url.path]) as client:
        waiting = await client.fetch_queue_item(1)
        started = await client.fetch_queue_item(2)
        cancelled = await client.fetch_queue_item(3)
        gone = await client.fetch_queue_item(4)

    assert waiting is not None and waiting.build_number is None and waiting.why == "Waiting for executor"
    assert started is not None and started.build_number == 42
    assert cancelled is not None and cancelled.cancelled is True
    assert gone is None


@pytest.mark.asyncio
async def test_fetch_build_states() -> None:
    responses = {
        "/job/build-api/1/api/json": httpx.Response(200, json={"number": 1, "building": True, "result": None}),
        "/job/build-api/2/api/json": httpx.Response(200, json={"number": 2, "building": False, "result": "FAILURE"}),
        "/job/build-api/3/api/json": httpx.Response(200, json={"number": 3, "building": False, "result": None}),
        "/job/build-api/4/api/json": httpx.Response(404),
    }

    async with _client(lambda request: responses[request.url.path]) as client:
        running = await client.fetch_build("build-api", 1)
        failed = await client.fetch_build("build-api", 2)
        no_result = await client.fetch_build("build-api", 3)
        missing = await client.fetch_build("build-api", 4)

    assert running is not None and running.building is True and running.result is None
    assert failed is not None and failed.result is BuildStatus.FAILURE
    assert no_result is not None and no_result.result is BuildStatus.UNKNOWN
    assert missing is None


@pytest.mark.asyncio
async def test_server_error_raises_remote_error() -> None:
    async with _client(lambda request: httpx.Response(503)) as client:
        with pytest.raises(RemoteError) as exc_info:
            await client.fetch_build("build-api", 1)
    assert exc_info.value.status_code == 503


@pytest.mark.asyncio
async def test_network_error_raises_remote_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with _client(handler) as client:
        with pytest.raises(RemoteError, match="connection refused") as exc_info:
            await client.server_info()
    assert isinstance(exc_info.value.cause, httpx.ConnectError)


@pytest.mark.asyncio
async def test_invalid_json_raises_remote_error() -> None:
    async with _client(lambda request: httpx.Response(200, text="<html>login</html>")) as client:
        with pytest.raises(RemoteError, match="invalid JSON"):
            await client.fetch_job("build-api")
