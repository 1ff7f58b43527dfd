"""Pydantic models and data structures for the build engine."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

#: Mapping of parameter name to the value submitted with a build.
ParameterSet = dict[str, Any]


class BuildStatus(str, Enum):
    """Terminal result of a build as reported by the server."""

    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"
    UNSTABLE = "UNSTABLE"
    ABORTED = "ABORTED"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, value: str | None) -> BuildStatus:
        """Map a raw result string to a status; anything unrecognized is UNKNOWN."""
        if not value:
            return cls.UNKNOWN
        try:
            return cls(value.upper())
        except ValueError:
            return cls.UNKNOWN


class Project(BaseModel):
    """A logical project name mapped to a remote job."""

    model_config = ConfigDict(frozen=True)

    name: str
    job_name: str


class ParameterDefinition(BaseModel):
    """One build parameter declared by a job."""

    name: str
    kind: str = ""
    default_value: Any | None = None
    description: str = ""
    choices: list[str] = Field(default_factory=list)


class JobInfo(BaseModel):
    """Job metadata needed to resolve parameters."""

    name: str
    url: str = ""
    is_parameterized: bool = False
    parameter_definitions: list[ParameterDefinition] = Field(default_factory=list)


class QueueItem(BaseModel):
    """A queued build request; build_number is set once an executor picks it up."""

    id: int
    build_number: int | None = None
    cancelled: bool = False
    why: str | None = None


class BuildInfo(BaseModel):
    """State of one build. result is only meaningful once building is False."""

    job_name: str
    number: int
    building: bool
    result: BuildStatus | None = None
    url: str | None = None


class BuildOutcome(BaseModel):
    """Value returned to front-ends when a build has run to completion."""

    project_name: str
    job_name: str
    build_number: int
    result: BuildStatus
    url: str | None = None
