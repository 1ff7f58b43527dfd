"""Core: configuration, data model, errors, project registry, health checks."""

from buildrelay.core.config import AppConfig, ConfigManager
from buildrelay.core.exceptions import BuildRelayError, ErrorKind
from buildrelay.core.health import HealthChecker, HealthCheckResult
from buildrelay.core.registry import ProjectRegistry
from buildrelay.core.schema import (
    BuildInfo,
    BuildOutcome,
    BuildStatus,
    JobInfo,
    ParameterDefinition,
    ParameterSet,
    Project,
    QueueItem,
)

__all__ = [
    "AppConfig",
    "BuildInfo",
    "BuildOutcome",
    "BuildRelayError",
    "BuildStatus",
    "ConfigManager",
    "ErrorKind",
    "HealthCheckResult",
    "HealthChecker",
    "JobInfo",
    "ParameterDefinition",
    "ParameterSet",
    "Project",
    "ProjectRegistry",
    "QueueItem",
]
