"""Custom exception hierarchy for buildrelay."""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Tag carried by every error surfaced to front-ends."""

    CONFIG = "config"
    REMOTE_ERROR = "remote_error"
    UNKNOWN_PROJECT = "unknown_project"
    PARAMETER_RESOLUTION_FAILED = "parameter_resolution_failed"
    TRIGGER_FAILED = "trigger_failed"
    QUEUE_RESOLUTION_FAILED = "queue_resolution_failed"
    MONITOR_FAILED = "monitor_failed"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"


class BuildRelayError(Exception):
    """Base exception for buildrelay."""

    kind: ErrorKind = ErrorKind.REMOTE_ERROR

    def __init__(self, message: str, *, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause


class ConfigError(BuildRelayError):
    """Raised when configuration loading or validation fails."""

    kind = ErrorKind.CONFIG


class RemoteError(BuildRelayError):
    """Raised by a CI client when a call to the server fails."""

    kind = ErrorKind.REMOTE_ERROR

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message, cause=cause)
        self.status_code = status_code


class UnknownProjectError(BuildRelayError):
    """Raised when a project name is not in the registry."""

    kind = ErrorKind.UNKNOWN_PROJECT

    def __init__(self, project_name: str, known: list[str]) -> None:
        super().__init__(
            f'Project "{project_name}" not found. Available projects: {", ".join(known)}'
        )
        self.project_name = project_name
        self.known = list(known)


class ParameterResolutionError(BuildRelayError):
    """Raised when a job's parameter definitions cannot be determined."""

    kind = ErrorKind.PARAMETER_RESOLUTION_FAILED

    def __init__(self, job_name: str, *, cause: BaseException | None = None) -> None:
        detail = f": {cause}" if cause else ""
        super().__init__(f'Failed to get default parameters for job "{job_name}"{detail}', cause=cause)
        self.job_name = job_name


class TriggerError(BuildRelayError):
    """Raised when the server does not accept a build request."""

    kind = ErrorKind.TRIGGER_FAILED


class QueueResolutionError(BuildRelayError):
    """Raised when a queue item cannot be turned into a build number."""

    kind = ErrorKind.QUEUE_RESOLUTION_FAILED


class MonitorError(BuildRelayError):
    """Raised when a running build can no longer be observed."""

    kind = ErrorKind.MONITOR_FAILED


class PollTimeoutError(BuildRelayError):
    """Raised when a polling phase exceeds its maximum wait."""

    kind = ErrorKind.TIMEOUT

    def __init__(self, phase: str, timeout: float) -> None:
        super().__init__(f"Timed out after {timeout:g}s waiting for {phase}")
        self.phase = phase
        self.timeout = timeout


class BuildCancelledError(BuildRelayError):
    """Raised when a caller cancels a build that is being tracked."""

    kind = ErrorKind.CANCELLED
