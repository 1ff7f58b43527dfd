"""Read-only registry mapping project names to Jenkins jobs."""

from __future__ import annotations

import logging
from collections.abc import Mapping

from buildrelay.core.exceptions import UnknownProjectError
from buildrelay.core.schema import Project

log = logging.getLogger(__name__)


class ProjectRegistry:
    """Project name to job name lookup. Names are matched case-sensitively."""

    def __init__(self, projects: Mapping[str, str]) -> None:
        self._projects: dict[str, str] = {}
        for name, job_name in projects.items():
            if not job_name:
                log.warning("Ignoring project %s: no job configured", name)
                continue
            self._projects[name] = job_name

    def resolve(self, project_name: str) -> str:
        """Return the job name for project_name or raise UnknownProjectError."""
        try:
            return self._projects[project_name]
        except KeyError:
            raise UnknownProjectError(project_name, self.names()) from None

    def names(self) -> list[str]:
        return list(self._projects)

    def list_projects(self) -> list[Project]:
        """Return all registered projects in configuration order."""
        return [Project(name=name, job_name=job) for name, job in self._projects.items()]

    def __contains__(self, project_name: object) -> bool:
        return project_name in self._projects

    def __len__(self) -> int:
        return len(self._projects)
