"""Render build results and command replies as chat messages."""

from __future__ import annotations

from buildrelay.core.exceptions import BuildRelayError, ErrorKind
from buildrelay.core.schema import BuildOutcome, BuildStatus, ParameterDefinition, Project

STATUS_EMOJI: dict[BuildStatus, str] = {
    BuildStatus.SUCCESS: "✅",
    BuildStatus.FAILURE: "❌",
    BuildStatus.UNSTABLE: "⚠️",
}
DEFAULT_EMOJI = "❓"


def status_emoji(status: BuildStatus) -> str:
    return STATUS_EMOJI.get(status, DEFAULT_EMOJI)


def format_outcome(outcome: BuildOutcome) -> str:
    return (
        f"{status_emoji(outcome.result)} Build #{outcome.build_number} for {outcome.project_name} "
        f"finished with status: {outcome.result.value}"
    )


def format_project_list(projects: list[Project]) -> str:
    names = ", ".join(p.name for p in projects) or "(none)"
    return f"**Available projects:** {names}"


def format_help(prefix: str, projects: list[Project]) -> str:
    return "\n".join(
        [
            "**Jenkins Bot Commands**",
            f"- `{prefix} [project-name]` - Build a specific project",
            f"- `{prefix} params [project-name]` - Show a project's build parameters",
            f"- `{prefix} cancel [project-name]` - Stop tracking a running build in this channel",
            f"- `{prefix} help` - Show this help message",
            f"- `{prefix} list` - List available projects",
            "",
            format_project_list(projects),
        ]
    )


def format_parameters(project_name: str, definitions: list[ParameterDefinition]) -> str:
    if not definitions:
        return f"Project {project_name} has no build parameters."
    lines = [f"**Parameters for {project_name}:**"]
    for p in definitions:
        default = "None" if p.default_value is None else f"`{p.default_value}`"
        line = f"- `{p.name}` ({p.kind or 'unknown'}): {p.description or 'No description'} (default: {default})"
        if p.choices:
            line += f" choices: {', '.join(p.choices)}"
        lines.append(line)
    return "\n".join(lines)


def format_error(error: BuildRelayError) -> str:
    if error.kind is ErrorKind.CANCELLED:
        return f"🛑 {error.message}"
    return error.message
