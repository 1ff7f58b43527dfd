"""CLI entry point for buildrelay."""

from __future__ import annotations

import asyncio
import logging
from contextlib import nullcontext
from pathlib import Path
from typing import NoReturn

import click

from buildrelay import __version__
from buildrelay.chat.discord_bot import DiscordBot
from buildrelay.chat.formatting import status_emoji
from buildrelay.client.jenkins_client import JenkinsClient
from buildrelay.core.config import AppConfig, ConfigManager
from buildrelay.core.exceptions import BuildRelayError
from buildrelay.core.health import HealthChecker
from buildrelay.core.registry import ProjectRegistry
from buildrelay.core.schema import BuildOutcome, ParameterDefinition
from buildrelay.engine.orchestrator import BuildOrchestrator
from buildrelay.engine.run_log import run_log_context
from buildrelay.protocols.ci_client import CIClient


def _load_config(config_path: Path | None = None) -> ConfigManager:
    """Load .env and YAML config from the project root (or the given YAML file)."""
    config = ConfigManager(config_path=config_path)
    config.load()
    return config


def _create_client(config: AppConfig) -> CIClient:
    """Return the CI client for the configured server. Tests substitute a fake here."""
    return JenkinsClient.from_config(config.jenkins)


def _fail(error: BuildRelayError) -> NoReturn:
    click.echo(error.message, err=True)
    raise SystemExit(1)


async def _run_build(config: AppConfig, project: str) -> BuildOutcome:
    ProjectRegistry(config.projects).resolve(project)
    client = _create_client(config)
    try:
        orchestrator = BuildOrchestrator.from_config(config, client)

        async def notify(text: str) -> None:
            click.echo(text)

        return await orchestrator.run_build(project, notify=notify)
    finally:
        await client.aclose()


async def _get_parameters(config: AppConfig, project: str) -> list[ParameterDefinition]:
    ProjectRegistry(config.projects).resolve(project)
    client = _create_client(config)
    try:
        return await BuildOrchestrator.from_config(config, client).get_parameters(project)
    finally:
        await client.aclose()


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False),
    help="YAML config file (default: <project root>/config/default.yaml).",
)
@click.pass_context
def main(ctx: click.Context, config_path: Path | None) -> None:
    """buildrelay: trigger Jenkins builds for named projects and wait for the result."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


@main.command()
@click.argument("project")
@click.option("--log-file", type=click.Path(path_type=Path, dir_okay=False), help="Write the run log to this file.")
@click.option("--verbose", "-v", is_flag=True, help="Verbose logging (DEBUG level, includes every poll).")
@click.option("--interval", type=click.FloatRange(min=0), help="Seconds between polls (overrides config).")
@click.option("--queue-timeout", type=click.FloatRange(min=0), help="Max seconds to wait for the build to start.")
@click.option("--build-timeout", type=click.FloatRange(min=0), help="Max seconds to wait for the build to finish.")
@click.pass_context
def build(
    ctx: click.Context,
    project: str,
    log_file: Path | None,
    verbose: bool,
    interval: float | None,
    queue_timeout: float | None,
    build_timeout: float | None,
) -> None:
    """Build PROJECT with its default parameters and wait for it to finish."""
    try:
        cfg = _load_config(ctx.obj["config_path"]).config
    except BuildRelayError as e:
        _fail(e)
    overrides = {
        key: value
        for key, value in (
            ("interval", interval),
            ("queue_timeout", queue_timeout),
            ("build_timeout", build_timeout),
        )
        if value is not None
    }
    if overrides:
        cfg = cfg.model_copy(update={"polling": cfg.polling.model_copy(update=overrides)})
    if verbose and log_file is None:
        logging.basicConfig(level=logging.DEBUG, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    log_ctx = run_log_context(log_file, verbose=verbose) if log_file else nullcontext()
    try:
        with log_ctx:
            outcome = asyncio.run(_run_build(cfg, project.lower()))
    except BuildRelayError as e:
        _fail(e)
    except KeyboardInterrupt:
        click.echo("Interrupted; the build keeps running on the server.", err=True)
        raise SystemExit(130)
    click.echo(
        f"{status_emoji(outcome.result)} Build #{outcome.build_number} for {outcome.project_name} "
        f"completed with status: {outcome.result.value}"
    )
    if log_file:
        click.echo(f"Run log: {log_file}")


@main.command("list")
@click.pass_context
def list_projects(ctx: click.Context) -> None:
    """List available projects and their Jenkins jobs."""
    try:
        cfg = _load_config(ctx.obj["config_path"]).config
    except BuildRelayError as e:
        _fail(e)
    click.echo("Available projects:")
    for project in ProjectRegistry(cfg.projects).list_projects():
        click.echo(f"- {project.name} (Jenkins job: {project.job_name})")


@main.command()
@click.argument("project")
@click.pass_context
def params(ctx: click.Context, project: str) -> None:
    """Show the build parameters of PROJECT's job."""
    try:
        cfg = _load_config(ctx.obj["config_path"]).config
        definitions = asyncio.run(_get_parameters(cfg, project.lower()))
    except BuildRelayError as e:
        _fail(e)
    if not definitions:
        click.echo(f"Project {project.lower()} has no build parameters.")
        return
    click.echo("Parameters:")
    for p in definitions:
        click.echo(f"- {p.name} ({p.kind or 'unknown'})")
        click.echo(f"  Description: {p.description or 'No description'}")
        click.echo(f"  Default value: {'None' if p.default_value is None else p.default_value}")
        if p.choices:
            click.echo(f"  Choices: {', '.join(p.choices)}")


@main.command()
@click.option("--verbose", "-v", is_flag=True, help="Show detailed output for passing checks too.")
@click.option("--skip-jenkins", is_flag=True, help="Skip the Jenkins connectivity check.")
@click.option("--skip-discord", is_flag=True, help="Skip the Discord token check.")
@click.pass_context
def check(ctx: click.Context, verbose: bool, skip_jenkins: bool, skip_discord: bool) -> None:
    """Verify Jenkins credentials, project map, and Discord setup."""
    try:
        config = _load_config(ctx.obj["config_path"])
    except BuildRelayError as e:
        _fail(e)
    checker = HealthChecker(config=config, client_factory=lambda: _create_client(config.config))
    results = asyncio.run(checker.check_all(skip_jenkins=skip_jenkins, skip_discord=skip_discord))
    for r in results:
        status = "OK" if r.ok else "FAIL"
        click.echo(f"  {r.name}: {status}")
        if verbose or not r.ok:
            click.echo(f"    {r.message}")
        if not r.ok and r.suggestion:
            click.echo(f"    → {r.suggestion}")
    if all(r.ok for r in results):
        click.echo("All checks passed.")
    else:
        click.echo("Some checks failed. Fix the issues above or follow the suggested steps.", err=True)
        raise SystemExit(1)


@main.command()
@click.pass_context
def chat(ctx: click.Context) -> None:
    """Run the Discord bot (``!build <project>``)."""
    try:
        cfg = _load_config(ctx.obj["config_path"]).config
    except BuildRelayError as e:
        _fail(e)
    if not cfg.discord.token:
        click.echo("DISCORD_TOKEN is not set. Add it to .env or the 'discord:' config section.", err=True)
        raise SystemExit(1)

    async def serve() -> None:
        client = _create_client(cfg)
        bot = DiscordBot(BuildOrchestrator.from_config(cfg, client), cfg.discord.token, cfg.discord.prefix)
        try:
            await bot.start()
        finally:
            await bot.stop()
            await client.aclose()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    try:
        asyncio.run(serve())
    except BuildRelayError as e:
        _fail(e)
    except KeyboardInterrupt:
        click.echo("Stopped.")
