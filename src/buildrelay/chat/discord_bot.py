"""Discord front-end: ``!build <project>`` and friends."""

from __future__ import annotations

import asyncio
import importlib
import logging
from dataclasses import dataclass, field
from types import ModuleType
from typing import Any

from buildrelay.chat.formatting import (
    format_error,
    format_help,
    format_outcome,
    format_parameters,
    format_project_list,
)
from buildrelay.core.exceptions import BuildRelayError
from buildrelay.engine.orchestrator import BuildOrchestrator

log = logging.getLogger(__name__)

SUBCOMMANDS = ("help", "list", "params", "cancel")


@dataclass
class ChatCommand:
    """A parsed chat command. name is "build" for ``!build <project>``."""

    name: str
    args: list[str] = field(default_factory=list)


def parse_command(content: str, prefix: str) -> ChatCommand | None:
    """Parse a message; return None when it is not addressed to the bot."""
    if not content.startswith(prefix):
        return None
    rest = content[len(prefix):]
    if rest and not rest[0].isspace():
        # e.g. "!buildx" with prefix "!build"
        return None
    tokens = rest.split()
    if not tokens:
        return ChatCommand(name="build")
    head = tokens[0].lower()
    if head in SUBCOMMANDS:
        return ChatCommand(name=head, args=tokens[1:])
    return ChatCommand(name="build", args=tokens)


class DiscordBot:
    """Discord bot relaying build commands to a BuildOrchestrator."""

    max_message_size = 2000
    _TRUNCATION_SUFFIX = "\n[...truncated...]"

    def __init__(self, orchestrator: BuildOrchestrator, token: str, prefix: str = "!build") -> None:
        self._orchestrator = orchestrator
        self._token = token
        self._prefix = prefix
        self._client: Any = None
        # (channel id, project) -> cancellation tokens of builds tracked there
        self._active: dict[tuple[object, str], set[asyncio.Event]] = {}

    async def start(self) -> None:
        """Connect to Discord and dispatch messages until stopped."""
        if not self._token:
            raise ValueError("DISCORD_TOKEN is required to start the Discord bot")
        discord: ModuleType = importlib.import_module("discord")
        intents = discord.Intents.default()
        intents.guilds = True
        intents.messages = True
        intents.message_content = True
        self._client = discord.Client(intents=intents)

        async def on_ready() -> None:
            log.info("Logged in as %s", self._client.user)

        async def on_message(message: Any) -> None:
            await self.handle_message(message)

        self._client.event(on_ready)
        self._client.event(on_message)
        await self._client.start(self._token)

    async def stop(self) -> None:
        for tokens in self._active.values():
            for cancel in tokens:
                cancel.set()
        if self._client is not None:
            await self._client.close()

    async def handle_message(self, message: Any) -> None:
        """Handle one incoming message; ignores bots and messages without the prefix."""
        if getattr(message.author, "bot", False):
            return
        command = parse_command(message.content or "", self._prefix)
        if command is None:
            return
        log.debug("Command %s %s from %s", command.name, command.args, message.author)

        if command.name == "help":
            await self._reply(message, format_help(self._prefix, self._orchestrator.list_projects()))
        elif command.name == "list":
            await self._reply(message, format_project_list(self._orchestrator.list_projects()))
        elif command.name == "params":
            await self._show_parameters(message, command.args)
        elif command.name == "cancel":
            await self._cancel(message, command.args)
        else:
            await self._build(message, command.args)

    async def _build(self, message: Any, args: list[str]) -> None:
        if not args:
            await self._reply(message, f"Please specify a project name. Example: `{self._prefix} frontend`")
            return
        project = args[0].lower()
        key = (self._channel_id(message), project)
        cancel = asyncio.Event()
        self._active.setdefault(key, set()).add(cancel)

        async def notify(text: str) -> None:
            await self._reply(message, text)

        try:
            outcome = await self._orchestrator.run_build(project, notify=notify, cancel=cancel)
        except BuildRelayError as e:
            await self._reply(message, format_error(e))
            return
        finally:
            tokens = self._active.get(key)
            if tokens is not None:
                tokens.discard(cancel)
                if not tokens:
                    del self._active[key]
        await self._reply(message, format_outcome(outcome))

    async def _show_parameters(self, message: Any, args: list[str]) -> None:
        if not args:
            await self._reply(message, f"Please specify a project name. Example: `{self._prefix} params frontend`")
            return
        project = args[0].lower()
        try:
            definitions = await self._orchestrator.get_parameters(project)
        except BuildRelayError as e:
            await self._reply(message, format_error(e))
            return
        await self._reply(message, format_parameters(project, definitions))

    async def _cancel(self, message: Any, args: list[str]) -> None:
        if not args:
            await self._reply(message, f"Please specify a project name. Example: `{self._prefix} cancel frontend`")
            return
        project = args[0].lower()
        tokens = self._active.get((self._channel_id(message), project))
        if not tokens:
            await self._reply(message, f"No build for {project} is being tracked in this channel.")
            return
        for cancel in tokens:
            cancel.set()
        await self._reply(message, f"Cancelling tracking of {len(tokens)} build(s) for {project}...")

    @staticmethod
    def _channel_id(message: Any) -> object:
        channel = getattr(message, "channel", None)
        return getattr(channel, "id", None)

    async def _reply(self, message: Any, text: str) -> None:
        if len(text) > self.max_message_size:
            text = text[: self.max_message_size - len(self._TRUNCATION_SUFFIX)] + self._TRUNCATION_SUFFIX
        await message.reply(text)
