"""Chat front-end."""

from buildrelay.chat.discord_bot import ChatCommand, DiscordBot, parse_command

__all__ = ["ChatCommand", "DiscordBot", "parse_command"]
