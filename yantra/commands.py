"""Parsing of slash commands typed into the chat input."""

from __future__ import annotations

from dataclasses import dataclass

_VALID_COMMANDS = frozenset({"new", "sessions", "switch", "cancel", "clear", "help", "quit"})

_HELP_TEXT = """Available commands:
  /new [name]     Create a new session
  /sessions       List all sessions
  /switch <id>    Switch to a session by ID
  /cancel         Cancel the current turn
  /clear          Clear the chat display
  /help           Show this help message
  /quit           Exit the TUI

Shortcuts:
  Enter           Send message
  Alt+Enter       Insert newline
  Ctrl+C          Cancel turn / quit
  Esc             Cancel current turn"""


@dataclass(frozen=True)
class SlashCommand:
    """A parsed "/name args" command."""

    name: str
    args: str = ""


def parse_slash_command(text: str) -> SlashCommand | None:
    """Parse ``text`` as a slash command, or return None if it is not one."""
    text = text.strip()
    if not text.startswith("/"):
        return None
    name, _, rest = text[1:].partition(" ")
    return SlashCommand(name=name.lower(), args=rest.strip())


def is_valid_command(name: str) -> bool:
    """Return True if ``name`` is a recognised command."""
    return name in _VALID_COMMANDS


def help_text() -> str:
    """Return the help listing for all slash commands."""
    return _HELP_TEXT