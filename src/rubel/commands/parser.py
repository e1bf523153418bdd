"""Tokenizer for the text command protocol."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from rubel.exceptions import UnknownCommandError


class Verb(StrEnum):
    """Every verb the interpreter understands."""

    HELP = "help"
    LIST = "list"
    ENABLE = "enable"
    DISABLE = "disable"
    ADD = "add"
    REMOVE = "remove"
    STATUS = "status"
    CLEAR_LOGS = "clear-logs"
    CLEAR_GPS = "clear-gps"
    SYNC_EMAIL = "sync-email"
    VERSION = "version"


@dataclass(frozen=True, slots=True)
class ParsedCommand:
    """A command line split into a lower-cased verb and positional arguments."""

    verb: str
    args: tuple[str, ...] = ()

    @property
    def text(self) -> str:
        """Arguments re-joined with single spaces, for free-text verbs."""
        return " ".join(self.args)

    @property
    def first_arg(self) -> str | None:
        return self.args[0] if self.args else None


def parse_command(raw: str) -> ParsedCommand:
    """Split *raw* on whitespace; the first token (lower-cased) is the verb."""
    tokens = raw.split()
    if not tokens:
        return ParsedCommand(verb="")
    return ParsedCommand(verb=tokens[0].lower(), args=tuple(tokens[1:]))


def resolve_verb(verb: str) -> Verb:
    try:
        return Verb(verb)
    except ValueError:
        raise UnknownCommandError(
            f"Unknown command: '{verb}'. Type 'help' for available commands.",
            verb=verb,
        ) from None
