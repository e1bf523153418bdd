"""Text command protocol: parser, verb table and interpreter."""

from rubel.commands.interpreter import (
    HELP_TEXT,
    VERSION_TEXT,
    CommandInterpreter,
    StoreMutations,
    find_feature,
    format_feature_list,
)
from rubel.commands.parser import ParsedCommand, Verb, parse_command, resolve_verb

__all__ = [
    "HELP_TEXT",
    "VERSION_TEXT",
    "CommandInterpreter",
    "ParsedCommand",
    "StoreMutations",
    "Verb",
    "find_feature",
    "format_feature_list",
    "parse_command",
    "resolve_verb",
]
