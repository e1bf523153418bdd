"""Text command interpreter.

Stateless per invocation: takes a raw line, the current store snapshot and
a mutation handle, performs at most one store mutation and returns a
:class:`CommandResult`.  Recording the command in the command log is the
caller's job.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from typing import Protocol

from rubel._constants import APP_NAME, APP_VERSION, DEFAULT_CATEGORY
from rubel.commands.parser import ParsedCommand, Verb, parse_command, resolve_verb
from rubel.email import build_sync_email
from rubel.exceptions import NotFoundError, RubelError, ValidationError
from rubel.models.command import CommandResult
from rubel.models.email import EmailQueueItem
from rubel.models.feature import Feature
from rubel.models.snapshot import StoreSnapshot

_logger = logging.getLogger(__name__)

HELP_TEXT = "\n".join(
    [
        "Available commands:",
        "  help - show this list",
        "  list - list all features",
        "  enable <id|name> - enable feature",
        "  disable <id|name> - disable feature",
        "  add <name> | <desc> | <category> - add feature",
        "  remove <id> - remove feature",
        "  status - system status",
        "  clear-logs - clear command logs",
        "  clear-gps - clear GPS logs",
        "  sync-email - queue data for email sync",
        "  version - app version",
    ]
)

VERSION_TEXT = f"{APP_NAME} v{APP_VERSION}\nLocal state and command core\n100% offline-capable"

EMPTY_INPUT_MESSAGE = "No command entered. Type 'help' for options."
ADD_USAGE = "Usage: add <name> | <description> | <category>"


class StoreMutations(Protocol):
    """The store operations a command may invoke."""

    def set_feature_enabled(self, feature_id: str, enabled: bool) -> Feature: ...

    def add_feature(self, name: str, description: str, category: str = ...) -> Feature: ...

    def remove_feature(self, feature_id: str) -> Feature | None: ...

    def clear_command_logs(self) -> None: ...

    def clear_gps_logs(self) -> None: ...

    def enqueue_email(self, subject: str, body: str) -> EmailQueueItem: ...


_Handler = Callable[[ParsedCommand, StoreSnapshot, StoreMutations], CommandResult]


def _utcnow() -> datetime:
    return datetime.now(UTC)


def find_feature(features: Iterable[Feature], feature_id: str, name: str) -> Feature | None:
    """Match *feature_id* exactly, else *name* case-insensitively (full string)."""
    candidates = tuple(features)
    for feature in candidates:
        if feature.id == feature_id:
            return feature
    wanted = name.casefold()
    for feature in candidates:
        if feature.name.casefold() == wanted:
            return feature
    return None


def format_feature_list(features: Iterable[Feature]) -> str:
    rows = [f"  [{f.state_label}] {f.id} - {f.name} ({f.category})" for f in features]
    if not rows:
        return "No features registered."
    return f"Features ({len(rows)}):\n" + "\n".join(rows)


class CommandInterpreter:
    """Dispatch parsed commands to their handlers.

    The verb table is closed: construction fails if any :class:`Verb` has
    no handler.
    """

    def __init__(
        self,
        *,
        platform: str = "unknown",
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._platform = platform
        self._clock = clock
        self._handlers: dict[Verb, _Handler] = {
            Verb.HELP: self._help,
            Verb.LIST: self._list,
            Verb.ENABLE: self._enable,
            Verb.DISABLE: self._disable,
            Verb.ADD: self._add,
            Verb.REMOVE: self._remove,
            Verb.STATUS: self._status,
            Verb.CLEAR_LOGS: self._clear_logs,
            Verb.CLEAR_GPS: self._clear_gps,
            Verb.SYNC_EMAIL: self._sync_email,
            Verb.VERSION: self._version,
        }
        missing = [verb.value for verb in Verb if verb not in self._handlers]
        if missing:
            raise RubelError(f"No handler registered for verb(s): {', '.join(missing)}")

    @property
    def verbs(self) -> tuple[Verb, ...]:
        return tuple(self._handlers)

    def execute(self, raw: str, snapshot: StoreSnapshot, store: StoreMutations) -> CommandResult:
        """Interpret one command line.  Never raises for protocol errors."""
        command = parse_command(raw)
        if not command.verb:
            return CommandResult.fail(EMPTY_INPUT_MESSAGE)
        try:
            verb = resolve_verb(command.verb)
            result = self._handlers[verb](command, snapshot, store)
        except RubelError as exc:
            _logger.debug("Command failed verb=%s error=%s", command.verb, type(exc).__name__)
            return CommandResult.fail(str(exc))
        _logger.debug("Command ok verb=%s", verb)
        return result

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def _help(self, command: ParsedCommand, snapshot: StoreSnapshot, store: StoreMutations) -> CommandResult:
        return CommandResult.ok(HELP_TEXT)

    def _list(self, command: ParsedCommand, snapshot: StoreSnapshot, store: StoreMutations) -> CommandResult:
        return CommandResult.ok(format_feature_list(snapshot.features), snapshot.features)

    def _enable(self, command: ParsedCommand, snapshot: StoreSnapshot, store: StoreMutations) -> CommandResult:
        return self._set_enabled(command, snapshot, store, enable=True)

    def _disable(self, command: ParsedCommand, snapshot: StoreSnapshot, store: StoreMutations) -> CommandResult:
        return self._set_enabled(command, snapshot, store, enable=False)

    def _set_enabled(
        self,
        command: ParsedCommand,
        snapshot: StoreSnapshot,
        store: StoreMutations,
        *,
        enable: bool,
    ) -> CommandResult:
        verb = Verb.ENABLE if enable else Verb.DISABLE
        ref = command.first_arg
        if ref is None:
            raise ValidationError(f"Usage: {verb} <feature-id>")
        feature = find_feature(snapshot.features, ref, command.text)
        if feature is None:
            raise NotFoundError(f"Feature not found: {ref}", ref=ref)
        if feature.enabled == enable:
            return CommandResult.ok(f"{feature.name} is already {verb}d.", feature)
        updated = store.set_feature_enabled(feature.id, enable)
        action = "Enabled" if enable else "Disabled"
        return CommandResult.ok(f"{action}: {updated.name}", updated)

    def _add(self, command: ParsedCommand, snapshot: StoreSnapshot, store: StoreMutations) -> CommandResult:
        segments = [segment.strip() for segment in command.text.split("|")]
        if len(segments) < 2:
            raise ValidationError(ADD_USAGE)
        name, description = segments[0], segments[1]
        category = segments[2] if len(segments) > 2 and segments[2] else DEFAULT_CATEGORY
        if not name or not description:
            raise ValidationError("Name and description are required.")
        feature = store.add_feature(name, description, category)
        return CommandResult.ok(f"Feature added: {feature.name} [{feature.category}]", feature)

    def _remove(self, command: ParsedCommand, snapshot: StoreSnapshot, store: StoreMutations) -> CommandResult:
        feature_id = command.first_arg
        if feature_id is None:
            raise ValidationError("Usage: remove <feature-id>")
        feature = snapshot.feature_by_id(feature_id)
        if feature is None:
            raise NotFoundError(f"Feature not found: {feature_id}", ref=feature_id)
        store.remove_feature(feature.id)
        return CommandResult.ok(f"Removed: {feature.name}", feature)

    def _status(self, command: ParsedCommand, snapshot: StoreSnapshot, store: StoreMutations) -> CommandResult:
        enabled = len(snapshot.enabled_features)
        total = len(snapshot.features)
        email = snapshot.email_address or "not configured"
        message = (
            "System Status:\n"
            f"  Features: {enabled}/{total} active\n"
            f"  Email: {email}\n"
            f"  Platform: {self._platform}\n"
            f"  Version: {APP_VERSION}"
        )
        payload = {
            "enabled": enabled,
            "total": total,
            "email_address": snapshot.email_address or None,
            "platform": self._platform,
            "version": APP_VERSION,
        }
        return CommandResult.ok(message, payload)

    def _clear_logs(self, command: ParsedCommand, snapshot: StoreSnapshot, store: StoreMutations) -> CommandResult:
        store.clear_command_logs()
        return CommandResult.ok("Command logs cleared.")

    def _clear_gps(self, command: ParsedCommand, snapshot: StoreSnapshot, store: StoreMutations) -> CommandResult:
        store.clear_gps_logs()
        return CommandResult.ok("GPS logs cleared.")

    def _sync_email(self, command: ParsedCommand, snapshot: StoreSnapshot, store: StoreMutations) -> CommandResult:
        address = snapshot.email_address
        if not address.strip():
            raise ValidationError("No email configured. Set it in Settings first.")
        subject, body = build_sync_email(snapshot, self._clock())
        item = store.enqueue_email(subject, body)
        return CommandResult.ok(f"Email queued for: {address}", item)

    def _version(self, command: ParsedCommand, snapshot: StoreSnapshot, store: StoreMutations) -> CommandResult:
        return CommandResult.ok(VERSION_TEXT)
