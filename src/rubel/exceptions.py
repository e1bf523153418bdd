"""Custom exception hierarchy for rubel."""

from __future__ import annotations


class RubelError(Exception):
    """Base exception for all rubel errors."""


class RubelConfigError(RubelError):
    """Invalid or missing configuration."""


class ValidationError(RubelError):
    """Malformed command arguments or entity fields.

    Raised for required fields that are empty after trimming and for
    malformed ``add`` syntax.  The store is left unchanged.
    """


class NotFoundError(RubelError):
    """A referenced feature id/name or queue item does not exist."""

    def __init__(self, message: str, *, ref: str = "") -> None:
        self.ref = ref
        super().__init__(message)


class UnknownCommandError(RubelError):
    """The command verb is not part of the protocol."""

    def __init__(self, message: str, *, verb: str = "") -> None:
        self.verb = verb
        super().__init__(message)


class PersistenceError(RubelError):
    """Durable read/write failure.

    Always contained by :class:`rubel.persistence.PersistenceGateway`: it
    is logged and swallowed, never surfaced to command callers.
    """

    def __init__(self, message: str, *, key: str = "") -> None:
        self.key = key
        super().__init__(message)
