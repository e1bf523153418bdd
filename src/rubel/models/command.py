"""Structured result returned by the command interpreter."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict

from rubel.models.logs import CommandLogKind


class CommandResult(BaseModel):
    """Outcome of one interpreted command line.

    Parameters
    ----------
    success : bool
        Whether the command was accepted.
    message : str
        Human-readable, possibly multi-line message.
    payload : Any
        Optional structured data (a feature, a listing, a status dict...).
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    success: bool
    message: str
    payload: Any = None

    @classmethod
    def ok(cls, message: str, payload: Any = None) -> CommandResult:
        return cls(success=True, message=message, payload=payload)

    @classmethod
    def fail(cls, message: str) -> CommandResult:
        return cls(success=False, message=message)

    @property
    def log_kind(self) -> CommandLogKind:
        """Command log tag for this result."""
        return CommandLogKind.SUCCESS if self.success else CommandLogKind.ERROR
