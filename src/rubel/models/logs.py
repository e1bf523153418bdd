"""Append-only log entry models (GPS, photo, command)."""

from __future__ import annotations

import enum

from pydantic import AliasChoices, Field

from rubel.models._base import RubelBaseModel, Timestamp


class CommandLogKind(enum.StrEnum):
    """Outcome tag stored with each command log entry."""

    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"


class GpsLogEntry(RubelBaseModel):
    """A single recorded location sample."""

    id: str = Field(min_length=1)
    lat: float
    lng: float
    accuracy: int = Field(default=0, ge=0)
    timestamp: Timestamp


class PhotoLogEntry(RubelBaseModel):
    """A captured photo, referenced by an opaque local resource handle."""

    id: str = Field(min_length=1)
    uri: str
    timestamp: Timestamp


class CommandLogEntry(RubelBaseModel):
    """A command line and the message it produced.

    The outcome tag is persisted under ``type``; ``kind`` is accepted too.
    """

    id: str = Field(min_length=1)
    command: str
    result: str
    kind: CommandLogKind = Field(
        default=CommandLogKind.INFO,
        validation_alias=AliasChoices("type", "kind"),
        serialization_alias="type",
    )
    timestamp: Timestamp
