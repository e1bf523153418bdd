"""Data models for rubel entities."""

from rubel.models._base import RubelBaseModel, Timestamp, parse_timestamp
from rubel.models.command import CommandResult
from rubel.models.email import EmailQueueItem
from rubel.models.feature import Feature
from rubel.models.logs import CommandLogEntry, CommandLogKind, GpsLogEntry, PhotoLogEntry
from rubel.models.snapshot import PersistedState, StoreSnapshot

__all__ = [
    "CommandLogEntry",
    "CommandLogKind",
    "CommandResult",
    "EmailQueueItem",
    "Feature",
    "GpsLogEntry",
    "PersistedState",
    "PhotoLogEntry",
    "RubelBaseModel",
    "StoreSnapshot",
    "Timestamp",
    "parse_timestamp",
]
