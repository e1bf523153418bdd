"""rubel - State and command core for a local-only control panel."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("rubel-engine")
except PackageNotFoundError:
    __version__ = "0+local"
from rubel.capture import CaptureAdapter, LocationSample, LocationTracker
from rubel.commands import CommandInterpreter, Verb
from rubel.config import RubelConfig
from rubel.email import EmailComposer, MailtoComposer
from rubel.engine import RubelEngine
from rubel.exceptions import (
    NotFoundError,
    PersistenceError,
    RubelConfigError,
    RubelError,
    UnknownCommandError,
    ValidationError,
)
from rubel.models import (
    CommandLogEntry,
    CommandLogKind,
    CommandResult,
    EmailQueueItem,
    Feature,
    GpsLogEntry,
    PersistedState,
    PhotoLogEntry,
    StoreSnapshot,
)
from rubel.persistence import FileBackend, KeyValueBackend, MemoryBackend, PersistenceGateway
from rubel.state import EntityStore, StorageKey

__all__ = [
    "__version__",
    "CaptureAdapter",
    "CommandInterpreter",
    "CommandLogEntry",
    "CommandLogKind",
    "CommandResult",
    "EmailComposer",
    "EmailQueueItem",
    "EntityStore",
    "Feature",
    "FileBackend",
    "GpsLogEntry",
    "KeyValueBackend",
    "LocationSample",
    "LocationTracker",
    "MailtoComposer",
    "MemoryBackend",
    "NotFoundError",
    "PersistedState",
    "PersistenceError",
    "PersistenceGateway",
    "PhotoLogEntry",
    "RubelConfig",
    "RubelConfigError",
    "RubelEngine",
    "RubelError",
    "StorageKey",
    "StoreSnapshot",
    "UnknownCommandError",
    "ValidationError",
    "Verb",
]
