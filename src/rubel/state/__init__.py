"""State/store layer.

This package is the single source of truth for application entities.
Command interpreter and capture adapters mutate state only through
:class:`EntityStore`; the persistence layer only observes its
:class:`StoreChange` events.
"""

from rubel.state.events import StorageKey, StoreChange
from rubel.state.store import EntityStore, default_features

__all__ = [
    "EntityStore",
    "StorageKey",
    "StoreChange",
    "default_features",
]
