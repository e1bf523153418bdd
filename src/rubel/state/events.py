"""Store change events.

Every mutation of :class:`rubel.state.store.EntityStore` emits exactly one
:class:`StoreChange` for the collection it touched.  Only the persistence
layer consumes them.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class StorageKey(StrEnum):
    """The six independently persisted records."""

    FEATURES = "features"
    GPS_LOGS = "gpsLogs"
    PHOTO_LOGS = "photoLogs"
    COMMAND_LOGS = "commandLogs"
    EMAIL_QUEUE = "emailQueue"
    EMAIL_ADDRESS = "emailAddress"


class StoreChange(BaseModel):
    """The new full value of one collection after a committed mutation."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    key: StorageKey
    value: Any = Field(..., description="Tuple of entities, or the email address string")
    sequence: int = Field(..., ge=1, description="Monotonic per-store mutation counter")
