"""Read-only, point-in-time view of the whole store."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from rubel.models.email import EmailQueueItem
from rubel.models.feature import Feature
from rubel.models.logs import CommandLogEntry, GpsLogEntry, PhotoLogEntry


class StoreSnapshot(BaseModel):
    """Immutable copy of all store state, used for presentation and tests."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    features: tuple[Feature, ...] = ()
    gps_logs: tuple[GpsLogEntry, ...] = ()
    photo_logs: tuple[PhotoLogEntry, ...] = ()
    command_logs: tuple[CommandLogEntry, ...] = ()
    email_queue: tuple[EmailQueueItem, ...] = ()
    email_address: str = ""
    is_online: bool = True
    taken_at: datetime

    @property
    def enabled_features(self) -> tuple[Feature, ...]:
        return tuple(f for f in self.features if f.enabled)

    @property
    def pending_emails(self) -> tuple[EmailQueueItem, ...]:
        return tuple(item for item in self.email_queue if not item.sent)

    def feature_by_id(self, feature_id: str) -> Feature | None:
        for feature in self.features:
            if feature.id == feature_id:
                return feature
        return None


class PersistedState(BaseModel):
    """State read back from durable storage.

    ``None`` means the key was absent (or unreadable) and the store keeps
    its own default for that collection.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    features: tuple[Feature, ...] | None = None
    gps_logs: tuple[GpsLogEntry, ...] | None = None
    photo_logs: tuple[PhotoLogEntry, ...] | None = None
    command_logs: tuple[CommandLogEntry, ...] | None = None
    email_queue: tuple[EmailQueueItem, ...] | None = None
    email_address: str | None = None
