"""Authoritative in-memory entity store.

This is the only component allowed to mutate application state.  Every
mutation commits in memory first, then emits one :class:`StoreChange` for
the touched collection (write-through).
"""

from __future__ import annotations

import logging
import math
import secrets
import threading
from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from typing import TypeVar

from rubel._constants import (
    COMMAND_LOG_CAP,
    DEFAULT_CATEGORY,
    DEFAULT_FEATURES,
    GPS_LOG_CAP,
    PHOTO_LOG_CAP,
)
from rubel.exceptions import NotFoundError, RubelError, ValidationError
from rubel.models.email import EmailQueueItem
from rubel.models.feature import Feature
from rubel.models.logs import CommandLogEntry, CommandLogKind, GpsLogEntry, PhotoLogEntry
from rubel.models.snapshot import PersistedState, StoreSnapshot
from rubel.state.events import StorageKey, StoreChange

_logger = logging.getLogger(__name__)

T = TypeVar("T")

_MAX_ID_ATTEMPTS = 16


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _random_id() -> str:
    return secrets.token_hex(8)


def _prepend_capped(items: list[T], entry: T, cap: int) -> None:
    items.insert(0, entry)
    del items[cap:]


def _coordinate(name: str, value: float) -> float:
    # NaN and infinities serialize as JSON null and would corrupt the whole record.
    if isinstance(value, bool):
        raise ValidationError(f"{name} must be a finite number, got {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be a finite number, got {value!r}") from None
    if not math.isfinite(number):
        raise ValidationError(f"{name} must be a finite number, got {value!r}")
    return number


def default_features(now: datetime) -> list[Feature]:
    """Build the seeded feature list, all stamped with *now*."""
    return [
        Feature(
            id=feature_id,
            name=name,
            description=description,
            category=category,
            enabled=enabled,
            added_at=now,
        )
        for feature_id, name, description, category, enabled in DEFAULT_FEATURES
    ]


class EntityStore:
    """Single source of truth for features, logs, the email queue and settings.

    All public operations are synchronous and serialized behind one lock,
    so capture adapters and the command interpreter may call in from
    different threads.  Readers get immutable :class:`StoreSnapshot`s.

    Clock and id generation are injected so that, given the same calls,
    the store produces the same state.
    """

    def __init__(
        self,
        *,
        clock: Callable[[], datetime] = _utcnow,
        id_factory: Callable[[], str] = _random_id,
        on_change: Callable[[StoreChange], None] | None = None,
        seed_default_features: bool = False,
    ) -> None:
        self._clock = clock
        self._id_factory = id_factory
        self._on_change = on_change
        self._lock = threading.Lock()
        self._sequence = 0

        self._features: list[Feature] = default_features(clock()) if seed_default_features else []
        self._gps_logs: list[GpsLogEntry] = []
        self._photo_logs: list[PhotoLogEntry] = []
        self._command_logs: list[CommandLogEntry] = []
        self._email_queue: list[EmailQueueItem] = []
        self._email_address = ""
        self._is_online = True
        # Feature ids removed during this process; never handed out again.
        self._retired_feature_ids: set[str] = set()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _new_id(self, taken: Iterable[str]) -> str:
        used = set(taken)
        for _ in range(_MAX_ID_ATTEMPTS):
            candidate = self._id_factory()
            if candidate and candidate not in used:
                return candidate
        raise RubelError(f"Could not allocate a unique id after {_MAX_ID_ATTEMPTS} attempts")

    def _current_value(self, key: StorageKey) -> tuple[object, ...] | str:
        if key is StorageKey.FEATURES:
            return tuple(self._features)
        if key is StorageKey.GPS_LOGS:
            return tuple(self._gps_logs)
        if key is StorageKey.PHOTO_LOGS:
            return tuple(self._photo_logs)
        if key is StorageKey.COMMAND_LOGS:
            return tuple(self._command_logs)
        if key is StorageKey.EMAIL_QUEUE:
            return tuple(self._email_queue)
        return self._email_address

    def _emit(self, key: StorageKey) -> None:
        """Publish the committed value of *key*.  Caller holds the lock."""
        self._sequence += 1
        if self._on_change is None:
            return
        change = StoreChange(key=key, value=self._current_value(key), sequence=self._sequence)
        try:
            self._on_change(change)
        except Exception:
            # Durability is best-effort; the in-memory mutation stands.
            _logger.warning("Write-through handler failed for key=%s", key, exc_info=True)

    def _feature_index(self, feature_id: str) -> int:
        for index, feature in enumerate(self._features):
            if feature.id == feature_id:
                return index
        raise NotFoundError(f"Feature not found: {feature_id}", ref=feature_id)

    # ------------------------------------------------------------------
    # Features
    # ------------------------------------------------------------------

    def add_feature(self, name: str, description: str, category: str = DEFAULT_CATEGORY) -> Feature:
        """Append a new, disabled feature.

        Raises :class:`ValidationError` when *name* or *description* is
        empty after trimming.  A blank *category* becomes ``"Custom"``.
        """
        name = (name or "").strip()
        description = (description or "").strip()
        if not name or not description:
            raise ValidationError("Name and description are required.")
        category = (category or "").strip() or DEFAULT_CATEGORY

        with self._lock:
            taken = {f.id for f in self._features} | self._retired_feature_ids
            feature = Feature(
                id=self._new_id(taken),
                name=name,
                description=description,
                category=category,
                enabled=False,
                added_at=self._clock(),
            )
            self._features.append(feature)
            self._emit(StorageKey.FEATURES)
        _logger.debug("Feature added id=%s category=%s", feature.id, feature.category)
        return feature

    def remove_feature(self, feature_id: str) -> Feature | None:
        """Remove a feature; absent ids are a no-op.  Returns the removed feature."""
        with self._lock:
            try:
                index = self._feature_index(feature_id)
            except NotFoundError:
                return None
            removed = self._features.pop(index)
            self._retired_feature_ids.add(removed.id)
            self._emit(StorageKey.FEATURES)
        _logger.debug("Feature removed id=%s", removed.id)
        return removed

    def toggle_feature(self, feature_id: str) -> Feature:
        """Flip ``enabled``.  Raises :class:`NotFoundError` for unknown ids."""
        with self._lock:
            index = self._feature_index(feature_id)
            current = self._features[index]
            updated = current.model_copy(update={"enabled": not current.enabled})
            self._features[index] = updated
            self._emit(StorageKey.FEATURES)
        return updated

    def set_feature_enabled(self, feature_id: str, enabled: bool) -> Feature:
        """Set ``enabled`` explicitly; unchanged values are not written."""
        with self._lock:
            index = self._feature_index(feature_id)
            current = self._features[index]
            if current.enabled == bool(enabled):
                return current
            updated = current.model_copy(update={"enabled": bool(enabled)})
            self._features[index] = updated
            self._emit(StorageKey.FEATURES)
        return updated

    def get_feature(self, feature_id: str) -> Feature | None:
        with self._lock:
            for feature in self._features:
                if feature.id == feature_id:
                    return feature
        return None

    # ------------------------------------------------------------------
    # Capped logs (newest first)
    # ------------------------------------------------------------------

    def append_gps_log(self, lat: float, lng: float, accuracy: int) -> GpsLogEntry:
        if isinstance(accuracy, bool) or not isinstance(accuracy, int) or accuracy < 0:
            raise ValidationError(f"accuracy must be a non-negative integer, got {accuracy!r}")
        lat, lng = _coordinate("lat", lat), _coordinate("lng", lng)
        with self._lock:
            entry = GpsLogEntry(
                id=self._new_id(e.id for e in self._gps_logs),
                lat=lat,
                lng=lng,
                accuracy=accuracy,
                timestamp=self._clock(),
            )
            _prepend_capped(self._gps_logs, entry, GPS_LOG_CAP)
            self._emit(StorageKey.GPS_LOGS)
        return entry

    def append_photo_log(self, uri: str) -> PhotoLogEntry:
        if not uri or not uri.strip():
            raise ValidationError("Photo uri is required.")
        with self._lock:
            entry = PhotoLogEntry(
                id=self._new_id(e.id for e in self._photo_logs),
                uri=uri,
                timestamp=self._clock(),
            )
            _prepend_capped(self._photo_logs, entry, PHOTO_LOG_CAP)
            self._emit(StorageKey.PHOTO_LOGS)
        return entry

    def append_command_log(self, command: str, result: str, kind: CommandLogKind | str) -> CommandLogEntry:
        try:
            kind = CommandLogKind(kind)
        except ValueError:
            raise ValidationError(f"Unknown command log kind: {kind!r}") from None
        with self._lock:
            entry = CommandLogEntry(
                id=self._new_id(e.id for e in self._command_logs),
                command=command,
                result=result,
                kind=kind,
                timestamp=self._clock(),
            )
            _prepend_capped(self._command_logs, entry, COMMAND_LOG_CAP)
            self._emit(StorageKey.COMMAND_LOGS)
        return entry

    def clear_command_logs(self) -> None:
        with self._lock:
            self._command_logs = []
            self._emit(StorageKey.COMMAND_LOGS)

    def clear_gps_logs(self) -> None:
        with self._lock:
            self._gps_logs = []
            self._emit(StorageKey.GPS_LOGS)

    # ------------------------------------------------------------------
    # Email queue and settings
    # ------------------------------------------------------------------

    def enqueue_email(self, subject: str, body: str) -> EmailQueueItem:
        with self._lock:
            item = EmailQueueItem(
                id=self._new_id(e.id for e in self._email_queue),
                subject=subject,
                body=body,
                created_at=self._clock(),
                sent=False,
            )
            self._email_queue.append(item)
            self._emit(StorageKey.EMAIL_QUEUE)
        return item

    def mark_email_sent(self, item_id: str) -> EmailQueueItem:
        """Flag a queued email as handed off.  Raises :class:`NotFoundError`."""
        with self._lock:
            for index, item in enumerate(self._email_queue):
                if item.id == item_id:
                    break
            else:
                raise NotFoundError(f"Email queue item not found: {item_id}", ref=item_id)
            updated = item.model_copy(update={"sent": True})
            self._email_queue[index] = updated
            self._emit(StorageKey.EMAIL_QUEUE)
        return updated

    def set_email_address(self, value: str) -> None:
        """Replace the configured address.  No format validation."""
        with self._lock:
            self._email_address = value
            self._emit(StorageKey.EMAIL_ADDRESS)

    def set_online(self, online: bool) -> None:
        """Record connectivity.  Kept in memory only."""
        with self._lock:
            self._is_online = bool(online)

    # ------------------------------------------------------------------
    # Reads and startup
    # ------------------------------------------------------------------

    def snapshot(self) -> StoreSnapshot:
        """Return a point-in-time, read-only copy of all state."""
        with self._lock:
            return StoreSnapshot(
                features=tuple(self._features),
                gps_logs=tuple(self._gps_logs),
                photo_logs=tuple(self._photo_logs),
                command_logs=tuple(self._command_logs),
                email_queue=tuple(self._email_queue),
                email_address=self._email_address,
                is_online=self._is_online,
                taken_at=self._clock(),
            )

    def restore(self, state: PersistedState) -> None:
        """Install loaded state without writing it back.

        Keys that are ``None`` keep their current (default) value.  Loaded
        logs are truncated to their caps.
        """
        with self._lock:
            if state.features is not None:
                self._features = list(state.features)
            if state.gps_logs is not None:
                self._gps_logs = list(state.gps_logs[:GPS_LOG_CAP])
            if state.photo_logs is not None:
                self._photo_logs = list(state.photo_logs[:PHOTO_LOG_CAP])
            if state.command_logs is not None:
                self._command_logs = list(state.command_logs[:COMMAND_LOG_CAP])
            if state.email_queue is not None:
                self._email_queue = list(state.email_queue)
            if state.email_address is not None:
                self._email_address = state.email_address
        _logger.debug(
            "Store restored features=%d gps=%d photos=%d commands=%d emails=%d",
            len(self._features),
            len(self._gps_logs),
            len(self._photo_logs),
            len(self._command_logs),
            len(self._email_queue),
        )
