"""Durable mirror of the entity store.

Loads every key independently at startup and writes the changed key on
every store mutation.  Nothing in here ever raises into the caller:
persistence failures are logged and counted.
"""

from __future__ import annotations

import logging
from typing import Any

from rubel._redact import redact_for_log
from rubel.exceptions import PersistenceError
from rubel.models.snapshot import PersistedState
from rubel.persistence.backends import KeyValueBackend
from rubel.persistence.codec import decode_value, encode_value
from rubel.persistence.writer import WriteQueue
from rubel.state.events import StorageKey, StoreChange

_logger = logging.getLogger(__name__)

_STATE_FIELDS: dict[StorageKey, str] = {
    StorageKey.FEATURES: "features",
    StorageKey.GPS_LOGS: "gps_logs",
    StorageKey.PHOTO_LOGS: "photo_logs",
    StorageKey.COMMAND_LOGS: "command_logs",
    StorageKey.EMAIL_QUEUE: "email_queue",
    StorageKey.EMAIL_ADDRESS: "email_address",
}


class PersistenceGateway:
    """Read/write store records through a :class:`KeyValueBackend`."""

    def __init__(self, backend: KeyValueBackend, *, write_timeout: float = 5.0) -> None:
        self._backend = backend
        self._writer = WriteQueue(backend, timeout=write_timeout)
        self.load_errors: dict[StorageKey, PersistenceError] = {}

    @property
    def backend(self) -> KeyValueBackend:
        return self._backend

    @property
    def writer(self) -> WriteQueue:
        return self._writer

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        self._writer.start()

    def stop(self, timeout: float | None = None) -> None:
        self._writer.stop(timeout)

    def flush(self, timeout: float | None = None) -> bool:
        return self._writer.flush(timeout)

    # ------------------------------------------------------------------
    # Load
    # ------------------------------------------------------------------

    def load(self) -> PersistedState:
        """Read all six keys.

        An absent key, a read failure or an undecodable value yields
        ``None`` for that key only; the rest still load.
        """
        self.load_errors = {}
        values: dict[str, Any] = {}
        for key, field_name in _STATE_FIELDS.items():
            values[field_name] = self._load_key(key)
        state = PersistedState(**values)
        _logger.debug(
            "Loaded persisted state present=%s failed=%s",
            [key.value for key, name in _STATE_FIELDS.items() if values[name] is not None],
            [key.value for key in self.load_errors],
        )
        return state

    def _load_key(self, key: StorageKey) -> Any:
        try:
            text = self._backend.read(key)
        except Exception as exc:
            error = exc if isinstance(exc, PersistenceError) else PersistenceError(str(exc), key=key)
            self.load_errors[key] = error
            _logger.warning("Could not read key=%s, using default: %s", key, exc)
            return None
        if text is None:
            return None
        try:
            return decode_value(key, text)
        except PersistenceError as exc:
            self.load_errors[key] = exc
            _logger.warning("Ignoring unreadable key=%s, using default: %s", key, exc)
            return None

    # ------------------------------------------------------------------
    # Save
    # ------------------------------------------------------------------

    def save(self, key: StorageKey, value: Any) -> None:
        """Serialize *value* and queue it as the new record for *key*."""
        try:
            payload = encode_value(key, value)
        except PersistenceError as exc:
            _logger.warning("Not persisting key=%s: %s", key, exc)
            return
        if _logger.isEnabledFor(logging.DEBUG):
            _logger.debug("Queueing key=%s value=%s", key, redact_for_log(_preview(value)))
        self._writer.submit(key, payload)

    def handle_change(self, change: StoreChange) -> None:
        """Store ``on_change`` hook."""
        self.save(change.key, change.value)


def _preview(value: Any) -> Any:
    if isinstance(value, tuple):
        return [item.to_record() for item in value[:3]] + ([f"... {len(value) - 3} more"] if len(value) > 3 else [])
    return {"emailAddress": value}
