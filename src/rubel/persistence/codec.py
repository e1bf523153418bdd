"""Per-key serialization of store records.

Collections are stored as JSON arrays of camelCase objects; the email
address is stored as a JSON string.  Unknown object keys are ignored on
read so newer records stay loadable.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from rubel.exceptions import PersistenceError
from rubel.models.email import EmailQueueItem
from rubel.models.feature import Feature
from rubel.models.logs import CommandLogEntry, GpsLogEntry, PhotoLogEntry
from rubel.state.events import StorageKey

_COLLECTION_ADAPTERS: dict[StorageKey, TypeAdapter[Any]] = {
    StorageKey.FEATURES: TypeAdapter(tuple[Feature, ...]),
    StorageKey.GPS_LOGS: TypeAdapter(tuple[GpsLogEntry, ...]),
    StorageKey.PHOTO_LOGS: TypeAdapter(tuple[PhotoLogEntry, ...]),
    StorageKey.COMMAND_LOGS: TypeAdapter(tuple[CommandLogEntry, ...]),
    StorageKey.EMAIL_QUEUE: TypeAdapter(tuple[EmailQueueItem, ...]),
}


def encode_value(key: StorageKey, value: Any) -> str:
    """Serialize the full value of one key."""
    if key is StorageKey.EMAIL_ADDRESS:
        if not isinstance(value, str):
            raise PersistenceError(f"{key} must be a string, got {type(value).__name__}", key=key)
        return json.dumps(value, ensure_ascii=False)
    adapter = _COLLECTION_ADAPTERS[key]
    try:
        return adapter.dump_json(tuple(value), by_alias=True).decode("utf-8")
    except (TypeError, ValueError) as exc:
        raise PersistenceError(f"Could not serialize {key}: {exc}", key=key) from exc


def decode_value(key: StorageKey, text: str) -> Any:
    """Parse the stored text of one key.

    Raises :class:`PersistenceError` when the text is not a valid record.
    """
    if key is StorageKey.EMAIL_ADDRESS:
        try:
            value = json.loads(text)
        except json.JSONDecodeError:
            # Plain, unquoted text is accepted as the address itself.
            return text
        if not isinstance(value, str):
            raise PersistenceError(f"{key} is not a string", key=key)
        return value
    adapter = _COLLECTION_ADAPTERS[key]
    try:
        return adapter.validate_json(text)
    except PydanticValidationError as exc:
        raise PersistenceError(f"Corrupt {key} record: {exc.error_count()} error(s)", key=key) from exc
