"""Base model and timestamp type for persisted rubel entities.

Every entity model inherits from :class:`RubelBaseModel` which provides:

* ``alias_generator=to_camel`` so the persisted camelCase keys
  (``addedAt``, ``createdAt``) map to snake_case fields.
* ``frozen=True``: entities are immutable once constructed; the store
  replaces an entity instead of mutating it.
* ``extra="ignore"`` so records written by a newer version load cleanly.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated, Any

from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict
from pydantic.alias_generators import to_camel

# Threshold to distinguish seconds from milliseconds.
_MS_THRESHOLD = 1_000_000_000_000


def parse_timestamp(value: Any) -> Any:
    """Convert an epoch timestamp (seconds **or** milliseconds) to a UTC datetime.

    Any other value (ISO strings, datetimes) is passed through for pydantic
    to parse.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        ts = float(value)
        if ts >= _MS_THRESHOLD:
            ts /= 1000.0
        return datetime.fromtimestamp(ts, tz=UTC)
    return value


def ensure_tz_aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


Timestamp = Annotated[datetime, BeforeValidator(parse_timestamp), AfterValidator(ensure_tz_aware)]
"""Annotated type that accepts ISO strings, datetimes or epoch numbers and yields aware datetimes."""


class RubelBaseModel(BaseModel):
    """Base for persisted entity models."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    def to_record(self) -> dict[str, Any]:
        """Return the JSON-ready persisted form (camelCase keys, ISO timestamps)."""
        return self.model_dump(mode="json", by_alias=True)
