"""Feature toggle model."""

from __future__ import annotations

from pydantic import Field

from rubel._constants import DEFAULT_CATEGORY
from rubel.models._base import RubelBaseModel, Timestamp


class Feature(RubelBaseModel):
    """A toggleable capability record.

    Parameters
    ----------
    id : str
        Opaque identifier, unique within the feature collection.
    name : str
        Display name; also accepted by ``enable``/``disable`` lookups.
    description : str
        Short human-readable description.
    category : str
        Free-form grouping tag (``Sensors``, ``UI``, ``Custom``...).
    enabled : bool
        Whether the feature is switched on.
    added_at : datetime
        Creation time (UTC).
    """

    id: str = Field(min_length=1)
    name: str
    description: str
    category: str = DEFAULT_CATEGORY
    enabled: bool = False
    added_at: Timestamp

    @property
    def state_label(self) -> str:
        return "ON " if self.enabled else "OFF"
