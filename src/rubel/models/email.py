"""Outgoing email queue model."""

from __future__ import annotations

from pydantic import Field

from rubel.models._base import RubelBaseModel, Timestamp


class EmailQueueItem(RubelBaseModel):
    """An email waiting for external delivery.

    The core never delivers mail; ``sent`` is flipped by whoever hands the
    item to a mail client.
    """

    id: str = Field(min_length=1)
    subject: str
    body: str
    created_at: Timestamp
    sent: bool = False
