"""Email sync payloads and the mail-client handoff.

The core never sends mail.  It builds subject/body pairs, queues them in
the store, and hands ``(address, subject, body)`` to an
:class:`EmailComposer` supplied by the host.
"""

from __future__ import annotations

import logging
import webbrowser
from collections.abc import Callable
from datetime import datetime
from typing import Protocol
from urllib.parse import quote

from rubel._constants import APP_NAME, SYNC_EMAIL_SUBJECT
from rubel.exceptions import RubelError, ValidationError
from rubel.models.snapshot import StoreSnapshot

_logger = logging.getLogger(__name__)


def _format_time(now: datetime) -> str:
    return now.strftime("%Y-%m-%d %H:%M:%S %Z").strip()


def _enabled_names(snapshot: StoreSnapshot) -> str:
    return ", ".join(f.name for f in snapshot.enabled_features)


def build_sync_email(snapshot: StoreSnapshot, now: datetime) -> tuple[str, str]:
    """Subject and body queued by the ``sync-email`` command."""
    body = f"Sync request at {_format_time(now)}\nFeatures: {_enabled_names(snapshot)}"
    return SYNC_EMAIL_SUBJECT, body


def build_sync_report(snapshot: StoreSnapshot, now: datetime) -> tuple[str, str]:
    """Subject and body of the full report handed to a mail client."""
    body = (
        f"{APP_NAME} Sync Report\n"
        f"Date: {_format_time(now)}\n\n"
        f"Active Features: {_enabled_names(snapshot)}\n"
        f"Total Features: {len(snapshot.features)}\n"
        f"Queue Items: {len(snapshot.email_queue)}"
    )
    return SYNC_EMAIL_SUBJECT, body


def build_mailto_url(address: str, subject: str, body: str) -> str:
    """Return a ``mailto:`` URL with percent-encoded subject and body."""
    return f"mailto:{quote(address, safe='@')}?subject={quote(subject, safe='')}&body={quote(body, safe='')}"


class EmailComposer(Protocol):
    """Host-provided mail client handoff."""

    def compose(self, address: str, subject: str, body: str) -> None: ...


class MailtoComposer:
    """Open the platform mail client through a ``mailto:`` URL."""

    def __init__(self, opener: Callable[[str], bool] = webbrowser.open) -> None:
        self._opener = opener

    def compose(self, address: str, subject: str, body: str) -> None:
        if not address.strip():
            raise ValidationError("No email configured. Set it in Settings first.")
        url = build_mailto_url(address, subject, body)
        if not self._opener(url):
            raise RubelError("No mail client available to open the sync report")
        _logger.debug("Mail client opened for sync report (%d chars)", len(body))
