from __future__ import annotations

from datetime import UTC, datetime
from urllib.parse import parse_qs, unquote, urlsplit

import pytest

from rubel.email import MailtoComposer, build_mailto_url, build_sync_email, build_sync_report
from rubel.exceptions import RubelError, ValidationError
from rubel.models import EmailQueueItem, Feature, StoreSnapshot

_NOW = datetime(2026, 5, 1, 12, 30, 15, tzinfo=UTC)


def _snapshot() -> StoreSnapshot:
    features = (
        Feature(id="a", name="Torch", description="d", enabled=True, added_at=_NOW),
        Feature(id="b", name="Radar", description="d", added_at=_NOW),
        Feature(id="c", name="Dark Mode", description="d", enabled=True, added_at=_NOW),
    )
    queue = (EmailQueueItem(id="e1", subject="s", body="b", created_at=_NOW),)
    return StoreSnapshot(features=features, email_queue=queue, email_address="a@b.com", taken_at=_NOW)


def test_sync_email_lists_enabled_features() -> None:
    subject, body = build_sync_email(_snapshot(), _NOW)

    assert subject == "Rubel Engine Data Sync"
    assert body == "Sync request at 2026-05-01 12:30:15 UTC\nFeatures: Torch, Dark Mode"


def test_sync_report() -> None:
    _, body = build_sync_report(_snapshot(), _NOW)

    assert body.splitlines() == [
        "Rubel Engine Sync Report",
        "Date: 2026-05-01 12:30:15 UTC",
        "",
        "Active Features: Torch, Dark Mode",
        "Total Features: 3",
        "Queue Items: 1",
    ]


def test_mailto_url_encodes_subject_and_body() -> None:
    url = build_mailto_url("a@b.com", "Data Sync", "line 1\nline 2 & more")

    parts = urlsplit(url)
    query = parse_qs(parts.query)
    assert parts.scheme == "mailto"
    assert unquote(parts.path) == "a@b.com"
    assert query["subject"] == ["Data Sync"]
    assert query["body"] == ["line 1\nline 2 & more"]


def test_mailto_composer_opens_url() -> None:
    opened: list[str] = []

    def _opener(url: str) -> bool:
        opened.append(url)
        return True

    MailtoComposer(_opener).compose("a@b.com", "s", "b")

    assert opened == ["mailto:a@b.com?subject=s&body=b"]


def test_mailto_composer_errors() -> None:
    with pytest.raises(ValidationError):
        MailtoComposer(lambda url: True).compose("  ", "s", "b")
    with pytest.raises(RubelError, match="No mail client"):
        MailtoComposer(lambda url: False).compose("a@b.com", "s", "b")
