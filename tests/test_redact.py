from __future__ import annotations

from rubel._redact import mask_email, redact_for_log


def test_mask_email_keeps_first_character_and_domain() -> None:
    assert mask_email("send to alice@example.com now") == "send to a***@example.com now"


def test_redact_for_log_hides_photo_handles_and_bodies() -> None:
    payload = [
        {"id": "p1", "uri": "content://media/external/images/1"},
        {"id": "e1", "subject": "Sync", "body": "Features: Torch"},
    ]

    redacted = redact_for_log(payload)

    assert redacted[0] == {"id": "p1", "uri": "<redacted>"}
    assert redacted[1]["body"] == "<redacted>"
    assert redacted[1]["subject"] == "Sync"


def test_redact_for_log_rounds_coordinates() -> None:
    redacted = redact_for_log({"lat": 52.370216, "lng": 4.895168, "accuracy": 12})

    assert redacted == {"lat": 52.37, "lng": 4.9, "accuracy": 12}


def test_redact_for_log_masks_nested_email_address() -> None:
    redacted = redact_for_log({"emailAddress": "bob@example.org"})

    assert redacted["emailAddress"] == "b***@example.org"


def test_redact_for_log_truncates_long_strings() -> None:
    redacted = redact_for_log({"value": "x" * 600}, max_string=10)

    assert redacted["value"].startswith("x" * 10)
    assert "<truncated>" in redacted["value"]
