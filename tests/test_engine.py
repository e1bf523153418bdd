from __future__ import annotations

import itertools
import json
import threading
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from rubel import RubelConfig, RubelEngine
from rubel.capture import LocationSample
from rubel.exceptions import ValidationError
from rubel.models.logs import CommandLogKind
from rubel.persistence import MemoryBackend


class _Clock:
    def __init__(self) -> None:
        self.now = datetime(2026, 5, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        self.now += timedelta(seconds=1)
        return self.now


class _Composer:
    def __init__(self) -> None:
        self.calls: list[tuple[str, str, str]] = []

    def compose(self, address: str, subject: str, body: str) -> None:
        self.calls.append((address, subject, body))


def _engine(backend: MemoryBackend | None = None, **config: object) -> RubelEngine:
    counter = itertools.count(1)
    return RubelEngine(
        RubelConfig(storage_dir=Path("unused"), platform="web", **config),  # type: ignore[arg-type]
        backend=backend if backend is not None else MemoryBackend(),
        clock=_Clock(),
        id_factory=lambda: f"id{next(counter)}",
    )


def test_execute_logs_each_command_with_its_outcome() -> None:
    with _engine() as engine:
        ok = engine.execute("  help  ")
        failed = engine.execute("enable nonexistent-id")

    assert ok.success is True
    assert failed.success is False
    assert failed.message == "Feature not found: nonexistent-id"
    newest, oldest = engine.snapshot().command_logs
    assert (oldest.command, oldest.kind) == ("help", CommandLogKind.SUCCESS)
    assert (newest.command, newest.kind, newest.result) == (
        "enable nonexistent-id",
        CommandLogKind.ERROR,
        "Feature not found: nonexistent-id",
    )


def test_enable_unknown_feature_leaves_features_untouched() -> None:
    with _engine() as engine:
        before = engine.snapshot().features
        engine.execute("enable nonexistent-id")

        assert engine.snapshot().features == before


def test_clear_logs_leaves_only_its_own_entry() -> None:
    with _engine() as engine:
        engine.execute("help")
        engine.execute("list")
        engine.execute("clear-logs")

        (entry,) = engine.snapshot().command_logs

    assert entry.command == "clear-logs"
    assert entry.result == "Command logs cleared."


def test_sync_email_flow() -> None:
    with _engine() as engine:
        engine.store.set_email_address("a@b.com")
        result = engine.execute("sync-email")

        snapshot = engine.snapshot()

    assert result.message == "Email queued for: a@b.com"
    (item,) = snapshot.email_queue
    assert item.sent is False
    assert item.body.startswith("Sync request at 2026-05-01")


def test_seeded_defaults_on_first_run_and_empty_list_is_kept() -> None:
    with _engine() as engine:
        assert len(engine.snapshot().features) == 10

    with _engine(MemoryBackend({"features": "[]"})) as engine:
        assert engine.snapshot().features == ()

    with _engine(seed_default_features=False) as engine:
        assert engine.snapshot().features == ()


def test_state_survives_restart_through_the_backend() -> None:
    backend = MemoryBackend()
    with _engine(backend, seed_default_features=False) as engine:
        engine.execute("add Night Vision | Low light mode | Optics")
        engine.execute("enable night vision")
        engine.capture.on_location_sampled(52.37, 4.89, 12.4)

    with _engine(backend) as engine:
        snapshot = engine.snapshot()

    (feature,) = snapshot.features
    assert (feature.name, feature.category, feature.enabled) == ("Night Vision", "Optics", True)
    assert snapshot.gps_logs[0].accuracy == 12
    assert len(snapshot.command_logs) == 2


def test_engine_writes_files_under_storage_dir(tmp_path: Path) -> None:
    config = RubelConfig(storage_dir=tmp_path, platform="linux", seed_default_features=False)
    with RubelEngine(config) as engine:
        engine.execute("add Torch | Flashlight")

    records = json.loads((tmp_path / "features.json").read_text(encoding="utf-8"))
    assert records[0]["name"] == "Torch"
    assert "addedAt" in records[0]
    assert (tmp_path / "commandLogs.json").exists()


def test_open_restores_only_once() -> None:
    engine = _engine()
    engine.open()
    engine.store.add_feature("Torch", "Flashlight")
    engine.close()

    engine.open()
    try:
        assert engine.snapshot().features[-1].name == "Torch"
    finally:
        engine.close()


def test_compose_sync_email_hands_report_to_composer() -> None:
    composer = _Composer()
    with _engine() as engine:
        engine.store.set_email_address("a@b.com")
        engine.store.enqueue_email("s", "b")
        engine.compose_sync_email(composer)

    ((address, subject, body),) = composer.calls
    assert address == "a@b.com"
    assert subject == "Rubel Engine Data Sync"
    assert "Total Features: 10" in body
    assert "Queue Items: 1" in body


def test_compose_sync_email_requires_address() -> None:
    composer = _Composer()
    with _engine() as engine, pytest.raises(ValidationError):
        engine.compose_sync_email(composer)

    assert composer.calls == []


def test_location_tracker_uses_configured_interval() -> None:
    sampled = threading.Event()

    def _sampler() -> LocationSample:
        sampled.set()
        return LocationSample(1.0, 2.0, 3.0)

    with _engine(tracking_interval=60.0) as engine:
        tracker = engine.location_tracker(_sampler)
        tracker.start()
        try:
            assert sampled.wait(2)
        finally:
            tracker.stop(2)
        assert engine.flush(2) is True
        logs = engine.snapshot().gps_logs

    assert len(logs) == 1
    assert logs[0].accuracy == 3
