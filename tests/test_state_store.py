from __future__ import annotations

import itertools
import logging
import math
from collections.abc import Callable, Iterable
from datetime import UTC, datetime, timedelta

import pytest
from pydantic import ValidationError as PydanticValidationError

from rubel._constants import COMMAND_LOG_CAP, GPS_LOG_CAP, PHOTO_LOG_CAP
from rubel.exceptions import NotFoundError, RubelError, ValidationError
from rubel.models.logs import CommandLogKind
from rubel.models.snapshot import PersistedState
from rubel.persistence import MemoryBackend, PersistenceGateway
from rubel.state.events import StorageKey, StoreChange
from rubel.state.store import EntityStore


class _Clock:
    def __init__(self) -> None:
        self.now = datetime(2026, 1, 1, tzinfo=UTC)

    def __call__(self) -> datetime:
        self.now += timedelta(seconds=1)
        return self.now


def _ids(prefix: str = "id") -> Callable[[], str]:
    counter = itertools.count(1)
    return lambda: f"{prefix}{next(counter)}"


def _scripted_ids(values: Iterable[str]) -> Callable[[], str]:
    iterator = iter(values)
    return lambda: next(iterator)


def _store(**kwargs: object) -> tuple[EntityStore, list[StoreChange]]:
    changes: list[StoreChange] = []
    store = EntityStore(clock=_Clock(), id_factory=_ids(), on_change=changes.append, **kwargs)  # type: ignore[arg-type]
    return store, changes


# ------------------------------------------------------------------
# Features
# ------------------------------------------------------------------


def test_add_feature_assigns_distinct_ids_and_appends_in_display_order() -> None:
    store = EntityStore(seed_default_features=False)

    added = [store.add_feature(f"name {i}", f"desc {i}", "Tools") for i in range(50)]

    ids = [f.id for f in added]
    assert len(set(ids)) == len(ids)
    assert [f.id for f in store.snapshot().features] == ids
    assert all(f.enabled is False for f in added)


def test_add_feature_trims_and_defaults_blank_category() -> None:
    store, _ = _store()

    feature = store.add_feature("  Torch ", " Flashlight  ", "   ")

    assert feature.name == "Torch"
    assert feature.description == "Flashlight"
    assert feature.category == "Custom"


@pytest.mark.parametrize(("name", "description"), [("", "desc"), ("name", "   "), ("  ", "")])
def test_add_feature_rejects_empty_fields_without_mutation(name: str, description: str) -> None:
    store, changes = _store()

    with pytest.raises(ValidationError, match="Name and description are required"):
        store.add_feature(name, description)

    assert store.snapshot().features == ()
    assert changes == []


def test_toggle_twice_restores_original_value() -> None:
    store, _ = _store()
    feature = store.add_feature("Torch", "Flashlight")

    assert store.toggle_feature(feature.id).enabled is True
    assert store.toggle_feature(feature.id).enabled is False
    assert store.get_feature(feature.id) == feature


def test_toggle_unknown_id_raises_not_found() -> None:
    store, changes = _store()

    with pytest.raises(NotFoundError) as excinfo:
        store.toggle_feature("missing")

    assert excinfo.value.ref == "missing"
    assert changes == []


def test_remove_feature_is_idempotent() -> None:
    store, changes = _store()
    feature = store.add_feature("Torch", "Flashlight")

    assert store.remove_feature(feature.id) == feature
    assert store.remove_feature(feature.id) is None
    assert store.snapshot().features == ()
    # add + one effective remove
    assert [c.key for c in changes] == [StorageKey.FEATURES, StorageKey.FEATURES]


def test_removed_feature_id_is_not_handed_out_again() -> None:
    store = EntityStore(clock=_Clock(), id_factory=_scripted_ids(["x1", "x1", "x2"]))
    first = store.add_feature("One", "first")
    store.remove_feature(first.id)

    second = store.add_feature("Two", "second")

    assert second.id == "x2"


def test_id_allocation_gives_up_on_a_stuck_generator() -> None:
    store = EntityStore(clock=_Clock(), id_factory=lambda: "same")
    store.add_feature("One", "first")

    with pytest.raises(RubelError, match="unique id"):
        store.add_feature("Two", "second")

    assert len(store.snapshot().features) == 1


def test_set_feature_enabled_skips_write_when_unchanged() -> None:
    store, changes = _store()
    feature = store.add_feature("Torch", "Flashlight")
    changes.clear()

    assert store.set_feature_enabled(feature.id, False) == feature
    assert changes == []

    assert store.set_feature_enabled(feature.id, True).enabled is True
    assert len(changes) == 1


def test_seeded_default_features() -> None:
    store = EntityStore(clock=_Clock(), seed_default_features=True)

    features = store.snapshot().features

    assert [f.id for f in features] == [f"f{i:03d}" for i in range(1, 11)]
    assert features[0].name == "GPS Tracking"
    assert features[5].name == "Auto GPS Log"
    assert features[5].enabled is False
    assert sum(f.enabled for f in features) == 7


# ------------------------------------------------------------------
# Capped logs
# ------------------------------------------------------------------


def test_gps_log_overflow_keeps_newest_first_and_drops_oldest() -> None:
    store, _ = _store()

    for i in range(GPS_LOG_CAP + 1):
        store.append_gps_log(float(i), float(-i), i)

    logs = store.snapshot().gps_logs
    assert len(logs) == GPS_LOG_CAP
    assert logs[0].lat == float(GPS_LOG_CAP)
    assert logs[-1].lat == 1.0
    assert all(a.timestamp > b.timestamp for a, b in zip(logs, logs[1:], strict=False))


def test_photo_and_command_logs_are_capped() -> None:
    store, _ = _store()

    for i in range(PHOTO_LOG_CAP + 5):
        store.append_photo_log(f"file:///photos/{i}.jpg")
    for i in range(COMMAND_LOG_CAP + 3):
        store.append_command_log(f"cmd {i}", "ok", CommandLogKind.SUCCESS)

    snapshot = store.snapshot()
    assert len(snapshot.photo_logs) == PHOTO_LOG_CAP
    assert snapshot.photo_logs[0].uri == f"file:///photos/{PHOTO_LOG_CAP + 4}.jpg"
    assert len(snapshot.command_logs) == COMMAND_LOG_CAP
    assert snapshot.command_logs[0].command == f"cmd {COMMAND_LOG_CAP + 2}"
    assert snapshot.command_logs[-1].command == "cmd 3"


@pytest.mark.parametrize("accuracy", [-1, True, 2.5])
def test_append_gps_log_rejects_bad_accuracy(accuracy: object) -> None:
    store, changes = _store()

    with pytest.raises(ValidationError):
        store.append_gps_log(1.0, 2.0, accuracy)  # type: ignore[arg-type]

    assert changes == []


@pytest.mark.parametrize(("lat", "lng"), [(math.nan, 4.0), (52.0, math.inf), (-math.inf, 4.0), ("north", 4.0)])
def test_append_gps_log_rejects_non_finite_coordinates(lat: object, lng: object) -> None:
    store, changes = _store()
    kept = store.append_gps_log(52.0, 4.0, 5)
    changes.clear()

    with pytest.raises(ValidationError):
        store.append_gps_log(lat, lng, 5)  # type: ignore[arg-type]

    assert store.snapshot().gps_logs == (kept,)
    assert changes == []


def test_gps_history_survives_a_rejected_sample() -> None:
    backend = MemoryBackend()
    gateway = PersistenceGateway(backend)
    store = EntityStore(clock=_Clock(), id_factory=_ids(), on_change=gateway.handle_change)
    kept = store.append_gps_log(52.0, 4.0, 5)

    with pytest.raises(ValidationError):
        store.append_gps_log(math.nan, 4.0, 5)

    state = PersistenceGateway(backend).load()
    assert state.gps_logs == (kept,)


def test_append_command_log_rejects_unknown_kind() -> None:
    store, changes = _store()

    with pytest.raises(ValidationError, match="Unknown command log kind"):
        store.append_command_log("status", "ok", "fatal")

    assert store.snapshot().command_logs == ()
    assert changes == []


def test_append_photo_log_requires_uri() -> None:
    store, _ = _store()

    with pytest.raises(ValidationError):
        store.append_photo_log("  ")


def test_append_command_log_accepts_kind_strings() -> None:
    store, _ = _store()

    entry = store.append_command_log("status", "System Status", "info")

    assert entry.kind is CommandLogKind.INFO


def test_clear_logs() -> None:
    store, changes = _store()
    store.append_gps_log(1.0, 2.0, 3)
    store.append_command_log("help", "...", CommandLogKind.SUCCESS)
    changes.clear()

    store.clear_gps_logs()
    store.clear_command_logs()

    snapshot = store.snapshot()
    assert snapshot.gps_logs == ()
    assert snapshot.command_logs == ()
    assert [(c.key, c.value) for c in changes] == [(StorageKey.GPS_LOGS, ()), (StorageKey.COMMAND_LOGS, ())]


# ------------------------------------------------------------------
# Email queue and settings
# ------------------------------------------------------------------


def test_enqueue_email_appends_unsent_items_in_order() -> None:
    store, _ = _store()

    first = store.enqueue_email("one", "body")
    second = store.enqueue_email("two", "body")

    queue = store.snapshot().email_queue
    assert queue == (first, second)
    assert first.sent is False


def test_mark_email_sent() -> None:
    store, _ = _store()
    item = store.enqueue_email("one", "body")

    updated = store.mark_email_sent(item.id)

    assert updated.sent is True
    assert store.snapshot().pending_emails == ()
    with pytest.raises(NotFoundError):
        store.mark_email_sent("nope")


def test_set_email_address_has_no_format_validation() -> None:
    store, changes = _store()

    store.set_email_address("not an email")

    assert store.snapshot().email_address == "not an email"
    assert changes[-1].key is StorageKey.EMAIL_ADDRESS
    assert changes[-1].value == "not an email"


def test_set_online_is_not_persisted() -> None:
    store, changes = _store()

    store.set_online(False)

    assert store.snapshot().is_online is False
    assert changes == []


# ------------------------------------------------------------------
# Write-through and snapshots
# ------------------------------------------------------------------


def test_every_mutation_emits_its_collection_with_increasing_sequence() -> None:
    store, changes = _store()

    feature = store.add_feature("Torch", "Flashlight")
    store.append_gps_log(1.0, 2.0, 3)
    store.enqueue_email("s", "b")

    assert [c.key for c in changes] == [StorageKey.FEATURES, StorageKey.GPS_LOGS, StorageKey.EMAIL_QUEUE]
    assert [c.sequence for c in changes] == [1, 2, 3]
    assert changes[0].value == (feature,)


def test_failing_change_handler_does_not_roll_back(caplog: pytest.LogCaptureFixture) -> None:
    def _boom(change: StoreChange) -> None:
        raise RuntimeError("disk on fire")

    store = EntityStore(clock=_Clock(), id_factory=_ids(), on_change=_boom)

    with caplog.at_level(logging.WARNING, logger="rubel.state.store"):
        feature = store.add_feature("Torch", "Flashlight")

    assert store.snapshot().features == (feature,)
    assert "Write-through handler failed" in caplog.text


def test_snapshot_is_a_frozen_point_in_time_copy() -> None:
    store, _ = _store()
    feature = store.add_feature("Torch", "Flashlight")
    before = store.snapshot()

    store.toggle_feature(feature.id)

    assert before.features[0].enabled is False
    assert store.snapshot().features[0].enabled is True
    with pytest.raises(PydanticValidationError):
        before.email_address = "x"  # type: ignore[misc]
    with pytest.raises(PydanticValidationError):
        before.features[0].enabled = True  # type: ignore[misc]


def test_restore_installs_state_without_writing_and_enforces_caps() -> None:
    source, _ = _store()
    for i in range(GPS_LOG_CAP):
        source.append_gps_log(float(i), 0.0, 1)
    extra = source.snapshot().gps_logs + source.snapshot().gps_logs[:5]

    store, changes = _store(seed_default_features=True)
    store.restore(PersistedState(gps_logs=extra, email_address="a@b.com"))

    snapshot = store.snapshot()
    assert len(snapshot.gps_logs) == GPS_LOG_CAP
    assert snapshot.email_address == "a@b.com"
    # Absent keys keep their defaults (seeded features here).
    assert len(snapshot.features) == 10
    assert changes == []
