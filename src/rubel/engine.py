"""High-level facade wiring store, persistence, interpreter and capture."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from rubel.capture import CaptureAdapter, LocationSample, LocationTracker
from rubel.commands.interpreter import CommandInterpreter
from rubel.config import RubelConfig
from rubel.email import EmailComposer, build_sync_report
from rubel.exceptions import ValidationError
from rubel.models.command import CommandResult
from rubel.models.snapshot import StoreSnapshot
from rubel.persistence.backends import FileBackend, KeyValueBackend
from rubel.persistence.gateway import PersistenceGateway
from rubel.state.store import EntityStore

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class RubelEngine:
    """The state & command core of the control panel.

    Usage::

        with RubelEngine(RubelConfig.from_env()) as engine:
            result = engine.execute("enable f006")
            engine.capture.on_location_sampled(52.37, 4.89, 12.0)
            view = engine.snapshot()
    """

    def __init__(
        self,
        config: RubelConfig | None = None,
        *,
        backend: KeyValueBackend | None = None,
        clock: Callable[[], datetime] = _utcnow,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        self._config = config or RubelConfig()
        self._clock = clock
        self._gateway = PersistenceGateway(
            backend if backend is not None else FileBackend(self._config.storage_dir),
            write_timeout=self._config.write_timeout,
        )
        store_kwargs: dict[str, Any] = {}
        if id_factory is not None:
            store_kwargs["id_factory"] = id_factory
        self._store = EntityStore(
            clock=clock,
            on_change=self._gateway.handle_change,
            seed_default_features=self._config.seed_default_features,
            **store_kwargs,
        )
        self._interpreter = CommandInterpreter(platform=self._config.platform, clock=clock)
        self._capture = CaptureAdapter(self._store)
        self._loaded = False

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    def __enter__(self) -> RubelEngine:
        self.open()
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def open(self) -> None:
        """Load persisted state once, then start background writes."""
        if not self._loaded:
            self._store.restore(self._gateway.load())
            self._loaded = True
        self._gateway.start()

    def close(self, timeout: float | None = None) -> None:
        """Drain pending writes and stop the writer."""
        self._gateway.stop(timeout)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def config(self) -> RubelConfig:
        return self._config

    @property
    def store(self) -> EntityStore:
        return self._store

    @property
    def gateway(self) -> PersistenceGateway:
        return self._gateway

    @property
    def interpreter(self) -> CommandInterpreter:
        return self._interpreter

    @property
    def capture(self) -> CaptureAdapter:
        return self._capture

    def snapshot(self) -> StoreSnapshot:
        return self._store.snapshot()

    def flush(self, timeout: float | None = None) -> bool:
        return self._gateway.flush(timeout)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def execute(self, raw: str) -> CommandResult:
        """Run one command line and record it in the command log."""
        command = raw.strip()
        result = self._interpreter.execute(command, self._store.snapshot(), self._store)
        self._store.append_command_log(command, result.message, result.log_kind)
        return result

    def location_tracker(
        self,
        sampler: Callable[[], LocationSample | None],
        *,
        interval: float | None = None,
    ) -> LocationTracker:
        """Build a tracker feeding this engine's capture adapter."""
        return LocationTracker(
            sampler,
            self._capture,
            interval=interval if interval is not None else self._config.tracking_interval,
        )

    def compose_sync_email(self, composer: EmailComposer) -> None:
        """Hand the sync report to a mail client.

        Raises :class:`ValidationError` when no address is configured.
        """
        snapshot = self._store.snapshot()
        if not snapshot.email_address.strip():
            raise ValidationError("No email configured. Set it in Settings first.")
        subject, body = build_sync_report(snapshot, self._clock())
        composer.compose(snapshot.email_address, subject, body)
        _logger.debug("Sync report handed to composer")
