"""Camera and geolocation capture adapters.

The core never talks to camera or GPS hardware.  Host code calls
:meth:`CaptureAdapter.on_photo_captured` / :meth:`CaptureAdapter.on_location_sampled`
with whatever the platform produced, and the adapter records it in the
store.  :class:`LocationTracker` is an optional polling helper for hosts
that want periodic samples; the store itself has no tracking state.
"""

from __future__ import annotations

import logging
import math
import threading
from collections.abc import Callable
from dataclasses import dataclass

from rubel.exceptions import RubelError
from rubel.models.logs import GpsLogEntry, PhotoLogEntry
from rubel.state.store import EntityStore

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LocationSample:
    """Raw position fix as reported by a platform location API."""

    lat: float
    lng: float
    accuracy: float | None = None


def _normalize_accuracy(accuracy: float | None) -> int:
    """Round to whole meters; missing or unusable values become ``0``."""
    if accuracy is None:
        return 0
    value = float(accuracy)
    if not math.isfinite(value) or value < 0:
        return 0
    return int(round(value))


class CaptureAdapter:
    """Record inbound capture events in the store."""

    def __init__(self, store: EntityStore) -> None:
        self._store = store

    def on_photo_captured(self, uri: str) -> PhotoLogEntry:
        entry = self._store.append_photo_log(uri)
        _logger.debug("Photo recorded id=%s", entry.id)
        return entry

    def on_location_sampled(self, lat: float, lng: float, accuracy: float | None = None) -> GpsLogEntry:
        entry = self._store.append_gps_log(lat, lng, _normalize_accuracy(accuracy))
        _logger.debug("Location recorded id=%s accuracy=%sm", entry.id, entry.accuracy)
        return entry


class LocationTracker:
    """Poll a location sampler on a fixed cadence.

    One sample is taken immediately on :meth:`start`, then one every
    *interval* seconds until :meth:`stop`.  Sampler failures are logged and
    the next tick proceeds normally.
    """

    def __init__(
        self,
        sampler: Callable[[], LocationSample | None],
        adapter: CaptureAdapter,
        *,
        interval: float = 30.0,
        logger: logging.Logger | None = None,
    ) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self._sampler = sampler
        self._adapter = adapter
        self._interval = interval
        self._logger = logger or _logger
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def sample_once(self) -> GpsLogEntry | None:
        """Take one sample and record it.  Returns ``None`` if nothing was recorded."""
        try:
            sample = self._sampler()
        except Exception:
            self._logger.warning("Location sampler failed", exc_info=True)
            return None
        if sample is None:
            return None
        try:
            return self._adapter.on_location_sampled(sample.lat, sample.lng, sample.accuracy)
        except RubelError as exc:
            self._logger.warning("Location sample rejected: %s", exc)
            return None

    def start(self) -> None:
        if self.is_running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="rubel-location", daemon=True)
        self._thread.start()
        self._logger.debug("Location tracking started interval=%ss", self._interval)

    def stop(self, timeout: float | None = None) -> None:
        thread = self._thread
        if thread is None:
            return
        self._stop_event.set()
        thread.join(timeout)
        self._thread = None
        self._logger.debug("Location tracking stopped")

    def _run(self) -> None:
        self.sample_once()
        while not self._stop_event.wait(self._interval):
            self.sample_once()
