"""Outbound write queue for store persistence.

Owns:
- a worker thread draining pending writes
- per-key coalescing (only the newest value of a key is ever pending)
- bounded write time, with abandoned writes logged and never retried
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor

from rubel.exceptions import PersistenceError
from rubel.persistence.backends import KeyValueBackend

_logger = logging.getLogger(__name__)


class WriteQueue:
    """Fire-and-forget writer with per-key ordering.

    Ordering guarantee: a write for a key is never overtaken by an older
    write for the same key.  Pending values are coalesced, and the actual
    backend calls run on a single-thread executor, so even a write that
    timed out and was abandoned still lands before any later one.

    Before :meth:`start` (or after :meth:`stop`) submissions are written
    inline on the caller's thread.
    """

    def __init__(
        self,
        backend: KeyValueBackend,
        *,
        timeout: float = 5.0,
        logger: logging.Logger | None = None,
    ) -> None:
        self._backend = backend
        self._timeout = timeout
        self._logger = logger or _logger
        self._cond = threading.Condition()
        self._pending: dict[str, str] = {}
        self._in_flight: str | None = None
        self._thread: threading.Thread | None = None
        self._executor: ThreadPoolExecutor | None = None
        self._stopping = False

        self.completed_writes = 0
        self.failed_writes = 0
        self.last_error: PersistenceError | None = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None

    @property
    def pending_keys(self) -> tuple[str, ...]:
        with self._cond:
            return tuple(self._pending)

    def start(self) -> None:
        """Start the background worker.  Calling twice is a no-op."""
        with self._cond:
            # A worker still draining after stop() is reused.
            self._stopping = False
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="rubel-backend")
            if self._thread is not None:
                return
            self._thread = threading.Thread(target=self._run, name="rubel-writer", daemon=True)
            self._thread.start()
        self._logger.debug("Write queue started timeout=%ss", self._timeout)

    def stop(self, timeout: float | None = None) -> None:
        """Drain pending writes, then stop the worker.

        If the worker is still busy when *timeout* expires it keeps running
        in the background: later submissions stay queued behind it, and
        inline writes resume only once it has exited.
        """
        with self._cond:
            thread = self._thread
            if thread is None:
                return
            self._stopping = True
            self._cond.notify_all()
        thread.join(timeout)
        if thread.is_alive():
            self._logger.warning("Write queue worker still draining after %ss", timeout)
            return
        self._logger.debug("Write queue stopped")

    def submit(self, key: str, payload: str) -> None:
        """Queue *payload* as the new value of *key*."""
        with self._cond:
            if self._thread is not None:
                # Re-inserting moves the key to the back of the drain order.
                self._pending.pop(key, None)
                self._pending[key] = payload
                self._cond.notify_all()
                return
        self._write_inline(key, payload)

    def flush(self, timeout: float | None = None) -> bool:
        """Block until nothing is pending or in flight.

        Returns ``False`` if *timeout* elapsed first.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._cond:
            while self._thread is not None and (self._pending or self._in_flight is not None):
                remaining = None if deadline is None else deadline - time.monotonic()
                if remaining is not None and remaining <= 0:
                    return False
                self._cond.wait(remaining)
        return True

    # ------------------------------------------------------------------
    # Worker
    # ------------------------------------------------------------------

    def _run(self) -> None:
        while True:
            retiring: ThreadPoolExecutor | None = None
            with self._cond:
                while not self._pending and not self._stopping:
                    self._cond.wait()
                if not self._pending:
                    if self._executor is None:
                        # Drained and no backend call outstanding: hand over to inline writes.
                        self._thread = None
                        self._cond.notify_all()
                        return
                    retiring, self._executor = self._executor, None
                else:
                    key = next(iter(self._pending))
                    payload = self._pending.pop(key)
                    self._in_flight = key
            if retiring is not None:
                # Wait out any abandoned backend call before the queue can go inline.
                retiring.shutdown(wait=True)
                continue
            try:
                self._write_bounded(key, payload)
            finally:
                with self._cond:
                    self._in_flight = None
                    self._cond.notify_all()

    def _write_bounded(self, key: str, payload: str) -> None:
        executor = self._executor
        if executor is None:
            self._write_inline(key, payload)
            return
        future = executor.submit(self._backend.write, key, payload)
        try:
            future.result(timeout=self._timeout)
        except TimeoutError:
            self._record_failure(
                PersistenceError(f"Write of {key} abandoned after {self._timeout}s", key=key),
            )
        except Exception as exc:
            self._record_failure(_as_persistence_error(key, exc))
        else:
            self._record_success(key, payload)

    def _write_inline(self, key: str, payload: str) -> None:
        try:
            self._backend.write(key, payload)
        except Exception as exc:
            self._record_failure(_as_persistence_error(key, exc))
        else:
            self._record_success(key, payload)

    def _record_success(self, key: str, payload: str) -> None:
        self.completed_writes += 1
        self._logger.debug("Persisted key=%s chars=%d", key, len(payload))

    def _record_failure(self, error: PersistenceError) -> None:
        self.failed_writes += 1
        self.last_error = error
        self._logger.warning("Persistence write failed: %s", error)


def _as_persistence_error(key: str, exc: Exception) -> PersistenceError:
    if isinstance(exc, PersistenceError):
        return exc
    error = PersistenceError(f"Write of {key} failed: {exc}", key=key)
    error.__cause__ = exc
    return error
