"""Durable key-value media for persisted store records."""

from __future__ import annotations

import contextlib
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Protocol

from rubel.exceptions import PersistenceError

_logger = logging.getLogger(__name__)


class KeyValueBackend(Protocol):
    """Minimal durable medium: each key maps to one text value."""

    def read(self, key: str) -> str | None:
        """Return the stored text, or ``None`` when *key* is absent."""
        ...

    def write(self, key: str, value: str) -> None:
        """Store *value* under *key*, replacing any previous value."""
        ...


class MemoryBackend:
    """In-process backend, for tests and embedding hosts with their own storage."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._lock = threading.Lock()
        self._data: dict[str, str] = dict(initial or {})

    def read(self, key: str) -> str | None:
        with self._lock:
            return self._data.get(key)

    def write(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def dump(self) -> dict[str, str]:
        with self._lock:
            return dict(self._data)


class FileBackend:
    """One ``<key>.json`` file per key inside *directory*.

    Writes go to a temp file in the same directory which is then renamed
    over the target, so a crash mid-write leaves the previous value intact.
    """

    def __init__(self, directory: Path | str) -> None:
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    def path_for(self, key: str) -> Path:
        return self._directory / f"{key}.json"

    def read(self, key: str) -> str | None:
        path = self.path_for(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as exc:
            raise PersistenceError(f"Could not read {path}: {exc}", key=key) from exc

    def write(self, key: str, value: str) -> None:
        path = self.path_for(key)
        tmp_path: str | None = None
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            tmp_fd, tmp_path = tempfile.mkstemp(dir=self._directory, prefix=f".{key}.", suffix=".tmp")
            with os.fdopen(tmp_fd, "w", encoding="utf-8") as fh:
                fh.write(value)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_path, path)
        except OSError as exc:
            if tmp_path is not None:
                with contextlib.suppress(OSError):
                    os.unlink(tmp_path)
            raise PersistenceError(f"Could not write {path}: {exc}", key=key) from exc
        _logger.debug("Wrote %d chars to %s", len(value), path)
