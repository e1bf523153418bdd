"""Engine configuration for rubel."""

from __future__ import annotations

import dataclasses
import os
import platform as _platform
from pathlib import Path
from typing import Any

from rubel.exceptions import RubelConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_float(name: str, value: str) -> float:
    try:
        return float(value)
    except ValueError as exc:
        raise RubelConfigError(f"{name} must be a number, got {value!r}") from exc


def _default_storage_dir() -> Path:
    return Path.home() / ".rubel-engine"


def _default_platform() -> str:
    return _platform.system().lower() or "unknown"


@dataclasses.dataclass(frozen=True)
class RubelConfig:
    """Engine configuration.

    Parameters
    ----------
    storage_dir : Path
        Directory holding one JSON file per persisted key.
    platform : str
        Platform identifier reported by the ``status`` command.
    write_timeout : float
        Seconds a single persistence write may take before it is
        abandoned and logged.  Writes are never retried.
    seed_default_features : bool
        Seed the built-in feature list when no ``features`` key has been
        persisted yet.
    tracking_interval : float
        Seconds between location samples while a
        :class:`rubel.capture.LocationTracker` is running.
    """

    storage_dir: Path = dataclasses.field(default_factory=_default_storage_dir)
    platform: str = dataclasses.field(default_factory=_default_platform)
    write_timeout: float = 5.0
    seed_default_features: bool = True
    tracking_interval: float = 30.0

    def __post_init__(self) -> None:
        if self.write_timeout <= 0:
            raise RubelConfigError(f"write_timeout must be positive, got {self.write_timeout}")
        if self.tracking_interval <= 0:
            raise RubelConfigError(f"tracking_interval must be positive, got {self.tracking_interval}")

    @classmethod
    def from_env(cls, **overrides: Any) -> RubelConfig:
        """Create configuration from environment variables.

        Reads optional ``RUBEL_*`` variables.  Explicit keyword arguments
        override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        RubelConfig
            Populated configuration.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        storage_env = env.get("RUBEL_STORAGE_DIR")
        if storage_env:
            config_kwargs["storage_dir"] = Path(storage_env).expanduser()

        platform_env = env.get("RUBEL_PLATFORM")
        if platform_env:
            config_kwargs["platform"] = platform_env.strip().lower()

        timeout_env = env.get("RUBEL_WRITE_TIMEOUT")
        if timeout_env is not None and "write_timeout" not in overrides:
            config_kwargs["write_timeout"] = _env_float("RUBEL_WRITE_TIMEOUT", timeout_env)

        interval_env = env.get("RUBEL_TRACKING_INTERVAL")
        if interval_env is not None and "tracking_interval" not in overrides:
            config_kwargs["tracking_interval"] = _env_float("RUBEL_TRACKING_INTERVAL", interval_env)

        if "seed_default_features" not in overrides:
            config_kwargs["seed_default_features"] = _env_bool(env.get("RUBEL_SEED_DEFAULT_FEATURES"), True)

        storage_override = overrides.get("storage_dir")
        if isinstance(storage_override, str):
            overrides["storage_dir"] = Path(storage_override).expanduser()

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
