"""Aggregator and client configuration for pyagg."""

from __future__ import annotations

import dataclasses
import os
from pathlib import Path
from typing import Any

from pyagg._constants import (
    DEFAULT_HOST,
    DEFAULT_PORT,
    EXPIRY_SECONDS,
    MAIN_STORE_FILENAME,
    MAX_RECORDS,
    STAGING_DIRNAME,
    SWEEP_INTERVAL_SECONDS,
    WEATHER_ENDPOINT,
)
from pyagg.exceptions import AggConfigError
from pyagg.store.policy import RetentionPolicy


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _convert(env_key: str, raw: str, kind: type) -> Any:
    try:
        if kind is RetentionPolicy:
            return RetentionPolicy(raw.strip().lower())
        return kind(raw)
    except ValueError as exc:
        raise AggConfigError(f"Invalid value for {env_key}: {raw!r}") from exc


@dataclasses.dataclass(frozen=True)
class AggregatorConfig:
    """Aggregator configuration.

    Parameters
    ----------
    host : str
        Interface the HTTP server binds to.
    port : int
        TCP port the HTTP server listens on.
    data_dir : Path
        Directory holding the main store file and the staging directory.
    max_records : int
        Upper bound on the number of retained records.
    expiry_seconds : float
        A source silent for strictly longer than this is evicted.
        Also the age past which staged artifacts are discarded on startup.
    sweep_interval : float
        Seconds between liveness sweeps.
    retention : RetentionPolicy
        Whether an update replaces the source's record or appends history.
    persist : bool
        Write the main store file after every change and load it on startup.
    """

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    data_dir: Path = Path("data")
    max_records: int = MAX_RECORDS
    expiry_seconds: float = EXPIRY_SECONDS
    sweep_interval: float = SWEEP_INTERVAL_SECONDS
    retention: RetentionPolicy = RetentionPolicy.LATEST_PER_SOURCE
    persist: bool = True

    def __post_init__(self) -> None:
        if self.max_records < 1:
            raise AggConfigError("max_records must be at least 1")
        if self.expiry_seconds <= 0:
            raise AggConfigError("expiry_seconds must be positive")
        if self.sweep_interval <= 0:
            raise AggConfigError("sweep_interval must be positive")
        if not 0 <= self.port <= 65535:
            raise AggConfigError(f"port out of range: {self.port}")
        if not isinstance(self.data_dir, Path):
            object.__setattr__(self, "data_dir", Path(self.data_dir))

    @property
    def main_store_path(self) -> Path:
        return self.data_dir / MAIN_STORE_FILENAME

    @property
    def staging_dir(self) -> Path:
        return self.data_dir / STAGING_DIRNAME

    @classmethod
    def from_env(cls, **overrides: Any) -> AggregatorConfig:
        """Create configuration from ``PYAGG_*`` environment variables.

        Explicit keyword arguments override environment values.

        Raises
        ------
        AggConfigError
            When an environment value cannot be converted.
        """
        env = os.environ

        _ENV_CONFIG_MAP: dict[str, tuple[str, type]] = {
            "PYAGG_HOST": ("host", str),
            "PYAGG_PORT": ("port", int),
            "PYAGG_DATA_DIR": ("data_dir", Path),
            "PYAGG_MAX_RECORDS": ("max_records", int),
            "PYAGG_EXPIRY_SECONDS": ("expiry_seconds", float),
            "PYAGG_SWEEP_INTERVAL": ("sweep_interval", float),
            "PYAGG_RETENTION": ("retention", RetentionPolicy),
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, (field_name, kind) in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = _convert(env_key, val, kind)

        if "persist" not in overrides:
            config_kwargs["persist"] = _env_bool(env.get("PYAGG_PERSIST"), True)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)


@dataclasses.dataclass(frozen=True)
class ClientConfig:
    """Configuration for :class:`pyagg.client.AggregatorClient`.

    ``retries`` counts total attempts per request; connection failures and
    ``500`` responses are retried after ``retry_delay`` seconds.
    """

    base_url: str = f"http://{DEFAULT_HOST}:{DEFAULT_PORT}"
    endpoint: str = WEATHER_ENDPOINT
    retries: int = 5
    retry_delay: float = 3.0
    timeout: float = 10.0

    def __post_init__(self) -> None:
        if self.retries < 1:
            raise AggConfigError("retries must be at least 1")
        if self.retry_delay < 0:
            raise AggConfigError("retry_delay must not be negative")

    @classmethod
    def from_env(cls, **overrides: Any) -> ClientConfig:
        """Create client configuration from ``PYAGG_CLIENT_*`` variables."""
        env = os.environ
        _ENV_CONFIG_MAP: dict[str, tuple[str, type]] = {
            "PYAGG_CLIENT_BASE_URL": ("base_url", str),
            "PYAGG_CLIENT_RETRIES": ("retries", int),
            "PYAGG_CLIENT_RETRY_DELAY": ("retry_delay", float),
            "PYAGG_CLIENT_TIMEOUT": ("timeout", float),
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, (field_name, kind) in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = _convert(env_key, val, kind)
        config_kwargs.update(overrides)
        return cls(**config_kwargs)
