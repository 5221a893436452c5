"""Service configuration for motionhub."""

from __future__ import annotations

import dataclasses
import os
from pathlib import Path
from typing import Any

from motionhub._constants import (
    DEFAULT_DATA_FILE,
    DEFAULT_HTTP_HOST,
    DEFAULT_HTTP_PORT,
    DEFAULT_PERSIST_TIMEOUT,
    DEFAULT_UDP_HOST,
    DEFAULT_UDP_PORT,
)
from motionhub.exceptions import MotionHubConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_number(env_key: str, value: str, kind: type[int] | type[float]) -> int | float:
    try:
        return kind(value.strip())
    except ValueError as exc:
        raise MotionHubConfigError(f"{env_key} must be a {kind.__name__}, got {value!r}") from exc


def _check_port(name: str, value: int) -> None:
    if not 0 <= value <= 65535:
        raise MotionHubConfigError(f"{name} must be between 0 and 65535, got {value}")


@dataclasses.dataclass(frozen=True)
class MotionHubConfig:
    """Service configuration.

    Parameters
    ----------
    udp_host : str
        Interface the telemetry datagram socket binds to.
    udp_port : int
        Datagram port. ``0`` binds an ephemeral port.
    http_host : str
        Interface the query endpoint binds to.
    http_port : int
        Query endpoint port. ``0`` binds an ephemeral port.
    http_enabled : bool
        Serve the query endpoint alongside the datagram listener.
    data_file : Path or None
        Location of the persisted snapshot record. ``None`` keeps the
        snapshot in memory only.
    persist_timeout : float
        Seconds a single durable write may take before it is abandoned
        and logged as a failure.
    strict_push : bool
        Reject pushed patches carrying keys other than the six raw sensor
        fields. When off, unknown keys are dropped with a warning.
    """

    udp_host: str = DEFAULT_UDP_HOST
    udp_port: int = DEFAULT_UDP_PORT
    http_host: str = DEFAULT_HTTP_HOST
    http_port: int = DEFAULT_HTTP_PORT
    http_enabled: bool = True
    data_file: Path | None = Path(DEFAULT_DATA_FILE)
    persist_timeout: float = DEFAULT_PERSIST_TIMEOUT
    strict_push: bool = False

    def __post_init__(self) -> None:
        _check_port("udp_port", self.udp_port)
        _check_port("http_port", self.http_port)
        if self.persist_timeout <= 0:
            raise MotionHubConfigError(f"persist_timeout must be positive, got {self.persist_timeout}")
        if self.data_file is not None and not isinstance(self.data_file, Path):
            object.__setattr__(self, "data_file", Path(self.data_file))

    @classmethod
    def from_env(cls, **overrides: Any) -> MotionHubConfig:
        """Create configuration from environment variables.

        Reads optional ``MOTIONHUB_*`` variables. Explicit keyword
        arguments override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        MotionHubConfig
            Populated configuration.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        _ENV_STR_MAP = {
            "MOTIONHUB_UDP_HOST": "udp_host",
            "MOTIONHUB_HTTP_HOST": "http_host",
        }
        for env_key, field_name in _ENV_STR_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val.strip()

        _ENV_NUMBER_MAP: dict[str, tuple[str, type[int] | type[float]]] = {
            "MOTIONHUB_UDP_PORT": ("udp_port", int),
            "MOTIONHUB_HTTP_PORT": ("http_port", int),
            "MOTIONHUB_PERSIST_TIMEOUT": ("persist_timeout", float),
        }
        for env_key, (field_name, kind) in _ENV_NUMBER_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = _env_number(env_key, val, kind)

        # An empty value turns persistence off entirely.
        data_file_env = env.get("MOTIONHUB_DATA_FILE")
        if data_file_env is not None:
            config_kwargs["data_file"] = Path(data_file_env) if data_file_env.strip() else None

        if "http_enabled" not in overrides:
            config_kwargs["http_enabled"] = _env_bool(env.get("MOTIONHUB_HTTP_ENABLED"), True)
        if "strict_push" not in overrides:
            config_kwargs["strict_push"] = _env_bool(env.get("MOTIONHUB_STRICT_PUSH"), False)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
