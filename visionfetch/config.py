"""Configuration management module for visionfetch."""

from __future__ import annotations

import logging
import os
import warnings
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

try:
    import tomllib
except ModuleNotFoundError:  # Python < 3.11
    import tomli as tomllib

BINANCE_VISION_BASE_URL = "https://data.binance.vision"
DEFAULT_MAX_RESPONSE_BYTES = 500 * 1024 * 1024

CONFIG_PATH = Path(
    os.getenv("VISIONFETCH_CONFIG", str(Path.home() / ".config" / "visionfetch" / "config.toml"))
).expanduser()

# Environment variable -> (FetchConfig field, converter)
_ENV_OVERRIDES: dict[str, tuple[str, Any]] = {
    "VISIONFETCH_BASE_URL": ("base_url", str),
    "VISIONFETCH_TIMEOUT_S": ("timeout_s", float),
    "VISIONFETCH_MAX_IDLE_CONNS": ("max_idle_connections", int),
    "VISIONFETCH_MAX_CONNS_PER_HOST": ("max_connections_per_host", int),
    "VISIONFETCH_MAX_RESPONSE_BYTES": ("max_response_bytes", int),
    "VISIONFETCH_MAX_WORKERS": ("max_workers", int),
    "VISIONFETCH_HOST": ("host", str),
    "PORT": ("port", int),
}


@dataclass(frozen=True)
class FetchConfig:
    """Settings consumed by the connector and the HTTP service.

    Attributes:
        base_url: Root of the Binance Vision static-file host.
        timeout_s: Per-request deadline in seconds.
        max_idle_connections: Number of per-host pools kept alive by the session.
        max_connections_per_host: Connections kept in each host pool.
        max_response_bytes: Hard ceiling on archive bytes read from one response.
        max_workers: Upper bound on member-parsing threads (None = one per member).
        host: Bind address for ``visionfetch serve``.
        port: Bind port for ``visionfetch serve``.
    """

    base_url: str = BINANCE_VISION_BASE_URL
    timeout_s: float = 30.0
    max_idle_connections: int = 100
    max_connections_per_host: int = 10
    max_response_bytes: int = DEFAULT_MAX_RESPONSE_BYTES
    max_workers: int | None = None
    host: str = "0.0.0.0"
    port: int = 8080

    def __post_init__(self) -> None:
        if self.timeout_s <= 0:
            raise ValueError(f"timeout_s must be positive, got {self.timeout_s}")
        if self.max_idle_connections < 1 or self.max_connections_per_host < 1:
            raise ValueError("connection pool sizes must be >= 1")
        if self.max_response_bytes < 1:
            raise ValueError(f"max_response_bytes must be >= 1, got {self.max_response_bytes}")
        if self.max_workers is not None and self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")


def _read_config_file(path: Path) -> dict:
    if not path.exists():
        return {}
    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except Exception as exc:
        warnings.warn(f"Failed to parse visionfetch config at {path}: {exc}", stacklevel=2)
        return {}


def load_config(path: Path | None = None, *, environ: dict[str, str] | None = None) -> FetchConfig:
    """Resolve configuration: environment variable > config file > defaults."""
    env = os.environ if environ is None else environ
    config = FetchConfig()

    file_values = _read_config_file(path or CONFIG_PATH)
    known = set(FetchConfig.__dataclass_fields__)
    unknown = sorted(set(file_values) - known)
    if unknown:
        logger.warning("Ignoring unknown config keys: %s", ", ".join(unknown))
    config = replace(config, **{k: v for k, v in file_values.items() if k in known})

    overrides: dict[str, Any] = {}
    for env_key, (field_name, convert) in _ENV_OVERRIDES.items():
        raw = env.get(env_key)
        if raw is None or not raw.strip():
            continue
        try:
            overrides[field_name] = convert(raw.strip())
        except ValueError as exc:
            raise ValueError(f"Invalid value for {env_key}: {raw!r}") from exc

    return replace(config, **overrides)
