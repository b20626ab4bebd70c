"""Configuration resolution for CLI commands: CLI flag > env var > config file > defaults."""

from __future__ import annotations

import argparse
from dataclasses import replace
from pathlib import Path

from visionfetch.config import FetchConfig, load_config


def resolve_config(args: argparse.Namespace, **overrides) -> FetchConfig:
    """Load config from ``--config`` (or the default path) and apply non-None overrides."""
    path = getattr(args, "config", None)
    try:
        config = load_config(Path(path).expanduser() if path else None)
        overrides = {key: value for key, value in overrides.items() if value is not None}
        return replace(config, **overrides) if overrides else config
    except ValueError as exc:
        raise SystemExit(f"error: {exc}") from None
