"""
YAML configuration loader.

Reads config.yaml and produces a typed ServerSettings object.
Falls back to defaults if the config file is missing; the ``PORT``
environment variable always wins over the configured port.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import List

import yaml

from statuspage import notifier
from statuspage.models import ServerSettings

# Default path: config.yaml next to the project root
_DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.yaml"


def load_config(path: str | Path | None = None) -> ServerSettings:
    """
    Load and parse the YAML configuration file.

    Returns:
        The resolved ServerSettings.
    """
    config_path = Path(path) if path else _DEFAULT_CONFIG_PATH

    if not config_path.exists():
        notifier.print_warning(f"Config file not found at {config_path}, using defaults.")
        settings = ServerSettings()
    else:
        with open(config_path, "r") as fh:
            raw = yaml.safe_load(fh) or {}

        defaults = ServerSettings()
        raw_server = raw.get("server") or {}
        raw_settings = raw.get("settings") or {}
        settings = ServerSettings(
            host=raw_server.get("host", defaults.host),
            port=int(raw_server.get("port", defaults.port)),
            log_level=str(raw_settings.get("log_level", defaults.log_level)).upper(),
            heartbeat=float(raw_settings.get("heartbeat", defaults.heartbeat)),
            cors_origins=_origins(raw_settings.get("cors_origins", defaults.cors_origins)),
            seed_demo_data=bool(raw_settings.get("seed_demo_data", defaults.seed_demo_data)),
        )

    env_port = os.environ.get("PORT")
    if env_port:
        settings.port = int(env_port)

    return settings


def _origins(value) -> List[str]:
    if isinstance(value, str):
        return [value]
    return [str(v) for v in value]
