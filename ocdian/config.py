"""Application configuration management."""

from __future__ import annotations

import json
import logging
import os
import sys
from pathlib import Path

from ocdian.models import AppConfig

log = logging.getLogger(__name__)


def _is_android() -> bool:
    """Return True when running inside an Android (p4a) environment."""
    return "ANDROID_ARGUMENT" in os.environ or hasattr(sys, "getandroidapilevel")


def _android_data_dir() -> Path:
    """Return the writable app-private directory on Android."""
    # p4a sets ANDROID_PRIVATE / ANDROID_APP_PATH; fall back to cwd
    for var in ("ANDROID_PRIVATE", "ANDROID_APP_PATH"):
        val = os.environ.get(var)
        if val:
            return Path(val)
    return Path(".")


if _is_android():
    _DATA_DIR = _android_data_dir() / "data"
    _CONFIG_DIR = _DATA_DIR / "config"
    _DB_DIR = _DATA_DIR / "db"
else:
    _CONFIG_DIR = Path.home() / ".config" / "ocdian"
    _DB_DIR = Path.home() / ".local" / "share" / "ocdian"

_CONFIG_FILE = _CONFIG_DIR / "config.json"
_DB_NAME = "ocdian.db"


def load_config() -> AppConfig:
    """Load config from disk, returning defaults if none exists or it is unreadable."""
    if _CONFIG_FILE.exists():
        try:
            data = json.loads(_CONFIG_FILE.read_text(encoding="utf-8"))
            return AppConfig(**data)
        # ValueError covers JSONDecodeError, UnicodeDecodeError and ValidationError
        except (OSError, ValueError, TypeError):
            log.warning("Ignoring unreadable config at %s", _CONFIG_FILE, exc_info=True)
    return AppConfig()


def save_config(config: AppConfig) -> Path:
    """Write config to disk. Returns the config file path."""
    _CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    _CONFIG_FILE.write_text(config.model_dump_json(indent=2))
    return _CONFIG_FILE


def get_db_path() -> Path:
    """Resolve the database path from config (or default)."""
    config = load_config()
    if config.db_path is not None:
        p = Path(config.db_path)
        p.parent.mkdir(parents=True, exist_ok=True)
        return p
    _DB_DIR.mkdir(parents=True, exist_ok=True)
    return _DB_DIR / _DB_NAME


def set_db_path(path: str) -> AppConfig:
    """Set a custom database path and save config."""
    resolved = Path(path).expanduser().resolve()
    # A directory gets the default file name
    if resolved.is_dir():
        resolved = resolved / _DB_NAME
    resolved.parent.mkdir(parents=True, exist_ok=True)
    config = load_config()
    config.db_path = str(resolved)
    save_config(config)
    return config


def reset_db_path() -> AppConfig:
    """Reset to the default local database path."""
    config = load_config()
    config.db_path = None
    save_config(config)
    return config


def set_erp_seconds(seconds: int) -> AppConfig:
    """Change the default exposure duration (60, 300 or 600 seconds)."""
    config = load_config()
    updated = AppConfig(**{**config.model_dump(), "erp_seconds": seconds})
    save_config(updated)
    return updated


def set_breathing_cycles(cycles: int) -> AppConfig:
    """Change how many inhale/exhale cycles a breathing exercise runs."""
    config = load_config()
    updated = AppConfig(**{**config.model_dump(), "breathing_cycles": cycles})
    save_config(updated)
    return updated
