"""Configuration manager for pursgraph using TOML files."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict

import toml

logger = logging.getLogger(__name__)

BASE_DIR = Path(os.environ.get("PURSGRAPH_HOME", str(Path.home() / ".pursgraph"))).expanduser()
CONFIG_FILE = BASE_DIR / "config.toml"


DEFAULT_CONFIG: Dict[str, Dict[str, Any]] = {
    "ide": {
        "port": 4242,
        "output_directory": "output/",
        "source_globs": [
            "src/**/*.purs",
            ".spago/*/*/src/**/*.purs",
            "test/**/*.purs",
        ],
        "log_level": "none",
        "purs_command": ["npx", "purs"],
        "warmup_seconds": 3.0,
        "log_buffer_size": 200,
    },
    "graph": {
        "max_concurrent_requests": 5,
        "max_completion_results": 10000,
    },
}


def load_full_config() -> Dict[str, Any]:
    """Load the entire TOML config (all sections), or ``{}`` when absent."""
    if not CONFIG_FILE.exists():
        return {}
    try:
        with open(CONFIG_FILE, "r") as f:
            return toml.load(f)
    except (OSError, toml.TomlDecodeError) as exc:
        logger.warning("Ignoring unreadable config %s: %s", CONFIG_FILE, exc)
        return {}


def load_section(section: str) -> Dict[str, Any]:
    """Return *section* with defaults filled in for missing keys.

    Args:
        section: ``"ide"`` or ``"graph"``.

    Returns:
        Merged settings dictionary.
    """
    merged = dict(DEFAULT_CONFIG.get(section, {}))
    merged.update(load_full_config().get(section, {}))
    return merged


def _save_full_config(config: Dict[str, Any]) -> None:
    BASE_DIR.mkdir(parents=True, exist_ok=True)
    with open(CONFIG_FILE, "w") as f:
        toml.dump(config, f)


def coerce_value(section: str, key: str, raw: str) -> Any:
    """Convert a command-line string to the type of the default for *key*."""
    defaults = DEFAULT_CONFIG.get(section)
    if defaults is None or key not in defaults:
        raise KeyError(f"{section}.{key}")
    default = defaults[key]
    if isinstance(default, bool):
        return raw.lower() in {"1", "true", "yes", "on"}
    if isinstance(default, int):
        return int(raw)
    if isinstance(default, float):
        return float(raw)
    if isinstance(default, list):
        return [part.strip() for part in raw.split(",") if part.strip()]
    return raw


def save_setting(section: str, key: str, value: Any) -> None:
    """Persist one setting, preserving every other section in the file."""
    config = load_full_config()
    config.setdefault(section, {})[key] = value
    _save_full_config(config)


def reset_config() -> bool:
    """Delete the config file. Returns False when there was nothing to delete."""
    if not CONFIG_FILE.exists():
        return False
    CONFIG_FILE.unlink()
    return True
