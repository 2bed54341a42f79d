"""Where the application keeps its settings and logs."""
from __future__ import annotations

from pathlib import Path

CONFIG_DIR = Path.home() / ".config" / "usb-sorter"
CONFIG_FILE = CONFIG_DIR / "config.json"
LOG_DIR = CONFIG_DIR / "logs"


def ensure_config_dir() -> Path:
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    return CONFIG_DIR
