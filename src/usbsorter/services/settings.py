"""Persistent storage for user-facing configuration."""
from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from pathlib import Path

from .paths import CONFIG_FILE, ensure_config_dir

DEFAULT_FLUSH_DELAY_MS = 1500


@dataclass(slots=True)
class UserSettings:
    """Top-level settings stored on disk."""

    last_directory: str | None = None
    log_enabled: bool = True
    monitor_filesystem: bool = True
    sort_folders: bool = True
    flush_delay_ms: int = DEFAULT_FLUSH_DELAY_MS
    theme: str = "light"

    @property
    def flush_delay(self) -> float:
        """Delay in seconds before monitoring resumes after a reorder."""

        return self.flush_delay_ms / 1000.0


class SettingsManager:
    """Load and persist user settings to the config directory."""

    def __init__(self, path: Path | None = None) -> None:
        if path is None:
            ensure_config_dir()
        self.path = Path(path or CONFIG_FILE).expanduser()
        self._settings = self._load()

    @property
    def settings(self) -> UserSettings:
        """Current settings in memory."""

        return self._settings

    def _load(self) -> UserSettings:
        if self.path.exists():
            try:
                data = json.loads(self.path.read_text())
                return self._from_dict(data)
            except (OSError, json.JSONDecodeError):
                pass
        return UserSettings()

    def save(self) -> None:
        """Write current settings to disk."""

        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(asdict(self._settings), indent=2)
        self.path.write_text(payload)

    def update_last_directory(self, directory: Path | None) -> None:
        """Persist the most recently used directory."""

        self._settings.last_directory = str(directory) if directory else None
        self.save()

    def update_options(
        self,
        *,
        log_enabled: bool | None = None,
        monitor_filesystem: bool | None = None,
        sort_folders: bool | None = None,
        flush_delay_ms: int | None = None,
    ) -> None:
        """Persist the Options menu toggles."""

        settings = self._settings
        if log_enabled is not None:
            settings.log_enabled = log_enabled
        if monitor_filesystem is not None:
            settings.monitor_filesystem = monitor_filesystem
        if sort_folders is not None:
            settings.sort_folders = sort_folders
        if flush_delay_ms is not None:
            settings.flush_delay_ms = max(0, int(flush_delay_ms))
        self.save()

    def set_theme(self, theme: str) -> None:
        """Persist the user's preferred theme."""

        self._settings.theme = theme
        self.save()

    def _from_dict(self, data: dict) -> UserSettings:
        if not isinstance(data, dict):
            return UserSettings()
        defaults = UserSettings()
        last_directory = data.get("last_directory")
        theme_value = data.get("theme")
        flush_delay_value = data.get("flush_delay_ms")
        return UserSettings(
            last_directory=str(last_directory) if last_directory else None,
            log_enabled=bool(data.get("log_enabled", defaults.log_enabled)),
            monitor_filesystem=bool(data.get("monitor_filesystem", defaults.monitor_filesystem)),
            sort_folders=bool(data.get("sort_folders", defaults.sort_folders)),
            flush_delay_ms=max(
                0,
                int(flush_delay_value)
                if flush_delay_value is not None
                else defaults.flush_delay_ms,
            ),
            theme=str(theme_value) if theme_value else defaults.theme,
        )
