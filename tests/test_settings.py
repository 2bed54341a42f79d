import json
from pathlib import Path

from usbsorter.services.settings import DEFAULT_FLUSH_DELAY_MS, SettingsManager, UserSettings


def test_missing_file_gives_defaults(tmp_path: Path) -> None:
    manager = SettingsManager(tmp_path / "config.json")

    assert manager.settings == UserSettings()
    assert manager.settings.flush_delay == DEFAULT_FLUSH_DELAY_MS / 1000.0


def test_options_round_trip_through_disk(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "config.json"
    manager = SettingsManager(path)

    manager.update_last_directory(Path("/media/usb"))
    manager.update_options(log_enabled=False, monitor_filesystem=False, flush_delay_ms=250)
    manager.set_theme("dark")

    reloaded = SettingsManager(path).settings
    assert reloaded.last_directory == str(Path("/media/usb"))
    assert reloaded.log_enabled is False
    assert reloaded.monitor_filesystem is False
    assert reloaded.sort_folders is True
    assert reloaded.flush_delay == 0.25
    assert reloaded.theme == "dark"


def test_corrupt_file_falls_back_to_defaults(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text("{not json")

    assert SettingsManager(path).settings == UserSettings()


def test_partial_and_invalid_values_are_normalised(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"flush_delay_ms": -40, "theme": "", "sort_folders": 0}))

    settings = SettingsManager(path).settings

    assert settings.flush_delay_ms == 0
    assert settings.theme == "light"
    assert settings.sort_folders is False
    assert settings.monitor_filesystem is True


def test_clearing_last_directory(tmp_path: Path) -> None:
    manager = SettingsManager(tmp_path / "config.json")
    manager.update_last_directory(tmp_path)

    manager.update_last_directory(None)

    assert SettingsManager(tmp_path / "config.json").settings.last_directory is None
