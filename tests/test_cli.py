from pathlib import Path

from typer.testing import CliRunner

from usbsorter_tools.cli import SorterConfig, app

runner = CliRunner()


def _make_folders(root: Path) -> None:
    for name in ("beta", "alpha", "gamma"):
        (root / name).mkdir()
        (root / name / "track.mp3").write_text(name)
    (root / "alpha" / "disc2").mkdir()
    (root / "alpha" / "disc1").mkdir()


def test_init_config_writes_defaults(tmp_path: Path) -> None:
    target = tmp_path / "config.json"

    result = runner.invoke(app, ["init-config", "--output", str(target)])

    assert result.exit_code == 0
    config = SorterConfig.model_validate_json(target.read_text())
    assert config == SorterConfig()
    assert "System Volume Information" in config.exclude_directories


def test_scan_lists_tree(tmp_path: Path) -> None:
    _make_folders(tmp_path)

    result = runner.invoke(app, ["scan", str(tmp_path), "--max-depth", "1"])

    assert result.exit_code == 0
    lines = result.output.splitlines()
    assert lines[0] == str(tmp_path)
    assert sorted(line.strip() for line in lines[1:]) == ["alpha", "beta", "gamma"]
    assert "disc1" not in result.output


def test_preflight_reports_missing_folder(tmp_path: Path) -> None:
    result = runner.invoke(app, ["preflight", str(tmp_path / "missing")])

    assert result.exit_code == 1
    assert "[ERROR] directory-exists" in result.output
    assert "[SKIPPED] not-busy" in result.output


def test_preflight_passes_with_system_drive_override(tmp_path: Path) -> None:
    result = runner.invoke(app, ["preflight", str(tmp_path), "--allow-system-drive"])

    assert result.exit_code == 0
    assert result.output.count("[OK]") == 5


def test_dry_run_plans_moves_without_touching_disk(tmp_path: Path) -> None:
    _make_folders(tmp_path)
    before = sorted(path.name for path in tmp_path.iterdir())

    outputs = [
        runner.invoke(app, ["sort", str(tmp_path), "--dry-run", "--allow-system-drive", *flags])
        for flags in ([], ["--reverse"])
    ]

    assert all(result.exit_code == 0 for result in outputs)
    # The disk order cannot already be both ascending and descending.
    assert any("no changes made" in result.output for result in outputs)
    assert sorted(path.name for path in tmp_path.iterdir()) == before


def test_sort_keeps_folders_and_contents(tmp_path: Path) -> None:
    _make_folders(tmp_path)

    result = runner.invoke(app, ["sort", str(tmp_path), "--allow-system-drive"])

    assert result.exit_code == 0
    assert "Completed successfully." in result.output or "Already in order" in result.output
    assert sorted(path.name for path in tmp_path.iterdir()) == ["alpha", "beta", "gamma"]
    assert sorted(path.name for path in (tmp_path / "alpha").iterdir()) == ["disc1", "disc2", "track.mp3"]
    for name in ("alpha", "beta", "gamma"):
        assert (tmp_path / name / "track.mp3").read_text() == name


def test_sort_reads_defaults_from_config(tmp_path: Path) -> None:
    volume = tmp_path / "volume"
    volume.mkdir()
    _make_folders(volume)
    (volume / "skipme").mkdir()
    config = tmp_path / "config.json"
    config.write_text(
        SorterConfig(dry_run=True, allow_system_drive=True, exclude_directories=["skipme"]).model_dump_json()
    )

    outputs = [
        runner.invoke(app, ["sort", str(volume), "--config", str(config), *flags])
        for flags in ([], ["--reverse"])
    ]

    assert all(result.exit_code == 0 for result in outputs)
    assert all("skipme" not in result.output for result in outputs)
    assert any("Dry-run enabled" in result.output for result in outputs)
