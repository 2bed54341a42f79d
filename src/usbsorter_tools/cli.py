"""CLI helpers powered by Typer."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import typer
from pydantic import BaseModel, Field

from usbsorter.services.engine import ApplyReport
from usbsorter.services.fsops import DryRunFileSystem, LocalFileSystem
from usbsorter.services.model import OrderModel
from usbsorter.services.preconditions import ApplyContext, Rejected, describe_checks
from usbsorter.services.scanner import SYSTEM_DIRECTORIES, ScanFilters, scan_tree
from usbsorter.services.session import SortSession

app = typer.Typer(help="Reorder folders on a removable drive for devices that list them in on-disk order.")


class SorterConfig(BaseModel):
    """Defaults for headless sorting."""

    reverse: bool = Field(False, description="Sort names in descending order.")
    dry_run: bool = Field(False, description="Only print the moves that would be performed.")
    allow_system_drive: bool = Field(False, description="Permit reordering folders on the system drive.")
    exclude_directories: List[str] = Field(
        default_factory=lambda: list(SYSTEM_DIRECTORIES),
        description="Folder names that are never scanned or moved.",
    )


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )


def _load_config(path: Path | None) -> SorterConfig:
    if path is None:
        return SorterConfig()
    return SorterConfig.model_validate_json(path.read_text())


def _echo_tree(model: OrderModel, max_depth: int | None) -> None:
    for node_id in model.walk():
        depth = model.depth(node_id)
        if max_depth is not None and depth > max_depth:
            continue
        name = str(model.root_path) if node_id == model.root else model.node(node_id).name
        typer.echo(f"{'  ' * depth}{name}")


@app.command()
def init_config(output: Optional[Path] = typer.Option(None, help="Where to write the sample config.")) -> None:
    """Write a sample configuration file in JSON format."""

    config = SorterConfig()
    target = output or Path.cwd() / "usb_sorter.config.json"
    target.write_text(config.model_dump_json(indent=2))
    typer.echo(f"Wrote config to {target}")


@app.command()
def scan(
    root: Path = typer.Argument(..., exists=True, file_okay=False, help="Drive or folder to list."),
    max_depth: Optional[int] = typer.Option(None, "--max-depth", min=0, help="Only list this many levels."),
) -> None:
    """Print the folder tree in the order a playback device will see it."""

    model = scan_tree(root.expanduser())
    _echo_tree(model, max_depth)


@app.command()
def preflight(
    root: Path = typer.Argument(..., help="Drive or folder that would be reordered."),
    allow_system_drive: bool = typer.Option(False, help="Skip the system drive safety check."),
) -> None:
    """Run the checks an apply would run, without touching the drive."""

    context = ApplyContext(
        directory=root.expanduser(),
        is_system_drive=(lambda _path: False) if allow_system_drive else None,
    )
    results = describe_checks(context)
    for result in results:
        typer.echo(f"[{result.status.upper()}] {result.name}: {result.detail}")

    if any(result.status == "error" for result in results):
        raise typer.Exit(code=1)


@app.command()
def sort(
    root: Path = typer.Argument(..., exists=True, file_okay=False, help="Drive or folder to reorder."),
    reverse: Optional[bool] = typer.Option(None, "--reverse/--no-reverse", help="Sort names in descending order."),
    dry_run: Optional[bool] = typer.Option(None, "--dry-run/--no-dry-run", help="Only print planned moves."),
    allow_system_drive: Optional[bool] = typer.Option(
        None, "--allow-system-drive/--no-allow-system-drive", help="Permit reordering on the system drive."
    ),
    config_path: Optional[Path] = typer.Option(None, "--config", exists=True, dir_okay=False, help="JSON config file."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every decision."),
) -> None:
    """Sort every folder level by name and write the order to disk."""

    _configure_logging(verbose)
    config = _load_config(config_path)
    reverse = config.reverse if reverse is None else reverse
    dry_run = config.dry_run if dry_run is None else dry_run
    allow_system_drive = config.allow_system_drive if allow_system_drive is None else allow_system_drive

    filesystem = DryRunFileSystem() if dry_run else LocalFileSystem()
    session = SortSession(
        filesystem=filesystem,
        scan_filters=ScanFilters(exclude_directories=tuple(config.exclude_directories)),
        is_system_drive=(lambda _path: False) if allow_system_drive else None,
    )
    session.open(root)
    changed = session.sort_all(reverse=reverse)
    if not session.has_unsaved_changes:
        typer.echo("Already in order. Nothing to do.")
        return
    typer.echo(f"{changed} folder level(s) need reordering.")

    with typer.progressbar(length=100, label="Sorting") as progress:
        reported = 0

        def _report(value: int) -> None:
            nonlocal reported
            if value > reported:
                progress.update(value - reported)
                reported = value

        outcome = session.apply(progress_callback=_report)

    if isinstance(outcome, Rejected):
        typer.echo(f"Aborted: {outcome.reason}")
        raise typer.Exit(code=1)

    assert isinstance(outcome, ApplyReport)
    if isinstance(filesystem, DryRunFileSystem):
        for operation in filesystem.operations:
            typer.echo(operation.describe())
        typer.echo(f"Dry-run enabled. {filesystem.round_trips} move(s) planned; no changes made.")
        return

    typer.echo(f"Moved {outcome.round_trips} folder(s).")
    if outcome.failures:
        typer.echo("Some folders could not be sorted:")
        for failure in outcome.failures:
            typer.echo(f"- {failure}")
        for stranded in outcome.stranded:
            typer.echo(f"! left in temporary folder: {stranded}")
        raise typer.Exit(code=1)

    typer.echo("Completed successfully.")


def main() -> None:
    """Entrypoint used by `python -m` invocations."""

    app()


if __name__ == "__main__":
    main()
