"""Named checks that must pass before a reorder is applied."""
from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Sequence, Union


@dataclass(frozen=True, slots=True)
class ApplyContext:
    """Everything the checks need to know about a pending apply."""

    directory: Path | None
    sort_folders: bool = True
    busy: bool = False
    is_system_drive: Callable[[Path], bool] | None = None
    is_directory: Callable[[Path], bool] | None = None


@dataclass(frozen=True, slots=True)
class Ready:
    """All checks passed."""


@dataclass(frozen=True, slots=True)
class Rejected:
    """The first failing check and why it failed."""

    check: str
    reason: str


PreconditionResult = Union[Ready, Rejected]


@dataclass(slots=True)
class CheckResult:
    """Represents the outcome of one check for reporting."""

    name: str
    status: str
    detail: str


@dataclass(frozen=True, slots=True)
class Precondition:
    """A check returning ``None`` on success or a failure reason."""

    name: str
    evaluate: Callable[[ApplyContext], str | None]


def is_system_drive(path: Path) -> bool:
    """Whether ``path`` lives on the drive the operating system runs from."""

    resolved = Path(path).resolve()
    if sys.platform == "win32":
        system_drive = os.environ.get("SystemDrive", "C:")
        return resolved.drive.upper() == system_drive.upper()
    return os.stat(resolved).st_dev == os.stat(Path(resolved.anchor or "/")).st_dev


def _directory_selected(context: ApplyContext) -> str | None:
    if context.directory is None:
        return "Drive hasn't been selected!"
    return None


def _directory_exists(context: ApplyContext) -> str | None:
    is_directory = context.is_directory or Path.is_dir
    if context.directory is None or not is_directory(context.directory):
        return "Drive/folder no longer exists! Did you unplug the drive?"
    return None


def _not_system_drive(context: ApplyContext) -> str | None:
    check = context.is_system_drive or is_system_drive
    try:
        on_system_drive = check(context.directory)  # type: ignore[arg-type]
    except OSError:
        return "Error determining if drive is system drive. Aborting."
    if on_system_drive:
        return "You appear to have selected your system drive. Aborting..."
    return None


def _sort_options(context: ApplyContext) -> str | None:
    if not context.sort_folders:
        return "Options rationality error. Must sort something..."
    return None


def _not_busy(context: ApplyContext) -> str | None:
    if context.busy:
        return "Already busy sorting. Please wait."
    return None


DEFAULT_PRECONDITIONS: tuple[Precondition, ...] = (
    Precondition("directory-selected", _directory_selected),
    Precondition("directory-exists", _directory_exists),
    Precondition("not-system-drive", _not_system_drive),
    Precondition("sort-options", _sort_options),
    Precondition("not-busy", _not_busy),
)


def check_preconditions(
    context: ApplyContext,
    checks: Sequence[Precondition] = DEFAULT_PRECONDITIONS,
) -> PreconditionResult:
    """Run ``checks`` in order and stop at the first failure."""

    for check in checks:
        reason = check.evaluate(context)
        if reason is not None:
            return Rejected(check=check.name, reason=reason)
    return Ready()


def describe_checks(
    context: ApplyContext,
    checks: Sequence[Precondition] = DEFAULT_PRECONDITIONS,
) -> List[CheckResult]:
    """Report the outcome of each check; those after a failure are skipped."""

    results: List[CheckResult] = []
    failed = False
    for check in checks:
        if failed:
            results.append(CheckResult(name=check.name, status="skipped", detail="Earlier check failed"))
            continue
        reason = check.evaluate(context)
        if reason is None:
            results.append(CheckResult(name=check.name, status="ok", detail="Passed"))
        else:
            failed = True
            results.append(CheckResult(name=check.name, status="error", detail=reason))
    return results
