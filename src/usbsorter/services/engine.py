"""Physically reorder directory entries to match the order model.

FAT-style volumes enumerate entries in directory-table order. Moving a folder
into a scratch directory and back removes its entry and re-appends it at the
end of the parent's table, so doing that for every entry from the first
change onward, in ascending order, reproduces the desired order on disk.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List

from .fsops import LocalFileSystem
from .model import OrderModel
from .tempnames import TempNameAllocator

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], None]


class StructuralReadError(Exception):
    """A directory's own location can no longer be resolved."""


@dataclass(slots=True)
class ApplyReport:
    """Summary of one apply pass; the log carries the details."""

    round_trips: int = 0
    failures: List[str] = field(default_factory=list)
    stranded: List[Path] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.failures


class ReorderEngine:
    """Apply the desired order of an :class:`OrderModel` to disk."""

    def __init__(
        self,
        model: OrderModel,
        filesystem: LocalFileSystem | None = None,
        allocator: TempNameAllocator | None = None,
    ) -> None:
        self.model = model
        self.filesystem = filesystem or LocalFileSystem()
        self.allocator = allocator or TempNameAllocator()

    def apply(self, node_id: int | None = None, progress_callback: ProgressCallback | None = None) -> ApplyReport:
        """Reorder ``node_id`` (the root by default) and all of its descendants.

        Never raises: failures are logged and collected in the report.
        """

        report = ApplyReport()
        start = self.model.root if node_id is None else node_id
        is_root = start == self.model.root
        self._guarded_level(start, report, progress_callback if is_root else None)
        return report

    def _guarded_level(self, node_id: int, report: ApplyReport, progress_callback: ProgressCallback | None) -> None:
        try:
            self._apply_level(node_id, report, progress_callback)
        except StructuralReadError as exc:
            logger.warning("%s Skipping...", exc)
            report.failures.append(str(exc))
        except Exception as exc:
            logger.error("Unexpected %s while sorting: %s", type(exc).__name__, exc)
            logger.error("Attempting to continue in hopes that this is benign.")
            report.failures.append(f"{type(exc).__name__}: {exc}")

    def _resolve(self, node_id: int) -> Path:
        try:
            path = self.model.path_of(node_id)
        except (IndexError, LookupError) as exc:
            raise StructuralReadError(f"Unable to resolve folder #{node_id}.") from exc
        if not self.filesystem.is_dir(path):
            raise StructuralReadError(f"Unable to read folder {path}; was the drive disconnected?")
        return path

    def _apply_level(
        self,
        node_id: int,
        report: ApplyReport,
        progress_callback: ProgressCallback | None,
    ) -> None:
        children = self.model.children(node_id)
        if not children:
            return
        path = self._resolve(node_id)
        if progress_callback is not None:
            progress_callback(0)

        # Disk may change below; only a clean pass re-establishes the baseline.
        self.model.forget_applied(node_id)
        scratch: Path | None = None
        change_seen = False
        total = len(children)

        try:
            for index, child_id in enumerate(children):
                child = self.model.node(child_id)
                logger.info("Sorting folder: %s", Path(path.name, child.name))

                # Entries before the first change are already in place on disk.
                if child.moved:
                    change_seen = True
                if change_seen:
                    if index == 0:
                        # Re-appending every later entry leaves this one first.
                        child.moved = False
                    else:
                        if scratch is None:
                            scratch = self._create_scratch(path, child.name, report)
                        if scratch is not None:
                            self._round_trip(path, child_id, scratch, report)

                if self.model.node(child_id).children:
                    self._guarded_level(child_id, report, None)

                if progress_callback is not None:
                    progress_callback(int(100 * (index + 1) / total))
        finally:
            if scratch is not None:
                self._remove_scratch(path, scratch)

        if not any(self.model.node(child_id).moved for child_id in children):
            self.model.mark_applied(node_id)

        if progress_callback is not None:
            progress_callback(100)

    def _create_scratch(self, parent: Path, entry_name: str, report: ApplyReport) -> Path | None:
        try:
            scratch = parent / self.allocator.allocate(parent, self.filesystem)
            self.filesystem.create_directory(scratch)
        except Exception as exc:
            logger.log(
                _severity(exc), 'Unable to create temp directory in "%s": %s. Skipping...', parent, _describe(exc)
            )
            report.failures.append(str(parent / entry_name))
            return None
        logger.debug("Created temp directory %s", scratch)
        return scratch

    def _round_trip(self, parent: Path, child_id: int, scratch: Path, report: ApplyReport) -> None:
        """Move one child out to the scratch directory and back again."""

        child = self.model.node(child_id)
        original = parent / child.name

        # Short names keep long-filename entries out of the directory table.
        try:
            short_name = self.allocator.allocate(scratch, self.filesystem)
        except Exception as exc:
            logger.log(
                _severity(exc), "Failed to allocate a short temp name: %s. Using the original name...", _describe(exc)
            )
            short_name = child.name
        waypoint = scratch / short_name

        try:
            self.filesystem.move(original, waypoint)
        except Exception as exc:
            logger.log(
                _severity(exc), 'Failed to move "%s" to temporary directory: %s. Skipping...', child.name, _describe(exc)
            )
            report.failures.append(str(original))
            self.allocator.release(scratch, short_name)
            return

        try:
            self.filesystem.move(waypoint, original)
        except Exception as exc:
            logger.critical(
                'MAJOR ERROR! Failed to move "%s" back from temporary directory: %s. '
                "It was left at %s; you may need to move it back by hand or restore a backup!",
                child.name,
                _describe(exc),
                waypoint,
            )
            report.failures.append(str(original))
            report.stranded.append(waypoint)
            return

        self.allocator.release(scratch, short_name)
        child.moved = False
        report.round_trips += 1

    def _remove_scratch(self, parent: Path, scratch: Path) -> None:
        try:
            self.filesystem.remove_directory(scratch)
        except FileNotFoundError:
            logger.warning('Unable to remove temp directory "%s" because it no longer exists. Skipping...', scratch)
        except Exception as exc:
            logger.log(_severity(exc), 'Unable to remove temp directory "%s": %s. Skipping...', scratch, _describe(exc))
        finally:
            self.allocator.release(parent, scratch.name)


def _severity(exc: Exception) -> int:
    """Log level for a failed step: warning for I/O errors, error for anything else."""

    return logging.WARNING if isinstance(exc, OSError) else logging.ERROR


def _describe(exc: Exception) -> str:
    if isinstance(exc, OSError):
        return str(exc)
    return f"{type(exc).__name__}: {exc}"
