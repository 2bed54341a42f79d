"""Filesystem operations used by the scanner and the reorder engine.

Every call maps onto a single operating-system primitive so a failure always
surfaces as one :class:`OSError` the caller can log and step past.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List

logger = logging.getLogger(__name__)


class LocalFileSystem:
    """Directory primitives backed by :mod:`os`."""

    def list_subdirectories(self, path: Path) -> List[str]:
        """Return immediate subdirectory names in on-disk enumeration order."""

        with os.scandir(path) as entries:
            return [entry.name for entry in entries if entry.is_dir(follow_symlinks=False)]

    def exists(self, path: Path) -> bool:
        return os.path.lexists(path)

    def is_dir(self, path: Path) -> bool:
        return os.path.isdir(path)

    def create_directory(self, path: Path) -> None:
        os.mkdir(path)

    def move(self, source: Path, destination: Path) -> None:
        """Rename ``source`` to ``destination`` on the same volume."""

        if os.path.lexists(destination):
            raise FileExistsError(destination)
        os.rename(source, destination)

    def remove_directory(self, path: Path) -> None:
        """Remove an empty directory."""

        os.rmdir(path)


@dataclass(slots=True)
class RecordedOperation:
    """A filesystem call captured by :class:`DryRunFileSystem`."""

    action: str
    source: Path
    destination: Path | None = None

    def describe(self) -> str:
        if self.destination is None:
            return f"{self.action} {self.source}"
        return f"{self.action} {self.source} -> {self.destination}"


class DryRunFileSystem(LocalFileSystem):
    """Read from disk but only record the writes that would be performed."""

    def __init__(self) -> None:
        self.operations: list[RecordedOperation] = []
        self._created: set[Path] = set()

    def exists(self, path: Path) -> bool:
        return Path(path) in self._created or super().exists(path)

    def is_dir(self, path: Path) -> bool:
        return Path(path) in self._created or super().is_dir(path)

    def create_directory(self, path: Path) -> None:
        self._created.add(Path(path))
        self._record(RecordedOperation(action="mkdir", source=Path(path)))

    def move(self, source: Path, destination: Path) -> None:
        self._record(RecordedOperation(action="move", source=Path(source), destination=Path(destination)))

    def remove_directory(self, path: Path) -> None:
        self._created.discard(Path(path))
        self._record(RecordedOperation(action="rmdir", source=Path(path)))

    @property
    def round_trips(self) -> int:
        return sum(1 for op in self.operations if op.action == "move") // 2

    def _record(self, operation: RecordedOperation) -> None:
        logger.debug("Dry run: %s", operation.describe())
        self.operations.append(operation)
