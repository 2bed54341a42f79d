"""Directory scanning that builds the order model from a volume."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Sequence

from PySide6 import QtCore

from .fsops import LocalFileSystem
from .model import OrderModel

logger = logging.getLogger(__name__)

SYSTEM_DIRECTORIES = ("System Volume Information", "$RECYCLE.BIN")


@dataclass(slots=True)
class ScanFilters:
    """Filters used while walking the volume."""

    exclude_directories: Sequence[str] = SYSTEM_DIRECTORIES
    skip_hidden: bool = False

    def should_skip(self, name: str) -> bool:
        if self.skip_hidden and name.startswith('.'):
            return True
        return name in self.exclude_directories


class DirectoryScanner(QtCore.QObject):
    """Walk a folder once and emit each directory discovered."""

    discovered = QtCore.Signal(object)  # emits Path
    progressed = QtCore.Signal(int)  # directories processed
    finished = QtCore.Signal(object)  # emits OrderModel

    def __init__(
        self,
        root: Path,
        filters: ScanFilters | None = None,
        filesystem: LocalFileSystem | None = None,
        parent: QtCore.QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self.root = Path(root)
        self.filters = filters or ScanFilters()
        self.filesystem = filesystem or LocalFileSystem()

    def scan(self) -> OrderModel:
        """Build an :class:`OrderModel` whose child order is the on-disk order.

        Every level's current order is recorded as its applied baseline.
        """

        model = OrderModel(self.root)
        pending = [model.root]
        processed = 0
        while pending:
            node_id = pending.pop()
            path = model.path_of(node_id)
            try:
                names = self.filesystem.list_subdirectories(path)
            except OSError as exc:
                logger.warning("Unable to list %s: %s", path, exc)
                names = []
            for name in names:
                if self.filters.should_skip(name):
                    logger.debug("Skipping %s", path / name)
                    continue
                child_id = model.add_node(name, node_id)
                self.discovered.emit(path / name)
                pending.append(child_id)
            model.mark_applied(node_id)
            processed += 1
            self.progressed.emit(processed)
        logger.info("Scanned %s: %d folder(s)", self.root, len(model) - 1)
        self.finished.emit(model)
        return model


def scan_tree(
    root: Path,
    filters: ScanFilters | None = None,
    filesystem: LocalFileSystem | None = None,
    on_discovered: Callable[[Path], None] | None = None,
) -> OrderModel:
    """Convenience function to scan without Qt consumers."""

    scanner = DirectoryScanner(root=root, filters=filters, filesystem=filesystem)

    if on_discovered is not None:
        scanner.discovered.connect(on_discovered)

    return scanner.scan()
