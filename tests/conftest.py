from __future__ import annotations

import errno
import threading
import time
from pathlib import Path
from typing import Callable, Dict, List, Tuple

import pytest


class AppendOrderFileSystem:
    """In-memory volume whose listings follow insertion order, like FAT.

    ``fail`` decides whether an operation raises; it receives the action name,
    the source path and the destination path (or ``None``).
    """

    def __init__(self, root: Path = Path("/vol")) -> None:
        self.root = root
        self._dirs: Dict[Path, List[str]] = {root: []}
        self.operations: List[Tuple[str, Path, Path | None]] = []
        self.fail: Callable[[str, Path, Path | None], BaseException | None] = lambda *_: None

    def makedirs(self, *relative: str) -> None:
        for entry in relative:
            current = self.root
            for part in Path(entry).parts:
                child = current / part
                if child not in self._dirs:
                    self._dirs[child] = []
                    self._dirs[current].append(part)
                current = child

    def remove_tree(self, relative: str) -> None:
        target = self.root / relative
        for path in [p for p in self._dirs if p == target or target in p.parents]:
            del self._dirs[path]
        self._dirs[target.parent].remove(target.name)

    def moves(self) -> List[Tuple[Path, Path]]:
        return [(source, destination) for action, source, destination in self.operations if action == "move"]

    # LocalFileSystem interface

    def list_subdirectories(self, path: Path) -> List[str]:
        if path not in self._dirs:
            raise FileNotFoundError(errno.ENOENT, "No such directory", str(path))
        return list(self._dirs[path])

    def exists(self, path: Path) -> bool:
        return Path(path) in self._dirs

    def is_dir(self, path: Path) -> bool:
        return Path(path) in self._dirs

    def create_directory(self, path: Path) -> None:
        self._check("mkdir", path, None)
        if path in self._dirs:
            raise FileExistsError(errno.EEXIST, "Exists", str(path))
        if path.parent not in self._dirs:
            raise FileNotFoundError(errno.ENOENT, "No such directory", str(path.parent))
        self._dirs[path] = []
        self._dirs[path.parent].append(path.name)
        self.operations.append(("mkdir", path, None))

    def move(self, source: Path, destination: Path) -> None:
        self._check("move", source, destination)
        if source not in self._dirs:
            raise FileNotFoundError(errno.ENOENT, "No such directory", str(source))
        if destination in self._dirs:
            raise FileExistsError(errno.EEXIST, "Exists", str(destination))
        if destination.parent not in self._dirs:
            raise FileNotFoundError(errno.ENOENT, "No such directory", str(destination.parent))
        moved = {}
        for path in list(self._dirs):
            if path == source or source in path.parents:
                moved[destination / path.relative_to(source)] = self._dirs.pop(path)
        self._dirs.update(moved)
        self._dirs[source.parent].remove(source.name)
        self._dirs[destination.parent].append(destination.name)
        self.operations.append(("move", source, destination))

    def remove_directory(self, path: Path) -> None:
        self._check("rmdir", path, None)
        if path not in self._dirs:
            raise FileNotFoundError(errno.ENOENT, "No such directory", str(path))
        if self._dirs[path]:
            raise OSError(errno.ENOTEMPTY, "Directory not empty", str(path))
        del self._dirs[path]
        self._dirs[path.parent].remove(path.name)
        self.operations.append(("rmdir", path, None))

    def _check(self, action: str, source: Path, destination: Path | None) -> None:
        error = self.fail(action, source, destination)
        if error is not None:
            raise error


@pytest.fixture
def volume() -> AppendOrderFileSystem:
    return AppendOrderFileSystem()


class FakeWatch:
    """Records every switch of a filesystem watch with its time."""

    def __init__(self) -> None:
        self.enabled = False
        self.path: Path | None = None
        self.history: List[Tuple[float, bool]] = []
        self.stopped = False
        self._lock = threading.Lock()

    def set_enabled(self, enabled: bool) -> None:
        with self._lock:
            self.enabled = enabled
            self.history.append((time.monotonic(), enabled))

    def set_path(self, path: Path | None) -> None:
        self.path = path
        self.set_enabled(False)

    def stop(self) -> None:
        self.stopped = True
        self.set_enabled(False)


@pytest.fixture
def watch() -> FakeWatch:
    return FakeWatch()
