"""Short scratch-name allocation.

Names are at most eight upper-case alphanumerics so a FAT volume stores them
in a single 8.3 directory entry with no long-filename entries attached.
"""
from __future__ import annotations

import random
import string
from pathlib import Path
from typing import Protocol

SHORT_NAME_ALPHABET = string.ascii_uppercase + string.digits
SHORT_NAME_LENGTH = 8
MAX_ATTEMPTS = 64


class _ExistenceCheck(Protocol):
    def exists(self, path: Path) -> bool: ...


class TempNameAllocator:
    """Produce collision-free short names inside a directory."""

    def __init__(
        self,
        *,
        length: int = SHORT_NAME_LENGTH,
        attempts: int = MAX_ATTEMPTS,
        rng: random.Random | None = None,
    ) -> None:
        if not 1 <= length <= SHORT_NAME_LENGTH:
            raise ValueError(f"short names must be 1-{SHORT_NAME_LENGTH} characters, got {length}")
        self.length = length
        self.attempts = attempts
        self._rng = rng or random.SystemRandom()
        self._issued: set[Path] = set()

    def allocate(self, directory: Path, filesystem: _ExistenceCheck) -> str:
        """Return a name not yet present in ``directory``.

        Raises :class:`FileExistsError` when no free name is found.
        """

        for _ in range(self.attempts):
            name = "".join(self._rng.choice(SHORT_NAME_ALPHABET) for _ in range(self.length))
            candidate = Path(directory) / name
            if candidate in self._issued or filesystem.exists(candidate):
                continue
            self._issued.add(candidate)
            return name
        raise FileExistsError(f"No free short name in {directory} after {self.attempts} attempts")

    def release(self, directory: Path, name: str) -> None:
        """Forget a previously issued name once it is gone from disk."""

        self._issued.discard(Path(directory) / name)
