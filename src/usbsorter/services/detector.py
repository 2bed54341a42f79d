"""Decide which entries must be physically re-positioned after an edit."""
from __future__ import annotations

import logging
from typing import Hashable, List, Sequence

from .model import OrderModel

logger = logging.getLogger(__name__)


def divergence_point(previous: Sequence[Hashable], new: Sequence[Hashable]) -> int | None:
    """Return the first index at which two orderings differ.

    ``None`` means the orderings are identical.
    """

    for index, (before, after) in enumerate(zip(previous, new)):
        if before != after:
            return index
    if len(previous) != len(new):
        return min(len(previous), len(new))
    return None


class ChangeDetector:
    """Maintain the moved flags of an :class:`OrderModel`.

    The engine relocates every entry from the first flagged one onward, so a
    flag only has to mark where a level starts to differ from disk. Marking
    more than necessary costs extra moves; marking less would leave the level
    out of order, so every rule here errs towards over-marking.
    """

    def __init__(self, model: OrderModel) -> None:
        self.model = model

    def record_sort(self, parent: int, previous: Sequence[int], new: Sequence[int]) -> List[int]:
        """Update flags after a full-level sort and return the flagged entries."""

        _require_same_entries(previous, new)
        baseline = self.model.applied_order(parent)
        if baseline is not None and sorted(baseline) == sorted(new):
            # Recompute from scratch against what is on disk.
            start = divergence_point(baseline, new)
            for child in new:
                self.model.node(child).moved = False
        else:
            start = divergence_point(previous, new)

        if start is None:
            logger.debug("Sort left %s unchanged", self.model.node(parent).name)
            return []

        flagged = list(new[start:])
        for child in flagged:
            self.model.node(child).moved = True
        logger.debug(
            "Sort of %s flagged %d of %d entries from index %d",
            self.model.node(parent).name,
            len(flagged),
            len(new),
            start,
        )
        return flagged

    def record_drag(self, parent: int, moved: int) -> List[int]:
        """Flag a single dragged entry."""

        if moved not in self.model.node(parent).children:
            raise ValueError(f"{self.model.node(moved).name!r} is not a child of {self.model.node(parent).name!r}")
        self.model.node(moved).moved = True
        return [moved]


def _require_same_entries(previous: Sequence[int], new: Sequence[int]) -> None:
    if sorted(previous) != sorted(new):
        raise ValueError("Both orderings must list the same entries")
