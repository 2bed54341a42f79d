"""Arena-backed tree of directories and their desired order."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Sequence

ROOT_ID = 0


@dataclass(slots=True)
class DirectoryNode:
    """One on-disk directory.

    ``children`` holds arena indices in the desired logical order. ``moved`` is
    set when the entry's logical position differs from the last physically
    applied one and must be relocated on the next apply.
    """

    name: str
    parent: int | None
    root_path: Path | None = None
    children: List[int] = field(default_factory=list)
    moved: bool = False


class OrderModel:
    """Directory tree stored as a flat list of nodes addressed by index."""

    def __init__(self, root: Path) -> None:
        root = Path(root)
        self._nodes: List[DirectoryNode] = [
            DirectoryNode(name=root.name or str(root), parent=None, root_path=root)
        ]
        self._applied: Dict[int, List[int] | None] = {}

    def __len__(self) -> int:
        return len(self._nodes)

    @property
    def root(self) -> int:
        return ROOT_ID

    @property
    def root_path(self) -> Path:
        path = self._nodes[ROOT_ID].root_path
        assert path is not None
        return path

    def add_node(self, name: str, parent: int) -> int:
        """Append ``name`` as the last child of ``parent`` and return its index."""

        self._check(parent)
        node_id = len(self._nodes)
        self._nodes.append(DirectoryNode(name=name, parent=parent))
        self._nodes[parent].children.append(node_id)
        return node_id

    def node(self, node_id: int) -> DirectoryNode:
        self._check(node_id)
        return self._nodes[node_id]

    def children(self, node_id: int) -> List[int]:
        return list(self.node(node_id).children)

    def child_names(self, node_id: int) -> List[str]:
        return [self._nodes[child].name for child in self.node(node_id).children]

    def path_of(self, node_id: int) -> Path:
        """Absolute path of a node, rebuilt from the parent chain."""

        parts: List[str] = []
        current: int | None = node_id
        while current is not None:
            node = self.node(current)
            if node.parent is None:
                assert node.root_path is not None
                return node.root_path.joinpath(*reversed(parts))
            parts.append(node.name)
            current = node.parent
        raise LookupError(node_id)  # pragma: no cover - root always terminates the chain

    def find(self, path: Path) -> int | None:
        """Resolve an absolute path back to a node index, if it is in the tree."""

        try:
            relative = Path(path).relative_to(self.root_path)
        except ValueError:
            return None
        current = ROOT_ID
        for part in relative.parts:
            match = next((c for c in self._nodes[current].children if self._nodes[c].name == part), None)
            if match is None:
                return None
            current = match
        return current

    def walk(self, start: int = ROOT_ID) -> Iterator[int]:
        """Yield node indices depth-first in desired order, ``start`` first."""

        stack = [start]
        while stack:
            node_id = stack.pop()
            yield node_id
            stack.extend(reversed(self._nodes[node_id].children))

    def depth(self, node_id: int) -> int:
        depth = 0
        parent = self.node(node_id).parent
        while parent is not None:
            depth += 1
            parent = self._nodes[parent].parent
        return depth

    def reorder(self, parent: int, new_order: Sequence[int]) -> List[int]:
        """Replace the child order of ``parent``; return the previous order."""

        node = self.node(parent)
        previous = list(node.children)
        if sorted(previous) != sorted(new_order):
            raise ValueError(f"New order for {node.name!r} must list the same entries")
        node.children[:] = list(new_order)
        return previous

    def move_child(self, parent: int, from_index: int, to_index: int) -> int:
        """Move one child within ``parent`` and return the moved node index."""

        children = self.node(parent).children
        if not 0 <= from_index < len(children):
            raise IndexError(from_index)
        if not 0 <= to_index < len(children):
            raise IndexError(to_index)
        moved = children.pop(from_index)
        children.insert(to_index, moved)
        return moved

    def sorted_children(
        self,
        parent: int,
        key: Callable[[str], object] = str.casefold,
        *,
        reverse: bool = False,
    ) -> List[int]:
        """Child indices of ``parent`` ordered by ``key`` applied to names."""

        return sorted(self.node(parent).children, key=lambda c: key(self._nodes[c].name), reverse=reverse)

    def has_pending_moves(self) -> bool:
        return any(node.moved for node in self._nodes)

    def pending_moves(self) -> List[int]:
        return [index for index, node in enumerate(self._nodes) if node.moved]

    def applied_order(self, parent: int) -> List[int] | None:
        """Last physically applied child order, or ``None`` when unknown."""

        order = self._applied.get(parent)
        return list(order) if order is not None else None

    def mark_applied(self, parent: int) -> None:
        self._applied[parent] = self.children(parent)

    def forget_applied(self, parent: int) -> None:
        self._applied[parent] = None

    def _check(self, node_id: int) -> None:
        if not 0 <= node_id < len(self._nodes):
            raise IndexError(f"No directory node {node_id}")
