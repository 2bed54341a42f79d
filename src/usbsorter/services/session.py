"""Editing and applying the order of one selected folder."""
from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from enum import Enum
from pathlib import Path
from typing import Callable, List, Sequence, Union

from .coordinator import MonitorCoordinator
from .detector import ChangeDetector
from .engine import ApplyReport, ProgressCallback, ReorderEngine
from .fsops import LocalFileSystem
from .model import OrderModel
from .preconditions import (
    DEFAULT_PRECONDITIONS,
    ApplyContext,
    CheckResult,
    Precondition,
    PreconditionResult,
    Rejected,
    check_preconditions,
    describe_checks,
)
from .scanner import ScanFilters, scan_tree
from .settings import DEFAULT_FLUSH_DELAY_MS

logger = logging.getLogger(__name__)


class SessionState(Enum):
    CLEAN = "clean"
    DIRTY = "dirty"
    SORTING = "sorting"


class SessionEvent(Enum):
    EDIT_OCCURRED = "edit-occurred"
    EDITS_REVERTED = "edits-reverted"
    APPLY_REQUESTED = "apply-requested"
    APPLY_COMPLETED = "apply-completed"


_TRANSITIONS = {
    (SessionState.CLEAN, SessionEvent.EDIT_OCCURRED): SessionState.DIRTY,
    (SessionState.DIRTY, SessionEvent.EDIT_OCCURRED): SessionState.DIRTY,
    (SessionState.CLEAN, SessionEvent.EDITS_REVERTED): SessionState.CLEAN,
    (SessionState.DIRTY, SessionEvent.EDITS_REVERTED): SessionState.CLEAN,
    (SessionState.CLEAN, SessionEvent.APPLY_REQUESTED): SessionState.SORTING,
    (SessionState.DIRTY, SessionEvent.APPLY_REQUESTED): SessionState.SORTING,
    (SessionState.SORTING, SessionEvent.APPLY_COMPLETED): SessionState.CLEAN,
}


class SessionStateError(Exception):
    """An event arrived that the current session state does not accept."""

    def __init__(self, state: SessionState, event: SessionEvent) -> None:
        super().__init__(f"Cannot handle {event.value} while {state.value}")
        self.state = state
        self.event = event


ApplyOutcome = Union[ApplyReport, Rejected]


class SortSession:
    """Owns the order model of the selected folder and applies it to disk.

    Only one apply runs at a time; a second request while sorting is rejected
    rather than queued. There is no way to cancel an apply once it started.
    """

    def __init__(
        self,
        coordinator: MonitorCoordinator | None = None,
        *,
        filesystem: LocalFileSystem | None = None,
        scan_filters: ScanFilters | None = None,
        sort_folders: bool = True,
        flush_delay: float = DEFAULT_FLUSH_DELAY_MS / 1000.0,
        is_system_drive: Callable[[Path], bool] | None = None,
        preconditions: Sequence[Precondition] = DEFAULT_PRECONDITIONS,
    ) -> None:
        self.coordinator = coordinator
        self.filesystem = filesystem or LocalFileSystem()
        self.scan_filters = scan_filters
        self.sort_folders = sort_folders
        self.flush_delay = flush_delay
        self.is_system_drive = is_system_drive
        self.preconditions = tuple(preconditions)
        self.directory: Path | None = None
        self.model: OrderModel | None = None
        self.detector: ChangeDetector | None = None
        self.engine: ReorderEngine | None = None
        self.last_resume: Future | None = None
        self._state = SessionState.CLEAN
        self._state_lock = threading.Lock()

    @property
    def state(self) -> SessionState:
        with self._state_lock:
            return self._state

    @property
    def has_unsaved_changes(self) -> bool:
        return self.state is SessionState.DIRTY

    @property
    def busy(self) -> bool:
        return self.state is SessionState.SORTING

    def open(self, directory: Path) -> OrderModel:
        """Scan ``directory`` and replace the current model wholesale."""

        with self._state_lock:
            if self._state is SessionState.SORTING:
                raise SessionStateError(self._state, SessionEvent.EDIT_OCCURRED)
            directory = Path(directory).expanduser()
            model = scan_tree(directory, filters=self.scan_filters, filesystem=self.filesystem)
            self.directory = directory
            self.model = model
            self.detector = ChangeDetector(model)
            self.engine = ReorderEngine(model, filesystem=self.filesystem)
            self._state = SessionState.CLEAN
        if self.coordinator is not None:
            self.coordinator.attach(directory)
        logger.info("Opened %s", directory)
        return model

    def move_entry(self, parent: int, from_index: int, to_index: int) -> List[int]:
        """Drag one entry of ``parent`` to a new position."""

        model, detector = self._editable()
        if from_index == to_index:
            return []
        moved = model.move_child(parent, from_index, to_index)
        flagged = detector.record_drag(parent, moved)
        self._fire(SessionEvent.EDIT_OCCURRED)
        return flagged

    def sort_level(self, parent: int, new_order: Sequence[int]) -> List[int]:
        """Replace the order of one level, e.g. after a column sort."""

        model, detector = self._editable()
        previous = model.reorder(parent, new_order)
        flagged = detector.record_sort(parent, previous, new_order)
        if flagged:
            self._fire(SessionEvent.EDIT_OCCURRED)
        elif not model.has_pending_moves():
            # Sorted back to what is on disk everywhere.
            self._fire(SessionEvent.EDITS_REVERTED)
        return flagged

    def sort_all(self, *, reverse: bool = False) -> int:
        """Sort every level by name; return how many levels changed."""

        model, _ = self._editable()
        changed = 0
        for node_id in list(model.walk()):
            if not model.node(node_id).children:
                continue
            if self.sort_level(node_id, model.sorted_children(node_id, reverse=reverse)):
                changed += 1
        return changed

    def check(self) -> PreconditionResult:
        return check_preconditions(self._context(), self.preconditions)

    def describe_checks(self) -> List[CheckResult]:
        return describe_checks(self._context(), self.preconditions)

    def apply(self, progress_callback: ProgressCallback | None = None) -> ApplyOutcome:
        """Write the current order to disk.

        Returns the engine's report, or the first failed precondition.
        """

        with self._state_lock:
            result = check_preconditions(self._context(locked=True), self.preconditions)
            if isinstance(result, Rejected):
                logger.warning("Apply rejected by %s: %s", result.check, result.reason)
                return result
            self._transition(SessionEvent.APPLY_REQUESTED)

        assert self.engine is not None and self.directory is not None
        if self.coordinator is not None:
            self.coordinator.suspend()
        report = ApplyReport()
        try:
            logger.info("Begin sorting: %s", self.directory)
            report = self.engine.apply(progress_callback=progress_callback)
            logger.info("Finished sorting: %s", self.directory)
            if report.failures:
                logger.warning("%d folder(s) could not be sorted; see the log above.", len(report.failures))
        finally:
            self._fire(SessionEvent.APPLY_COMPLETED)
            if self.coordinator is not None:
                self.last_resume = self.coordinator.resume(self.flush_delay)
        return report

    def _context(self, *, locked: bool = False) -> ApplyContext:
        state = self._state if locked else self.state
        return ApplyContext(
            directory=self.directory,
            sort_folders=self.sort_folders,
            busy=state is SessionState.SORTING,
            is_system_drive=self.is_system_drive,
            is_directory=self.filesystem.is_dir,
        )

    def _editable(self) -> tuple[OrderModel, ChangeDetector]:
        if self.model is None or self.detector is None:
            raise RuntimeError("No folder has been opened")
        if self.busy:
            raise SessionStateError(SessionState.SORTING, SessionEvent.EDIT_OCCURRED)
        return self.model, self.detector

    def _fire(self, event: SessionEvent) -> None:
        with self._state_lock:
            self._transition(event)

    def _transition(self, event: SessionEvent) -> None:
        # Callers hold self._state_lock.
        target = _TRANSITIONS.get((self._state, event))
        if target is None:
            raise SessionStateError(self._state, event)
        logger.debug("Session %s -> %s on %s", self._state.value, target.value, event.value)
        self._state = target
