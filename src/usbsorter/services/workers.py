"""Run a reorder outside the GUI thread."""
from __future__ import annotations

from typing import Any, Callable

from PySide6 import QtCore


class ApplyTask(QtCore.QObject):
    """Call ``func`` on a worker thread and report back through signals.

    ``func`` receives a ``progress_callback`` keyword wired to
    :attr:`progressed`; the result, or the exception it raised, is emitted
    before :attr:`done`.
    """

    progressed = QtCore.Signal(int)
    succeeded = QtCore.Signal(object)
    failed = QtCore.Signal(object)
    done = QtCore.Signal()

    def __init__(self, func: Callable[..., Any]) -> None:
        super().__init__()
        self._func = func

    @QtCore.Slot()
    def run(self) -> None:  # pragma: no cover - Qt callback
        try:
            outcome = self._func(progress_callback=self.progressed.emit)
        except Exception as exc:  # pragma: no cover - forwards to UI layer
            self.failed.emit(exc)
        else:
            self.succeeded.emit(outcome)
        finally:
            self.done.emit()


def start_task(task: ApplyTask) -> QtCore.QThread:
    """Move ``task`` to a fresh ``QThread``, start it and return the thread.

    The caller keeps a reference to ``task`` until :attr:`ApplyTask.done`.
    """

    thread = QtCore.QThread()
    task.moveToThread(thread)
    thread.started.connect(task.run)
    task.done.connect(thread.quit)
    task.done.connect(task.deleteLater)
    thread.finished.connect(thread.deleteLater)
    thread.start()
    return thread
