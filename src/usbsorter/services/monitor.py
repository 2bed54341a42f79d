"""Recursive change watch on the selected folder.

Events are only reported to the log; they never touch the order model.
"""
from __future__ import annotations

import logging
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler, FileSystemMovedEvent
from watchdog.observers import Observer

logger = logging.getLogger(__name__)

RELOAD_HINT = "You may need to reload the folder."


class LoggingEventHandler(FileSystemEventHandler):
    """Write every received change to the log.

    Modifications of a directory itself are logged at debug level only; the
    create, delete or rename inside it that caused them is reported already.
    """

    def on_created(self, event: FileSystemEvent) -> None:
        self._report("Created", event)

    def on_deleted(self, event: FileSystemEvent) -> None:
        self._report("Deleted", event)

    def on_modified(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            # Directory mtime updates accompany every create/delete inside it.
            logger.debug("Received Changed file system event. Path: %s", event.src_path)
            return
        self._report("Changed", event)

    def on_moved(self, event: FileSystemMovedEvent) -> None:
        logger.warning(
            "Received Renamed file system event. Before: %s; After: %s",
            event.src_path,
            event.dest_path,
        )
        logger.warning(RELOAD_HINT)

    def _report(self, kind: str, event: FileSystemEvent) -> None:
        logger.warning("Received %s file system event. Path: %s", kind, event.src_path)
        logger.warning(RELOAD_HINT)


class FilesystemMonitor:
    """A watchdog observer with an on/off switch.

    The watch is scheduled while enabled and unscheduled while disabled. The
    observer thread itself is started lazily on first enable.
    """

    def __init__(self, handler: FileSystemEventHandler | None = None) -> None:
        self._handler = handler or LoggingEventHandler()
        self._observer = Observer()
        self._observer.daemon = True
        self._started = False
        self._path: Path | None = None
        self._watch = None

    @property
    def path(self) -> Path | None:
        return self._path

    @property
    def enabled(self) -> bool:
        return self._watch is not None

    def set_path(self, path: Path | None) -> None:
        """Point the monitor at a new folder; leaves it disabled."""

        self.set_enabled(False)
        self._path = Path(path) if path is not None else None

    def set_enabled(self, enabled: bool) -> None:
        if enabled == self.enabled:
            return
        if not enabled:
            self._observer.unschedule(self._watch)
            self._watch = None
            logger.debug("Filesystem monitoring disabled")
            return
        if self._path is None:
            return
        if not self._started:
            self._observer.start()
            self._started = True
        self._watch = self._observer.schedule(self._handler, str(self._path), recursive=True)
        logger.debug("Filesystem monitoring enabled for %s", self._path)

    def stop(self) -> None:
        self.set_enabled(False)
        if self._started:
            self._observer.stop()
            self._observer.join()
            self._started = False
            # Observer threads cannot be restarted.
            self._observer = Observer()
            self._observer.daemon = True
