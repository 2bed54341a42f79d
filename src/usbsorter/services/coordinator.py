"""Serialize every change to the filesystem watch behind one lock.

A reorder suspends the watch so its own moves are not reported, then resumes
it after a flush delay so writes still queued by the OS settle first. Each
suspend, resume and immediate preference change bumps a generation counter;
a delayed resume only acts if no newer one has happened since it was
scheduled, so overlapping resumes cannot re-enable the watch early.
"""
from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


class Watch(Protocol):
    """The switchable change subscription the coordinator owns."""

    @property
    def enabled(self) -> bool: ...

    def set_enabled(self, enabled: bool) -> None: ...

    def set_path(self, path: Path | None) -> None: ...

    def stop(self) -> None: ...


class MonitorCoordinator:
    """Suspend and resume a :class:`Watch` around reorder operations."""

    def __init__(
        self,
        watch: Watch,
        *,
        preference: bool = True,
        executor: ThreadPoolExecutor | None = None,
    ) -> None:
        self._lock = threading.Lock()
        self._watch = watch
        self._preference = preference
        self._reordering = False
        self._generation = 0
        self._pending_generation: int | None = None
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(max_workers=2, thread_name_prefix="monitor-resume")

    @property
    def preference(self) -> bool:
        with self._lock:
            return self._preference

    @property
    def watch_enabled(self) -> bool:
        with self._lock:
            return self._watch.enabled

    @property
    def reordering(self) -> bool:
        with self._lock:
            return self._reordering

    def attach(self, path: Path | None) -> None:
        """Watch a newly selected folder according to the preference."""

        with self._lock:
            self._generation += 1
            self._pending_generation = None
            self._watch.set_path(path)
            if not self._reordering:
                self._set_watch(self._preference)

    def suspend(self) -> None:
        """Disable the watch for the duration of a reorder."""

        with self._lock:
            self._reordering = True
            self._generation += 1
            self._pending_generation = None
            self._set_watch(False)
        logger.debug("Filesystem monitoring suspended")

    def resume(self, flush_delay: float) -> Future:
        """Re-enable the watch per the preference after ``flush_delay`` seconds.

        Runs on a background worker; the returned future resolves to ``True``
        if this call applied the preference and ``False`` if a newer suspend,
        resume or preference change superseded it.
        """

        with self._lock:
            self._reordering = False
            self._generation += 1
            generation = self._generation
            self._pending_generation = generation
        return self._executor.submit(self._delayed_resume, generation, max(0.0, flush_delay))

    def set_preference(self, enabled: bool) -> None:
        """Record the monitoring preference and apply it when nothing is in flight."""

        with self._lock:
            self._preference = enabled
            if self._reordering or self._pending_generation is not None:
                # The end-of-operation resume picks up the new preference.
                logger.debug("Monitoring preference deferred until the reorder settles")
                return
            self._generation += 1
            self._set_watch(enabled)

    def shutdown(self) -> None:
        with self._lock:
            self._generation += 1
            self._pending_generation = None
            self._watch.stop()
        if self._owns_executor:
            self._executor.shutdown(wait=False, cancel_futures=True)

    def _delayed_resume(self, generation: int, flush_delay: float) -> bool:
        time.sleep(flush_delay)
        with self._lock:
            if generation != self._generation or self._reordering:
                logger.debug("Skipping stale monitor resume (generation %d)", generation)
                return False
            self._pending_generation = None
            self._set_watch(self._preference)
        logger.debug("Filesystem monitoring resumed")
        return True

    def _set_watch(self, enabled: bool) -> None:
        # Callers hold self._lock.
        try:
            self._watch.set_enabled(enabled)
        except OSError as exc:
            logger.warning("Unable to %s filesystem monitoring: %s", "enable" if enabled else "disable", exc)
