"""Continuous snapshot mode driven by file-system events."""

from __future__ import annotations

import signal
import threading
from pathlib import Path
from typing import Any, Callable, List, Optional, Set

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from .config import CONFIG_FILENAME, ProjectConfig
from .diff import DiffEngine
from .extractors.theme import THEME_CANDIDATES
from .logging import get_logger
from .models import Snapshot
from .scanner import SourceScanner
from .snapshot import SnapshotAssembler
from .stores import SnapshotStore

logger = get_logger("watch")


class ChangeCoalescer:
    """Collects changed paths and fires once ``delay`` seconds after the latest one."""

    def __init__(self, delay: float, callback: Callable[[List[str]], None]) -> None:
        self.delay = delay
        self.callback = callback
        self._lock = threading.Lock()
        self._pending: Set[str] = set()
        self._timer: Optional[threading.Timer] = None
        self._closed = False

    def add_change(self, path: str) -> None:
        with self._lock:
            if self._closed:
                return
            self._pending.add(path)
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self.delay, self._fire)
            self._timer.daemon = True
            self._timer.start()

    def cancel(self) -> None:
        """Discard pending changes and ignore any that arrive later."""
        with self._lock:
            self._closed = True
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            self._pending.clear()

    @property
    def has_pending(self) -> bool:
        with self._lock:
            return bool(self._pending)

    def _fire(self) -> None:
        with self._lock:
            if self._closed or threading.current_thread() is not self._timer:
                # Closed, or superseded by a newer event.
                return
            paths = sorted(self._pending)
            self._pending.clear()
            self._timer = None
        if paths:
            self.callback(paths)


class SerialRunner:
    """Runs ``task`` one at a time; triggers during a run collapse into one re-run."""

    def __init__(self, task: Callable[[], object]) -> None:
        self._task = task
        self._condition = threading.Condition()
        self._running = False
        self._pending = False
        self._closed = False
        self.runs = 0

    def trigger(self) -> bool:
        """Run the task now, or schedule a re-run if one is in flight.

        Returns True when the calling thread performed the run(s).
        """
        with self._condition:
            if self._closed:
                return False
            if self._running:
                self._pending = True
                return False
            self._running = True
        try:
            while True:
                try:
                    self._task()
                except Exception:
                    logger.exception("Snapshot run failed")
                with self._condition:
                    self.runs += 1
                    if self._closed or not self._pending:
                        break
                    self._pending = False
        finally:
            with self._condition:
                self._running = False
                self._pending = False
                self._condition.notify_all()
        return True

    @property
    def running(self) -> bool:
        with self._condition:
            return self._running

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        with self._condition:
            return self._condition.wait_for(lambda: not self._running, timeout=timeout)

    def close(self, timeout: Optional[float] = None) -> bool:
        """Refuse further triggers and wait for an in-flight run to finish."""
        with self._condition:
            self._closed = True
            return self._condition.wait_for(lambda: not self._running, timeout=timeout)


class SourceChangeHandler(FileSystemEventHandler):
    """Forwards relevant file-system events to a ``ChangeCoalescer``."""

    def __init__(self, config: ProjectConfig, scanner: SourceScanner, coalescer: ChangeCoalescer) -> None:
        super().__init__()
        self.scanner = scanner
        self.coalescer = coalescer
        watched = (*THEME_CANDIDATES, "package.json", CONFIG_FILENAME)
        self._extra_paths = {(config.root / name).resolve() for name in watched}
        if config.theme.path is not None:
            self._extra_paths.add(config.theme.path.resolve())

    def on_modified(self, event: Any) -> None:
        if not event.is_directory:
            self._handle(event.src_path, "modified")

    def on_created(self, event: Any) -> None:
        if not event.is_directory:
            self._handle(event.src_path, "created")

    def on_deleted(self, event: Any) -> None:
        if not event.is_directory:
            self._handle(event.src_path, "deleted")

    def on_moved(self, event: Any) -> None:
        if not event.is_directory:
            self._handle(event.src_path, "deleted")
            self._handle(event.dest_path, "created")

    def is_relevant(self, path: Path) -> bool:
        return path.resolve() in self._extra_paths or self.scanner.is_candidate(path)

    def _handle(self, raw_path: Any, event_type: str) -> None:
        path = Path(raw_path.decode() if isinstance(raw_path, bytes) else raw_path)
        if not self.is_relevant(path):
            return
        logger.debug("%s: %s", event_type.capitalize(), path)
        self.coalescer.add_change(str(path))


class SnapshotWatcher:
    """Re-assembles and persists the snapshot whenever watched sources settle."""

    def __init__(
        self,
        config: ProjectConfig,
        *,
        assembler: SnapshotAssembler | None = None,
        store: SnapshotStore | None = None,
        engine: DiffEngine | None = None,
        observer_factory: Callable[[], Any] = Observer,
        output: Path | None = None,
    ) -> None:
        self.config = config
        self.assembler = assembler or SnapshotAssembler(config)
        self.store = store or SnapshotStore()
        self.engine = engine or DiffEngine()
        self.output = output or config.snapshot_path
        self.runner = SerialRunner(self.refresh)
        self.coalescer = ChangeCoalescer(config.watch.debounce_seconds, self._on_settled)
        self.handler = SourceChangeHandler(config, SourceScanner(config), self.coalescer)
        self._observer_factory = observer_factory
        self._observer: Any = None
        self.latest: Optional[Snapshot] = None

    def refresh(self) -> Snapshot:
        """Assemble, compare against the previous run and persist."""
        snapshot = self.assembler.assemble()
        if self.latest is not None:
            result = self.engine.compare(self.latest, snapshot)
            summary = result.summary
            if result.has_changes or summary.token_changes:
                logger.info(
                    "Snapshot updated: %d added, %d removed, %d modified, %d token change(s)",
                    summary.components_added,
                    summary.components_removed,
                    summary.components_modified,
                    summary.token_changes,
                )
            else:
                logger.info("Snapshot refreshed; no component changes")
        self.store.write(snapshot, self.output)
        self.latest = snapshot
        logger.debug("Snapshot written to %s", self.output)
        return snapshot

    def start(self) -> None:
        logger.info("Creating initial snapshot for %s", self.config.root)
        self.runner.trigger()
        observer = self._observer_factory()
        observer.schedule(self.handler, str(self.config.root), recursive=True)
        observer.start()
        self._observer = observer
        logger.info("Watching %s for changes (Ctrl+C to stop)", self.config.source_dir)

    def stop(self) -> None:
        observer = self._observer
        self._observer = None
        if observer is not None:
            observer.stop()
            observer.join(timeout=5.0)
        self.coalescer.cancel()
        self.runner.close()
        logger.info("Stopped watching %s", self.config.root)

    def run(self, stop_event: threading.Event | None = None) -> None:
        """Block until ``stop_event`` is set or SIGINT/SIGTERM arrives."""
        stop_event = stop_event or threading.Event()
        restore = self._install_signal_handlers(stop_event)
        try:
            self.start()
            while not stop_event.wait(timeout=0.5):
                pass
        finally:
            self.stop()
            restore()

    # ------------------------------------------------------------------
    # Internals

    def _on_settled(self, paths: List[str]) -> None:
        logger.info("Detected %d changed file(s); updating snapshot", len(paths))
        self.runner.trigger()

    @staticmethod
    def _install_signal_handlers(stop_event: threading.Event) -> Callable[[], None]:
        if threading.current_thread() is not threading.main_thread():
            return lambda: None

        def _handler(signum: int, frame: Any) -> None:  # noqa: ARG001
            logger.info("Received signal %s, shutting down", signum)
            stop_event.set()

        previous = {sig: signal.signal(sig, _handler) for sig in (signal.SIGINT, signal.SIGTERM)}

        def _restore() -> None:
            for sig, handler in previous.items():
                signal.signal(sig, handler)

        return _restore


__all__ = ["ChangeCoalescer", "SerialRunner", "SnapshotWatcher", "SourceChangeHandler"]
