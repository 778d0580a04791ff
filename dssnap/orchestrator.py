"""Pipeline orchestration for snapshot, diff and watch flows."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from .config import ConfigError, ProjectConfig, load_config
from .diff import DiffEngine
from .logging import get_logger
from .models import DiffResult, Snapshot
from .snapshot import SnapshotAssembler
from .stores import SnapshotStore
from .watch import SnapshotWatcher


@dataclass
class SnapshotOutcome:
    """Result of a snapshot run."""

    path: Path
    snapshot: Snapshot


AssemblerFactory = Callable[[ProjectConfig], SnapshotAssembler]


class Orchestrator:
    """Coordinates the snapshot, diff and watch pipelines."""

    def __init__(
        self,
        assembler_factory: AssemblerFactory | None = None,
        store: SnapshotStore | None = None,
        engine: DiffEngine | None = None,
    ) -> None:
        self._assembler_factory = assembler_factory or SnapshotAssembler
        self.store = store or SnapshotStore()
        self.engine = engine or DiffEngine()
        self.logger = get_logger("orchestrator")

    def run_snapshot(self, path: str | Path, output: str | Path | None = None) -> SnapshotOutcome:
        """Assemble a snapshot for the project at ``path`` and write it to disk."""
        project_root = self._resolve_root(path)
        config = self._load_config(project_root)
        self.logger.info("Starting snapshot run for %s", project_root)

        snapshot = self._assembler_factory(config).assemble()
        target = Path(output).expanduser() if output is not None else config.snapshot_path
        self.store.write(snapshot, target)
        self.logger.info("Snapshot with %d components written to %s", len(snapshot.components), target)
        return SnapshotOutcome(path=target, snapshot=snapshot)

    def run_diff(
        self,
        from_path: str | Path,
        to_path: str | Path | None = None,
        project: str | Path = ".",
    ) -> DiffResult:
        """Compare two snapshot files; ``to_path`` defaults to the configured snapshot."""
        if to_path is None:
            project_root = self._resolve_root(project)
            to_file = self._load_config(project_root).snapshot_path
        else:
            to_file = Path(to_path).expanduser()
        from_file = Path(from_path).expanduser()
        self.logger.info("Comparing %s against %s", from_file, to_file)

        old = self.store.read(from_file)
        new = self.store.read(to_file)
        result = self.engine.compare(old, new)
        self.logger.debug(
            "Diff found %d component change(s) and %d token change(s)",
            result.summary.total_changes,
            result.summary.token_changes,
        )
        return result

    def run_watch(self, path: str | Path, stop_event: threading.Event | None = None) -> None:
        """Watch the project at ``path`` until stopped."""
        project_root = self._resolve_root(path)
        config = self._load_config(project_root)
        watcher = SnapshotWatcher(
            config,
            assembler=self._assembler_factory(config),
            store=self.store,
            engine=self.engine,
        )
        watcher.run(stop_event)

    # ------------------------------------------------------------------
    # Internals

    @staticmethod
    def _resolve_root(path: str | Path) -> Path:
        project_root = Path(path).expanduser().resolve()
        if not project_root.exists():
            raise FileNotFoundError(f"Project path not found: {path}")
        if not project_root.is_dir():
            raise NotADirectoryError(f"Project path is not a directory: {path}")
        return project_root

    def _load_config(self, project_root: Path) -> ProjectConfig:
        try:
            return load_config(project_root)
        except ConfigError as exc:
            self.logger.warning("Ignoring invalid configuration (%s); using defaults", exc)
            return ProjectConfig(root=project_root)


__all__ = ["Orchestrator", "SnapshotOutcome"]
