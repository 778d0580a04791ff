"""Component source enumeration."""

from __future__ import annotations

import os
from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Iterator, List, Sequence

from .config import ProjectConfig
from .logging import get_logger

_EXCLUDED_DIRS = {
    "node_modules",
    ".git",
    "dist",
    "build",
    ".next",
    "coverage",
    ".design-system-snapshots",
    ".dssnap",
}

ELIGIBLE_SUFFIXES = frozenset({".tsx", ".ts", ".jsx", ".js", ".mjs", ".cjs"})


@dataclass(frozen=True)
class SourceFile:
    """A candidate file and its path relative to the source directory."""

    path: Path
    relative_path: str


def glob_matches(relative_path: str, pattern: str) -> bool:
    """Match a POSIX path against a glob where ``**/`` may also match no directories."""
    if fnmatchcase(relative_path, pattern):
        return True
    if pattern.startswith("**/"):
        return glob_matches(relative_path, pattern[3:])
    if "/**/" in pattern:
        head, tail = pattern.split("/**/", 1)
        return glob_matches(relative_path, f"{head}/{tail}")
    return False


class SourceScanner:
    """Walks the configured source directory in sorted order."""

    def __init__(self, config: ProjectConfig) -> None:
        self.config = config
        self.logger = get_logger("scanner")

    def scan(self) -> List[SourceFile]:
        root = self.config.root
        if not root.exists():
            raise FileNotFoundError(f"Project root not found: {root}")
        if not root.is_dir():
            raise NotADirectoryError(f"Project root is not a directory: {root}")

        source_dir = self.config.source_dir
        if not source_dir.is_dir():
            self.logger.warning("Source directory %s does not exist; no components to extract", source_dir)
            return []

        files = [
            SourceFile(path=path, relative_path=relative)
            for path, relative in self._iter_files(source_dir)
            if self._accepts(relative)
        ]
        self.logger.debug("Found %d candidate source files under %s", len(files), source_dir)
        return files

    def is_candidate(self, path: Path) -> bool:
        """Return True when ``path`` would be returned by ``scan``."""
        source_dir = self.config.source_dir.resolve()
        try:
            relative = path.resolve().relative_to(source_dir)
        except ValueError:
            return False
        if any(part in _EXCLUDED_DIRS for part in relative.parts[:-1]):
            return False
        return self._accepts(relative.as_posix())

    # ------------------------------------------------------------------
    # Internals

    def _accepts(self, relative_path: str) -> bool:
        if Path(relative_path).suffix.lower() not in ELIGIBLE_SUFFIXES:
            return False
        include = self.config.source.include
        if include and not _any_match(relative_path, include):
            return False
        return not _any_match(relative_path, self.config.source.exclude)

    @staticmethod
    def _iter_files(source_dir: Path) -> Iterator[tuple[Path, str]]:
        for dirpath, dirnames, filenames in os.walk(source_dir):
            dirnames[:] = sorted(name for name in dirnames if name not in _EXCLUDED_DIRS)
            current_dir = Path(dirpath)
            rel_dir = current_dir.relative_to(source_dir).as_posix() if current_dir != source_dir else ""
            for filename in sorted(filenames):
                rel_path = f"{rel_dir}/{filename}" if rel_dir else filename
                yield current_dir / filename, rel_path


def _any_match(relative_path: str, patterns: Sequence[str]) -> bool:
    return any(glob_matches(relative_path, pattern) for pattern in patterns)


__all__ = ["ELIGIBLE_SUFFIXES", "SourceFile", "SourceScanner", "glob_matches"]
