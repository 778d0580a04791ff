"""Snapshot assembly: per-file extraction fan-out plus theme tokens."""

from __future__ import annotations

import hashlib
import json
import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, datetime
from functools import partial
from typing import List, Optional, Sequence

from .config import ProjectConfig
from .extractors import StyleCollector, collector_names, discover_style_collectors
from .extractors.component import ComponentExtractor, content_hash
from .extractors.syntax import SourceParseError, SyntaxTreeProvider
from .extractors.theme import (
    ThemeTokenExtractor,
    attach_usage_sites,
    derive_stylesheet_tokens,
    merge_tokens,
)
from .logging import get_logger
from .models import ComponentRecord, ProjectInfo, Snapshot, ThemeTokens
from .scanner import SourceFile, SourceScanner
from .stores import ExtractionCache

SNAPSHOT_VERSION = "1.0.0"

# Bump when extraction output changes shape so cached records are recomputed.
EXTRACTOR_VERSION = "1"


def utc_timestamp() -> str:
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class SnapshotAssembler:
    """Builds one immutable ``Snapshot`` for a project configuration."""

    def __init__(
        self,
        config: ProjectConfig,
        *,
        scanner: SourceScanner | None = None,
        collectors: Optional[Sequence[StyleCollector]] = None,
        theme_extractor: ThemeTokenExtractor | None = None,
        cache: ExtractionCache | None = None,
    ) -> None:
        self.config = config
        self.scanner = scanner or SourceScanner(config)
        self.logger = get_logger("snapshot")
        self._collector_overrides = list(collectors) if collectors is not None else None
        self._enabled = self._resolve_enabled() if self._collector_overrides is None else None
        provider = SyntaxTreeProvider()
        if self._collector_overrides is not None:
            active = self._collector_overrides
        else:
            active = discover_style_collectors(self._enabled)
        self.extractor = ComponentExtractor(config, active, provider=provider)
        self.theme_extractor = theme_extractor or ThemeTokenExtractor(provider)
        self.cache = cache if cache is not None else ExtractionCache(config.cache_path)

    def assemble(self) -> Snapshot:
        files = self.scanner.scan()
        self.logger.debug("Extracting components from %d files", len(files))

        extract = partial(self.extract_file, signature=self.signature())
        workers = max(1, self.config.extractors.workers)
        if workers == 1 or len(files) <= 1:
            results = [extract(source) for source in files]
        else:
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="dssnap-extract") as pool:
                results = list(pool.map(extract, files))

        components: List[ComponentRecord] = []
        seen: set[str] = set()
        for record in results:
            if record is None or record.file_path in seen:
                continue
            seen.add(record.file_path)
            components.append(record)
        self.logger.debug("Extracted %d components", len(components))

        self.cache.prune(seen)
        try:
            self.cache.persist()
        except OSError as exc:
            self.logger.warning("Could not write extraction cache: %s", exc)

        tokens = self._theme_tokens(components)
        return Snapshot(
            version=SNAPSHOT_VERSION,
            timestamp=utc_timestamp(),
            components=tuple(components),
            tokens=tokens,
            project=self.project_info(),
        )

    def extract_file(self, source: SourceFile, *, signature: str | None = None) -> Optional[ComponentRecord]:
        """Extract one file; failures are logged and yield ``None``."""
        try:
            # newline="" keeps line endings as written; the content hash covers the raw text.
            with source.path.open(encoding="utf-8", newline="") as handle:
                text = handle.read()
        except (OSError, UnicodeDecodeError) as exc:
            self.logger.warning("Skipping %s: could not read file (%s)", source.relative_path, exc)
            return None

        key = self.extractor.relative_path(source.path)
        fingerprint = content_hash(text)
        if signature is None:
            signature = self.signature()
        cached = self.cache.get(key, signature=signature, fingerprint=fingerprint)
        if cached is not None:
            self.logger.debug("Using cached extraction for %s", key)
            return cached

        try:
            record = self.extractor.extract(source.path, text)
        except SourceParseError as exc:
            self.logger.warning("Skipping %s: %s", source.relative_path, exc)
            return None
        except Exception as exc:
            self._log_exception(f"Extraction failed for {source.relative_path}", exc)
            return None

        if record is not None:
            self.cache.store(key, signature=signature, fingerprint=fingerprint, record=record)
        return record

    def signature(self) -> str:
        if self._collector_overrides is not None:
            names = sorted(type(collector).__qualname__ for collector in self._collector_overrides)
        else:
            names = collector_names(self._enabled)
        payload = {
            "extractor": EXTRACTOR_VERSION,
            "collectors": names,
            "categorization": {tier: sorted(members) for tier, members in self.config.categorization.items()},
            "sourceDir": self.config.source.dir,
            "platform": self.config.platform,
        }
        return hashlib.sha256(json.dumps(payload, sort_keys=True).encode("utf-8")).hexdigest()

    def project_info(self) -> ProjectInfo:
        defaults = ProjectInfo(styling=self.config.style_system, platform=self.config.platform)
        package_path = self.config.root / "package.json"
        try:
            data = json.loads(package_path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return defaults
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            self.logger.warning("Could not read %s (%s); using default project info", package_path, exc)
            return defaults
        if not isinstance(data, dict):
            return defaults

        dependencies: dict[str, object] = {}
        for section in ("dependencies", "devDependencies", "peerDependencies"):
            value = data.get(section)
            if isinstance(value, dict):
                dependencies.update(value)
        framework = defaults.framework
        if "react-native" in dependencies:
            framework = "react-native"
        elif "preact" in dependencies and "react" not in dependencies:
            framework = "preact"

        name = data.get("name")
        version = data.get("version")
        return ProjectInfo(
            name=name if isinstance(name, str) and name else defaults.name,
            version=version if isinstance(version, str) and version else defaults.version,
            framework=framework,
            styling=defaults.styling,
            platform=defaults.platform,
        )

    # ------------------------------------------------------------------
    # Internals

    def _resolve_enabled(self) -> Optional[List[str]]:
        requested = self.config.extractors.enabled
        if not requested:
            return None
        known = set(collector_names())
        enabled = [name for name in requested if name.lower() in known]
        unknown = sorted({name for name in requested if name.lower() not in known})
        if unknown:
            self.logger.warning("Ignoring unknown style collectors in configuration: %s", ", ".join(unknown))
        if not enabled:
            self.logger.warning("No configured style collector is available; using all registered collectors")
            return None
        return enabled

    def _theme_tokens(self, components: Sequence[ComponentRecord]) -> ThemeTokens:
        tokens = self.theme_extractor.extract(self.config)
        if self.config.platform == "react-native":
            records = [record for component in components for record in component.style_records]
            derived = derive_stylesheet_tokens(records)
            tokens = merge_tokens(derived, tokens)
        return attach_usage_sites(tokens, components)

    def _log_exception(self, message: str, exc: Exception) -> None:
        if self.logger.isEnabledFor(logging.DEBUG):
            self.logger.exception("%s: %s", message, exc)
        else:
            self.logger.error("%s: %s", message, exc)


def build_snapshot(config: ProjectConfig) -> Snapshot:
    """Assemble a snapshot with the default collaborators."""
    return SnapshotAssembler(config).assemble()


__all__ = ["EXTRACTOR_VERSION", "SNAPSHOT_VERSION", "SnapshotAssembler", "build_snapshot", "utc_timestamp"]
