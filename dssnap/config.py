"""Configuration loading for dssnap (.dssnap.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .models import TIERS

CONFIG_FILENAME = ".dssnap.yml"

PLATFORMS = ("web", "react-native")
STYLE_SYSTEMS = ("tailwind", "stylesheet", "styled-components", "css-modules")

DEFAULT_SNAPSHOT_PATH = ".design-system-snapshots/snapshot.json"
DEFAULT_CACHE_PATH = ".dssnap/extraction_cache.json"

# Atomic-design directory names accepted as aliases for tier keys.
_TIER_ALIASES = {
    "atoms": "atomic",
    "molecules": "composite",
    "organisms": "complex",
    "templates": "template",
    "pages": "page",
}


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


def _default_include() -> List[str]:
    return ["**/*.tsx", "**/*.jsx", "**/*.ts", "**/*.js"]


def _default_exclude() -> List[str]:
    return ["**/*.test.*", "**/*.spec.*", "**/*.stories.*", "**/node_modules/**"]


@dataclass
class SourceConfig:
    """Where component sources live and which files count."""

    dir: str = "src"
    include: List[str] = field(default_factory=_default_include)
    exclude: List[str] = field(default_factory=_default_exclude)


@dataclass
class ThemeConfig:
    """Explicit theme token source, if any."""

    path: Optional[Path] = None


@dataclass
class OutputConfig:
    """Snapshot and cache locations, relative to the project root."""

    snapshot: str = DEFAULT_SNAPSHOT_PATH
    cache: Optional[str] = DEFAULT_CACHE_PATH


@dataclass
class ExtractorConfig:
    """Style collector enablement and worker pool size."""

    enabled: List[str] = field(default_factory=list)
    workers: int = 4


@dataclass
class WatchConfig:
    """Continuous-mode settings."""

    debounce_seconds: float = 1.0


@dataclass
class ProjectConfig:
    """Represents the settings defined in .dssnap.yml."""

    root: Path
    platform: str = "web"
    style_system: str = "tailwind"
    source: SourceConfig = field(default_factory=SourceConfig)
    categorization: Dict[str, List[str]] = field(default_factory=dict)
    theme: ThemeConfig = field(default_factory=ThemeConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    extractors: ExtractorConfig = field(default_factory=ExtractorConfig)
    watch: WatchConfig = field(default_factory=WatchConfig)

    @property
    def source_dir(self) -> Path:
        return self.root / self.source.dir

    @property
    def snapshot_path(self) -> Path:
        return self.root / self.output.snapshot

    @property
    def cache_path(self) -> Optional[Path]:
        if not self.output.cache:
            return None
        return self.root / self.output.cache


def load_config(config_path: Path) -> ProjectConfig:
    """Load configuration from disk."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return ProjectConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    config = ProjectConfig(root=root)

    platform = _as_str(data.get("platform"))
    if platform is not None:
        if platform not in PLATFORMS:
            raise ConfigError(f"Unsupported platform '{platform}' (expected one of {', '.join(PLATFORMS)})")
        config.platform = platform

    style_system = _as_str(data.get("style_system"))
    if style_system is not None:
        if style_system not in STYLE_SYSTEMS:
            raise ConfigError(
                f"Unsupported style_system '{style_system}' (expected one of {', '.join(STYLE_SYSTEMS)})"
            )
        config.style_system = style_system

    source_data = _as_dict(data.get("source"))
    if source_data:
        source_dir = _as_str(source_data.get("dir"))
        if source_dir:
            config.source.dir = source_dir
        if "include" in source_data:
            config.source.include = _as_str_list(source_data.get("include"))
        if "exclude" in source_data:
            config.source.exclude = _as_str_list(source_data.get("exclude"))

    config.categorization = _parse_categorization(_as_dict(data.get("categorization")))

    theme_data = _as_dict(data.get("theme"))
    theme_path = _as_str(theme_data.get("path")) if theme_data else None
    if theme_path:
        config.theme.path = root / theme_path

    output_data = _as_dict(data.get("output"))
    if output_data:
        snapshot = _as_str(output_data.get("snapshot"))
        if snapshot:
            config.output.snapshot = snapshot
        if "cache" in output_data:
            config.output.cache = _as_str(output_data.get("cache")) or None

    extractor_data = _as_dict(data.get("extractors"))
    if extractor_data:
        config.extractors.enabled = _as_str_list(extractor_data.get("enabled"))
        workers = _as_int(extractor_data.get("workers"))
        if workers is not None:
            config.extractors.workers = max(1, workers)

    watch_data = _as_dict(data.get("watch"))
    if watch_data:
        debounce = _as_float(watch_data.get("debounce_seconds"))
        if debounce is not None and debounce >= 0:
            config.watch.debounce_seconds = debounce

    return config


def _parse_categorization(data: Dict[str, Any]) -> Dict[str, List[str]]:
    overrides: Dict[str, List[str]] = {}
    for key, value in data.items():
        tier = _TIER_ALIASES.get(str(key).lower(), str(key).lower())
        if tier not in TIERS:
            raise ConfigError(f"Unknown categorization tier '{key}'")
        names = _as_str_list(value)
        if names:
            overrides.setdefault(tier, []).extend(names)
    return overrides


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Failed to read {path.name}: {exc}") from exc
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded if loaded is not None else {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "ExtractorConfig",
    "OutputConfig",
    "PLATFORMS",
    "ProjectConfig",
    "STYLE_SYSTEMS",
    "SourceConfig",
    "ThemeConfig",
    "WatchConfig",
    "load_config",
]
