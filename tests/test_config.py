"""Tests for dssnap.config."""

from __future__ import annotations

from pathlib import Path

import pytest

from dssnap.config import ConfigError, ProjectConfig, load_config


def test_load_config_returns_defaults_when_missing(tmp_path: Path) -> None:
    config = load_config(tmp_path)

    assert isinstance(config, ProjectConfig)
    assert config.root == tmp_path.resolve()
    assert config.platform == "web"
    assert config.style_system == "tailwind"
    assert config.source.dir == "src"
    assert "**/*.tsx" in config.source.include
    assert "**/*.test.*" in config.source.exclude
    assert config.categorization == {}
    assert config.theme.path is None
    assert config.snapshot_path == tmp_path.resolve() / ".design-system-snapshots" / "snapshot.json"
    assert config.cache_path == tmp_path.resolve() / ".dssnap" / "extraction_cache.json"
    assert config.extractors.enabled == []
    assert config.extractors.workers == 4
    assert config.watch.debounce_seconds == 1.0


def test_load_config_parses_expected_fields(tmp_path: Path) -> None:
    config_file = tmp_path / ".dssnap.yml"
    config_file.write_text(
        """
platform: react-native
style_system: stylesheet
source:
  dir: app
  include: ["**/*.tsx"]
  exclude: []
categorization:
  atoms: [Pill]
  page: [Home, Settings]
theme:
  path: tokens/theme.json
output:
  snapshot: snapshots/current.json
  cache: null
extractors:
  enabled: [stylesheet]
  workers: 2
watch:
  debounce_seconds: 0.25
""",
        encoding="utf-8",
    )

    config = load_config(config_file)

    root = tmp_path.resolve()
    assert config.platform == "react-native"
    assert config.style_system == "stylesheet"
    assert config.source_dir == root / "app"
    assert config.source.include == ["**/*.tsx"]
    assert config.source.exclude == []
    assert config.categorization == {"atomic": ["Pill"], "page": ["Home", "Settings"]}
    assert config.theme.path == root / "tokens" / "theme.json"
    assert config.snapshot_path == root / "snapshots" / "current.json"
    assert config.cache_path is None
    assert config.extractors.enabled == ["stylesheet"]
    assert config.extractors.workers == 2
    assert config.watch.debounce_seconds == 0.25


def test_load_config_accepts_empty_file(tmp_path: Path) -> None:
    (tmp_path / ".dssnap.yml").write_text("", encoding="utf-8")

    config = load_config(tmp_path)

    assert config.platform == "web"


def test_load_config_clamps_worker_count(tmp_path: Path) -> None:
    (tmp_path / ".dssnap.yml").write_text("extractors:\n  workers: 0\n", encoding="utf-8")

    assert load_config(tmp_path).extractors.workers == 1


@pytest.mark.parametrize(
    "content",
    [
        "platform: desktop\n",
        "style_system: sass\n",
        "categorization:\n  huge: [Thing]\n",
        "- just\n- a list\n",
        "platform: [unclosed\n",
    ],
)
def test_load_config_rejects_invalid_documents(tmp_path: Path, content: str) -> None:
    (tmp_path / ".dssnap.yml").write_text(content, encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(tmp_path)
