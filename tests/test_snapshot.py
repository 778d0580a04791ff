"""Tests for snapshot assembly."""

from __future__ import annotations

import hashlib
import json
import re
import threading
from dataclasses import replace

from dssnap.extractors import StyleCollection, StyleCollector
from dssnap.extractors.collectors import StyleSheetCollector, UtilityClassCollector
from dssnap.snapshot import SNAPSHOT_VERSION, SnapshotAssembler, build_snapshot

BUTTON = """
import React from 'react';

export const Button = ({ label }) => (
  <button className="p-4 bg-blue-500 custom-wrapper">{label}</button>
);
"""

CARD = """
import React from 'react';

export default function Card({ title }) {
  return <div className="rounded-lg shadow-md bg-primary">{title}</div>;
}
"""


class CountingCollector(StyleCollector):
    """Utility-class collector that records how many files it visited."""

    calls: list[str] = []
    lock = threading.Lock()

    def __init__(self) -> None:
        self.inner = UtilityClassCollector()

    def collect(self, tree):
        with self.lock:
            self.calls.append(tree.path)
        return self.inner.collect(tree)


class ExplodingCollector(StyleCollector):
    """Collector that fails for one file."""

    def collect(self, tree):
        if "Boom" in str(tree.path):
            raise RuntimeError("collector exploded")
        return StyleCollection()


def test_snapshot_extracts_components_and_skips_non_components(project_builder) -> None:
    project_builder.write(
        {
            "src/Button.tsx": BUTTON,
            "src/utils/format.ts": "const format = (value) => value.trim();\n",
            "src/Broken.tsx": "import React from 'react';\nexport const Broken = () => <div>;\n",
        }
    )

    snapshot = build_snapshot(project_builder.config())

    assert snapshot.version == SNAPSHOT_VERSION
    assert re.fullmatch(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z", snapshot.timestamp)
    assert [component.file_path for component in snapshot.components] == ["src/Button.tsx"]
    assert snapshot.components[0].style_tokens == ("bg-blue-500", "p-4")


def test_unexpected_extraction_errors_are_isolated(project_builder) -> None:
    project_builder.write({"src/Button.tsx": BUTTON, "src/Boom.tsx": BUTTON.replace("Button", "Boom")})
    config = project_builder.config()

    snapshot = SnapshotAssembler(config, collectors=[UtilityClassCollector(), ExplodingCollector()]).assemble()

    assert [component.name for component in snapshot.components] == ["Button"]


def test_snapshot_is_deterministic_across_worker_counts(project_builder) -> None:
    files = {f"src/widgets/Widget{index}.tsx": BUTTON.replace("Button", f"Widget{index}") for index in range(6)}
    files["src/Card.tsx"] = CARD
    project_builder.write(files)
    config = project_builder.config()
    config.output.cache = None

    config.extractors.workers = 1
    serial = SnapshotAssembler(config).assemble()
    config.extractors.workers = 4
    parallel = SnapshotAssembler(config).assemble()

    assert replace(serial, timestamp="") == replace(parallel, timestamp="")
    assert [component.file_path for component in serial.components] == [
        "src/Card.tsx",
        *[f"src/widgets/Widget{index}.tsx" for index in range(6)],
    ]


def test_extraction_cache_reuses_unchanged_files(project_builder) -> None:
    project_builder.write({"src/Button.tsx": BUTTON, "src/Card.tsx": CARD})
    config = project_builder.config()
    CountingCollector.calls = []

    first = SnapshotAssembler(config, collectors=[CountingCollector()]).assemble()
    assert sorted(CountingCollector.calls) == sorted(
        str(config.root / name) for name in ("src/Button.tsx", "src/Card.tsx")
    )
    assert config.cache_path is not None and config.cache_path.exists()

    CountingCollector.calls = []
    second = SnapshotAssembler(config, collectors=[CountingCollector()]).assemble()
    assert CountingCollector.calls == []
    assert second.components == first.components

    project_builder.write({"src/Card.tsx": CARD.replace("rounded-lg", "rounded-sm")})
    third = SnapshotAssembler(config, collectors=[CountingCollector()]).assemble()
    assert CountingCollector.calls == [str(config.root / "src/Card.tsx")]
    assert "rounded-sm" in third.components[1].style_tokens


def test_snapshot_attaches_theme_tokens_and_usage_sites(project_builder) -> None:
    project_builder.write(
        {
            "tailwind.config.js": "module.exports = { theme: { extend: { colors: { primary: '#3b82f6' } } } };\n",
            "src/Card.tsx": CARD,
        }
    )

    snapshot = build_snapshot(project_builder.config())

    primary = snapshot.tokens.colors["primary"]
    assert primary.value == "#3b82f6"
    assert primary.derived_format == "rgb(59, 130, 246)"
    assert primary.usage_sites == ("src/Card.tsx",)
    assert snapshot.tokens.breakpoints["md"] == "768px"


def test_react_native_snapshot_derives_tokens_from_stylesheets(project_builder) -> None:
    project_builder.write(
        {
            ".dssnap.yml": "platform: react-native\nstyle_system: stylesheet\n",
            "package.json": json.dumps(
                {"name": "mobile-kit", "version": "3.1.0", "dependencies": {"react": "18", "react-native": "0.74"}}
            ),
            "src/Badge.tsx": """
            import { StyleSheet, Text } from 'react-native';

            export const Badge = () => <Text style={styles.badge}>New</Text>;

            const styles = StyleSheet.create({
              badge: { backgroundColor: '#ff0000', padding: 4, borderRadius: 6 },
            });
            """,
        }
    )

    snapshot = build_snapshot(project_builder.config())

    assert snapshot.components[0].platform == "react-native"
    assert snapshot.tokens.colors["background-badge"].derived_format == "rgb(255, 0, 0)"
    assert snapshot.tokens.spacing == {"padding-badge": "4"}
    assert snapshot.tokens.border_radius == {"radius-badge": "6"}
    assert snapshot.project.name == "mobile-kit"
    assert snapshot.project.version == "3.1.0"
    assert snapshot.project.framework == "react-native"
    assert snapshot.project.styling == "stylesheet"
    assert snapshot.project.platform == "react-native"


def test_project_info_defaults_without_package_json(project_builder) -> None:
    project = SnapshotAssembler(project_builder.config()).project_info()

    assert project.name == "unknown"
    assert project.version == "0.0.0"
    assert project.framework == "react"


def test_signature_changes_with_categorization(project_builder) -> None:
    config = project_builder.config()
    before = SnapshotAssembler(config).signature()
    config.categorization = {"page": ["Button"]}

    assert SnapshotAssembler(config).signature() != before


def test_unknown_enabled_collectors_fall_back_to_registered_ones(project_builder) -> None:
    project_builder.write({".dssnap.yml": "extractors:\n  enabled: [tailwind]\n", "src/Button.tsx": BUTTON})
    config = project_builder.config()

    assembler = SnapshotAssembler(config)
    snapshot = assembler.assemble()

    assert {type(collector) for collector in assembler.extractor.collectors} >= {
        UtilityClassCollector,
        StyleSheetCollector,
    }
    assert snapshot.components[0].style_tokens == ("bg-blue-500", "p-4")


def test_unknown_enabled_collectors_are_dropped_from_known_ones(project_builder) -> None:
    config = project_builder.config()
    config.extractors.enabled = ["stylesheet", "tailwind"]

    assembler = SnapshotAssembler(config)

    assert [type(collector) for collector in assembler.extractor.collectors] == [StyleSheetCollector]


def test_content_hash_covers_raw_line_endings(project_builder) -> None:
    raw = BUTTON.replace("\n", "\r\n").encode("utf-8")
    target = project_builder.path() / "src" / "Button.tsx"
    target.parent.mkdir(parents=True)
    target.write_bytes(raw)

    snapshot = build_snapshot(project_builder.config())

    assert snapshot.components[0].content_hash == hashlib.sha256(raw).hexdigest()


def test_signature_is_computed_once_per_run(project_builder, monkeypatch) -> None:
    project_builder.write({"src/Button.tsx": BUTTON, "src/Card.tsx": CARD})
    config = project_builder.config()
    calls: list[str] = []
    original = SnapshotAssembler.signature

    def counting_signature(self) -> str:
        value = original(self)
        calls.append(value)
        return value

    monkeypatch.setattr(SnapshotAssembler, "signature", counting_signature)
    config.extractors.workers = 2

    snapshot = SnapshotAssembler(config).assemble()

    assert len(snapshot.components) == 2
    assert len(calls) == 1
