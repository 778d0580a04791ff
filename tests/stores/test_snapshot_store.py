"""Tests for snapshot serialization and persistence."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from dssnap.models import (
    ColorToken,
    ComponentRecord,
    ProjectInfo,
    PropInfo,
    RenderNode,
    Snapshot,
    StyleRecord,
    ThemeTokens,
    TypographyTokens,
)
from dssnap.stores import (
    SnapshotFormatError,
    SnapshotNotFoundError,
    SnapshotStore,
    snapshot_from_dict,
    snapshot_to_dict,
)


def _snapshot() -> Snapshot:
    tree = RenderNode(
        kind="button",
        attributes={"type": "submit", "disabled": False},
        style_tokens=("px-4", "bg-blue-500"),
        class_name="px-4 bg-blue-500",
        children=("Save", RenderNode(kind="Icon")),
        alternate=RenderNode(kind="span"),
    )
    component = ComponentRecord(
        file_path="src/Button.tsx",
        name="Button",
        tier="atomic",
        style_tokens=("bg-blue-500", "px-4"),
        properties=(
            PropInfo(name="label", type="string", required=True),
            PropInfo(name="size", type="number", required=False, default_value="2"),
        ),
        dependencies=("react",),
        content_hash="f" * 64,
        render_tree=tree,
        style_records=(StyleRecord(name="styles", source="stylesheet", rules={"box": {"padding": 4}}),),
    )
    tokens = ThemeTokens(
        colors={"primary": ColorToken(value="#000", derived_format="rgb(0, 0, 0)", usage_sites=("src/Button.tsx",))},
        spacing={"sm": "8px"},
        typography=TypographyTokens(font_size={"lg": "1.125rem"}),
        breakpoints={"md": "768px"},
        shadows={"md": "0 1px 2px #000"},
        border_radius={"lg": "8px"},
        custom={"zIndex": {"modal": 50}},
    )
    return Snapshot(
        version="1.0.0",
        timestamp="2024-01-01T00:00:00.000Z",
        components=(component,),
        tokens=tokens,
        project=ProjectInfo(name="ui-kit", version="2.0.0"),
    )


def test_snapshot_document_uses_camel_case_keys() -> None:
    document = snapshot_to_dict(_snapshot())

    component = document["components"][0]
    assert component["filePath"] == "src/Button.tsx"
    assert component["styleTokens"] == ["bg-blue-500", "px-4"]
    assert component["properties"][1] == {"name": "size", "type": "number", "required": False, "defaultValue": "2"}
    assert component["renderTree"]["className"] == "px-4 bg-blue-500"
    assert document["tokens"]["colors"]["primary"] == {
        "value": "#000",
        "derivedFormat": "rgb(0, 0, 0)",
        "usageSites": ["src/Button.tsx"],
    }
    assert document["tokens"]["borderRadius"] == {"lg": "8px"}
    assert document["project"]["name"] == "ui-kit"


def test_store_write_then_read_preserves_snapshot(tmp_path: Path) -> None:
    store = SnapshotStore()
    target = tmp_path / "nested" / "snapshot.json"

    written = store.write(_snapshot(), target)

    assert written == target
    assert store.exists(target)
    assert store.read(target) == _snapshot()
    assert [path.name for path in target.parent.iterdir()] == ["snapshot.json"]


def test_store_write_is_deterministic(tmp_path: Path) -> None:
    store = SnapshotStore()
    first = store.write(_snapshot(), tmp_path / "a.json").read_text(encoding="utf-8")
    second = store.write(_snapshot(), tmp_path / "b.json").read_text(encoding="utf-8")

    assert first == second
    assert first.endswith("\n")


def test_store_read_missing_file_suggests_snapshot_command(tmp_path: Path) -> None:
    with pytest.raises(SnapshotNotFoundError) as excinfo:
        SnapshotStore().read(tmp_path / "missing.json")

    assert "dssnap snapshot" in str(excinfo.value)


def test_store_read_rejects_invalid_json(tmp_path: Path) -> None:
    path = tmp_path / "broken.json"
    path.write_text("{", encoding="utf-8")

    with pytest.raises(SnapshotFormatError):
        SnapshotStore().read(path)


@pytest.mark.parametrize(
    "payload",
    [
        [],
        {"version": "1.0.0", "timestamp": "t"},
        {"version": "1.0.0", "timestamp": "t", "components": [{"name": "Button"}]},
        {"version": "1.0.0", "timestamp": "t", "components": [], "tokens": {"colors": {"x": 5}}},
    ],
)
def test_snapshot_from_dict_rejects_malformed_documents(payload: object) -> None:
    with pytest.raises(SnapshotFormatError):
        snapshot_from_dict(payload)


def test_snapshot_from_dict_fills_optional_sections() -> None:
    snapshot = snapshot_from_dict(
        {
            "version": "1.0.0",
            "timestamp": "t",
            "components": [
                {"filePath": "a.tsx", "name": "A", "tier": "atomic", "styleTokens": [], "dependencies": []}
            ],
        }
    )

    assert snapshot.tokens == ThemeTokens()
    assert snapshot.project == ProjectInfo()
    assert snapshot.components[0].properties == ()
    assert snapshot.components[0].render_tree is None


def test_written_file_is_plain_json(tmp_path: Path) -> None:
    path = SnapshotStore().write(_snapshot(), tmp_path / "snapshot.json")

    document = json.loads(path.read_text(encoding="utf-8"))

    assert document["version"] == "1.0.0"
    assert list(document) == sorted(document)
