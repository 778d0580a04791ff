"""Snapshot JSON serialization and persistence."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Mapping, Union

from ..models import (
    ColorToken,
    ComponentRecord,
    DiffResult,
    ModifiedComponent,
    ProjectInfo,
    PropInfo,
    RenderNode,
    Snapshot,
    StyleRecord,
    ThemeTokens,
    TypographyTokens,
)


class SnapshotNotFoundError(FileNotFoundError):
    """Raised when a snapshot file does not exist."""


class SnapshotFormatError(ValueError):
    """Raised when a snapshot file is not a valid snapshot document."""


# ----------------------------------------------------------------------
# Serialization


def prop_to_dict(prop: PropInfo) -> Dict[str, Any]:
    data: Dict[str, Any] = {"name": prop.name, "type": prop.type, "required": prop.required}
    if prop.default_value is not None:
        data["defaultValue"] = prop.default_value
    return data


def render_node_to_dict(node: RenderNode) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "kind": node.kind,
        "attributes": dict(node.attributes),
        "styleTokens": list(node.style_tokens),
        "children": [
            child if isinstance(child, str) else render_node_to_dict(child) for child in node.children
        ],
    }
    if node.class_name is not None:
        data["className"] = node.class_name
    if node.alternate is not None:
        data["alternate"] = render_node_to_dict(node.alternate)
    return data


def component_to_dict(component: ComponentRecord) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "filePath": component.file_path,
        "name": component.name,
        "tier": component.tier,
        "styleTokens": list(component.style_tokens),
        "properties": [prop_to_dict(prop) for prop in component.properties],
        "dependencies": list(component.dependencies),
        "contentHash": component.content_hash,
        "styleRecords": [
            {"name": record.name, "source": record.source, "rules": record.rules}
            for record in component.style_records
        ],
        "platform": component.platform,
    }
    if component.render_tree is not None:
        data["renderTree"] = render_node_to_dict(component.render_tree)
    return data


def tokens_to_dict(tokens: ThemeTokens) -> Dict[str, Any]:
    colors: Dict[str, Any] = {}
    for name, color in tokens.colors.items():
        entry: Dict[str, Any] = {"value": color.value, "usageSites": list(color.usage_sites)}
        if color.derived_format is not None:
            entry["derivedFormat"] = color.derived_format
        colors[name] = entry
    return {
        "colors": colors,
        "spacing": dict(tokens.spacing),
        "typography": {
            "fontFamily": dict(tokens.typography.font_family),
            "fontSize": dict(tokens.typography.font_size),
            "fontWeight": dict(tokens.typography.font_weight),
            "lineHeight": dict(tokens.typography.line_height),
        },
        "breakpoints": dict(tokens.breakpoints),
        "shadows": dict(tokens.shadows),
        "borderRadius": dict(tokens.border_radius),
        "custom": dict(tokens.custom),
    }


def project_to_dict(project: ProjectInfo) -> Dict[str, Any]:
    return {
        "name": project.name,
        "version": project.version,
        "framework": project.framework,
        "styling": project.styling,
        "platform": project.platform,
    }


def snapshot_to_dict(snapshot: Snapshot) -> Dict[str, Any]:
    return {
        "version": snapshot.version,
        "timestamp": snapshot.timestamp,
        "components": [component_to_dict(component) for component in snapshot.components],
        "tokens": tokens_to_dict(snapshot.tokens),
        "project": project_to_dict(snapshot.project),
    }


def modified_to_dict(entry: ModifiedComponent) -> Dict[str, Any]:
    return {
        "filePath": entry.file_path,
        "stylesAdded": list(entry.styles_added),
        "stylesRemoved": list(entry.styles_removed),
        "propsChanged": entry.props_changed,
    }


def diff_to_dict(result: DiffResult) -> Dict[str, Any]:
    summary = result.summary
    return {
        "added": [component_to_dict(component) for component in result.added],
        "removed": [component_to_dict(component) for component in result.removed],
        "modified": [modified_to_dict(entry) for entry in result.modified],
        "tokenDelta": {
            "added": result.token_delta.added,
            "removed": result.token_delta.removed,
            "modified": result.token_delta.modified,
        },
        "summary": {
            "totalChanges": summary.total_changes,
            "componentsAdded": summary.components_added,
            "componentsRemoved": summary.components_removed,
            "componentsModified": summary.components_modified,
            "newTokens": list(summary.new_tokens),
            "removedTokens": list(summary.removed_tokens),
            "tokenChanges": summary.token_changes,
        },
        "hasChanges": result.has_changes,
    }


# ----------------------------------------------------------------------
# Deserialization


def _require(payload: Mapping[str, Any], key: str, expected: type | tuple[type, ...], where: str) -> Any:
    value = payload.get(key)
    if not isinstance(value, expected):
        raise SnapshotFormatError(f"{where}: field '{key}' is missing or has the wrong type")
    return value


def _as_mapping(value: Any, where: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise SnapshotFormatError(f"{where}: expected an object")
    return value


def _str_list(payload: Mapping[str, Any], key: str, where: str) -> tuple[str, ...]:
    values = payload.get(key, [])
    if not isinstance(values, list) or not all(isinstance(item, str) for item in values):
        raise SnapshotFormatError(f"{where}: field '{key}' must be a list of strings")
    return tuple(values)


def _str_map(value: Any, where: str) -> Dict[str, str]:
    if value is None:
        return {}
    mapping = _as_mapping(value, where)
    return {str(key): str(item) for key, item in mapping.items()}


def prop_from_dict(payload: Any) -> PropInfo:
    data = _as_mapping(payload, "property")
    default = data.get("defaultValue")
    return PropInfo(
        name=_require(data, "name", str, "property"),
        type=_require(data, "type", str, "property"),
        required=_require(data, "required", bool, "property"),
        default_value=default if isinstance(default, str) else None,
    )


def render_node_from_dict(payload: Any) -> RenderNode:
    data = _as_mapping(payload, "renderTree")
    children: List[Union[RenderNode, str]] = []
    raw_children = data.get("children", [])
    if not isinstance(raw_children, list):
        raise SnapshotFormatError("renderTree: field 'children' must be a list")
    for child in raw_children:
        children.append(child if isinstance(child, str) else render_node_from_dict(child))
    alternate = data.get("alternate")
    class_name = data.get("className")
    return RenderNode(
        kind=_require(data, "kind", str, "renderTree"),
        attributes=dict(_as_mapping(data.get("attributes", {}), "renderTree.attributes")),
        style_tokens=_str_list(data, "styleTokens", "renderTree"),
        class_name=class_name if isinstance(class_name, str) else None,
        children=tuple(children),
        alternate=render_node_from_dict(alternate) if alternate is not None else None,
    )


def component_from_dict(payload: Any) -> ComponentRecord:
    data = _as_mapping(payload, "component")
    where = f"component {data.get('filePath', '?')}"
    properties = _require(data, "properties", list, where) if "properties" in data else []
    records = []
    for raw in _require(data, "styleRecords", list, where) if "styleRecords" in data else []:
        record = _as_mapping(raw, f"{where} styleRecords")
        records.append(
            StyleRecord(
                name=_require(record, "name", str, where),
                source=_require(record, "source", str, where),
                rules=dict(_as_mapping(record.get("rules", {}), where)),
            )
        )
    render_tree = data.get("renderTree")
    return ComponentRecord(
        file_path=_require(data, "filePath", str, where),
        name=_require(data, "name", str, where),
        tier=_require(data, "tier", str, where),
        style_tokens=_str_list(data, "styleTokens", where),
        properties=tuple(prop_from_dict(prop) for prop in properties),
        dependencies=_str_list(data, "dependencies", where),
        content_hash=str(data.get("contentHash", "")),
        render_tree=render_node_from_dict(render_tree) if render_tree is not None else None,
        style_records=tuple(records),
        platform=str(data.get("platform", "web")),
    )


def tokens_from_dict(payload: Any) -> ThemeTokens:
    data = _as_mapping(payload if payload is not None else {}, "tokens")
    colors: Dict[str, ColorToken] = {}
    for name, raw in _as_mapping(data.get("colors", {}), "tokens.colors").items():
        if isinstance(raw, str):
            colors[name] = ColorToken(value=raw)
            continue
        entry = _as_mapping(raw, f"tokens.colors.{name}")
        derived = entry.get("derivedFormat")
        colors[name] = ColorToken(
            value=_require(entry, "value", str, f"tokens.colors.{name}"),
            derived_format=derived if isinstance(derived, str) else None,
            usage_sites=_str_list(entry, "usageSites", f"tokens.colors.{name}"),
        )
    typography = _as_mapping(data.get("typography", {}), "tokens.typography")
    custom = data.get("custom", {})
    return ThemeTokens(
        colors=colors,
        spacing=_str_map(data.get("spacing"), "tokens.spacing"),
        typography=TypographyTokens(
            font_family=_str_map(typography.get("fontFamily"), "tokens.typography.fontFamily"),
            font_size=_str_map(typography.get("fontSize"), "tokens.typography.fontSize"),
            font_weight=_str_map(typography.get("fontWeight"), "tokens.typography.fontWeight"),
            line_height=_str_map(typography.get("lineHeight"), "tokens.typography.lineHeight"),
        ),
        breakpoints=_str_map(data.get("breakpoints"), "tokens.breakpoints"),
        shadows=_str_map(data.get("shadows"), "tokens.shadows"),
        border_radius=_str_map(data.get("borderRadius"), "tokens.borderRadius"),
        custom=dict(custom) if isinstance(custom, Mapping) else {},
    )


def project_from_dict(payload: Any) -> ProjectInfo:
    if payload is None:
        return ProjectInfo()
    data = _as_mapping(payload, "project")
    defaults = ProjectInfo()
    return ProjectInfo(
        name=str(data.get("name", defaults.name)),
        version=str(data.get("version", defaults.version)),
        framework=str(data.get("framework", defaults.framework)),
        styling=str(data.get("styling", defaults.styling)),
        platform=str(data.get("platform", defaults.platform)),
    )


def snapshot_from_dict(payload: Any) -> Snapshot:
    data = _as_mapping(payload, "snapshot")
    components = _require(data, "components", list, "snapshot")
    return Snapshot(
        version=_require(data, "version", str, "snapshot"),
        timestamp=_require(data, "timestamp", str, "snapshot"),
        components=tuple(component_from_dict(component) for component in components),
        tokens=tokens_from_dict(data.get("tokens")),
        project=project_from_dict(data.get("project")),
    )


# ----------------------------------------------------------------------
# Persistence


def dump_snapshot(snapshot: Snapshot) -> str:
    return json.dumps(snapshot_to_dict(snapshot), indent=2, sort_keys=True) + "\n"


class SnapshotStore:
    """Reads and atomically writes snapshot files."""

    def write(self, snapshot: Snapshot, path: Path) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = dump_snapshot(snapshot)
        fd, temp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
            os.replace(temp_name, path)
        except BaseException:
            Path(temp_name).unlink(missing_ok=True)
            raise
        return path

    def read(self, path: Path) -> Snapshot:
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise SnapshotNotFoundError(
                f"Snapshot not found: {path}. Run 'dssnap snapshot' first to create one."
            ) from exc
        except (OSError, UnicodeDecodeError) as exc:
            raise SnapshotFormatError(f"Could not read snapshot {path}: {exc}") from exc
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            raise SnapshotFormatError(f"Snapshot {path} is not valid JSON: {exc}") from exc
        try:
            return snapshot_from_dict(payload)
        except SnapshotFormatError as exc:
            raise SnapshotFormatError(f"Snapshot {path} is malformed: {exc}") from exc

    def exists(self, path: Path) -> bool:
        return path.is_file()


__all__ = [
    "SnapshotFormatError",
    "SnapshotNotFoundError",
    "SnapshotStore",
    "component_from_dict",
    "component_to_dict",
    "diff_to_dict",
    "dump_snapshot",
    "snapshot_from_dict",
    "snapshot_to_dict",
]
