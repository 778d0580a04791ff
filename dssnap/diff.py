"""Structural comparison of two snapshots."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Sequence

from .models import (
    ComponentRecord,
    DiffResult,
    DiffSummary,
    ModifiedComponent,
    Snapshot,
    ThemeTokens,
    TokenDelta,
)


class DiffEngine:
    """Computes component and theme-token deltas without touching its inputs."""

    def compare(self, old: Snapshot, new: Snapshot) -> DiffResult:
        old_index = _index(old.components)
        new_index = _index(new.components)

        added = tuple(component for component in new_index.values() if component.file_path not in old_index)
        removed = tuple(component for component in old_index.values() if component.file_path not in new_index)

        modified: List[ModifiedComponent] = []
        for path, current in new_index.items():
            previous = old_index.get(path)
            if previous is None:
                continue
            change = self.compare_components(previous, current)
            if change is not None:
                modified.append(change)

        token_delta = self.compare_tokens(old.tokens, new.tokens)
        old_tokens = _all_style_tokens(old.components)
        new_tokens = _all_style_tokens(new.components)
        summary = DiffSummary(
            total_changes=len(added) + len(removed) + len(modified),
            components_added=len(added),
            components_removed=len(removed),
            components_modified=len(modified),
            new_tokens=tuple(sorted(new_tokens - old_tokens)),
            removed_tokens=tuple(sorted(old_tokens - new_tokens)),
            token_changes=token_delta.count(),
        )
        return DiffResult(
            added=added,
            removed=removed,
            modified=tuple(modified),
            token_delta=token_delta,
            summary=summary,
        )

    @staticmethod
    def compare_components(old: ComponentRecord, new: ComponentRecord) -> ModifiedComponent | None:
        old_tokens = set(old.style_tokens)
        new_tokens = set(new.style_tokens)
        styles_added = tuple(token for token in new.style_tokens if token not in old_tokens)
        styles_removed = tuple(token for token in old.style_tokens if token not in new_tokens)
        props_changed = old.properties != new.properties
        if not styles_added and not styles_removed and not props_changed:
            return None
        return ModifiedComponent(
            file_path=new.file_path,
            styles_added=styles_added,
            styles_removed=styles_removed,
            props_changed=props_changed,
        )

    def compare_tokens(self, old: ThemeTokens, new: ThemeTokens) -> TokenDelta:
        added: Dict[str, Dict[str, Any]] = {}
        removed: Dict[str, Dict[str, Any]] = {}
        modified: Dict[str, Dict[str, Dict[str, Any]]] = {}

        old_categories = token_categories(old)
        new_categories = token_categories(new)
        for category, new_values in new_categories.items():
            old_values = old_categories[category]
            for key, value in new_values.items():
                if key not in old_values:
                    added.setdefault(category, {})[key] = value
                elif old_values[key] != value:
                    modified.setdefault(category, {})[key] = {"old": old_values[key], "new": value}
            for key, value in old_values.items():
                if key not in new_values:
                    removed.setdefault(category, {})[key] = value
        return TokenDelta(added=added, removed=removed, modified=modified)


def token_categories(tokens: ThemeTokens) -> Dict[str, Dict[str, Any]]:
    """Return comparable ``{category: {key: value}}`` views of a token set."""
    typography: Dict[str, str] = {}
    for prefix, values in (
        ("fontFamily", tokens.typography.font_family),
        ("fontSize", tokens.typography.font_size),
        ("fontWeight", tokens.typography.font_weight),
        ("lineHeight", tokens.typography.line_height),
    ):
        for key, value in values.items():
            typography[f"{prefix}.{key}"] = value
    return {
        "colors": {name: color.value for name, color in tokens.colors.items()},
        "spacing": dict(tokens.spacing),
        "typography": typography,
        "breakpoints": dict(tokens.breakpoints),
        "shadows": dict(tokens.shadows),
        "borderRadius": dict(tokens.border_radius),
    }


def compare_snapshots(old: Snapshot, new: Snapshot) -> DiffResult:
    return DiffEngine().compare(old, new)


def render_text(result: DiffResult) -> str:
    """Plain-text report of a diff result."""
    if not result.has_changes and not result.summary.token_changes:
        return "No changes detected."

    lines: List[str] = []
    if result.added:
        lines.append("Added components:")
        for component in result.added:
            lines.append(f"  + {component.file_path} ({component.tier}, {len(component.style_tokens)} style tokens)")
    if result.removed:
        lines.append("Removed components:")
        lines.extend(f"  - {component.file_path}" for component in result.removed)
    if result.modified:
        lines.append("Modified components:")
        for entry in result.modified:
            lines.append(f"  ~ {entry.file_path}")
            if entry.styles_added:
                lines.append(f"      styles added: {', '.join(entry.styles_added)}")
            if entry.styles_removed:
                lines.append(f"      styles removed: {', '.join(entry.styles_removed)}")
            if entry.props_changed:
                lines.append("      props changed")

    delta = result.token_delta
    if delta.count():
        lines.append("Theme tokens:")
        lines.extend(_token_lines("+", delta.added))
        lines.extend(_token_lines("-", delta.removed))
        for category, entries in delta.modified.items():
            for key, change in entries.items():
                lines.append(f"  ~ {category}.{key}: {change['old']} -> {change['new']}")

    summary = result.summary
    lines.append(
        "Summary: "
        f"{summary.total_changes} component change(s) "
        f"({summary.components_added} added, {summary.components_removed} removed, "
        f"{summary.components_modified} modified), {summary.token_changes} token change(s)"
    )
    if summary.new_tokens:
        lines.append(f"New style tokens: {', '.join(summary.new_tokens)}")
    if summary.removed_tokens:
        lines.append(f"Removed style tokens: {', '.join(summary.removed_tokens)}")
    return "\n".join(lines)


# ----------------------------------------------------------------------
# Internals


def _index(components: Sequence[ComponentRecord]) -> Dict[str, ComponentRecord]:
    index: Dict[str, ComponentRecord] = {}
    for component in components:
        index.setdefault(component.file_path, component)
    return index


def _all_style_tokens(components: Iterable[ComponentRecord]) -> set[str]:
    return {token for component in components for token in component.style_tokens}


def _token_lines(marker: str, section: Mapping[str, Mapping[str, Any]]) -> List[str]:
    return [
        f"  {marker} {category}.{key}: {value}"
        for category, entries in section.items()
        for key, value in entries.items()
    ]


__all__ = ["DiffEngine", "compare_snapshots", "render_text", "token_categories"]
