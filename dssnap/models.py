"""Core data models shared across dssnap components."""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple, Union

TIERS: Tuple[str, ...] = ("atomic", "composite", "complex", "template", "page")

TOKEN_CATEGORIES: Tuple[str, ...] = (
    "colors",
    "spacing",
    "typography",
    "breakpoints",
    "shadows",
    "borderRadius",
)


@dataclass(frozen=True)
class PropInfo:
    """A destructured component parameter."""

    name: str
    type: str
    required: bool
    default_value: Optional[str] = None


@dataclass(frozen=True)
class RenderNode:
    """One element or fragment of a reconstructed render tree."""

    kind: str
    attributes: Dict[str, Any] = field(default_factory=dict)
    style_tokens: Tuple[str, ...] = ()
    class_name: Optional[str] = None
    children: Tuple[Union["RenderNode", str], ...] = ()
    alternate: Optional["RenderNode"] = None


@dataclass(frozen=True)
class StyleRecord:
    """Structured key/value style table, kept apart from utility tokens."""

    name: str
    source: str
    rules: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ComponentRecord:
    """Normalized extraction result for a single component source file."""

    file_path: str
    name: str
    tier: str
    style_tokens: Tuple[str, ...]
    properties: Tuple[PropInfo, ...]
    dependencies: Tuple[str, ...]
    content_hash: str
    render_tree: Optional[RenderNode] = None
    style_records: Tuple[StyleRecord, ...] = ()
    platform: str = "web"


@dataclass(frozen=True)
class ColorToken:
    """Theme color with an optional derived representation."""

    value: str
    derived_format: Optional[str] = None
    usage_sites: Tuple[str, ...] = ()


@dataclass(frozen=True)
class TypographyTokens:
    """Typography scales declared by the theme."""

    font_family: Dict[str, str] = field(default_factory=dict)
    font_size: Dict[str, str] = field(default_factory=dict)
    font_weight: Dict[str, str] = field(default_factory=dict)
    line_height: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ThemeTokens:
    """Design tokens shared by every component of a snapshot."""

    colors: Dict[str, ColorToken] = field(default_factory=dict)
    spacing: Dict[str, str] = field(default_factory=dict)
    typography: TypographyTokens = field(default_factory=TypographyTokens)
    breakpoints: Dict[str, str] = field(default_factory=dict)
    shadows: Dict[str, str] = field(default_factory=dict)
    border_radius: Dict[str, str] = field(default_factory=dict)
    custom: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ProjectInfo:
    """Descriptive metadata about the scanned project."""

    name: str = "unknown"
    version: str = "0.0.0"
    framework: str = "react"
    styling: str = "tailwind"
    platform: str = "web"


@dataclass(frozen=True)
class Snapshot:
    """One immutable extraction of the component set plus theme tokens."""

    version: str
    timestamp: str
    components: Tuple[ComponentRecord, ...]
    tokens: ThemeTokens
    project: ProjectInfo


@dataclass(frozen=True)
class ModifiedComponent:
    """Per-component delta between two snapshots."""

    file_path: str
    styles_added: Tuple[str, ...]
    styles_removed: Tuple[str, ...]
    props_changed: bool


@dataclass(frozen=True)
class TokenDelta:
    """Theme token changes keyed by category, then token name."""

    added: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    removed: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    modified: Dict[str, Dict[str, Dict[str, Any]]] = field(default_factory=dict)

    def count(self) -> int:
        return sum(
            len(entries)
            for section in (self.added, self.removed, self.modified)
            for entries in section.values()
        )


@dataclass(frozen=True)
class DiffSummary:
    """Counts derived from a diff result."""

    total_changes: int
    components_added: int
    components_removed: int
    components_modified: int
    new_tokens: Tuple[str, ...] = ()
    removed_tokens: Tuple[str, ...] = ()
    token_changes: int = 0


@dataclass(frozen=True)
class DiffResult:
    """Structural delta between an old and a new snapshot."""

    added: Tuple[ComponentRecord, ...]
    removed: Tuple[ComponentRecord, ...]
    modified: Tuple[ModifiedComponent, ...]
    token_delta: TokenDelta
    summary: DiffSummary

    @property
    def has_changes(self) -> bool:
        return self.summary.total_changes > 0


__all__ = [
    "ColorToken",
    "ComponentRecord",
    "DiffResult",
    "DiffSummary",
    "ModifiedComponent",
    "ProjectInfo",
    "PropInfo",
    "RenderNode",
    "Snapshot",
    "StyleRecord",
    "ThemeTokens",
    "TIERS",
    "TOKEN_CATEGORIES",
    "TokenDelta",
    "TypographyTokens",
]
