"""Theme token extraction from tailwind-style configs and token files."""

from __future__ import annotations

import json
import re
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional, Sequence

import yaml
from tree_sitter import Node

from ..config import ProjectConfig
from ..logging import get_logger
from ..models import ColorToken, ComponentRecord, StyleRecord, ThemeTokens, TypographyTokens
from .syntax import (
    SourceParseError,
    SyntaxTree,
    SyntaxTreeProvider,
    call_arguments,
    literal_value,
    unwrap,
)

DEFAULT_BREAKPOINTS: Dict[str, str] = {
    "sm": "640px",
    "md": "768px",
    "lg": "1024px",
    "xl": "1280px",
    "2xl": "1536px",
}

THEME_CANDIDATES = (
    "tailwind.config.js",
    "tailwind.config.cjs",
    "tailwind.config.mjs",
    "tailwind.config.ts",
    "design-tokens.json",
    "design-tokens.yml",
    "design-tokens.yaml",
)

_HANDLED_KEYS = frozenset(
    {
        "extend",
        "colors",
        "spacing",
        "fontFamily",
        "fontSize",
        "fontWeight",
        "lineHeight",
        "screens",
        "boxShadow",
        "borderRadius",
    }
)

_HEX6 = re.compile(r"^#([0-9a-fA-F]{2})([0-9a-fA-F]{2})([0-9a-fA-F]{2})$")
_HEX3 = re.compile(r"^#([0-9a-fA-F])([0-9a-fA-F])([0-9a-fA-F])$")

# Utility prefixes that take a color name, e.g. ``bg-primary`` or ``text-blue-500/50``.
_COLOR_UTILITIES = (
    "bg",
    "text",
    "border",
    "ring",
    "fill",
    "stroke",
    "from",
    "via",
    "to",
    "outline",
    "decoration",
    "divide",
    "placeholder",
    "caret",
    "accent",
    "shadow",
)

_SPACING_PROPS = ("padding", "paddingHorizontal", "paddingVertical", "margin", "marginHorizontal", "marginVertical")


class ThemeSourceError(ValueError):
    """Raised when a theme source exists but does not describe a theme."""


def default_tokens() -> ThemeTokens:
    return ThemeTokens(breakpoints=dict(DEFAULT_BREAKPOINTS))


def hex_to_rgb(value: str) -> Optional[str]:
    match = _HEX6.match(value)
    if match:
        red, green, blue = (int(part, 16) for part in match.groups())
        return f"rgb({red}, {green}, {blue})"
    match = _HEX3.match(value)
    if match:
        red, green, blue = (int(part * 2, 16) for part in match.groups())
        return f"rgb({red}, {green}, {blue})"
    return None


class ThemeTokenExtractor:
    """Reads the theme source of a project and normalizes it into ``ThemeTokens``."""

    def __init__(self, provider: SyntaxTreeProvider | None = None) -> None:
        self.provider = provider or SyntaxTreeProvider()
        self.logger = get_logger("theme")

    def locate(self, config: ProjectConfig) -> Optional[Path]:
        if config.theme.path is not None:
            return config.theme.path
        for candidate in THEME_CANDIDATES:
            path = config.root / candidate
            if path.is_file():
                return path
        return None

    def extract(self, config: ProjectConfig) -> ThemeTokens:
        """Return theme tokens, falling back to defaults when the source is unusable."""
        path = self.locate(config)
        if path is None:
            self.logger.debug("No theme source found under %s; using default tokens", config.root)
            return default_tokens()
        try:
            document = self.load_document(path)
            return self.from_document(document)
        except FileNotFoundError:
            self.logger.warning("Theme source %s not found; using default tokens", path)
        except (OSError, UnicodeDecodeError, ValueError, yaml.YAMLError) as exc:
            # SourceParseError and ThemeSourceError are ValueErrors.
            self.logger.warning("Could not read theme source %s (%s); using default tokens", path, exc)
        return default_tokens()

    def load_document(self, path: Path) -> Dict[str, Any]:
        text = path.read_text(encoding="utf-8")
        suffix = path.suffix.lower()
        if suffix == ".json":
            document = json.loads(text)
        elif suffix in {".yml", ".yaml"}:
            document = yaml.safe_load(text)
        else:
            document = self._evaluate_script(text, path)
        if not isinstance(document, dict):
            raise ThemeSourceError(f"{path.name} does not export an object")
        return document

    def from_document(self, document: Mapping[str, Any]) -> ThemeTokens:
        theme = document.get("theme", document)
        if not isinstance(theme, Mapping):
            raise ThemeSourceError("'theme' must be an object")
        merged = _merge_theme(theme)

        typography = TypographyTokens(
            font_family={key: _font_family(value) for key, value in _mapping(merged.get("fontFamily")).items()},
            font_size={
                key: text
                for key, text in ((key, _first_or_str(value)) for key, value in _mapping(merged.get("fontSize")).items())
                if text is not None
            },
            font_weight=_stringify(merged.get("fontWeight")),
            line_height=_stringify(merged.get("lineHeight")),
        )
        return ThemeTokens(
            colors=_flatten_colors(_mapping(merged.get("colors"))),
            spacing=_stringify(merged.get("spacing")),
            typography=typography,
            breakpoints=_breakpoints(_mapping(merged.get("screens")), replace_defaults="screens" in theme),
            shadows=_stringify(merged.get("boxShadow"), numbers=False),
            border_radius=_stringify(merged.get("borderRadius"), numbers=False),
            custom={str(key): _json_value(value) for key, value in merged.items() if key not in _HANDLED_KEYS},
        )

    # ------------------------------------------------------------------
    # Internals

    def _evaluate_script(self, text: str, path: Path) -> Any:
        tree = self.provider.parse(text, path)
        exported = _exported_object(tree)
        if exported is None:
            raise ThemeSourceError(f"{path.name} has no exported configuration object")
        return literal_value(exported, tree.source)


def _exported_object(tree: SyntaxTree) -> Optional[Node]:
    bindings: Dict[str, Node] = {}
    exported: Optional[Node] = None
    for statement in tree.root.named_children:
        if statement.type in {"lexical_declaration", "variable_declaration"}:
            for declarator in statement.named_children:
                if declarator.type == "variable_declarator":
                    value = declarator.child_by_field_name("value")
                    if value is not None:
                        bindings[tree.text(declarator.child_by_field_name("name"))] = value
        elif statement.type == "expression_statement":
            expression = unwrap(statement.named_children[0]) if statement.named_children else None
            if expression is not None and expression.type == "assignment_expression":
                target = tree.text(expression.child_by_field_name("left")).replace(" ", "")
                if target in {"module.exports", "exports.default"}:
                    exported = expression.child_by_field_name("right")
        elif statement.type == "export_statement":
            value = statement.child_by_field_name("value")
            if value is not None:
                exported = value
    return _resolve_object(exported, bindings, tree, depth=0)


def _resolve_object(node: Optional[Node], bindings: Mapping[str, Node], tree: SyntaxTree, *, depth: int) -> Optional[Node]:
    node = unwrap(node)
    if node is None or depth > 8:
        return None
    if node.type == "object":
        return node
    if node.type == "identifier":
        return _resolve_object(bindings.get(tree.text(node)), bindings, tree, depth=depth + 1)
    if node.type == "call_expression":
        # defineConfig({...}), withMT({...})
        for argument in call_arguments(node):
            resolved = _resolve_object(argument, bindings, tree, depth=depth + 1)
            if resolved is not None:
                return resolved
    return None


def _merge_theme(theme: Mapping[str, Any]) -> Dict[str, Any]:
    merged = {key: value for key, value in theme.items() if key != "extend"}
    extend = theme.get("extend")
    if isinstance(extend, Mapping):
        for key, value in extend.items():
            base = merged.get(key)
            if isinstance(base, Mapping) and isinstance(value, Mapping):
                merged[key] = {**base, **value}
            else:
                merged[key] = value
    return merged


def _mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _scalar_text(value: Any, *, numbers: bool = True) -> Optional[str]:
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        return value
    if numbers and isinstance(value, (int, float)):
        return str(value)
    return None


def _stringify(value: Any, *, numbers: bool = True) -> Dict[str, str]:
    result: Dict[str, str] = {}
    for key, item in _mapping(value).items():
        text = _scalar_text(item, numbers=numbers)
        if text is not None:
            result[str(key)] = text
    return result


def _json_value(value: Any) -> Any:
    """Coerce YAML scalars such as dates into values the snapshot writer can encode."""
    if value is None or isinstance(value, (str, bool, int, float)):
        return value
    if isinstance(value, Mapping):
        return {str(key): _json_value(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_value(item) for item in value]
    return str(value)


def _first_or_str(value: Any) -> Optional[str]:
    if isinstance(value, (list, tuple)):
        return _scalar_text(value[0]) if value else None
    return _scalar_text(value)


def _font_family(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return ", ".join(str(item) for item in value if isinstance(item, str))
    return str(value)


def _breakpoints(screens: Mapping[str, Any], *, replace_defaults: bool) -> Dict[str, str]:
    # Only an explicit theme.screens replaces the default set; extend.screens adds to it.
    result: Dict[str, str] = {} if replace_defaults else dict(DEFAULT_BREAKPOINTS)
    for key, value in screens.items():
        if isinstance(value, str):
            result[key] = value
        elif isinstance(value, Mapping) and isinstance(value.get("min"), str):
            result[key] = value["min"]
    return result


def _flatten_colors(colors: Mapping[str, Any], prefix: str = "") -> Dict[str, ColorToken]:
    flattened: Dict[str, ColorToken] = {}
    for key, value in colors.items():
        if key == "DEFAULT" and prefix:
            name = prefix
        else:
            name = f"{prefix}-{key}" if prefix else str(key)
        if isinstance(value, str):
            flattened[name] = ColorToken(value=value, derived_format=hex_to_rgb(value))
        elif isinstance(value, Mapping):
            flattened.update(_flatten_colors(value, name))
    return flattened


def attach_usage_sites(tokens: ThemeTokens, components: Sequence[ComponentRecord]) -> ThemeTokens:
    """Return ``tokens`` with each color's usage sites set to the files referencing it."""
    if not tokens.colors:
        return tokens
    usage: Dict[str, set[str]] = {name: set() for name in tokens.colors}
    for component in components:
        for token in component.style_tokens:
            name = _color_reference(token)
            if name is not None and name in usage:
                usage[name].add(component.file_path)
    colors = {
        name: replace(color, usage_sites=tuple(sorted(set(color.usage_sites) | usage[name])))
        for name, color in tokens.colors.items()
    }
    return replace(tokens, colors=colors)


def _color_reference(token: str) -> Optional[str]:
    utility = token.rsplit(":", 1)[-1]
    head, _, rest = utility.partition("-")
    if head not in _COLOR_UTILITIES or not rest:
        return None
    return rest.split("/", 1)[0]


def derive_stylesheet_tokens(records: Iterable[StyleRecord]) -> ThemeTokens:
    """Derive tokens from React Native style tables."""
    colors: Dict[str, ColorToken] = {}
    spacing: Dict[str, str] = {}
    typography: Dict[str, Dict[str, str]] = {"font_family": {}, "font_size": {}, "font_weight": {}, "line_height": {}}
    shadows: Dict[str, str] = {}
    radii: Dict[str, str] = {}

    for record in records:
        if record.source != "stylesheet":
            continue
        for key, styles in record.rules.items():
            if not isinstance(styles, Mapping):
                continue
            background = styles.get("backgroundColor")
            if isinstance(background, str):
                colors[f"background-{key}"] = ColorToken(
                    value=background, derived_format=hex_to_rgb(background) or background, usage_sites=(key,)
                )
            color = styles.get("color")
            if isinstance(color, str):
                colors[f"text-{key}"] = ColorToken(
                    value=color, derived_format=hex_to_rgb(color) or color, usage_sites=(key,)
                )
            for prop in _SPACING_PROPS:
                if prop in styles and _scalar_text(styles[prop]) is not None:
                    spacing[f"{prop}-{key}"] = _scalar_text(styles[prop]) or ""
            for field_name, style_name, label in (
                ("font_size", "fontSize", "size"),
                ("font_weight", "fontWeight", "weight"),
                ("font_family", "fontFamily", "family"),
                ("line_height", "lineHeight", "height"),
            ):
                text = _scalar_text(styles.get(style_name))
                if text:
                    typography[field_name][f"{label}-{key}"] = text
            shadow = _stylesheet_shadow(styles)
            if shadow is not None:
                shadows[f"shadow-{key}"] = shadow
            radius = _scalar_text(styles.get("borderRadius"))
            if radius is not None:
                radii[f"radius-{key}"] = radius

    return ThemeTokens(
        colors=colors,
        spacing=spacing,
        typography=TypographyTokens(**typography),
        shadows=shadows,
        border_radius=radii,
    )


def _stylesheet_shadow(styles: Mapping[str, Any]) -> Optional[str]:
    shadow_color = styles.get("shadowColor")
    if isinstance(shadow_color, str) and shadow_color:
        offset = _mapping(styles.get("shadowOffset"))
        width = offset.get("width") or 0
        height = offset.get("height") or 0
        radius = styles.get("shadowRadius") or 0
        return f"{width}px {height}px {radius}px {shadow_color}"
    elevation = styles.get("elevation")
    if elevation:
        return f"elevation-{elevation}"
    return None


def merge_tokens(base: ThemeTokens, overlay: ThemeTokens) -> ThemeTokens:
    """Combine two token sets; entries of ``overlay`` win."""
    return ThemeTokens(
        colors={**base.colors, **overlay.colors},
        spacing={**base.spacing, **overlay.spacing},
        typography=TypographyTokens(
            font_family={**base.typography.font_family, **overlay.typography.font_family},
            font_size={**base.typography.font_size, **overlay.typography.font_size},
            font_weight={**base.typography.font_weight, **overlay.typography.font_weight},
            line_height={**base.typography.line_height, **overlay.typography.line_height},
        ),
        breakpoints={**base.breakpoints, **overlay.breakpoints},
        shadows={**base.shadows, **overlay.shadows},
        border_radius={**base.border_radius, **overlay.border_radius},
        custom={**base.custom, **overlay.custom},
    )


__all__ = [
    "DEFAULT_BREAKPOINTS",
    "SourceParseError",
    "ThemeSourceError",
    "ThemeTokenExtractor",
    "attach_usage_sites",
    "default_tokens",
    "derive_stylesheet_tokens",
    "hex_to_rgb",
    "merge_tokens",
]
