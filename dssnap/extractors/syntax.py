"""Tree-sitter syntax tree provider and node helpers for JS/TS sources."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional

import tree_sitter_javascript as tsjs
import tree_sitter_typescript as tsts
from tree_sitter import Language, Node, Parser

_GRAMMAR_LOADERS: Dict[str, Callable[[], object]] = {
    "tsx": tsts.language_tsx,
    "typescript": tsts.language_typescript,
    "javascript": tsjs.language,
}

_GRAMMAR_BY_SUFFIX = {
    ".tsx": "tsx",
    ".ts": "typescript",
    ".mts": "typescript",
    ".cts": "typescript",
    ".jsx": "javascript",
    ".js": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
}

SOURCE_SUFFIXES = frozenset(_GRAMMAR_BY_SUFFIX)

FUNCTION_TYPES = frozenset(
    {
        "function_declaration",
        "generator_function_declaration",
        "function_expression",
        "function",
        "arrow_function",
        "method_definition",
    }
)

# Expression wrappers that never change the value they enclose.
_TRANSPARENT_TYPES = frozenset(
    {
        "parenthesized_expression",
        "as_expression",
        "satisfies_expression",
        "non_null_expression",
        "type_assertion",
    }
)

_languages: Dict[str, Language] = {}
_languages_lock = threading.Lock()


class SourceParseError(ValueError):
    """Raised when a source file cannot be turned into a clean syntax tree."""


@dataclass
class SyntaxTree:
    """Parsed source with the bytes its nodes point into."""

    root: Node
    source: bytes
    path: str
    grammar: str

    def text(self, node: Optional[Node]) -> str:
        return node_text(node, self.source)


def grammar_for(path: str | Path) -> str:
    """Return the grammar key used for a source path, defaulting to tsx."""
    return _GRAMMAR_BY_SUFFIX.get(Path(path).suffix.lower(), "tsx")


def _language(grammar: str) -> Language:
    with _languages_lock:
        language = _languages.get(grammar)
        if language is None:
            language = Language(_GRAMMAR_LOADERS[grammar]())
            _languages[grammar] = language
        return language


class SyntaxTreeProvider:
    """Parses source text with per-thread cached tree-sitter parsers."""

    def __init__(self) -> None:
        self._local = threading.local()

    def parse(self, text: str, path: str | Path, *, grammar: Optional[str] = None) -> SyntaxTree:
        key = grammar or grammar_for(path)
        source = text.encode("utf-8")
        tree = self._get_parser(key).parse(source)
        root = tree.root_node
        if root.has_error:
            line = _first_error_line(root)
            location = f" near line {line}" if line is not None else ""
            raise SourceParseError(f"Syntax error in {path}{location}")
        return SyntaxTree(root=root, source=source, path=str(path), grammar=key)

    def _get_parser(self, grammar: str) -> Parser:
        parsers: Optional[Dict[str, Parser]] = getattr(self._local, "parsers", None)
        if parsers is None:
            parsers = {}
            self._local.parsers = parsers
        parser = parsers.get(grammar)
        if parser is None:
            parser = Parser(_language(grammar))
            parsers[grammar] = parser
        return parser


def _first_error_line(root: Node) -> Optional[int]:
    for node in iter_descendants(root):
        if node.type == "ERROR" or node.is_missing:
            return node.start_point[0] + 1
    return None


# ----------------------------------------------------------------------
# Node helpers


def node_text(node: Optional[Node], source: bytes) -> str:
    if node is None:
        return ""
    return source[node.start_byte : node.end_byte].decode("utf-8", errors="ignore")


def iter_descendants(node: Node, *, skip: Optional[Callable[[Node], bool]] = None) -> Iterator[Node]:
    """Yield ``node`` and its descendants depth-first in source order.

    Only child edges are followed, so the parent link of a node is never
    revisited. ``skip`` prunes the subtree below any node it returns True for
    (the node itself is still yielded).
    """
    stack: List[Node] = [node]
    while stack:
        current = stack.pop()
        yield current
        if skip is not None and current is not node and skip(current):
            continue
        stack.extend(reversed(current.children))


def unwrap(node: Optional[Node]) -> Optional[Node]:
    """Strip parentheses and type-only wrappers around an expression."""
    while node is not None and node.type in _TRANSPARENT_TYPES:
        inner = node.named_children
        node = inner[0] if inner else None
    return node


def first_named_child(node: Node) -> Optional[Node]:
    for child in node.named_children:
        if child.type != "comment":
            return child
    return None


def string_value(node: Node, source: bytes) -> Optional[str]:
    """Return the literal value of a string or substitution-free template."""
    if node.type == "string":
        raw = node_text(node, source)
        return raw[1:-1] if len(raw) >= 2 else ""
    if node.type == "template_string":
        if any(child.type == "template_substitution" for child in node.children):
            return None
        raw = node_text(node, source)
        return raw[1:-1] if len(raw) >= 2 else ""
    return None


def template_static_text(node: Node, source: bytes) -> str:
    """Return the static segments of a template string joined by spaces."""
    start = node.start_byte + 1
    end = node.end_byte - 1
    segments: List[str] = []
    cursor = start
    for child in node.children:
        if child.type != "template_substitution":
            continue
        segments.append(source[cursor : child.start_byte].decode("utf-8", errors="ignore"))
        cursor = child.end_byte
    if cursor < end:
        segments.append(source[cursor:end].decode("utf-8", errors="ignore"))
    return " ".join(segments)


def property_key(node: Optional[Node], source: bytes) -> Optional[str]:
    """Return the static name of an object key node."""
    if node is None:
        return None
    if node.type in {"property_identifier", "identifier", "shorthand_property_identifier"}:
        return node_text(node, source)
    if node.type == "string":
        return string_value(node, source)
    if node.type == "number":
        return node_text(node, source)
    return None


def number_value(text: str) -> Any:
    cleaned = text.replace("_", "")
    try:
        return int(cleaned, 0)
    except ValueError:
        pass
    try:
        return float(cleaned)
    except ValueError:
        return text


def callee_name(node: Node, source: bytes) -> Optional[str]:
    """Return the trailing identifier of a call's callee (``cn`` for ``utils.cn``)."""
    function = unwrap(node.child_by_field_name("function"))
    if function is None:
        return None
    if function.type == "identifier":
        return node_text(function, source)
    if function.type == "member_expression":
        return node_text(function.child_by_field_name("property"), source) or None
    return None


def call_arguments(node: Node) -> List[Node]:
    arguments = node.child_by_field_name("arguments")
    if arguments is None:
        return []
    return [child for child in arguments.named_children if child.type != "comment"]


_MISSING = object()


def literal_value(node: Optional[Node], source: bytes, *, fallback: Callable[[Node], Any] | None = None) -> Any:
    """Evaluate a constant JS expression into plain Python values.

    Objects become dicts, arrays lists, strings, numbers, booleans and null
    their Python counterparts, and unary negation is applied to numbers.
    Anything else is passed to ``fallback``; without one it is dropped from
    the enclosing container (or ``None`` at the top level).
    """
    value = _literal(node, source, fallback)
    return None if value is _MISSING else value


def _literal(node: Optional[Node], source: bytes, fallback: Callable[[Node], Any] | None) -> Any:
    node = unwrap(node)
    if node is None:
        return _MISSING
    kind = node.type
    if kind in {"string", "template_string"}:
        text = string_value(node, source)
        if text is not None:
            return text
    elif kind == "number":
        return number_value(node_text(node, source))
    elif kind == "true":
        return True
    elif kind == "false":
        return False
    elif kind == "null":
        return None
    elif kind == "unary_expression":
        operator = node_text(node.child_by_field_name("operator"), source)
        argument = _literal(node.child_by_field_name("argument"), source, fallback)
        if operator == "-" and isinstance(argument, (int, float)) and not isinstance(argument, bool):
            return -argument
        if operator == "+" and isinstance(argument, (int, float)) and not isinstance(argument, bool):
            return argument
    elif kind == "object":
        result: Dict[str, Any] = {}
        for child in node.named_children:
            if child.type != "pair":
                continue
            key = property_key(child.child_by_field_name("key"), source)
            if key is None:
                continue
            value = _literal(child.child_by_field_name("value"), source, fallback)
            if value is not _MISSING:
                result[key] = value
        return result
    elif kind == "array":
        items = []
        for child in node.named_children:
            if child.type == "comment":
                continue
            value = _literal(child, source, fallback)
            if value is not _MISSING:
                items.append(value)
        return items
    if fallback is None:
        return _MISSING
    return fallback(node)


__all__ = [
    "FUNCTION_TYPES",
    "SOURCE_SUFFIXES",
    "SourceParseError",
    "SyntaxTree",
    "SyntaxTreeProvider",
    "call_arguments",
    "callee_name",
    "first_named_child",
    "grammar_for",
    "iter_descendants",
    "literal_value",
    "node_text",
    "number_value",
    "property_key",
    "string_value",
    "template_static_text",
    "unwrap",
]
