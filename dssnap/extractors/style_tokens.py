"""Utility-class token extraction and structured style-table records."""

from __future__ import annotations

import re
from typing import Callable, Dict, Iterable, List, Optional, Pattern, Sequence, Tuple

from tree_sitter import Node

from ..models import StyleRecord
from .syntax import (
    SyntaxTree,
    call_arguments,
    callee_name,
    first_named_child,
    iter_descendants,
    literal_value,
    node_text,
    property_key,
    string_value,
    template_static_text,
    unwrap,
)

# Ordered category grammar; a token qualifies when any rule matches.
_TOKEN_RULES: Tuple[Pattern[str], ...] = tuple(
    re.compile(pattern)
    for pattern in (
        r"^(p|pl|pr|pt|pb|px|py|ps|pe|m|ml|mr|mt|mb|mx|my|ms|me)-",
        r"^(w|h|size|min-w|min-h|max-w|max-h)-",
        r"^(flex|grid|absolute|relative|fixed|sticky)",
        r"^(block|inline|inline-block|inline-flex|inline-grid|table|grid|hidden|contents)$",
        r"^(justify|items|content|self|place)-",
        r"^(space|gap|col|row|order|basis|grow|shrink)-",
        r"^(inset|top|right|bottom|left|start|end)-",
        r"^(bg|text|border|ring|shadow|fill|stroke|from|via|to|divide|outline)-",
        r"^(placeholder|caret|accent|decoration)-",
        r"^(font|text|leading|tracking|align|decoration|whitespace|break|list|indent|line-clamp)-",
        r"^(border|rounded|ring|shadow|outline)-",
        r"^(opacity|blur|brightness|contrast|drop-shadow|grayscale|hue-rotate|invert|saturate|sepia|backdrop)-",
        r"^(animate|transition|duration|delay|ease)-",
        r"^(transform|scale|rotate|translate|skew|origin)-",
        r"^(hover|focus|focus-within|focus-visible|active|disabled|dark|group-hover|group-focus|peer|visited|target|first|last|odd|even|aria-[a-z]+|data-\[[^\]]+\]):",
        r"^(sm|md|lg|xl|2xl|max-sm|max-md|max-lg|max-xl|max-2xl|print|portrait|landscape|motion-safe|motion-reduce):",
        r"^(cursor|select|resize|appearance|pointer-events|user-select|touch|will-change)-",
        r"^(float|clear|object|overflow|overscroll|scroll|aspect|columns)-",
        r"^(z)-",
        r"^(flex|grid|table|block|inline|hidden|sr-only|not-sr-only|visible|invisible|static|fixed|absolute|relative|sticky|"
        r"truncate|antialiased|subpixel-antialiased|italic|not-italic|uppercase|lowercase|capitalize|normal-case|underline|"
        r"overline|line-through|no-underline|rounded|rounded-full|border|shadow|ring|outline|transition|transform|container|"
        r"grow|shrink|isolate|collapse)$",
    )
)

# Developer-authored names that can coincidentally match a category rule.
_BLOCK_RULES: Tuple[Pattern[str], ...] = (
    re.compile(r"^[a-z][a-z0-9]*[A-Z][A-Za-z0-9]*$"),
    re.compile(r"^[A-Z]"),
    re.compile(r"component", re.IGNORECASE),
    re.compile(r"style", re.IGNORECASE),
    re.compile(r"^[a-z]{3,}(?:-[a-z]{3,}){3,}$"),
    re.compile(r"^-|-$|_$"),
)

_WHITESPACE = re.compile(r"\s+")

DEFAULT_COMPOSITION_HELPERS = frozenset({"clsx", "classnames", "classNames", "cn", "cx", "twMerge", "twJoin"})
DEFAULT_CLASS_ATTRIBUTES = frozenset({"className", "class", "tw"})

TokenHandler = Callable[["StyleTokenExtractor", Node, SyntaxTree], List[str]]


def is_style_token(token: object) -> bool:
    """Return True when ``token`` is a single utility class accepted by the grammar."""
    if not isinstance(token, str):
        return False
    candidate = token.strip()
    if not candidate or _WHITESPACE.search(candidate):
        return False
    if any(rule.search(candidate) for rule in _BLOCK_RULES):
        return False
    return any(rule.match(candidate) for rule in _TOKEN_RULES)


def filter_style_tokens(values: str | Iterable[str]) -> List[str]:
    """Split class strings on whitespace and keep accepted tokens, first occurrence first."""
    if isinstance(values, str):
        values = [values]
    seen: Dict[str, None] = {}
    for value in values:
        for token in _WHITESPACE.split(value):
            if token and token not in seen and is_style_token(token):
                seen[token] = None
    return list(seen)


class StyleTokenExtractor:
    """Collects utility tokens from class attributes and composition helper calls."""

    def __init__(
        self,
        *,
        helpers: Iterable[str] = DEFAULT_COMPOSITION_HELPERS,
        class_attributes: Iterable[str] = DEFAULT_CLASS_ATTRIBUTES,
    ) -> None:
        self.helpers = frozenset(helpers)
        self.class_attributes = frozenset(class_attributes)
        self._handlers: Dict[str, TokenHandler] = dict(_DEFAULT_HANDLERS)

    def register_handler(self, node_type: str, handler: TokenHandler) -> None:
        """Support an additional expression kind without touching the dispatcher."""
        self._handlers[node_type] = handler

    def extract(self, tree: SyntaxTree) -> List[str]:
        """Return the sorted set of tokens found anywhere in the file."""
        found: set[str] = set()

        def is_style_site(node: Node) -> bool:
            if node.type == "jsx_attribute":
                return self.attribute_name(node, tree) in self.class_attributes
            if node.type == "call_expression":
                return callee_name(node, tree.source) in self.helpers
            return False

        # Style sites are extracted whole and their subtrees are not walked again.
        for node in iter_descendants(tree.root, skip=is_style_site):
            if not is_style_site(node):
                continue
            if node.type == "jsx_attribute":
                found.update(self.from_expression(self.attribute_value(node), tree))
            else:
                found.update(self.from_expression(node, tree))
        return sorted(found)

    def from_expression(self, node: Optional[Node], tree: SyntaxTree) -> List[str]:
        """Extract accepted tokens from one expression, deduplicated in source order."""
        if node is None:
            return []
        handler = self._handlers.get(node.type)
        if handler is None:
            return []
        return filter_style_tokens(handler(self, node, tree))

    @staticmethod
    def attribute_name(node: Node, tree: SyntaxTree) -> str:
        children = node.named_children
        return tree.text(children[0]) if children else ""

    @staticmethod
    def attribute_value(node: Node) -> Optional[Node]:
        children = node.named_children
        return children[1] if len(children) > 1 else None

    # ------------------------------------------------------------------
    # Internals

    def _recurse(self, nodes: Sequence[Optional[Node]], tree: SyntaxTree) -> List[str]:
        tokens: List[str] = []
        for child in nodes:
            if child is None:
                continue
            handler = self._handlers.get(child.type)
            if handler is not None:
                tokens.extend(handler(self, child, tree))
        return tokens


def _from_string(extractor: StyleTokenExtractor, node: Node, tree: SyntaxTree) -> List[str]:
    value = string_value(node, tree.source)
    return [value] if value else []


def _from_template(extractor: StyleTokenExtractor, node: Node, tree: SyntaxTree) -> List[str]:
    return [template_static_text(node, tree.source)]


def _from_wrapper(extractor: StyleTokenExtractor, node: Node, tree: SyntaxTree) -> List[str]:
    return extractor._recurse([first_named_child(node)], tree)


def _from_call(extractor: StyleTokenExtractor, node: Node, tree: SyntaxTree) -> List[str]:
    if callee_name(node, tree.source) not in extractor.helpers:
        return []
    return extractor._recurse(call_arguments(node), tree)


def _from_object(extractor: StyleTokenExtractor, node: Node, tree: SyntaxTree) -> List[str]:
    # Conditional-keyed objects: every key counts, the boolean value is ignored.
    keys: List[str] = []
    for child in node.named_children:
        if child.type == "pair":
            key = property_key(child.child_by_field_name("key"), tree.source)
        elif child.type == "shorthand_property_identifier":
            key = node_text(child, tree.source)
        else:
            key = None
        if key:
            keys.append(key)
    return keys


def _from_array(extractor: StyleTokenExtractor, node: Node, tree: SyntaxTree) -> List[str]:
    return extractor._recurse(node.named_children, tree)


def _from_ternary(extractor: StyleTokenExtractor, node: Node, tree: SyntaxTree) -> List[str]:
    return extractor._recurse(
        [node.child_by_field_name("consequence"), node.child_by_field_name("alternative")], tree
    )


def _from_logical(extractor: StyleTokenExtractor, node: Node, tree: SyntaxTree) -> List[str]:
    operator = node_text(node.child_by_field_name("operator"), tree.source)
    right = node.child_by_field_name("right")
    if operator == "&&":
        return extractor._recurse([right], tree)
    if operator in {"||", "??"}:
        return extractor._recurse([node.child_by_field_name("left"), right], tree)
    return []


_DEFAULT_HANDLERS: Dict[str, TokenHandler] = {
    "string": _from_string,
    "template_string": _from_template,
    "jsx_expression": _from_wrapper,
    "parenthesized_expression": _from_wrapper,
    "as_expression": _from_wrapper,
    "satisfies_expression": _from_wrapper,
    "call_expression": _from_call,
    "object": _from_object,
    "array": _from_array,
    "ternary_expression": _from_ternary,
    "binary_expression": _from_logical,
}


class StyleTableExtractor:
    """Turns ``StyleSheet.create`` tables and inline style objects into records."""

    factory_objects = frozenset({"StyleSheet"})
    factory_methods = frozenset({"create"})

    def extract(self, tree: SyntaxTree, *, include_inline: bool = True) -> List[StyleRecord]:
        records: List[StyleRecord] = []
        bound: Dict[Tuple[int, int], str] = {}
        for node in iter_descendants(tree.root):
            if node.type == "variable_declarator":
                value = unwrap(node.child_by_field_name("value"))
                if value is not None and value.type == "call_expression":
                    bound[(value.start_byte, value.end_byte)] = tree.text(node.child_by_field_name("name"))
            elif node.type == "call_expression" and self._is_factory_call(node, tree):
                arguments = call_arguments(node)
                table = unwrap(arguments[0]) if arguments else None
                if table is None or table.type != "object":
                    continue
                records.append(
                    StyleRecord(
                        name=bound.get((node.start_byte, node.end_byte)) or "StyleSheet",
                        source="stylesheet",
                        rules=self._evaluate(table, tree),
                    )
                )
            elif include_inline and node.type in {"jsx_opening_element", "jsx_self_closing_element"}:
                records.extend(self._inline_records(node, tree))
        return records

    # ------------------------------------------------------------------
    # Internals

    def _is_factory_call(self, node: Node, tree: SyntaxTree) -> bool:
        function = unwrap(node.child_by_field_name("function"))
        if function is None or function.type != "member_expression":
            return False
        owner = tree.text(function.child_by_field_name("object"))
        method = tree.text(function.child_by_field_name("property"))
        return owner in self.factory_objects and method in self.factory_methods

    @staticmethod
    def _evaluate(table: Node, tree: SyntaxTree) -> Dict[str, object]:
        rules = literal_value(table, tree.source, fallback=lambda raw: node_text(raw, tree.source) or "unknown")
        return rules if isinstance(rules, dict) else {}

    def _inline_records(self, element: Node, tree: SyntaxTree) -> List[StyleRecord]:
        element_name = tree.text(element.child_by_field_name("name")) or "inline"
        records: List[StyleRecord] = []
        for attribute in element.children_by_field_name("attribute"):
            children = attribute.named_children
            if attribute.type != "jsx_attribute" or len(children) < 2 or tree.text(children[0]) != "style":
                continue
            value = children[1]
            expression = unwrap(first_named_child(value)) if value.type == "jsx_expression" else None
            if expression is None or expression.type != "object":
                continue
            records.append(StyleRecord(name=element_name, source="inline", rules=self._evaluate(expression, tree)))
        return records


__all__ = [
    "DEFAULT_CLASS_ATTRIBUTES",
    "DEFAULT_COMPOSITION_HELPERS",
    "StyleTableExtractor",
    "StyleTokenExtractor",
    "filter_style_tokens",
    "is_style_token",
]
