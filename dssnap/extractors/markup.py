"""Reconstructs a component's render tree from its render expression."""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from tree_sitter import Node

from ..models import RenderNode
from .style_tokens import StyleTokenExtractor
from .syntax import (
    FUNCTION_TYPES,
    SyntaxTree,
    first_named_child,
    iter_descendants,
    node_text,
    number_value,
    string_value,
    unwrap,
)

DYNAMIC_PLACEHOLDER = "{...}"
EXPRESSION_PLACEHOLDER = "{expression}"
SPREAD_ATTRIBUTE = "...spread"

_ELEMENT_TYPES = frozenset({"jsx_element", "jsx_self_closing_element", "jsx_fragment"})

Resolver = Callable[["MarkupExtractor", Node, SyntaxTree], Optional[RenderNode]]


class MarkupExtractor:
    """Converts the render-producing expression of a component into a ``RenderNode``."""

    def __init__(self, tokens: StyleTokenExtractor | None = None) -> None:
        self.tokens = tokens or StyleTokenExtractor()
        self._resolvers: Dict[str, Resolver] = dict(_DEFAULT_RESOLVERS)

    def register_resolver(self, node_type: str, resolver: Resolver) -> None:
        self._resolvers[node_type] = resolver

    def extract(self, tree: SyntaxTree, function: Optional[Node] = None) -> Optional[RenderNode]:
        """Return the render tree of ``function`` (or of the first markup return in the file)."""
        expression = None
        if function is not None:
            expression = self.find_render_expression(function)
        if expression is None:
            expression = self._first_markup_return(tree.root, descend_functions=True)
        if expression is None:
            return None
        return self.resolve(expression, tree)

    def find_render_expression(self, function: Node) -> Optional[Node]:
        body = function.child_by_field_name("body")
        if body is None:
            return None
        if function.type == "arrow_function" and body.type != "statement_block":
            return body if self.is_markup(body) else None
        return self._first_markup_return(body, descend_functions=False)

    def resolve(self, node: Optional[Node], tree: SyntaxTree) -> Optional[RenderNode]:
        """Resolve wrappers, conditionals and logical operators down to markup."""
        if node is None:
            return None
        resolver = self._resolvers.get(node.type)
        if resolver is None:
            return None
        return resolver(self, node, tree)

    def is_markup(self, node: Optional[Node]) -> bool:
        node = unwrap(node)
        if node is None:
            return False
        if node.type in _ELEMENT_TYPES:
            return True
        if node.type == "jsx_expression":
            return self.is_markup(first_named_child(node))
        if node.type == "ternary_expression":
            return self.is_markup(node.child_by_field_name("consequence")) or self.is_markup(
                node.child_by_field_name("alternative")
            )
        if node.type == "binary_expression":
            operator = node.child_by_field_name("operator")
            return operator is not None and operator.type == "&&" and self.is_markup(node.child_by_field_name("right"))
        return False

    # ------------------------------------------------------------------
    # Internals

    def _first_markup_return(self, scope: Node, *, descend_functions: bool) -> Optional[Node]:
        def nested_function(node: Node) -> bool:
            return not descend_functions and node.type in FUNCTION_TYPES

        for node in iter_descendants(scope, skip=nested_function):
            if node.type != "return_statement":
                continue
            argument = first_named_child(node)
            if self.is_markup(argument):
                return argument
        return None

    def _build_element(self, node: Node, tree: SyntaxTree) -> RenderNode:
        if node.type == "jsx_fragment":
            return RenderNode(kind="Fragment", children=self._children(node, tree))
        opening = node if node.type == "jsx_self_closing_element" else node.child_by_field_name("open_tag")
        name_node = opening.child_by_field_name("name") if opening is not None else None
        if name_node is None:
            return RenderNode(kind="Fragment", children=self._children(node, tree))

        attributes, class_name, style_tokens = self._attributes(opening, tree)
        children: Tuple[Union[RenderNode, str], ...] = ()
        if node.type == "jsx_element":
            children = self._children(node, tree)
        return RenderNode(
            kind=tree.text(name_node),
            attributes=attributes,
            style_tokens=tuple(style_tokens),
            class_name=class_name,
            children=children,
        )

    def _attributes(self, opening: Node, tree: SyntaxTree) -> Tuple[Dict[str, Any], Optional[str], List[str]]:
        attributes: Dict[str, Any] = {}
        class_name: Optional[str] = None
        style_tokens: List[str] = []
        for attribute in opening.children_by_field_name("attribute"):
            if attribute.type == "jsx_expression":
                inner = first_named_child(attribute)
                if inner is not None and inner.type == "spread_element":
                    attributes[SPREAD_ATTRIBUTE] = True
                continue
            if attribute.type != "jsx_attribute":
                continue
            name = self.tokens.attribute_name(attribute, tree)
            value = self.tokens.attribute_value(attribute)
            if name in self.tokens.class_attributes:
                class_name = self._class_literal(value, tree)
                style_tokens = self.tokens.from_expression(value, tree)
                continue
            attributes[name] = self._attribute_value(value, tree)
        return attributes, class_name, style_tokens

    @staticmethod
    def _class_literal(value: Optional[Node], tree: SyntaxTree) -> Optional[str]:
        if value is not None and value.type == "jsx_expression":
            value = unwrap(first_named_child(value))
        if value is None or value.type not in {"string", "template_string"}:
            return None
        return string_value(value, tree.source)

    @staticmethod
    def _attribute_value(value: Optional[Node], tree: SyntaxTree) -> Any:
        if value is None:
            return True
        if value.type == "string":
            return string_value(value, tree.source)
        if value.type != "jsx_expression":
            return EXPRESSION_PLACEHOLDER
        inner = unwrap(first_named_child(value))
        if inner is None:
            return EXPRESSION_PLACEHOLDER
        kind = inner.type
        if kind in {"string", "template_string"}:
            literal = string_value(inner, tree.source)
            return literal if literal is not None else EXPRESSION_PLACEHOLDER
        if kind == "number":
            return number_value(tree.text(inner))
        if kind in {"true", "false"}:
            return kind == "true"
        if kind == "null":
            return None
        if kind == "identifier":
            return "{" + tree.text(inner) + "}"
        return EXPRESSION_PLACEHOLDER

    def _children(self, node: Node, tree: SyntaxTree) -> Tuple[Union[RenderNode, str], ...]:
        children: List[Union[RenderNode, str]] = []
        for child in node.named_children:
            kind = child.type
            if kind in {"jsx_opening_element", "jsx_closing_element", "comment"}:
                continue
            if kind in {"jsx_text", "html_character_reference"}:
                text = node_text(child, tree.source).strip()
                if text:
                    children.append(text)
            elif kind in _ELEMENT_TYPES:
                children.append(self._build_element(child, tree))
            elif kind == "jsx_expression":
                inner = first_named_child(child)
                if inner is not None:
                    children.append(DYNAMIC_PLACEHOLDER)
        return tuple(children)


def _resolve_element(extractor: MarkupExtractor, node: Node, tree: SyntaxTree) -> Optional[RenderNode]:
    return extractor._build_element(node, tree)


def _resolve_wrapper(extractor: MarkupExtractor, node: Node, tree: SyntaxTree) -> Optional[RenderNode]:
    return extractor.resolve(first_named_child(node), tree)


def _resolve_conditional(extractor: MarkupExtractor, node: Node, tree: SyntaxTree) -> Optional[RenderNode]:
    # The truthy branch is canonical; a markup alternate is kept alongside it.
    consequent = extractor.resolve(node.child_by_field_name("consequence"), tree)
    alternate = extractor.resolve(node.child_by_field_name("alternative"), tree)
    if consequent is None:
        return alternate
    if alternate is None:
        return consequent
    return RenderNode(
        kind=consequent.kind,
        attributes=consequent.attributes,
        style_tokens=consequent.style_tokens,
        class_name=consequent.class_name,
        children=consequent.children,
        alternate=alternate,
    )


def _resolve_logical(extractor: MarkupExtractor, node: Node, tree: SyntaxTree) -> Optional[RenderNode]:
    operator = node.child_by_field_name("operator")
    if operator is None or operator.type != "&&":
        return None
    return extractor.resolve(node.child_by_field_name("right"), tree)


_DEFAULT_RESOLVERS: Dict[str, Resolver] = {
    "jsx_element": _resolve_element,
    "jsx_self_closing_element": _resolve_element,
    "jsx_fragment": _resolve_element,
    "jsx_expression": _resolve_wrapper,
    "parenthesized_expression": _resolve_wrapper,
    "as_expression": _resolve_wrapper,
    "satisfies_expression": _resolve_wrapper,
    "ternary_expression": _resolve_conditional,
    "binary_expression": _resolve_logical,
}


__all__ = [
    "DYNAMIC_PLACEHOLDER",
    "EXPRESSION_PLACEHOLDER",
    "MarkupExtractor",
    "SPREAD_ATTRIBUTE",
]
