"""Component property extraction from a destructured first parameter."""

from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from tree_sitter import Node

from ..models import PropInfo
from .syntax import FUNCTION_TYPES, SyntaxTree, iter_descendants, string_value, unwrap

UNKNOWN_TYPE = "unknown"

_PARAMETER_WRAPPERS = frozenset({"required_parameter", "optional_parameter"})


class PropertyExtractor:
    """Emits one ``PropInfo`` per destructured key of a component's first parameter."""

    def extract(self, function: Optional[Node], tree: SyntaxTree) -> List[PropInfo]:
        if function is None or function.type not in FUNCTION_TYPES:
            return []
        pattern, annotation = self._first_parameter(function)
        if pattern is None or pattern.type != "object_pattern":
            return []

        declared = self._declared_types(annotation, tree)
        props: List[PropInfo] = []
        for child in pattern.named_children:
            entry = self._entry(child, tree)
            if entry is None:
                continue
            name, default = entry
            if default is None:
                prop_type = declared.get(name, UNKNOWN_TYPE)
                props.append(PropInfo(name=name, type=prop_type, required=True))
            else:
                prop_type, default_value = self._describe_default(default, tree)
                if prop_type == UNKNOWN_TYPE:
                    prop_type = declared.get(name, UNKNOWN_TYPE)
                props.append(
                    PropInfo(name=name, type=prop_type, required=False, default_value=default_value)
                )
        return props

    # ------------------------------------------------------------------
    # Internals

    @staticmethod
    def _first_parameter(function: Node) -> Tuple[Optional[Node], Optional[Node]]:
        parameters = function.child_by_field_name("parameters")
        if parameters is None:
            # ``props => ...`` has a bare identifier parameter.
            return None, None
        first = next((child for child in parameters.named_children if child.type != "comment"), None)
        if first is None:
            return None, None

        annotation: Optional[Node] = None
        if first.type in _PARAMETER_WRAPPERS:
            annotation = first.child_by_field_name("type")
            first = first.child_by_field_name("pattern")
        if first is not None and first.type == "assignment_pattern":
            first = first.child_by_field_name("left")
        return first, annotation

    def _entry(self, child: Node, tree: SyntaxTree) -> Optional[Tuple[str, Optional[Node]]]:
        if child.type == "shorthand_property_identifier_pattern":
            return tree.text(child), None
        if child.type == "object_assignment_pattern":
            left = child.child_by_field_name("left")
            if left is None or left.type != "shorthand_property_identifier_pattern":
                return None
            return tree.text(left), child.child_by_field_name("right")
        if child.type == "pair_pattern":
            key = child.child_by_field_name("key")
            if key is None:
                return None
            if key.type == "string":
                name = string_value(key, tree.source) or ""
            elif key.type == "property_identifier":
                name = tree.text(key)
            else:
                return None
            value = child.child_by_field_name("value")
            if value is not None and value.type == "assignment_pattern":
                return name, value.child_by_field_name("right")
            return name, None
        return None

    @staticmethod
    def _describe_default(node: Node, tree: SyntaxTree) -> Tuple[str, Optional[str]]:
        node = unwrap(node) or node
        kind = node.type
        if kind in {"string", "template_string"}:
            value = string_value(node, tree.source)
            if value is not None:
                return "string", value
            return "string", None
        if kind == "number":
            return "number", tree.text(node)
        if kind == "unary_expression":
            argument = node.child_by_field_name("argument")
            if argument is not None and argument.type == "number":
                return "number", tree.text(node).replace(" ", "")
            return UNKNOWN_TYPE, None
        if kind in {"true", "false"}:
            return "boolean", kind
        if kind == "null":
            return UNKNOWN_TYPE, "null"
        if kind == "identifier":
            name = tree.text(node)
            if name == "undefined":
                return UNKNOWN_TYPE, None
            return UNKNOWN_TYPE, name
        if kind == "array":
            return "array", "[]"
        if kind == "object":
            return "object", "{}"
        if kind in {"arrow_function", "function_expression", "function"}:
            return "function", None
        return UNKNOWN_TYPE, None

    def _declared_types(self, annotation: Optional[Node], tree: SyntaxTree) -> Dict[str, str]:
        if annotation is None:
            return {}
        body = self._type_body(annotation, tree)
        if body is None:
            return {}
        declared: Dict[str, str] = {}
        for member in body.named_children:
            if member.type != "property_signature":
                continue
            name = tree.text(member.child_by_field_name("name"))
            type_node = member.child_by_field_name("type")
            if not name or type_node is None:
                continue
            text = tree.text(type_node).lstrip(":").strip()
            if text:
                declared[name] = text
        return declared

    def _type_body(self, annotation: Node, tree: SyntaxTree) -> Optional[Node]:
        target = annotation.named_children[0] if annotation.type == "type_annotation" and annotation.named_children else annotation
        if target.type == "object_type":
            return target
        if target.type != "type_identifier":
            return None
        # Same-file ``interface Props {...}`` or ``type Props = {...}`` only.
        wanted = tree.text(target)
        for node in iter_descendants(tree.root):
            if node.type == "interface_declaration" and tree.text(node.child_by_field_name("name")) == wanted:
                return node.child_by_field_name("body")
            if node.type == "type_alias_declaration" and tree.text(node.child_by_field_name("name")) == wanted:
                value = node.child_by_field_name("value")
                if value is not None and value.type == "object_type":
                    return value
        return None


__all__ = ["PropertyExtractor", "UNKNOWN_TYPE"]
