"""Decides whether a source file is a UI component and resolves its name."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Dict, Iterator, List, Optional

from tree_sitter import Node

from .syntax import FUNCTION_TYPES, SyntaxTree, call_arguments, node_text, unwrap

_MARKUP_PATTERN = re.compile(r"<[a-zA-Z][a-zA-Z0-9]*")
_UI_IMPORT_PATTERN = re.compile(r"import\s+[^;'\"]*?\s+from\s+['\"](?:react|react-native|preact)['\"]")
_EXPORT_PATTERN = re.compile(r"export\s+(?:default\s+[\w$(]|function|const|class|[A-Z]\w*|\{)")

_DECLARATION_TYPES = frozenset({"lexical_declaration", "variable_declaration"})
_NAMED_DECLARATION_TYPES = frozenset(
    {"function_declaration", "generator_function_declaration", "class_declaration", "abstract_class_declaration"}
)


def is_component_source(text: str) -> bool:
    """Return True when markup, a UI-library import and an export are all present."""
    return bool(
        _MARKUP_PATTERN.search(text)
        and _UI_IMPORT_PATTERN.search(text)
        and _EXPORT_PATTERN.search(text)
    )


def fallback_name(path: str | Path) -> str:
    """Derive a component name from the file name (``Button.component.tsx`` -> ``Button``)."""
    stem = Path(path).name.split(".", 1)[0]
    return stem or Path(path).stem


class SourceClassifier:
    """Resolves the exported component name and its implementing function."""

    def resolve_name(self, tree: SyntaxTree) -> str:
        """Return the first exported name in file order, else the file-name fallback."""
        names = self._local_names(tree)
        for export in self._iter_exports(tree.root):
            name = self._export_name(export, names, tree)
            if name:
                return name
        return fallback_name(tree.path)

    def find_component_function(self, tree: SyntaxTree, name: str) -> Optional[Node]:
        """Return the function node implementing ``name``, or the best candidate."""
        default_export: Optional[Node] = None
        first_function: Optional[Node] = None

        for statement in tree.root.named_children:
            declaration = statement
            if statement.type == "export_statement":
                declaration = statement.child_by_field_name("declaration")
                if declaration is None:
                    value = statement.child_by_field_name("value")
                    function = self._as_function(value, tree)
                    if function is not None and default_export is None:
                        default_export = function
                    continue
            if declaration is None:
                continue

            if declaration.type in {"function_declaration", "generator_function_declaration"}:
                if tree.text(declaration.child_by_field_name("name")) == name:
                    return declaration
                if first_function is None:
                    first_function = declaration
            elif declaration.type in _DECLARATION_TYPES:
                for declarator in self._declarators(declaration):
                    function = self._as_function(declarator.child_by_field_name("value"), tree)
                    if function is None:
                        continue
                    if tree.text(declarator.child_by_field_name("name")) == name:
                        return function
                    if first_function is None:
                        first_function = function
            elif declaration.type == "class_declaration":
                if tree.text(declaration.child_by_field_name("name")) == name:
                    return self._render_method(declaration, tree) or declaration
        return default_export or first_function

    # ------------------------------------------------------------------
    # Internals

    @staticmethod
    def _iter_exports(root: Node) -> Iterator[Node]:
        for statement in root.named_children:
            if statement.type == "export_statement":
                yield statement

    def _local_names(self, tree: SyntaxTree) -> Dict[str, str]:
        names: Dict[str, str] = {}
        for statement in tree.root.named_children:
            declaration = statement
            if statement.type == "export_statement":
                declaration = statement.child_by_field_name("declaration")
            if declaration is None:
                continue
            if declaration.type in _DECLARATION_TYPES:
                for declarator in self._declarators(declaration):
                    name_node = declarator.child_by_field_name("name")
                    if name_node is not None and name_node.type == "identifier":
                        name = tree.text(name_node)
                        names[name] = name
            elif declaration.type in _NAMED_DECLARATION_TYPES:
                name = tree.text(declaration.child_by_field_name("name"))
                if name:
                    names[name] = name
        return names

    def _export_name(self, export: Node, names: Dict[str, str], tree: SyntaxTree) -> Optional[str]:
        declaration = export.child_by_field_name("declaration")
        if declaration is not None:
            if declaration.type in _NAMED_DECLARATION_TYPES:
                return tree.text(declaration.child_by_field_name("name")) or None
            if declaration.type in _DECLARATION_TYPES:
                for declarator in self._declarators(declaration):
                    name_node = declarator.child_by_field_name("name")
                    if name_node is not None and name_node.type == "identifier":
                        return tree.text(name_node)
            return None

        value = unwrap(export.child_by_field_name("value"))
        if value is not None:
            return self._expression_name(value, names, tree)

        for clause in export.named_children:
            if clause.type != "export_clause":
                continue
            for specifier in clause.named_children:
                if specifier.type == "export_specifier":
                    local = tree.text(specifier.child_by_field_name("name"))
                    if local:
                        return names.get(local, local)
        return None

    def _expression_name(self, value: Node, names: Dict[str, str], tree: SyntaxTree) -> Optional[str]:
        if value.type == "identifier":
            local = tree.text(value)
            return names.get(local, local)
        if value.type in {"function_expression", "function", "class"}:
            return tree.text(value.child_by_field_name("name")) or None
        if value.type == "call_expression":
            # memo(Button), forwardRef(function Button() {...})
            for argument in call_arguments(value):
                name = self._expression_name(unwrap(argument) or argument, names, tree)
                if name:
                    return name
        return None

    @staticmethod
    def _declarators(declaration: Node) -> List[Node]:
        return [child for child in declaration.named_children if child.type == "variable_declarator"]

    def _as_function(self, value: Optional[Node], tree: SyntaxTree) -> Optional[Node]:
        value = unwrap(value)
        if value is None:
            return None
        if value.type in FUNCTION_TYPES:
            return value
        if value.type == "call_expression":
            for argument in call_arguments(value):
                function = self._as_function(argument, tree)
                if function is not None:
                    return function
        return None

    @staticmethod
    def _render_method(declaration: Node, tree: SyntaxTree) -> Optional[Node]:
        body = declaration.child_by_field_name("body")
        if body is None:
            return None
        for member in body.named_children:
            if member.type == "method_definition" and node_text(member.child_by_field_name("name"), tree.source) == "render":
                return member
        return None


__all__ = ["SourceClassifier", "fallback_name", "is_component_source"]
