"""Tests for component detection and name resolution."""

from __future__ import annotations

import textwrap

import pytest

from dssnap.extractors.classifier import SourceClassifier, fallback_name, is_component_source
from dssnap.extractors.syntax import SyntaxTreeProvider


def _parse(source: str, path: str = "src/Widget.tsx"):
    return SyntaxTreeProvider().parse(textwrap.dedent(source), path)


def test_is_component_source_requires_all_three_signals() -> None:
    component = "import React from 'react';\nexport const A = () => <div />;\n"
    no_markup = "import React from 'react';\nexport const a = 1;\n"
    no_import = "export const A = () => <div />;\n"
    no_export = "import React from 'react';\nconst A = () => <div />;\n"

    assert is_component_source(component)
    assert not is_component_source(no_markup)
    assert not is_component_source(no_import)
    assert not is_component_source(no_export)


def test_is_component_source_accepts_react_native_and_preact() -> None:
    native = "import { View } from 'react-native';\nexport default function A() { return <View />; }\n"
    preact = 'import { h } from "preact";\nexport { A };\nconst A = () => <div />;\n'

    assert is_component_source(native)
    assert is_component_source(preact)


def test_is_component_source_accepts_multiline_imports() -> None:
    source = textwrap.dedent(
        """
        import {
          View,
          Text,
        } from 'react-native';

        export const Card = () => <View><Text>Hi</Text></View>;
        """
    )

    assert is_component_source(source)


def test_multiline_import_does_not_span_other_statements() -> None:
    source = "import { a } from './a';\nimport b from 'lodash';\nexport const A = () => <div />;\n"

    assert not is_component_source(source)


@pytest.mark.parametrize(
    "export",
    [
        "export default memo(Button);",
        "export default forwardRef(Button);",
        "export default button;",
    ],
)
def test_is_component_source_accepts_wrapped_default_exports(export: str) -> None:
    source = (
        "import React, { memo, forwardRef } from 'react';\n"
        "const Button = () => <button className=\"p-4\" />;\n"
        f"{export}\n"
    )

    assert is_component_source(source)


def test_memo_only_default_export_resolves_wrapped_component() -> None:
    source = (
        "import React, { memo } from 'react';\n"
        "const Button = () => <button className=\"p-4\" />;\n"
        "export default memo(Button);\n"
    )
    assert is_component_source(source)
    tree = _parse(source, "src/Index.tsx")
    classifier = SourceClassifier()

    name = classifier.resolve_name(tree)
    function = classifier.find_component_function(tree, name)

    assert name == "Button"
    assert function is not None
    assert function.type == "arrow_function"


@pytest.mark.parametrize(
    ("path", "expected"),
    [
        ("src/Button.tsx", "Button"),
        ("src/Button.component.tsx", "Button"),
        ("Card.stories.jsx", "Card"),
    ],
)
def test_fallback_name_strips_extensions(path: str, expected: str) -> None:
    assert fallback_name(path) == expected


@pytest.mark.parametrize(
    ("source", "expected"),
    [
        ("export default function Button() { return <button />; }\n", "Button"),
        ("export const Badge = () => <span />;\n", "Badge"),
        ("const Card = () => <div />;\nexport default Card;\n", "Card"),
        ("export default memo(function Avatar() { return <img />; });\n", "Avatar"),
        ("const Chip = () => <span />;\nexport default memo(Chip);\n", "Chip"),
        ("const Tag = () => <span />;\nexport { Tag };\n", "Tag"),
        ("export class Panel extends React.Component { render() { return <div />; } }\n", "Panel"),
    ],
)
def test_resolve_name_prefers_exported_declarations(source: str, expected: str) -> None:
    tree = _parse(source)

    assert SourceClassifier().resolve_name(tree) == expected


def test_resolve_name_falls_back_to_file_name() -> None:
    tree = _parse("export default () => <div />;\n", "src/Hero.component.tsx")

    assert SourceClassifier().resolve_name(tree) == "Hero"


def test_find_component_function_locates_arrow_variable() -> None:
    tree = _parse(
        """
        const helper = () => null;
        export const Badge = ({ tone }) => <span>{tone}</span>;
        """
    )

    function = SourceClassifier().find_component_function(tree, "Badge")

    assert function is not None
    assert function.type == "arrow_function"
    assert "tone" in tree.text(function)


def test_find_component_function_unwraps_wrapper_calls() -> None:
    tree = _parse(
        """
        export const Input = forwardRef(function Input({ value }, ref) {
          return <input ref={ref} value={value} />;
        });
        """
    )

    function = SourceClassifier().find_component_function(tree, "Input")

    assert function is not None
    assert function.type in {"function_expression", "function"}


def test_find_component_function_uses_class_render_method() -> None:
    tree = _parse("export class Panel extends React.Component { render() { return <div />; } }\n")

    function = SourceClassifier().find_component_function(tree, "Panel")

    assert function is not None
    assert function.type == "method_definition"


def test_find_component_function_falls_back_to_first_function() -> None:
    tree = _parse("function Inner() { return <div />; }\nexport default Inner;\n")

    function = SourceClassifier().find_component_function(tree, "Missing")

    assert function is not None
    assert tree.text(function.child_by_field_name("name")) == "Inner"
