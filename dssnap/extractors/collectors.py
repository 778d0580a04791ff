"""Built-in style collectors."""

from __future__ import annotations

from .base import StyleCollection, StyleCollector
from .style_tokens import StyleTableExtractor, StyleTokenExtractor
from .syntax import SyntaxTree


class UtilityClassCollector(StyleCollector):
    """Utility-class tokens from class attributes and composition helpers."""

    def __init__(self, extractor: StyleTokenExtractor | None = None) -> None:
        self.extractor = extractor or StyleTokenExtractor()

    def collect(self, tree: SyntaxTree) -> StyleCollection:
        return StyleCollection(tokens=self.extractor.extract(tree))


class StyleSheetCollector(StyleCollector):
    """``StyleSheet.create`` tables and inline style objects."""

    def __init__(self, extractor: StyleTableExtractor | None = None) -> None:
        self.extractor = extractor or StyleTableExtractor()

    def collect(self, tree: SyntaxTree) -> StyleCollection:
        return StyleCollection(records=self.extractor.extract(tree))


__all__ = ["StyleSheetCollector", "UtilityClassCollector"]
