"""Per-file extraction pipeline producing one ``ComponentRecord``."""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from ..config import ProjectConfig
from ..models import ComponentRecord, StyleRecord
from .base import StyleCollector
from .categorizer import CategoryClassifier
from .classifier import SourceClassifier, is_component_source
from .markup import MarkupExtractor
from .props import PropertyExtractor
from .style_tokens import filter_style_tokens
from .syntax import SyntaxTree, SyntaxTreeProvider, string_value


def content_hash(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


class ComponentExtractor:
    """Runs classification, style collection, props, markup and tiering for one file."""

    def __init__(
        self,
        config: ProjectConfig,
        collectors: Sequence[StyleCollector],
        *,
        provider: SyntaxTreeProvider | None = None,
        classifier: SourceClassifier | None = None,
        props: PropertyExtractor | None = None,
        markup: MarkupExtractor | None = None,
        categorizer: CategoryClassifier | None = None,
    ) -> None:
        self.config = config
        self.collectors = list(collectors)
        self.provider = provider or SyntaxTreeProvider()
        self.classifier = classifier or SourceClassifier()
        self.props = props or PropertyExtractor()
        self.markup = markup or MarkupExtractor()
        self.categorizer = categorizer or CategoryClassifier(config.categorization)

    def relative_path(self, path: Path) -> str:
        """Return the POSIX path of ``path`` below the project root."""
        try:
            return path.resolve().relative_to(self.config.root.resolve()).as_posix()
        except ValueError:
            return path.as_posix()

    def source_relative_path(self, path: Path) -> str:
        try:
            return path.resolve().relative_to(self.config.source_dir.resolve()).as_posix()
        except ValueError:
            return self.relative_path(path)

    def extract(self, path: Path, text: str) -> Optional[ComponentRecord]:
        """Return the component record for ``path`` or ``None`` when it is not a component.

        Raises ``SourceParseError`` when the file is a component candidate but
        cannot be parsed.
        """
        if not is_component_source(text):
            return None

        tree = self.provider.parse(text, path)
        name = self.classifier.resolve_name(tree)
        function = self.classifier.find_component_function(tree, name)

        tokens: List[str] = []
        records: List[StyleRecord] = []
        for collector in self.collectors:
            collection = collector.collect(tree)
            tokens.extend(collection.tokens)
            records.extend(collection.records)

        tier = self.categorizer.classify(name, self.source_relative_path(path))
        return ComponentRecord(
            file_path=self.relative_path(path),
            name=name,
            tier=tier,
            style_tokens=tuple(sorted(filter_style_tokens(tokens))),
            properties=tuple(self.props.extract(function, tree)),
            dependencies=tuple(module_dependencies(tree)),
            content_hash=content_hash(text),
            render_tree=self.markup.extract(tree, function),
            style_records=tuple(records),
            platform=self.config.platform,
        )


def module_dependencies(tree: SyntaxTree) -> List[str]:
    """Return imported and re-exported module specifiers in first-seen order."""
    seen: Dict[str, None] = {}
    for statement in tree.root.named_children:
        if statement.type not in {"import_statement", "export_statement"}:
            continue
        source = statement.child_by_field_name("source")
        if source is None:
            continue
        module = string_value(source, tree.source)
        if module and module not in seen:
            seen[module] = None
    return list(seen)


__all__ = ["ComponentExtractor", "content_hash", "module_dependencies"]
