"""Base classes for style collector plugins."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List

from ..models import StyleRecord
from .syntax import SyntaxTree


@dataclass
class StyleCollection:
    """Tokens and structured records gathered from one source file."""

    tokens: List[str] = field(default_factory=list)
    records: List[StyleRecord] = field(default_factory=list)


class StyleCollector(ABC):
    """Contract for collectors that gather styling information from a syntax tree."""

    @abstractmethod
    def collect(self, tree: SyntaxTree) -> StyleCollection:
        """Return the style tokens and records expressed in ``tree``."""
