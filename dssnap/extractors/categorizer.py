"""Design-tier classification from directory placement, naming and depth."""

from __future__ import annotations

from typing import Dict, Iterable, Mapping, Optional, Sequence, Tuple

from ..models import TIERS

_TIER_DIRECTORIES: Tuple[Tuple[str, frozenset[str]], ...] = (
    ("atomic", frozenset({"atoms", "atom", "atomic"})),
    ("composite", frozenset({"molecules", "molecule", "composite", "composites"})),
    ("complex", frozenset({"organisms", "organism", "complex"})),
    ("template", frozenset({"templates", "template", "layouts"})),
    ("page", frozenset({"pages", "page", "screens", "views"})),
)

_TIER_VOCABULARY: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("atomic", ("button", "input", "label", "icon", "badge", "chip", "avatar")),
    ("composite", ("card", "form", "dropdown", "modal", "tooltip", "popover")),
    ("complex", ("header", "footer", "navbar", "sidebar", "table", "list")),
    ("template", ("layout", "template")),
    ("page", ("page", "view", "screen")),
)


class CategoryClassifier:
    """Assigns one of the design tiers to a component."""

    def __init__(self, overrides: Optional[Mapping[str, Iterable[str]]] = None) -> None:
        self._overrides: Dict[str, str] = {}
        for tier, names in (overrides or {}).items():
            if tier not in TIERS:
                raise ValueError(f"Unknown tier '{tier}'")
            for name in names:
                self._overrides.setdefault(name, tier)

    def classify(self, name: str, relative_path: str) -> str:
        """Classify by override, then directory, then name vocabulary, then depth.

        ``relative_path`` is the POSIX path of the file below the source
        directory, e.g. ``components/atoms/Button.tsx``.
        """
        override = self._overrides.get(name)
        if override is not None:
            return override

        segments = [segment for segment in relative_path.lower().split("/") if segment]
        tier = self._tier_from_directories(segments[:-1])
        if tier is not None:
            return tier

        tier = self._tier_from_name(name.lower())
        if tier is not None:
            return tier

        return self._tier_from_depth(len(segments))

    @staticmethod
    def _tier_from_directories(directories: Sequence[str]) -> Optional[str]:
        present = set(directories)
        for tier, names in _TIER_DIRECTORIES:
            if present & names:
                return tier
        return None

    @staticmethod
    def _tier_from_name(name: str) -> Optional[str]:
        for tier, words in _TIER_VOCABULARY:
            if any(word in name for word in words):
                return tier
        return None

    @staticmethod
    def _tier_from_depth(depth: int) -> str:
        if depth <= 2:
            return "atomic"
        if depth <= 3:
            return "composite"
        return "complex"


__all__ = ["CategoryClassifier"]
