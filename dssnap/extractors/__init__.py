"""Style collector plugins and discovery utilities."""

from __future__ import annotations

from importlib import metadata
from typing import Callable, Iterable, List, Sequence, Set

from .base import StyleCollection, StyleCollector
from .collectors import StyleSheetCollector, UtilityClassCollector

_ENTRY_POINT_GROUP = "dssnap.style_collectors"

_BUILTIN_FACTORIES: dict[str, Callable[[], StyleCollector]] = {
    "utility-classes": UtilityClassCollector,
    "stylesheet": StyleSheetCollector,
}


def discover_style_collectors(enabled: Sequence[str] | None = None) -> List[StyleCollector]:
    """Return instantiated collectors, honoring optional enabled names."""

    enabled_set: Set[str] | None = None
    if enabled is not None:
        enabled_set = {name.lower() for name in enabled}

    collectors: List[StyleCollector] = []
    seen: Set[str] = set()

    def _add(name: str, factory: Callable[[], StyleCollector]) -> None:
        key = name.lower()
        if enabled_set is not None and key not in enabled_set:
            return
        if key in seen:
            return
        instance = factory()
        if not isinstance(instance, StyleCollector):
            raise TypeError(f"Collector factory for '{name}' did not return a StyleCollector instance")
        collectors.append(instance)
        seen.add(key)
        if enabled_set is not None:
            enabled_set.discard(key)

    for name, factory in _BUILTIN_FACTORIES.items():
        _add(name, factory)

    for entry in _iter_entry_points():
        name = entry.name
        if enabled_set is not None and name.lower() not in enabled_set:
            continue
        try:
            loaded = entry.load()
        except Exception as exc:
            raise RuntimeError(f"Failed to load style collector entry point '{name}': {exc}") from exc

        def _factory(obj: object = loaded) -> StyleCollector:
            return _coerce_collector(obj)

        _add(name, _factory)

    if enabled_set:
        missing = ", ".join(sorted(enabled_set))
        raise ValueError(f"Unknown style collectors requested: {missing}")

    return collectors


def collector_names(enabled: Sequence[str] | None = None) -> List[str]:
    """Return the registry names that ``discover_style_collectors`` would honor."""
    if enabled:
        return sorted(name.lower() for name in enabled)
    names = set(_BUILTIN_FACTORIES)
    names.update(entry.name.lower() for entry in _iter_entry_points())
    return sorted(names)


def _coerce_collector(obj: object) -> StyleCollector:
    if isinstance(obj, StyleCollector):
        return obj
    if isinstance(obj, type) and issubclass(obj, StyleCollector):
        return obj()
    if callable(obj):
        instance = obj()
        if isinstance(instance, StyleCollector):
            return instance
    raise TypeError("Style collector entry point must be a StyleCollector subclass or factory")


def _iter_entry_points() -> Iterable[metadata.EntryPoint]:
    return metadata.entry_points().select(group=_ENTRY_POINT_GROUP)


__all__ = [
    "StyleCollection",
    "StyleCollector",
    "collector_names",
    "discover_style_collectors",
]
