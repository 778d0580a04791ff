"""Tests for style collector discovery utilities."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from dssnap.extractors import StyleCollection, StyleCollector, collector_names, discover_style_collectors
from dssnap.extractors.collectors import StyleSheetCollector, UtilityClassCollector


class DummyCollector(StyleCollector):
    """Test collector used for plugin discovery validation."""

    def collect(self, tree):  # pragma: no cover - unused
        return StyleCollection()


def _install_entry_points(monkeypatch, entries) -> None:
    class DummyEntryPoints(list):
        def select(self, **kwargs):
            if kwargs.get("group") == "dssnap.style_collectors":
                return self
            return []

    monkeypatch.setattr(
        "dssnap.extractors.metadata.entry_points",
        lambda: DummyEntryPoints(entries),
        raising=False,
    )


def test_discover_returns_builtin_collectors() -> None:
    collectors = discover_style_collectors()
    classes = {type(collector) for collector in collectors}
    assert UtilityClassCollector in classes
    assert StyleSheetCollector in classes


def test_discover_respects_enabled_filter() -> None:
    collectors = discover_style_collectors(["stylesheet"])
    assert len(collectors) == 1
    assert isinstance(collectors[0], StyleSheetCollector)


def test_discover_loads_entry_points(monkeypatch) -> None:
    _install_entry_points(monkeypatch, [SimpleNamespace(name="dummy", load=lambda: DummyCollector)])

    collectors = discover_style_collectors(["dummy"])
    assert len(collectors) == 1
    assert isinstance(collectors[0], DummyCollector)


def test_discover_rejects_entry_point_of_wrong_type(monkeypatch) -> None:
    _install_entry_points(monkeypatch, [SimpleNamespace(name="bogus", load=lambda: object)])

    with pytest.raises(TypeError):
        discover_style_collectors(["bogus"])


def test_discover_raises_for_unknown_name() -> None:
    with pytest.raises(ValueError):
        discover_style_collectors(["does-not-exist"])


def test_collector_names_include_entry_points(monkeypatch) -> None:
    _install_entry_points(monkeypatch, [SimpleNamespace(name="Dummy", load=lambda: DummyCollector)])

    assert collector_names() == ["dummy", "stylesheet", "utility-classes"]
    assert collector_names(["Stylesheet"]) == ["stylesheet"]
