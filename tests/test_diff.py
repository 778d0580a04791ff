"""Tests for snapshot comparison."""

from __future__ import annotations

from dssnap.diff import DiffEngine, compare_snapshots, render_text, token_categories
from dssnap.models import (
    ColorToken,
    ComponentRecord,
    ProjectInfo,
    PropInfo,
    Snapshot,
    ThemeTokens,
    TypographyTokens,
)


def _component(path: str, tokens: tuple[str, ...] = ("p-4",), props: tuple[PropInfo, ...] = ()) -> ComponentRecord:
    return ComponentRecord(
        file_path=path,
        name=path.rsplit("/", 1)[-1].split(".", 1)[0],
        tier="atomic",
        style_tokens=tokens,
        properties=props,
        dependencies=("react",),
        content_hash="0" * 64,
    )


def _snapshot(*components: ComponentRecord, tokens: ThemeTokens | None = None) -> Snapshot:
    return Snapshot(
        version="1.0.0",
        timestamp="2024-01-01T00:00:00.000Z",
        components=components,
        tokens=tokens or ThemeTokens(),
        project=ProjectInfo(),
    )


def test_identical_snapshots_have_no_changes() -> None:
    snapshot = _snapshot(_component("src/Button.tsx"), tokens=ThemeTokens(spacing={"sm": "8px"}))

    result = DiffEngine().compare(snapshot, snapshot)

    assert result.added == ()
    assert result.removed == ()
    assert result.modified == ()
    assert result.token_delta.count() == 0
    assert not result.has_changes
    assert render_text(result) == "No changes detected."


def test_added_style_token_marks_component_modified() -> None:
    old = _snapshot(_component("src/Button.tsx", ("bg-blue-500", "p-4")))
    new = _snapshot(_component("src/Button.tsx", ("bg-blue-500", "hover:bg-blue-600", "p-4")))

    result = DiffEngine().compare(old, new)

    assert len(result.modified) == 1
    entry = result.modified[0]
    assert entry.file_path == "src/Button.tsx"
    assert entry.styles_added == ("hover:bg-blue-600",)
    assert entry.styles_removed == ()
    assert entry.props_changed is False
    assert result.summary.components_modified == 1
    assert result.summary.total_changes == 1
    assert result.summary.new_tokens == ("hover:bg-blue-600",)
    assert result.has_changes


def test_deleted_component_is_reported_as_removed_only() -> None:
    button = _component("src/Button.tsx")
    card = _component("src/Card.tsx")

    result = DiffEngine().compare(_snapshot(button, card), _snapshot(button))

    assert result.removed == (card,)
    assert result.added == ()
    assert result.modified == ()
    assert result.summary.components_removed == 1


def test_added_and_removed_are_symmetric() -> None:
    first = _snapshot(_component("src/A.tsx"), _component("src/B.tsx", ("m-2",)))
    second = _snapshot(_component("src/B.tsx", ("m-2",)), _component("src/C.tsx"))

    forward = compare_snapshots(first, second)
    backward = compare_snapshots(second, first)

    assert [c.file_path for c in forward.added] == [c.file_path for c in backward.removed] == ["src/C.tsx"]
    assert [c.file_path for c in forward.removed] == [c.file_path for c in backward.added] == ["src/A.tsx"]


def test_prop_changes_are_detected() -> None:
    old = _snapshot(_component("src/Input.tsx", props=(PropInfo(name="value", type="string", required=True),)))
    new = _snapshot(
        _component(
            "src/Input.tsx",
            props=(PropInfo(name="value", type="string", required=False, default_value=""),),
        )
    )

    result = DiffEngine().compare(old, new)

    assert result.modified[0].props_changed is True
    assert result.modified[0].styles_added == ()


def test_changed_theme_color_is_a_token_modification() -> None:
    old = _snapshot(tokens=ThemeTokens(colors={"primary": ColorToken(value="#3b82f6")}))
    new = _snapshot(tokens=ThemeTokens(colors={"primary": ColorToken(value="#2563eb")}))

    result = DiffEngine().compare(old, new)

    assert result.token_delta.modified == {"colors": {"primary": {"old": "#3b82f6", "new": "#2563eb"}}}
    assert result.summary.token_changes == 1
    assert not result.has_changes
    assert "colors.primary: #3b82f6 -> #2563eb" in render_text(result)


def test_token_additions_and_removals_by_category() -> None:
    old = ThemeTokens(
        spacing={"sm": "8px"},
        typography=TypographyTokens(font_size={"lg": "1.125rem"}),
        breakpoints={"md": "768px"},
    )
    new = ThemeTokens(
        spacing={"sm": "8px", "lg": "24px"},
        typography=TypographyTokens(font_size={"lg": "1.25rem"}),
        border_radius={"lg": "8px"},
    )

    delta = DiffEngine().compare_tokens(old, new)

    assert delta.added == {"spacing": {"lg": "24px"}, "borderRadius": {"lg": "8px"}}
    assert delta.removed == {"breakpoints": {"md": "768px"}}
    assert delta.modified == {"typography": {"fontSize.lg": {"old": "1.125rem", "new": "1.25rem"}}}
    assert delta.count() == 4


def test_color_usage_sites_do_not_count_as_changes() -> None:
    old = ThemeTokens(colors={"primary": ColorToken(value="#000")})
    new = ThemeTokens(colors={"primary": ColorToken(value="#000", usage_sites=("src/Button.tsx",))})

    assert DiffEngine().compare_tokens(old, new).count() == 0


def test_token_categories_flattens_typography() -> None:
    tokens = ThemeTokens(typography=TypographyTokens(font_family={"sans": "Inter"}, line_height={"tight": "1.25"}))

    categories = token_categories(tokens)

    assert categories["typography"] == {"fontFamily.sans": "Inter", "lineHeight.tight": "1.25"}
    assert set(categories) == {"colors", "spacing", "typography", "breakpoints", "shadows", "borderRadius"}


def test_render_text_lists_sections_and_summary() -> None:
    old = _snapshot(_component("src/Button.tsx", ("p-4",)), _component("src/Old.tsx"))
    new = _snapshot(_component("src/Button.tsx", ("p-2",)), _component("src/New.tsx", ("m-1",)))

    text = render_text(DiffEngine().compare(old, new))

    assert "Added components:\n  + src/New.tsx (atomic, 1 style tokens)" in text
    assert "Removed components:\n  - src/Old.tsx" in text
    assert "  ~ src/Button.tsx\n      styles added: p-2\n      styles removed: p-4" in text
    assert "Summary: 3 component change(s) (1 added, 1 removed, 1 modified), 0 token change(s)" in text
