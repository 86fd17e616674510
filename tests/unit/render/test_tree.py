"""Unit tests for RenderTree and its range indices."""

from __future__ import annotations

import pytest

from kubelens.render.ast import Heading, Indent, Line, NavTarget, Section, Sequence, Text
from kubelens.render.engine import render
from kubelens.render.tree import IndexedRange, RangeIndex, RenderTree


def _entries(*names: str) -> RenderTree:
    return render(
        Section(
            "pods",
            False,
            (
                Heading(Line(Text("Pods"))),
                Indent(
                    Sequence(
                        tuple(
                            NavTarget(
                                name,
                                Section(
                                    f"pods:{name}",
                                    True,
                                    (
                                        Heading(Line(Text(name))),
                                        Indent(Line(Text(f"detail of {name}"))),
                                    ),
                                ),
                            )
                            for name in names
                        )
                    )
                ),
            ),
        )
    )


class TestRangeIndex:
    """Tests for RangeIndex."""

    @pytest.mark.unit
    def test_paint_later_records_overwrite(self) -> None:
        """Overlapping records flatten into disjoint ranges."""
        index = RangeIndex.paint(10, [(0, 10, "a"), (3, 5, "b")])
        assert index.ranges == (
            IndexedRange(0, 3, "a"),
            IndexedRange(3, 5, "b"),
            IndexedRange(5, 10, "a"),
        )

    @pytest.mark.unit
    def test_paint_leaves_gaps(self) -> None:
        """Offsets no record covers have no payload."""
        index = RangeIndex.paint(6, [(1, 2, "x"), (4, 6, "y")])
        assert index.lookup(0) is None
        assert index.lookup(1) == "x"
        assert index.lookup(3) is None
        assert index.lookup(5) == "y"
        assert len(index) == 2

    @pytest.mark.unit
    def test_range_at_outside_text(self) -> None:
        """Offsets past the end find nothing."""
        index = RangeIndex.paint(3, [(0, 3, "x")])
        assert index.range_at(3) is None
        assert index.range_at(-1) is None

    @pytest.mark.unit
    def test_find_and_nearest(self) -> None:
        """find matches by payload; nearest by distance to the start."""
        index = RangeIndex.paint(20, [(0, 5, "a"), (10, 15, "b")])
        found = index.find("b")
        assert found is not None
        assert found.start == 10
        assert index.find("c") is None
        nearest = index.nearest(8)
        assert nearest is not None
        assert nearest.value == "b"

    @pytest.mark.unit
    def test_empty_index(self) -> None:
        """An empty index answers None everywhere."""
        index = RangeIndex()
        assert index.lookup(0) is None
        assert index.nearest(0) is None


class TestRenderTreeLines:
    """Tests for line and section queries."""

    @pytest.mark.unit
    def test_lines(self) -> None:
        """Lines exclude their line break; a missing final break is fine."""
        assert RenderTree("a\nbb\n").lines() == [(0, 1), (2, 4)]
        assert RenderTree("a\nbb").lines() == [(0, 1), (2, 4)]
        assert RenderTree("").lines() == []

    @pytest.mark.unit
    def test_visible_lines_hide_collapsed_bodies(self) -> None:
        """A collapsed section keeps only its heading line."""
        tree = _entries("web-1", "web-2")
        text = [tree.text[s:e] for s, e in tree.visible_lines({"pods:web-1"})]
        assert text == ["Pods", "  web-1", "  web-2", "    detail of web-2"]

    @pytest.mark.unit
    def test_collapsing_outer_hides_everything_below(self) -> None:
        """Folding the kind section leaves only its heading."""
        tree = _entries("web-1")
        text = [tree.text[s:e] for s, e in tree.visible_lines({"pods"})]
        assert text == ["Pods"]

    @pytest.mark.unit
    def test_section_at_returns_innermost(self) -> None:
        """The deepest section containing the offset wins."""
        tree = _entries("web-1")
        offset = tree.text.index("detail")
        section = tree.section_at(offset)
        assert section is not None
        assert section.id == "pods:web-1"
        outer = tree.section_at(0)
        assert outer is not None
        assert outer.id == "pods"


class TestRestoreOffset:
    """Tests for keeping the cursor on the same payload across renders."""

    @pytest.mark.unit
    def test_follows_payload_when_it_moves(self) -> None:
        """An entry pushed down by a new sibling keeps the cursor."""
        before = _entries("web-2")
        after = _entries("web-1", "web-2")
        offset = before.text.index("web-2")

        restored = after.restore_offset(before, offset)

        assert after.nav_at(restored) == "web-2"
        assert restored == after.text.index("  web-2") + 2

    @pytest.mark.unit
    def test_falls_back_to_nearest_payload(self) -> None:
        """When the entry vanished, the cursor lands on the nearest one."""
        before = _entries("web-1", "web-2")
        after = _entries("web-1")
        offset = before.text.index("web-2")

        restored = after.restore_offset(before, offset)

        assert after.nav_at(restored) == "web-1"

    @pytest.mark.unit
    def test_without_payloads_clamps_offset(self) -> None:
        """With no navigation at all the offset is clamped into the text."""
        tree = RenderTree("abc\n")
        assert tree.restore_offset(None, 100) == 3
