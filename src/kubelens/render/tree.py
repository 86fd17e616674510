"""Compiled render output.

A ``RenderTree`` is plain text plus side tables keyed by ``[start, end)``
character offsets into that text: style spans, the navigation index, the
copy index, and section extents. Offsets rather than widget positions
keep the tree independent of whatever paints it.
"""

from __future__ import annotations

import bisect
from collections.abc import Collection, Hashable, Iterable
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class StyleSpan:
    """Style names applied over ``[start, end)``."""

    start: int
    end: int
    style: tuple[str, ...]


@dataclass(frozen=True)
class IndexedRange:
    """A ``[start, end)`` range carrying a payload."""

    start: int
    end: int
    value: Any

    def __contains__(self, offset: object) -> bool:
        return isinstance(offset, int) and self.start <= offset < self.end


@dataclass(frozen=True)
class RangeIndex:
    """Disjoint, sorted ranges queried by offset."""

    ranges: tuple[IndexedRange, ...] = ()

    @classmethod
    def paint(cls, length: int, records: Iterable[tuple[int, int, Any]]) -> RangeIndex:
        """Flatten possibly overlapping records into disjoint ranges.

        Records are applied in order and later records overwrite earlier
        ones character by character.
        """
        recorded = list(records)
        owner = [-1] * length
        for i, (start, end, _) in enumerate(recorded):
            for pos in range(max(start, 0), min(end, length)):
                owner[pos] = i

        ranges: list[IndexedRange] = []
        run_start = 0
        for pos in range(1, length + 1):
            if pos == length or owner[pos] != owner[run_start]:
                if owner[run_start] >= 0:
                    ranges.append(IndexedRange(run_start, pos, recorded[owner[run_start]][2]))
                run_start = pos
        return cls(tuple(ranges))

    def __len__(self) -> int:
        return len(self.ranges)

    def range_at(self, offset: int) -> IndexedRange | None:
        """Range containing ``offset``, if any."""
        i = bisect.bisect_right(self.ranges, offset, key=lambda r: r.start) - 1
        if i >= 0 and offset in self.ranges[i]:
            return self.ranges[i]
        return None

    def lookup(self, offset: int) -> Any:
        """Payload at ``offset``, or None."""
        found = self.range_at(offset)
        return found.value if found is not None else None

    def find(self, value: Hashable) -> IndexedRange | None:
        """First range carrying ``value``."""
        for r in self.ranges:
            if r.value == value:
                return r
        return None

    def nearest(self, offset: int) -> IndexedRange | None:
        """Range whose start is closest to ``offset`` (earlier wins ties)."""
        if not self.ranges:
            return None
        return min(self.ranges, key=lambda r: abs(r.start - offset))


@dataclass(frozen=True)
class SectionSpan:
    """Extent of a rendered section and of its heading."""

    id: str
    start: int
    end: int
    heading_start: int | None
    heading_end: int | None
    collapsed_by_default: bool
    depth: int


@dataclass(frozen=True)
class RenderTree:
    """Text plus style, navigation, copy, and section tables."""

    text: str
    styles: tuple[StyleSpan, ...] = ()
    navigation: RangeIndex = field(default_factory=RangeIndex)
    copy: RangeIndex = field(default_factory=RangeIndex)
    sections: tuple[SectionSpan, ...] = ()

    def nav_at(self, offset: int) -> Any:
        """Navigation payload under ``offset``."""
        return self.navigation.lookup(offset)

    def copy_at(self, offset: int) -> str | None:
        """Copy payload under ``offset``."""
        value = self.copy.lookup(offset)
        return value if isinstance(value, str) else None

    def lines(self) -> list[tuple[int, int]]:
        """``(start, end)`` of every line; ``end`` excludes the line break."""
        result: list[tuple[int, int]] = []
        start = 0
        length = len(self.text)
        while start < length:
            end = self.text.find("\n", start)
            if end == -1:
                result.append((start, length))
                break
            result.append((start, end))
            start = end + 1
        return result

    def default_collapsed(self) -> frozenset[str]:
        """Ids of sections that start out collapsed."""
        return frozenset(s.id for s in self.sections if s.collapsed_by_default)

    def section_at(self, offset: int) -> SectionSpan | None:
        """Innermost section containing ``offset``."""
        found: SectionSpan | None = None
        for section in self.sections:
            if section.start <= offset < section.end and (
                found is None or section.depth > found.depth
            ):
                found = section
        return found

    def visible_lines(self, collapsed: Collection[str] = ()) -> list[tuple[int, int]]:
        """Lines left after folding every section whose id is collapsed.

        A folded section keeps its first line (the heading) and hides the
        rest of its range.
        """
        hidden: list[tuple[int, int]] = []
        for section in self.sections:
            if section.id not in collapsed:
                continue
            anchor = section.heading_start if section.heading_start is not None else section.start
            newline = self.text.find("\n", anchor)
            if newline == -1:
                continue
            body_start = newline + 1
            if body_start < section.end:
                hidden.append((body_start, section.end))

        if not hidden:
            return self.lines()
        return [
            (start, end)
            for start, end in self.lines()
            if not any(lo <= start < hi for lo, hi in hidden)
        ]

    def restore_offset(self, previous: RenderTree | None, offset: int) -> int:
        """Where a cursor at ``offset`` in ``previous`` belongs in this tree.

        The cursor follows the navigation payload it was on when that
        payload still exists; otherwise it lands on the navigation range
        nearest its old offset.
        """
        if previous is not None:
            old = previous.navigation.range_at(offset)
            if old is not None:
                new = self.navigation.find(old.value)
                if new is not None:
                    return min(new.start + (offset - old.start), new.end - 1)
        nearest = self.navigation.nearest(offset)
        if nearest is not None:
            return nearest.start
        return max(0, min(offset, len(self.text) - 1))
