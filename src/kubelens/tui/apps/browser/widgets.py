"""Document view widget.

``DocumentView`` paints a ``RenderTree`` with a line cursor and folds
collapsed sections. Collapse state is keyed by section id, so it
survives redraws as long as the section is still rendered; sections
seen for the first time start out in their default state.
"""

from __future__ import annotations

import bisect
from typing import Any

from textual.app import ComposeResult
from textual.containers import VerticalScroll
from textual.widgets import Static

from kubelens.integrations.kubernetes.models import ResourceRef
from kubelens.render.tree import RenderTree, SectionSpan
from kubelens.tui.base import BaseWidget
from kubelens.tui.theme import tree_text


class DocumentView(BaseWidget, can_focus=True):
    """Scrollable, navigable view of a rendered document."""

    DEFAULT_CSS = """
    DocumentView {
        height: 1fr;
    }

    DocumentView #document-scroll {
        height: 1fr;
    }

    DocumentView #document-body {
        width: auto;
        min-width: 100%;
    }
    """

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._tree: RenderTree | None = None
        self._collapsed: set[str] = set()
        self._seen: set[str] = set()
        self._visible: list[tuple[int, int]] = []
        self._cursor = 0

    def compose(self) -> ComposeResult:
        """Compose the widget layout."""
        with VerticalScroll(id="document-scroll"):
            yield Static("", id="document-body")

    # -----------------------------------------------------------------------
    # State
    # -----------------------------------------------------------------------

    @property
    def tree(self) -> RenderTree | None:
        return self._tree

    @property
    def collapsed(self) -> frozenset[str]:
        return frozenset(self._collapsed)

    @property
    def cursor_line(self) -> int:
        """Index of the cursor into the visible lines."""
        return self._cursor

    @property
    def cursor_offset(self) -> int:
        """Text offset of the start of the cursor line."""
        if not self._visible:
            return 0
        return self._visible[self._cursor][0]

    def visible_text(self) -> list[str]:
        """Plain text of every visible line."""
        if self._tree is None:
            return []
        return [self._tree.text[start:end] for start, end in self._visible]

    def current_ref(self) -> ResourceRef | None:
        """Resource under the cursor, if any."""
        if self._tree is None:
            return None
        payload = self._tree.nav_at(self.cursor_offset)
        return payload if isinstance(payload, ResourceRef) else None

    def current_copy(self) -> str | None:
        """Copy payload under the cursor, if any."""
        if self._tree is None:
            return None
        return self._tree.copy_at(self.cursor_offset)

    # -----------------------------------------------------------------------
    # Updates
    # -----------------------------------------------------------------------

    def show(self, tree: RenderTree) -> None:
        """Display ``tree``, keeping the cursor on the same resource."""
        previous = self._tree
        ids = {section.id for section in tree.sections}
        # Sections that vanished forget their state; new ones take their default
        self._collapsed = (self._collapsed & ids) | (tree.default_collapsed() - self._seen)
        self._seen = ids

        offset = tree.restore_offset(previous, self.cursor_offset) if previous else 0
        self._tree = tree
        self._visible = tree.visible_lines(self._collapsed)
        self._cursor = self._line_for_offset(offset)
        self._paint()

    def move(self, delta: int) -> None:
        """Move the cursor by ``delta`` visible lines."""
        if not self._visible:
            return
        self._cursor = max(0, min(self._cursor + delta, len(self._visible) - 1))
        self._paint()

    def toggle_section(self) -> SectionSpan | None:
        """Fold or unfold the innermost section under the cursor.

        Returns:
            The toggled section, or None when the cursor is outside any.
        """
        if self._tree is None or not self._visible:
            return None
        section = self._tree.section_at(self.cursor_offset)
        if section is None:
            return None
        if section.id in self._collapsed:
            self._collapsed.discard(section.id)
        else:
            self._collapsed.add(section.id)
        anchor = section.heading_start if section.heading_start is not None else section.start
        self._visible = self._tree.visible_lines(self._collapsed)
        self._cursor = self._line_for_offset(anchor)
        self._paint()
        return section

    def _line_for_offset(self, offset: int) -> int:
        """Visible line containing ``offset``, or the last one before it."""
        if not self._visible:
            return 0
        starts = [start for start, _ in self._visible]
        return max(0, bisect.bisect_right(starts, offset) - 1)

    def _paint(self) -> None:
        if self._tree is None or not self.is_mounted:
            return
        body = self.query_one("#document-body", Static)
        body.update(tree_text(self._tree, self._visible, self._cursor))
        scroll = self.query_one("#document-scroll", VerticalScroll)
        height = scroll.size.height
        if self._cursor < scroll.scroll_y:
            scroll.scroll_to(y=self._cursor, animate=False)
        elif height and self._cursor >= scroll.scroll_y + height:
            scroll.scroll_to(y=self._cursor - height + 1, animate=False)
