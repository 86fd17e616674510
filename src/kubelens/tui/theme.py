"""Theme constants and style utilities for TUI and shell output.

Render trees carry style *names*; this module decides what they look
like. ``tree_text`` turns a ``RenderTree`` into a rich ``Text`` that
both the TUI document view and the CLI shell print.

Usage:
    from kubelens.tui.theme import Styles, tree_text

    console.print(tree_text(tree))
    console.print(Styles.error("Delete failed"))
"""

from __future__ import annotations

import bisect
from collections.abc import Sequence

from rich.style import Style
from rich.text import Text

from kubelens.render.tree import RenderTree


class Styles:
    """Style helper functions for Rich markup."""

    @staticmethod
    def success(text: str) -> str:
        """Style text as success (green)."""
        return f"[green]{text}[/green]"

    @staticmethod
    def warning(text: str) -> str:
        """Style text as warning (yellow)."""
        return f"[yellow]{text}[/yellow]"

    @staticmethod
    def error(text: str) -> str:
        """Style text as error (red)."""
        return f"[red]{text}[/red]"

    @staticmethod
    def muted(text: str) -> str:
        """Style text as muted (dim)."""
        return f"[dim]{text}[/dim]"


# Render style name -> rich style
STYLE_MAP: dict[str, Style] = {
    "heading": Style(bold=True, color="cyan"),
    "key": Style(bold=True),
    "dim": Style(dim=True),
    "success": Style(color="green"),
    "warning": Style(color="yellow"),
    "error": Style(color="red"),
    "delete-mark": Style(color="red", bold=True),
    "pending-deletion": Style(color="red", italic=True),
    "selected-context": Style(color="magenta", bold=True),
}

CURSOR_STYLE = Style(reverse=True)


def resolve_style(names: Sequence[str]) -> Style:
    """Combine the rich styles for ``names``; unknown names are ignored."""
    styles = [STYLE_MAP[name] for name in names if name in STYLE_MAP]
    return Style.combine(styles) if styles else Style.null()


def tree_text(
    tree: RenderTree,
    lines: Sequence[tuple[int, int]] | None = None,
    cursor_line: int | None = None,
) -> Text:
    """Paint ``tree`` as rich text.

    Args:
        tree: Rendered document.
        lines: ``(start, end)`` offsets of the lines to show, as returned
            by ``RenderTree.visible_lines``. All lines when None.
        cursor_line: Index into ``lines`` to highlight.
    """
    all_lines = tree.lines()
    shown = list(lines) if lines is not None else all_lines

    full = Text(tree.text, no_wrap=True)
    for span in tree.styles:
        full.stylize(resolve_style(span.style), span.start, span.end)

    # Pieces alternate between line bodies and the gaps (line breaks) between them
    offsets = [offset for start, end in all_lines for offset in (start, end)]
    pieces = full.divide(offsets)
    starts = [start for start, _ in all_lines]

    painted: list[Text] = []
    for i, (start, _end) in enumerate(shown):
        index = bisect.bisect_left(starts, start)
        piece = pieces[2 * index + 1].copy()
        if i == cursor_line:
            piece.stylize(CURSOR_STYLE)
            if not piece.plain:
                piece = Text(" ", style=CURSOR_STYLE)
        painted.append(piece)

    result = Text("\n", no_wrap=True).join(painted)
    result.no_wrap = True
    return result
