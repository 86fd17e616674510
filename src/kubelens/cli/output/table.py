"""Table output for CLI commands.

Columns fold long values onto extra lines instead of truncating them;
pod names and image references are routinely wider than a column.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, Literal

from rich.table import Table as RichTable

if TYPE_CHECKING:
    from rich.console import ConsoleRenderable, RichCast

OverflowMethod = Literal["fold", "crop", "ellipsis", "ignore"]

# (label, style) pairs, the shape of a kind's column definitions
ColumnDefs = Sequence[tuple[str, str | None]]


class Table(RichTable):
    """Rich table whose columns fold by default."""

    @classmethod
    def with_columns(cls, title: str, columns: ColumnDefs, **kwargs: Any) -> Table:
        """Table titled ``title`` with ``columns`` already added."""
        table = cls(title=title, **kwargs)
        for label, style in columns:
            table.add_column(label, style=style)
        return table

    def add_column(
        self,
        header: ConsoleRenderable | RichCast | str = "",
        footer: ConsoleRenderable | RichCast | str = "",
        *,
        overflow: OverflowMethod = "fold",
        **kwargs: Any,
    ) -> None:
        super().add_column(header, footer, overflow=overflow, **kwargs)
