"""Popup for choosing a namespace or context.

Typing narrows the list; up/down move the highlight and enter picks it.
"""

from __future__ import annotations

from collections.abc import Sequence

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.screen import ModalScreen
from textual.widgets import Input, Label, OptionList


def filter_options(options: Sequence[str], query: str) -> list[str]:
    """Options containing ``query``, ignoring case, in their original order."""
    needle = query.strip().lower()
    return [option for option in options if needle in option.lower()]


class SelectorPopup(ModalScreen[str | None]):
    """Filterable list of names.

    Dismisses with the chosen name, or None when closed with Escape.

    Args:
        title: Shown above the filter.
        options: Names to choose from.
        current: Name highlighted while it is visible.
    """

    DEFAULT_CSS = """
    SelectorPopup {
        align: center middle;
    }

    SelectorPopup > Vertical {
        width: 50;
        height: auto;
        max-height: 70%;
        border: thick $primary;
        background: $surface;
        padding: 1;
    }

    SelectorPopup #picker-title {
        text-style: bold;
    }

    SelectorPopup #picker-options {
        height: auto;
        max-height: 20;
    }
    """

    BINDINGS = [
        Binding("escape", "close", "Close", show=False),
        Binding("down", "move(1)", "Down", show=False),
        Binding("up", "move(-1)", "Up", show=False),
    ]

    def __init__(self, title: str, options: Sequence[str], current: str | None = None) -> None:
        super().__init__()
        self._title = title
        self._options = list(options)
        self._current = current
        self._visible = list(options)

    @property
    def visible(self) -> list[str]:
        """Options left after filtering."""
        return list(self._visible)

    @property
    def highlighted(self) -> str | None:
        index = self.query_one("#picker-options", OptionList).highlighted
        if index is None or index >= len(self._visible):
            return None
        return self._visible[index]

    def compose(self) -> ComposeResult:
        with Vertical():
            yield Label(self._title, id="picker-title")
            yield Input(placeholder="Filter", id="picker-filter")
            yield OptionList(*self._options, id="picker-options")

    def on_mount(self) -> None:
        self._highlight(self._current)
        self.query_one("#picker-filter", Input).focus()

    def _highlight(self, preferred: str | None) -> None:
        option_list = self.query_one("#picker-options", OptionList)
        if not self._visible:
            option_list.highlighted = None
        elif preferred in self._visible:
            option_list.highlighted = self._visible.index(preferred)
        else:
            option_list.highlighted = 0

    def on_input_changed(self, event: Input.Changed) -> None:
        """Narrow the list to names containing the filter text."""
        previous = self.highlighted
        self._visible = filter_options(self._options, event.value)
        option_list = self.query_one("#picker-options", OptionList)
        option_list.clear_options()
        option_list.add_options(self._visible)
        self._highlight(previous or self._current)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        choice = self.highlighted
        if choice is not None:
            self.dismiss(choice)

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        self.dismiss(self._visible[event.option_index])

    def action_move(self, delta: int) -> None:
        option_list = self.query_one("#picker-options", OptionList)
        if not self._visible:
            return
        index = option_list.highlighted or 0
        option_list.highlighted = max(0, min(index + delta, len(self._visible) - 1))

    def action_close(self) -> None:
        self.dismiss(None)
