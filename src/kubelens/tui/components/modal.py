"""Deletion confirmation dialog."""

from __future__ import annotations

from typing import TYPE_CHECKING

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Label, Static

from kubelens.state.deletion import DeletionExecutor

if TYPE_CHECKING:
    from kubelens.state.deletion import DeletionPlan

# Names listed per kind before the rest are summarised
MAX_LISTED_NAMES = 8


def plan_lines(plan: DeletionPlan, limit: int = MAX_LISTED_NAMES) -> list[str]:
    """One line per marked kind, e.g. ``pods: web-1, web-2``."""
    lines = []
    for kind, names in plan.items():
        shown = ", ".join(names[:limit])
        if len(names) > limit:
            shown += f" (+{len(names) - limit} more)"
        lines.append(f"{kind.value}: {shown}")
    return lines


class ConfirmDeletion(ModalScreen[bool]):
    """Asks before deleting marked resources.

    Dismisses with True when the user confirms, False otherwise.

    Args:
        plan: Marked names per kind, as returned by ``plan_deletion``.
    """

    DEFAULT_CSS = """
    ConfirmDeletion {
        align: center middle;
    }

    ConfirmDeletion > Vertical {
        width: auto;
        max-width: 80%;
        min-width: 40;
        height: auto;
        background: $surface;
        border: thick $error;
        padding: 1 2;
    }

    ConfirmDeletion #confirm-question {
        text-style: bold;
        margin-bottom: 1;
    }

    ConfirmDeletion #confirm-buttons {
        height: auto;
        align: center middle;
        margin-top: 1;
    }

    ConfirmDeletion Button {
        margin: 0 1;
    }
    """

    BINDINGS = [
        Binding("y", "confirm", "Delete", show=False),
        Binding("n,escape", "cancel", "Cancel", show=False),
    ]

    def __init__(self, plan: DeletionPlan) -> None:
        super().__init__()
        self._plan = plan

    @property
    def question(self) -> str:
        return DeletionExecutor.confirmation_message(self._plan)

    def compose(self) -> ComposeResult:
        with Vertical():
            yield Label(self.question, id="confirm-question")
            yield Static("\n".join(plan_lines(self._plan)), id="confirm-names")
            with Horizontal(id="confirm-buttons"):
                yield Button("Delete", id="confirm-delete", variant="error")
                yield Button("Cancel", id="confirm-cancel")

    def on_mount(self) -> None:
        # Cancel has focus so a stray enter keeps everything
        self.query_one("#confirm-cancel", Button).focus()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.dismiss(event.button.id == "confirm-delete")

    def action_confirm(self) -> None:
        self.dismiss(True)

    def action_cancel(self) -> None:
        self.dismiss(False)
