"""Reusable TUI components.

Usage:
    from kubelens.tui.components import ConfirmDeletion, SelectorPopup

    app.push_screen(ConfirmDeletion(session.plan_deletion()), callback=on_confirm)
"""

from kubelens.tui.components.modal import ConfirmDeletion
from kubelens.tui.components.picker import SelectorPopup

__all__ = [
    "ConfirmDeletion",
    "SelectorPopup",
]
