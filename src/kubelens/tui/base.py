"""Base classes for kubelens screens and widgets.

Both route transient messages through ``App.notify``; errors stay on
screen longer than information so a failed kubectl call is not missed.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, TypeVar

from textual.screen import Screen
from textual.widget import Widget

if TYPE_CHECKING:
    from textual.app import App
    from textual.notifications import SeverityLevel

T = TypeVar("T")

NOTIFY_TIMEOUTS: dict[str, float] = {
    "information": 3.0,
    "warning": 5.0,
    "error": 10.0,
}


def _notify(app: App[object], message: str, severity: SeverityLevel) -> None:
    app.notify(message, severity=severity, timeout=NOTIFY_TIMEOUTS.get(severity, 3.0))


class BaseWidget(Widget):
    """Widget with severity-aware notifications."""

    def notify_user(self, message: str, severity: SeverityLevel = "information") -> None:
        _notify(self.app, message, severity)


class BaseScreen(Screen[T]):
    """Screen in the browser's view stack.

    The app's default screen sits at the bottom of the stack, so the
    first view pushed is the last one a user can close.
    """

    def notify_user(self, message: str, severity: SeverityLevel = "information") -> None:
        """Show a transient message.

        Args:
            message: Notification text.
            severity: One of "information", "warning", "error".
        """
        _notify(self.app, message, severity)

    def warn(self, message: str) -> None:
        self.notify_user(message, severity="warning")

    def go_back(self) -> None:
        """Close this view, quitting when no other view remains."""
        if len(self.app.screen_stack) > 2:
            self.app.pop_screen()
        else:
            self.app.exit()
