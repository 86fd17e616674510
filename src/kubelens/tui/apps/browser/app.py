"""Main Textual application for browsing cluster resources."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import Footer, Header

from kubelens.integrations.kubernetes.kinds import OVERVIEW_KINDS, ResourceKind
from kubelens.tui.apps.browser.screens import DocumentScreen

if TYPE_CHECKING:
    from textual.notifications import SeverityLevel

    from kubelens.state.session import BrowserSession

_SEVERITIES: dict[str, SeverityLevel] = {
    "information": "information",
    "warning": "warning",
    "error": "error",
}


class BrowserApp(App[None]):
    """TUI application for browsing cluster resources.

    Args:
        session: Browser session shared by every view.
        kinds: Kinds shown by the first view.
    """

    TITLE = "kubelens"

    CSS = """
    #view-title, #detail-header {
        text-style: bold;
        padding: 0 1;
    }
    """

    BINDINGS = [
        Binding("question_mark", "help", "Help", show=True),
    ]

    def __init__(
        self,
        session: BrowserSession,
        kinds: Sequence[ResourceKind] = OVERVIEW_KINDS,
    ) -> None:
        super().__init__()
        self._session = session
        self._kinds = tuple(kinds)

    @property
    def session(self) -> BrowserSession:
        return self._session

    def compose(self) -> ComposeResult:
        """Compose the app layout."""
        yield Header()
        yield Footer()

    def on_mount(self) -> None:
        """Route session notifications here and push the first view."""
        self._session.add_notifier(self._on_notification)
        self.push_screen(DocumentScreen(self._session, self._kinds))

    async def on_unmount(self) -> None:
        """Stop polling and let issued deletions finish."""
        self._session.remove_notifier(self._on_notification)
        await self._session.close()

    def _on_notification(self, message: str, severity: str) -> None:
        self.notify(message, severity=_SEVERITIES.get(severity, "information"))

    def action_help(self) -> None:
        """Show keyboard shortcut help."""
        self.notify(
            "j/k: move | Tab: fold | Enter: detail | m/u/U: mark/unmark/unmark all | "
            "x: delete marked | y: copy | g: refresh | n: namespace | c: context | "
            "1-6: kind views | q: close"
        )
