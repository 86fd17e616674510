"""Screens of the resource browser.

``DocumentScreen`` is one view: it registers with the session for the
kinds it shows, renders the session's snapshot into a ``DocumentView``
on every change and on a redraw timer, and maps keys to session
operations. ``ResourceDetailScreen`` shows one resource as YAML.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

import structlog
from rich.syntax import Syntax
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container, VerticalScroll
from textual.widgets import Label, Static

from kubelens.integrations.kubernetes.exceptions import KubernetesError
from kubelens.integrations.kubernetes.kinds import OVERVIEW_KINDS, ResourceKind
from kubelens.render.errors import MalformedNode
from kubelens.render.layout import detail_document
from kubelens.tui.apps.browser.widgets import DocumentView
from kubelens.tui.base import BaseScreen
from kubelens.tui.components import ConfirmDeletion, SelectorPopup

if TYPE_CHECKING:
    from kubelens.integrations.kubernetes.models import Resource
    from kubelens.state.session import BrowserSession
    from kubelens.state.snapshot import Snapshot
    from kubelens.state.views import ViewHandle

logger = structlog.get_logger()

# Number keys opening single-kind views
KIND_KEYS: dict[str, ResourceKind] = {
    "1": ResourceKind.PODS,
    "2": ResourceKind.CONFIGMAPS,
    "3": ResourceKind.SECRETS,
    "4": ResourceKind.SERVICES,
    "5": ResourceKind.NAMESPACES,
    "6": ResourceKind.CONTEXTS,
}


def view_title(kinds: Sequence[ResourceKind]) -> str:
    """Heading of a view: ``Overview`` or the single kind's title."""
    if tuple(kinds) == OVERVIEW_KINDS:
        return "Overview"
    return ", ".join(kind.title for kind in kinds)


class DocumentScreen(BaseScreen[None]):
    """A live view of some kinds of the current snapshot."""

    BINDINGS = [
        Binding("j,down", "cursor_down", "Down", show=False),
        Binding("k,up", "cursor_up", "Up", show=False),
        Binding("tab", "toggle_section", "Fold", priority=True),
        Binding("enter", "detail", "Detail"),
        Binding("m", "mark", "Mark"),
        Binding("u", "unmark", "Unmark"),
        Binding("U", "unmark_all", "Unmark all", show=False),
        Binding("x", "execute", "Delete marked"),
        Binding("y", "copy", "Copy"),
        Binding("g", "refresh", "Refresh"),
        Binding("n", "pick_namespace", "Namespace"),
        Binding("c", "pick_context", "Context"),
        *(
            Binding(key, f"open_kind('{kind.value}')", kind.title, show=False)
            for key, kind in KIND_KEYS.items()
        ),
        Binding("q", "close", "Close"),
    ]

    def __init__(
        self,
        session: BrowserSession,
        kinds: Sequence[ResourceKind] = OVERVIEW_KINDS,
    ) -> None:
        """Initialize the view.

        Args:
            session: Browser session supplying snapshots.
            kinds: Kinds shown, in section order.
        """
        super().__init__()
        self._session = session
        self._kinds = tuple(kinds)
        self._handle: ViewHandle | None = None

    @property
    def kinds(self) -> tuple[ResourceKind, ...]:
        return self._kinds

    @property
    def document(self) -> DocumentView:
        return self.query_one("#document", DocumentView)

    def compose(self) -> ComposeResult:
        """Compose the screen layout."""
        yield Container(
            Label(view_title(self._kinds), id="view-title"),
            DocumentView(id="document"),
            id="document-container",
        )

    def on_mount(self) -> None:
        """Register the view, draw once, and start the redraw timer."""
        self._handle = self._session.open_view(self._kinds, self._on_snapshot_changed)
        self.redraw()
        self.set_interval(self._session.config.redraw_interval, self.redraw)
        self.document.focus()

    def on_unmount(self) -> None:
        """Unregister the view."""
        if self._handle is not None:
            self._session.close_view(self._handle)
            self._handle = None

    def _on_snapshot_changed(self, snapshot: Snapshot, refreshing: bool) -> None:
        self.redraw()
        if refreshing:
            self.notify_user("Refreshing...")

    def redraw(self) -> None:
        """Render the current snapshot; a failed render keeps the last one."""
        if not self.is_mounted:
            return
        try:
            tree = self._session.render(self._kinds)
        except MalformedNode as e:
            logger.error("render_failed", kinds=[k.value for k in self._kinds], error=str(e))
            return
        self.document.show(tree)
        state = self._session.state
        self.app.sub_title = " / ".join(p for p in (state.context, state.namespace) if p)

    # =========================================================================
    # Keyboard Actions
    # =========================================================================

    def action_cursor_down(self) -> None:
        self.document.move(1)

    def action_cursor_up(self) -> None:
        self.document.move(-1)

    def action_toggle_section(self) -> None:
        """Fold or unfold the section under the cursor."""
        self.document.toggle_section()

    def action_detail(self) -> None:
        """Open the detail screen for the resource under the cursor."""
        ref = self.document.current_ref()
        if ref is None:
            return
        try:
            resource = self._session.lookup(ref.kind, ref.name)
        except KubernetesError as e:
            self.warn(str(e))
            return
        self.app.push_screen(ResourceDetailScreen(resource))

    def action_mark(self) -> None:
        """Mark the resource under the cursor for deletion."""
        ref = self.document.current_ref()
        if ref is None:
            self.warn("Nothing to mark here")
            return
        if not ref.kind.deletable:
            self.warn(f"Cannot delete {ref.kind.value}")
            return
        try:
            marked = self._session.mark(ref.kind, ref.name)
        except KubernetesError as e:
            self.warn(str(e))
            return
        if not marked:
            self.warn(f"{ref} is already being deleted")

    def action_unmark(self) -> None:
        """Remove the mark from the resource under the cursor."""
        ref = self.document.current_ref()
        if ref is not None:
            self._session.unmark(ref.kind, ref.name)

    def action_unmark_all(self) -> None:
        self._session.unmark_all()
        self.notify_user("All marks removed")

    def action_execute(self) -> None:
        """Confirm, then delete every marked resource."""
        plan = self._session.plan_deletion()
        if not plan:
            self.warn("Nothing is marked for deletion")
            return
        self.app.push_screen(ConfirmDeletion(plan), callback=self._handle_delete_result)

    def _handle_delete_result(self, confirmed: bool | None) -> None:
        if confirmed:
            self._session.execute_marks()

    def action_copy(self) -> None:
        """Copy the value under the cursor to the clipboard."""
        text = self.document.current_copy()
        if text is None:
            self.warn("Nothing to copy here")
            return
        self.app.copy_to_clipboard(text)
        self.notify_user(f"Copied: {text}")

    def action_refresh(self) -> None:
        self._session.refresh()

    def action_pick_namespace(self) -> None:
        """Choose a namespace from the cluster's namespaces."""
        self.run_worker(self._pick(ResourceKind.NAMESPACES), exclusive=True, group="picker")

    def action_pick_context(self) -> None:
        """Choose a kubeconfig context."""
        self.run_worker(self._pick(ResourceKind.CONTEXTS), exclusive=True, group="picker")

    async def _pick(self, kind: ResourceKind) -> None:
        try:
            items = await self._session.fetch_once(kind)
        except KubernetesError as e:
            self.notify_user(str(e), severity="error")
            return
        names = [item.name for item in items]
        if kind is ResourceKind.NAMESPACES:
            current = self._session.snapshot().effective_namespace
            self.app.push_screen(
                SelectorPopup("Namespace", names, current), callback=self._handle_namespace
            )
        else:
            context = self._session.snapshot().current_context
            self.app.push_screen(
                SelectorPopup("Context", names, context.name if context else None),
                callback=self._handle_context,
            )

    def _handle_namespace(self, result: str | None) -> None:
        if result is not None:
            self._session.use_namespace(result)
            self.notify_user(f"Namespace: {result}")

    def _handle_context(self, result: str | None) -> None:
        if result is not None:
            self.run_worker(self._switch_context(result), exclusive=True, group="context")

    async def _switch_context(self, name: str) -> None:
        try:
            await self._session.use_context(name)
        except KubernetesError as e:
            self.notify_user(str(e), severity="error")
            return
        self.notify_user(f"Context: {name}")

    def action_open_kind(self, kind_value: str) -> None:
        """Open a view of a single kind."""
        kind = ResourceKind(kind_value)
        if self._kinds == (kind,):
            return
        self.app.push_screen(DocumentScreen(self._session, (kind,)))

    def action_close(self) -> None:
        """Close this view; closing the last one quits."""
        self.go_back()


class ResourceDetailScreen(BaseScreen[None]):
    """One resource as YAML, with secret values redacted."""

    BINDINGS = [
        ("escape", "back", "Back"),
        ("q", "back", "Back"),
        ("y", "copy_name", "Copy name"),
    ]

    def __init__(self, resource: Resource) -> None:
        """Initialize the detail screen.

        Args:
            resource: The resource to display.
        """
        super().__init__()
        self._resource = resource

    def compose(self) -> ComposeResult:
        """Compose the detail screen layout."""
        header = f"[bold]{self._resource.kind.singular}[/bold] {self._resource.name}"
        if self._resource.namespace:
            header += f"  [dim]{self._resource.namespace}[/dim]"
        yield Container(
            Label(header, id="detail-header"),
            VerticalScroll(
                Static(
                    Syntax(detail_document(self._resource), "yaml", word_wrap=False),
                    id="detail-yaml-content",
                ),
                id="detail-yaml-scroll",
            ),
            id="detail-container",
        )

    def action_back(self) -> None:
        """Return to the document."""
        self.app.pop_screen()

    def action_copy_name(self) -> None:
        self.app.copy_to_clipboard(self._resource.name)
        self.notify_user(f"Copied: {self._resource.name}")
