"""Browser session: the one object front ends talk to.

A session owns the application state and every component that touches
it: the kubectl client, the poll coordinator, the deletion executor,
and the view registry. All of its methods run on the event loop.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable

import structlog

from kubelens.core.config import BrowserConfig
from kubelens.integrations.kubernetes.exceptions import FetchFailed
from kubelens.integrations.kubernetes.kinds import OVERVIEW_KINDS, ResourceKind
from kubelens.integrations.kubernetes.kubectl_client import KubectlClient
from kubelens.integrations.kubernetes.models import Resource
from kubelens.logging import bind_cluster
from kubelens.render.engine import RenderEngine
from kubelens.render.layout import LayoutOptions, document
from kubelens.render.tree import RenderTree
from kubelens.state.deletion import DeletionExecutor, DeletionPlan
from kubelens.state.marks import MarkView
from kubelens.state.poller import PollCoordinator
from kubelens.state.snapshot import ApplicationState, Clock, Snapshot, utc_now
from kubelens.state.views import SnapshotListener, ViewHandle, ViewRegistry

logger = structlog.get_logger()

Notifier = Callable[[str, str], None]


class BrowserSession:
    """Facade over state, polling, deletion, and views.

    Args:
        config: Browser settings. Defaults to ``BrowserConfig()``.
        client: kubectl client. Built from ``config`` when omitted.
        clock: Time source for snapshots and error records.
    """

    def __init__(
        self,
        config: BrowserConfig | None = None,
        client: KubectlClient | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self.config = config or BrowserConfig()
        self.client = client or KubectlClient(
            self.config.kubectl_path,
            flags=self.config.kubectl_flags,
            timeout=self.config.command_timeout,
        )
        self.state = ApplicationState(self.config, clock=clock)
        self.views = ViewRegistry(
            on_first_open=self._start_polling,
            on_last_close=self._stop_polling,
        )
        self.deletions = DeletionExecutor(
            self.client, self.state, notify=self._send, on_change=self._changed
        )
        self.engine = RenderEngine(indent_width=self.config.indent_width)
        self.coordinator: PollCoordinator | None = None
        self._notifiers: list[Notifier] = []

    # -----------------------------------------------------------------------
    # Views and polling
    # -----------------------------------------------------------------------

    def open_view(
        self, kinds: Iterable[ResourceKind], on_snapshot_changed: SnapshotListener
    ) -> ViewHandle:
        """Register a view; the first one starts polling right away."""
        handle = self.views.open(kinds, on_snapshot_changed)
        if self.coordinator is not None:
            # Fetch kinds this view added without waiting for the next tick
            self.coordinator.tick()
        return handle

    def close_view(self, handle: ViewHandle) -> None:
        """Unregister a view; the last one stops polling."""
        self.views.close(handle)

    def _start_polling(self) -> None:
        self.coordinator = PollCoordinator(
            self.client,
            self.state,
            self.views.active_kinds,
            poll_interval=self.config.poll_interval,
        )
        self.coordinator.add_listener(self._on_poll)
        self.coordinator.start()

    def _stop_polling(self) -> None:
        if self.coordinator is not None:
            self.coordinator.stop()
            self.coordinator = None

    def _on_poll(self, refreshing: bool) -> None:
        self.views.broadcast(self.snapshot(), refreshing)

    def _changed(self) -> None:
        if len(self.views):
            self.views.broadcast(self.snapshot())

    def refresh(self) -> None:
        """Fetch every active kind now."""
        if self.coordinator is not None:
            self.coordinator.refresh()
        else:
            self._changed()

    async def close(self) -> None:
        """Stop polling and wait for outstanding deletions."""
        self._stop_polling()
        await self.deletions.wait()

    # -----------------------------------------------------------------------
    # Notifications
    # -----------------------------------------------------------------------

    def add_notifier(self, notifier: Notifier) -> None:
        """Receive ``(message, severity)`` for transient messages."""
        self._notifiers.append(notifier)

    def remove_notifier(self, notifier: Notifier) -> None:
        if notifier in self._notifiers:
            self._notifiers.remove(notifier)

    def _send(self, message: str, severity: str) -> None:
        logger.debug("notification", message=message, severity=severity)
        for notifier in list(self._notifiers):
            notifier(message, severity)

    # -----------------------------------------------------------------------
    # State access
    # -----------------------------------------------------------------------

    def snapshot(self) -> Snapshot:
        return self.state.snapshot()

    def marks(self) -> MarkView:
        return self.state.marks.view()

    def lookup(self, kind: ResourceKind, name: str) -> Resource:
        """Find a fetched resource.

        Raises:
            UnknownResource: If the resource is not in the current snapshot.
        """
        return self.snapshot().find(kind, name)

    def render(self, kinds: Iterable[ResourceKind] = OVERVIEW_KINDS) -> RenderTree:
        """Lay out and render the current snapshot."""
        options = LayoutOptions.from_config(self.config, tuple(kinds))
        return self.engine.render(document(self.snapshot(), self.marks(), options))

    async def fetch_once(self, kind: ResourceKind, timeout: float | None = None) -> list[Resource]:
        """Fetch ``kind`` now and store the result.

        Args:
            kind: Kind to fetch.
            timeout: Seconds to wait; defaults to ``prompt_timeout``.

        Raises:
            FetchFailed: If kubectl fails or the wait times out.
        """
        limit = timeout if timeout is not None else self.config.prompt_timeout
        try:
            items = await asyncio.wait_for(self.client.fetch(kind, self.state.namespace), limit)
        except asyncio.TimeoutError as e:
            raise FetchFailed(
                kind.value,
                f"Timed out after {limit:g}s waiting for {kind.value}",
                command=self.client.command_line(kind.get_args),
            ) from e
        self.state.apply_fetch(kind, items)
        self._changed()
        return items

    # -----------------------------------------------------------------------
    # Marks and deletion
    # -----------------------------------------------------------------------

    def mark(self, kind: ResourceKind, name: str) -> bool:
        """Mark a fetched resource for deletion.

        Returns:
            False if the kind cannot be deleted or the name is already
            pending deletion.

        Raises:
            UnknownResource: If the resource is not in the current snapshot.
        """
        self.lookup(kind, name)
        if not kind.deletable:
            return False
        marked = self.state.marks.mark(kind, name)
        self._changed()
        return marked

    def unmark(self, kind: ResourceKind, name: str) -> bool:
        unmarked = self.state.marks.unmark(kind, name)
        self._changed()
        return unmarked

    def unmark_all(self) -> None:
        self.state.marks.unmark_all()
        self._changed()

    def plan_deletion(self) -> DeletionPlan:
        return self.deletions.plan()

    def execute_marks(
        self, kinds: Iterable[ResourceKind] | None = None
    ) -> list[tuple[ResourceKind, str]]:
        """Issue deletes for marked resources; see ``DeletionExecutor.execute``."""
        return self.deletions.execute(kinds)

    # -----------------------------------------------------------------------
    # Namespace and context
    # -----------------------------------------------------------------------

    def use_namespace(self, namespace: str | None) -> None:
        """Switch namespace: forget everything fetched and refetch."""
        logger.info("namespace_switched", namespace=namespace)
        self.state.use_namespace(namespace)
        self._restart()

    async def use_context(self, name: str) -> None:
        """Switch kubectl's current context, then refetch everything.

        Raises:
            MutationFailed: If kubectl rejects the context.
        """
        await self.client.use_context(name)
        logger.info("context_switched", context=name)
        self.state.use_context(name)
        self._restart()

    def _restart(self) -> None:
        bind_cluster(self.state.context, self.state.namespace)
        if self.coordinator is not None:
            self.coordinator.reset()
            self.coordinator.tick()
        self._changed()
