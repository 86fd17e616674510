"""Executing deletion marks.

Each marked name gets its own ``kubectl delete`` task. Those tasks are
owned by the executor rather than by a view, so closing the view that
started them does not cancel a deletion half way.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable

import structlog

from kubelens.integrations.kubernetes.exceptions import CommandCancelled, MutationFailed
from kubelens.integrations.kubernetes.kinds import ResourceKind
from kubelens.integrations.kubernetes.kubectl_client import KubectlClient
from kubelens.state.snapshot import ApplicationState

logger = structlog.get_logger()

Notifier = Callable[[str, str], None]

DeletionPlan = dict[ResourceKind, list[str]]


class DeletionExecutor:
    """Turns marks into ``kubectl delete`` calls.

    Args:
        client: kubectl client used for deletes.
        state: Application state holding the marks.
        notify: Called with ``(message, severity)`` for transient messages.
        on_change: Called after each deletion settles.
    """

    def __init__(
        self,
        client: KubectlClient,
        state: ApplicationState,
        notify: Notifier | None = None,
        on_change: Callable[[], None] | None = None,
    ) -> None:
        self._client = client
        self._state = state
        self._notify = notify
        self._on_change = on_change
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def outstanding(self) -> int:
        """Deletions issued but not yet settled."""
        return len(self._tasks)

    def plan(self) -> DeletionPlan:
        """Marked names per kind, sorted."""
        view = self._state.marks.view()
        return {kind: sorted(names) for kind, names in view.marked.items() if names}

    @staticmethod
    def confirmation_message(plan: DeletionPlan) -> str:
        """Question shown before executing, e.g. ``Delete 2 pods?``."""
        parts = [
            f"{len(names)} {kind.plural_for(len(names))}"
            for kind, names in plan.items()
            if names
        ]
        if not parts:
            return "Nothing is marked for deletion."
        return f"Delete {', '.join(parts)}?"

    def execute(
        self, kinds: Iterable[ResourceKind] | None = None
    ) -> list[tuple[ResourceKind, str]]:
        """Move marked names to pending and issue one delete per name.

        Args:
            kinds: Kinds to execute; every kind with marks when None.

        Returns:
            The ``(kind, name)`` pairs a delete was issued for.
        """
        selected = list(kinds) if kinds is not None else self._state.marks.marked_kinds()
        namespace = self._state.namespace
        loop = asyncio.get_running_loop()
        issued: list[tuple[ResourceKind, str]] = []
        for kind in selected:
            for name in self._state.marks.begin_deletion(kind):
                task = loop.create_task(
                    self._delete(kind, name, namespace), name=f"delete-{kind.value}-{name}"
                )
                self._tasks.add(task)
                task.add_done_callback(self._tasks.discard)
                issued.append((kind, name))

        if issued:
            logger.info(
                "deletions_issued",
                count=len(issued),
                resources=[f"{k.singular}/{n}" for k, n in issued],
            )
            self._changed()
        return issued

    async def _delete(self, kind: ResourceKind, name: str, namespace: str | None) -> None:
        try:
            await self._client.delete(kind, name, namespace)
        except MutationFailed as e:
            logger.warning("delete_failed", kind=kind.value, name=name, error=e.message)
            self._state.marks.rollback(kind, name)
            self._state.record_error(e.message, e.command)
            self._send(f"Failed to delete {kind.singular} {name}: {e.message}", "error")
        except CommandCancelled:
            logger.debug("delete_cancelled", kind=kind.value, name=name)
            self._state.marks.rollback(kind, name)
        else:
            self._send(f"Deleted {kind.singular} {name}", "information")
        self._changed()

    async def wait(self) -> None:
        """Wait for every outstanding deletion to settle."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    def _send(self, message: str, severity: str) -> None:
        if self._notify is not None:
            self._notify(message, severity)

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change()
