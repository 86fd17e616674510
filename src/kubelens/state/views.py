"""Registry of open views.

A view is anything that displays snapshots: a TUI screen, the CLI
shell. The union of the kinds open views show decides what the poller
fetches.
"""

from __future__ import annotations

import itertools
from collections.abc import Callable, Iterable
from dataclasses import dataclass

import structlog

from kubelens.integrations.kubernetes.kinds import ResourceKind
from kubelens.state.snapshot import Snapshot

logger = structlog.get_logger()

SnapshotListener = Callable[[Snapshot, bool], None]

# The context section heads every document, so contexts are always polled
ALWAYS_ACTIVE: frozenset[ResourceKind] = frozenset({ResourceKind.CONTEXTS})


@dataclass(frozen=True)
class ViewHandle:
    """Token returned by ``ViewRegistry.open``."""

    id: int
    kinds: frozenset[ResourceKind]


class ViewRegistry:
    """Tracks open views and fans snapshot changes out to them.

    Args:
        on_first_open: Called when the first view opens.
        on_last_close: Called when the last view closes.
    """

    def __init__(
        self,
        on_first_open: Callable[[], None] | None = None,
        on_last_close: Callable[[], None] | None = None,
    ) -> None:
        self.on_first_open = on_first_open
        self.on_last_close = on_last_close
        self._views: dict[ViewHandle, SnapshotListener] = {}
        self._ids = itertools.count(1)

    def __len__(self) -> int:
        return len(self._views)

    def open(
        self, kinds: Iterable[ResourceKind], on_snapshot_changed: SnapshotListener
    ) -> ViewHandle:
        """Register a view showing ``kinds``."""
        handle = ViewHandle(id=next(self._ids), kinds=frozenset(kinds))
        first = not self._views
        self._views[handle] = on_snapshot_changed
        logger.debug("view_opened", view=handle.id, kinds=sorted(k.value for k in handle.kinds))
        if first and self.on_first_open is not None:
            self.on_first_open()
        return handle

    def close(self, handle: ViewHandle) -> None:
        """Unregister a view. Unknown handles are ignored."""
        if self._views.pop(handle, None) is None:
            return
        logger.debug("view_closed", view=handle.id)
        if not self._views and self.on_last_close is not None:
            self.on_last_close()

    def active_kinds(self) -> frozenset[ResourceKind]:
        """Kinds any open view shows, plus contexts."""
        if not self._views:
            return frozenset()
        kinds: set[ResourceKind] = set(ALWAYS_ACTIVE)
        for handle in self._views:
            kinds.update(handle.kinds)
        return frozenset(kinds)

    def broadcast(self, snapshot: Snapshot, refreshing: bool = False) -> None:
        """Hand ``snapshot`` to every open view."""
        for handle, listener in list(self._views.items()):
            try:
                listener(snapshot, refreshing)
            except Exception as e:
                logger.warning("view_listener_error", view=handle.id, error=str(e))
