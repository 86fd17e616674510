"""Application state and the immutable snapshots handed to renders.

``ApplicationState`` is only touched from the event loop. Renders never
see it directly: they receive a ``Snapshot`` assembled by
``ApplicationState.snapshot()``, which is also the only place an
expired error is cleared.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from types import MappingProxyType
from typing import Union

import structlog

from kubelens.core.config import BrowserConfig
from kubelens.integrations.kubernetes.exceptions import UnknownResource
from kubelens.integrations.kubernetes.kinds import ResourceKind
from kubelens.integrations.kubernetes.models import ContextView, Resource
from kubelens.state.marks import MarkStore

logger = structlog.get_logger()

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Collections
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Unfetched:
    """No fetch of the kind has completed yet."""


@dataclass(frozen=True)
class Fetched:
    """Result of the latest successful fetch, in server order."""

    items: tuple[Resource, ...] = ()

    @property
    def names(self) -> list[str]:
        return [item.name for item in self.items]


Collection = Union[Unfetched, Fetched]

UNFETCHED = Unfetched()


@dataclass(frozen=True)
class ErrorRecord:
    """The most recent failed fetch or mutation."""

    message: str
    command: str
    timestamp: datetime


# ---------------------------------------------------------------------------
# Snapshot
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Snapshot:
    """Immutable view of the application state at one instant."""

    collections: Mapping[ResourceKind, Collection]
    error: ErrorRecord | None
    namespace: str | None
    context: str | None
    captured_at: datetime

    def collection(self, kind: ResourceKind) -> Collection:
        return self.collections.get(kind, UNFETCHED)

    def names(self, kind: ResourceKind) -> list[str]:
        """Names of ``kind`` in fetch order; empty while unfetched."""
        collection = self.collection(kind)
        return collection.names if isinstance(collection, Fetched) else []

    def find(self, kind: ResourceKind, name: str) -> Resource:
        """Look up a fetched resource.

        Raises:
            UnknownResource: If ``kind`` is unfetched or lacks ``name``.
        """
        collection = self.collection(kind)
        if isinstance(collection, Fetched):
            for item in collection.items:
                if item.name == name:
                    return item
        raise UnknownResource(kind.value, name, namespace=self.namespace)

    @property
    def current_context(self) -> ContextView | None:
        """The kubeconfig context marked current, once contexts are fetched."""
        collection = self.collection(ResourceKind.CONTEXTS)
        if isinstance(collection, Fetched):
            for item in collection.items:
                view = ContextView.from_resource(item)
                if view.current:
                    return view
        return None

    @property
    def effective_namespace(self) -> str | None:
        """Namespace override, falling back to the current context's namespace."""
        if self.namespace:
            return self.namespace
        current = self.current_context
        return current.namespace if current else None


# ---------------------------------------------------------------------------
# State
# ---------------------------------------------------------------------------


class ApplicationState:
    """Mutable state owned by the control loop.

    Args:
        config: Browser settings (error display time, namespace default).
        clock: Returns the current time; injectable for tests.
    """

    def __init__(self, config: BrowserConfig | None = None, clock: Clock = utc_now) -> None:
        self.config = config or BrowserConfig()
        self.clock = clock
        self.marks = MarkStore()
        self.namespace: str | None = self.config.namespace
        self.context: str | None = None
        self.error: ErrorRecord | None = None
        self._collections: dict[ResourceKind, Collection] = {}

    @property
    def error_display(self) -> timedelta:
        return timedelta(seconds=self.config.error_display_seconds)

    def collection(self, kind: ResourceKind) -> Collection:
        return self._collections.get(kind, UNFETCHED)

    def apply_fetch(self, kind: ResourceKind, items: Iterable[Resource]) -> None:
        """Replace ``kind`` wholesale, then prune marks to the fetched names."""
        fetched = Fetched(tuple(items))
        self._collections[kind] = fetched
        self.marks.reconcile(kind, fetched.names)

    def record_error(self, message: str, command: str) -> ErrorRecord:
        """Remember a failure; it replaces any earlier one."""
        self.error = ErrorRecord(message=message, command=command, timestamp=self.clock())
        logger.warning("error_recorded", message=message, command=command)
        return self.error

    def snapshot(self) -> Snapshot:
        """Expire a stale error, then assemble a snapshot."""
        now = self.clock()
        if self.error is not None and now - self.error.timestamp > self.error_display:
            logger.debug("error_expired", message=self.error.message)
            self.error = None
        return Snapshot(
            collections=MappingProxyType(dict(self._collections)),
            error=self.error,
            namespace=self.namespace,
            context=self.context,
            captured_at=now,
        )

    def use_namespace(self, namespace: str | None) -> None:
        """Switch the namespace override and start over."""
        self.namespace = namespace or None
        self.clear()

    def use_context(self, name: str) -> None:
        """Record a context switch and start over."""
        self.context = name
        self.clear()

    def clear(self) -> None:
        """Reset every collection to unfetched, drop the error and all marks."""
        self._collections.clear()
        self.error = None
        self.marks.clear()
