"""Deletion marks.

Each name of a kind moves through
``Unmarked -> Marked -> PendingDeletion -> {Removed | Unmarked}``.
A name is never both marked and pending, and neither set may hold a
name that the latest fetch of its kind no longer contains.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

import structlog

from kubelens.integrations.kubernetes.kinds import ResourceKind

logger = structlog.get_logger()

_EMPTY: frozenset[str] = frozenset()


@dataclass(frozen=True)
class MarkView:
    """Read-only copy of the mark sets, taken for one render."""

    marked: Mapping[ResourceKind, frozenset[str]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    pending: Mapping[ResourceKind, frozenset[str]] = field(
        default_factory=lambda: MappingProxyType({})
    )

    def is_marked(self, kind: ResourceKind, name: str) -> bool:
        return name in self.marked.get(kind, _EMPTY)

    def is_pending(self, kind: ResourceKind, name: str) -> bool:
        return name in self.pending.get(kind, _EMPTY)

    def marked_names(self, kind: ResourceKind) -> frozenset[str]:
        return self.marked.get(kind, _EMPTY)

    def pending_names(self, kind: ResourceKind) -> frozenset[str]:
        return self.pending.get(kind, _EMPTY)


class MarkStore:
    """Per-kind marked and pending-deletion sets."""

    def __init__(self) -> None:
        self._marked: dict[ResourceKind, set[str]] = {}
        self._pending: dict[ResourceKind, set[str]] = {}

    def mark(self, kind: ResourceKind, name: str) -> bool:
        """Mark ``name`` for deletion.

        Returns:
            False if the name is already pending deletion, True otherwise.
        """
        if name in self._pending.get(kind, _EMPTY):
            return False
        self._marked.setdefault(kind, set()).add(name)
        logger.debug("resource_marked", kind=kind.value, name=name)
        return True

    def unmark(self, kind: ResourceKind, name: str) -> bool:
        """Remove a mark. Returns whether the name was marked."""
        names = self._marked.get(kind)
        if not names or name not in names:
            return False
        names.discard(name)
        logger.debug("resource_unmarked", kind=kind.value, name=name)
        return True

    def unmark_all(self) -> None:
        """Drop every mark. Pending deletions are unaffected."""
        self._marked.clear()

    def is_marked(self, kind: ResourceKind, name: str) -> bool:
        return name in self._marked.get(kind, _EMPTY)

    def is_pending(self, kind: ResourceKind, name: str) -> bool:
        return name in self._pending.get(kind, _EMPTY)

    def marked_kinds(self) -> list[ResourceKind]:
        """Kinds with at least one marked name, in declaration order."""
        return [kind for kind in ResourceKind if self._marked.get(kind)]

    def begin_deletion(self, kind: ResourceKind) -> list[str]:
        """Move every marked name of ``kind`` to pending.

        Returns:
            The names moved, sorted.
        """
        names = sorted(self._marked.pop(kind, set()))
        if names:
            self._pending.setdefault(kind, set()).update(names)
        return names

    def rollback(self, kind: ResourceKind, name: str) -> None:
        """Return a pending name to unmarked after its deletion failed."""
        pending = self._pending.get(kind)
        if pending is not None:
            pending.discard(name)

    def reconcile(self, kind: ResourceKind, names: Iterable[str]) -> None:
        """Forget marks and pending deletions for names no longer fetched."""
        present = set(names)
        for table in (self._marked, self._pending):
            current = table.get(kind)
            if current:
                dropped = current - present
                if dropped:
                    current -= dropped
                    logger.debug(
                        "marks_pruned", kind=kind.value, names=sorted(dropped)
                    )

    def clear(self) -> None:
        self._marked.clear()
        self._pending.clear()

    def view(self) -> MarkView:
        """Immutable copy of the current sets."""
        return MarkView(
            marked=MappingProxyType(
                {k: frozenset(v) for k, v in self._marked.items() if v}
            ),
            pending=MappingProxyType(
                {k: frozenset(v) for k, v in self._pending.items() if v}
            ),
        )
