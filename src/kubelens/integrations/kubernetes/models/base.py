"""Base models for resources fetched through kubectl."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from kubelens.integrations.kubernetes.kinds import ResourceKind


class ResourceRef(BaseModel):
    """Address of a resource: its kind and name.

    Used as the navigation payload of rendered ranges and as the key for
    lookups, so it is frozen and hashable.
    """

    model_config = ConfigDict(frozen=True)

    kind: ResourceKind
    name: str

    def __str__(self) -> str:
        return f"{self.kind.singular}/{self.name}"


class Resource(BaseModel):
    """One fetched entity.

    ``payload`` is the document exactly as kubectl returned it. Display
    fields are derived from it at render time (see ``models.views``) and
    never stored here.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: ResourceKind
    name: str = Field(description="Resource name")
    namespace: str | None = Field(default=None, description="Resource namespace")
    payload: dict[str, Any] = Field(default_factory=dict, description="Raw kubectl document")

    @property
    def ref(self) -> ResourceRef:
        """Navigation address of this resource."""
        return ResourceRef(kind=self.kind, name=self.name)

    @classmethod
    def from_payload(cls, kind: ResourceKind, doc: dict[str, Any]) -> Resource:
        """Create from one item of a kubectl JSON list."""
        if kind is ResourceKind.CONTEXTS:
            return cls(kind=kind, name=str(doc.get("name", "")), payload=doc)
        return cls(
            kind=kind,
            name=str(_get(doc, "metadata", "name", default="")),
            namespace=_get(doc, "metadata", "namespace"),
            payload=doc,
        )


def _get(doc: Any, *keys: str, default: Any = None) -> Any:
    """Safely traverse nested keys of a kubectl JSON document."""
    current = doc
    for key in keys:
        if not isinstance(current, dict):
            return default
        current = current.get(key)
        if current is None:
            return default
    return current


def _parse_timestamp(value: str | None) -> datetime | None:
    """Parse an RFC 3339 timestamp as emitted by the API server."""
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (ValueError, TypeError):
        return None


def format_age(timestamp: str | None, now: datetime) -> str:
    """Human-readable age of ``timestamp`` relative to ``now``.

    ``now`` is passed in rather than read from the clock so that rendering
    the same snapshot twice gives the same text.
    """
    created = _parse_timestamp(timestamp)
    if created is None:
        return "Unknown"
    if created.tzinfo is None or now.tzinfo is None:
        created = created.replace(tzinfo=None)
        now = now.replace(tzinfo=None)
    delta = now - created
    if delta.total_seconds() < 0:
        return "0s"
    days = delta.days
    hours, remainder = divmod(delta.seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    if days > 0:
        return f"{days}d"
    if hours > 0:
        return f"{hours}h"
    if minutes > 0:
        return f"{minutes}m"
    return f"{seconds}s"
