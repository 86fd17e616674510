"""Resource kind definitions for the kubectl boundary.

``ResourceKind`` is the single parameter the poller, mark store, and
layouts are generic over. Each member knows the kubectl arguments that
fetch it and how it is named in headings and prompts.
"""

from __future__ import annotations

from enum import Enum


class ResourceKind(Enum):
    """Kubernetes resource kinds browsed by kubelens."""

    PODS = "pods"
    CONFIGMAPS = "configmaps"
    SECRETS = "secrets"
    SERVICES = "services"
    NAMESPACES = "namespaces"
    CONTEXTS = "contexts"

    @property
    def title(self) -> str:
        """Heading used for the kind's section."""
        return _TITLES[self]

    @property
    def singular(self) -> str:
        """Singular noun, as accepted by ``kubectl delete``."""
        return _SINGULAR[self]

    @property
    def namespaced(self) -> bool:
        """Whether fetches and deletes take a namespace."""
        return self in NAMESPACED_KINDS

    @property
    def deletable(self) -> bool:
        """Whether resources of this kind can be marked for deletion."""
        return self in DELETABLE_KINDS

    @property
    def get_args(self) -> list[str]:
        """kubectl arguments that fetch the whole collection as JSON."""
        if self is ResourceKind.CONTEXTS:
            return ["config", "view", "-o", "json"]
        return ["get", self.value, "-o", "json"]

    def plural_for(self, count: int) -> str:
        """Noun for ``count`` resources, e.g. ``1 pod`` / ``2 pods``."""
        return self.singular if count == 1 else self.value

    @classmethod
    def parse(cls, text: str) -> ResourceKind:
        """Resolve a user-supplied kind name.

        Accepts plural, singular, and kubectl short names.

        Raises:
            ValueError: If the name matches no kind.
        """
        key = text.strip().lower()
        kind = _ALIASES.get(key)
        if kind is None:
            valid = ", ".join(k.value for k in cls)
            raise ValueError(f"Unknown resource kind '{text}' (expected one of: {valid})")
        return kind


_TITLES: dict[ResourceKind, str] = {
    ResourceKind.PODS: "Pods",
    ResourceKind.CONFIGMAPS: "Configmaps",
    ResourceKind.SECRETS: "Secrets",
    ResourceKind.SERVICES: "Services",
    ResourceKind.NAMESPACES: "Namespaces",
    ResourceKind.CONTEXTS: "Context",
}

_SINGULAR: dict[ResourceKind, str] = {
    ResourceKind.PODS: "pod",
    ResourceKind.CONFIGMAPS: "configmap",
    ResourceKind.SECRETS: "secret",
    ResourceKind.SERVICES: "service",
    ResourceKind.NAMESPACES: "namespace",
    ResourceKind.CONTEXTS: "context",
}

_SHORT_NAMES: dict[str, ResourceKind] = {
    "po": ResourceKind.PODS,
    "cm": ResourceKind.CONFIGMAPS,
    "svc": ResourceKind.SERVICES,
    "ns": ResourceKind.NAMESPACES,
    "ctx": ResourceKind.CONTEXTS,
}

_ALIASES: dict[str, ResourceKind] = {
    **{k.value: k for k in ResourceKind},
    **{s: k for k, s in _SINGULAR.items()},
    **_SHORT_NAMES,
}

NAMESPACED_KINDS = frozenset(
    {
        ResourceKind.PODS,
        ResourceKind.CONFIGMAPS,
        ResourceKind.SECRETS,
        ResourceKind.SERVICES,
    }
)

DELETABLE_KINDS = frozenset(
    {
        ResourceKind.PODS,
        ResourceKind.CONFIGMAPS,
        ResourceKind.SECRETS,
        ResourceKind.SERVICES,
        ResourceKind.NAMESPACES,
    }
)

# Sections of the overview document, in display order
OVERVIEW_KINDS: tuple[ResourceKind, ...] = (
    ResourceKind.CONTEXTS,
    ResourceKind.CONFIGMAPS,
    ResourceKind.PODS,
    ResourceKind.SECRETS,
    ResourceKind.SERVICES,
)
