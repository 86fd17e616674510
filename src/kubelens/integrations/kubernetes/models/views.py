"""Display views derived from kubectl payloads.

Views are built from a ``Resource`` each time a document is laid out and
thrown away afterwards, so they can never go stale relative to the
payload they came from.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from kubelens.integrations.kubernetes.models.base import Resource, _get


class ResourceView(BaseModel):
    """Base class for all display views."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    name: str = Field(description="Resource name")
    namespace: str | None = Field(default=None, description="Resource namespace")
    creation_timestamp: str | None = Field(default=None, description="Creation time")
    labels: dict[str, str] = Field(default_factory=dict, description="Resource labels")

    @staticmethod
    def base_fields(resource: Resource) -> dict[str, Any]:
        doc = resource.payload
        return {
            "name": resource.name,
            "namespace": resource.namespace,
            "creation_timestamp": _get(doc, "metadata", "creationTimestamp"),
            "labels": dict(_get(doc, "metadata", "labels", default={})),
        }


class ContainerView(BaseModel):
    """Container status within a pod."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    name: str
    image: str | None = None
    ready: bool = False
    restart_count: int = 0
    state: str = "unknown"

    @classmethod
    def from_status(cls, status: dict[str, Any]) -> ContainerView:
        """Create from one entry of ``status.containerStatuses``."""
        state = "unknown"
        if obj_state := status.get("state"):
            if "running" in obj_state:
                state = "running"
            elif "waiting" in obj_state:
                state = str(_get(obj_state, "waiting", "reason", default="Waiting"))
            elif "terminated" in obj_state:
                state = str(_get(obj_state, "terminated", "reason", default="Terminated"))
        return cls(
            name=status.get("name", ""),
            image=status.get("image"),
            ready=bool(status.get("ready", False)),
            restart_count=int(status.get("restartCount", 0) or 0),
            state=state,
        )


class PodView(ResourceView):
    """Pod display view."""

    phase: str = Field(default="Unknown", description="Pod phase")
    status: str = Field(default="Unknown", description="Effective status shown to the user")
    node_name: str | None = None
    pod_ip: str | None = None
    host_ip: str | None = None
    restarts: int = 0
    ready_count: int = 0
    total_count: int = 0
    images: list[str] = Field(default_factory=list)
    containers: list[ContainerView] = Field(default_factory=list)

    @property
    def ready(self) -> str:
        return f"{self.ready_count}/{self.total_count}"

    @classmethod
    def from_resource(cls, resource: Resource) -> PodView:
        """Derive the pod view from its payload."""
        doc = resource.payload
        statuses = _get(doc, "status", "containerStatuses", default=[])
        containers = [ContainerView.from_status(cs) for cs in statuses]
        spec_containers = _get(doc, "spec", "containers", default=[])
        phase = _get(doc, "status", "phase", default="Unknown")
        return cls(
            **cls.base_fields(resource),
            phase=phase,
            status=_pod_status(doc, phase, containers),
            node_name=_get(doc, "spec", "nodeName"),
            pod_ip=_get(doc, "status", "podIP"),
            host_ip=_get(doc, "status", "hostIP"),
            restarts=sum(c.restart_count for c in containers),
            ready_count=sum(1 for c in containers if c.ready),
            total_count=len(spec_containers) or len(containers),
            images=[c.get("image", "") for c in spec_containers if c.get("image")],
            containers=containers,
        )


def _pod_status(doc: dict[str, Any], phase: str, containers: list[ContainerView]) -> str:
    if _get(doc, "metadata", "deletionTimestamp"):
        return "Terminating"
    for container in containers:
        if container.state not in ("running", "unknown", "Completed"):
            return container.state
    return phase


class ConfigMapView(ResourceView):
    """ConfigMap display view."""

    data_keys: list[str] = Field(default_factory=list)

    @classmethod
    def from_resource(cls, resource: Resource) -> ConfigMapView:
        doc = resource.payload
        keys = [*_get(doc, "data", default={}), *_get(doc, "binaryData", default={})]
        return cls(**cls.base_fields(resource), data_keys=sorted(keys))


class SecretView(ResourceView):
    """Secret display view.

    SECURITY: Never includes secret values. Only key names are exposed.
    """

    type: str = "Opaque"
    data_keys: list[str] = Field(default_factory=list)

    @classmethod
    def from_resource(cls, resource: Resource) -> SecretView:
        doc = resource.payload
        return cls(
            **cls.base_fields(resource),
            type=doc.get("type") or "Opaque",
            data_keys=sorted(_get(doc, "data", default={})),
        )


class ServicePortView(BaseModel):
    """Service port display view."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    port: int
    protocol: str = "TCP"
    target_port: str | None = None
    node_port: int | None = None

    def __str__(self) -> str:
        text = f"{self.port}"
        if self.node_port:
            text += f":{self.node_port}"
        return f"{text}/{self.protocol}"


class ServiceView(ResourceView):
    """Service display view."""

    type: str = "ClusterIP"
    cluster_ip: str | None = None
    external_ips: list[str] = Field(default_factory=list)
    ports: list[ServicePortView] = Field(default_factory=list)
    selector: dict[str, str] = Field(default_factory=dict)

    @classmethod
    def from_resource(cls, resource: Resource) -> ServiceView:
        doc = resource.payload
        ports = [
            ServicePortView(
                port=int(p.get("port", 0)),
                protocol=p.get("protocol", "TCP"),
                target_port=str(p["targetPort"]) if "targetPort" in p else None,
                node_port=p.get("nodePort"),
            )
            for p in _get(doc, "spec", "ports", default=[])
        ]
        external = list(_get(doc, "spec", "externalIPs", default=[]))
        for ingress in _get(doc, "status", "loadBalancer", "ingress", default=[]):
            if address := ingress.get("ip") or ingress.get("hostname"):
                external.append(address)
        return cls(
            **cls.base_fields(resource),
            type=_get(doc, "spec", "type", default="ClusterIP"),
            cluster_ip=_get(doc, "spec", "clusterIP"),
            external_ips=external,
            ports=ports,
            selector=dict(_get(doc, "spec", "selector", default={})),
        )


class NamespaceView(ResourceView):
    """Namespace display view."""

    status: str = "Unknown"

    @classmethod
    def from_resource(cls, resource: Resource) -> NamespaceView:
        return cls(
            **cls.base_fields(resource),
            status=_get(resource.payload, "status", "phase", default="Unknown"),
        )


class ContextView(BaseModel):
    """Entry of the kubeconfig ``contexts`` list."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    name: str
    cluster: str | None = None
    user: str | None = None
    namespace: str | None = None
    current: bool = False

    @classmethod
    def from_resource(cls, resource: Resource) -> ContextView:
        doc = resource.payload
        return cls(
            name=resource.name,
            cluster=_get(doc, "context", "cluster"),
            user=_get(doc, "context", "user"),
            namespace=_get(doc, "context", "namespace"),
            current=bool(doc.get("current", False)),
        )
