"""Document layouts: snapshot in, render AST out.

Every function here is pure. Display fields (status, ready counts,
ages, ...) are derived from the raw payloads each time a document is
built, and ages are measured against ``Snapshot.captured_at`` rather
than the wall clock so equal snapshots lay out equally.
"""

from __future__ import annotations

import copy
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, tzinfo
from typing import Any

import yaml

from kubelens.core.config import BrowserConfig
from kubelens.integrations.kubernetes.kinds import OVERVIEW_KINDS, ResourceKind
from kubelens.integrations.kubernetes.models import (
    ConfigMapView,
    NamespaceView,
    PodView,
    Resource,
    SecretView,
    ServiceView,
    format_age,
)
from kubelens.render.ast import (
    CopyTarget,
    Heading,
    Indent,
    KeyValue,
    Line,
    MarkForDeletion,
    NavTarget,
    Node,
    Padding,
    Section,
    Sequence,
    Styled,
    Text,
)
from kubelens.state.marks import MarkView
from kubelens.state.snapshot import ErrorRecord, Fetched, Snapshot

KEY_WIDTH = 12
FETCHING_TEXT = "Fetching..."
EMPTY_TEXT = "None."
PENDING_SUFFIX = " (deleting)"
REDACTED = "<redacted>"

ERROR_SECTION_ID = "error"

_POD_SUCCESS = frozenset({"Running", "Succeeded", "Completed"})
_POD_WARNING = frozenset({"Pending", "ContainerCreating", "PodInitializing", "Terminating"})


@dataclass(frozen=True)
class LayoutOptions:
    """What to show and how."""

    restart_warning_threshold: int = 5
    kinds: tuple[ResourceKind, ...] = OVERVIEW_KINDS
    timezone: tzinfo = UTC

    @classmethod
    def from_config(
        cls, config: BrowserConfig, kinds: tuple[ResourceKind, ...] = OVERVIEW_KINDS
    ) -> LayoutOptions:
        return cls(
            restart_warning_threshold=config.restart_warning_threshold,
            kinds=kinds,
            timezone=datetime.now().astimezone().tzinfo or UTC,
        )


def entry_section_id(kind: ResourceKind, name: str) -> str:
    """Section id of one resource entry, e.g. ``pods:web-1``."""
    return f"{kind.value}:{name}"


def pod_status_style(status: str) -> str | None:
    """Style for a pod's effective status."""
    if status in _POD_SUCCESS:
        return "success"
    if status in _POD_WARNING:
        return "warning"
    if status == "Unknown":
        return None
    return "error"


def _maybe_styled(style: str | None, node: Node) -> Node:
    return Styled(style, node) if style else node


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


def document(
    snapshot: Snapshot,
    marks: MarkView,
    options: LayoutOptions | None = None,
) -> Node:
    """Whole document for a view: error section, then one section per kind."""
    options = options or LayoutOptions()
    children: list[Node] = []
    if snapshot.error is not None:
        children.extend([error_section(snapshot.error, options.timezone), Padding()])
    for i, kind in enumerate(options.kinds):
        if i:
            children.append(Padding())
        if kind is ResourceKind.CONTEXTS:
            children.append(context_section(snapshot))
        else:
            children.append(kind_section(kind, snapshot, marks, options))
    return Sequence(tuple(children))


def error_section(error: ErrorRecord, timezone: tzinfo = UTC) -> Node:
    """Banner describing the most recent failure, timed in ``timezone``."""
    return Section(
        ERROR_SECTION_ID,
        False,
        (
            Heading(Line(Styled(("heading", "error"), Text("Error")))),
            Indent(
                Sequence(
                    (
                        Styled("error", KeyValue(KEY_WIDTH, "Message", error.message)),
                        KeyValue(KEY_WIDTH, "Command", error.command),
                        KeyValue(
                            KEY_WIDTH,
                            "Time",
                            error.timestamp.astimezone(timezone).strftime("%H:%M:%S"),
                        ),
                    )
                )
            ),
        ),
    )


def context_section(snapshot: Snapshot) -> Node:
    """Current context, its cluster and user, and the namespace in use."""
    kind = ResourceKind.CONTEXTS
    heading = Heading(Line(Styled("heading", Text(kind.title))))
    collection = snapshot.collection(kind)
    if not isinstance(collection, Fetched):
        placeholder = Indent(Line(Styled("dim", Text(FETCHING_TEXT))))
        return Section(kind.value, False, (heading, placeholder))

    current = snapshot.current_context
    if current is None:
        body: Node = Line(Styled("dim", Text(EMPTY_TEXT)))
    else:
        body = Sequence(
            (
                NavTarget(
                    snapshot.find(kind, current.name).ref,
                    Styled("selected-context", KeyValue(KEY_WIDTH, "Context", current.name)),
                ),
                KeyValue(KEY_WIDTH, "Cluster", current.cluster or ""),
                KeyValue(KEY_WIDTH, "User", current.user or ""),
                KeyValue(KEY_WIDTH, "Namespace", snapshot.effective_namespace or "default"),
            )
        )
    return Section(kind.value, False, (heading, Indent(body)))


def kind_section(
    kind: ResourceKind,
    snapshot: Snapshot,
    marks: MarkView,
    options: LayoutOptions,
) -> Node:
    """Section listing every fetched resource of ``kind``."""
    collection = snapshot.collection(kind)
    if not isinstance(collection, Fetched):
        return Section(
            kind.value,
            False,
            (
                Heading(Line(Styled("heading", Text(kind.title)))),
                Indent(Line(Styled("dim", Text(FETCHING_TEXT)))),
            ),
        )

    heading = Heading(Line(Styled("heading", Text(f"{kind.title} ({len(collection.items)})"))))
    if not collection.items:
        return Section(kind.value, False, (heading, Indent(Line(Styled("dim", Text(EMPTY_TEXT))))))

    entries = tuple(
        resource_entry(resource, snapshot, marks, options) for resource in collection.items
    )
    return Section(kind.value, False, (heading, Indent(Sequence(entries))))


def resource_entry(
    resource: Resource,
    snapshot: Snapshot,
    marks: MarkView,
    options: LayoutOptions,
) -> Node:
    """Collapsible entry: a summary line with the details folded beneath it."""
    kind = resource.kind
    summary, details = _ENTRY_BUILDERS[kind](resource, snapshot, options)

    pending = marks.is_pending(kind, resource.name)
    if pending:
        name: Node = Styled("pending-deletion", Text(resource.name + PENDING_SUFFIX))
    else:
        name = Text(resource.name)

    heading_line = Line(CopyTarget(resource.name, Sequence((name, *summary))))
    entry: Node = NavTarget(
        resource.ref,
        Section(
            entry_section_id(kind, resource.name),
            True,
            (Heading(heading_line), Indent(Sequence(tuple(details)))),
        ),
    )
    if marks.is_marked(kind, resource.name):
        entry = MarkForDeletion(entry)
    return entry


# ---------------------------------------------------------------------------
# Per-kind entries
# ---------------------------------------------------------------------------

_Entry = tuple[list[Node], list[Node]]


def _age(resource_timestamp: str | None, snapshot: Snapshot) -> str:
    return format_age(resource_timestamp, snapshot.captured_at)


def _pod_entry(resource: Resource, snapshot: Snapshot, options: LayoutOptions) -> _Entry:
    view = PodView.from_resource(resource)
    status_style = pod_status_style(view.status)
    restart_style = "warning" if view.restarts >= options.restart_warning_threshold else None
    age = _age(view.creation_timestamp, snapshot)

    summary: list[Node] = [
        Text("  "),
        _maybe_styled(status_style, Text(view.status)),
        Styled("dim", Text(f"  {view.ready}  {age}")),
    ]
    if restart_style:
        summary.append(Styled(restart_style, Text(f"  {view.restarts} restarts")))

    details: list[Node] = [
        _maybe_styled(status_style, KeyValue(KEY_WIDTH, "Status", view.status)),
        KeyValue(KEY_WIDTH, "Ready", view.ready),
        _maybe_styled(restart_style, KeyValue(KEY_WIDTH, "Restarts", str(view.restarts))),
        KeyValue(KEY_WIDTH, "Age", age),
        KeyValue(KEY_WIDTH, "Node", view.node_name or ""),
        KeyValue(KEY_WIDTH, "Pod IP", view.pod_ip or ""),
        KeyValue(KEY_WIDTH, "Host IP", view.host_ip or ""),
    ]
    details.extend(KeyValue(KEY_WIDTH, "Image", image) for image in view.images)
    return summary, details


def _configmap_entry(resource: Resource, snapshot: Snapshot, options: LayoutOptions) -> _Entry:
    view = ConfigMapView.from_resource(resource)
    count = len(view.data_keys)
    age = _age(view.creation_timestamp, snapshot)
    summary: list[Node] = [Styled("dim", Text(f"  {count} {'key' if count == 1 else 'keys'}"))]
    details: list[Node] = [
        KeyValue(KEY_WIDTH, "Data", str(count)),
        *(KeyValue(KEY_WIDTH, "Key", key) for key in view.data_keys),
        KeyValue(KEY_WIDTH, "Age", age),
    ]
    return summary, details


def _secret_entry(resource: Resource, snapshot: Snapshot, options: LayoutOptions) -> _Entry:
    view = SecretView.from_resource(resource)
    age = _age(view.creation_timestamp, snapshot)
    summary: list[Node] = [Styled("dim", Text(f"  {view.type}"))]
    details: list[Node] = [
        KeyValue(KEY_WIDTH, "Type", view.type),
        KeyValue(KEY_WIDTH, "Data", str(len(view.data_keys))),
        KeyValue(KEY_WIDTH, "Age", age),
    ]
    return summary, details


def _service_entry(resource: Resource, snapshot: Snapshot, options: LayoutOptions) -> _Entry:
    view = ServiceView.from_resource(resource)
    age = _age(view.creation_timestamp, snapshot)
    ports = ", ".join(str(p) for p in view.ports)
    selector = ", ".join(f"{k}={v}" for k, v in sorted(view.selector.items()))
    summary: list[Node] = [Styled("dim", Text(f"  {view.type}  {view.cluster_ip or ''}".rstrip()))]
    details: list[Node] = [
        KeyValue(KEY_WIDTH, "Type", view.type),
        KeyValue(KEY_WIDTH, "Cluster IP", view.cluster_ip or ""),
        KeyValue(KEY_WIDTH, "External IP", ", ".join(view.external_ips) or "<none>"),
        KeyValue(KEY_WIDTH, "Ports", ports or "<none>"),
        KeyValue(KEY_WIDTH, "Selector", selector or "<none>"),
        KeyValue(KEY_WIDTH, "Age", age),
    ]
    return summary, details


def _namespace_entry(resource: Resource, snapshot: Snapshot, options: LayoutOptions) -> _Entry:
    view = NamespaceView.from_resource(resource)
    age = _age(view.creation_timestamp, snapshot)
    style = "success" if view.status == "Active" else "warning"
    summary: list[Node] = [Text("  "), Styled(style, Text(view.status))]
    details: list[Node] = [
        Styled(style, KeyValue(KEY_WIDTH, "Status", view.status)),
        KeyValue(KEY_WIDTH, "Age", age),
    ]
    return summary, details


_ENTRY_BUILDERS: dict[ResourceKind, Callable[[Resource, Snapshot, LayoutOptions], _Entry]] = {
    ResourceKind.PODS: _pod_entry,
    ResourceKind.CONFIGMAPS: _configmap_entry,
    ResourceKind.SECRETS: _secret_entry,
    ResourceKind.SERVICES: _service_entry,
    ResourceKind.NAMESPACES: _namespace_entry,
}


# ---------------------------------------------------------------------------
# Detail
# ---------------------------------------------------------------------------

_LAST_APPLIED = "kubectl.kubernetes.io/last-applied-configuration"


def redacted_payload(resource: Resource) -> dict[str, Any]:
    """Payload safe to display.

    SECURITY: secret values (``data``, ``stringData`` and the
    last-applied annotation, which embeds them) are replaced.
    """
    doc = copy.deepcopy(resource.payload)
    metadata = doc.get("metadata")
    if isinstance(metadata, dict):
        metadata.pop("managedFields", None)
    if resource.kind is ResourceKind.SECRETS:
        for field_name in ("data", "stringData"):
            values = doc.get(field_name)
            if isinstance(values, dict):
                doc[field_name] = {key: REDACTED for key in values}
        annotations = metadata.get("annotations") if isinstance(metadata, dict) else None
        if isinstance(annotations, dict) and _LAST_APPLIED in annotations:
            annotations[_LAST_APPLIED] = REDACTED
    return doc


def detail_document(resource: Resource) -> str:
    """YAML rendering of one resource for the detail screen and ``show``."""
    return yaml.safe_dump(
        redacted_payload(resource),
        sort_keys=False,
        default_flow_style=False,
        allow_unicode=True,
    )
