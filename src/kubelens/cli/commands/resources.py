"""One-shot resource commands: list, show, delete.

These run a single fetch through the same session the browser uses, so
they print the same data and delete through the same mark/execute path.
"""

from __future__ import annotations

import asyncio
from typing import Annotated, Any

import typer
from rich.syntax import Syntax

from kubelens.cli.commands.base import (
    NamespaceOption,
    YesOption,
    confirm_action,
    console,
    get_config,
    handle_k8s_error,
    parse_kind,
)
from kubelens.cli.output import Table
from kubelens.core.config import BrowserConfig
from kubelens.integrations.kubernetes.exceptions import KubernetesError
from kubelens.integrations.kubernetes.kinds import ResourceKind
from kubelens.integrations.kubernetes.models import (
    ConfigMapView,
    ContextView,
    NamespaceView,
    PodView,
    Resource,
    SecretView,
    ServiceView,
    format_age,
)
from kubelens.render.layout import detail_document, pod_status_style
from kubelens.state.deletion import DeletionExecutor
from kubelens.state.session import BrowserSession
from kubelens.state.snapshot import utc_now
from kubelens.tui.theme import Styles, tree_text

# Column definitions per kind: (label, style)
COLUMN_DEFS: dict[ResourceKind, list[tuple[str, str | None]]] = {
    ResourceKind.PODS: [
        ("Name", "cyan"),
        ("Status", None),
        ("Ready", None),
        ("Restarts", None),
        ("Node", "dim"),
        ("Age", "dim"),
    ],
    ResourceKind.CONFIGMAPS: [("Name", "cyan"), ("Data", None), ("Age", "dim")],
    ResourceKind.SECRETS: [("Name", "cyan"), ("Type", None), ("Data", None), ("Age", "dim")],
    ResourceKind.SERVICES: [
        ("Name", "cyan"),
        ("Type", None),
        ("Cluster IP", None),
        ("Ports", None),
        ("Age", "dim"),
    ],
    ResourceKind.NAMESPACES: [("Name", "cyan"), ("Status", None), ("Age", "dim")],
    ResourceKind.CONTEXTS: [
        ("Current", None),
        ("Name", "cyan"),
        ("Cluster", None),
        ("User", None),
        ("Namespace", None),
    ],
}

_STYLE_MARKUP = {
    "success": Styles.success,
    "warning": Styles.warning,
    "error": Styles.error,
}


def _styled_status(status: str) -> str:
    style = pod_status_style(status)
    return _STYLE_MARKUP[style](status) if style in _STYLE_MARKUP else status


def _resource_to_row(resource: Resource, config: BrowserConfig) -> tuple[str, ...]:
    """Convert a resource to a table row matching ``COLUMN_DEFS``."""
    now = utc_now()
    kind = resource.kind
    r: Any

    if kind is ResourceKind.PODS:
        r = PodView.from_resource(resource)
        restarts = str(r.restarts)
        if r.restarts >= config.restart_warning_threshold:
            restarts = Styles.warning(restarts)
        return (
            r.name,
            _styled_status(r.status),
            r.ready,
            restarts,
            r.node_name or "",
            format_age(r.creation_timestamp, now),
        )

    if kind is ResourceKind.CONFIGMAPS:
        r = ConfigMapView.from_resource(resource)
        return (r.name, str(len(r.data_keys)), format_age(r.creation_timestamp, now))

    if kind is ResourceKind.SECRETS:
        r = SecretView.from_resource(resource)
        return (r.name, r.type, str(len(r.data_keys)), format_age(r.creation_timestamp, now))

    if kind is ResourceKind.SERVICES:
        r = ServiceView.from_resource(resource)
        return (
            r.name,
            r.type,
            r.cluster_ip or "",
            ", ".join(str(p) for p in r.ports),
            format_age(r.creation_timestamp, now),
        )

    if kind is ResourceKind.NAMESPACES:
        r = NamespaceView.from_resource(resource)
        status = Styles.success(r.status) if r.status == "Active" else Styles.warning(r.status)
        return (r.name, status, format_age(r.creation_timestamp, now))

    r = ContextView.from_resource(resource)
    return ("*" if r.current else "", r.name, r.cluster or "", r.user or "", r.namespace or "")


def _fetch(session: BrowserSession, kind: ResourceKind) -> list[Resource]:
    try:
        return asyncio.run(session.fetch_once(kind, timeout=session.config.command_timeout))
    except KubernetesError as e:
        handle_k8s_error(e)


def _session(ctx: typer.Context, namespace: str | None) -> BrowserSession:
    config = get_config(ctx, namespace)
    try:
        return BrowserSession(config)
    except KubernetesError as e:
        handle_k8s_error(e)


# =============================================================================
# Commands
# =============================================================================


def list_resources(
    ctx: typer.Context,
    kind: Annotated[str, typer.Argument(help="Resource kind (pods, cm, svc, ...)")],
    namespace: NamespaceOption = None,
    tree: Annotated[
        bool,
        typer.Option("--tree", help="Print the browser's document instead of a table"),
    ] = False,
) -> None:
    """List resources of one kind.

    Examples:
        kubelens list pods
        kubelens list svc -n kube-system
        kubelens list secrets --tree
    """
    resource_kind = parse_kind(kind)
    session = _session(ctx, namespace)
    items = _fetch(session, resource_kind)

    if tree:
        console.print(tree_text(session.render((resource_kind,))))
        return

    if not items:
        console.print(f"[yellow]No {resource_kind.value} found[/yellow]")
        return

    table = Table.with_columns(resource_kind.title, COLUMN_DEFS[resource_kind])
    for item in items:
        table.add_row(*_resource_to_row(item, session.config))
    console.print(table)


def show(
    ctx: typer.Context,
    kind: Annotated[str, typer.Argument(help="Resource kind")],
    name: Annotated[str, typer.Argument(help="Resource name")],
    namespace: NamespaceOption = None,
) -> None:
    """Show one resource as YAML; secret values are redacted.

    Examples:
        kubelens show pod web-1
        kubelens show secret db-credentials -n prod
    """
    resource_kind = parse_kind(kind)
    session = _session(ctx, namespace)
    _fetch(session, resource_kind)
    try:
        resource = session.lookup(resource_kind, name)
    except KubernetesError as e:
        handle_k8s_error(e)
    console.print(Syntax(detail_document(resource), "yaml", word_wrap=True))


def delete(
    ctx: typer.Context,
    kind: Annotated[str, typer.Argument(help="Resource kind")],
    names: Annotated[list[str], typer.Argument(help="Names of the resources to delete")],
    namespace: NamespaceOption = None,
    yes: YesOption = False,
) -> None:
    """Mark resources and delete them after confirmation.

    Every name must exist in a fresh listing of the kind; nothing is
    deleted if any of them is missing.

    Examples:
        kubelens delete pods web-1 web-2
        kubelens delete cm stale-config -n dev --yes
    """
    resource_kind = parse_kind(kind)
    if not resource_kind.deletable:
        console.print(f"[red]Error:[/red] {resource_kind.value} cannot be deleted")
        raise typer.Exit(1)

    session = _session(ctx, namespace)
    _fetch(session, resource_kind)
    for name in dict.fromkeys(names):
        try:
            session.mark(resource_kind, name)
        except KubernetesError as e:
            handle_k8s_error(e)

    plan = session.plan_deletion()
    if not yes and not confirm_action(DeletionExecutor.confirmation_message(plan)):
        console.print("[yellow]Cancelled[/yellow]")
        raise typer.Exit(0)

    failures: list[str] = []

    def report(message: str, severity: str) -> None:
        if severity == "error":
            failures.append(message)
            console.print(Styles.error(message))
        else:
            console.print(Styles.success(message))

    session.add_notifier(report)
    asyncio.run(_execute(session, resource_kind))
    if failures:
        raise typer.Exit(1)


async def _execute(session: BrowserSession, kind: ResourceKind) -> None:
    session.execute_marks([kind])
    await session.deletions.wait()
