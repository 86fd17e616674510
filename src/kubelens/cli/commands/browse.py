"""Browse command: the full-screen resource browser."""

from __future__ import annotations

from typing import Annotated

import typer

from kubelens.cli.commands.base import (
    NamespaceOption,
    get_config,
    handle_k8s_error,
    parse_kind,
)
from kubelens.integrations.kubernetes.exceptions import KubernetesError
from kubelens.integrations.kubernetes.kinds import OVERVIEW_KINDS
from kubelens.logging import get_logger
from kubelens.state.session import BrowserSession
from kubelens.tui.apps.browser import BrowserApp

logger = get_logger(__name__)


def browse(
    ctx: typer.Context,
    kinds: Annotated[
        list[str] | None,
        typer.Argument(help="Kinds to show (default: the overview)"),
    ] = None,
    namespace: NamespaceOption = None,
) -> None:
    """Open the interactive browser.

    Keys: j/k move, tab folds, enter shows details, m/u mark and unmark,
    x deletes marked resources, y copies, n/c switch namespace or context,
    1-6 open a single-kind view, q closes the view.
    """
    selected = tuple(parse_kind(k) for k in kinds) if kinds else OVERVIEW_KINDS
    config = get_config(ctx, namespace)
    try:
        session = BrowserSession(config)
    except KubernetesError as e:
        handle_k8s_error(e)

    logger.info(
        "browser_started", kinds=[k.value for k in selected], namespace=config.namespace
    )
    BrowserApp(session, selected).run()
