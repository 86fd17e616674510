"""Shared options, configuration loading, and error handling for commands."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, NoReturn

import structlog
import typer
import yaml
from rich.console import Console

from kubelens.core.config import BrowserConfig, load_config
from kubelens.integrations.kubernetes.exceptions import (
    FetchFailed,
    KubectlNotFoundError,
    KubernetesError,
    MutationFailed,
    UnknownResource,
)
from kubelens.integrations.kubernetes.kinds import ResourceKind

console = Console()
logger = structlog.get_logger()


# =============================================================================
# Common Typer Option Annotations
# =============================================================================

NamespaceOption = Annotated[
    str | None,
    typer.Option(
        "--namespace",
        "-n",
        help="Kubernetes namespace (defaults to config or the context's namespace)",
    ),
]

YesOption = Annotated[
    bool,
    typer.Option(
        "--yes",
        "-y",
        help="Skip confirmation prompts",
    ),
]


# =============================================================================
# Configuration
# =============================================================================


def get_config(ctx: typer.Context, namespace: str | None = None) -> BrowserConfig:
    """Load configuration for a command.

    Uses the ``--config`` path given to the root command, then applies a
    ``--namespace`` override.

    Raises:
        typer.Exit: With code 2 if the configuration is invalid.
    """
    obj = ctx.find_root().obj or {}
    path: Path | None = obj.get("config_path")
    try:
        config = load_config(path)
    # pydantic.ValidationError is a ValueError
    except (ValueError, yaml.YAMLError) as e:
        console.print(f"[red]Error:[/red] Invalid configuration: {e}")
        raise typer.Exit(2) from e
    if namespace:
        config = config.model_copy(update={"namespace": namespace})
    return config


def parse_kind(text: str) -> ResourceKind:
    """Resolve a kind argument, failing as a usage error."""
    try:
        return ResourceKind.parse(text)
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e


# =============================================================================
# Error Handling
# =============================================================================


def describe_error(error: KubernetesError) -> str:
    """One-line diagnostic for ``error``."""
    if isinstance(error, FetchFailed):
        return f"Failed to list {error.kind}: {error.message}"
    if isinstance(error, MutationFailed) and error.kind == ResourceKind.CONTEXTS.value:
        return f"Failed to switch to context {error.name}: {error.message}"
    if isinstance(error, MutationFailed):
        return f"Failed to delete {error.kind}/{error.name}: {error.message}"
    if isinstance(error, UnknownResource):
        return error.message
    if isinstance(error, KubectlNotFoundError):
        return error.message
    return str(error)


def handle_k8s_error(error: KubernetesError) -> NoReturn:
    """Print a one-line diagnostic and exit.

    Raises:
        typer.Exit: Always exits with code 1.
    """
    logger.debug("command_failed", error=str(error))
    console.print(f"[red]Error:[/red] {describe_error(error)}")
    raise typer.Exit(1)


def confirm_action(message: str, default: bool = False) -> bool:
    """Prompt user to confirm an action."""
    return typer.confirm(message, default=default)
