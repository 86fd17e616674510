"""Main CLI entry point using Typer."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from kubelens import __version__
from kubelens.cli.commands import browse, resources, shell
from kubelens.logging.config import configure_logging

app = typer.Typer(
    name="kubelens",
    help="Browse and clean up Kubernetes resources through kubectl.",
    add_completion=True,
)

console = Console()

# Commands that own the terminal and must not get log lines on it
_FULL_SCREEN_COMMANDS = frozenset({"browse"})


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"kubelens version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose output.",
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug mode.",
    ),
    config: Path | None = typer.Option(
        None,
        "--config",
        help="Config file (default: ~/.config/kubelens/config.yaml).",
        dir_okay=False,
    ),
) -> None:
    """kubelens - an interactive Kubernetes resource browser."""
    ctx.obj = {"config_path": config}
    configure_logging(
        verbose=verbose,
        debug=debug,
        console=ctx.invoked_subcommand not in _FULL_SCREEN_COMMANDS,
    )


# Register subcommands
app.command()(browse.browse)
app.command(name="list")(resources.list_resources)
app.command()(resources.show)
app.command()(resources.delete)
app.command()(shell.shell)


if __name__ == "__main__":
    app()
