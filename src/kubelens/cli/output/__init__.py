"""Centralized CLI output utilities.

Usage:
    from kubelens.cli.output import Table

    table = Table(title="Pods")
    table.add_column("Name", style="cyan")
    table.add_row("web-1")
    console.print(table)
"""

from kubelens.cli.output.table import Table

__all__ = ["Table"]
