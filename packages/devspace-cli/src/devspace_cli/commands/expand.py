"""Expand command macros against a machine description."""
from __future__ import annotations

import asyncio
from pathlib import Path

import typer
from devspace_core.errors import ConfigError
from devspace_runtime.macros import MacroRegistryBuilder, MacroResolver
from rich.console import Console
from rich.table import Table

from devspace_cli.machine_file import load_machine

console = Console()


def expand_command(
    template: str = typer.Argument(
        "", help="Command line containing ${...} macros"
    ),
    machine_file: Path | None = typer.Option(
        None,
        "--machine",
        "-m",
        help="TOML machine description providing server macros",
    ),
    list_macros: bool = typer.Option(
        False,
        "--list",
        "-l",
        help="List the available macros instead of expanding",
    ),
) -> None:
    """Expand ${...} macros in a command line."""
    builder = MacroRegistryBuilder()
    if machine_file is not None:
        try:
            builder.add_machine(load_machine(machine_file))
        except ConfigError as exc:
            console.print(f"[red]{exc}[/red]")
            raise typer.Exit(1) from None
    registry = builder.build()

    if list_macros:
        table = Table(
            title="Command Macros",
            show_header=True,
            header_style="bold cyan",
        )
        table.add_column("Macro", style="bold")
        table.add_column("Description")
        for provider in sorted(registry.get_providers(), key=lambda p: p.name):
            table.add_row(provider.name, provider.description)
        console.print(table)
        return

    expanded = asyncio.run(MacroResolver(registry).expand(template))
    # Plain print: the expanded line may contain rich markup characters.
    typer.echo(expanded)
