from __future__ import annotations

import typer

from devspace_cli.commands.config import config_command
from devspace_cli.commands.expand import expand_command
from devspace_cli.commands.launch import launch_command

app = typer.Typer(
    name="devspace",
    help="devspace: command macros and workspace agent launcher",
    no_args_is_help=True,
)

app.command("expand")(expand_command)
app.command("launch")(launch_command)
app.command("config")(config_command)


@app.command()
def version() -> None:
    """Show the devspace version."""
    from devspace_core import __version__
    from rich.console import Console
    Console().print(f"devspace {__version__}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
