from __future__ import annotations

import json
from dataclasses import asdict
from pathlib import Path

import typer
from devspace_core.config import DevspaceConfig
from rich.console import Console
from rich.syntax import Syntax

console = Console()


def config_command(
    project_dir: Path | None = typer.Option(
        None,
        "--project",
        "-p",
        help="Project directory (defaults to cwd)",
    ),
) -> None:
    """Show the merged configuration (defaults, global, project)."""
    config = DevspaceConfig.load(project_dir)
    console.print(
        Syntax(
            json.dumps(asdict(config), indent=2),
            "json",
            theme="monokai",
        )
    )
