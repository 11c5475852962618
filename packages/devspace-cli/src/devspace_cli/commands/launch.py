"""Launch the workspace agent on a machine and wait until it is ready."""
from __future__ import annotations

import asyncio
from pathlib import Path
from typing import TYPE_CHECKING

import typer
from devspace_core.config import DevspaceConfig
from devspace_core.errors import ConfigError, LaunchError
from devspace_core.logging import setup_from_config
from devspace_core.types import AgentSpec
from devspace_runtime.backends.machine import build_process_manager
from devspace_runtime.channels import OutputChannels
from devspace_runtime.launcher import WorkspaceAgentLauncher, output_channel_for
from devspace_runtime.macros import MacroRegistryBuilder, MacroResolver
from rich.console import Console

from devspace_cli.machine_file import load_machine

if TYPE_CHECKING:
    from devspace_runtime.backends.machine.local import SubprocessManager

console = Console()


async def _follow(
    channels: OutputChannels,
    channel: str,
    manager: SubprocessManager,
) -> None:
    """Echo agent output until every process on the machine has exited."""

    async def _echo() -> None:
        async for line in channels.subscribe(channel, replay=True):
            console.print(line.text, markup=False, highlight=False)

    echo = asyncio.create_task(_echo())
    pumps = [p.pump for p in manager.processes() if p.pump is not None]
    try:
        await asyncio.gather(*pumps)
        await channels.close(channel)
        await echo
    finally:
        if not echo.done():
            echo.cancel()
            await asyncio.gather(echo, return_exceptions=True)


async def _launch(
    config: DevspaceConfig,
    machine_file: Path,
    agent: AgentSpec,
    *,
    follow: bool,
) -> None:
    machine = load_machine(machine_file)
    channels = OutputChannels()
    manager = build_process_manager(config.machine, channels)
    resolver = MacroResolver(MacroRegistryBuilder().add_machine(machine).build())
    launcher = WorkspaceAgentLauncher(manager, config.agent, resolver=resolver)
    try:
        with console.status(f"Starting {launcher.agent_name}..."):
            await launcher.launch(machine, agent)
        console.print("[green]Workspace agent is ready.[/green]")
        if follow:
            await _follow(channels, output_channel_for(machine.workspace_id), manager)
    finally:
        # The agent lives only as long as this command.
        await manager.close()


def launch_command(
    machine_file: Path = typer.Option(
        ...,
        "--machine",
        "-m",
        help="TOML machine description",
    ),
    script: str = typer.Option(
        "",
        "--script",
        "-s",
        help="Bootstrap script run before the agent",
    ),
    run_command: str | None = typer.Option(
        None,
        "--run-command",
        help="Override the configured agent run command",
    ),
    follow: bool = typer.Option(
        True,
        "--follow/--no-follow",
        help="Stream agent output until it exits or Ctrl-C; "
        "--no-follow stops the agent once it is ready",
    ),
) -> None:
    """Launch the workspace agent and wait for its health endpoint."""
    config = DevspaceConfig.load()
    setup_from_config(config.logging)

    agent = AgentSpec(
        name="ws-agent", script=script, run_command=run_command
    )
    try:
        asyncio.run(_launch(config, machine_file, agent, follow=follow))
    except ConfigError as exc:
        console.print(f"[red]Configuration error:[/red] {exc}")
        raise typer.Exit(1) from None
    except LaunchError as exc:
        console.print(
            f"[red]{type(exc).__name__}:[/red] {exc.message}"
        )
        raise typer.Exit(1) from None
    except KeyboardInterrupt:
        console.print("[yellow]Workspace agent stopped.[/yellow]")
        raise typer.Exit(130) from None
