"""devspace runtime: command macros and agent launch supervision."""
from __future__ import annotations

from devspace_runtime.backends.machine import (
    DockerProcessManager,
    LocalProcessManager,
    build_process_manager,
)
from devspace_runtime.channels import OutputChannels
from devspace_runtime.launcher import (
    ReadinessAgentLauncher,
    WorkspaceAgentLauncher,
    output_channel_for,
)
from devspace_runtime.macros import (
    DynamicMacro,
    MachineMacroSource,
    MacroRegistry,
    MacroRegistryBuilder,
    MacroResolver,
    StaticMacro,
)
from devspace_runtime.poller import ReadinessPoller
from devspace_runtime.probe import HttpHealthProbe, normalize_health_url
from devspace_runtime.protocols import AgentLauncher, MacroProvider, ProcessManager

__all__ = [
    "AgentLauncher",
    "DockerProcessManager",
    "DynamicMacro",
    "HttpHealthProbe",
    "LocalProcessManager",
    "MachineMacroSource",
    "MacroProvider",
    "MacroRegistry",
    "MacroRegistryBuilder",
    "MacroResolver",
    "OutputChannels",
    "ProcessManager",
    "ReadinessAgentLauncher",
    "ReadinessPoller",
    "StaticMacro",
    "WorkspaceAgentLauncher",
    "build_process_manager",
    "normalize_health_url",
    "output_channel_for",
]
