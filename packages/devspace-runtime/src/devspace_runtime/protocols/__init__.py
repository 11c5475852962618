"""Protocol interfaces for the devspace runtime."""
from __future__ import annotations

from devspace_runtime.protocols.launcher import AgentLauncher
from devspace_runtime.protocols.machine import ProcessManager
from devspace_runtime.protocols.macro import MacroProvider

__all__ = [
    "AgentLauncher",
    "MacroProvider",
    "ProcessManager",
]
