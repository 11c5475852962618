"""Command macros: registry, providers, and the ``${...}`` resolver."""
from __future__ import annotations

from devspace_runtime.macros.providers import (
    DynamicMacro,
    MachineMacroSource,
    MacroRegistryBuilder,
    StaticMacro,
    machine_macros,
    server_macros,
    server_protocol_macros,
)
from devspace_runtime.macros.registry import MacroRegistry
from devspace_runtime.macros.resolver import MacroResolver, find_macros

__all__ = [
    "DynamicMacro",
    "MachineMacroSource",
    "MacroRegistry",
    "MacroRegistryBuilder",
    "MacroResolver",
    "StaticMacro",
    "find_macros",
    "machine_macros",
    "server_macros",
    "server_protocol_macros",
]
