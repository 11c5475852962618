from __future__ import annotations

import inspect
from dataclasses import dataclass
from typing import TYPE_CHECKING

from devspace_core.logging import get_logger

from devspace_runtime.macros.registry import MacroRegistry

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterable

    from devspace_core.types import Machine

    from devspace_runtime.protocols.macro import MacroProvider

logger = get_logger("macros.providers")

SERVER_KEY = "${server.%}"
SERVER_PROTOCOL_KEY = "${server.%.protocol}"
WORKSPACE_ID_KEY = "${workspace.id}"
MACHINE_ID_KEY = "${machine.id}"

_TCP_SUFFIX = "/tcp"


@dataclass(frozen=True, slots=True)
class StaticMacro:
    """A macro whose value is fixed when it is created."""
    name: str
    value: str
    description: str = ""

    async def expand(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class DynamicMacro:
    """A macro re-evaluated on every expansion.

    *func* takes no arguments and returns the value, either directly or as
    an awaitable.
    """
    name: str
    func: Callable[[], str | Awaitable[str]]
    description: str = ""

    async def expand(self) -> str:
        value = self.func()
        if inspect.isawaitable(value):
            value = await value
        return value


def _keys_for(template: str, ref: str) -> list[str]:
    """Macro names for a server *ref*, plus the bare port alias for ``/tcp``."""
    keys = [template.replace("%", ref)]
    if ref.endswith(_TCP_SUFFIX):
        keys.append(template.replace("%", ref[: -len(_TCP_SUFFIX)]))
    return keys


def server_macros(machine: Machine) -> set[StaticMacro]:
    """``${server.<ref>}`` for every server: protocol, host and port."""
    providers: set[StaticMacro] = set()
    for ref, server in machine.runtime.servers.items():
        prefix = f"{server.protocol}://" if server.protocol else ""
        value = prefix + server.address + ("/" if prefix else "")
        for key in _keys_for(SERVER_KEY, ref):
            providers.add(StaticMacro(
                key,
                value,
                "Returns protocol, hostname and port of an internal server",
            ))
    return providers


def server_protocol_macros(machine: Machine) -> set[StaticMacro]:
    """``${server.<ref>.protocol}`` for every server that declares one."""
    providers: set[StaticMacro] = set()
    for ref, server in machine.runtime.servers.items():
        if not server.protocol:
            continue
        for key in _keys_for(SERVER_PROTOCOL_KEY, ref):
            providers.add(StaticMacro(
                key,
                server.protocol,
                "Returns protocol of a server registered by name",
            ))
    return providers


def machine_macros(machine: Machine) -> set[StaticMacro]:
    """Every macro a single machine contributes."""
    return {
        StaticMacro(WORKSPACE_ID_KEY, machine.workspace_id, "Returns the workspace ID"),
        StaticMacro(MACHINE_ID_KEY, machine.machine_id, "Returns the machine ID"),
        *server_macros(machine),
        *server_protocol_macros(machine),
    }


class MachineMacroSource:
    """Keeps a registry in step with the machine it is attached to.

    ``attach`` is called when a machine starts and ``detach`` when it
    stops; attaching a new machine first drops the previous machine's
    macros since server addresses change between runs.
    """

    def __init__(self, registry: MacroRegistry) -> None:
        self._registry = registry
        self._providers: set[StaticMacro] = set()

    @property
    def providers(self) -> set[StaticMacro]:
        return set(self._providers)

    def attach(self, machine: Machine) -> None:
        self.detach()
        self._providers = machine_macros(machine)
        self._registry.register(self._providers)
        logger.debug(
            "Registered %d macros for machine %s",
            len(self._providers),
            machine.machine_id,
        )

    def detach(self) -> None:
        for provider in self._providers:
            self._registry.unregister(provider)
        self._providers = set()


class MacroRegistryBuilder:
    """Collect macro providers at bootstrap and build the registry.

    Usage::

        registry = (
            MacroRegistryBuilder()
            .add(DynamicMacro("${date}", today))
            .add_machine(machine)
            .build()
        )
    """

    def __init__(self) -> None:
        self._groups: list[Iterable[MacroProvider]] = []

    def add(self, *providers: MacroProvider) -> MacroRegistryBuilder:
        self._groups.append(providers)
        return self

    def add_machine(self, machine: Machine) -> MacroRegistryBuilder:
        self._groups.append(machine_macros(machine))
        return self

    def build(self) -> MacroRegistry:
        registry = MacroRegistry()
        for group in self._groups:
            registry.register(group)
        return registry
