from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    import asyncio

    from devspace_core.types import AgentSpec, Machine


@runtime_checkable
class AgentLauncher(Protocol):
    """Starts an agent on a machine and waits until it is usable.

    One implementation exists per (agent name, machine kind) pair.
    """

    @property
    def agent_name(self) -> str: ...
    @property
    def machine_kind(self) -> str: ...
    async def launch(
        self,
        machine: Machine,
        agent: AgentSpec,
        cancel: asyncio.Event | None = None,
    ) -> None: ...
