from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from devspace_core.types import Command


@runtime_checkable
class ProcessManager(Protocol):
    """Out-of-band command execution on a machine.

    ``exec`` returns once the command is accepted, not when it finishes;
    output is streamed to *output_channel*.
    """

    async def exec(
        self,
        workspace_id: str,
        machine_id: str,
        command: Command,
        output_channel: str,
    ) -> str: ...
