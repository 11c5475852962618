from __future__ import annotations

import asyncio
import contextlib
import time
import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from devspace_core.errors import DispatchError
from devspace_core.logging import get_logger

if TYPE_CHECKING:
    from devspace_core.types import Command

    from devspace_runtime.channels import OutputChannels

logger = get_logger("machine.local")

_STOP_TIMEOUT_SECONDS = 5.0
_DRAIN_TIMEOUT_SECONDS = 1.0


@dataclass(slots=True)
class ManagedProcess:
    """Bookkeeping for one command started on a machine."""

    pid: str
    workspace_id: str
    machine_id: str
    command: Command
    output_channel: str
    process: asyncio.subprocess.Process
    pump: asyncio.Task[None] | None = None
    started_at: float = field(default_factory=time.time)

    @property
    def running(self) -> bool:
        return self.process.returncode is None


class SubprocessManager:
    """Runs commands as child processes and streams their output.

    ``exec`` returns as soon as the child is spawned. Its stdout and
    stderr are forwarded line by line to the output channel from a
    background task. Subclasses choose the argv via :meth:`_argv`.
    """

    backend = "subprocess"

    def __init__(self, channels: OutputChannels) -> None:
        self._channels = channels
        self._processes: dict[str, ManagedProcess] = {}

    # ── Protocol methods ────────────────────────────────────────────

    async def exec(
        self,
        workspace_id: str,
        machine_id: str,
        command: Command,
        output_channel: str,
    ) -> str:
        argv = self._argv(machine_id, command)
        try:
            proc = await asyncio.create_subprocess_exec(
                *argv,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise DispatchError(
                f"Failed to start command {command.name!r} on machine "
                f"{machine_id}: {exc}"
            ) from exc

        managed = ManagedProcess(
            pid=uuid.uuid4().hex,
            workspace_id=workspace_id,
            machine_id=machine_id,
            command=command,
            output_channel=output_channel,
            process=proc,
        )
        managed.pump = asyncio.create_task(self._pump(managed))
        self._processes[managed.pid] = managed
        logger.info(
            "Started %s process %s for command %r (workspace %s)",
            self.backend,
            managed.pid[:8],
            command.name,
            workspace_id,
        )
        return managed.pid

    # ── Process management ──────────────────────────────────────────

    def processes(self) -> list[ManagedProcess]:
        return list(self._processes.values())

    def get(self, pid: str) -> ManagedProcess | None:
        return self._processes.get(pid)

    async def stop(self, pid: str) -> None:
        """Terminate a process, killing it if it ignores SIGTERM."""
        managed = self._processes.pop(pid, None)
        if managed is None:
            return
        proc = managed.process
        if proc.returncode is None:
            with contextlib.suppress(ProcessLookupError):
                proc.terminate()
            try:
                await asyncio.wait_for(proc.wait(), timeout=_STOP_TIMEOUT_SECONDS)
            except TimeoutError:
                with contextlib.suppress(ProcessLookupError):
                    proc.kill()
                await proc.wait()
        if managed.pump is not None:
            # Grandchildren may still hold the pipes open.
            try:
                await asyncio.wait_for(managed.pump, timeout=_DRAIN_TIMEOUT_SECONDS)
            except TimeoutError:
                logger.debug("Output of process %s not drained", pid[:8])
        logger.info("Stopped %s process %s", self.backend, pid[:8])

    async def close(self) -> None:
        for pid in list(self._processes):
            await self.stop(pid)

    # ── Internal helpers ────────────────────────────────────────────

    def _argv(self, machine_id: str, command: Command) -> list[str]:
        raise NotImplementedError

    async def _pump(self, managed: ManagedProcess) -> None:
        proc = managed.process
        await asyncio.gather(
            self._forward(proc.stdout, managed.output_channel, "stdout"),
            self._forward(proc.stderr, managed.output_channel, "stderr"),
        )
        code = await proc.wait()
        self._processes.pop(managed.pid, None)
        logger.debug("Process %s exited with code %s", managed.pid[:8], code)

    async def _forward(
        self,
        stream: asyncio.StreamReader | None,
        channel: str,
        name: str,
    ) -> None:
        if stream is None:
            return
        async for raw in stream:
            text = raw.decode("utf-8", errors="replace").rstrip("\r\n")
            await self._channels.publish(channel, text, stream=name)


class LocalProcessManager(SubprocessManager):
    """Treat the host itself as the machine, running commands via a shell."""

    backend = "local"

    def __init__(self, channels: OutputChannels, *, shell: str = "/bin/sh") -> None:
        super().__init__(channels)
        self._shell = shell

    def _argv(self, machine_id: str, command: Command) -> list[str]:
        return [self._shell, "-c", command.command_line]
