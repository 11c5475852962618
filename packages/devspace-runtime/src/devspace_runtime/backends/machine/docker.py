from __future__ import annotations

import shutil
from typing import TYPE_CHECKING

from devspace_core.errors import DispatchError

from devspace_runtime.backends.machine.local import SubprocessManager

if TYPE_CHECKING:
    from devspace_core.types import Command

    from devspace_runtime.channels import OutputChannels


def _docker_available(binary: str) -> bool:
    """Check whether the docker CLI is on PATH."""
    return shutil.which(binary) is not None


class DockerProcessManager(SubprocessManager):
    """Run commands inside a running container via ``docker exec``.

    The machine id is the container id or name. Only the docker CLI is
    required; no docker SDK is used.
    """

    backend = "docker"

    def __init__(
        self,
        channels: OutputChannels,
        *,
        docker_binary: str = "docker",
    ) -> None:
        super().__init__(channels)
        self._docker = docker_binary

    def _argv(self, machine_id: str, command: Command) -> list[str]:
        if not _docker_available(self._docker):
            raise DispatchError(
                f"Docker CLI {self._docker!r} not found on PATH; cannot "
                f"run {command.name!r} on machine {machine_id}"
            )
        return [
            self._docker, "exec", "-i",
            "--env", f"DEVSPACE_COMMAND={command.name}",
            machine_id,
            "sh", "-c", command.command_line,
        ]
