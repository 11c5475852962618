from __future__ import annotations

from typing import TYPE_CHECKING

from devspace_core.errors import ConfigError

from devspace_runtime.backends.machine.docker import DockerProcessManager
from devspace_runtime.backends.machine.local import (
    LocalProcessManager,
    ManagedProcess,
    SubprocessManager,
)

if TYPE_CHECKING:
    from devspace_core.config import MachineBackendConfig

    from devspace_runtime.channels import OutputChannels


def build_process_manager(
    config: MachineBackendConfig, channels: OutputChannels
) -> SubprocessManager:
    """Pick the process manager named by ``[machine] backend``."""
    if config.backend == "local":
        return LocalProcessManager(channels, shell=config.shell)
    elif config.backend == "docker":
        return DockerProcessManager(channels, docker_binary=config.docker_binary)
    else:
        raise ConfigError(f"Unknown machine backend: {config.backend!r}")


__all__ = [
    "DockerProcessManager",
    "LocalProcessManager",
    "ManagedProcess",
    "SubprocessManager",
    "build_process_manager",
]
