"""devspace core: shared types, config, errors, and logging."""
from __future__ import annotations

from devspace_core._version import __version__
from devspace_core.config import (
    DEFAULT_RUN_COMMAND,
    AgentLaunchConfig,
    DevspaceConfig,
    LoggingConfig,
    MachineBackendConfig,
)
from devspace_core.errors import (
    ConfigError,
    DevspaceError,
    DispatchError,
    EndpointNotFoundError,
    LaunchCancelledError,
    LaunchDispatchError,
    LaunchError,
    LaunchTimeoutError,
    MachineError,
    MacroError,
    MacroExpansionError,
)
from devspace_core.logging import get_logger, setup_logging
from devspace_core.types import (
    AgentSpec,
    Command,
    LaunchAttempt,
    Machine,
    MachineRuntime,
    OutputLine,
    PollResult,
    PollState,
    Server,
)

__all__ = [
    # Config
    "DEFAULT_RUN_COMMAND",
    "AgentLaunchConfig",
    # Types
    "AgentSpec",
    "Command",
    # Errors
    "ConfigError",
    "DevspaceConfig",
    "DevspaceError",
    "DispatchError",
    "EndpointNotFoundError",
    "LaunchAttempt",
    "LaunchCancelledError",
    "LaunchDispatchError",
    "LaunchError",
    "LaunchTimeoutError",
    "LoggingConfig",
    "Machine",
    "MachineBackendConfig",
    "MachineError",
    "MachineRuntime",
    "MacroError",
    "MacroExpansionError",
    "OutputLine",
    "PollResult",
    "PollState",
    "Server",
    # Version
    "__version__",
    # Logging
    "get_logger",
    "setup_logging",
]
