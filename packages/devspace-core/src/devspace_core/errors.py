from __future__ import annotations


class DevspaceError(Exception):
    """Base exception for all devspace errors."""


# ── Config Errors ────────────────────────────────────────────────────

class ConfigError(DevspaceError):
    """Invalid or missing configuration."""


# ── Machine Errors ───────────────────────────────────────────────────

class MachineError(DevspaceError):
    """Base for errors raised by a machine or its process manager."""


class DispatchError(MachineError):
    """A command could not be scheduled for execution on a machine."""


# ── Macro Errors ─────────────────────────────────────────────────────

class MacroError(DevspaceError):
    """Base for command macro errors."""


class MacroExpansionError(MacroError):
    """A macro provider failed to produce its value."""

    def __init__(self, token: str, cause: BaseException) -> None:
        super().__init__(f"Failed to expand macro {token}: {cause}")
        self.token = token
        self.cause = cause


# ── Launch Errors ────────────────────────────────────────────────────

class LaunchError(DevspaceError):
    """Base for agent launch failures.

    Carries the identity of the machine and agent involved so callers can
    report the failure without holding on to the launch arguments.
    """

    def __init__(
        self,
        message: str,
        *,
        workspace_id: str | None = None,
        machine_id: str | None = None,
        agent_name: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.workspace_id = workspace_id
        self.machine_id = machine_id
        self.agent_name = agent_name


class EndpointNotFoundError(LaunchError):
    """The machine exposes no health endpoint under the expected name."""


class LaunchDispatchError(LaunchError):
    """The machine rejected or could not accept the agent command."""


class LaunchTimeoutError(LaunchError):
    """The agent did not report healthy before the start deadline."""


class LaunchCancelledError(LaunchError):
    """The launch was aborted by an external cancellation signal."""
