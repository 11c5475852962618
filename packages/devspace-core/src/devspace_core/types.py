from __future__ import annotations

import enum
import time
from dataclasses import dataclass, field

# ── Machine Types ────────────────────────────────────────────────────

@dataclass(frozen=True, slots=True)
class Server:
    """A network endpoint advertised by a machine."""
    address: str
    internal_url: str | None = None
    protocol: str | None = None
    url: str | None = None
    ref: str | None = None


@dataclass(frozen=True, slots=True)
class MachineRuntime:
    """Runtime state of a machine: its servers keyed by reference name."""
    servers: dict[str, Server] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class Machine:
    """An opaque remote execution target."""
    workspace_id: str
    machine_id: str
    kind: str = "docker"
    runtime: MachineRuntime = field(default_factory=MachineRuntime)
    name: str | None = None


# ── Command Types ────────────────────────────────────────────────────

@dataclass(frozen=True, slots=True)
class Command:
    """A command line submitted to a machine for execution."""
    name: str
    command_line: str
    type: str


@dataclass(frozen=True, slots=True)
class OutputLine:
    """One line of process output published on an output channel."""
    channel: str
    text: str
    stream: str = "stdout"
    timestamp: float = field(default_factory=time.time)


# ── Agent Types ──────────────────────────────────────────────────────

@dataclass(frozen=True, slots=True)
class AgentSpec:
    """An agent to be started on a machine.

    ``script`` bootstraps the agent's environment; ``run_command``, when
    given, replaces the launcher's configured run command.
    """
    name: str
    script: str
    run_command: str | None = None


@dataclass(frozen=True, slots=True)
class LaunchAttempt:
    """Transient record of a single ``launch()`` call."""
    machine: Machine
    agent_name: str
    command: Command
    started_at: float
    deadline: float
    poll_delay: float


# ── Readiness Types ──────────────────────────────────────────────────

class PollState(enum.Enum):
    POLLING = "polling"
    READY = "ready"
    EXHAUSTED = "exhausted"
    CANCELLED = "cancelled"


@dataclass(frozen=True, slots=True)
class PollResult:
    """Terminal outcome of a readiness poll."""
    state: PollState
    attempts: int
    elapsed_seconds: float

    @property
    def ready(self) -> bool:
        return self.state is PollState.READY
