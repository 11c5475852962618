from __future__ import annotations

import time
from typing import TYPE_CHECKING

from devspace_core.config import AgentLaunchConfig
from devspace_core.errors import (
    DispatchError,
    EndpointNotFoundError,
    LaunchCancelledError,
    LaunchDispatchError,
    LaunchTimeoutError,
)
from devspace_core.logging import get_logger
from devspace_core.types import Command, LaunchAttempt, PollState

from devspace_runtime.poller import ReadinessPoller
from devspace_runtime.probe import HttpHealthProbe, normalize_health_url

if TYPE_CHECKING:
    import asyncio

    import httpx
    from devspace_core.types import AgentSpec, Machine

    from devspace_runtime.macros.resolver import MacroResolver
    from devspace_runtime.protocols.machine import ProcessManager

logger = get_logger("launcher")

WS_AGENT_NAME = "org.eclipse.che.ws-agent"
WS_AGENT_PROCESS_NAME = "CheWsAgent"
SERVER_NOT_FOUND_ERROR = "Workspace agent server not found in dev machine."
PING_INTERRUPTED_ERROR = "Workspace agent pinging is interrupted"

_OUTPUT_CHANNEL = "workspace:{}:ext-server:output"


def output_channel_for(workspace_id: str) -> str:
    """Channel that carries the agent process output of a workspace."""
    return _OUTPUT_CHANNEL.format(workspace_id)


class ReadinessAgentLauncher:
    """Start an agent on a machine and wait for its health endpoint.

    The launch runs in four steps:

    1. Find the health server (``config.server_ref``) on the machine.
       A missing server raises :class:`EndpointNotFoundError` at once.
    2. Compose ``agent.script`` with the run command and, when a
       :class:`MacroResolver` is given, expand its macros.
    3. Submit the command once. A :class:`DispatchError` from the process
       manager becomes :class:`LaunchDispatchError`; dispatch is never
       retried.
    4. Probe the health URL until it answers 200, the start deadline
       passes (:class:`LaunchTimeoutError`) or *cancel* is set
       (:class:`LaunchCancelledError`).

    Subclasses set :attr:`agent_name` and :attr:`machine_kind`.
    """

    agent_name: str = ""
    machine_kind: str = ""
    process_name: str = ""

    def __init__(
        self,
        process_manager: ProcessManager,
        config: AgentLaunchConfig | None = None,
        *,
        resolver: MacroResolver | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._process_manager = process_manager
        self._config = config or AgentLaunchConfig()
        self._resolver = resolver
        self._client = client

    @property
    def config(self) -> AgentLaunchConfig:
        return self._config

    async def launch(
        self,
        machine: Machine,
        agent: AgentSpec,
        cancel: asyncio.Event | None = None,
    ) -> None:
        cfg = self._config
        ping_url = self._health_url(machine)
        command = await self._build_command(agent)

        try:
            await self._process_manager.exec(
                machine.workspace_id,
                machine.machine_id,
                command,
                output_channel_for(machine.workspace_id),
            )
        except DispatchError as exc:
            logger.error(
                "Failed to dispatch %s to machine %s (workspace %s): %s",
                self.agent_name,
                machine.machine_id,
                machine.workspace_id,
                exc,
            )
            raise LaunchDispatchError(
                str(exc), **self._identity(machine)
            ) from exc

        started = time.monotonic()
        attempt = LaunchAttempt(
            machine=machine,
            agent_name=self.agent_name,
            command=command,
            started_at=started,
            deadline=started + cfg.max_start_time_ms / 1000,
            poll_delay=cfg.ping_delay_ms / 1000,
        )
        logger.debug(
            "Starts pinging %s. Workspace ID: %s. Url: %s",
            attempt.agent_name,
            machine.workspace_id,
            ping_url,
        )

        poller = ReadinessPoller(
            HttpHealthProbe(
                ping_url,
                timeout=cfg.ping_timeout_ms / 1000,
                client=self._client,
            ),
            max_duration=attempt.deadline - attempt.started_at,
            delay=attempt.poll_delay,
        )
        result = await poller.poll(cancel)

        if result.state is PollState.READY:
            logger.info(
                "%s is ready on machine %s after %d probe(s)",
                self.agent_name,
                machine.machine_id,
                result.attempts,
            )
            return
        if result.state is PollState.CANCELLED:
            raise LaunchCancelledError(
                PING_INTERRUPTED_ERROR, **self._identity(machine)
            )

        logger.error(
            "Fail pinging %s. Workspace ID: %s. Url: %s. Probes: %d",
            self.agent_name,
            machine.workspace_id,
            ping_url,
            result.attempts,
        )
        raise LaunchTimeoutError(
            cfg.ping_timed_out_message, **self._identity(machine)
        )

    # ── Internals ───────────────────────────────────────────────────

    def _health_url(self, machine: Machine) -> str:
        servers = machine.runtime.servers
        server = servers.get(self._config.server_ref)
        if server is None or not server.internal_url:
            logger.error(
                "%s WorkspaceId: %s, Machine Id: %s, found servers: %s",
                SERVER_NOT_FOUND_ERROR,
                machine.workspace_id,
                machine.machine_id,
                sorted(servers),
            )
            raise EndpointNotFoundError(
                SERVER_NOT_FOUND_ERROR, **self._identity(machine)
            )
        return normalize_health_url(server.internal_url)

    async def _build_command(self, agent: AgentSpec) -> Command:
        run_command = agent.run_command or self._config.effective_run_command
        command_line = f"{agent.script}\n{run_command}"
        if self._resolver is not None:
            command_line = await self._resolver.expand(command_line)
        return Command(
            name=self.agent_name,
            command_line=command_line,
            type=self.process_name,
        )

    def _identity(self, machine: Machine) -> dict[str, str]:
        return {
            "workspace_id": machine.workspace_id,
            "machine_id": machine.machine_id,
            "agent_name": self.agent_name,
        }


class WorkspaceAgentLauncher(ReadinessAgentLauncher):
    """Launches the workspace agent on docker machines."""

    agent_name = WS_AGENT_NAME
    machine_kind = "docker"
    process_name = WS_AGENT_PROCESS_NAME
