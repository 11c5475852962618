from __future__ import annotations

import contextlib

import httpx
import pytest
import pytest_asyncio
from devspace_core.errors import DispatchError
from devspace_core.types import Machine, MachineRuntime, Server


@pytest.fixture
def macro_registry():
    from devspace_runtime.macros import MacroRegistry
    return MacroRegistry()


@pytest.fixture
def resolver(macro_registry):
    from devspace_runtime.macros import MacroResolver
    return MacroResolver(macro_registry)


@pytest.fixture
def machine() -> Machine:
    return Machine(
        workspace_id="workspace-1",
        machine_id="dev-machine",
        runtime=MachineRuntime(servers={
            "4401/tcp": Server(
                address="10.0.0.5:32801",
                protocol="http",
                internal_url="http://10.0.0.5:32801/api",
            ),
            "8080/tcp": Server(address="10.0.0.5:32802", protocol="http"),
            "22/tcp": Server(address="10.0.0.5:32803"),
        }),
    )


@pytest.fixture
def channels():
    from devspace_runtime.channels import OutputChannels
    return OutputChannels()


@pytest_asyncio.fixture
async def local_process_manager(channels):
    from devspace_runtime.backends.machine import LocalProcessManager
    manager = LocalProcessManager(channels)
    yield manager
    await manager.close()


class RecordingProcessManager:
    """Process manager double that records submissions."""

    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.calls: list[tuple[str, str, object, str]] = []

    async def exec(self, workspace_id, machine_id, command, output_channel) -> str:
        self.calls.append((workspace_id, machine_id, command, output_channel))
        if self.fail:
            raise DispatchError("machine rejected the command")
        return f"pid-{len(self.calls)}"


@pytest.fixture
def recording_manager():
    return RecordingProcessManager()


class ScriptedHealthEndpoint:
    """httpx transport handler answering 200 from the Nth request on."""

    def __init__(self, healthy_after: int | None = None, error: bool = False) -> None:
        self.healthy_after = healthy_after
        self.error = error
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error:
            raise httpx.ConnectError("connection refused", request=request)
        if self.healthy_after is not None and len(self.requests) >= self.healthy_after:
            return httpx.Response(200, json={"status": "ok"})
        return httpx.Response(404)


@pytest_asyncio.fixture
async def http_client_factory():
    clients: list[httpx.AsyncClient] = []

    def factory(handler) -> httpx.AsyncClient:
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        clients.append(client)
        return client

    yield factory
    for client in clients:
        with contextlib.suppress(Exception):
            await client.aclose()


@pytest.fixture
def health_endpoint():
    """Factory for scripted health endpoints."""
    return ScriptedHealthEndpoint


@pytest.fixture
def failing_manager():
    return RecordingProcessManager(fail=True)
