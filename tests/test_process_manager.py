from __future__ import annotations

import asyncio
import shutil

import pytest
from devspace_core.config import MachineBackendConfig
from devspace_core.errors import ConfigError, DispatchError
from devspace_core.types import Command
from devspace_runtime.backends.machine import (
    DockerProcessManager,
    LocalProcessManager,
    build_process_manager,
)
from devspace_runtime.protocols import ProcessManager


async def _collect(channels, channel, count, timeout=5.0):
    lines = []

    async def consume():
        async for line in channels.subscribe(channel):
            lines.append(line)
            if len(lines) >= count:
                break

    await asyncio.wait_for(consume(), timeout=timeout)
    return lines


@pytest.mark.skipif(shutil.which("sh") is None, reason="needs a POSIX shell")
class TestLocalProcessManager:
    """The host as a machine: commands run through /bin/sh."""

    async def test_is_process_manager(self, local_process_manager):
        assert isinstance(local_process_manager, ProcessManager)

    async def test_exec_streams_output(self, local_process_manager, channels):
        command = Command(name="greet", command_line="echo hello\necho oops 1>&2", type="custom")
        consumer = asyncio.create_task(_collect(channels, "out", 2))
        await asyncio.sleep(0.01)

        pid = await local_process_manager.exec("ws", "m", command, "out")
        lines = await consumer

        assert isinstance(pid, str)
        by_stream = {line.stream: line.text for line in lines}
        assert by_stream == {"stdout": "hello", "stderr": "oops"}
        assert all(line.channel == "out" for line in lines)

    async def test_exec_returns_before_command_finishes(self, local_process_manager):
        command = Command(name="sleeper", command_line="sleep 30", type="custom")
        pid = await asyncio.wait_for(
            local_process_manager.exec("ws", "m", command, "out"), timeout=2.0
        )
        managed = local_process_manager.get(pid)
        assert managed is not None
        assert managed.running
        await local_process_manager.stop(pid)
        assert local_process_manager.get(pid) is None
        assert not managed.running

    async def test_history_keeps_output(self, local_process_manager, channels):
        command = Command(name="greet", command_line="echo one; echo two", type="custom")
        pid = await local_process_manager.exec("ws", "m", command, "hist")
        managed = local_process_manager.get(pid)
        await asyncio.wait_for(managed.pump, timeout=5.0)
        assert [line.text for line in channels.history("hist")] == ["one", "two"]

    async def test_exited_process_is_forgotten(self, local_process_manager):
        command = Command(name="quick", command_line="true", type="custom")
        pid = await local_process_manager.exec("ws", "m", command, "out")
        managed = local_process_manager.get(pid)
        await asyncio.wait_for(managed.pump, timeout=5.0)
        assert local_process_manager.get(pid) is None
        assert local_process_manager.processes() == []

    async def test_missing_shell_is_dispatch_error(self, channels):
        manager = LocalProcessManager(channels, shell="/nonexistent/shell")
        command = Command(name="x", command_line="true", type="custom")
        with pytest.raises(DispatchError):
            await manager.exec("ws", "m", command, "out")

    async def test_stop_unknown_is_noop(self, local_process_manager):
        await local_process_manager.stop("missing")


class TestDockerProcessManager:
    async def test_missing_docker_cli(self, channels):
        manager = DockerProcessManager(channels, docker_binary="definitely-not-docker")
        command = Command(name="x", command_line="true", type="custom")
        with pytest.raises(DispatchError, match="not found"):
            await manager.exec("ws", "container-1", command, "out")

    def test_argv_targets_container(self, channels, monkeypatch):
        monkeypatch.setattr(shutil, "which", lambda binary: f"/usr/bin/{binary}")
        manager = DockerProcessManager(channels)
        argv = manager._argv("container-1", Command("agent", "run.sh", "ws-agent"))
        assert argv[:3] == ["docker", "exec", "-i"]
        assert argv[-4:] == ["container-1", "sh", "-c", "run.sh"]


class TestBuildProcessManager:
    def test_local(self, channels):
        manager = build_process_manager(MachineBackendConfig(backend="local"), channels)
        assert isinstance(manager, LocalProcessManager)

    def test_docker(self, channels):
        manager = build_process_manager(MachineBackendConfig(backend="docker"), channels)
        assert isinstance(manager, DockerProcessManager)

    def test_unknown(self, channels):
        with pytest.raises(ConfigError):
            build_process_manager(MachineBackendConfig(backend="k8s"), channels)
