from __future__ import annotations

import asyncio
import math

import pytest
from devspace_core.types import PollState
from devspace_runtime.poller import ReadinessPoller


class FakeClock:
    """Virtual time advanced only by the poller's sleeps."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
        await asyncio.sleep(0)


class ScriptedProbe:
    """Reports healthy on the Nth call (never when *healthy_on* is None)."""

    def __init__(self, healthy_on: int | None = None, raises: bool = False) -> None:
        self.healthy_on = healthy_on
        self.raises = raises
        self.calls = 0

    async def __call__(self) -> bool:
        self.calls += 1
        if self.raises:
            raise ConnectionRefusedError("nothing listening")
        return self.healthy_on is not None and self.calls >= self.healthy_on


@pytest.fixture
def clock():
    return FakeClock()


class TestReadinessPoller:
    async def test_ready_on_first_probe(self, clock):
        probe = ScriptedProbe(healthy_on=1)
        poller = ReadinessPoller(
            probe, max_duration=10, delay=1, clock=clock, sleep=clock.sleep
        )
        result = await poller.poll()
        assert result.state is PollState.READY
        assert result.ready
        assert probe.calls == 1
        assert clock.sleeps == []

    @pytest.mark.parametrize("n", [2, 5, 9])
    async def test_stops_after_nth_probe(self, clock, n):
        probe = ScriptedProbe(healthy_on=n)
        poller = ReadinessPoller(
            probe, max_duration=10, delay=1, clock=clock, sleep=clock.sleep
        )
        result = await poller.poll()
        assert result.state is PollState.READY
        assert probe.calls == n
        assert result.attempts == n
        assert len(clock.sleeps) == n - 1

    @pytest.mark.parametrize(
        ("duration", "delay"), [(10.0, 1.0), (1.0, 0.3), (5.0, 2.0)]
    )
    async def test_exhausted_probe_count(self, clock, duration, delay):
        probe = ScriptedProbe()
        poller = ReadinessPoller(
            probe, max_duration=duration, delay=delay, clock=clock, sleep=clock.sleep
        )
        result = await poller.poll()
        assert result.state is PollState.EXHAUSTED
        expected = math.ceil(duration / delay)
        assert expected - 1 <= probe.calls <= expected + 1
        assert result.elapsed_seconds >= duration

    async def test_probe_errors_count_as_not_ready(self, clock):
        probe = ScriptedProbe(raises=True)
        poller = ReadinessPoller(
            probe, max_duration=3, delay=1, clock=clock, sleep=clock.sleep
        )
        result = await poller.poll()
        assert result.state is PollState.EXHAUSTED
        assert probe.calls == 3

    async def test_zero_duration_never_probes(self, clock):
        probe = ScriptedProbe(healthy_on=1)
        poller = ReadinessPoller(
            probe, max_duration=0, delay=1, clock=clock, sleep=clock.sleep
        )
        result = await poller.poll()
        assert result.state is PollState.EXHAUSTED
        assert probe.calls == 0

    def test_rejects_negative_settings(self):
        with pytest.raises(ValueError):
            ReadinessPoller(ScriptedProbe(), max_duration=-1, delay=1)
        with pytest.raises(ValueError):
            ReadinessPoller(ScriptedProbe(), max_duration=1, delay=-1)


class TestReadinessPollerCancellation:
    async def test_cancel_during_sleep(self):
        probe = ScriptedProbe()
        cancel = asyncio.Event()
        poller = ReadinessPoller(probe, max_duration=60, delay=30)

        task = asyncio.create_task(poller.poll(cancel))
        await asyncio.sleep(0.05)
        assert probe.calls == 1
        cancel.set()

        result = await asyncio.wait_for(task, timeout=1.0)
        assert result.state is PollState.CANCELLED
        assert probe.calls == 1

    async def test_cancel_during_probe(self):
        started = asyncio.Event()

        async def hanging_probe() -> bool:
            started.set()
            await asyncio.sleep(30)
            return True

        cancel = asyncio.Event()
        poller = ReadinessPoller(hanging_probe, max_duration=60, delay=1)
        task = asyncio.create_task(poller.poll(cancel))
        await started.wait()
        cancel.set()

        result = await asyncio.wait_for(task, timeout=1.0)
        assert result.state is PollState.CANCELLED

    async def test_already_cancelled(self):
        probe = ScriptedProbe(healthy_on=1)
        cancel = asyncio.Event()
        cancel.set()
        result = await ReadinessPoller(probe, max_duration=10, delay=1).poll(cancel)
        assert result.state is PollState.CANCELLED
        assert probe.calls == 0

    async def test_healthy_probe_wins_over_simultaneous_cancel(self):
        cancel = asyncio.Event()

        async def probe() -> bool:
            cancel.set()
            return True

        result = await ReadinessPoller(probe, max_duration=5, delay=0.01).poll(cancel)
        assert result.state is PollState.READY
        assert result.attempts == 1

    async def test_ready_with_unset_cancel_event(self):
        probe = ScriptedProbe(healthy_on=2)
        poller = ReadinessPoller(probe, max_duration=5, delay=0.01)
        result = await poller.poll(asyncio.Event())
        assert result.state is PollState.READY
        assert probe.calls == 2

    async def test_task_cancellation_propagates(self):
        poller = ReadinessPoller(ScriptedProbe(), max_duration=60, delay=30)
        task = asyncio.create_task(poller.poll(asyncio.Event()))
        await asyncio.sleep(0.05)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
