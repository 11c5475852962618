from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING, Any

from devspace_core.logging import get_logger
from devspace_core.types import PollResult, PollState

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Coroutine

logger = get_logger("poller")


class ReadinessPoller:
    """Bounded wait-then-probe loop.

    States: ``POLLING`` until the probe reports healthy (``READY``), the
    deadline passes at an iteration boundary (``EXHAUSTED``) or the cancel
    event is set (``CANCELLED``). Probe errors count as "not healthy yet"
    and never escape the poller.

    A set cancel event interrupts both the inter-probe sleep and a probe
    in flight. Cancelling the task running :meth:`poll` raises
    ``asyncio.CancelledError`` as usual.
    """

    def __init__(
        self,
        probe: Callable[[], Awaitable[bool]],
        *,
        max_duration: float,
        delay: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        if max_duration < 0:
            raise ValueError("max_duration must be >= 0")
        if delay < 0:
            raise ValueError("delay must be >= 0")
        self._probe = probe
        self._max_duration = max_duration
        self._delay = delay
        self._clock = clock
        self._sleep = sleep

    async def poll(self, cancel: asyncio.Event | None = None) -> PollResult:
        started = self._clock()
        deadline = started + self._max_duration
        attempts = 0
        state = PollState.POLLING

        while state is PollState.POLLING:
            if cancel is not None and cancel.is_set():
                state = PollState.CANCELLED
            elif self._clock() >= deadline:
                state = PollState.EXHAUSTED
            else:
                attempts += 1
                cancelled, healthy = await self._until_cancelled(
                    self._probe_once(), cancel
                )
                if cancelled:
                    state = PollState.CANCELLED
                elif healthy:
                    state = PollState.READY
                else:
                    cancelled, _ = await self._until_cancelled(
                        self._sleep(self._delay), cancel
                    )
                    if cancelled:
                        state = PollState.CANCELLED

        elapsed = self._clock() - started
        logger.debug(
            "Readiness poll finished: %s after %d probe(s) in %.3fs",
            state.value,
            attempts,
            elapsed,
        )
        return PollResult(state=state, attempts=attempts, elapsed_seconds=elapsed)

    async def _probe_once(self) -> bool:
        try:
            return bool(await self._probe())
        except Exception:
            logger.debug("Readiness probe failed", exc_info=True)
            return False

    @staticmethod
    async def _until_cancelled(
        coro: Coroutine[Any, Any, Any] | Awaitable[Any],
        cancel: asyncio.Event | None,
    ) -> tuple[bool, Any]:
        """Await *coro* unless *cancel* is set first.

        Returns ``(True, None)`` when cancelled, else ``(False, result)``.
        """
        if cancel is None:
            return False, await coro

        work = asyncio.ensure_future(coro)
        waiter = asyncio.ensure_future(cancel.wait())
        try:
            await asyncio.wait(
                {work, waiter}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            for task in (work, waiter):
                if not task.done():
                    task.cancel()
            await asyncio.gather(work, waiter, return_exceptions=True)

        # A result that is already in wins over a cancel set in the same tick.
        if work.done() and not work.cancelled():
            return False, work.result()
        return True, None
