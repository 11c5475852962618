from __future__ import annotations

import asyncio
from collections import defaultdict, deque
from typing import TYPE_CHECKING

from devspace_core.types import OutputLine

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

DEFAULT_BACKLOG = 1000


class OutputChannels:
    """In-process pub/sub for process output, one queue per subscriber.

    Each channel also keeps a bounded backlog so late observers can read
    what an agent printed before they subscribed. Closing a channel ends
    every subscription to it; publishing again reopens it.
    """

    def __init__(self, backlog: int = DEFAULT_BACKLOG) -> None:
        self._subscribers: dict[str, list[asyncio.Queue[OutputLine | None]]] = (
            defaultdict(list)
        )
        self._history: dict[str, deque[OutputLine]] = defaultdict(
            lambda: deque(maxlen=backlog)
        )
        self._closed: set[str] = set()
        self._lock = asyncio.Lock()

    async def publish(self, channel: str, text: str, stream: str = "stdout") -> OutputLine:
        line = OutputLine(channel=channel, text=text, stream=stream)
        async with self._lock:
            self._closed.discard(channel)
            self._history[channel].append(line)
            for queue in self._subscribers.get(channel, []):
                await queue.put(line)
        return line

    async def subscribe(
        self, channel: str, *, replay: bool = False
    ) -> AsyncIterator[OutputLine]:
        """Yield lines published to *channel* until it is closed.

        With *replay* the backlog is delivered first, with no gap or
        duplicate between it and the live lines.
        """
        queue: asyncio.Queue[OutputLine | None] = asyncio.Queue()
        async with self._lock:
            if replay:
                for line in self._history.get(channel, ()):
                    queue.put_nowait(line)
            if channel in self._closed:
                queue.put_nowait(None)
            else:
                self._subscribers[channel].append(queue)
        try:
            while True:
                line = await queue.get()
                if line is None:
                    return
                yield line
        finally:
            async with self._lock:
                if queue in self._subscribers.get(channel, []):
                    self._subscribers[channel].remove(queue)

    async def close(self, channel: str) -> None:
        async with self._lock:
            self._closed.add(channel)
            for queue in self._subscribers.pop(channel, []):
                await queue.put(None)

    def history(self, channel: str) -> list[OutputLine]:
        return list(self._history.get(channel, ()))

    def channels(self) -> list[str]:
        return sorted(self._history)
